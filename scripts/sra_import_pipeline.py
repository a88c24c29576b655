# File: scripts/sra_import_pipeline.py

# Import necessary modules for pipeline execution
import argparse
import json
import logging
import os
import sys
import time
from typing import Dict, List, Optional
import psutil
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from tqdm import tqdm
from config.db_config import get_session_context, get_source_engine
from config.logger_config import configure_logger
from db.repositories import AnalysisRepository, SampleRepository, StudyRepository, TaxonomyRepository
from db.schema.sra_metadata_schema import Analysis
from pipeline.sra_pipeline.sra_converters import AnalysisConverter, SampleConverter, StudyConverter
from pipeline.sra_pipeline.sra_importer_db import SraObjectsImporterThroughDatabase
from pipeline.sra_pipeline.sra_xml_parser import AnalysisXmlParser, SampleXmlParser, StudyXmlParser
from pipeline.sra_pipeline.sra_xml_retriever_db import SraXmlRetrieverThroughDatabase
from pipeline.sra_pipeline.taxonomy_importer import EntrezTaxonomyClient, TaxonomyImporter
from utils.config_utils import (ConfigLoaderError, ensure_directories, load_config,
                                parse_query_overrides, validate_config)
from utils.connection_checker import DatabaseConnectionChecker, DatabaseConnectionError

# ---------------- Configuration ----------------

BASE_DIR = os.path.abspath(os.path.dirname(__file__))
PROJECT_ROOT = os.path.dirname(BASE_DIR)
DEFAULT_CONFIG_PATH = os.path.join(BASE_DIR, "../resources/sra_import_config.yaml")
CONFIG_PATH_KEYS = ["accessions_file", "summary_path"]


def resolve_config_paths(config: dict, root: str = PROJECT_ROOT) -> dict:
    """
    Makes relative file paths from the configuration absolute against the project root,
    so a run does not depend on the current directory.
    """
    for key in CONFIG_PATH_KEYS:
        path = config.get(key)
        if path and not os.path.isabs(path):
            config[key] = os.path.normpath(os.path.join(root, path))
    return config


def build_importer(session: Session, source_engine: Engine, config: dict) -> SraObjectsImporterThroughDatabase:
    """
    Wires the database importer and its collaborators.

    Args:
        session (Session): Target database session shared by all repositories.
        source_engine (Engine): Engine bound to the source SRA database.
        config (dict): Validated import configuration.

    Returns:
        SraObjectsImporterThroughDatabase: The ready-to-use importer.
    """
    entrez = config.get("entrez") or {}
    taxonomy_client = EntrezTaxonomyClient(
        api_key=entrez.get("api_key"),
        email=entrez.get("email"),
        timeout=int(entrez.get("timeout", 30)),
        **({"base_url": entrez["base_url"]} if entrez.get("base_url") else {}),
    )
    return SraObjectsImporterThroughDatabase(
        xml_retriever=SraXmlRetrieverThroughDatabase(source_engine, parse_query_overrides(config.get("queries"))),
        study_parser=StudyXmlParser(),
        analysis_parser=AnalysisXmlParser(),
        sample_parser=SampleXmlParser(),
        study_converter=StudyConverter(),
        analysis_converter=AnalysisConverter(),
        sample_converter=SampleConverter(),
        study_repository=StudyRepository(session),
        analysis_repository=AnalysisRepository(session),
        sample_repository=SampleRepository(session),
        taxonomy_importer=TaxonomyImporter(TaxonomyRepository(session), taxonomy_client),
    )


def read_accessions(accessions_file: str) -> List[str]:
    """
    Reads analysis accessions, one per line. Blank lines and '#' comments are ignored;
    repeated accessions are kept once, in first-seen order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file lists no accessions.
    """
    if not os.path.exists(accessions_file):
        raise FileNotFoundError(f"Accessions file not found: {accessions_file}")

    with open(accessions_file, "r") as f:
        accessions = [line.split("#", 1)[0].strip() for line in f]
    accessions = list(dict.fromkeys(accession for accession in accessions if accession))

    if not accessions:
        raise ValueError(f"No accessions found in {accessions_file}.")
    return accessions


# ---------------- SRA Import Pipeline ----------------
class SraImportPipeline:
    """
    Imports a list of analyses, one at a time, through a shared importer.

    A failing analysis is recorded and the run continues with the next one; failed
    accessions are retried at the end of the run.
    """
    stats: Dict[str, float]

    def __init__(self, analysis_accessions: List[str], importer: SraObjectsImporterThroughDatabase,
                 summary_path: str, retries: int = 2, logger: Optional[logging.Logger] = None) -> None:
        """
        Args:
            analysis_accessions (List[str]): Analyses to import.
            importer (SraObjectsImporterThroughDatabase): The importer shared by the whole run.
            summary_path (str): Where the JSON summary report is written.
            retries (int): Retry rounds for failed accessions.
            logger (Optional[logging.Logger]): Logger to use; a module logger by default.

        Raises:
            ValueError: If analysis_accessions is not a non-empty list.
        """
        if not analysis_accessions or not isinstance(analysis_accessions, list):
            raise ValueError("analysis_accessions must be a non-empty list of accessions.")
        self.analysis_accessions = analysis_accessions
        self.importer = importer
        self.summary_path = summary_path
        self.retries = retries
        self.logger = logger or logging.getLogger(__name__)

        self.stats = {
            "total_analyses": 0, "skipped_analyses": 0, "total_samples": 0, "total_studies": 0,
            "runtime": 0, "memory_usage": 0, "cpu_usage": 0,
        }
        # Accession -> error message for every analysis that failed
        self.failed_accessions: Dict[str, str] = {}

    # -------------------------Processing Methods -----------------------------------

    def import_analysis(self, accession: str) -> Analysis:
        """
        Imports one analysis unless an earlier run already stored it.

        Raises:
            Exception: Whatever the importer raised; the failure is recorded first.
        """
        try:
            existing = self.importer.analysis_repository.find_by_accession(accession)
            if existing is not None:
                self.logger.info(f"Analysis {accession} already imported; skipping.")
                self.stats["skipped_analyses"] += 1
                self.failed_accessions.pop(accession, None)
                return existing

            analysis = self.importer.import_analysis(accession)
        except Exception as e:
            self.failed_accessions[accession] = f"{type(e).__name__}: {e}"
            self.logger.error(f"Failed to import analysis {accession}: {e}")
            if isinstance(e, SQLAlchemyError):
                # A failed statement leaves the shared session unusable until it is rolled back
                self.importer.analysis_repository.session.rollback()
            raise

        self.failed_accessions.pop(accession, None)
        self.stats["total_analyses"] += 1
        self.stats["total_samples"] += len(analysis.samples)
        return analysis

    def execute_pipeline(self) -> None:
        """
        Imports every accession, retries failures, then logs resource usage and writes the summary.
        """
        start_time = time.time()

        for accession in tqdm(self.analysis_accessions, desc="Importing analyses"):
            try:
                self.import_analysis(accession)
            except Exception:
                # Already logged and recorded; continue with the next analysis
                continue

        if self.failed_accessions:
            self.logger.warning(f"Retrying {len(self.failed_accessions)} failed analyses.")
            self.retry_failed_accessions()

        self.stats["runtime"] = time.time() - start_time
        self.stats["total_studies"] = len(self.importer.accessions_to_study)

        self.log_resource_usage()
        self.generate_summary_report()

    def retry_failed_accessions(self) -> None:
        for attempt in range(1, self.retries + 1):
            self.logger.info(f"Retry attempt {attempt} for failed analyses.")
            for accession in list(self.failed_accessions):
                try:
                    self.import_analysis(accession)
                except Exception as e:
                    self.logger.warning(f"Retry failed for analysis {accession}: {e}")
            if not self.failed_accessions:
                self.logger.info("All analyses imported successfully after retries.")
                break
        if self.failed_accessions:
            self.logger.error(f"Final failed analyses after retries: {self.failed_accessions}")

    # ----------------------------- Utility Methods ---------------------------------

    def log_resource_usage(self) -> None:
        """
        Logs the memory and CPU usage of the pipeline and updates stats.
        """
        try:
            memory_usage = psutil.Process(os.getpid()).memory_info().rss / (1024 ** 2)
            cpu_usage = psutil.cpu_percent(interval=None)
            self.logger.info(f"Memory usage: {memory_usage:.2f} MB")
            self.logger.info(f"CPU usage: {cpu_usage:.2f}%")
            self.stats["memory_usage"] = memory_usage
            self.stats["cpu_usage"] = cpu_usage
        except psutil.Error as e:
            self.logger.error(f"Error tracking resource usage: {e}")

    def generate_summary_report(self) -> dict:
        """
        Writes run statistics and failed accessions to the summary JSON file.

        Returns:
            dict: The report that was written.
        """
        report = {
            **self.stats,
            "studies": sorted(self.importer.accessions_to_study),
            "failed_accessions": self.failed_accessions,
        }
        with open(self.summary_path, "w") as summary_file:
            json.dump(report, summary_file, indent=4)
        self.logger.info(f"Pipeline summary saved to {self.summary_path}")
        return report


# ----------------------------- Main Execution ---------------------------------

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import SRA analyses, with their studies, samples and taxonomies, from the source database."
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Path to the YAML import configuration.")
    parser.add_argument("--accessions-file", help="Overrides accessions_file from the configuration.")
    parser.add_argument("--summary-path", help="Overrides summary_path from the configuration.")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    # Handlers go on the root logger so importer and repository modules log to the same file
    configure_logger(
        log_file="sra_import_pipeline.log",
        level=logging.DEBUG if args.debug else logging.INFO,
    )
    logger = logging.getLogger("SraImportPipeline")

    try:
        config = resolve_config_paths(load_config(args.config))
        if args.accessions_file:
            config["accessions_file"] = args.accessions_file
        if args.summary_path:
            config["summary_path"] = args.summary_path
        validate_config(config)
        ensure_directories(config, ["summary_path"])

        accessions = read_accessions(config["accessions_file"])
        logger.info(f"Processing {len(accessions)} analyses.")

        checker = DatabaseConnectionChecker()
        if not checker.check_all_connections():
            raise RuntimeError("Database connection check failed. Aborting pipeline.")

        with get_session_context() as session:
            importer = build_importer(session, get_source_engine(), config)
            pipeline = SraImportPipeline(
                analysis_accessions=accessions,
                importer=importer,
                summary_path=config["summary_path"],
                retries=config["retries"],
                logger=logger,
            )
            pipeline.execute_pipeline()

    except (ConfigLoaderError, FileNotFoundError, ValueError) as e:
        logger.critical(f"Invalid pipeline input: {e}")
        return 2
    except (DatabaseConnectionError, RuntimeError) as e:
        logger.critical(f"Runtime error: {e}")
        return 1

    return 1 if pipeline.failed_accessions else 0


if __name__ == "__main__":
    sys.exit(main())
