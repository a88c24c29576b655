# File: pipeline/sra_pipeline/sra_importer_db.py
import logging
from typing import Dict, List
from db.schema.sra_metadata_schema import Analysis, Sample, Study
from pipeline.abstract_etl.data_retriever import EnaObjectQuery
from pipeline.abstract_etl.objects_importer import ObjectsImporter
from pipeline.sra_pipeline.sra_xml_parser import AnalysisRecord, StudyRecord
from pipeline.sra_pipeline.study_cache import StudyCache

logger = logging.getLogger(__name__)


class SraObjectsImporterThroughDatabase(ObjectsImporter):
    """
    Importer for archives read through their relational dump, where the study XML does
    not list its analyses (e.g. EGA). Analyses are the entry point: importing one
    resolves its samples and its study.

    Studies shared by several analyses are imported once per run through the study
    cache, and once across runs through the study repository's find-or-save.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.study_cache = StudyCache()

    @property
    def accessions_to_study(self) -> Dict[str, Study]:
        """Studies resolved so far in this run, keyed by accession."""
        return self.study_cache.snapshot()

    def import_samples(self, record: AnalysisRecord) -> List[Sample]:
        """
        Imports every sample of an analysis, with its BioSample cross-reference and taxonomy.

        Samples are processed in the order the source returns them. The first failing
        sample is logged and its error re-raised; nothing is persisted for the batch,
        though taxonomies imported for earlier samples stay stored.

        Args:
            record (AnalysisRecord): The parsed analysis.

        Returns:
            List[Sample]: The persisted samples, in source order.
        """
        sample_rows = self.xml_retriever.retrieve_sample_xmls(record.accession, EnaObjectQuery.SAMPLE_QUERY)

        samples = []
        for sample_id, bio_sample_accession, sample_xml in sample_rows:
            try:
                sample_record = self.sample_parser.parse_xml(sample_xml, sample_id)
                sample = self.sample_converter.convert(sample_record)
                # The dump keeps the BioSample cross-reference in its own column, not in the XML
                sample.bio_sample_accession = bio_sample_accession
                taxonomy = self.taxonomy_importer.import_taxonomy_tree(
                    self.extract_taxonomy_from_sample(sample_record)
                )
                sample.taxonomies = [taxonomy]
                samples.append(sample)
            except Exception as e:
                logger.error(f"Encountered exception for sample accession {sample_id}: {e}")
                raise

        return self.sample_repository.find_or_save_all(samples)

    def extract_study_from_analysis(self, record: AnalysisRecord, analysis: Analysis) -> Analysis:
        """
        Attaches the owning study to the analysis and persists the analysis.
        Study resolution errors propagate, so no analysis is stored without its study.
        """
        analysis.study = self.import_study_from_analysis(record.study_accession)
        return self.analysis_repository.save(analysis)

    def extract_analysis_from_study(self, record: StudyRecord, study: Study) -> Study:
        # Study XML in the dump carries no analysis references
        return study

    def import_study_from_analysis(self, study_accession: str) -> Study:
        """
        Resolves a study referenced by an analysis.

        Within a run the cached instance is returned without retrieval; otherwise the
        study is imported and matched against studies stored by earlier runs.

        Args:
            study_accession (str): Accession from the analysis' STUDY_REF.

        Returns:
            Study: The persisted study shared by every analysis naming this accession.
        """
        return self.study_cache.get_or_load(study_accession, self._resolve_study)

    def _resolve_study(self, study_accession: str) -> Study:
        study = self.import_study(study_accession)
        study = self.study_repository.find_or_save(study)
        logger.info(f"Resolved study {study_accession}")
        return study
