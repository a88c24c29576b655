# File: pipeline/abstract_etl/objects_importer.py

from abc import ABC, abstractmethod  # Import ABC and abstractmethod for abstract class definition
import logging
from typing import TYPE_CHECKING, List
from pipeline.abstract_etl.data_retriever import EnaObjectQuery, SraXmlRetriever
from pipeline.abstract_etl.entity_converter import EntityConverter

if TYPE_CHECKING:
    from db.repositories import AnalysisRepository, SampleRepository, StudyRepository
    from db.schema.sra_metadata_schema import Analysis, Sample, Study
    from pipeline.sra_pipeline.sra_xml_parser import AnalysisRecord, SampleRecord, SraXmlParser, StudyRecord
    from pipeline.sra_pipeline.taxonomy_importer import TaxonomyImporter

logger = logging.getLogger(__name__)


class ObjectsImporter(ABC):
    """
    Abstract base class for importing SRA studies and analyses.

    Implements the retrieve, parse and convert sequence for each object type and
    leaves the relationship handling to three hooks:
        - `import_samples`: resolve the samples of an analysis.
        - `extract_study_from_analysis`: attach the owning study and persist the analysis.
        - `extract_analysis_from_study`: link analyses to a study converted on its own.
    """

    def __init__(
        self,
        xml_retriever: SraXmlRetriever,
        study_parser: "SraXmlParser[StudyRecord]",
        analysis_parser: "SraXmlParser[AnalysisRecord]",
        sample_parser: "SraXmlParser[SampleRecord]",
        study_converter: "EntityConverter[StudyRecord, Study]",
        analysis_converter: "EntityConverter[AnalysisRecord, Analysis]",
        sample_converter: "EntityConverter[SampleRecord, Sample]",
        study_repository: "StudyRepository",
        analysis_repository: "AnalysisRepository",
        sample_repository: "SampleRepository",
        taxonomy_importer: "TaxonomyImporter",
    ) -> None:
        self.xml_retriever = xml_retriever
        self.study_parser = study_parser
        self.analysis_parser = analysis_parser
        self.sample_parser = sample_parser
        self.study_converter = study_converter
        self.analysis_converter = analysis_converter
        self.sample_converter = sample_converter
        self.study_repository = study_repository
        self.analysis_repository = analysis_repository
        self.sample_repository = sample_repository
        self.taxonomy_importer = taxonomy_importer

    def import_study(self, accession: str) -> "Study":
        """
        Retrieves, parses and converts one study.

        Args:
            accession (str): Study accession.

        Returns:
            Study: The study returned by `extract_analysis_from_study`.
        """
        xml = self.xml_retriever.retrieve_xml(accession, EnaObjectQuery.STUDY_QUERY)
        record = self.study_parser.parse_xml(xml, accession)
        study = self.study_converter.convert(record)
        return self.extract_analysis_from_study(record, study)

    def import_analysis(self, accession: str) -> "Analysis":
        """
        Retrieves, parses and converts one analysis, then resolves its samples and study.

        Samples are resolved before the analysis is persisted, so a failure in either
        hook leaves no analysis row behind.

        Args:
            accession (str): Analysis accession.

        Returns:
            Analysis: The persisted analysis.
        """
        xml = self.xml_retriever.retrieve_xml(accession, EnaObjectQuery.ANALYSIS_QUERY)
        record = self.analysis_parser.parse_xml(xml, accession)
        analysis = self.analysis_converter.convert(record)
        analysis.samples = self.import_samples(record)
        analysis = self.extract_study_from_analysis(record, analysis)
        logger.info(f"Imported analysis {analysis.accession} with {len(analysis.samples)} samples")
        return analysis

    @staticmethod
    def extract_taxonomy_from_sample(record: "SampleRecord") -> int:
        """
        Returns the taxonomy id of a parsed sample.

        Raises:
            ValueError: If the sample names no taxon.
        """
        if record.taxon_id is None:
            raise ValueError(f"Sample {record.accession} has no TAXON_ID.")
        return record.taxon_id

    @abstractmethod
    def import_samples(self, record: "AnalysisRecord") -> List["Sample"]:
        pass

    @abstractmethod
    def extract_study_from_analysis(self, record: "AnalysisRecord", analysis: "Analysis") -> "Analysis":
        pass

    @abstractmethod
    def extract_analysis_from_study(self, record: "StudyRecord", study: "Study") -> "Study":
        pass
