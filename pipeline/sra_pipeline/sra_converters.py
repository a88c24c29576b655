# File: pipeline/sra_pipeline/sra_converters.py
# Converters from parsed SRA records to transient ORM entities.

from db.schema.sra_metadata_schema import Analysis, Sample, Study
from pipeline.abstract_etl.entity_converter import EntityConverter
from pipeline.sra_pipeline.sra_xml_parser import AnalysisRecord, SampleRecord, StudyRecord


class StudyConverter(EntityConverter[StudyRecord, Study]):

    def convert(self, record: StudyRecord) -> Study:
        return Study(
            accession=record.accession,
            title=self.normalize_text(record.title) or record.alias,
            description=self.normalize_text(record.description),
            center_name=record.center_name,
            study_type=record.study_type,
        )


class AnalysisConverter(EntityConverter[AnalysisRecord, Analysis]):
    """
    Builds the analysis shell. The study and samples are attached later by the importer.
    """

    def convert(self, record: AnalysisRecord) -> Analysis:
        return Analysis(
            accession=record.accession,
            title=self.normalize_text(record.title) or record.alias,
            description=self.normalize_text(record.description),
            analysis_type=record.analysis_type,
            center_name=record.center_name,
        )


class SampleConverter(EntityConverter[SampleRecord, Sample]):

    def convert(self, record: SampleRecord) -> Sample:
        return Sample(
            accession=record.accession,
            name=record.alias,
            title=self.normalize_text(record.title),
            bio_sample_accession=record.bio_sample_accession,
        )
