from db.schema.sra_metadata_schema import Analysis, Sample, Study
from pipeline.abstract_etl.entity_converter import EntityConverter
from pipeline.sra_pipeline.sra_converters import AnalysisConverter, SampleConverter, StudyConverter
from pipeline.sra_pipeline.sra_xml_parser import AnalysisRecord, SampleRecord, StudyRecord


def test_normalize_text():
    assert EntityConverter.normalize_text("  Tumour \n  and   normal ") == "Tumour and normal"
    assert EntityConverter.normalize_text("   ") is None
    assert EntityConverter.normalize_text(None) is None


def test_study_converter():
    record = StudyRecord(accession="ERP1", alias="s1", center_name="EBI", title="A  study",
                         description="Long\n description", study_type="Other")
    study = StudyConverter().convert(record)

    assert isinstance(study, Study)
    assert study.id is None
    assert (study.accession, study.title, study.description) == ("ERP1", "A study", "Long description")
    assert study.center_name == "EBI"
    assert study.study_type == "Other"


def test_study_title_falls_back_to_alias():
    study = StudyConverter().convert(StudyRecord(accession="ERP1", alias="hnsc-wgs"))

    assert study.title == "hnsc-wgs"


def test_analysis_converter_leaves_study_unset():
    record = AnalysisRecord(accession="ERZ1", study_accession="ERP1", title="Calls",
                            analysis_type="SEQUENCE_VARIATION", sample_accessions=["ERS1"])
    analysis = AnalysisConverter().convert(record)

    assert isinstance(analysis, Analysis)
    assert analysis.accession == "ERZ1"
    assert analysis.analysis_type == "SEQUENCE_VARIATION"
    assert analysis.study is None
    assert analysis.samples == []


def test_sample_converter():
    record = SampleRecord(accession="ERS1", alias="donor-1", title="Tumour", taxon_id=9606,
                          bio_sample_accession="SAMEA1")
    sample = SampleConverter().convert(record)

    assert isinstance(sample, Sample)
    assert sample.accession == "ERS1"
    assert sample.name == "donor-1"
    assert sample.bio_sample_accession == "SAMEA1"
    assert sample.taxonomies == []
