import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import OperationalError
from pipeline.abstract_etl.data_retriever import EnaObjectQuery
from pipeline.sra_pipeline.sra_xml_retriever_db import DEFAULT_QUERIES, SraXmlRetrieverThroughDatabase
from utils.exceptions import RecordNotFoundError


@pytest.fixture
def retriever(populate_source, study_xml, analysis_xml, sample_xml):
    engine = populate_source(
        studies={"EGAS1": study_xml("EGAS1"), "EGAS2": None},
        analyses={"EGAZ1": analysis_xml("EGAZ1", "EGAS1")},
        samples={"EGAZ1": [
            ("EGAN2", "SAMEA2", sample_xml("EGAN2")),
            ("EGAN1", "SAMEA1", sample_xml("EGAN1")),
        ]},
    )
    return SraXmlRetrieverThroughDatabase(engine)


def test_requires_engine():
    with pytest.raises(ValueError, match="engine is required"):
        SraXmlRetrieverThroughDatabase(None)


def test_retrieve_study_xml(retriever):
    xml = retriever.retrieve_xml("EGAS1", EnaObjectQuery.STUDY_QUERY)

    assert 'accession="EGAS1"' in xml


def test_retrieve_analysis_xml(retriever):
    xml = retriever.retrieve_xml("EGAZ1", EnaObjectQuery.ANALYSIS_QUERY)

    assert "<STUDY_REF accession=\"EGAS1\"/>" in xml


def test_same_retriever_serves_every_query(retriever):
    """
    Test that one retriever answers study, analysis and sample lookups in any order.
    """
    assert retriever.retrieve_sample_xmls("EGAZ1")
    assert retriever.retrieve_xml("EGAS1", EnaObjectQuery.STUDY_QUERY)
    assert retriever.retrieve_xml("EGAZ1", EnaObjectQuery.ANALYSIS_QUERY)
    assert retriever.retrieve_sample_xmls("EGAZ1", EnaObjectQuery.SAMPLE_QUERY)


def test_study_accession_is_not_an_analysis(retriever):
    with pytest.raises(RecordNotFoundError, match="No analysis record found for accession EGAS1"):
        retriever.retrieve_xml("EGAS1", EnaObjectQuery.ANALYSIS_QUERY)


@pytest.mark.parametrize("accession", ["EGAS404", "EGAS2"])
def test_missing_or_null_xml(retriever, accession):
    with pytest.raises(RecordNotFoundError) as excinfo:
        retriever.retrieve_xml(accession, EnaObjectQuery.STUDY_QUERY)

    assert excinfo.value.accession == accession
    assert excinfo.value.object_type == "study"


def test_sample_query_rejected_for_single_documents(retriever):
    with pytest.raises(ValueError, match="SAMPLE_QUERY"):
        retriever.retrieve_xml("EGAZ1", EnaObjectQuery.SAMPLE_QUERY)


@pytest.mark.parametrize("query", [EnaObjectQuery.STUDY_QUERY, EnaObjectQuery.ANALYSIS_QUERY])
def test_sample_rows_require_sample_query(retriever, query):
    with pytest.raises(ValueError, match=query.name):
        retriever.retrieve_sample_xmls("EGAZ1", query)


def test_retrieve_sample_rows_ordered_with_biosample(retriever):
    rows = retriever.retrieve_sample_xmls("EGAZ1")

    assert [(sample_id, biosample) for sample_id, biosample, _ in rows] == [
        ("EGAN1", "SAMEA1"), ("EGAN2", "SAMEA2"),
    ]
    assert all(isinstance(row, tuple) and "<SAMPLE_SET>" in row[2] for row in rows)


def test_analysis_without_samples(retriever):
    assert retriever.retrieve_sample_xmls("EGAZ404") == []


def test_query_override(populate_source):
    engine = populate_source(studies={"EGAS1": "<STUDY/>"})
    retriever = SraXmlRetrieverThroughDatabase(engine, {
        EnaObjectQuery.STUDY_QUERY: "SELECT '<STUDY accession=\"X\"/>' FROM study WHERE study_id = :accession",
    })

    assert retriever.retrieve_xml("EGAS1", EnaObjectQuery.STUDY_QUERY) == '<STUDY accession="X"/>'
    assert retriever.queries[EnaObjectQuery.ANALYSIS_QUERY] == DEFAULT_QUERIES[EnaObjectQuery.ANALYSIS_QUERY]


def test_source_errors_propagate():
    engine = MagicMock()
    engine.connect.side_effect = OperationalError("SELECT", None, Exception("source down"))

    with pytest.raises(OperationalError):
        SraXmlRetrieverThroughDatabase(engine).retrieve_xml("EGAS1", EnaObjectQuery.STUDY_QUERY)
