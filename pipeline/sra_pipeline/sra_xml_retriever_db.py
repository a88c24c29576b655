# File: pipeline/sra_pipeline/sra_xml_retriever_db.py
import logging
from typing import Dict, List, Optional
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from pipeline.abstract_etl.data_retriever import EnaObjectQuery, SampleXmlRow, SraXmlRetriever
from utils.exceptions import RecordNotFoundError

logger = logging.getLogger(__name__)

# One SQL shape per query mode. Every statement binds the accession as :accession.
DEFAULT_QUERIES: Dict[EnaObjectQuery, str] = {
    EnaObjectQuery.STUDY_QUERY: (
        "SELECT study_xml FROM study WHERE study_id = :accession"
    ),
    EnaObjectQuery.ANALYSIS_QUERY: (
        "SELECT analysis_xml FROM analysis WHERE analysis_id = :accession"
    ),
    EnaObjectQuery.SAMPLE_QUERY: (
        "SELECT s.sample_id, s.biosample_id, s.sample_xml "
        "FROM sample s JOIN analysis_sample a ON a.sample_id = s.sample_id "
        "WHERE a.analysis_id = :accession "
        "ORDER BY s.sample_id"
    ),
}

SINGLE_DOCUMENT_QUERIES = {EnaObjectQuery.STUDY_QUERY, EnaObjectQuery.ANALYSIS_QUERY}


class SraXmlRetrieverThroughDatabase(SraXmlRetriever):
    """
    Reads SRA object XML from a relational dump of the archive (e.g. EGA, where study XML
    does not list its analyses).

    Attributes:
        engine (Engine): Engine bound to the source database.
        queries (Dict[EnaObjectQuery, str]): SQL text per query mode.
    """

    def __init__(self, engine: Engine, queries: Optional[Dict[EnaObjectQuery, str]] = None) -> None:
        if engine is None:
            raise ValueError("A source database engine is required.")
        self.engine = engine
        self.queries = dict(DEFAULT_QUERIES)
        if queries:
            self.queries.update(queries)

    def retrieve_xml(self, accession: str, query: EnaObjectQuery) -> str:
        """
        Fetches the XML of one study or analysis.

        Raises:
            ValueError: If `query` does not return a single document.
            RecordNotFoundError: If no row (or an empty XML column) is found.
            SQLAlchemyError: If the source query fails.
        """
        if query not in SINGLE_DOCUMENT_QUERIES:
            raise ValueError(f"{query.name} does not return a single XML document.")

        try:
            with self.engine.connect() as connection:
                row = connection.execute(text(self.queries[query]), {"accession": accession}).first()
        except SQLAlchemyError as e:
            logger.error(f"Source database error while running {query.name} for {accession}: {e}")
            raise

        if row is None or row[0] is None:
            raise RecordNotFoundError(accession, query.value)
        logger.debug(f"Retrieved {query.value} XML for {accession}")
        return row[0]

    def retrieve_sample_xmls(self, analysis_accession: str,
                             query: EnaObjectQuery = EnaObjectQuery.SAMPLE_QUERY) -> List[SampleXmlRow]:
        """
        Fetches (sample_id, biosample_accession, xml) rows for every sample of an analysis.
        The BioSample accession comes from its own column; the sample XML does not carry it.

        Raises:
            ValueError: If `query` is not SAMPLE_QUERY.
            SQLAlchemyError: If the source query fails.
        """
        if query is not EnaObjectQuery.SAMPLE_QUERY:
            raise ValueError(f"{query.name} cannot be used to retrieve sample rows.")

        try:
            with self.engine.connect() as connection:
                rows = connection.execute(
                    text(self.queries[query]), {"accession": analysis_accession}
                ).all()
        except SQLAlchemyError as e:
            logger.error(f"Source database error while fetching samples of {analysis_accession}: {e}")
            raise

        logger.info(f"Retrieved {len(rows)} sample rows for analysis {analysis_accession}")
        return [(row[0], row[1], row[2]) for row in rows]
