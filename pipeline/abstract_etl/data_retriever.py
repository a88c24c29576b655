# File: pipeline/abstract_etl/data_retriever.py

from abc import ABC, abstractmethod  # Import ABC and abstractmethod for abstract class definition
from enum import Enum
from typing import List, Tuple


class EnaObjectQuery(Enum):
    """
    Selects the retrieval shape used for one call.

    STUDY_QUERY and ANALYSIS_QUERY return a single XML document; SAMPLE_QUERY returns
    one (sample_id, biosample_accession, xml) row per sample of an analysis.
    """
    STUDY_QUERY = "study"
    ANALYSIS_QUERY = "analysis"
    SAMPLE_QUERY = "sample"


# (sample_id, biosample_accession, sample_xml)
SampleXmlRow = Tuple[str, str, str]


class SraXmlRetriever(ABC):
    """
    Abstract base class for retrieving SRA object XML by accession.

    The query mode is an argument of every call, so one retriever can serve
    study, analysis and sample lookups from several call sites without shared state.
    """

    @abstractmethod
    def retrieve_xml(self, accession: str, query: EnaObjectQuery) -> str:
        """
        Retrieves the XML document of one study or analysis.

        Args:
            accession (str): Accession of the object to fetch.
            query (EnaObjectQuery): STUDY_QUERY or ANALYSIS_QUERY.

        Returns:
            str: The raw XML text.
        """
        pass

    @abstractmethod
    def retrieve_sample_xmls(self, analysis_accession: str,
                             query: EnaObjectQuery = EnaObjectQuery.SAMPLE_QUERY) -> List[SampleXmlRow]:
        """
        Retrieves the samples an analysis was computed from.

        Args:
            analysis_accession (str): Accession of the analysis.
            query (EnaObjectQuery): Must be SAMPLE_QUERY.

        Returns:
            List[SampleXmlRow]: One (sample_id, biosample_accession, xml) row per sample.
        """
        pass
