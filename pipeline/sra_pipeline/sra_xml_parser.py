# File: pipeline/sra_pipeline/sra_xml_parser.py
import logging
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar
from lxml import etree
from pydantic import BaseModel, Field, ValidationError
from utils.exceptions import SraXmlParseError

logger = logging.getLogger(__name__)


# ---------------- Pydantic Models for Parsed Records ----------------
class StudyRecord(BaseModel):
    """
    Parsed STUDY object.

    Attributes:
        accession: Study accession.
        alias: Submitter's name for the study.
        center_name: Submitting center.
        title: Study title.
        description: Study description, or the abstract when no description is given.
        study_type: The existing_study_type of the descriptor.
    """
    accession: str
    alias: Optional[str] = None
    center_name: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    study_type: Optional[str] = None


class AnalysisRecord(BaseModel):
    """
    Parsed ANALYSIS object. `study_accession` is required: an analysis always belongs to a study.
    """
    accession: str
    study_accession: str
    alias: Optional[str] = None
    center_name: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    analysis_type: Optional[str] = None
    sample_accessions: List[str] = Field(default_factory=list)


class SampleRecord(BaseModel):
    """
    Parsed SAMPLE object. In the database dump the BioSample id is usually absent from the XML.
    """
    accession: str
    alias: Optional[str] = None
    center_name: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    taxon_id: Optional[int] = None
    scientific_name: Optional[str] = None
    common_name: Optional[str] = None
    bio_sample_accession: Optional[str] = None
    attributes: Dict[str, Optional[str]] = Field(default_factory=dict)


RecordT = TypeVar("RecordT", bound=BaseModel)


# ---------------- Parsers ----------------
class SraXmlParser(Generic[RecordT]):
    """
    Parses the XML of one SRA object into a typed record.

    The document may be the bare object element (e.g. <STUDY>) or its set wrapper
    (e.g. <STUDY_SET>). Within a set, the object whose accession equals the context id
    is used, falling back to the first object.
    """
    object_tag: str = None
    record_model: Type[RecordT] = None

    def __init__(self) -> None:
        # Never resolve external entities or hit the network while parsing archive XML
        self._parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=True)

    def parse_xml(self, xml: str, context_id: str) -> RecordT:
        """
        Parses an XML document into a record.

        Args:
            xml (str): The raw XML text.
            context_id (str): Accession the document was fetched for; used to pick the
                object out of a set and as the accession when the XML has none.

        Returns:
            RecordT: The validated record.

        Raises:
            SraXmlParseError: If the XML is empty, malformed, has an unexpected root or
                fails validation.
        """
        if not xml or not xml.strip():
            raise SraXmlParseError(context_id, "empty XML document")

        try:
            root = etree.fromstring(xml.encode("utf-8") if isinstance(xml, str) else xml, parser=self._parser)
        except etree.XMLSyntaxError as e:
            raise SraXmlParseError(context_id, f"invalid XML: {e}") from e

        element = self._find_object_element(root, context_id)
        data = self._extract_fields(element)
        if not data.get("accession"):
            data["accession"] = context_id

        try:
            record = self.record_model(**data)
        except ValidationError as e:
            raise SraXmlParseError(context_id, f"validation failed: {e}") from e

        logger.debug(f"Parsed {self.object_tag} {record.accession}")
        return record

    def _find_object_element(self, root: etree._Element, context_id: str) -> etree._Element:
        if root.tag == self.object_tag:
            return root
        if root.tag != f"{self.object_tag}_SET":
            raise SraXmlParseError(
                context_id, f"unexpected root element <{root.tag}>, expected <{self.object_tag}>"
            )

        candidates = root.findall(self.object_tag)
        if not candidates:
            raise SraXmlParseError(context_id, f"<{root.tag}> holds no <{self.object_tag}> element")
        for candidate in candidates:
            if self._accession_of(candidate) == context_id:
                return candidate
        return candidates[0]

    def _extract_fields(self, element: etree._Element) -> Dict[str, Any]:
        raise NotImplementedError("Subclasses must implement this method.")

    # ------------------- Helper Functions -------------------
    @staticmethod
    def _text(element: etree._Element, path: str) -> Optional[str]:
        node = element.find(path)
        if node is None or node.text is None:
            return None
        return node.text.strip() or None

    @classmethod
    def _accession_of(cls, element: etree._Element) -> Optional[str]:
        return element.get("accession") or cls._text(element, "IDENTIFIERS/PRIMARY_ID")

    @classmethod
    def _common_fields(cls, element: etree._Element) -> Dict[str, Any]:
        return {
            "accession": cls._accession_of(element),
            "alias": element.get("alias"),
            "center_name": element.get("center_name"),
        }


class StudyXmlParser(SraXmlParser[StudyRecord]):
    object_tag = "STUDY"
    record_model = StudyRecord

    def _extract_fields(self, element: etree._Element) -> Dict[str, Any]:
        data = self._common_fields(element)
        study_type = element.find("DESCRIPTOR/STUDY_TYPE")
        data.update({
            "title": self._text(element, "DESCRIPTOR/STUDY_TITLE"),
            "description": (self._text(element, "DESCRIPTOR/STUDY_DESCRIPTION")
                            or self._text(element, "DESCRIPTOR/STUDY_ABSTRACT")),
            "study_type": study_type.get("existing_study_type") if study_type is not None else None,
        })
        return data


class AnalysisXmlParser(SraXmlParser[AnalysisRecord]):
    object_tag = "ANALYSIS"
    record_model = AnalysisRecord

    def _extract_fields(self, element: etree._Element) -> Dict[str, Any]:
        data = self._common_fields(element)

        study_ref = element.find("STUDY_REF")
        study_accession = None
        if study_ref is not None:
            study_accession = self._accession_of(study_ref)

        # The analysis type is the tag of the single child of ANALYSIS_TYPE
        analysis_type = None
        type_element = element.find("ANALYSIS_TYPE")
        if type_element is not None and len(type_element):
            analysis_type = type_element[0].tag

        data.update({
            "title": self._text(element, "TITLE"),
            "description": self._text(element, "DESCRIPTION"),
            "study_accession": study_accession,
            "analysis_type": analysis_type,
            "sample_accessions": [
                accession for accession in
                (self._accession_of(ref) for ref in element.findall("SAMPLE_REF"))
                if accession
            ],
        })
        return data


class SampleXmlParser(SraXmlParser[SampleRecord]):
    object_tag = "SAMPLE"
    record_model = SampleRecord

    def _extract_fields(self, element: etree._Element) -> Dict[str, Any]:
        data = self._common_fields(element)

        bio_sample_accession = None
        for external_id in element.findall("IDENTIFIERS/EXTERNAL_ID"):
            if (external_id.get("namespace") or "").lower() == "biosample" and external_id.text:
                bio_sample_accession = external_id.text.strip()
                break

        attributes = {}
        for attribute in element.findall("SAMPLE_ATTRIBUTES/SAMPLE_ATTRIBUTE"):
            tag = self._text(attribute, "TAG")
            if tag:
                attributes[tag] = self._text(attribute, "VALUE")

        data.update({
            "title": self._text(element, "TITLE"),
            "description": self._text(element, "DESCRIPTION"),
            "taxon_id": self._text(element, "SAMPLE_NAME/TAXON_ID"),
            "scientific_name": self._text(element, "SAMPLE_NAME/SCIENTIFIC_NAME"),
            "common_name": self._text(element, "SAMPLE_NAME/COMMON_NAME"),
            "bio_sample_accession": bio_sample_accession,
            "attributes": attributes,
        })
        return data
