# File: pipeline/sra_pipeline/taxonomy_importer.py
import logging
import os
from typing import Dict, List, Optional, Union
import requests
from lxml import etree
from db.repositories import TaxonomyRepository
from db.schema.sra_metadata_schema import Taxonomy
from utils.exceptions import TaxonomyLookupError

logger = logging.getLogger(__name__)

EFETCH_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils/efetch.fcgi"

# {"taxonomy_id": 9606, "name": "Homo sapiens", "rank": "species"}
LineageNode = Dict[str, Union[int, str, None]]


class EntrezTaxonomyClient:
    """
    Fetches taxonomy lineages from NCBI E-utilities.

    Attributes:
        base_url (str): The efetch endpoint.
        api_key (Optional[str]): NCBI API key; raises the request rate limit when set.
        email (Optional[str]): Contact address sent with every request.
        timeout (int): Request timeout in seconds.
    """

    def __init__(self, base_url: str = EFETCH_URL, api_key: Optional[str] = None,
                 email: Optional[str] = None, timeout: int = 30) -> None:
        self.base_url = base_url
        self.api_key = api_key or os.getenv("NCBI_API_KEY") or None
        self.email = email or os.getenv("NCBI_EMAIL") or None
        self.timeout = timeout
        self.session = requests.Session()

    def fetch_lineage(self, taxonomy_id: int) -> List[LineageNode]:
        """
        Retrieves the full lineage of a taxon.

        Args:
            taxonomy_id (int): NCBI taxonomy id.

        Returns:
            List[LineageNode]: Lineage nodes ordered from the root to the taxon itself.

        Raises:
            TaxonomyLookupError: If the request fails or the response holds no such taxon.
        """
        params = {"db": "taxonomy", "id": str(taxonomy_id), "retmode": "xml"}
        if self.api_key:
            params["api_key"] = self.api_key
        if self.email:
            params["email"] = self.email

        try:
            response = self.session.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Entrez taxonomy request failed for {taxonomy_id}: {e}")
            raise TaxonomyLookupError(taxonomy_id, str(e)) from e

        return self.parse_lineage(response.content, taxonomy_id)

    @staticmethod
    def parse_lineage(content: bytes, taxonomy_id: int) -> List[LineageNode]:
        """
        Parses an efetch taxonomy document into root-first lineage nodes.
        """
        try:
            root = etree.fromstring(content, parser=etree.XMLParser(resolve_entities=False, no_network=True))
        except etree.XMLSyntaxError as e:
            raise TaxonomyLookupError(taxonomy_id, f"invalid taxonomy XML: {e}") from e

        taxon = root.find("Taxon")
        if taxon is None or taxon.findtext("TaxId") is None:
            raise TaxonomyLookupError(taxonomy_id, "taxon not found")

        def to_node(element: etree._Element) -> LineageNode:
            return {
                "taxonomy_id": int(element.findtext("TaxId").strip()),
                "name": (element.findtext("ScientificName") or "").strip(),
                "rank": (element.findtext("Rank") or "").strip() or None,
            }

        lineage = [to_node(ancestor) for ancestor in taxon.findall("LineageEx/Taxon")]
        lineage.append(to_node(taxon))
        return lineage


class TaxonomyImporter:
    """
    Imports a taxon and all of its ancestors, reusing stored nodes.
    """

    def __init__(self, repository: TaxonomyRepository, client: EntrezTaxonomyClient) -> None:
        self.repository = repository
        self.client = client

    def import_taxonomy_tree(self, taxonomy_id: int) -> Taxonomy:
        """
        Returns the stored taxonomy for `taxonomy_id`, importing its lineage when absent.

        Args:
            taxonomy_id (int): NCBI taxonomy id.

        Returns:
            Taxonomy: The persisted leaf node, linked to its ancestors through `parent`.

        Raises:
            TaxonomyLookupError: If the lineage cannot be retrieved.
        """
        existing = self.repository.find_by_taxonomy_id(taxonomy_id)
        if existing is not None:
            return existing

        lineage = self.client.fetch_lineage(taxonomy_id)
        parent = None
        for node in lineage:
            taxonomy = self.repository.find_by_taxonomy_id(node["taxonomy_id"])
            if taxonomy is None:
                taxonomy = self.repository.find_or_save(
                    Taxonomy(taxonomy_id=node["taxonomy_id"], name=node["name"], rank=node["rank"], parent=parent)
                )
            parent = taxonomy

        logger.info(f"Imported taxonomy tree for {taxonomy_id} ({len(lineage)} nodes)")
        return parent
