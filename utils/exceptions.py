class SraImportError(Exception):
    """
    Base class for errors raised while importing SRA metadata.
    """
    pass


class RecordNotFoundError(SraImportError):
    """
    Custom exception raised when the source database holds no record for an accession.
    """
    def __init__(self, accession, object_type):
        self.accession = accession
        self.object_type = object_type
        message = f"No {object_type} record found for accession {accession}"
        super().__init__(message)


class SraXmlParseError(SraImportError):
    """
    Custom exception raised when SRA XML is malformed or does not describe the expected object.
    """
    def __init__(self, context_id, reason):
        self.context_id = context_id
        self.reason = reason
        message = f"Failed to parse XML for {context_id}: {reason}"
        super().__init__(message)


class TaxonomyLookupError(SraImportError):
    """
    Custom exception raised when a taxonomy lineage cannot be retrieved.
    """
    def __init__(self, taxonomy_id, reason):
        self.taxonomy_id = taxonomy_id
        message = f"Taxonomy lookup failed for {taxonomy_id}: {reason}"
        super().__init__(message)
