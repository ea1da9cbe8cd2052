"""Error taxonomy for calculations and their persistence."""


class EstateCalcError(Exception):
    """Base class for all estate-calc errors."""


class ValidationError(EstateCalcError):
    """An input precondition failed. Recoverable by correcting the input."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
        self.message = message


class ComputationError(EstateCalcError):
    """A computed value came out non-finite."""

    def __init__(self, field: str, value: object):
        super().__init__(f"Computed {field} is not a finite number: {value}")
        self.field = field
        self.value = value


class EnrichmentFailure(EstateCalcError):
    """Property lookup for display fields failed or timed out.

    Never surfaced to callers; the calculation is returned without enrichment.
    """


class PersistenceFailure(EstateCalcError):
    """The document store rejected a request."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class DocumentNotFound(PersistenceFailure):
    def __init__(self, collection: str, document_id: str):
        super().__init__(f"Document {document_id} not found in {collection}")
        self.collection = collection
        self.document_id = document_id
