class PipelineError(Exception):
    """Base exception for all pipeline-related errors."""


class ValidationError(PipelineError):
    """Raised when an ingestion request is missing a required field."""

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"'{field}' is required and must not be empty")


class DocumentNotFoundError(PipelineError):
    """Raised when a document cannot be found in the database."""


class AlreadyProcessingError(PipelineError):
    """Raised when a claim is attempted on a document that is not claimable."""

    def __init__(self, document_id: str, status: str) -> None:
        self.document_id = document_id
        self.status = status
        super().__init__(f"Document {document_id} is not claimable (status {status})")


class ClaimNotHeldError(PipelineError):
    """Raised when an attempt tries to act on a document it has not claimed."""
