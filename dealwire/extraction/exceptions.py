class EnrichmentError(Exception):
    """Base exception for a failed enrichment attempt."""


class ExtractionError(EnrichmentError):
    """Raised when the extraction provider is unreachable, errors, or times out."""


class SchemaError(EnrichmentError):
    """Raised when the provider output does not conform to the result schema.

    The raw output is kept on the exception so it can be stored for diagnostics.
    """

    def __init__(self, message: str, raw_output: str | None = None) -> None:
        super().__init__(message)
        self.raw_output = raw_output
