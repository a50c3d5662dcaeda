from dealwire.extraction.exceptions import EnrichmentError
from dealwire.logging.logger import Log
from dealwire.pipeline.claim import ClaimController
from dealwire.pipeline.invoker import ExtractionInvoker


class DocumentRunner:
    """Claim and process one document, logging instead of raising."""

    def __init__(self, claims: ClaimController, invoker: ExtractionInvoker) -> None:
        self._claims = claims
        self._invoker = invoker

    def run(self, document_id: str) -> bool:
        """Return True if this runner claimed the document and ran an attempt."""
        result = self._claims.claim(document_id)
        if not result.claimed or result.claim is None:
            return False
        try:
            self._invoker.process(result.claim)
        except EnrichmentError as exc:
            Log.error(f"Scheduled attempt for document {document_id} failed: {exc}")
        except Exception as exc:
            # The document stays PROCESSING until the stale sweep picks it up.
            Log.exception(f"Unexpected error processing document {document_id}: {exc}")
        return True
