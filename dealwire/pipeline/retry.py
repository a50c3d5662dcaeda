from dealwire.database.models import DocumentStatus
from dealwire.database.repositories.document_repository import DocumentRepository
from dealwire.extraction.exceptions import EnrichmentError
from dealwire.logging.logger import Log
from dealwire.pipeline.claim import ClaimController
from dealwire.pipeline.exceptions import DocumentNotFoundError
from dealwire.pipeline.invoker import ExtractionInvoker
from dealwire.pipeline.models import RetryResult


class RetryController:
    """Manually re-runs a FAILED document through claim and extraction."""

    def __init__(
        self,
        doc_repo: DocumentRepository,
        claims: ClaimController,
        invoker: ExtractionInvoker,
    ) -> None:
        self._doc_repo = doc_repo
        self._claims = claims
        self._invoker = invoker

    def retry(
        self, document_id: str, scope: str, created_by: str | None = None
    ) -> RetryResult:
        """Re-claim and re-process a FAILED document.

        Returns requeued=False when the document is not FAILED or another caller
        won the claim. A failure of the new attempt is reported in ``error``;
        the document is FAILED again in that case.

        Raises:
            DocumentNotFoundError: if the document does not exist in ``scope``.
        """
        document = self._doc_repo.find_by_id(document_id)
        if document is None or document.scope != scope:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        if document.status != DocumentStatus.FAILED:
            Log.info(f"Retry skipped for document {document_id}: status {document.status.value}")
            return RetryResult(requeued=False)

        result = self._claims.claim(document_id)
        if not result.claimed or result.claim is None:
            Log.info(f"Retry skipped for document {document_id}: claimed by another attempt")
            return RetryResult(requeued=False)

        Log.info(f"Retrying document {document_id}")
        try:
            enrichment_id = self._invoker.process(result.claim, created_by=created_by)
        except EnrichmentError as exc:
            return RetryResult(requeued=True, error=str(exc))
        return RetryResult(requeued=True, enrichment_id=enrichment_id)
