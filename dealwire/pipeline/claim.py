import uuid

from dealwire.database.repositories.document_repository import DocumentRepository
from dealwire.logging.logger import Log
from dealwire.pipeline.models import Claim, ClaimResult

STALE_REASON = "Processing attempt exceeded the staleness threshold"


class ClaimController:
    """Grants exclusive processing rights on a document.

    Eligible states are NEW and FAILED. The transition is one conditional UPDATE,
    so of any number of concurrent callers at most one is granted the claim.
    """

    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def claim(self, document_id: str) -> ClaimResult:
        token = str(uuid.uuid4())
        if not self._doc_repo.claim(document_id, token):
            Log.debug("Document not claimable", document_id=document_id)
            return ClaimResult(claimed=False)
        Log.info("Document claimed", document_id=document_id, token=token)
        return ClaimResult(claimed=True, claim=Claim(document_id=document_id, token=token))

    def sweep_stale(self, older_than_seconds: int) -> list[str]:
        """Fail documents stuck in PROCESSING so they can be claimed again."""
        swept = self._doc_repo.sweep_stale(older_than_seconds, STALE_REASON)
        for document_id in swept:
            Log.warning(
                f"Document {document_id} stuck in PROCESSING for over "
                f"{older_than_seconds}s, moved to FAILED"
            )
        return swept
