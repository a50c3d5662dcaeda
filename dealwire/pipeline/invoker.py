from dealwire.database.models import DocumentRecord, DocumentStatus, FailureType
from dealwire.database.repositories.document_repository import DocumentRepository
from dealwire.database.repositories.enrichment_repository import EnrichmentRepository
from dealwire.extraction.base import BaseExtractor
from dealwire.extraction.exceptions import EnrichmentError, ExtractionError, SchemaError
from dealwire.logging.logger import Log
from dealwire.pipeline.exceptions import ClaimNotHeldError, DocumentNotFoundError
from dealwire.pipeline.models import Claim


def build_request_text(document: DocumentRecord) -> str:
    """Canonical extraction request: headline followed by the body text."""
    return f"NEWS HEADLINE:\n{document.headline}\n\nNEWS BODY:\n{document.raw_text or ''}"


class ExtractionInvoker:
    """Runs one claimed enrichment attempt and records its outcome.

    Every attempt ends in exactly one of: a DONE enrichment with the document
    COMPLETED, or the document FAILED with a diagnostics row.
    """

    def __init__(
        self,
        doc_repo: DocumentRepository,
        enrichment_repo: EnrichmentRepository,
        extractor: BaseExtractor,
    ) -> None:
        self._doc_repo = doc_repo
        self._enrichment_repo = enrichment_repo
        self._extractor = extractor

    def process(self, claim: Claim, created_by: str | None = None) -> str:
        """Extract, validate and persist; return the new enrichment id.

        Raises:
            DocumentNotFoundError: if the document does not exist.
            ClaimNotHeldError: if the document is not PROCESSING under this claim.
            ExtractionError: if the provider failed; the document is FAILED.
            SchemaError: if the provider output was invalid; the document is FAILED.
        """
        document = self._doc_repo.find_by_id(claim.document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {claim.document_id} not found")
        if document.status != DocumentStatus.PROCESSING or document.claim_token != claim.token:
            raise ClaimNotHeldError(
                f"Document {claim.document_id} is {document.status.value} "
                f"and not held by claim {claim.token}"
            )

        Log.info(f"Extracting document {document.id} (attempt {document.attempts})")
        try:
            result = self._extractor.extract(build_request_text(document))
        except SchemaError as exc:
            self._fail(claim, FailureType.SCHEMA, f"Schema error: {exc}", exc.raw_output)
            raise
        except EnrichmentError as exc:
            self._fail(claim, FailureType.EXTRACTION, f"Extraction error: {exc}")
            raise
        except Exception as exc:
            wrapped = ExtractionError(f"Extraction capability failed: {exc}")
            self._fail(claim, FailureType.EXTRACTION, f"Extraction error: {wrapped}")
            raise wrapped from exc

        enrichment_id = self._enrichment_repo.complete_attempt(
            claim, result.to_payload(), created_by=created_by
        )
        Log.info(f"Document {document.id} completed with enrichment {enrichment_id}")
        return enrichment_id

    def _fail(
        self,
        claim: Claim,
        failure_type: FailureType,
        message: str,
        raw_output: str | None = None,
    ) -> None:
        Log.error(f"Document {claim.document_id} failed: {message}")
        self._enrichment_repo.fail_attempt(claim, failure_type, message, raw_output=raw_output)
