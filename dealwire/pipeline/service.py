from dealwire.config.settings import Settings
from dealwire.database.models import DocumentListItem, ExtractionFailureRecord
from dealwire.database.repositories.document_repository import DocumentRepository
from dealwire.database.repositories.enrichment_repository import EnrichmentRepository
from dealwire.extraction.base import BaseExtractor
from dealwire.extraction.factory import ExtractorFactory
from dealwire.pipeline.claim import ClaimController
from dealwire.pipeline.exceptions import AlreadyProcessingError, DocumentNotFoundError
from dealwire.pipeline.ingestion import IngestionGateway
from dealwire.pipeline.invoker import ExtractionInvoker
from dealwire.pipeline.models import IngestResult, RetryResult
from dealwire.pipeline.retry import RetryController


class EnrichmentPipeline:
    """Entry point used by the API for every pipeline operation."""

    def __init__(
        self,
        *,
        gateway: IngestionGateway,
        claims: ClaimController,
        invoker: ExtractionInvoker,
        retries: RetryController,
        doc_repo: DocumentRepository,
        enrichment_repo: EnrichmentRepository,
    ) -> None:
        self.gateway = gateway
        self.claims = claims
        self.invoker = invoker
        self.retries = retries
        self._doc_repo = doc_repo
        self._enrichment_repo = enrichment_repo

    def ingest(
        self,
        scope: str | None,
        headline: str | None,
        source_name: str | None,
        publish_date: str | None,
        canonical_url: str | None,
        raw_text: str | None = None,
        created_by: str | None = None,
    ) -> IngestResult:
        return self.gateway.ingest(
            scope,
            headline,
            source_name,
            publish_date,
            canonical_url,
            raw_text=raw_text,
            created_by=created_by,
        )

    def process(
        self, document_id: str, scope: str, created_by: str | None = None
    ) -> str:
        """Claim a document and run one extraction attempt on it.

        Raises:
            DocumentNotFoundError: if the document does not exist in ``scope``.
            AlreadyProcessingError: if the document is not NEW or FAILED.
            ExtractionError, SchemaError: if the attempt failed.
        """
        self._require_in_scope(document_id, scope)
        result = self.claims.claim(document_id)
        if not result.claimed or result.claim is None:
            document = self._doc_repo.find_by_id(document_id)
            if document is None:
                raise DocumentNotFoundError(f"Document {document_id} not found")
            raise AlreadyProcessingError(document_id, document.status.value)
        return self.invoker.process(result.claim, created_by=created_by)

    def retry(
        self, document_id: str, scope: str, created_by: str | None = None
    ) -> RetryResult:
        return self.retries.retry(document_id, scope, created_by=created_by)

    def list_documents(self, scope: str, limit: int = 50) -> list[DocumentListItem]:
        return self._doc_repo.list_for_scope(scope, limit=limit)

    def list_failures(self, document_id: str, scope: str) -> list[ExtractionFailureRecord]:
        self._require_in_scope(document_id, scope)
        return self._enrichment_repo.list_failures(document_id)

    def _require_in_scope(self, document_id: str, scope: str) -> None:
        document = self._doc_repo.find_by_id(document_id)
        if document is None or document.scope != scope:
            raise DocumentNotFoundError(f"Document {document_id} not found")


def build_pipeline(
    settings: Settings,
    extractor: BaseExtractor | None = None,
) -> EnrichmentPipeline:
    """Build an EnrichmentPipeline wired to the database and configured extractor."""
    doc_repo = DocumentRepository()
    enrichment_repo = EnrichmentRepository()
    claims = ClaimController(doc_repo)
    invoker = ExtractionInvoker(
        doc_repo,
        enrichment_repo,
        extractor if extractor is not None else ExtractorFactory.create(settings),
    )
    return EnrichmentPipeline(
        gateway=IngestionGateway(doc_repo),
        claims=claims,
        invoker=invoker,
        retries=RetryController(doc_repo, claims, invoker),
        doc_repo=doc_repo,
        enrichment_repo=enrichment_repo,
    )
