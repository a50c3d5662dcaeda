"""FastAPI surface of the ingestion & enrichment pipeline."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, Header, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dealwire.api.schemas import (
    DocumentDTO,
    EnrichmentSummaryDTO,
    ErrorResponse,
    FailureDTO,
    IngestRequest,
    IngestResponse,
    ProcessResponse,
    RetryResponse,
)
from dealwire.database.models import DocumentListItem
from dealwire.extraction.exceptions import ExtractionError, SchemaError
from dealwire.logging.logger import Log
from dealwire.metrics.aggregator import MetricsAggregator
from dealwire.metrics.models import BacklogMetrics, HealthMetrics, SystemHealth
from dealwire.pipeline.exceptions import (
    AlreadyProcessingError,
    ClaimNotHeldError,
    DocumentNotFoundError,
    ValidationError,
)
from dealwire.pipeline.service import EnrichmentPipeline
from dealwire.worker.scheduler import Scheduler


def _error(status_code: int, error: str, detail: str | None = None, field: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, detail=detail, field=field).model_dump(),
    )


def _to_document_dto(item: DocumentListItem) -> DocumentDTO:
    enrichment = None
    if item.enrichment is not None:
        enrichment = EnrichmentSummaryDTO(
            enrichment_id=item.enrichment.enrichment_id,
            deal_detected=item.enrichment.deal_detected,
            deal_type=item.enrichment.deal_type,
            confidence_score=item.enrichment.confidence_score,
            created_at=item.enrichment.created_at,
        )
    return DocumentDTO(
        id=item.id,
        headline=item.headline,
        source_name=item.source_name,
        publish_date=item.publish_date,
        canonical_url=item.canonical_url,
        status=item.status.value,
        created_at=item.created_at,
        enrichment=enrichment,
    )


def create_app(
    pipeline: EnrichmentPipeline,
    aggregator: MetricsAggregator,
    scheduler: Scheduler | None = None,
) -> FastAPI:
    """Build the application. The scheduler, if given, lives as long as the app."""

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        if scheduler is not None:
            scheduler.start()
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.stop(timeout=5)

    app = FastAPI(title="Dealwire", version="0.1.0", lifespan=lifespan)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, "validation_error", str(exc), exc.field)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, "validation_error", str(exc.errors()))

    @app.exception_handler(DocumentNotFoundError)
    async def not_found_handler(_request: Request, exc: DocumentNotFoundError) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "not_found", str(exc))

    @app.exception_handler(AlreadyProcessingError)
    async def already_processing_handler(
        _request: Request, exc: AlreadyProcessingError
    ) -> JSONResponse:
        return _error(status.HTTP_409_CONFLICT, "already_processing", str(exc))

    @app.exception_handler(ClaimNotHeldError)
    async def claim_lost_handler(_request: Request, exc: ClaimNotHeldError) -> JSONResponse:
        Log.error(f"Claim lost: {exc}")
        return _error(status.HTTP_409_CONFLICT, "claim_lost", str(exc))

    @app.exception_handler(ExtractionError)
    async def extraction_error_handler(_request: Request, exc: ExtractionError) -> JSONResponse:
        return _error(status.HTTP_502_BAD_GATEWAY, "extraction_error", str(exc))

    @app.exception_handler(SchemaError)
    async def schema_error_handler(_request: Request, exc: SchemaError) -> JSONResponse:
        return _error(422, "schema_error", str(exc))

    @app.post("/documents/ingest", response_model=IngestResponse)
    def ingest(
        request: IngestRequest,
        x_user_id: str | None = Header(default=None),
    ) -> IngestResponse:
        result = pipeline.ingest(
            request.scope,
            request.headline,
            request.source_name,
            request.publish_date,
            request.canonical_url,
            raw_text=request.raw_text,
            created_by=x_user_id,
        )
        return IngestResponse(document_id=result.document_id, deduplicated=result.deduplicated)

    @app.post("/documents/{document_id}/process", response_model=ProcessResponse)
    def process(
        document_id: UUID,
        scope: str = Query(min_length=1),
        x_user_id: str | None = Header(default=None),
    ) -> ProcessResponse:
        enrichment_id = pipeline.process(str(document_id), scope, created_by=x_user_id)
        return ProcessResponse(enrichment_id=enrichment_id)

    @app.post("/documents/{document_id}/retry", response_model=RetryResponse)
    def retry(
        document_id: UUID,
        scope: str = Query(min_length=1),
        x_user_id: str | None = Header(default=None),
    ) -> RetryResponse:
        result = pipeline.retry(str(document_id), scope, created_by=x_user_id)
        return RetryResponse(
            requeued=result.requeued,
            enrichment_id=result.enrichment_id,
            error=result.error,
        )

    @app.get("/documents", response_model=list[DocumentDTO])
    def list_documents(
        scope: str = Query(min_length=1),
        limit: int = Query(default=50, ge=1, le=500),
    ) -> list[DocumentDTO]:
        return [_to_document_dto(item) for item in pipeline.list_documents(scope, limit=limit)]

    @app.get("/documents/{document_id}/failures", response_model=list[FailureDTO])
    def list_failures(
        document_id: UUID,
        scope: str = Query(min_length=1),
    ) -> list[FailureDTO]:
        return [
            FailureDTO(
                id=failure.id,
                error_type=failure.error_type.value,
                error_message=failure.error_message,
                raw_output=failure.raw_output,
                created_at=failure.created_at,
            )
            for failure in pipeline.list_failures(str(document_id), scope)
        ]

    @app.get("/metrics/health", response_model=HealthMetrics)
    def health_metrics(scope: str = Query(min_length=1)) -> HealthMetrics:
        return aggregator.get_health_metrics(scope)

    @app.get("/metrics/backlog", response_model=BacklogMetrics)
    def backlog_metrics(scope: str | None = None) -> BacklogMetrics:
        return aggregator.get_backlog_metrics(scope)

    @app.get("/system/health", response_model=SystemHealth)
    def system_health() -> SystemHealth:
        health = aggregator.get_system_health()
        if health.db != "ok":
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={
                    "db": health.db,
                    "scheduler": health.scheduler,
                    "last_completed_at": None,
                    "failed_last_24h": health.failed_last_24h,
                    "error": health.error,
                },
            )
        return health

    return app
