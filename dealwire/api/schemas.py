from datetime import datetime

from pydantic import BaseModel


class IngestRequest(BaseModel):
    """Ingest request. Required fields are checked by the ingestion gateway."""

    scope: str | None = None
    headline: str | None = None
    source_name: str | None = None
    publish_date: str | None = None
    canonical_url: str | None = None
    raw_text: str | None = None


class IngestResponse(BaseModel):
    document_id: str
    deduplicated: bool


class ProcessResponse(BaseModel):
    enrichment_id: str


class RetryResponse(BaseModel):
    requeued: bool
    enrichment_id: str | None = None
    error: str | None = None


class EnrichmentSummaryDTO(BaseModel):
    enrichment_id: str
    deal_detected: bool | None
    deal_type: str | None
    confidence_score: int | None
    created_at: datetime | None = None


class DocumentDTO(BaseModel):
    id: str
    headline: str
    source_name: str
    publish_date: str
    canonical_url: str
    status: str
    created_at: datetime | None = None
    enrichment: EnrichmentSummaryDTO | None = None


class FailureDTO(BaseModel):
    id: str
    error_type: str
    error_message: str
    raw_output: str | None = None
    created_at: datetime | None = None


class ErrorResponse(BaseModel):
    error: str
    detail: str | None = None
    field: str | None = None
