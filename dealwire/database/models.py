from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class DocumentStatus(str, Enum):
    NEW = "NEW"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class EnrichmentStatus(str, Enum):
    DONE = "DONE"
    ERROR = "ERROR"


class FailureType(str, Enum):
    EXTRACTION = "EXTRACTION"
    SCHEMA = "SCHEMA"
    STALE = "STALE"


@dataclass
class DocumentRecord:
    """Represents a row from the documents table."""

    id: str
    scope: str
    headline: str
    source_name: str
    publish_date: str
    canonical_url: str
    status: DocumentStatus
    raw_text: str | None = None
    attempts: int = 0
    claim_token: str | None = None
    processing_started_at: datetime | None = None
    completed_at: datetime | None = None
    failure_reason: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ExtractionFailureRecord:
    """Represents a row from the extraction_failures table."""

    id: str
    document_id: str
    scope: str
    error_type: FailureType
    error_message: str
    raw_output: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class EnrichmentSummary:
    """Short view of the authoritative enrichment for list projections."""

    enrichment_id: str
    deal_detected: bool | None
    deal_type: str | None
    confidence_score: int | None
    created_at: datetime | None = None


@dataclass
class DocumentListItem:
    """A document joined with its latest DONE enrichment, if any."""

    id: str
    headline: str
    source_name: str
    publish_date: str
    canonical_url: str
    status: DocumentStatus
    created_at: datetime | None = None
    enrichment: EnrichmentSummary | None = None
