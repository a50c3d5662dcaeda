from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class HealthTotals:
    total_documents: int
    enriched: int
    pending: int
    linked: int
    review_required: int


@dataclass(frozen=True)
class HealthRates:
    coverage: float
    link_rate: float


@dataclass(frozen=True)
class Freshness:
    documents_last_24h: int
    enrichments_last_24h: int


@dataclass(frozen=True)
class HealthMetrics:
    scope: str
    totals: HealthTotals
    rates: HealthRates
    freshness: Freshness


@dataclass(frozen=True)
class Backlog:
    new: int
    processing: int
    failed: int
    completed: int


@dataclass(frozen=True)
class Latency:
    """Seconds from ingestion to completion; None when nothing has completed."""

    p50_seconds: float | None
    p90_seconds: float | None


@dataclass(frozen=True)
class BacklogMetrics:
    backlog: Backlog
    latency: Latency
    generated_at: datetime


@dataclass(frozen=True)
class SystemHealth:
    db: str
    scheduler: str
    last_completed_at: datetime | None
    failed_last_24h: int
    error: str | None = None
