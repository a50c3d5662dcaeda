from datetime import datetime, timezone
from typing import Protocol

from dealwire.database.models import DocumentStatus
from dealwire.database.repositories.entity_link_repository import EntityLinkRepository
from dealwire.database.repositories.metrics_repository import MetricsRepository
from dealwire.logging.logger import Log
from dealwire.metrics.models import (
    Backlog,
    BacklogMetrics,
    Freshness,
    HealthMetrics,
    HealthRates,
    HealthTotals,
    Latency,
    SystemHealth,
)

FRESHNESS_WINDOW_HOURS = 24


class SchedulerState(Protocol):
    @property
    def is_running(self) -> bool: ...


def ratio(numerator: int, denominator: int) -> float:
    """Safe division: 0.0 when the denominator is 0."""
    if denominator <= 0:
        return 0.0
    return numerator / denominator


class MetricsAggregator:
    """Read-only pipeline statistics, recomputed from the store on every call."""

    def __init__(
        self,
        metrics_repo: MetricsRepository,
        link_repo: EntityLinkRepository,
        scheduler: SchedulerState | None = None,
    ) -> None:
        self._metrics_repo = metrics_repo
        self._link_repo = link_repo
        self._scheduler = scheduler

    def get_health_metrics(self, scope: str) -> HealthMetrics:
        totals_row = self._metrics_repo.document_totals(scope)
        total = totals_row["total"]
        enriched = totals_row["enriched"]
        linked, review_required = self._link_repo.count_linked_documents(scope)
        fresh = self._metrics_repo.freshness(scope, window_hours=FRESHNESS_WINDOW_HOURS)

        return HealthMetrics(
            scope=scope,
            totals=HealthTotals(
                total_documents=total,
                enriched=enriched,
                pending=max(total - enriched, 0),
                linked=linked,
                review_required=review_required,
            ),
            rates=HealthRates(
                coverage=ratio(enriched, total),
                link_rate=ratio(linked, enriched),
            ),
            freshness=Freshness(
                documents_last_24h=fresh["documents"],
                enrichments_last_24h=fresh["enrichments"],
            ),
        )

    def get_backlog_metrics(self, scope: str | None = None) -> BacklogMetrics:
        counts = self._metrics_repo.status_counts(scope)
        latency = self._metrics_repo.completion_latency(scope)
        return BacklogMetrics(
            backlog=Backlog(
                new=counts.get(DocumentStatus.NEW.value, 0),
                processing=counts.get(DocumentStatus.PROCESSING.value, 0),
                failed=counts.get(DocumentStatus.FAILED.value, 0),
                completed=counts.get(DocumentStatus.COMPLETED.value, 0),
            ),
            latency=Latency(p50_seconds=latency["p50"], p90_seconds=latency["p90"]),
            generated_at=datetime.now(timezone.utc),
        )

    def get_system_health(self) -> SystemHealth:
        scheduler = self._scheduler_state()
        try:
            self._metrics_repo.ping()
            last_completed_at = self._metrics_repo.last_completed_at()
            failed = self._metrics_repo.failed_since(FRESHNESS_WINDOW_HOURS)
        except Exception as exc:
            Log.error(f"System health check failed: {exc}")
            return SystemHealth(
                db="error",
                scheduler=scheduler,
                last_completed_at=None,
                failed_last_24h=0,
                error=str(exc),
            )
        return SystemHealth(
            db="ok",
            scheduler=scheduler,
            last_completed_at=last_completed_at,
            failed_last_24h=failed,
        )

    def _scheduler_state(self) -> str:
        if self._scheduler is None:
            return "disabled"
        return "running" if self._scheduler.is_running else "stopped"
