from datetime import datetime
from typing import Any

from psycopg.rows import dict_row

from dealwire.database.connection import get_connection


class MetricsRepository:
    """Aggregate read queries over documents and enrichments. Never writes."""

    def document_totals(self, scope: str) -> dict[str, int]:
        """Total documents and how many have at least one DONE enrichment."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT
                        COUNT(*)::int AS total,
                        COUNT(*) FILTER (WHERE EXISTS (
                            SELECT 1
                            FROM enrichments e
                            WHERE e.document_id = d.id
                              AND e.status = 'DONE'
                        ))::int AS enriched
                    FROM documents d
                    WHERE d.scope = %s
                    """,
                    (scope,),
                )
                row = cur.fetchone()
        return {"total": row["total"] if row else 0, "enriched": row["enriched"] if row else 0}

    def freshness(self, scope: str, window_hours: int = 24) -> dict[str, int]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT
                        (SELECT COUNT(*)::int
                         FROM documents
                         WHERE scope = %(scope)s
                           AND created_at >= NOW() - %(hours)s * INTERVAL '1 hour'
                        ) AS documents,
                        (SELECT COUNT(*)::int
                         FROM enrichments
                         WHERE scope = %(scope)s
                           AND created_at >= NOW() - %(hours)s * INTERVAL '1 hour'
                        ) AS enrichments
                    """,
                    {"scope": scope, "hours": window_hours},
                )
                row = cur.fetchone()
        if row is None:
            return {"documents": 0, "enrichments": 0}
        return {"documents": row["documents"], "enrichments": row["enrichments"]}

    def status_counts(self, scope: str | None = None) -> dict[str, int]:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT status, COUNT(*)::int
                    FROM documents
                    WHERE %(scope)s::text IS NULL OR scope = %(scope)s
                    GROUP BY status
                    """,
                    {"scope": scope},
                )
                rows = cur.fetchall()
        return {status: count for status, count in rows}

    def completion_latency(self, scope: str | None = None) -> dict[str, float | None]:
        """p50/p90 seconds between creation and completion of COMPLETED documents."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT
                        percentile_cont(0.5) WITHIN GROUP (
                            ORDER BY EXTRACT(EPOCH FROM (completed_at - created_at))
                        ) AS p50,
                        percentile_cont(0.9) WITHIN GROUP (
                            ORDER BY EXTRACT(EPOCH FROM (completed_at - created_at))
                        ) AS p90
                    FROM documents
                    WHERE status = 'COMPLETED'
                      AND completed_at IS NOT NULL
                      AND (%(scope)s::text IS NULL OR scope = %(scope)s)
                    """,
                    {"scope": scope},
                )
                row = cur.fetchone()
        return {
            "p50": _as_float(row["p50"]) if row else None,
            "p90": _as_float(row["p90"]) if row else None,
        }

    def ping(self) -> bool:
        with get_connection() as conn:
            conn.execute("SELECT 1")
        return True

    def last_completed_at(self) -> datetime | None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT MAX(completed_at) FROM documents WHERE status = 'COMPLETED'"
                )
                row = cur.fetchone()
        return row[0] if row else None

    def failed_since(self, window_hours: int = 24) -> int:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT COUNT(*)::int
                    FROM documents
                    WHERE status = 'FAILED'
                      AND updated_at >= NOW() - %s * INTERVAL '1 hour'
                    """,
                    (window_hours,),
                )
                row = cur.fetchone()
        return row[0] if row else 0


def _as_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)
