from typing import Any

from psycopg.rows import dict_row

from dealwire.database.connection import get_connection
from dealwire.database.models import (
    DocumentListItem,
    DocumentRecord,
    DocumentStatus,
    EnrichmentSummary,
    FailureType,
)

_DOCUMENT_COLUMNS = """
    id, scope, headline, source_name, publish_date, canonical_url, raw_text,
    status, attempts, claim_token, processing_started_at, completed_at,
    failure_reason, created_by, created_at, updated_at
"""


def _to_document(row: dict[str, Any]) -> DocumentRecord:
    return DocumentRecord(
        id=str(row["id"]),
        scope=row["scope"],
        headline=row["headline"],
        source_name=row["source_name"],
        publish_date=row["publish_date"],
        canonical_url=row["canonical_url"],
        raw_text=row["raw_text"],
        status=DocumentStatus(row["status"]),
        attempts=row["attempts"],
        claim_token=str(row["claim_token"]) if row["claim_token"] is not None else None,
        processing_started_at=row["processing_started_at"],
        completed_at=row["completed_at"],
        failure_reason=row["failure_reason"],
        created_by=row["created_by"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class DocumentRepository:
    """Database operations for the documents table.

    Every status transition is a single conditional UPDATE so that concurrent
    workers and API requests can share the table without in-process locks.
    """

    def find_by_id(self, document_id: str) -> DocumentRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = %s::uuid",
                    (document_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return _to_document(row)

    def find_id_by_url(self, scope: str, canonical_url: str) -> str | None:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT id
                    FROM documents
                    WHERE scope = %s
                      AND canonical_url = %s
                    LIMIT 1
                    """,
                    (scope, canonical_url),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return str(row[0])

    def insert(
        self,
        *,
        scope: str,
        headline: str,
        source_name: str,
        publish_date: str,
        canonical_url: str,
        raw_text: str | None,
        created_by: str | None,
    ) -> str:
        """Insert a NEW document and return its id.

        Raises:
            psycopg.errors.UniqueViolation: if (scope, canonical_url) already exists.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO documents (
                        scope, headline, source_name, publish_date,
                        canonical_url, raw_text, created_by, status
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, 'NEW')
                    RETURNING id
                    """,
                    (
                        scope,
                        headline,
                        source_name,
                        publish_date,
                        canonical_url,
                        raw_text,
                        created_by,
                    ),
                )
                row = cur.fetchone()
            conn.commit()

        if row is None:
            raise RuntimeError("INSERT into documents returned no id")
        return str(row[0])

    def claim(self, document_id: str, token: str) -> bool:
        """Move a NEW or FAILED document to PROCESSING under the given claim token.

        Returns True only if this call performed the transition.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE documents
                    SET status = 'PROCESSING',
                        claim_token = %s::uuid,
                        attempts = attempts + 1,
                        processing_started_at = NOW(),
                        failure_reason = NULL,
                        updated_at = NOW()
                    WHERE id = %s::uuid
                      AND status IN ('NEW', 'FAILED')
                    RETURNING id
                    """,
                    (token, document_id),
                )
                row = cur.fetchone()
            conn.commit()
        return row is not None

    def sweep_stale(self, older_than_seconds: int, reason: str) -> list[str]:
        """Fail PROCESSING documents whose attempt started too long ago.

        Each swept document gets a STALE row in extraction_failures. Returns the
        ids of the swept documents.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    WITH stale AS (
                        UPDATE documents
                        SET status = 'FAILED',
                            claim_token = NULL,
                            failure_reason = %s,
                            updated_at = NOW()
                        WHERE status = 'PROCESSING'
                          AND processing_started_at < NOW() - %s * INTERVAL '1 second'
                        RETURNING id, scope
                    )
                    INSERT INTO extraction_failures (document_id, scope, error_type, error_message)
                    SELECT id, scope, %s, %s FROM stale
                    RETURNING document_id
                    """,
                    (reason, older_than_seconds, FailureType.STALE.value, reason),
                )
                rows = cur.fetchall()
            conn.commit()
        return [str(row[0]) for row in rows]

    def find_claimable_ids(
        self,
        status: DocumentStatus,
        limit: int,
        max_attempts: int | None = None,
    ) -> list[str]:
        """Return ids of documents waiting in the given status, oldest first.

        This is only a hint for schedulers; the claim itself decides ownership.
        """
        order_column = "created_at" if status == DocumentStatus.NEW else "updated_at"
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"""
                    SELECT id
                    FROM documents
                    WHERE status = %s
                      AND (%s::int IS NULL OR attempts < %s::int)
                    ORDER BY {order_column}
                    LIMIT %s
                    """,
                    (status.value, max_attempts, max_attempts, limit),
                )
                rows = cur.fetchall()
        return [str(row[0]) for row in rows]

    def list_for_scope(self, scope: str, limit: int = 50) -> list[DocumentListItem]:
        """Newest documents of a scope with a summary of their latest DONE enrichment."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT
                        d.id, d.headline, d.source_name, d.publish_date,
                        d.canonical_url, d.status, d.created_at,
                        e.id AS enrichment_id,
                        e.output_payload AS enrichment_payload,
                        e.created_at AS enrichment_created_at
                    FROM documents d
                    LEFT JOIN LATERAL (
                        SELECT id, output_payload, created_at
                        FROM enrichments
                        WHERE document_id = d.id
                          AND status = 'DONE'
                        ORDER BY created_at DESC
                        LIMIT 1
                    ) e ON TRUE
                    WHERE d.scope = %s
                    ORDER BY d.created_at DESC
                    LIMIT %s
                    """,
                    (scope, limit),
                )
                rows = cur.fetchall()

        return [self._to_list_item(row) for row in rows]

    @staticmethod
    def _to_list_item(row: dict[str, Any]) -> DocumentListItem:
        summary = None
        if row["enrichment_id"] is not None:
            payload = row["enrichment_payload"] or {}
            summary = EnrichmentSummary(
                enrichment_id=str(row["enrichment_id"]),
                deal_detected=payload.get("deal_detected"),
                deal_type=payload.get("deal_type"),
                confidence_score=payload.get("confidence_score"),
                created_at=row["enrichment_created_at"],
            )
        return DocumentListItem(
            id=str(row["id"]),
            headline=row["headline"],
            source_name=row["source_name"],
            publish_date=row["publish_date"],
            canonical_url=row["canonical_url"],
            status=DocumentStatus(row["status"]),
            created_at=row["created_at"],
            enrichment=summary,
        )
