from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from dealwire.database.connection import get_connection
from dealwire.database.models import (
    EnrichmentStatus,
    ExtractionFailureRecord,
    FailureType,
)
from dealwire.pipeline.exceptions import ClaimNotHeldError
from dealwire.pipeline.models import Claim


def _to_failure(row: dict[str, Any]) -> ExtractionFailureRecord:
    return ExtractionFailureRecord(
        id=str(row["id"]),
        document_id=str(row["document_id"]),
        scope=row["scope"],
        error_type=FailureType(row["error_type"]),
        error_message=row["error_message"],
        raw_output=row["raw_output"],
        created_at=row["created_at"],
    )


class EnrichmentRepository:
    """Database operations that finish an attempt: enrichments and extraction_failures.

    Both write paths re-check the claim token inside the same transaction as the
    status transition, so a stale or foreign attempt can never persist a result.
    """

    def complete_attempt(
        self,
        claim: Claim,
        output_payload: dict[str, Any],
        created_by: str | None = None,
    ) -> str:
        """Append a DONE enrichment and move the document to COMPLETED.

        Raises:
            ClaimNotHeldError: if the document is no longer PROCESSING under this claim.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE documents
                    SET status = 'COMPLETED',
                        claim_token = NULL,
                        completed_at = NOW(),
                        updated_at = NOW()
                    WHERE id = %s::uuid
                      AND status = 'PROCESSING'
                      AND claim_token = %s::uuid
                    RETURNING scope
                    """,
                    (claim.document_id, claim.token),
                )
                row = cur.fetchone()
                if row is None:
                    conn.rollback()
                    raise ClaimNotHeldError(
                        f"Document {claim.document_id} is not held by claim {claim.token}"
                    )
                cur.execute(
                    """
                    INSERT INTO enrichments (document_id, scope, output_payload, status, created_by)
                    VALUES (%s::uuid, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    (
                        claim.document_id,
                        row[0],
                        Jsonb(output_payload),
                        EnrichmentStatus.DONE.value,
                        created_by,
                    ),
                )
                inserted = cur.fetchone()
            conn.commit()

        if inserted is None:
            raise RuntimeError("INSERT into enrichments returned no id")
        return str(inserted[0])

    def fail_attempt(
        self,
        claim: Claim,
        failure_type: FailureType,
        error_message: str,
        raw_output: str | None = None,
    ) -> None:
        """Move the document to FAILED and append a diagnostics row.

        Raises:
            ClaimNotHeldError: if the document is no longer PROCESSING under this claim.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE documents
                    SET status = 'FAILED',
                        claim_token = NULL,
                        failure_reason = %s,
                        updated_at = NOW()
                    WHERE id = %s::uuid
                      AND status = 'PROCESSING'
                      AND claim_token = %s::uuid
                    RETURNING scope
                    """,
                    (error_message, claim.document_id, claim.token),
                )
                row = cur.fetchone()
                if row is None:
                    conn.rollback()
                    raise ClaimNotHeldError(
                        f"Document {claim.document_id} is not held by claim {claim.token}"
                    )
                cur.execute(
                    """
                    INSERT INTO extraction_failures
                        (document_id, scope, error_type, error_message, raw_output)
                    VALUES (%s::uuid, %s, %s, %s, %s)
                    """,
                    (
                        claim.document_id,
                        row[0],
                        failure_type.value,
                        error_message,
                        raw_output,
                    ),
                )
            conn.commit()

    def list_failures(self, document_id: str) -> list[ExtractionFailureRecord]:
        """Diagnostics of every failed attempt of a document, newest first."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id, document_id, scope, error_type, error_message, raw_output, created_at
                    FROM extraction_failures
                    WHERE document_id = %s::uuid
                    ORDER BY created_at DESC
                    """,
                    (document_id,),
                )
                rows = cur.fetchall()
        return [_to_failure(row) for row in rows]
