from dealwire.database.connection import get_connection


class EntityLinkRepository:
    """Read-only access to the entity_links table owned by the linking service."""

    def count_linked_documents(self, scope: str) -> tuple[int, int]:
        """Return (linked, review_required) counts of distinct enriched documents in a scope.

        Links of documents without a DONE enrichment are not counted.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    SELECT
                        COUNT(DISTINCT l.document_id) FILTER (WHERE l.status = 'LINKED')::int,
                        COUNT(DISTINCT l.document_id) FILTER (WHERE l.status = 'REVIEW')::int
                    FROM entity_links l
                    WHERE l.scope = %s
                      AND EXISTS (
                          SELECT 1
                          FROM enrichments e
                          WHERE e.document_id = l.document_id
                            AND e.status = 'DONE'
                      )
                    """,
                    (scope,),
                )
                row = cur.fetchone()

        if row is None:
            return 0, 0
        return row[0] or 0, row[1] or 0
