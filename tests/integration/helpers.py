import json
from typing import Any

import psycopg
from psycopg.rows import dict_row

from dealwire.config.settings import Settings
from dealwire.extraction.client_base import BaseExtractionClient
from dealwire.extraction.extractor import Extractor
from dealwire.pipeline.service import EnrichmentPipeline, build_pipeline

VALID_OUTPUT: dict[str, Any] = {
    "deal_detected": True,
    "deal_type": "investment",
    "entities": {
        "general_partners": ["Northwind Capital"],
        "funds": [],
        "portfolio_companies": ["Acme Robotics"],
        "limited_partners": [],
        "service_providers": [],
    },
    "amount": {"value": 25000000, "currency": "USD"},
    "geography": {"country": "Germany", "city": "Berlin"},
    "announcement_date": "2025-03-14",
    "confidence_score": 85,
    "reasoning": "Investor, company and amount are named in the headline.",
}


class ScriptedClient(BaseExtractionClient):
    """Returns queued raw responses in order; the last one repeats."""

    def __init__(self, *responses: str) -> None:
        self._responses = list(responses) or [json.dumps(VALID_OUTPUT)]
        self.calls = 0

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object],
    ) -> str:
        index = min(self.calls, len(self._responses) - 1)
        self.calls += 1
        return self._responses[index]


def make_pipeline(
    settings: Settings, *responses: str
) -> tuple[EnrichmentPipeline, ScriptedClient]:
    client = ScriptedClient(*responses)
    extractor = Extractor(client=client, model="scripted")
    return build_pipeline(settings, extractor=extractor), client


def ingest_sample(pipeline: EnrichmentPipeline, scope: str, slug: str = "acme") -> str:
    result = pipeline.ingest(
        scope,
        "Northwind leads EUR 25m round in Acme Robotics",
        "Deal Daily",
        "2025-03-14",
        f"https://news.example.com/{slug}",
        raw_text="Berlin-based Acme Robotics raised 25m led by Northwind Capital.",
    )
    return result.document_id


def fetch_document(db_conn: psycopg.Connection[Any], document_id: str) -> tuple[str, int, Any]:
    """Return (status, attempts, claim_token) of a document."""
    with db_conn.cursor() as cur:
        cur.execute(
            "SELECT status, attempts, claim_token FROM documents WHERE id = %s::uuid",
            (document_id,),
        )
        row = cur.fetchone()
    db_conn.commit()
    assert row is not None
    return row[0], row[1], row[2]


def count_rows(db_conn: psycopg.Connection[Any], table: str, document_id: str) -> int:
    with db_conn.cursor() as cur:
        cur.execute(
            f"SELECT COUNT(*) FROM {table} WHERE document_id = %s::uuid",
            (document_id,),
        )
        row = cur.fetchone()
    db_conn.commit()
    assert row is not None
    return int(row[0])


def fetch_enrichments(db_conn: psycopg.Connection[Any], document_id: str) -> list[dict[str, Any]]:
    """Return every enrichment row of a document, oldest first."""
    with db_conn.cursor(row_factory=dict_row) as cur:
        cur.execute(
            """
            SELECT id, scope, output_payload, status, created_by
            FROM enrichments
            WHERE document_id = %s::uuid
            ORDER BY created_at
            """,
            (document_id,),
        )
        rows = cur.fetchall()
    db_conn.commit()
    return rows
