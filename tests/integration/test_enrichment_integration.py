import json

import pytest

from dealwire.config.settings import Settings
from dealwire.database.repositories.enrichment_repository import EnrichmentRepository
from dealwire.extraction.exceptions import SchemaError
from dealwire.pipeline.exceptions import ClaimNotHeldError, DocumentNotFoundError
from tests.integration.helpers import (
    VALID_OUTPUT,
    count_rows,
    fetch_document,
    fetch_enrichments,
    ingest_sample,
    make_pipeline,
)


@pytest.mark.integration
class TestSuccessfulEnrichment:
    def test_completes_document_with_one_done_record(
        self, test_settings: Settings, scope: str, db_conn
    ) -> None:
        pipeline, client = make_pipeline(test_settings)
        document_id = ingest_sample(pipeline, scope)

        enrichment_id = pipeline.process(document_id, scope, created_by="user-7")

        status, attempts, claim_token = fetch_document(db_conn, document_id)
        assert status == "COMPLETED"
        assert attempts == 1
        assert claim_token is None
        assert client.calls == 1
        [record] = fetch_enrichments(db_conn, document_id)
        assert str(record["id"]) == enrichment_id
        assert record["status"] == "DONE"
        assert record["scope"] == scope
        assert record["created_by"] == "user-7"
        assert record["output_payload"]["confidence_score"] == 85
        assert record["output_payload"]["entities"]["portfolio_companies"] == ["Acme Robotics"]

    def test_listing_shows_latest_enrichment(self, test_settings: Settings, scope: str) -> None:
        pipeline, _client = make_pipeline(test_settings)
        done_id = ingest_sample(pipeline, scope, slug="done")
        ingest_sample(pipeline, scope, slug="pending")
        pipeline.process(done_id, scope)

        items = {item.id: item for item in pipeline.list_documents(scope)}

        assert items[done_id].enrichment is not None
        assert items[done_id].enrichment.deal_type == "investment"
        assert sum(1 for item in items.values() if item.enrichment is None) == 1


@pytest.mark.integration
class TestSchemaRejection:
    def test_out_of_range_confidence_fails_without_enrichment(
        self, test_settings: Settings, scope: str, db_conn
    ) -> None:
        raw = json.dumps({**VALID_OUTPUT, "confidence_score": 150})
        pipeline, _client = make_pipeline(test_settings, raw)
        document_id = ingest_sample(pipeline, scope)

        with pytest.raises(SchemaError):
            pipeline.process(document_id, scope)

        assert fetch_document(db_conn, document_id)[0] == "FAILED"
        assert count_rows(db_conn, "enrichments", document_id) == 0
        failures = pipeline.list_failures(document_id, scope)
        assert len(failures) == 1
        assert failures[0].error_type.value == "SCHEMA"
        assert failures[0].raw_output == raw


@pytest.mark.integration
class TestRetry:
    def test_retry_after_failure_appends_one_record(
        self, test_settings: Settings, scope: str, db_conn
    ) -> None:
        pipeline, _client = make_pipeline(test_settings, "not json", json.dumps(VALID_OUTPUT))
        document_id = ingest_sample(pipeline, scope)
        with pytest.raises(SchemaError):
            pipeline.process(document_id, scope)

        result = pipeline.retry(document_id, scope)

        assert result.requeued is True
        assert result.enrichment_id is not None
        status, attempts, _token = fetch_document(db_conn, document_id)
        assert status == "COMPLETED"
        assert attempts == 2
        assert count_rows(db_conn, "enrichments", document_id) == 1
        assert count_rows(db_conn, "extraction_failures", document_id) == 1

    def test_retry_of_completed_document_is_noop(
        self, test_settings: Settings, scope: str, db_conn
    ) -> None:
        pipeline, client = make_pipeline(test_settings)
        document_id = ingest_sample(pipeline, scope)
        pipeline.process(document_id, scope)

        result = pipeline.retry(document_id, scope)

        assert result.requeued is False
        assert client.calls == 1
        assert count_rows(db_conn, "enrichments", document_id) == 1


@pytest.mark.integration
class TestStaleAttemptCannotPersist:
    def test_swept_claim_is_rejected_on_completion(
        self, test_settings: Settings, scope: str, db_conn
    ) -> None:
        pipeline, _client = make_pipeline(test_settings)
        document_id = ingest_sample(pipeline, scope)
        old_claim = pipeline.claims.claim(document_id).claim
        assert old_claim is not None
        with db_conn.cursor() as cur:
            cur.execute(
                """
                UPDATE documents
                SET processing_started_at = NOW() - INTERVAL '2 hours'
                WHERE id = %s::uuid
                """,
                (document_id,),
            )
        db_conn.commit()
        pipeline.claims.sweep_stale(900)
        assert pipeline.claims.claim(document_id).claimed is True

        with pytest.raises(ClaimNotHeldError):
            EnrichmentRepository().complete_attempt(old_claim, VALID_OUTPUT)

        assert count_rows(db_conn, "enrichments", document_id) == 0
        assert fetch_document(db_conn, document_id)[0] == "PROCESSING"


@pytest.mark.integration
class TestScopeIsolation:
    def test_other_scope_cannot_process_or_read_failures(
        self, test_settings: Settings, scope: str, db_conn
    ) -> None:
        pipeline, client = make_pipeline(test_settings)
        document_id = ingest_sample(pipeline, scope)

        with pytest.raises(DocumentNotFoundError):
            pipeline.process(document_id, f"{scope}-other")
        with pytest.raises(DocumentNotFoundError):
            pipeline.retry(document_id, f"{scope}-other")
        with pytest.raises(DocumentNotFoundError):
            pipeline.list_failures(document_id, f"{scope}-other")

        assert client.calls == 0
        assert fetch_document(db_conn, document_id)[0] == "NEW"
