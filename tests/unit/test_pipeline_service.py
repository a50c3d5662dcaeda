from unittest.mock import MagicMock, patch

import pytest

from dealwire.database.models import DocumentRecord, DocumentStatus
from dealwire.pipeline.exceptions import AlreadyProcessingError, DocumentNotFoundError
from dealwire.pipeline.models import Claim, ClaimResult, IngestResult, RetryResult
from dealwire.pipeline.service import EnrichmentPipeline, build_pipeline

CLAIM = Claim(document_id="doc-1", token="token-1")


def _make_pipeline() -> tuple[EnrichmentPipeline, dict[str, MagicMock]]:
    mocks = {
        "gateway": MagicMock(),
        "claims": MagicMock(),
        "invoker": MagicMock(),
        "retries": MagicMock(),
        "doc_repo": MagicMock(),
        "enrichment_repo": MagicMock(),
    }
    return EnrichmentPipeline(**mocks), mocks


def _make_document(status: DocumentStatus) -> DocumentRecord:
    return DocumentRecord(
        id="doc-1",
        scope="fund-a",
        headline="h",
        source_name="s",
        publish_date="2025-01-01",
        canonical_url="https://a.com/x",
        status=status,
    )


class TestIngest:
    def test_delegates_to_gateway(self) -> None:
        pipeline, mocks = _make_pipeline()
        mocks["gateway"].ingest.return_value = IngestResult("doc-1", False)

        result = pipeline.ingest("fund-a", "h", "s", "2025-01-01", "https://a.com/x", created_by="u")

        assert result == IngestResult("doc-1", False)
        mocks["gateway"].ingest.assert_called_once_with(
            "fund-a", "h", "s", "2025-01-01", "https://a.com/x", raw_text=None, created_by="u"
        )


class TestProcess:
    def test_claims_then_invokes(self) -> None:
        pipeline, mocks = _make_pipeline()
        mocks["doc_repo"].find_by_id.return_value = _make_document(DocumentStatus.NEW)
        mocks["claims"].claim.return_value = ClaimResult(claimed=True, claim=CLAIM)
        mocks["invoker"].process.return_value = "enr-1"

        assert pipeline.process("doc-1", "fund-a", created_by="u") == "enr-1"
        mocks["invoker"].process.assert_called_once_with(CLAIM, created_by="u")

    @pytest.mark.parametrize("status", [DocumentStatus.PROCESSING, DocumentStatus.COMPLETED])
    def test_unclaimable_document_raises_conflict(self, status: DocumentStatus) -> None:
        pipeline, mocks = _make_pipeline()
        mocks["claims"].claim.return_value = ClaimResult(claimed=False)
        mocks["doc_repo"].find_by_id.return_value = _make_document(status)

        with pytest.raises(AlreadyProcessingError) as exc_info:
            pipeline.process("doc-1", "fund-a")

        assert exc_info.value.status == status.value
        mocks["invoker"].process.assert_not_called()

    def test_missing_document_raises_not_found(self) -> None:
        pipeline, mocks = _make_pipeline()
        mocks["doc_repo"].find_by_id.return_value = None

        with pytest.raises(DocumentNotFoundError):
            pipeline.process("doc-404", "fund-a")

        mocks["claims"].claim.assert_not_called()

    def test_document_in_other_scope_is_not_claimed(self) -> None:
        pipeline, mocks = _make_pipeline()
        mocks["doc_repo"].find_by_id.return_value = _make_document(DocumentStatus.NEW)

        with pytest.raises(DocumentNotFoundError):
            pipeline.process("doc-1", "fund-b")

        mocks["claims"].claim.assert_not_called()
        mocks["invoker"].process.assert_not_called()


class TestReads:
    def test_retry_delegates_with_scope(self) -> None:
        pipeline, mocks = _make_pipeline()
        mocks["retries"].retry.return_value = RetryResult(requeued=False)

        assert pipeline.retry("doc-1", "fund-a") == RetryResult(requeued=False)
        mocks["retries"].retry.assert_called_once_with("doc-1", "fund-a", created_by=None)

    def test_list_documents_passes_limit(self) -> None:
        pipeline, mocks = _make_pipeline()
        mocks["doc_repo"].list_for_scope.return_value = []

        assert pipeline.list_documents("fund-a", limit=10) == []
        mocks["doc_repo"].list_for_scope.assert_called_once_with("fund-a", limit=10)

    def test_list_failures_requires_document(self) -> None:
        pipeline, mocks = _make_pipeline()
        mocks["doc_repo"].find_by_id.return_value = None

        with pytest.raises(DocumentNotFoundError):
            pipeline.list_failures("doc-404", "fund-a")

        mocks["enrichment_repo"].list_failures.assert_not_called()

    def test_list_failures_hidden_from_other_scope(self) -> None:
        pipeline, mocks = _make_pipeline()
        mocks["doc_repo"].find_by_id.return_value = _make_document(DocumentStatus.FAILED)

        with pytest.raises(DocumentNotFoundError):
            pipeline.list_failures("doc-1", "fund-b")

        mocks["enrichment_repo"].list_failures.assert_not_called()

    def test_list_failures_in_scope(self) -> None:
        pipeline, mocks = _make_pipeline()
        mocks["doc_repo"].find_by_id.return_value = _make_document(DocumentStatus.FAILED)
        mocks["enrichment_repo"].list_failures.return_value = []

        assert pipeline.list_failures("doc-1", "fund-a") == []
        mocks["enrichment_repo"].list_failures.assert_called_once_with("doc-1")


class TestBuildPipeline:
    def test_uses_given_extractor(self) -> None:
        extractor = MagicMock()
        with patch("dealwire.pipeline.service.ExtractorFactory") as mock_factory:
            pipeline = build_pipeline(MagicMock(), extractor=extractor)

        mock_factory.create.assert_not_called()
        assert pipeline.invoker._extractor is extractor

    def test_builds_extractor_from_settings(self) -> None:
        settings = MagicMock()
        with patch("dealwire.pipeline.service.ExtractorFactory") as mock_factory:
            build_pipeline(settings)

        mock_factory.create.assert_called_once_with(settings)
