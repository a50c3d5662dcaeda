from urllib.parse import urlsplit, urlunsplit

from psycopg import errors

from dealwire.database.repositories.document_repository import DocumentRepository
from dealwire.logging.logger import Log
from dealwire.pipeline.exceptions import ValidationError
from dealwire.pipeline.models import IngestResult


def canonicalize_url(url: str) -> str:
    """Normalize a URL for use as a dedup key.

    Lower-cases scheme and host and drops the fragment. Path and query are kept
    verbatim because they are case-sensitive on most servers.
    """
    parts = urlsplit(url.strip())
    return urlunsplit(
        (parts.scheme.lower(), parts.netloc.lower(), parts.path, parts.query, "")
    )


def _reject_nul(value: str, field: str) -> str:
    # PostgreSQL TEXT cannot store NUL.
    if "\x00" in value:
        raise ValidationError(field, f"'{field}' must not contain NUL characters")
    return value


def _require(value: str | None, field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(field)
    return _reject_nul(str(value).strip(), field)


class IngestionGateway:
    """Validates incoming documents and creates them exactly once per (scope, URL)."""

    def __init__(self, doc_repo: DocumentRepository) -> None:
        self._doc_repo = doc_repo

    def ingest(
        self,
        scope: str | None,
        headline: str | None,
        source_name: str | None,
        publish_date: str | None,
        canonical_url: str | None,
        raw_text: str | None = None,
        created_by: str | None = None,
    ) -> IngestResult:
        """Create a NEW document or return the existing one for the same URL.

        Raises:
            ValidationError: if a required field is absent or blank, or any
                field contains a NUL character.
        """
        scope = _require(scope, "scope")
        headline = _require(headline, "headline")
        source_name = _require(source_name, "source_name")
        publish_date = _require(publish_date, "publish_date")
        url = canonicalize_url(_require(canonical_url, "canonical_url"))
        body = _reject_nul(raw_text, "raw_text") if raw_text and raw_text.strip() else None

        existing_id = self._doc_repo.find_id_by_url(scope, url)
        if existing_id is not None:
            Log.info(f"Duplicate ingest for {url} in scope {scope}: document {existing_id}")
            return IngestResult(document_id=existing_id, deduplicated=True)

        try:
            document_id = self._doc_repo.insert(
                scope=scope,
                headline=headline,
                source_name=source_name,
                publish_date=publish_date,
                canonical_url=url,
                raw_text=body,
                created_by=created_by,
            )
        except errors.UniqueViolation:
            return self._resolve_duplicate_race(scope, url)

        Log.info(f"Ingested document {document_id} ({url}) in scope {scope}")
        return IngestResult(document_id=document_id, deduplicated=False)

    def _resolve_duplicate_race(self, scope: str, url: str) -> IngestResult:
        existing_id = self._doc_repo.find_id_by_url(scope, url)
        if existing_id is None:
            raise RuntimeError(
                f"Unique violation for {url} in scope {scope} but no document found"
            )
        Log.warning(f"Lost ingest race for {url} in scope {scope}: using document {existing_id}")
        return IngestResult(document_id=existing_id, deduplicated=True)
