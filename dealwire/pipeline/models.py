from dataclasses import dataclass


@dataclass(frozen=True)
class IngestResult:
    document_id: str
    deduplicated: bool


@dataclass(frozen=True)
class Claim:
    """Proof that the holder owns the current processing attempt of a document."""

    document_id: str
    token: str


@dataclass(frozen=True)
class ClaimResult:
    claimed: bool
    claim: Claim | None = None


@dataclass(frozen=True)
class RetryResult:
    requeued: bool
    enrichment_id: str | None = None
    error: str | None = None
