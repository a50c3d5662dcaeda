"""Validates raw parsed JSON from the extraction provider against the result schema."""

import math
from datetime import date
from typing import Any

from dealwire.extraction.exceptions import SchemaError
from dealwire.extraction.models import Amount, DealExtraction, DealType, Entities, Geography

MAX_REASONING_CHARS = 2000
_MAX_NAMES_PER_BUCKET = 100
_TOP_LEVEL_FIELDS = (
    "deal_detected",
    "deal_type",
    "entities",
    "amount",
    "geography",
    "announcement_date",
    "confidence_score",
    "reasoning",
)
_ENTITY_BUCKETS = (
    "general_partners",
    "funds",
    "portfolio_companies",
    "limited_partners",
    "service_providers",
)


def validate_and_build(data: dict[str, Any]) -> DealExtraction:
    """Validate raw parsed JSON and build a DealExtraction.

    Hard violations raise SchemaError. A payload that reports no deal but still
    carries deal details is accepted; the inconsistency is reported in
    ``DealExtraction.warnings``. Overlong reasoning is truncated with a warning.

    Raises:
        SchemaError: on any structural or range violation.
    """
    _require_top_level_fields(data)
    warnings: list[str] = []

    deal_detected = data["deal_detected"]
    if not isinstance(deal_detected, bool):
        raise SchemaError("'deal_detected' must be a boolean")

    confidence_score = _build_confidence_score(data["confidence_score"])
    reasoning = _build_reasoning(data["reasoning"], warnings)
    deal_type = _build_deal_type(data["deal_type"])
    entities = _build_entities(data["entities"])
    amount = _build_amount(data["amount"])
    geography = _build_geography(data["geography"])
    announcement_date = _build_announcement_date(data["announcement_date"])

    if not deal_detected:
        populated = _populated_deal_fields(deal_type, entities, amount, geography, announcement_date)
        if populated:
            warnings.append(
                "deal_detected is false but deal fields are populated: "
                + ", ".join(populated)
            )

    return DealExtraction(
        deal_detected=deal_detected,
        deal_type=deal_type,
        entities=entities,
        amount=amount,
        geography=geography,
        announcement_date=announcement_date,
        confidence_score=confidence_score,
        reasoning=reasoning,
        warnings=warnings,
    )


def _require_top_level_fields(data: dict[str, Any]) -> None:
    for field in _TOP_LEVEL_FIELDS:
        if field not in data:
            raise SchemaError(f"Missing required top-level field: {field}")


def _build_confidence_score(raw: Any) -> int:
    if isinstance(raw, bool):
        raise SchemaError("'confidence_score' must be an integer, got a boolean")
    if isinstance(raw, float) and raw.is_integer():
        raw = int(raw)
    if not isinstance(raw, int):
        raise SchemaError(f"'confidence_score' must be an integer, got {raw!r}")
    if raw < 0 or raw > 100:
        raise SchemaError(f"'confidence_score' must be between 0 and 100, got {raw}")
    return raw


def _build_reasoning(raw: Any, warnings: list[str]) -> str:
    if not isinstance(raw, str):
        raise SchemaError("'reasoning' must be a string")
    if len(raw) > MAX_REASONING_CHARS:
        warnings.append(
            f"reasoning truncated from {len(raw)} to {MAX_REASONING_CHARS} characters"
        )
        return raw[:MAX_REASONING_CHARS]
    return raw


def _build_deal_type(raw: Any) -> DealType | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise SchemaError("'deal_type' must be a string or null")
    try:
        return DealType(raw)
    except ValueError:
        allowed = [t.value for t in DealType]
        raise SchemaError(f"'deal_type' must be one of {allowed} or null, got {raw!r}") from None


def _build_entities(raw: Any) -> Entities:
    if not isinstance(raw, dict):
        raise SchemaError("'entities' must be an object")
    buckets = {bucket: _build_names(raw.get(bucket), bucket) for bucket in _ENTITY_BUCKETS}
    return Entities(**buckets)


def _build_names(raw: Any, bucket: str) -> list[str]:
    if not isinstance(raw, list):
        raise SchemaError(f"'entities.{bucket}' must be a list")
    if len(raw) > _MAX_NAMES_PER_BUCKET:
        raise SchemaError(
            f"Too many names in 'entities.{bucket}': {len(raw)} (max {_MAX_NAMES_PER_BUCKET})"
        )
    names: list[str] = []
    seen: set[str] = set()
    for i, item in enumerate(raw):
        if not isinstance(item, str):
            raise SchemaError(f"'entities.{bucket}[{i}]' must be a string")
        name = item.strip()
        if not name or name.casefold() in seen:
            continue
        seen.add(name.casefold())
        names.append(name)
    return names


def _build_amount(raw: Any) -> Amount:
    if not isinstance(raw, dict):
        raise SchemaError("'amount' must be an object")
    value = raw.get("value")
    if value is not None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise SchemaError("'amount.value' must be a number or null")
        if not math.isfinite(value):
            raise SchemaError("'amount.value' must be a finite number")
        value = float(value)
    currency = _optional_string(raw.get("currency"), "amount.currency")
    return Amount(value=value, currency=currency)


def _build_geography(raw: Any) -> Geography:
    if not isinstance(raw, dict):
        raise SchemaError("'geography' must be an object")
    return Geography(
        country=_optional_string(raw.get("country"), "geography.country"),
        city=_optional_string(raw.get("city"), "geography.city"),
    )


def _build_announcement_date(raw: Any) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise SchemaError("'announcement_date' must be an ISO-8601 date string or null")
    try:
        return date.fromisoformat(raw.strip()).isoformat()
    except ValueError:
        raise SchemaError(
            f"'announcement_date' must be an ISO-8601 date (YYYY-MM-DD), got {raw!r}"
        ) from None


def _optional_string(raw: Any, path: str) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise SchemaError(f"'{path}' must be a string or null")
    return raw.strip() or None


def _populated_deal_fields(
    deal_type: DealType | None,
    entities: Entities,
    amount: Amount,
    geography: Geography,
    announcement_date: str | None,
) -> list[str]:
    populated = []
    if deal_type is not None:
        populated.append("deal_type")
    if not entities.is_empty():
        populated.append("entities")
    if amount.value is not None or amount.currency is not None:
        populated.append("amount")
    if geography.country is not None or geography.city is not None:
        populated.append("geography")
    if announcement_date is not None:
        populated.append("announcement_date")
    return populated
