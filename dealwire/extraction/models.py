from dataclasses import asdict, dataclass, field
from enum import Enum


class DealType(str, Enum):
    FUNDRAISE = "fundraise"
    INVESTMENT = "investment"
    ACQUISITION = "acquisition"
    EXIT = "exit"


@dataclass(frozen=True)
class Entities:
    """Names extracted per private-markets role. Order carries no meaning."""

    general_partners: list[str] = field(default_factory=list)
    funds: list[str] = field(default_factory=list)
    portfolio_companies: list[str] = field(default_factory=list)
    limited_partners: list[str] = field(default_factory=list)
    service_providers: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(
            (
                self.general_partners,
                self.funds,
                self.portfolio_companies,
                self.limited_partners,
                self.service_providers,
            )
        )


@dataclass(frozen=True)
class Amount:
    value: float | None = None
    currency: str | None = None


@dataclass(frozen=True)
class Geography:
    country: str | None = None
    city: str | None = None


@dataclass(frozen=True)
class DealExtraction:
    """Validated output of one extraction call."""

    deal_detected: bool
    confidence_score: int
    reasoning: str
    deal_type: DealType | None = None
    entities: Entities = field(default_factory=Entities)
    amount: Amount = field(default_factory=Amount)
    geography: Geography = field(default_factory=Geography)
    announcement_date: str | None = None
    warnings: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, object]:
        """JSON-ready dict in the wire schema; warnings are not part of it."""
        payload = asdict(self)
        payload.pop("warnings")
        payload["deal_type"] = self.deal_type.value if self.deal_type else None
        return payload
