"""Payment domain logic: tier rate plus flag-gated bonuses, all in cents."""
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional


@dataclass
class PaymentRates:
    """Rate table in cents."""

    tier1_rate: int = 2000
    tier2_rate: int = 3500
    tier3_rate: int = 5000
    research_bonus: int = 1000
    multimedia_bonus: int = 500
    time_sensitive_bonus: int = 500
    professional_photo_bonus: int = 1500
    professional_graphic_bonus: int = 1500

    @classmethod
    def from_config(cls, config) -> "PaymentRates":
        """Build from any object exposing the rate attributes (e.g. PaymentRateConfig)."""
        return cls(**{name: getattr(config, name) for name in cls.__dataclass_fields__})

    def snapshot(self) -> dict:
        return asdict(self)


DEFAULT_RATES = PaymentRates()

TIER_RATE_FIELDS = {
    "Tier 1 (Basic)": "tier1_rate",
    "Tier 2 (Standard)": "tier2_rate",
    "Tier 3 (Advanced)": "tier3_rate",
}

# Multimedia types that earn the multimedia bonus when the flag is not set explicitly
MULTIMEDIA_BONUS_TYPES = frozenset({"Photo", "Graphic", "Video"})

NON_PAID_AUTHOR_TYPES = ("Faculty", "Staff")


@dataclass
class BonusFlags:
    has_multimedia: bool = False
    has_research_bonus: bool = False
    has_time_sensitive_bonus: bool = False
    has_professional_photos: bool = False
    has_professional_graphics: bool = False


@dataclass
class BonusItem:
    type: str
    amount: int


@dataclass
class PaymentCalculation:
    """Full breakdown, stored on the article as its rate snapshot."""

    tier_name: str
    tier_rate: int
    bonuses: list[BonusItem] = field(default_factory=list)
    base_amount: int = 0
    bonus_amount: int = 0
    total_amount: int = 0
    calculated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        data = asdict(self)
        data["calculated_at"] = self.calculated_at.isoformat()
        return data


def calculate_payment(
    article_tier: str,
    flags: BonusFlags,
    rates: PaymentRates = DEFAULT_RATES,
) -> PaymentCalculation:
    """
    Calculate the payment for an article.

    Unknown tiers are paid at the tier 1 rate. A bonus is only applied when
    its flag is set and the configured amount is non-zero.

    Args:
        article_tier: Tier label, e.g. "Tier 2 (Standard)"
        flags: Bonus flags for the article
        rates: Rate table (defaults to DEFAULT_RATES)

    Returns:
        PaymentCalculation with the itemised breakdown
    """
    tier_rate = getattr(rates, TIER_RATE_FIELDS.get(article_tier, "tier1_rate"))

    candidates = [
        ("Research", flags.has_research_bonus, rates.research_bonus),
        ("Multimedia", flags.has_multimedia, rates.multimedia_bonus),
        ("Time-Sensitive", flags.has_time_sensitive_bonus, rates.time_sensitive_bonus),
        ("Professional Photos", flags.has_professional_photos, rates.professional_photo_bonus),
        ("Professional Graphics", flags.has_professional_graphics, rates.professional_graphic_bonus),
    ]
    bonuses = [BonusItem(type=label, amount=amount) for label, enabled, amount in candidates if enabled and amount]
    bonus_amount = sum(b.amount for b in bonuses)

    return PaymentCalculation(
        tier_name=article_tier,
        tier_rate=tier_rate,
        bonuses=bonuses,
        base_amount=tier_rate,
        bonus_amount=bonus_amount,
        total_amount=tier_rate + bonus_amount,
    )


def resolve_multimedia_bonus(explicit: Optional[bool], multimedia_types: Iterable[str]) -> bool:
    """Use the explicit flag when set, otherwise derive it from declared media types."""
    if explicit is not None:
        return explicit
    return any(t in MULTIMEDIA_BONUS_TYPES for t in multimedia_types)


def is_author_eligible_for_payment(author_type: Optional[str]) -> bool:
    """Unknown author types default to eligible."""
    if not author_type:
        return True
    return author_type not in NON_PAID_AUTHOR_TYPES


def format_cents(cents: Optional[int]) -> str:
    """Format cents as a dollar string, e.g. 2000 -> "$20.00"."""
    return f"${(cents or 0) / 100:.2f}"


def parse_to_cents(value: str) -> int:
    """Parse "$1,234.56" style strings into cents. Unparseable input yields 0."""
    cleaned = re.sub(r"[$,\s]", "", value or "")
    try:
        return round(float(cleaned) * 100)
    except (ValueError, OverflowError):
        return 0
