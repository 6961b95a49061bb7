# Domain logic
# Pure business rules with no database or framework dependencies
from .duplicates import DuplicateGroup, DuplicateReport, MatchType, find_duplicate_files
from .payment import (
    DEFAULT_RATES,
    BonusFlags,
    PaymentCalculation,
    PaymentRates,
    calculate_payment,
    format_cents,
    parse_to_cents,
)

__all__ = [
    "BonusFlags",
    "DEFAULT_RATES",
    "DuplicateGroup",
    "DuplicateReport",
    "MatchType",
    "PaymentCalculation",
    "PaymentRates",
    "calculate_payment",
    "find_duplicate_files",
    "format_cents",
    "parse_to_cents",
]
