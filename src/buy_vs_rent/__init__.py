"""
Buy vs. rent net worth projection.

This package steps a home purchase and an equivalent rental month by month,
tracking out-of-pocket spend, mortgage paydown, appreciation and invested
savings, then reports which path leaves more net worth each year and where
the advantage flips.
"""

from .schemas import (
    BUY,
    RENT,
    TIE,
    ComparisonResult,
    LocationDefaults,
    OptionalAssumptions,
    RequiredInputs,
    Violation,
    YearSnapshot,
)
from .model import compare_scenarios, find_breakevens, simulate
from .validation import ValidationError, validate

__all__ = [
    "BUY",
    "RENT",
    "TIE",
    "ComparisonResult",
    "LocationDefaults",
    "OptionalAssumptions",
    "RequiredInputs",
    "Violation",
    "YearSnapshot",
    "compare_scenarios",
    "find_breakevens",
    "simulate",
    "ValidationError",
    "validate",
]
