"""
Input checks run before a comparison.

Nothing here raises for an individual bad value; :func:`validate` collects a
:class:`~buy_vs_rent.schemas.Violation` per offending field so a caller can
show every problem at once. :func:`ensure_valid` turns a non-empty list into a
single :class:`ValidationError`.
"""

from __future__ import annotations

import math
from dataclasses import fields
from typing import Iterable, List

from .schemas import OptionalAssumptions, RequiredInputs, Violation

MIN_YEARS, MAX_YEARS = 1, 50
MIN_TERM_YEARS, MAX_TERM_YEARS = 5, 40
MAX_PROP_TAX_RATE = 0.10
MAX_SELL_CLOSE_PCT = 0.20

# Compounded monthly, so anything at or below -100% has no monthly equivalent.
GROWTH_RATES = {
    "home_appreciation": "Home appreciation",
    "rent_inflation": "Rent inflation",
    "cost_inflation": "Cost inflation",
    "invest_return": "Investment return",
}


class ValidationError(ValueError):
    def __init__(self, violations: Iterable[Violation]) -> None:
        self.violations: List[Violation] = list(violations)
        super().__init__(
            "\n".join(f"{v.field}: {v.message}" for v in self.violations)
        )


def validate(
    required: RequiredInputs, assumptions: OptionalAssumptions
) -> List[Violation]:
    violations = _non_finite(required) + _non_finite(assumptions)
    bad = {v.field for v in violations}

    def check(name: str, ok: bool, message: str) -> None:
        if name not in bad and not ok:
            violations.append(Violation(name, message))

    check("home_price", required.home_price > 0, "Home price must be > 0.")
    check("monthly_rent", required.monthly_rent >= 0, "Monthly rent must be ≥ 0.")
    check(
        "mortgage_rate", required.mortgage_rate >= 0, "Mortgage rate must be ≥ 0."
    )
    check(
        "down_pct",
        0 <= required.down_pct <= 1,
        "Down payment % must be between 0 and 100.",
    )
    check(
        "years",
        _is_whole(required.years) and MIN_YEARS <= required.years <= MAX_YEARS,
        f"Years lived must be a whole number between {MIN_YEARS} and {MAX_YEARS}.",
    )
    check(
        "term_years",
        _is_whole(assumptions.term_years)
        and MIN_TERM_YEARS <= assumptions.term_years <= MAX_TERM_YEARS,
        f"Mortgage term must be a whole number between {MIN_TERM_YEARS} "
        f"and {MAX_TERM_YEARS} years.",
    )
    check(
        "prop_tax_rate",
        0 <= assumptions.prop_tax_rate <= MAX_PROP_TAX_RATE,
        f"Property tax rate must be between 0 and {MAX_PROP_TAX_RATE:.0%}.",
    )
    check(
        "sell_close_pct",
        0 <= assumptions.sell_close_pct <= MAX_SELL_CLOSE_PCT,
        f"Sale closing costs must be between 0 and {MAX_SELL_CLOSE_PCT:.0%}.",
    )
    for name, label in GROWTH_RATES.items():
        check(
            name,
            getattr(assumptions, name) > -1,
            f"{label} must be greater than -100%.",
        )
    return violations


def ensure_valid(required: RequiredInputs, assumptions: OptionalAssumptions) -> None:
    violations = validate(required, assumptions)
    if violations:
        raise ValidationError(violations)


def _non_finite(obj) -> List[Violation]:
    out = []
    for f in fields(obj):
        value = getattr(obj, f.name)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            out.append(Violation(f.name, f"{f.name} must be a number."))
        elif not math.isfinite(value):
            out.append(Violation(f.name, f"{f.name} must be a finite number."))
    return out


def _is_whole(value) -> bool:
    return isinstance(value, int)
