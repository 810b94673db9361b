from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .schemas import (
    BUY,
    RENT,
    TIE,
    ComparisonResult,
    OptionalAssumptions,
    RequiredInputs,
    YearSnapshot,
)

logger = logging.getLogger(__name__)

PMI_DOWN_THRESHOLD = 0.20
PMI_LTV_THRESHOLD = 0.80


def compare_scenarios(
    required: RequiredInputs,
    assumptions: Optional[OptionalAssumptions] = None,
) -> ComparisonResult:
    assumptions = assumptions or OptionalAssumptions()
    snapshots = simulate(required, assumptions)
    return ComparisonResult(
        required=required,
        assumptions=assumptions,
        monthly_payment=monthly_mortgage_payment(
            required.loan_amount, required.mortgage_rate, assumptions.term_years * 12
        ),
        snapshots=tuple(snapshots),
        breakevens=tuple(find_breakevens(snapshots)),
    )


def simulate(
    required: RequiredInputs, assumptions: OptionalAssumptions
) -> List[YearSnapshot]:
    """
    Step the buy and rent scenarios month by month and snapshot every year.

    Inputs are assumed valid. Returns ``required.years + 1`` snapshots, the
    first taken before any month has elapsed.
    """
    months = required.years * 12
    down_payment = required.down_payment
    loan_amount = required.loan_amount
    payment = monthly_mortgage_payment(
        loan_amount, required.mortgage_rate, assumptions.term_years * 12
    )
    mortgage_rate_monthly = required.mortgage_rate / 12.0

    appreciation_monthly = annual_to_monthly_growth(assumptions.home_appreciation)
    rent_inflation_monthly = annual_to_monthly_growth(assumptions.rent_inflation)
    cost_inflation_monthly = annual_to_monthly_growth(assumptions.cost_inflation)
    investment_monthly = annual_to_monthly_growth(assumptions.invest_return)

    logger.debug(
        "Simulating %d months: loan=%.2f payment=%.2f", months, loan_amount, payment
    )

    home_value = required.home_price
    rent = required.monthly_rent
    balance = loan_amount
    # Inflating costs live in locals so the caller's assumptions stay untouched.
    util_buy = assumptions.util_buy
    util_rent = assumptions.util_rent
    renters_ins = assumptions.renters_ins

    buy_oop = down_payment + required.home_price * assumptions.buy_close_pct
    rent_oop = 0.0
    principal_paid = 0.0
    buy_invested = 0.0
    rent_invested = 0.0

    snapshots = [
        build_snapshot(
            0,
            buy_oop=buy_oop,
            rent_oop=rent_oop,
            buy_equity=down_payment,
            rent_equity=rent_invested,
        )
    ]

    for month in range(1, months + 1):
        interest = 0.0
        principal = 0.0
        if balance > 0:
            interest = balance * mortgage_rate_monthly
            principal = min(payment - interest, balance)
            balance = max(balance - principal, 0.0)

        pmi = pmi_payment(
            required.down_pct, balance, home_value, loan_amount, assumptions.pmi_rate
        )
        prop_tax = home_value * assumptions.prop_tax_rate / 12
        home_ins = home_value * assumptions.home_ins_rate / 12
        maint = home_value * assumptions.maint_rate / 12
        capex = home_value * assumptions.capex_rate / 12

        buy_monthly = (
            principal + interest + prop_tax + home_ins + pmi + maint + capex + util_buy
        )
        buy_oop += buy_monthly
        principal_paid += principal

        home_value *= 1 + appreciation_monthly

        rent_monthly = rent + renters_ins + util_rent
        rent_oop += rent_monthly

        rent *= 1 + rent_inflation_monthly
        util_buy *= 1 + cost_inflation_monthly
        util_rent *= 1 + cost_inflation_monthly
        renters_ins *= 1 + cost_inflation_monthly

        # Growth first; this month's surplus starts earning next month.
        buy_invested *= 1 + investment_monthly
        rent_invested *= 1 + investment_monthly
        surplus = rent_monthly - buy_monthly
        if surplus > 0:
            buy_invested += surplus
        elif surplus < 0:
            rent_invested += -surplus

        if month % 12 == 0:
            snapshot_oop = buy_oop
            if month == months:
                snapshot_oop += home_value * assumptions.sell_close_pct
            snapshots.append(
                build_snapshot(
                    month // 12,
                    buy_oop=snapshot_oop,
                    rent_oop=rent_oop,
                    buy_equity=(
                        down_payment
                        + principal_paid
                        + (home_value - required.home_price)
                        + buy_invested
                    ),
                    rent_equity=rent_invested,
                )
            )

    return snapshots


def build_snapshot(
    year: int,
    *,
    buy_oop: float,
    rent_oop: float,
    buy_equity: float,
    rent_equity: float,
) -> YearSnapshot:
    buy_nwi = buy_equity - buy_oop
    rent_nwi = rent_equity - rent_oop
    diff = buy_nwi - rent_nwi
    return YearSnapshot(
        year=year,
        buy_nwi=buy_nwi,
        rent_nwi=rent_nwi,
        diff=diff,
        better=classify(diff),
        buy_equity=buy_equity,
        buy_oop=buy_oop,
        rent_equity=rent_equity,
        rent_oop=rent_oop,
    )


def classify(diff: float) -> str:
    if diff > 0:
        return BUY
    if diff < 0:
        return RENT
    return TIE


def find_breakevens(snapshots: Sequence[YearSnapshot]) -> List[float]:
    """Years at which the buy-minus-rent difference is zero or changes sign.

    Sign changes between two yearly snapshots are placed by linear
    interpolation, so the result may be fractional. A difference of exactly
    zero is reported once, at its own year. The final snapshot is only ever
    an interpolation endpoint.
    """
    points: List[float] = []
    for prev, curr in zip(snapshots, snapshots[1:]):
        if prev.diff == 0:
            points.append(float(prev.year))
        if (prev.diff < 0 < curr.diff) or (prev.diff > 0 > curr.diff):
            weight = abs(prev.diff) / (abs(prev.diff) + abs(curr.diff))
            points.append(prev.year + weight * (curr.year - prev.year))
    return points


def pmi_payment(
    down_pct: float,
    loan_balance: float,
    home_value: float,
    loan_amount: float,
    pmi_rate: float,
) -> float:
    if down_pct >= PMI_DOWN_THRESHOLD or loan_balance <= 0 or home_value <= 0:
        return 0.0
    if loan_balance / home_value <= PMI_LTV_THRESHOLD:
        return 0.0
    return loan_amount * pmi_rate / 12


def monthly_mortgage_payment(
    principal: float, annual_rate: float, term_months: int
) -> float:
    if principal <= 0 or term_months <= 0:
        return 0.0
    monthly_rate = annual_rate / 12.0
    if monthly_rate == 0:
        return principal / term_months
    growth = (1 + monthly_rate) ** term_months
    return principal * (monthly_rate * growth) / (growth - 1)


def annual_to_monthly_growth(annual_rate: float) -> float:
    if annual_rate <= -1:
        raise ValueError("annual rate must be greater than -100%")
    return (1 + annual_rate) ** (1 / 12.0) - 1
