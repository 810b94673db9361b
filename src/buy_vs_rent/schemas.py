from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

BUY = "BUY"
RENT = "RENT"
TIE = "TIE"


@dataclass(frozen=True)
class RequiredInputs:
    """The five inputs every comparison needs."""

    home_price: float
    monthly_rent: float
    mortgage_rate: float  # annual fraction, e.g., 0.0675
    down_pct: float  # fraction of home price, 0..1
    years: int  # holding horizon

    @property
    def down_payment(self) -> float:
        return self.home_price * self.down_pct

    @property
    def loan_amount(self) -> float:
        return self.home_price - self.down_payment


@dataclass(frozen=True)
class OptionalAssumptions:
    """Rates and recurring costs; every field has a sensible default."""

    term_years: int = 30
    home_appreciation: float = 0.03  # annual
    rent_inflation: float = 0.03  # annual
    cost_inflation: float = 0.03  # annual, applies to utilities + renter's insurance
    invest_return: float = 0.07  # annual
    prop_tax_rate: float = 0.011  # annual, of current home value
    home_ins_rate: float = 0.0035
    pmi_rate: float = 0.007  # annual, of original loan amount
    buy_close_pct: float = 0.03  # one-time, of purchase price
    sell_close_pct: float = 0.06  # one-time, of value at sale
    maint_rate: float = 0.01
    capex_rate: float = 0.005
    util_buy: float = 250.0  # monthly
    util_rent: float = 250.0  # monthly
    renters_ins: float = 15.0  # monthly


@dataclass(frozen=True)
class YearSnapshot:
    year: int
    buy_nwi: float
    rent_nwi: float
    diff: float
    better: str
    buy_equity: float
    buy_oop: float
    rent_equity: float
    rent_oop: float


@dataclass(frozen=True)
class Violation:
    field: str
    message: str


@dataclass
class LocationDefaults:
    """Holds CBSA-level housing figures assembled from ACS + HMDA."""

    cbsa: str
    name: str
    median_rent: float
    property_value: float
    loan_amount: float
    interest_rate: float  # annual percentage, e.g., 6.25
    monthly_taxes: float = 0.0
    monthly_insurance: float = 0.0
    monthly_utilities: float = 0.0

    @property
    def down_pct(self) -> float:
        if self.property_value <= 0:
            return 0.0
        down = max(self.property_value - self.loan_amount, 0.0)
        return min(down / self.property_value, 1.0)

    @property
    def prop_tax_rate(self) -> float:
        if self.property_value <= 0:
            return 0.0
        return self.monthly_taxes * 12 / self.property_value

    @property
    def home_ins_rate(self) -> float:
        if self.property_value <= 0:
            return 0.0
        return self.monthly_insurance * 12 / self.property_value

    def to_required(self, years: int) -> RequiredInputs:
        return RequiredInputs(
            home_price=self.property_value,
            monthly_rent=self.median_rent,
            mortgage_rate=self.interest_rate / 100.0,
            down_pct=self.down_pct,
            years=years,
        )

    def apply_to(self, assumptions: OptionalAssumptions) -> OptionalAssumptions:
        """Overlay the location's cost rates onto a set of assumptions.

        Figures the ACS pull could not supply (zero) leave the incoming
        assumption in place.
        """
        updates = {}
        if self.monthly_taxes > 0:
            updates["prop_tax_rate"] = self.prop_tax_rate
        if self.monthly_insurance > 0:
            updates["home_ins_rate"] = self.home_ins_rate
        if self.monthly_utilities > 0:
            updates["util_buy"] = self.monthly_utilities
            updates["util_rent"] = self.monthly_utilities
        return replace(assumptions, **updates)


@dataclass(frozen=True)
class ComparisonResult:
    required: RequiredInputs
    assumptions: OptionalAssumptions
    monthly_payment: float
    snapshots: Tuple[YearSnapshot, ...] = ()
    breakevens: Tuple[float, ...] = ()

    @property
    def down_payment(self) -> float:
        return self.required.down_payment

    @property
    def loan_amount(self) -> float:
        return self.required.loan_amount

    @property
    def final(self) -> Optional[YearSnapshot]:
        return self.snapshots[-1] if self.snapshots else None

    @property
    def better_option(self) -> str:
        final = self.final
        return final.better if final is not None else TIE

    @property
    def final_difference(self) -> float:
        final = self.final
        return final.diff if final is not None else 0.0
