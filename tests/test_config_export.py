"""Scenario files and CSV export."""

from __future__ import annotations

import json

import pytest

from buy_vs_rent.config import (
    DEFAULT_REQUIRED,
    load_scenario,
    scenario_from_mapping,
    scenario_to_mapping,
)
from buy_vs_rent.export import (
    CSV_HEADER,
    parse_csv,
    round_currency,
    snapshots_to_csv,
    write_csv,
)
from buy_vs_rent.model import build_snapshot, simulate
from buy_vs_rent.schemas import OptionalAssumptions
from buy_vs_rent.validation import ValidationError


def test_scenario_mapping_round_trip():
    assumptions = OptionalAssumptions(term_years=15, invest_return=0.05)
    data = json.loads(json.dumps(scenario_to_mapping(DEFAULT_REQUIRED, assumptions)))
    assert scenario_from_mapping(data) == (DEFAULT_REQUIRED, assumptions)


def test_missing_assumptions_use_defaults():
    required, assumptions = scenario_from_mapping(
        {
            "required": {
                "home_price": 300000,
                "monthly_rent": "1800",
                "mortgage_rate": 0.06,
                "down_pct": 0.2,
                "years": "12",
            }
        }
    )
    assert required.years == 12
    assert isinstance(required.years, int)
    assert required.monthly_rent == 1800.0
    assert assumptions == OptionalAssumptions()


def test_bad_scenario_lists_every_field():
    with pytest.raises(ValidationError) as info:
        scenario_from_mapping(
            {
                "required": {"home_price": "lots", "years": 7.5, "colour": "red"},
                "assumptions": {"term_years": 30, "tax_bracket": 0.3},
                "extras": {},
            }
        )
    fields = {v.field for v in info.value.violations}
    assert fields == {
        "extras",
        "colour",
        "tax_bracket",
        "monthly_rent",
        "mortgage_rate",
        "down_pct",
        "home_price",
        "years",
    }


def test_load_scenario(tmp_path):
    path = tmp_path / "scenario.json"
    path.write_text(json.dumps(scenario_to_mapping(DEFAULT_REQUIRED, OptionalAssumptions())))
    assert load_scenario(path) == (DEFAULT_REQUIRED, OptionalAssumptions())


def test_load_scenario_rejects_non_object(tmp_path):
    path = tmp_path / "scenario.json"
    path.write_text("[1, 2, 3]")
    with pytest.raises(ValidationError):
        load_scenario(path)


def test_round_currency_half_up():
    assert round_currency(2.5) == 3
    assert round_currency(2.49) == 2
    assert round_currency(-2.5) == -2
    assert round_currency(-2.51) == -3


def test_csv_layout():
    rows = [build_snapshot(0, buy_oop=58_500.4, rent_oop=0.0, buy_equity=45_000.0, rent_equity=0.0)]
    lines = snapshots_to_csv(rows).splitlines()
    assert lines[0] == ",".join(CSV_HEADER)
    assert lines[1] == "0,RENT,-13500,0,-13500,45000,58500,0,0"


def test_csv_round_trip_matches_rounded_snapshots():
    snapshots = simulate(DEFAULT_REQUIRED, OptionalAssumptions())
    parsed = parse_csv(snapshots_to_csv(snapshots))
    assert len(parsed) == len(snapshots) == 11
    for row, snap in zip(parsed, snapshots):
        assert row["Year"] == snap.year
        assert row["Better"] == snap.better
        assert row["Buy_NWI"] == round_currency(snap.buy_nwi)
        assert row["Rent_NWI"] == round_currency(snap.rent_nwi)
        assert row["Diff_BuyMinusRent"] == round_currency(snap.diff)
        assert row["Buy_Equity"] == round_currency(snap.buy_equity)
        assert row["Buy_OOP"] == round_currency(snap.buy_oop)
        assert row["Rent_Equity"] == round_currency(snap.rent_equity)
        assert row["Rent_OOP"] == round_currency(snap.rent_oop)
        assert abs(row["Rent_OOP"] - snap.rent_oop) <= 0.5


def test_write_csv(tmp_path):
    snapshots = simulate(DEFAULT_REQUIRED, OptionalAssumptions())
    path = write_csv(snapshots, tmp_path / "out.csv")
    assert parse_csv(path.read_text(encoding="utf-8"))[-1]["Year"] == 10


def test_parse_csv_rejects_foreign_header():
    with pytest.raises(ValueError):
        parse_csv("a,b\n1,2\n")
