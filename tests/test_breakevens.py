"""Breakeven detection over yearly snapshots."""

from __future__ import annotations

import pytest

from buy_vs_rent.model import build_snapshot, classify, compare_scenarios, find_breakevens
from buy_vs_rent.schemas import BUY, RENT, TIE, OptionalAssumptions, RequiredInputs


def _rows(diffs):
    return [
        build_snapshot(year, buy_oop=0.0, rent_oop=0.0, buy_equity=d, rent_equity=0.0)
        for year, d in enumerate(diffs)
    ]


def test_build_snapshot_derives_nwi_and_verdict():
    row = build_snapshot(3, buy_oop=100.0, rent_oop=50.0, buy_equity=400.0, rent_equity=80.0)
    assert row.buy_nwi == 300.0
    assert row.rent_nwi == 30.0
    assert row.diff == 270.0
    assert row.better == BUY


def test_classify():
    assert classify(1.0) == BUY
    assert classify(-0.01) == RENT
    assert classify(0.0) == TIE


def test_single_crossing_is_interpolated():
    assert find_breakevens(_rows([-100.0, 100.0])) == [0.5]
    assert find_breakevens(_rows([-300.0, 100.0])) == [0.75]
    assert find_breakevens(_rows([-10.0, -5.0, 15.0])) == [1.25]


def test_every_crossing_is_reported_in_order():
    assert find_breakevens(_rows([100.0, -100.0, 100.0, -300.0])) == [0.5, 1.5, 2.25]


def test_no_crossing():
    assert find_breakevens(_rows([1.0, 2.0, 3.0])) == []
    assert find_breakevens(_rows([-1.0, -2.0])) == []
    assert find_breakevens(_rows([5.0])) == []
    assert find_breakevens([]) == []


def test_exact_zero_reported_once():
    assert find_breakevens(_rows([-5.0, 0.0, 5.0])) == [1.0]
    assert find_breakevens(_rows([0.0, 0.0, 5.0])) == [0.0, 1.0]
    assert find_breakevens(_rows([0.0, 3.0])) == [0.0]


def test_zero_in_final_year_is_not_a_crossing():
    assert find_breakevens(_rows([1.0, 0.0])) == []


def test_breakevens_lie_between_bracketing_years():
    required = RequiredInputs(
        home_price=450_000.0,
        monthly_rent=2_600.0,
        mortgage_rate=0.0675,
        down_pct=0.10,
        years=30,
    )
    result = compare_scenarios(required, OptionalAssumptions())
    rows = result.snapshots
    for point in result.breakevens:
        lower = int(point)
        if point == lower:
            assert rows[lower].diff == 0
            continue
        prev, curr = rows[lower], rows[lower + 1]
        assert prev.year <= point <= curr.year
        assert prev.diff * curr.diff < 0
        # Linear interpolation of the difference vanishes at the reported year.
        t = point - prev.year
        assert prev.diff + t * (curr.diff - prev.diff) == pytest.approx(0.0, abs=1e-6)
