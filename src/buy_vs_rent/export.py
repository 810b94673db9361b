from __future__ import annotations

import csv
import io
import math
from pathlib import Path
from typing import Dict, List, Sequence, Union

from .schemas import YearSnapshot

CSV_HEADER = [
    "Year",
    "Better",
    "Buy_NWI",
    "Rent_NWI",
    "Diff_BuyMinusRent",
    "Buy_Equity",
    "Buy_OOP",
    "Rent_Equity",
    "Rent_OOP",
]

# Column -> snapshot attribute, in header order after Year/Better.
_MONEY_COLUMNS = {
    "Buy_NWI": "buy_nwi",
    "Rent_NWI": "rent_nwi",
    "Diff_BuyMinusRent": "diff",
    "Buy_Equity": "buy_equity",
    "Buy_OOP": "buy_oop",
    "Rent_Equity": "rent_equity",
    "Rent_OOP": "rent_oop",
}


def round_currency(value: float) -> int:
    """Round to whole currency units, halves toward +inf."""
    return int(math.floor(value + 0.5))


def snapshot_row(snapshot: YearSnapshot) -> List[Union[int, str]]:
    return [snapshot.year, snapshot.better] + [
        round_currency(getattr(snapshot, attr)) for attr in _MONEY_COLUMNS.values()
    ]


def snapshots_to_csv(snapshots: Sequence[YearSnapshot]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for snapshot in snapshots:
        writer.writerow(snapshot_row(snapshot))
    return buffer.getvalue()


def write_csv(snapshots: Sequence[YearSnapshot], path: Union[str, Path]) -> Path:
    path = Path(path)
    with path.open("w", newline="", encoding="utf-8") as fh:
        fh.write(snapshots_to_csv(snapshots))
    return path


def parse_csv(text: str) -> List[Dict[str, Union[int, str]]]:
    reader = csv.DictReader(io.StringIO(text))
    if reader.fieldnames != CSV_HEADER:
        raise ValueError(f"Unexpected CSV header: {reader.fieldnames}")
    rows: List[Dict[str, Union[int, str]]] = []
    for raw in reader:
        row: Dict[str, Union[int, str]] = {
            "Year": int(raw["Year"]),
            "Better": raw["Better"],
        }
        for column in _MONEY_COLUMNS:
            row[column] = int(raw[column])
        rows.append(row)
    return rows
