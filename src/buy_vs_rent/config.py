"""Scenario files and defaults.

A scenario is a JSON object with two sections::

    {
      "required": {"home_price": 450000, "monthly_rent": 2600,
                   "mortgage_rate": 0.0675, "down_pct": 0.10, "years": 10},
      "assumptions": {"term_years": 30, "invest_return": 0.07}
    }

All rates are fractions. Missing assumptions fall back to the
:class:`~buy_vs_rent.schemas.OptionalAssumptions` defaults.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .schemas import OptionalAssumptions, RequiredInputs, Violation
from .validation import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_REQUIRED = RequiredInputs(
    home_price=450_000.0,
    monthly_rent=2_600.0,
    mortgage_rate=0.0675,
    down_pct=0.10,
    years=10,
)

DEFAULT_HMDA_TABLE = "bigquery-public-data.hmda.hmda_2023"

_INT_FIELDS = {"years", "term_years"}


def census_api_key() -> Optional[str]:
    return os.environ.get("CENSUS_API_KEY")


def hmda_table() -> str:
    return os.environ.get("HMDA_TABLE", DEFAULT_HMDA_TABLE)


def scenario_from_mapping(
    data: Mapping[str, Any],
) -> Tuple[RequiredInputs, OptionalAssumptions]:
    violations: List[Violation] = []
    unknown_sections = set(data) - {"required", "assumptions"}
    for section in sorted(unknown_sections):
        violations.append(Violation(section, f"Unknown scenario section '{section}'."))

    required_kwargs = _coerce_section(
        data.get("required") or {}, RequiredInputs, violations, require_all=True
    )
    assumption_kwargs = _coerce_section(
        data.get("assumptions") or {}, OptionalAssumptions, violations
    )
    if violations:
        raise ValidationError(violations)
    return RequiredInputs(**required_kwargs), OptionalAssumptions(**assumption_kwargs)


def scenario_to_mapping(
    required: RequiredInputs, assumptions: OptionalAssumptions
) -> Dict[str, Dict[str, Any]]:
    return {"required": asdict(required), "assumptions": asdict(assumptions)}


def load_scenario(path: Union[str, Path]) -> Tuple[RequiredInputs, OptionalAssumptions]:
    path = Path(path)
    logger.info("Loading scenario from %s", path)
    with path.open("r", encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, dict):
        raise ValidationError(
            [Violation("scenario", "Scenario file must contain a JSON object.")]
        )
    return scenario_from_mapping(data)


def _coerce_section(
    section: Mapping[str, Any],
    cls: type,
    violations: List[Violation],
    *,
    require_all: bool = False,
) -> Dict[str, Any]:
    known = {f.name for f in fields(cls)}
    for name in sorted(set(section) - known):
        violations.append(Violation(name, f"Unknown field '{name}'."))
    if require_all:
        for name in sorted(known - set(section)):
            violations.append(Violation(name, f"Missing required field '{name}'."))

    kwargs: Dict[str, Any] = {}
    for name in known & set(section):
        raw = section[name]
        try:
            kwargs[name] = _coerce_number(name, raw)
        except (TypeError, ValueError):
            violations.append(Violation(name, f"Could not read '{raw}' as a number."))
    return kwargs


def _coerce_number(name: str, raw: Any) -> Union[int, float]:
    if isinstance(raw, bool):
        raise TypeError(name)
    value = float(raw)
    if name in _INT_FIELDS:
        if not value.is_integer():
            raise ValueError(name)
        return int(value)
    return value
