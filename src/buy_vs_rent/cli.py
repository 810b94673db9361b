from __future__ import annotations

import json
import logging
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import requests
import typer
from google.api_core.exceptions import GoogleAPIError

from . import config
from .data_sources import CensusACSClient, HMDAClient, LocationDataAssembler
from .export import write_csv
from .model import compare_scenarios
from .schemas import ComparisonResult, OptionalAssumptions, RequiredInputs, YearSnapshot
from .validation import ValidationError, ensure_valid

app = typer.Typer(help="Compare the net worth impact of buying versus renting.")

logger = logging.getLogger(__name__)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def run(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        exists=True,
        dir_okay=False,
        help="JSON scenario file; flags below override its values.",
    ),
    home_price: Optional[float] = typer.Option(None, help="Purchase price (default 450000)."),
    monthly_rent: Optional[float] = typer.Option(None, help="Starting monthly rent (default 2600)."),
    mortgage_rate: Optional[float] = typer.Option(
        None, help="Annual mortgage rate as a fraction (default 0.0675)."
    ),
    down_pct: Optional[float] = typer.Option(
        None, help="Down payment as a fraction of price (default 0.10)."
    ),
    years: Optional[int] = typer.Option(None, help="Years lived in the home (default 10)."),
    term_years: Optional[int] = typer.Option(None, help="Mortgage term in years (default 30)."),
    home_appreciation: Optional[float] = typer.Option(None, help="Annual home appreciation (default 0.03)."),
    rent_inflation: Optional[float] = typer.Option(None, help="Annual rent inflation (default 0.03)."),
    cost_inflation: Optional[float] = typer.Option(
        None, help="Annual inflation of utilities and renter's insurance (default 0.03)."
    ),
    invest_return: Optional[float] = typer.Option(None, help="Annual investment return (default 0.07)."),
    prop_tax_rate: Optional[float] = typer.Option(None, help="Annual property tax rate (default 0.011)."),
    home_ins_rate: Optional[float] = typer.Option(None, help="Annual home insurance rate (default 0.0035)."),
    pmi_rate: Optional[float] = typer.Option(None, help="Annual PMI rate on the loan (default 0.007)."),
    buy_close_pct: Optional[float] = typer.Option(None, help="Buying closing costs (default 0.03)."),
    sell_close_pct: Optional[float] = typer.Option(None, help="Selling closing costs (default 0.06)."),
    maint_rate: Optional[float] = typer.Option(None, help="Annual maintenance rate (default 0.01)."),
    capex_rate: Optional[float] = typer.Option(None, help="Annual capex reserve rate (default 0.005)."),
    util_buy: Optional[float] = typer.Option(None, help="Monthly utilities when owning (default 250)."),
    util_rent: Optional[float] = typer.Option(None, help="Monthly utilities when renting (default 250)."),
    renters_ins: Optional[float] = typer.Option(None, help="Monthly renter's insurance (default 15)."),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Write the yearly ledger to this CSV file."),
    show_table: bool = typer.Option(False, help="Print the yearly ledger."),
    as_json: bool = typer.Option(False, "--json", help="Dump the full result as JSON."),
) -> None:
    """
    Run a buy-vs-rent comparison from flags and/or a scenario file.
    """
    options = dict(locals())
    required, assumptions = _load_base(config_path)
    required = _overlay(required, options)
    assumptions = _overlay(assumptions, options)

    _validate_or_exit(required, assumptions)
    _report(compare_scenarios(required, assumptions), show_table, as_json, csv_path)


@app.command()
def location(
    cbsa: str = typer.Argument(..., help="CBSA code, e.g., 31080 for Los Angeles."),
    years: int = typer.Option(10, help="Years lived in the home."),
    acs_year: int = typer.Option(2023, help="ACS vintage to query."),
    hmda_year: int = typer.Option(2023, help="HMDA filing year to query."),
    census_api_key: Optional[str] = typer.Option(
        default_factory=config.census_api_key,
        help="Census API key (env CENSUS_API_KEY if omitted).",
    ),
    hmda_table: str = typer.Option(
        default_factory=config.hmda_table,
        help="Fully-qualified HMDA BigQuery table (env HMDA_TABLE).",
    ),
    gcp_project: Optional[str] = typer.Option(
        None, help="GCP project for the BigQuery client (defaults to env)."
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        exists=True,
        dir_okay=False,
        help="Scenario file whose assumptions are used instead of the defaults.",
    ),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Write the yearly ledger to this CSV file."),
    show_table: bool = typer.Option(False, help="Print the yearly ledger."),
    as_json: bool = typer.Option(False, "--json", help="Dump the full result as JSON."),
) -> None:
    """
    Seed price, rent, rate and running costs from ACS + HMDA data for a CBSA.
    """
    _, assumptions = _load_base(config_path)

    acs_client = CensusACSClient(api_key=census_api_key)
    hmda_client = HMDAClient(table=hmda_table, project=gcp_project)
    assembler = LocationDataAssembler(acs_client=acs_client, hmda_client=hmda_client)
    try:
        defaults = assembler.build_defaults(cbsa, acs_year=acs_year, hmda_year=hmda_year)
    except (requests.RequestException, GoogleAPIError, RuntimeError, ValueError) as exc:
        logger.error("Could not build defaults for CBSA %s: %s", cbsa, exc)
        typer.echo(f"Could not load data for CBSA {cbsa}: {exc}", err=True)
        raise typer.Exit(code=2)

    required = defaults.to_required(years)
    assumptions = defaults.apply_to(assumptions)

    if not as_json:
        typer.echo(f"Location: {defaults.name} (CBSA {defaults.cbsa})")
        typer.echo(f"Median property value: {_money(defaults.property_value)}")
        typer.echo(f"Median rent: {_money(defaults.median_rent)}")
        typer.echo(f"Mortgage rate: {defaults.interest_rate:.2f}%")
        typer.echo(f"Down payment: {defaults.down_pct:.1%}")
        typer.echo("")

    _validate_or_exit(required, assumptions)
    _report(compare_scenarios(required, assumptions), show_table, as_json, csv_path)


@app.command()
def example() -> None:
    """Print an example scenario file with every field at its default."""
    payload = config.scenario_to_mapping(config.DEFAULT_REQUIRED, OptionalAssumptions())
    typer.echo(json.dumps(payload, indent=2))


def _load_base(config_path: Optional[Path]):
    if config_path is None:
        return config.DEFAULT_REQUIRED, OptionalAssumptions()
    try:
        return config.load_scenario(config_path)
    except ValidationError as exc:
        _exit_with_violations(exc)
    except json.JSONDecodeError as exc:
        typer.echo(f"Could not parse {config_path}: {exc}", err=True)
        raise typer.Exit(code=1)


def _overlay(base, options: Dict[str, Any]):
    updates = {
        name: options[name]
        for name in asdict(base)
        if options.get(name) is not None
    }
    return replace(base, **updates)


def _validate_or_exit(required: RequiredInputs, assumptions: OptionalAssumptions) -> None:
    try:
        ensure_valid(required, assumptions)
    except ValidationError as exc:
        _exit_with_violations(exc)


def _exit_with_violations(exc: ValidationError) -> None:
    typer.echo("Fix these:", err=True)
    for violation in exc.violations:
        typer.echo(f"  • {violation.message}", err=True)
    raise typer.Exit(code=1)


def _report(
    result: ComparisonResult,
    show_table: bool,
    as_json: bool,
    csv_path: Optional[Path],
) -> None:
    if csv_path is not None:
        write_csv(result.snapshots, csv_path)
        logger.info("Wrote %d rows to %s", len(result.snapshots), csv_path)

    if as_json:
        typer.echo(json.dumps(_result_payload(result), indent=2))
        return

    final = result.final
    rec = result.better_option
    typer.echo(f"Monthly mortgage payment (P&I): {_money(result.monthly_payment)}")
    typer.echo(f"Recommendation: {rec}")
    typer.echo(
        f"Final difference: {_money(abs(result.final_difference))} ({rec} wins)"
    )
    typer.echo(
        f"Over {final.year} years, {rec} produces the higher Net Worth Impact "
        "(Net Worth Impact = Equity - Out-of-pocket costs)."
    )
    typer.echo(format_breakevens(result.breakevens))

    if show_table:
        typer.echo("")
        typer.echo(_format_table(result.snapshots))
    if csv_path is not None:
        typer.echo(f"Wrote {csv_path}")


def format_breakevens(breakevens: Sequence[float]) -> str:
    if not breakevens:
        return "Breakeven: no crossover"
    return "Breakeven: " + ", ".join(f"~Year {year:.1f}" for year in breakevens)


def _format_table(snapshots: Sequence[YearSnapshot]) -> str:
    header = f"{'Year':>4}  {'Better':<6}  {'Buy NWI':>14}  {'Rent NWI':>14}  {'Difference':>14}"
    lines = [header, "-" * len(header)]
    for snap in snapshots:
        lines.append(
            f"{snap.year:>4}  {snap.better:<6}  {_money(snap.buy_nwi):>14}  "
            f"{_money(snap.rent_nwi):>14}  {_money(snap.diff):>14}"
        )
    return "\n".join(lines)


def _money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def _result_payload(result: ComparisonResult) -> Dict[str, Any]:
    return {
        "required": asdict(result.required),
        "assumptions": asdict(result.assumptions),
        "monthly_payment": result.monthly_payment,
        "better_option": result.better_option,
        "final_difference": result.final_difference,
        "breakevens": list(result.breakevens),
        "snapshots": [asdict(snap) for snap in result.snapshots],
    }


if __name__ == "__main__":
    app()
