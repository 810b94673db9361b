from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, NamedTuple, Optional

import requests
from google.cloud import bigquery

from .schemas import LocationDefaults

logger = logging.getLogger(__name__)


class AcsColumn(NamedTuple):
    code: str
    per_month: float  # divisor that turns the published estimate into a monthly figure


# Median rent and home value are levels; taxes and insurance are annual.
ACS_COLUMNS: Dict[str, AcsColumn] = {
    "median_rent": AcsColumn("B25064_001E", 1),
    "home_value": AcsColumn("B25077_001E", 1),
    "real_estate_taxes": AcsColumn("B25103_001E", 12),
    "home_insurance": AcsColumn("B25141_001E", 12),
    "electricity": AcsColumn("B25132_001E", 1),
    "gas": AcsColumn("B25133_001E", 1),
    "water_sewer": AcsColumn("B25134_001E", 12),
    "other_fuel": AcsColumn("B25135_001E", 12),
}
UTILITY_KEYS = ("electricity", "gas", "water_sewer", "other_fuel")

HMDA_MEDIANS_SQL = """
    SELECT
      ANY_VALUE(derived_msa_md_name) AS name,
      APPROX_QUANTILES(CAST(property_value AS FLOAT64), 2)[OFFSET(1)] AS property_value,
      APPROX_QUANTILES(CAST(loan_amount AS FLOAT64), 2)[OFFSET(1)] AS loan_amount,
      AVG(CAST(interest_rate AS FLOAT64)) AS interest_rate
    FROM `{table}`
    WHERE as_of_year = @year
      AND CAST(derived_msa_md AS STRING) = @cbsa
      AND loan_purpose = 1
      AND property_value IS NOT NULL
      AND loan_amount IS NOT NULL
      AND interest_rate IS NOT NULL
    GROUP BY derived_msa_md
"""


class CensusACSClient:
    """Monthly rent, home value and owner running costs for one CBSA."""

    BASE_URL = "https://api.census.gov/data"
    GEO_KEY = "metropolitan statistical area/micropolitan statistical area"

    def __init__(
        self,
        api_key: Optional[str],
        dataset: str = "acs/acs5",
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.dataset = dataset
        self.session = session or requests.Session()

    def fetch_housing_metrics(self, cbsa: str, *, year: int = 2023) -> Dict[str, float]:
        codes = sorted(column.code for column in ACS_COLUMNS.values())
        params = {"get": ",".join(["NAME"] + codes), "for": f"{self.GEO_KEY}:{cbsa}"}
        if self.api_key:
            params["key"] = self.api_key
        else:
            logger.warning("No Census API key set; ACS requests may be throttled.")

        logger.info("Fetching ACS %s metrics for CBSA %s", year, cbsa)
        response = self.session.get(
            f"{self.BASE_URL}/{year}/{self.dataset}", params=params, timeout=30
        )
        response.raise_for_status()
        table = response.json()
        if len(table) < 2:
            raise RuntimeError(f"ACS query returned no rows for CBSA {cbsa}")
        return self._parse_row(cbsa, dict(zip(table[0], table[1])))

    def _parse_row(self, cbsa: str, row: Dict[str, str]) -> Dict[str, float]:
        metrics: Dict[str, float] = {"name": row.get("NAME", f"CBSA {cbsa}")}
        for key, column in ACS_COLUMNS.items():
            estimate = _to_float(row.get(column.code))
            # Suppressed estimates come back as large negative sentinels.
            if estimate is None or estimate < 0:
                logger.warning("ACS %s missing for CBSA %s", column.code, cbsa)
                estimate = 0.0
            metrics[key] = estimate / column.per_month
        metrics["utilities"] = sum(metrics[key] for key in UTILITY_KEYS)
        return metrics


class HMDAClient:
    """Median purchase price, loan size and average rate from HMDA filings."""

    def __init__(
        self,
        *,
        table: str,
        client: Optional[bigquery.Client] = None,
        project: Optional[str] = None,
    ) -> None:
        self.client = client if client is not None else bigquery.Client(project=project)
        self.table = table

    def fetch_cbsa_summary(self, cbsa: str, *, year: int = 2023) -> Dict[str, float]:
        job_config = bigquery.QueryJobConfig(
            query_parameters=[
                bigquery.ScalarQueryParameter("year", "INT64", year),
                bigquery.ScalarQueryParameter("cbsa", "STRING", cbsa),
            ]
        )
        logger.info("Querying %s for CBSA %s (%s)", self.table, cbsa, year)
        rows = list(
            self.client.query(
                HMDA_MEDIANS_SQL.format(table=self.table), job_config=job_config
            ).result()
        )
        if not rows:
            raise RuntimeError(f"No HMDA results for CBSA {cbsa} in {self.table}")
        row = rows[0]
        return {
            "name": row["name"],
            "property_value": row["property_value"] or 0.0,
            "loan_amount": row["loan_amount"] or 0.0,
            "interest_rate": row["interest_rate"] or 0.0,
        }


@dataclass
class LocationDataAssembler:
    acs_client: CensusACSClient
    hmda_client: HMDAClient

    def build_defaults(
        self,
        cbsa: str,
        *,
        acs_year: int = 2023,
        hmda_year: int = 2023,
    ) -> LocationDefaults:
        acs = self.acs_client.fetch_housing_metrics(cbsa, year=acs_year)
        hmda = self.hmda_client.fetch_cbsa_summary(cbsa, year=hmda_year)

        property_value = hmda.get("property_value") or 0.0
        if property_value <= 0:
            property_value = acs.get("home_value", 0.0)
            logger.warning(
                "HMDA property value missing for %s; using ACS median %.0f",
                cbsa,
                property_value,
            )

        return LocationDefaults(
            cbsa=cbsa,
            name=hmda.get("name") or acs.get("name") or f"CBSA {cbsa}",
            median_rent=acs.get("median_rent", 0.0),
            property_value=property_value,
            loan_amount=hmda.get("loan_amount", 0.0),
            interest_rate=hmda.get("interest_rate", 0.0),
            monthly_taxes=acs.get("real_estate_taxes", 0.0),
            monthly_insurance=acs.get("home_insurance", 0.0),
            monthly_utilities=acs.get("utilities", 0.0),
        )


def _to_float(value: Optional[str]) -> Optional[float]:
    if value in (None, "", "null"):
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"Could not convert ACS value '{value}' to float") from exc
