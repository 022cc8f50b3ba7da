#!/usr/bin/env python3
"""Create the schema and store the default Foshan contribution rate table."""
from __future__ import annotations

import argparse
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from socialfund.core.logger import get_logger, init_logging  # noqa: E402
from socialfund.db.engine import create_schema  # noqa: E402
from socialfund.db.session import bound_engine, get_sessionmaker, session_scope  # noqa: E402
from socialfund.domain.calculator import RateTable  # noqa: E402
from socialfund.repositories import RateTableRepository  # noqa: E402

logger = get_logger(__name__)


def foshan_rate_table(year: int, city_name: str = "Foshan") -> RateTable:
    """Published Foshan rates; injury and maternity are employer-only."""

    return RateTable(
        city_name=city_name,
        year=year,
        base_min=Decimal("1900"),
        base_max=Decimal("26421"),
        pension_company=Decimal("0.14"),
        pension_employee=Decimal("0.08"),
        medical_company=Decimal("0.055"),
        medical_employee=Decimal("0.02"),
        unemployment_company=Decimal("0.008"),
        unemployment_employee=Decimal("0.002"),
        injury_company=Decimal("0.002"),
        maternity_company=Decimal("0.016"),
        housing_fund_company=Decimal("0.12"),
        housing_fund_employee=Decimal("0.12"),
    )


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--year",
        type=int,
        action="append",
        help="Year to seed; repeat for several years. Defaults to the current year.",
    )
    parser.add_argument("--city", default="Foshan", help="City name stored on the rate table")
    parser.add_argument("--database-url", default=None, help="Override the configured database URL")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    init_logging()

    years = args.year or [date.today().year]
    factory = get_sessionmaker(args.database_url)
    create_schema(bound_engine(factory))

    with session_scope(factory) as session:
        repository = RateTableRepository(session)
        for year in years:
            repository.upsert(foshan_rate_table(year, args.city))
            logger.info("Stored rate table for %s %s", args.city, year)


if __name__ == "__main__":
    main()
