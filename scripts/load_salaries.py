#!/usr/bin/env python3
"""Load monthly salary records for one owner from a CSV file.

Expected columns: ``employee_id``, ``employee_name``, ``year_month``
(``YYYYMM`` or ``YYYY-MM``), ``salary_amount`` and optionally
``department`` and ``position``.
"""
from __future__ import annotations

import argparse
import csv
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from socialfund.core.logger import get_logger, init_logging, timeit  # noqa: E402
from socialfund.db.engine import create_schema  # noqa: E402
from socialfund.db.session import bound_engine, get_sessionmaker, session_scope  # noqa: E402
from socialfund.domain.calculator import SalaryRecord  # noqa: E402
from socialfund.repositories import SalaryRepository  # noqa: E402

logger = get_logger(__name__)


def parse_year_month(raw: str) -> int:
    """Turn ``2024-03`` or ``202403`` into ``202403``."""

    digits = raw.strip().replace("-", "").replace("/", "")
    if len(digits) != 6 or not digits.isdigit():
        raise ValueError(f"Invalid year_month value: {raw!r}")
    value = int(digits)
    if not 1 <= value % 100 <= 12:
        raise ValueError(f"Invalid month in year_month value: {raw!r}")
    return value


def read_records(path: Path) -> list[SalaryRecord]:
    with path.open(newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    records = []
    for row in rows:
        records.append(
            SalaryRecord(
                employee_id=row["employee_id"].strip(),
                employee_name=(row.get("employee_name") or "").strip() or None,
                year_month=parse_year_month(row["year_month"]),
                amount=row["salary_amount"],
                department=(row.get("department") or "").strip() or None,
                position=(row.get("position") or "").strip() or None,
            )
        )
    return records


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("csv_path", type=Path, help="CSV file with salary rows")
    parser.add_argument("--owner", required=True, help="Owner id the salaries belong to")
    parser.add_argument("--database-url", default=None, help="Override the configured database URL")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    init_logging()

    records = read_records(args.csv_path)
    factory = get_sessionmaker(args.database_url)
    create_schema(bound_engine(factory))

    with timeit("Load salaries", logger=logger, unit="rows", total=len(records)) as timer:
        with session_scope(factory) as session:
            repository = SalaryRepository(session)
            for record in records:
                repository.add(args.owner, record)
                timer.add()
    logger.info("Loaded %d salary rows for owner %s", len(records), args.owner)


if __name__ == "__main__":
    main()
