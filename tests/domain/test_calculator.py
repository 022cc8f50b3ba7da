from decimal import Decimal

import pytest

from socialfund.domain.calculator import (
    RateTable,
    SalaryRecord,
    average_monthly_salary,
    company_total,
    contribution_base,
    contributions,
    employee_result,
    employee_total,
)
from socialfund.domain.numbers import round_cents, to_decimal
from tests.conftest import make_rate_table


def _records(amounts, employee_id="E1", name="Alice", year=2025):
    return [
        SalaryRecord(
            employee_id=employee_id,
            employee_name=name,
            year_month=year * 100 + month,
            amount=amount,
        )
        for month, amount in enumerate(amounts, start=1)
    ]


def test_average_of_empty_history_is_zero() -> None:
    assert average_monthly_salary([]) == Decimal("0")


def test_average_monthly_salary() -> None:
    assert average_monthly_salary(_records([5000, 6000, 7000])) == Decimal("6000")


def test_average_treats_unparsable_amounts_as_zero() -> None:
    records = _records(["6000", "n/a", None, float("nan")])

    assert average_monthly_salary(records) == Decimal("1500")


@pytest.mark.parametrize(
    ("average", "expected"),
    [
        (Decimal("100"), Decimal("2000")),
        (Decimal("2000"), Decimal("2000")),
        (Decimal("6000"), Decimal("6000")),
        (Decimal("30000"), Decimal("30000")),
        (Decimal("45000"), Decimal("30000")),
    ],
)
def test_contribution_base_clamps_to_city_bounds(average, expected) -> None:
    rate_table = make_rate_table()

    assert contribution_base(average, rate_table) == expected


def test_contribution_base_accepts_numeric_strings() -> None:
    assert contribution_base("12000.5", make_rate_table()) == Decimal("12000.5")


def test_employer_only_categories_ignore_employee_rates() -> None:
    rate_table = make_rate_table(injury_employee="0.5", maternity_employee="0.3")

    breakdown = contributions(Decimal("10000"), rate_table)

    assert breakdown.injury_employee == Decimal("0")
    assert breakdown.maternity_employee == Decimal("0")
    assert breakdown.injury_company == Decimal("20.00")
    assert breakdown.maternity_company == Decimal("160.00")


def test_contributions_round_each_category_to_cents() -> None:
    rate_table = RateTable(
        city_name="Foshan",
        year=2025,
        base_min=0,
        base_max=100000,
        pension_company="0.14",
    )

    breakdown = contributions(Decimal("10001"), rate_table)

    assert breakdown.pension_company == Decimal("1400.14")
    assert breakdown.medical_company == Decimal("0.00")


def test_totals_sum_rounded_categories() -> None:
    rate_table = make_rate_table(
        pension_company="0.145",
        medical_company="0.145",
        unemployment_company="0",
        injury_company="0",
        maternity_company="0",
        housing_fund_company="0",
    )

    breakdown = contributions(Decimal("1"), rate_table)

    # Each category rounds 0.145 up to 0.15 before summing.
    assert company_total(breakdown) == Decimal("0.30")
    assert round_cents(Decimal("1") * Decimal("0.29")) != company_total(breakdown)


def test_employee_result_for_three_month_history() -> None:
    rate_table = make_rate_table(base_min="2000", base_max="30000")

    result = employee_result("E1", _records([5000, 6000, 7000]), rate_table, 2025, "owner-1")

    assert result.avg_salary == Decimal("6000.00")
    assert result.contribution_base == Decimal("6000.00")
    assert result.breakdown.pension_company == Decimal("840.00")
    assert result.breakdown.pension_employee == Decimal("480.00")
    assert result.total_company == company_total(result.breakdown)
    assert result.total_employee == employee_total(result.breakdown)
    assert result.total_all == result.total_company + result.total_employee
    assert result.city_name == "Foshan"
    assert result.owner_id == "owner-1"
    assert result.employee_name == "Alice"


def test_employee_result_falls_back_to_generated_name() -> None:
    result = employee_result("E9", _records([4000], name="  "), make_rate_table(), 2025, "o")

    assert result.employee_name == "Employee E9"


@pytest.mark.parametrize(
    "overrides",
    [
        {"base_min": "5000", "base_max": "4000"},
        {"pension_company": "1.5"},
        {"housing_fund_employee": "-0.1"},
    ],
)
def test_rate_table_rejects_invalid_values(overrides) -> None:
    with pytest.raises(ValueError):
        make_rate_table(**overrides)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("12.5", Decimal("12.5")),
        (7, Decimal("7")),
        (0.1, Decimal("0.1")),
        ("", Decimal("0")),
        ("abc", Decimal("0")),
        (None, Decimal("0")),
        (True, Decimal("0")),
        ("Infinity", Decimal("0")),
    ],
)
def test_to_decimal(raw, expected) -> None:
    assert to_decimal(raw) == expected
