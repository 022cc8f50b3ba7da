from decimal import Decimal

from socialfund.db.session import session_scope
from socialfund.repositories import RateTableRepository
from tests.conftest import make_rate_table


def test_rates_keep_six_decimal_places(session_factory) -> None:
    rate_table = make_rate_table(injury_company="0.00075", pension_company="0.14125")

    with session_scope(session_factory) as session:
        RateTableRepository(session).upsert(rate_table)

    with session_scope(session_factory) as session:
        stored = RateTableRepository(session).get_rate_table(2025, "Foshan")

    assert stored.injury_company == Decimal("0.00075")
    assert stored.pension_company == Decimal("0.14125")
    assert stored.base_max == Decimal("30000")


def test_upsert_overwrites_existing_rates(session_factory) -> None:
    with session_scope(session_factory) as session:
        RateTableRepository(session).upsert(make_rate_table())
    with session_scope(session_factory) as session:
        RateTableRepository(session).upsert(make_rate_table(medical_company="0.065"))

    with session_scope(session_factory) as session:
        repository = RateTableRepository(session)
        stored = repository.get_rate_table(2025, "Foshan")
        missing = repository.get_rate_table(2026, "Foshan")

    assert stored.medical_company == Decimal("0.065")
    assert missing is None
