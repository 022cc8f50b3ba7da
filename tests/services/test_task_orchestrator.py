from decimal import Decimal
from unittest.mock import create_autospec

import pytest
from sqlalchemy.orm import sessionmaker

from socialfund.core.errors import BusinessError, ConflictError, NotFoundError, ValidationError
from socialfund.domain.tasks import TaskStatus
from socialfund.services import batch_calculation, task_orchestrator
from socialfund.services.batch_calculation import BatchContributionService, BatchOutcome
from socialfund.services.task_orchestrator import CalculationRequest, CalculationTaskService

OWNER = "owner-1"


@pytest.fixture
def make_service(session_factory, dispatcher, clock):
    def _make(**kwargs) -> CalculationTaskService:
        kwargs.setdefault("clock", clock)
        return CalculationTaskService(session_factory, dispatcher, **kwargs)

    return _make


@pytest.fixture
def seeded(seed_rate_table, seed_salaries):
    seed_rate_table(2025, base_min="2000", base_max="30000")
    seed_salaries(OWNER, 2025, {"E1": [5000, 6000, 7000], "E2": [8000, 8000]})


def _start(service: CalculationTaskService, year: int = 2025):
    return service.create_and_start(
        OWNER, CalculationRequest(city_name="Foshan", calculation_year=year)
    )


def test_create_and_start_returns_pending_task_without_running_it(
    make_service, dispatcher, seeded
) -> None:
    service = make_service()

    accepted = _start(service)

    assert accepted.total_employees == 2
    assert accepted.task_name == "Foshan 2025 contribution calculation"
    assert accepted.status is TaskStatus.PENDING
    assert len(dispatcher.jobs) == 1

    task = service.get_task(accepted.task_id, OWNER)
    assert task.status is TaskStatus.PENDING
    assert task.processed_employees == 0
    assert task.message == "waiting to start"


def test_request_defaults_to_configured_city_and_current_year(
    make_service, seeded
) -> None:
    service = make_service(default_city="Foshan")

    accepted = service.create_and_start(OWNER, CalculationRequest())

    assert accepted.city_name == "Foshan"
    assert accepted.calculation_year == 2025


@pytest.mark.parametrize("year", [1999, 2101])
def test_out_of_range_year_is_rejected_before_touching_storage(dispatcher, year) -> None:
    factory = create_autospec(sessionmaker, instance=True)
    service = CalculationTaskService(
        factory, dispatcher, batch_service=create_autospec(BatchContributionService, instance=True)
    )

    with pytest.raises(ValidationError):
        service.create_and_start(OWNER, CalculationRequest(calculation_year=year))

    factory.assert_not_called()
    assert dispatcher.jobs == []


def test_out_of_range_year_creates_no_task_row(make_service, seeded) -> None:
    service = make_service()

    with pytest.raises(ValidationError):
        _start(service, year=1999)

    assert service.list_tasks(OWNER).total == 0


def test_missing_rate_table_is_not_found(make_service, seed_salaries) -> None:
    seed_salaries(OWNER, 2025, {"E1": [5000]})
    service = make_service()

    with pytest.raises(NotFoundError):
        _start(service)

    assert service.list_tasks(OWNER).total == 0


def test_missing_salaries_is_a_business_error(make_service, seed_rate_table) -> None:
    seed_rate_table(2025)
    service = make_service()

    with pytest.raises(BusinessError):
        _start(service)


def test_second_start_conflicts_and_leaves_first_task_alone(make_service, seeded) -> None:
    service = make_service()
    first = _start(service)

    with pytest.raises(ConflictError):
        _start(service)

    page = service.list_tasks(OWNER)
    assert page.total == 1
    assert page.items[0].id == first.task_id
    assert page.items[0].status is TaskStatus.PENDING


def test_execute_completes_task_with_summary(make_service, dispatcher, seeded) -> None:
    service = make_service()
    accepted = _start(service)

    assert dispatcher.run_all() == 1

    task = service.get_task(accepted.task_id, OWNER)
    assert task.status is TaskStatus.COMPLETED
    assert task.processed_employees == 2
    assert task.progress_percentage == 100
    assert task.message == "finished"
    assert task.error_message is None
    assert task.started_at is not None
    assert task.completed_at is not None
    assert task.summary.employee_count == 2
    assert task.summary.total_company_cost == Decimal("4774.00")
    assert task.summary.total_employee_cost == Decimal("3108.00")
    assert task.summary.average_cost == Decimal("3941.00")


def test_partial_failure_completes_with_note(
    make_service, dispatcher, seeded, monkeypatch
) -> None:
    real_employee_result = batch_calculation.employee_result

    def flaky_employee_result(employee_id, *args, **kwargs):
        if employee_id == "E2":
            raise ArithmeticError("corrupt history")
        return real_employee_result(employee_id, *args, **kwargs)

    monkeypatch.setattr(batch_calculation, "employee_result", flaky_employee_result)
    service = make_service()
    accepted = _start(service)

    dispatcher.run_all()

    task = service.get_task(accepted.task_id, OWNER)
    assert task.status is TaskStatus.COMPLETED
    assert task.processed_employees == 1
    assert task.summary.employee_count == 1
    assert "1 employee records failed" in task.error_message


def test_unsuccessful_outcome_fails_task(make_service, dispatcher, seeded) -> None:
    batch = create_autospec(BatchContributionService, instance=True)
    batch.run_batch_contributions.return_value = BatchOutcome(False, "rate table vanished")
    service = make_service(batch_service=batch)
    accepted = _start(service)

    dispatcher.run_all()

    task = service.get_task(accepted.task_id, OWNER)
    assert task.status is TaskStatus.FAILED
    assert task.error_message == "rate table vanished"
    assert task.completed_at is not None
    batch.run_batch_contributions.assert_called_once_with(
        OWNER, "Foshan", 2025, task_id=accepted.task_id
    )


def test_missing_outcome_fails_task(make_service, dispatcher, seeded) -> None:
    batch = create_autospec(BatchContributionService, instance=True)
    batch.run_batch_contributions.return_value = None
    service = make_service(batch_service=batch)
    accepted = _start(service)

    dispatcher.run_all()

    task = service.get_task(accepted.task_id, OWNER)
    assert task.status is TaskStatus.FAILED
    assert task.error_message == "Bulk calculation returned no outcome"


def test_exception_in_job_is_recorded_not_raised(make_service, dispatcher, seeded) -> None:
    batch = create_autospec(BatchContributionService, instance=True)
    batch.run_batch_contributions.side_effect = RuntimeError("database went away")
    service = make_service(batch_service=batch)
    accepted = _start(service)

    dispatcher.run_all()

    task = service.get_task(accepted.task_id, OWNER)
    assert task.status is TaskStatus.FAILED
    assert task.error_message == "database went away"
    assert task.processed_employees == 0


def test_missing_summary_fails_task(make_service, dispatcher, seeded) -> None:
    batch = create_autospec(BatchContributionService, instance=True)
    batch.run_batch_contributions.return_value = BatchOutcome(True, "ok", processed_count=2)
    service = make_service(batch_service=batch)
    accepted = _start(service)

    dispatcher.run_all()

    task = service.get_task(accepted.task_id, OWNER)
    assert task.status is TaskStatus.FAILED
    assert task.error_message == "Calculation summary is unavailable"


def test_cancel_then_delete(make_service, seeded) -> None:
    service = make_service()
    accepted = _start(service)

    with pytest.raises(BusinessError):
        service.delete(accepted.task_id, OWNER)

    cancelled = service.cancel(accepted.task_id, OWNER)
    assert cancelled.status is TaskStatus.CANCELLED
    assert cancelled.completed_at is not None

    with pytest.raises(BusinessError):
        service.cancel(accepted.task_id, OWNER)

    service.delete(accepted.task_id, OWNER)
    with pytest.raises(NotFoundError):
        service.get_task(accepted.task_id, OWNER)


def test_completed_task_cannot_be_cancelled(make_service, dispatcher, seeded) -> None:
    service = make_service()
    accepted = _start(service)
    dispatcher.run_all()

    with pytest.raises(BusinessError):
        service.cancel(accepted.task_id, OWNER)


def test_cancelled_task_is_overwritten_by_its_running_job(
    make_service, dispatcher, seeded
) -> None:
    service = make_service()
    accepted = _start(service)
    service.cancel(accepted.task_id, OWNER)

    dispatcher.run_all()

    assert service.get_task(accepted.task_id, OWNER).status is TaskStatus.COMPLETED


def test_cancel_frees_the_owner_for_a_new_task(make_service, seeded) -> None:
    service = make_service()
    first = _start(service)
    service.cancel(first.task_id, OWNER)

    second = _start(service)

    assert second.task_id != first.task_id


def test_tasks_are_scoped_to_their_owner(make_service, seeded) -> None:
    service = make_service()
    accepted = _start(service)

    with pytest.raises(NotFoundError):
        service.get_task(accepted.task_id, "someone-else")
    with pytest.raises(NotFoundError):
        service.cancel(accepted.task_id, "someone-else")


def test_short_task_id_is_not_found_without_a_lookup(dispatcher) -> None:
    factory = create_autospec(sessionmaker, instance=True)
    service = CalculationTaskService(
        factory, dispatcher, batch_service=create_autospec(BatchContributionService, instance=True)
    )

    with pytest.raises(NotFoundError):
        service.get_progress("abc", OWNER)

    factory.assert_not_called()


def test_progress_view(make_service, seeded) -> None:
    service = make_service()
    accepted = _start(service)

    progress = service.get_progress(accepted.task_id, OWNER)

    assert progress.status is TaskStatus.PENDING
    assert progress.progress_percentage == 0
    assert progress.processed == 0
    assert progress.total == 2
    assert progress.message == "waiting to start"


def test_list_tasks_pages_newest_first(make_service, seeded) -> None:
    service = make_service()
    ids = []
    for _ in range(3):
        accepted = _start(service)
        service.cancel(accepted.task_id, OWNER)
        ids.append(accepted.task_id)

    first_page = service.list_tasks(OWNER, limit=2)
    second_page = service.list_tasks(OWNER, limit=2, offset=2)

    assert [task.id for task in first_page.items] == [ids[2], ids[1]]
    assert first_page.total == 3
    assert first_page.has_more is True
    assert [task.id for task in second_page.items] == [ids[0]]
    assert second_page.has_more is False
    assert service.list_tasks(OWNER, "completed").total == 0
    assert service.list_tasks(OWNER, TaskStatus.CANCELLED).total == 3


@pytest.mark.parametrize(
    "kwargs",
    [
        {"limit": 0},
        {"limit": 101},
        {"offset": -1},
        {"status": "running"},
    ],
)
def test_list_tasks_rejects_invalid_parameters(make_service, kwargs) -> None:
    service = make_service()
    status = kwargs.pop("status", None)

    with pytest.raises(ValidationError):
        service.list_tasks(OWNER, status, **kwargs)


def test_dispatch_failure_marks_task_failed(make_service, dispatcher, seeded) -> None:
    dispatcher.shutdown()
    service = make_service()

    with pytest.raises(RuntimeError):
        _start(service)

    page = service.list_tasks(OWNER)
    assert page.total == 1
    assert page.items[0].status is TaskStatus.FAILED
    assert page.items[0].error_message == "Dispatcher has been shut down"


def test_status_helpers_are_exposed_on_the_service() -> None:
    assert CalculationTaskService.progress(3, 10) == 30
    assert CalculationTaskService.status_message(TaskStatus.PROCESSING, 30) == "in progress, 30%"


def test_failure_after_progress_keeps_processed_count(
    make_service, dispatcher, seeded, monkeypatch
) -> None:
    monkeypatch.setattr(
        task_orchestrator.ContributionResultRepository,
        "aggregate_summary",
        lambda self, owner_id, year: None,
    )
    service = make_service()
    accepted = _start(service)

    dispatcher.run_all()

    task = service.get_task(accepted.task_id, OWNER)
    assert task.status is TaskStatus.FAILED
    assert task.error_message == "Calculation summary is unavailable"
    assert task.processed_employees == 2
    assert task.summary is None
