from __future__ import annotations

import uuid

import pytest

from reward_points import config
from reward_points.models.admin_budget import AdminBudget
from reward_points.services import budget_service
from reward_points.services.errors import BudgetExceededError, InvalidInputError
from reward_points.timeutil import shift_period_key


def test_first_check_creates_period_with_defaults(db) -> None:
    admin_id = uuid.uuid4()

    check = budget_service.validate_award(db, admin_id, 100)
    db.commit()

    budget = budget_service.get_current_budget(db, admin_id)
    assert budget.budget_limit == config.DEFAULT_MONTHLY_BUDGET
    assert budget.is_hard_limit == config.DEFAULT_BUDGET_HARD_LIMIT
    assert budget.consumed == 0
    assert budget.period_key == budget_service.current_period_key()
    assert check.consumed_after == 100
    assert not check.is_warning


def test_warning_once_threshold_is_reached(db) -> None:
    admin_id = uuid.uuid4()
    budget_service.set_budget(db, admin_id, 1000, is_hard_limit=False, warning_threshold_pct=80)

    quiet = budget_service.validate_award(db, admin_id, 799)
    noisy = budget_service.validate_award(db, admin_id, 800)

    assert not quiet.is_warning
    assert noisy.is_warning
    assert "80.0%" in noisy.message


def test_soft_limit_only_warns(db) -> None:
    admin_id = uuid.uuid4()
    budget_service.set_budget(db, admin_id, 1000, is_hard_limit=False)

    check = budget_service.validate_award(db, admin_id, 1500)
    budget = budget_service.record_award(db, admin_id, 1500)
    db.commit()

    assert check.is_warning
    assert "exceed" in check.message
    assert budget.consumed == 1500


def test_hard_limit_rejects_award(db) -> None:
    admin_id = uuid.uuid4()
    budget_service.set_budget(db, admin_id, 1000, is_hard_limit=True)
    budget_service.record_award(db, admin_id, 900)
    db.commit()

    with pytest.raises(BudgetExceededError) as exc_info:
        budget_service.validate_award(db, admin_id, 101)
    with pytest.raises(BudgetExceededError):
        budget_service.record_award(db, admin_id, 101)
    db.rollback()

    assert exc_info.value.details["remaining"] == 100
    assert budget_service.get_current_budget(db, admin_id).consumed == 900
    assert budget_service.validate_award(db, admin_id, 100).remaining == 0


def test_set_budget_validates_input(db) -> None:
    admin_id = uuid.uuid4()

    with pytest.raises(InvalidInputError):
        budget_service.set_budget(db, admin_id, 0)
    with pytest.raises(InvalidInputError):
        budget_service.set_budget(db, admin_id, 1000, warning_threshold_pct=101)


def test_hard_limit_cannot_be_set_below_consumed(db) -> None:
    admin_id = uuid.uuid4()
    budget_service.record_award(db, admin_id, 600)
    db.commit()

    with pytest.raises(InvalidInputError):
        budget_service.set_budget(db, admin_id, 500, is_hard_limit=True)

    budget = budget_service.set_budget(db, admin_id, 500, is_hard_limit=False)
    assert budget.budget_limit == 500
    assert budget.consumed == 600


def test_history_covers_recent_periods_newest_first(db) -> None:
    admin_id = uuid.uuid4()
    current = budget_service.current_period_key()
    for months_back in (0, 1, 13):
        db.add(
            AdminBudget(
                admin_id=admin_id,
                period_key=shift_period_key(current, -months_back),
                budget_limit=1000,
                is_hard_limit=False,
                warning_threshold_pct=80,
                consumed=0,
            )
        )
    db.commit()

    history = budget_service.get_budget_history(db, admin_id, months=12)

    assert [b.period_key for b in history] == [current, shift_period_key(current, -1)]


def test_shift_period_key_crosses_years() -> None:
    assert shift_period_key("2026-01", -1) == "2025-12"
    assert shift_period_key("2025-12", 1) == "2026-01"
    assert shift_period_key("2026-03", -14) == "2025-01"
