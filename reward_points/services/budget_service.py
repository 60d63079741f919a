"""Monthly award budget per administrator.

Awards are bracketed as ``validate_award`` → award → ``record_award`` inside one
transaction holding the budget lock; when the award fails the record is never
reached and the whole transaction rolls back.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from reward_points import config
from reward_points.models.admin_budget import AdminBudget
from reward_points.services.errors import BudgetExceededError, InvalidInputError
from reward_points.services.locks import budget_key, lock_row, resource_locks
from reward_points.services.unit_of_work import atomic, retry_on_conflict
from reward_points.timeutil import period_key_for, shift_period_key, utcnow


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetCheck:
    admin_id: object
    period_key: str
    points: int
    consumed_after: int
    budget_limit: int
    remaining: int
    is_hard_limit: bool
    is_warning: bool
    message: str | None = None


def current_period_key() -> str:
    return period_key_for(utcnow())


def _validate_points(points: int) -> int:
    if points is None or int(points) <= 0:
        raise InvalidInputError("Points must be positive", points=points)
    return int(points)


def get_current_budget(db: Session, admin_id):
    return (
        db.query(AdminBudget)
        .filter(AdminBudget.admin_id == admin_id, AdminBudget.period_key == current_period_key())
        .first()
    )


def get_or_create_current_budget(db: Session, admin_id) -> AdminBudget:
    period_key = current_period_key()

    with resource_locks.hold(budget_key(admin_id)):
        budget = lock_row(
            db.query(AdminBudget).filter(AdminBudget.admin_id == admin_id, AdminBudget.period_key == period_key)
        ).first()
        if budget:
            return budget

        budget = AdminBudget(
            admin_id=admin_id,
            period_key=period_key,
            budget_limit=config.DEFAULT_MONTHLY_BUDGET,
            is_hard_limit=config.DEFAULT_BUDGET_HARD_LIMIT,
            warning_threshold_pct=config.DEFAULT_BUDGET_WARNING_PCT,
            consumed=0,
        )
        db.add(budget)
        db.flush()

        logger.info(
            "budget period created",
            extra={"admin_id": str(admin_id), "period_key": period_key, "budget_limit": budget.budget_limit},
        )
        return budget


def validate_award(db: Session, admin_id, points: int) -> BudgetCheck:
    points = _validate_points(points)

    with resource_locks.hold(budget_key(admin_id)):
        budget = get_or_create_current_budget(db, admin_id)

        consumed_after = budget.consumed + points
        is_warning = False
        message = None

        if consumed_after > budget.budget_limit:
            if budget.is_hard_limit:
                logger.warning(
                    "award rejected: budget exceeded",
                    extra={"admin_id": str(admin_id), "points": points, "consumed": budget.consumed, "limit": budget.budget_limit},
                )
                raise BudgetExceededError(admin_id, points, limit=budget.budget_limit, remaining=budget.remaining)
            is_warning = True
            message = (
                f"Warning: Awarding {points} points will exceed your monthly budget of "
                f"{budget.budget_limit}. New total: {consumed_after}"
            )
        elif consumed_after * 100 >= budget.budget_limit * budget.warning_threshold_pct:
            is_warning = True
            usage = consumed_after / budget.budget_limit * 100
            message = (
                f"Notice: After this award, you will have used {usage:.1f}% of your monthly budget "
                f"({consumed_after}/{budget.budget_limit})"
            )

        if is_warning:
            logger.warning("budget warning", extra={"admin_id": str(admin_id), "detail": message})

        return BudgetCheck(
            admin_id=admin_id,
            period_key=budget.period_key,
            points=points,
            consumed_after=consumed_after,
            budget_limit=budget.budget_limit,
            remaining=max(0, budget.budget_limit - consumed_after),
            is_hard_limit=budget.is_hard_limit,
            is_warning=is_warning,
            message=message,
        )


def record_award(db: Session, admin_id, points: int) -> AdminBudget:
    points = _validate_points(points)

    with resource_locks.hold(budget_key(admin_id)):
        budget = get_or_create_current_budget(db, admin_id)
        if budget.is_hard_limit and budget.consumed + points > budget.budget_limit:
            raise BudgetExceededError(admin_id, points, limit=budget.budget_limit, remaining=budget.remaining)

        budget.consumed += points
        budget.updated_at = utcnow()
        db.flush()

    logger.info(
        "budget consumption recorded",
        extra={"admin_id": str(admin_id), "points": points, "consumed": budget.consumed, "period_key": budget.period_key},
    )
    return budget


@retry_on_conflict
def set_budget(
    db: Session,
    admin_id,
    budget_limit: int,
    is_hard_limit: bool = False,
    warning_threshold_pct: int = 80,
) -> AdminBudget:
    if budget_limit is None or int(budget_limit) <= 0:
        raise InvalidInputError("Budget limit must be positive.", budget_limit=budget_limit)
    if warning_threshold_pct is None or not 0 <= int(warning_threshold_pct) <= 100:
        raise InvalidInputError("Warning threshold must be between 0 and 100.", warning_threshold_pct=warning_threshold_pct)

    with atomic(db, budget_key(admin_id)):
        budget = get_or_create_current_budget(db, admin_id)
        if is_hard_limit and budget.consumed > int(budget_limit):
            raise InvalidInputError(
                f"Hard limit {budget_limit} is below the {budget.consumed} points already awarded this month",
                consumed=budget.consumed,
            )

        budget.budget_limit = int(budget_limit)
        budget.is_hard_limit = bool(is_hard_limit)
        budget.warning_threshold_pct = int(warning_threshold_pct)
        budget.updated_at = utcnow()

    logger.info(
        "budget updated",
        extra={"admin_id": str(admin_id), "budget_limit": budget_limit, "is_hard_limit": is_hard_limit},
    )
    return budget


def get_budget_history(db: Session, admin_id, months: int = 12) -> list[AdminBudget]:
    months = max(1, min(months, 120))
    oldest = shift_period_key(current_period_key(), -(months - 1))

    return (
        db.query(AdminBudget)
        .filter(AdminBudget.admin_id == admin_id, AdminBudget.period_key >= oldest)
        .order_by(AdminBudget.period_key.desc())
        .all()
    )
