"""Budget-checked awards.

Every administrator award runs Validate → Award → Record in one transaction
holding the budget, event and account locks (in that order). A rejected award
never reaches Record, and the rollback also discards a budget period that was
lazily created by Validate.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.orm import Session

from reward_points.models.point_transaction import OriginKind
from reward_points.services import budget_service, event_award_service, points_ledger
from reward_points.services.budget_service import BudgetCheck
from reward_points.services.errors import InvalidInputError
from reward_points.services.event_award_service import Winner
from reward_points.services.locks import account_key, budget_key, event_key
from reward_points.services.points_ledger import LedgerOrigin
from reward_points.services.unit_of_work import atomic, retry_on_conflict


logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 500


@dataclass
class AwardOutcome:
    budget: BudgetCheck
    awards: list = field(default_factory=list)
    entries: list = field(default_factory=list)

    @property
    def total_points(self) -> int:
        return sum(e.amount for e in self.entries)


def _clean_description(description: str | None, default: str) -> str:
    description = (description or "").strip() or default
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise InvalidInputError(f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters")
    return description


@retry_on_conflict
def award_event_points(db: Session, admin_id, event_id, user_id, points: int, rank: int | None = None) -> AwardOutcome:
    with atomic(db, budget_key(admin_id), event_key(event_id), account_key(user_id)):
        check = budget_service.validate_award(db, admin_id, points)
        award, entry = event_award_service.award_points(
            db, event_id, user_id, points, rank=rank, awarded_by=admin_id
        )
        budget_service.record_award(db, admin_id, points)

    logger.info(
        "event award committed",
        extra={"admin_id": str(admin_id), "event_id": str(event_id), "user_id": str(user_id), "points": points},
    )
    return AwardOutcome(budget=check, awards=[award], entries=[entry])


@retry_on_conflict
def bulk_award_event_points(db: Session, admin_id, event_id, winners: list[Winner]) -> AwardOutcome:
    if not winners:
        raise InvalidInputError("Winners list cannot be empty")
    total = sum(int(w.points or 0) for w in winners)

    keys = [budget_key(admin_id), event_key(event_id)] + [account_key(w.user_id) for w in winners]
    with atomic(db, *keys):
        check = budget_service.validate_award(db, admin_id, total)
        results = event_award_service.bulk_award_points(db, event_id, winners, awarded_by=admin_id)
        budget_service.record_award(db, admin_id, total)

    logger.info(
        "bulk event award committed",
        extra={"admin_id": str(admin_id), "event_id": str(event_id), "winners": len(winners), "points": total},
    )
    return AwardOutcome(
        budget=check,
        awards=[award for award, _ in results],
        entries=[entry for _, entry in results],
    )


@retry_on_conflict
def award_admin_points(db: Session, admin_id, user_id, points: int, description: str | None = None) -> AwardOutcome:
    description = _clean_description(description, "Admin award")

    with atomic(db, budget_key(admin_id), account_key(user_id)):
        check = budget_service.validate_award(db, admin_id, points)
        entry = points_ledger.credit(
            db,
            user_id,
            points,
            LedgerOrigin(kind=OriginKind.ADMIN_AWARD, id=admin_id, description=description),
        )
        budget_service.record_award(db, admin_id, points)

    logger.info(
        "admin award committed",
        extra={"admin_id": str(admin_id), "user_id": str(user_id), "points": points},
    )
    return AwardOutcome(budget=check, entries=[entry])


@retry_on_conflict
def deduct_points(db: Session, admin_id, user_id, points: int, description: str | None = None):
    """Administrative correction; does not touch the award budget."""
    description = _clean_description(description, "Admin adjustment")

    with atomic(db, account_key(user_id)):
        entry = points_ledger.debit(
            db,
            user_id,
            points,
            LedgerOrigin(kind=OriginKind.ADJUSTMENT, id=admin_id, description=description),
        )

    logger.info(
        "admin deduction committed",
        extra={"admin_id": str(admin_id), "user_id": str(user_id), "points": points},
    )
    return entry
