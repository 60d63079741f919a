"""Points ledger: per-account balance plus an append-only transaction log.

Every mutation updates the stored balance and appends one entry carrying the
balance snapshot, inside the caller's transaction. Callers run these functions
within ``atomic(db, account_key(user_id), ...)`` so that the commit happens
while the account lock is still held.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from reward_points.models.point_transaction import OriginKind, PointTransaction, TransactionKind
from reward_points.models.points_account import PointsAccount
from reward_points.services.errors import InsufficientBalanceError, InvalidInputError, NotFoundError
from reward_points.services.locks import account_key, lock_row, resource_locks
from reward_points.services.user_service import require_user
from reward_points.timeutil import utcnow


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerOrigin:
    kind: OriginKind
    id: object | None = None
    description: str = ""


def _validate_amount(amount: int) -> int:
    if amount is None or int(amount) <= 0:
        raise InvalidInputError("Points amount must be greater than zero", amount=amount)
    return int(amount)


def get_account(db: Session, user_id):
    return db.query(PointsAccount).filter(PointsAccount.user_id == user_id).first()


def lock_account(db: Session, user_id):
    return lock_row(db.query(PointsAccount).filter(PointsAccount.user_id == user_id)).first()


def provision_account(db: Session, user_id) -> PointsAccount:
    """Return the user's account, creating an empty one if needed."""
    with resource_locks.hold(account_key(user_id)):
        account = lock_account(db, user_id)
        if account:
            return account

        require_user(db, user_id)
        account = PointsAccount(
            user_id=user_id,
            current_balance=0,
            total_earned=0,
            total_redeemed=0,
        )
        db.add(account)
        db.flush()

        logger.info("points account provisioned", extra={"user_id": str(user_id)})
        return account


def _append_entry(db: Session, account: PointsAccount, amount: int, kind: TransactionKind, origin: LedgerOrigin):
    entry = PointTransaction(
        user_id=account.user_id,
        amount=amount,
        kind=kind.value,
        origin_kind=origin.kind.value,
        origin_id=origin.id,
        balance_after=account.current_balance,
        description=origin.description or "",
        created_at=account.last_updated_at,
    )
    db.add(entry)
    db.flush()
    return entry


def _add_points(db: Session, user_id, amount: int, origin: LedgerOrigin, kind: TransactionKind):
    amount = _validate_amount(amount)

    with resource_locks.hold(account_key(user_id)):
        account = provision_account(db, user_id)

        account.current_balance += amount
        account.total_earned += amount
        account.last_updated_at = utcnow()

        entry = _append_entry(db, account, amount, kind, origin)

    logger.info(
        "points credited",
        extra={
            "user_id": str(user_id),
            "amount": amount,
            "kind": kind.value,
            "origin_kind": origin.kind.value,
            "balance_after": entry.balance_after,
        },
    )
    return entry


def credit(db: Session, user_id, amount: int, origin: LedgerOrigin) -> PointTransaction:
    return _add_points(db, user_id, amount, origin, TransactionKind.EARNED)


def refund(db: Session, user_id, amount: int, origin: LedgerOrigin) -> PointTransaction:
    return _add_points(db, user_id, amount, origin, TransactionKind.REFUNDED)


def debit(db: Session, user_id, amount: int, origin: LedgerOrigin) -> PointTransaction:
    """Remove points from an existing account.

    The balance is re-read under the account lock (``FOR UPDATE``), so two
    concurrent debits can never both pass against the same stale balance.
    """
    amount = _validate_amount(amount)

    with resource_locks.hold(account_key(user_id)):
        account = lock_account(db, user_id)
        if not account:
            raise NotFoundError("Points account", user_id)

        if account.current_balance < amount:
            logger.warning(
                "debit rejected: insufficient balance",
                extra={"user_id": str(user_id), "required": amount, "available": account.current_balance},
            )
            raise InsufficientBalanceError(user_id, required=amount, available=account.current_balance)

        account.current_balance -= amount
        account.total_redeemed += amount
        account.last_updated_at = utcnow()

        entry = _append_entry(db, account, -amount, TransactionKind.REDEEMED, origin)

    logger.info(
        "points debited",
        extra={
            "user_id": str(user_id),
            "amount": amount,
            "origin_kind": origin.kind.value,
            "balance_after": entry.balance_after,
        },
    )
    return entry


def get_balance(db: Session, user_id) -> int:
    account = get_account(db, user_id)
    return int(account.current_balance) if account else 0


def get_history(db: Session, user_id, limit: int = 50, offset: int = 0) -> tuple[list[PointTransaction], int]:
    limit = max(1, min(limit, 200))
    offset = max(0, offset)

    q = db.query(PointTransaction).filter(PointTransaction.user_id == user_id)
    total = q.count()
    items = (
        q.order_by(PointTransaction.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return items, total
