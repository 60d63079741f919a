from __future__ import annotations

import uuid

import pytest

from reward_points.models.point_transaction import OriginKind, PointTransaction
from reward_points.services import points_ledger
from reward_points.services.errors import InsufficientBalanceError, InvalidInputError, NotFoundError
from reward_points.services.points_ledger import LedgerOrigin


def _origin(kind: OriginKind = OriginKind.ADMIN_AWARD) -> LedgerOrigin:
    return LedgerOrigin(kind=kind, description="test")


def _assert_consistent(account) -> None:
    assert account.current_balance >= 0
    assert account.current_balance == account.total_earned - account.total_redeemed


def test_credit_provisions_account_and_appends_earned_entry(db, seed) -> None:
    user_id = seed.user().id

    entry = points_ledger.credit(db, user_id, 250, _origin())
    db.commit()

    account = points_ledger.get_account(db, user_id)
    assert account.current_balance == 250
    assert account.total_earned == 250
    assert entry.kind == "EARNED"
    assert entry.amount == 250
    assert entry.balance_after == 250
    _assert_consistent(account)


def test_credit_for_unknown_user_is_not_found(db) -> None:
    with pytest.raises(NotFoundError):
        points_ledger.credit(db, uuid.uuid4(), 10, _origin())


def test_debit_requires_existing_account(db, seed) -> None:
    user_id = seed.user().id

    with pytest.raises(NotFoundError):
        points_ledger.debit(db, user_id, 10, _origin(OriginKind.REDEMPTION))


def test_debit_rejects_insufficient_balance_without_writing(db, seed) -> None:
    user_id = seed.funded_user(100).id

    with pytest.raises(InsufficientBalanceError) as exc_info:
        points_ledger.debit(db, user_id, 101, _origin(OriginKind.REDEMPTION))
    db.rollback()

    assert exc_info.value.details["available"] == 100
    assert points_ledger.get_balance(db, user_id) == 100
    assert db.query(PointTransaction).filter(PointTransaction.amount < 0).count() == 0


def test_debit_records_negative_entry_with_balance_snapshot(db, seed) -> None:
    user_id = seed.funded_user(1000).id

    entry = points_ledger.debit(db, user_id, 300, _origin(OriginKind.REDEMPTION))
    db.commit()

    account = points_ledger.get_account(db, user_id)
    assert entry.amount == -300
    assert entry.kind == "REDEEMED"
    assert entry.balance_after == 700
    assert account.total_redeemed == 300
    _assert_consistent(account)


def test_refund_is_counted_as_earned(db, seed) -> None:
    user_id = seed.funded_user(500).id
    points_ledger.debit(db, user_id, 200, _origin(OriginKind.REDEMPTION))

    entry = points_ledger.refund(db, user_id, 200, _origin(OriginKind.REDEMPTION))
    db.commit()

    account = points_ledger.get_account(db, user_id)
    assert entry.kind == "REFUNDED"
    assert account.current_balance == 500
    assert account.total_earned == 700
    _assert_consistent(account)


@pytest.mark.parametrize("amount", [0, -5])
def test_non_positive_amounts_are_rejected(db, seed, amount: int) -> None:
    user_id = seed.funded_user(100).id

    with pytest.raises(InvalidInputError):
        points_ledger.credit(db, user_id, amount, _origin())
    with pytest.raises(InvalidInputError):
        points_ledger.debit(db, user_id, amount, _origin())


def test_provision_account_is_idempotent(db, seed) -> None:
    user_id = seed.user().id

    first = points_ledger.provision_account(db, user_id)
    second = points_ledger.provision_account(db, user_id)
    db.commit()

    assert first.id == second.id
    assert points_ledger.get_balance(db, user_id) == 0


def test_history_is_paginated_with_total(db, seed) -> None:
    user_id = seed.user().id
    for amount in (10, 20, 30):
        points_ledger.credit(db, user_id, amount, _origin())
    db.commit()

    items, total = points_ledger.get_history(db, user_id, limit=2, offset=0)

    assert total == 3
    assert len(items) == 2
    assert sum(e.amount for e in points_ledger.get_history(db, user_id)[0]) == 60
