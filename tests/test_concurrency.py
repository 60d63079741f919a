from __future__ import annotations

import uuid
from concurrent.futures import ThreadPoolExecutor

from reward_points.models.event_award import EventAward
from reward_points.models.point_transaction import PointTransaction
from reward_points.models.redemption import Redemption
from reward_points.services import (
    award_service,
    event_award_service,
    inventory_service,
    points_ledger,
    redemption_service,
)
from reward_points.services.event_award_service import Winner
from reward_points.services.errors import (
    InsufficientBalanceError,
    InvalidStateError,
    OutOfStockError,
    PoolExhaustedError,
)


def _run_concurrently(session_factory, jobs):
    """Run each ``job(session)`` on its own thread and session; return outcome names."""

    def worker(job):
        session = session_factory()
        try:
            job(session)
            return "ok"
        except (InsufficientBalanceError, InvalidStateError, OutOfStockError, PoolExhaustedError) as exc:
            return exc.code
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=len(jobs)) as pool:
        return list(pool.map(worker, jobs))


def test_concurrent_redemptions_never_overdraw(db, seed, session_factory) -> None:
    user_id = seed.funded_user(1000).id
    product_id = seed.product(price=300, available=20).id

    outcomes = _run_concurrently(
        session_factory,
        [lambda s: redemption_service.create_redemption(s, user_id, product_id) for _ in range(6)],
    )

    assert outcomes.count("ok") == 3
    assert outcomes.count("INSUFFICIENT_BALANCE") == 3

    db.expire_all()
    account = points_ledger.get_account(db, user_id)
    assert account.current_balance == 100
    assert account.current_balance == account.total_earned - account.total_redeemed
    item = inventory_service.get_inventory(db, product_id)
    assert (item.available, item.reserved) == (17, 3)
    assert db.query(Redemption).count() == 3


def test_last_unit_is_reserved_only_once(db, seed, session_factory) -> None:
    product_id = seed.product(price=10, available=1).id
    users = [seed.funded_user(100).id for _ in range(5)]

    outcomes = _run_concurrently(
        session_factory,
        [lambda s, uid=uid: redemption_service.create_redemption(s, uid, product_id) for uid in users],
    )

    assert outcomes.count("ok") == 1
    assert outcomes.count("OUT_OF_STOCK") == 4

    db.expire_all()
    item = inventory_service.get_inventory(db, product_id)
    assert (item.available, item.reserved) == (0, 1)
    assert sorted(points_ledger.get_balance(db, uid) for uid in users) == [90, 100, 100, 100, 100]


def test_concurrent_awards_never_overallocate_the_pool(db, seed, session_factory) -> None:
    admin_id = uuid.uuid4()
    event_id = seed.event(total_pool=1000).id
    users = [seed.participant(event_id) for _ in range(8)]

    outcomes = _run_concurrently(
        session_factory,
        [
            lambda s, uid=uid: award_service.award_event_points(s, admin_id, event_id, uid, 200)
            for uid in users
        ],
    )

    assert outcomes.count("ok") == 5
    assert outcomes.count("POOL_EXHAUSTED") == 3

    db.expire_all()
    assert event_award_service.remaining_pool(db, event_id) == 0
    assert db.query(EventAward).count() == 5
    assert sum(points_ledger.get_balance(db, uid) for uid in users) == 1000


def test_same_winner_awarded_concurrently_is_credited_once(db, seed, session_factory) -> None:
    admin_id = uuid.uuid4()
    event_id = seed.event(total_pool=1000).id
    user_id = seed.participant(event_id)

    outcomes = _run_concurrently(
        session_factory,
        [lambda s: award_service.award_event_points(s, admin_id, event_id, user_id, 100) for _ in range(4)],
    )

    assert outcomes.count("ok") == 1
    assert outcomes.count("INVALID_STATE") == 3

    db.expire_all()
    assert points_ledger.get_balance(db, user_id) == 100
    assert db.query(EventAward).count() == 1
    assert event_award_service.remaining_pool(db, event_id) == 900


def test_concurrent_cancels_refund_a_ticket_once(db, seed, session_factory) -> None:
    user_id = seed.funded_user(1000).id
    product_id = seed.product(price=300, available=5).id
    redemption_id = redemption_service.create_redemption(db, user_id, product_id).id

    outcomes = _run_concurrently(
        session_factory,
        [lambda s: redemption_service.cancel_redemption(s, redemption_id, "changed my mind") for _ in range(6)],
    )

    assert outcomes.count("ok") == 1
    assert outcomes.count("INVALID_STATE") == 5

    db.expire_all()
    refunds = (
        db.query(PointTransaction)
        .filter(PointTransaction.user_id == user_id, PointTransaction.kind == "REFUNDED")
        .count()
    )
    assert refunds == 1
    item = inventory_service.get_inventory(db, product_id)
    assert (item.available, item.reserved) == (5, 0)
    account = points_ledger.get_account(db, user_id)
    assert account.current_balance == 1000
    assert account.current_balance == account.total_earned - account.total_redeemed


def test_cancel_racing_deliver_settles_one_outcome(db, seed, session_factory) -> None:
    admin_id = seed.user(is_admin=True).id
    user_id = seed.funded_user(1000).id
    product_id = seed.product(price=300, available=5).id
    redemption_id = redemption_service.create_redemption(db, user_id, product_id).id
    redemption_service.approve_redemption(db, redemption_id, admin_id)

    outcomes = _run_concurrently(
        session_factory,
        [
            lambda s: redemption_service.cancel_redemption(s, redemption_id, "no longer needed"),
            lambda s: redemption_service.deliver_redemption(s, redemption_id, admin_id),
        ],
    )

    assert sorted(outcomes) == ["INVALID_STATE", "ok"]

    db.expire_all()
    ticket = redemption_service.get_redemption(db, redemption_id)
    item = inventory_service.get_inventory(db, product_id)
    balance = points_ledger.get_balance(db, user_id)
    if ticket.status == "CANCELLED":
        assert (item.available, item.reserved) == (5, 0)
        assert balance == 1000
    else:
        assert ticket.status == "DELIVERED"
        assert (item.available, item.reserved) == (4, 0)
        assert balance == 700


def test_bulk_and_single_award_on_one_event_never_overallocate(db, seed, session_factory) -> None:
    admin_id = uuid.uuid4()
    event_id = seed.event(total_pool=1000).id
    bulk_winners = [Winner(seed.participant(event_id), 300, rank) for rank in range(1, 4)]
    single_winner = seed.participant(event_id)

    outcomes = _run_concurrently(
        session_factory,
        [
            lambda s: award_service.bulk_award_event_points(s, admin_id, event_id, bulk_winners),
            lambda s: award_service.award_event_points(s, admin_id, event_id, single_winner, 300),
        ],
    )

    # 900 + 300 exceeds the pool, so whichever commits second is refused
    assert sorted(outcomes) == ["POOL_EXHAUSTED", "ok"]

    db.expire_all()
    event = event_award_service.get_event(db, event_id)
    awarded = sum(a.points for a in db.query(EventAward).filter(EventAward.event_id == event_id))
    credited = sum(points_ledger.get_balance(db, w.user_id) for w in bulk_winners)
    credited += points_ledger.get_balance(db, single_winner)
    assert event.allocated in (300, 900)
    assert event.allocated <= event.total_pool
    assert event.allocated == awarded == credited
