import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from reward_points import config
from reward_points.models.event import Event
from reward_points.models.event_award import EventAward
from reward_points.models.event_participant import EventParticipant
from reward_points.models.point_transaction import OriginKind
from reward_points.services import points_ledger
from reward_points.services.errors import (
    AlreadyAwardedError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    NotParticipantError,
    PoolExhaustedError,
)
from reward_points.services.locks import account_key, event_key, lock_row, resource_locks
from reward_points.services.points_ledger import LedgerOrigin
from reward_points.services.user_service import require_active_user
from reward_points.timeutil import utcnow


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Winner:
    user_id: object
    points: int
    rank: int | None = None


@dataclass(frozen=True)
class PoolAlert:
    event_id: object
    event_name: str
    event_date: object
    total_pool: int
    remaining: int
    remaining_pct: float
    status: str  # LOW | DEPLETED


def get_event(db: Session, event_id) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise NotFoundError("Event", event_id)
    return event


def _lock_event(db: Session, event_id) -> Event:
    event = lock_row(db.query(Event).filter(Event.id == event_id)).first()
    if not event:
        raise NotFoundError("Event", event_id)
    return event


def remaining_pool(db: Session, event_id) -> int:
    event = get_event(db, event_id)
    return int(event.total_pool - event.allocated)


def has_been_awarded(db: Session, event_id, user_id) -> bool:
    return (
        db.query(EventAward.id)
        .filter(EventAward.event_id == event_id, EventAward.user_id == user_id)
        .first()
        is not None
    )


def is_participant(db: Session, event_id, user_id) -> bool:
    return (
        db.query(EventParticipant.id)
        .filter(EventParticipant.event_id == event_id, EventParticipant.user_id == user_id)
        .first()
        is not None
    )


def register_participant(db: Session, event_id, user_id) -> EventParticipant:
    require_active_user(db, user_id)

    with resource_locks.hold(event_key(event_id)):
        _lock_event(db, event_id)
        if is_participant(db, event_id, user_id):
            raise InvalidStateError(
                f"User {user_id} is already registered for event {event_id}",
                event_id=str(event_id),
                user_id=str(user_id),
            )

        participant = EventParticipant(event_id=event_id, user_id=user_id, registered_at=utcnow())
        db.add(participant)
        db.flush()

    logger.info("event participant registered", extra={"event_id": str(event_id), "user_id": str(user_id)})
    return participant


def list_awards(db: Session, event_id) -> list[EventAward]:
    get_event(db, event_id)
    return (
        db.query(EventAward)
        .filter(EventAward.event_id == event_id)
        .order_by(EventAward.rank.asc(), EventAward.awarded_at.asc())
        .all()
    )


def award_points(db: Session, event_id, user_id, points: int, rank: int | None = None, awarded_by=None):
    """Allocate ``points`` from the event pool to one participant and credit them.

    Returns ``(award, ledger_entry)``. Runs inside the caller's transaction.
    """
    if points is None or int(points) <= 0:
        raise InvalidInputError("Points must be greater than zero", points=points)
    points = int(points)

    with resource_locks.hold(event_key(event_id), account_key(user_id)):
        event = _lock_event(db, event_id)

        if has_been_awarded(db, event_id, user_id):
            logger.warning("award rejected: already awarded", extra={"event_id": str(event_id), "user_id": str(user_id)})
            raise AlreadyAwardedError(event_id, user_id)

        if not is_participant(db, event_id, user_id):
            logger.warning("award rejected: not a participant", extra={"event_id": str(event_id), "user_id": str(user_id)})
            raise NotParticipantError(event_id, user_id)

        remaining = event.total_pool - event.allocated
        if points > remaining:
            logger.warning(
                "award rejected: pool exhausted",
                extra={"event_id": str(event_id), "requested": points, "remaining": remaining},
            )
            raise PoolExhaustedError(event_id, requested=points, remaining=remaining)

        event.allocated += points
        award = EventAward(
            event_id=event_id,
            user_id=user_id,
            points=points,
            rank=rank,
            awarded_by=awarded_by,
            awarded_at=utcnow(),
        )
        db.add(award)
        db.flush()

        description = f"Event award - {event.name}"
        if rank is not None:
            description += f" (rank {rank})"
        entry = points_ledger.credit(
            db,
            user_id,
            points,
            LedgerOrigin(kind=OriginKind.EVENT, id=event.id, description=description),
        )

    logger.info(
        "event points awarded",
        extra={"event_id": str(event_id), "user_id": str(user_id), "points": points, "rank": rank},
    )
    return award, entry


def bulk_award_points(db: Session, event_id, winners: list[Winner], awarded_by=None):
    """Award several participants, all or nothing.

    The total is checked against the remaining pool before the first award;
    each award still re-checks the live pool. Any failure propagates and the
    caller's transaction rolls back every award already made.
    """
    if not winners:
        raise InvalidInputError("Winners list cannot be empty")

    user_ids = [w.user_id for w in winners]
    if len(set(user_ids)) != len(user_ids):
        raise InvalidInputError("Winners list contains the same user more than once")
    for w in winners:
        if w.points is None or int(w.points) <= 0:
            raise InvalidInputError("Points must be greater than zero", user_id=str(w.user_id), points=w.points)

    total = sum(int(w.points) for w in winners)
    keys = [event_key(event_id)] + [account_key(uid) for uid in user_ids]

    with resource_locks.hold(*keys):
        event = _lock_event(db, event_id)
        for uid in user_ids:
            if not is_participant(db, event_id, uid):
                logger.warning(
                    "bulk award rejected: not a participant",
                    extra={"event_id": str(event_id), "user_id": str(uid)},
                )
                raise NotParticipantError(event_id, uid)

        remaining = event.total_pool - event.allocated
        if total > remaining:
            logger.warning(
                "bulk award rejected: pool exhausted",
                extra={"event_id": str(event_id), "requested": total, "remaining": remaining, "winners": len(winners)},
            )
            raise PoolExhaustedError(event_id, requested=total, remaining=remaining)

        results = [
            award_points(db, event_id, w.user_id, w.points, rank=w.rank, awarded_by=awarded_by)
            for w in winners
        ]

    return results


def list_low_pool_alerts(db: Session, threshold_pct: int | None = None) -> list[PoolAlert]:
    if threshold_pct is None:
        threshold_pct = config.LOW_POOL_THRESHOLD_PCT

    events = (
        db.query(Event)
        .filter((Event.total_pool - Event.allocated) * 100 < Event.total_pool * threshold_pct)
        .order_by(Event.event_date.asc(), Event.created_at.asc())
        .all()
    )

    alerts = []
    for e in events:
        remaining = e.total_pool - e.allocated
        alerts.append(
            PoolAlert(
                event_id=e.id,
                event_name=e.name,
                event_date=e.event_date,
                total_pool=e.total_pool,
                remaining=remaining,
                remaining_pct=round(remaining / e.total_pool * 100, 1),
                status="DEPLETED" if remaining == 0 else "LOW",
            )
        )
    return alerts
