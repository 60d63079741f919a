from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reward_points.db import get_db
from reward_points.deps.actor import get_actor_id
from reward_points.schemas.event_award import (
    AwardResultOut,
    BulkAwardCreate,
    EventAwardCreate,
    EventAwardOut,
    ParticipantOut,
    PoolOut,
)
from reward_points.schemas.points import PointTransactionOut
from reward_points.services import award_service, event_award_service
from reward_points.services.award_service import AwardOutcome
from reward_points.services.event_award_service import Winner
from reward_points.services.locks import event_key
from reward_points.services.unit_of_work import atomic


router = APIRouter(prefix="/events", tags=["events"])


def award_result(outcome: AwardOutcome) -> AwardResultOut:
    return AwardResultOut(
        awards=[EventAwardOut.model_validate(a) for a in outcome.awards],
        entries=[PointTransactionOut.model_validate(e) for e in outcome.entries],
        total_points=outcome.total_points,
        budget_warning=outcome.budget.is_warning,
        budget_message=outcome.budget.message,
        budget_remaining=outcome.budget.remaining,
    )


@router.post("/{event_id}/awards", response_model=AwardResultOut)
def award_points(
    event_id: UUID,
    payload: EventAwardCreate,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    outcome = award_service.award_event_points(
        db, actor_id, event_id, payload.user_id, payload.points, rank=payload.rank
    )
    return award_result(outcome)


@router.post("/{event_id}/awards/bulk", response_model=AwardResultOut)
def bulk_award_points(
    event_id: UUID,
    payload: BulkAwardCreate,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    winners = [Winner(user_id=w.user_id, points=w.points, rank=w.rank) for w in payload.winners]
    outcome = award_service.bulk_award_event_points(db, actor_id, event_id, winners)
    return award_result(outcome)


@router.get("/{event_id}/pool", response_model=PoolOut)
def read_pool(event_id: UUID, db: Session = Depends(get_db)):
    event = event_award_service.get_event(db, event_id)
    return {
        "event_id": event.id,
        "name": event.name,
        "total_pool": event.total_pool,
        "allocated": event.allocated,
        "remaining": event.total_pool - event.allocated,
    }


@router.get("/{event_id}/awards", response_model=list[EventAwardOut])
def list_awards(event_id: UUID, db: Session = Depends(get_db)):
    return event_award_service.list_awards(db, event_id)


@router.post("/{event_id}/participants", response_model=ParticipantOut)
def register_participant(
    event_id: UUID,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    with atomic(db, event_key(event_id)):
        participant = event_award_service.register_participant(db, event_id, actor_id)
    return participant
