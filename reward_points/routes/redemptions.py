from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reward_points.db import get_db
from reward_points.deps.actor import get_actor_id
from reward_points.schemas.redemption import RedemptionCancel, RedemptionCreate, RedemptionOut
from reward_points.services import redemption_service


router = APIRouter(prefix="/redemptions", tags=["redemptions"])


@router.post("", response_model=RedemptionOut)
def create_redemption(
    payload: RedemptionCreate,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    return redemption_service.create_redemption(db, actor_id, payload.product_id, payload.quantity)


@router.get("", response_model=list[RedemptionOut])
def list_redemptions(
    userId: UUID | None = None,
    status: str | None = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    return redemption_service.list_redemptions(db, user_id=userId, status=status, limit=limit, offset=offset)


@router.get("/{redemption_id}", response_model=RedemptionOut)
def get_redemption(redemption_id: UUID, db: Session = Depends(get_db)):
    return redemption_service.get_redemption(db, redemption_id)


@router.post("/{redemption_id}/approve", response_model=RedemptionOut)
def approve_redemption(
    redemption_id: UUID,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    return redemption_service.approve_redemption(db, redemption_id, actor_id)


@router.post("/{redemption_id}/deliver", response_model=RedemptionOut)
def deliver_redemption(
    redemption_id: UUID,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    return redemption_service.deliver_redemption(db, redemption_id, actor_id)


@router.post("/{redemption_id}/cancel", response_model=RedemptionOut)
def cancel_redemption(
    redemption_id: UUID,
    payload: RedemptionCancel,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    return redemption_service.cancel_redemption(db, redemption_id, payload.reason, actor_id=actor_id)
