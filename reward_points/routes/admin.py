from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reward_points import config
from reward_points.db import get_db
from reward_points.deps.actor import get_actor_id
from reward_points.routes.events import award_result
from reward_points.schemas.budget import BudgetOut, BudgetSet
from reward_points.schemas.event_award import AwardResultOut, PoolAlertOut
from reward_points.schemas.inventory import InventoryOut
from reward_points.schemas.points import AdminPointsAward, AdminPointsDeduct, PointTransactionOut
from reward_points.services import award_service, budget_service, event_award_service, inventory_service


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/budget", response_model=BudgetOut)
def read_budget(actor_id: UUID = Depends(get_actor_id), db: Session = Depends(get_db)):
    budget = budget_service.get_current_budget(db, actor_id)
    if budget:
        return budget

    # Not created until the first award of the month; show what it will start with.
    return BudgetOut(
        admin_id=actor_id,
        period_key=budget_service.current_period_key(),
        budget_limit=config.DEFAULT_MONTHLY_BUDGET,
        is_hard_limit=config.DEFAULT_BUDGET_HARD_LIMIT,
        warning_threshold_pct=config.DEFAULT_BUDGET_WARNING_PCT,
        consumed=0,
        remaining=config.DEFAULT_MONTHLY_BUDGET,
        usage_pct=0.0,
    )


@router.put("/budget", response_model=BudgetOut)
def update_budget(
    payload: BudgetSet,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    return budget_service.set_budget(
        db,
        actor_id,
        payload.budget_limit,
        is_hard_limit=payload.is_hard_limit,
        warning_threshold_pct=payload.warning_threshold_pct,
    )


@router.get("/budget/history", response_model=list[BudgetOut])
def read_budget_history(
    months: int = 12,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    return budget_service.get_budget_history(db, actor_id, months=months)


@router.post("/points/award", response_model=AwardResultOut)
def award_points(
    payload: AdminPointsAward,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    outcome = award_service.award_admin_points(
        db, actor_id, payload.user_id, payload.points, description=payload.description
    )
    return award_result(outcome)


@router.post("/points/deduct", response_model=PointTransactionOut)
def deduct_points(
    payload: AdminPointsDeduct,
    actor_id: UUID = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    return award_service.deduct_points(
        db, actor_id, payload.user_id, payload.points, description=payload.description
    )


@router.get("/alerts/pools", response_model=list[PoolAlertOut])
def read_pool_alerts(threshold_pct: int | None = None, db: Session = Depends(get_db)):
    return event_award_service.list_low_pool_alerts(db, threshold_pct=threshold_pct)


@router.get("/alerts/stock", response_model=list[InventoryOut])
def read_stock_alerts(limit: int = 50, offset: int = 0, db: Session = Depends(get_db)):
    return inventory_service.list_low_stock(db, limit=limit, offset=offset)
