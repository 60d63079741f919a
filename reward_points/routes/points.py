from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reward_points.db import get_db
from reward_points.schemas.points import BalanceOut, PointHistoryOut
from reward_points.services import points_ledger
from reward_points.services.user_service import require_user


router = APIRouter(prefix="/points", tags=["points"])


@router.get("/{user_id}", response_model=BalanceOut)
def read_balance(user_id: UUID, db: Session = Depends(get_db)):
    account = points_ledger.get_account(db, user_id)
    if account:
        return account

    # Users without an account yet simply have nothing.
    require_user(db, user_id)
    return BalanceOut(user_id=user_id)


@router.get("/{user_id}/history", response_model=PointHistoryOut)
def read_history(
    user_id: UUID,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    require_user(db, user_id)

    limit = max(1, min(limit, 200))
    offset = max(0, offset)
    items, total = points_ledger.get_history(db, user_id, limit=limit, offset=offset)

    return {"items": items, "total": total, "limit": limit, "offset": offset}
