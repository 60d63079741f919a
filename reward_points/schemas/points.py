from datetime import datetime
from typing import List, Optional

from uuid import UUID

from pydantic import BaseModel


class BalanceOut(BaseModel):
    user_id: UUID
    current_balance: int = 0
    total_earned: int = 0
    total_redeemed: int = 0
    last_updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PointTransactionOut(BaseModel):
    id: UUID
    user_id: UUID

    amount: int
    kind: str
    origin_kind: str
    origin_id: Optional[UUID] = None

    balance_after: int
    description: str = ""

    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PointHistoryOut(BaseModel):
    items: List[PointTransactionOut]
    total: int
    limit: int
    offset: int


class AdminPointsAward(BaseModel):
    user_id: UUID
    points: int
    description: Optional[str] = None


class AdminPointsDeduct(BaseModel):
    user_id: UUID
    points: int
    description: Optional[str] = None
