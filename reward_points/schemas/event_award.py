from datetime import datetime
from typing import List, Optional

from uuid import UUID

from pydantic import BaseModel, Field

from reward_points.schemas.points import PointTransactionOut


class EventAwardCreate(BaseModel):
    user_id: UUID
    points: int
    rank: Optional[int] = None


class WinnerIn(BaseModel):
    user_id: UUID
    points: int
    rank: Optional[int] = None


class BulkAwardCreate(BaseModel):
    winners: List[WinnerIn] = Field(default_factory=list)


class EventAwardOut(BaseModel):
    id: UUID
    event_id: UUID
    user_id: UUID

    points: int
    rank: Optional[int] = None

    awarded_by: Optional[UUID] = None
    awarded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AwardResultOut(BaseModel):
    awards: List[EventAwardOut] = Field(default_factory=list)
    entries: List[PointTransactionOut] = Field(default_factory=list)
    total_points: int = 0

    budget_warning: bool = False
    budget_message: Optional[str] = None
    budget_remaining: Optional[int] = None


class PoolOut(BaseModel):
    event_id: UUID
    name: str
    total_pool: int
    allocated: int
    remaining: int


class PoolAlertOut(BaseModel):
    event_id: UUID
    event_name: str
    event_date: Optional[datetime] = None
    total_pool: int
    remaining: int
    remaining_pct: float
    status: str

    class Config:
        from_attributes = True


class ParticipantOut(BaseModel):
    id: UUID
    event_id: UUID
    user_id: UUID
    registered_at: Optional[datetime] = None

    class Config:
        from_attributes = True
