from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class RedemptionCreate(BaseModel):
    product_id: UUID
    quantity: int = 1


class RedemptionCancel(BaseModel):
    reason: str


class RedemptionOut(BaseModel):
    id: UUID
    user_id: UUID
    product_id: UUID

    unit_cost: int
    quantity: int
    total_cost: int

    status: str

    requested_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None
    decided_by: Optional[UUID] = None
    delivered_at: Optional[datetime] = None
    delivered_by: Optional[UUID] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[UUID] = None
    cancel_reason: Optional[str] = None

    class Config:
        from_attributes = True
