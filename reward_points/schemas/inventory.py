from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class InventoryAdjust(BaseModel):
    delta: int


class InventoryRestock(BaseModel):
    quantity: int


class InventoryOut(BaseModel):
    product_id: UUID

    available: int
    reserved: int
    reorder_level: int

    last_restocked_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None
    updated_by: Optional[UUID] = None

    class Config:
        from_attributes = True


class PriceSet(BaseModel):
    points_cost: int
    effective_from: Optional[datetime] = None


class ProductPriceOut(BaseModel):
    id: UUID
    product_id: UUID

    points_cost: int
    effective_from: datetime
    effective_to: Optional[datetime] = None
    is_active: bool

    class Config:
        from_attributes = True
