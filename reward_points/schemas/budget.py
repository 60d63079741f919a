from datetime import datetime
from typing import Optional

from uuid import UUID

from pydantic import BaseModel


class BudgetSet(BaseModel):
    budget_limit: int
    is_hard_limit: bool = False
    warning_threshold_pct: int = 80


class BudgetOut(BaseModel):
    admin_id: UUID
    period_key: str

    budget_limit: int
    is_hard_limit: bool
    warning_threshold_pct: int

    consumed: int
    remaining: int
    usage_pct: float

    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
