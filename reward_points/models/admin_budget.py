import uuid
from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, CheckConstraint, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from reward_points.db import Base
from reward_points.timeutil import utcnow


class AdminBudget(Base):
    """One administrator's award budget for one calendar month."""

    __tablename__ = "admin_budgets"
    __table_args__ = (
        UniqueConstraint("admin_id", "period_key", name="uq_admin_budgets_admin_period"),
        CheckConstraint("budget_limit > 0", name="ck_admin_budgets_limit_positive"),
        CheckConstraint("consumed >= 0", name="ck_admin_budgets_consumed_non_negative"),
        CheckConstraint(
            "warning_threshold_pct >= 0 AND warning_threshold_pct <= 100",
            name="ck_admin_budgets_warning_threshold_range",
        ),
        CheckConstraint("NOT is_hard_limit OR consumed <= budget_limit", name="ck_admin_budgets_hard_limit"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    admin_id = Column(UUID(as_uuid=True), nullable=False)
    period_key = Column(String(7), nullable=False)  # YYYY-MM

    budget_limit = Column(Integer, nullable=False)
    is_hard_limit = Column(Boolean, nullable=False, default=False)
    warning_threshold_pct = Column(Integer, nullable=False, default=80)

    consumed = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
    updated_at = Column(TIMESTAMP, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def remaining(self) -> int:
        return max(0, self.budget_limit - self.consumed)

    @property
    def usage_pct(self) -> float:
        if not self.budget_limit:
            return 0.0
        return round(self.consumed / self.budget_limit * 100, 1)
