import uuid
from sqlalchemy import Column, Integer, TIMESTAMP, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID

from reward_points.db import Base
from reward_points.timeutil import utcnow


class PointsAccount(Base):
    __tablename__ = "points_accounts"
    __table_args__ = (
        CheckConstraint("current_balance >= 0", name="ck_points_accounts_balance_non_negative"),
        CheckConstraint("total_earned >= 0", name="ck_points_accounts_earned_non_negative"),
        CheckConstraint("total_redeemed >= 0", name="ck_points_accounts_redeemed_non_negative"),
        CheckConstraint(
            "current_balance = total_earned - total_redeemed",
            name="ck_points_accounts_balance_consistent",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, unique=True)

    current_balance = Column(Integer, nullable=False, default=0)
    total_earned = Column(Integer, nullable=False, default=0)
    total_redeemed = Column(Integer, nullable=False, default=0)

    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
    last_updated_at = Column(TIMESTAMP, nullable=False, default=utcnow)
