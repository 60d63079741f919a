import uuid
from enum import Enum

from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID

from reward_points.db import Base
from reward_points.timeutil import utcnow


class RedemptionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class Redemption(Base):
    __tablename__ = "redemptions"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_redemptions_quantity_positive"),
        CheckConstraint("unit_cost > 0", name="ck_redemptions_unit_cost_positive"),
        CheckConstraint("total_cost = unit_cost * quantity", name="ck_redemptions_total_cost"),
        Index("ix_redemptions_user_requested", "user_id", "requested_at"),
        Index("ix_redemptions_status", "status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False)

    unit_cost = Column(Integer, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    total_cost = Column(Integer, nullable=False)

    status = Column(String(20), nullable=False, default=RedemptionStatus.PENDING.value)
    # PENDING | APPROVED | DELIVERED | CANCELLED

    requested_at = Column(TIMESTAMP, nullable=False, default=utcnow)

    decided_at = Column(TIMESTAMP, nullable=True)
    decided_by = Column(UUID(as_uuid=True), nullable=True)

    delivered_at = Column(TIMESTAMP, nullable=True)
    delivered_by = Column(UUID(as_uuid=True), nullable=True)

    cancelled_at = Column(TIMESTAMP, nullable=True)
    cancelled_by = Column(UUID(as_uuid=True), nullable=True)
    cancel_reason = Column(String(500), nullable=True)
