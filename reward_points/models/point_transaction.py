import uuid
from enum import Enum

from sqlalchemy import Column, Integer, String, TIMESTAMP, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID

from reward_points.db import Base
from reward_points.timeutil import utcnow


class TransactionKind(str, Enum):
    EARNED = "EARNED"
    REDEEMED = "REDEEMED"
    REFUNDED = "REFUNDED"


class OriginKind(str, Enum):
    EVENT = "EVENT"
    ADMIN_AWARD = "ADMIN_AWARD"
    REDEMPTION = "REDEMPTION"
    ADJUSTMENT = "ADJUSTMENT"


class PointTransaction(Base):
    """Append-only ledger entry. Rows are never updated except for the
    origin backfill of a redemption debit inside its own transaction."""

    __tablename__ = "point_transactions"
    __table_args__ = (
        Index("ix_point_transactions_user_created", "user_id", "created_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # signed: positive for EARNED / REFUNDED, negative for REDEEMED
    amount = Column(Integer, nullable=False)
    kind = Column(String(20), nullable=False)
    origin_kind = Column(String(20), nullable=False)
    origin_id = Column(UUID(as_uuid=True), nullable=True)

    balance_after = Column(Integer, nullable=False)
    description = Column(String(500), nullable=False, default="")

    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
