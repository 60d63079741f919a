import uuid
from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, ForeignKey, CheckConstraint, Index
from sqlalchemy.dialects.postgresql import UUID

from reward_points.db import Base
from reward_points.timeutil import utcnow


class Product(Base):
    __tablename__ = "products"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(200), nullable=False)
    description = Column(String(1000))

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)


class ProductPrice(Base):
    """Effective-dated points price. The current price is the most recent
    active record whose window contains "now"."""

    __tablename__ = "product_prices"
    __table_args__ = (
        CheckConstraint("points_cost > 0", name="ck_product_prices_points_positive"),
        Index("ix_product_prices_product_effective", "product_id", "effective_from"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False)

    points_cost = Column(Integer, nullable=False)
    effective_from = Column(TIMESTAMP, nullable=False)
    effective_to = Column(TIMESTAMP, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
