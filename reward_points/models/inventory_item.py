import uuid
from sqlalchemy import Column, Integer, TIMESTAMP, ForeignKey, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID

from reward_points.db import Base
from reward_points.timeutil import utcnow


class InventoryItem(Base):
    __tablename__ = "inventory_items"
    __table_args__ = (
        CheckConstraint("available >= 0", name="ck_inventory_items_available_non_negative"),
        CheckConstraint("reserved >= 0", name="ck_inventory_items_reserved_non_negative"),
        CheckConstraint("reorder_level >= 0", name="ck_inventory_items_reorder_level_non_negative"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False, unique=True)

    # sellable stock, already net of live reservations
    available = Column(Integer, nullable=False, default=0)
    reserved = Column(Integer, nullable=False, default=0)
    reorder_level = Column(Integer, nullable=False, default=0)

    last_restocked_at = Column(TIMESTAMP, nullable=True)
    last_updated_at = Column(TIMESTAMP, nullable=False, default=utcnow)
    updated_by = Column(UUID(as_uuid=True), nullable=True)
