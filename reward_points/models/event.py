import uuid
from sqlalchemy import Column, Integer, String, TIMESTAMP, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID

from reward_points.db import Base
from reward_points.timeutil import utcnow


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("total_pool > 0", name="ck_events_total_pool_positive"),
        CheckConstraint("allocated >= 0", name="ck_events_allocated_non_negative"),
        CheckConstraint("allocated <= total_pool", name="ck_events_allocated_within_pool"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(200), nullable=False)
    event_date = Column(TIMESTAMP, nullable=True)

    total_pool = Column(Integer, nullable=False)
    # running sum of event_awards.points
    allocated = Column(Integer, nullable=False, default=0)

    created_by = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(TIMESTAMP, nullable=False, default=utcnow)
