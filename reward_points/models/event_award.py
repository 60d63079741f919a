import uuid
from sqlalchemy import Column, Integer, TIMESTAMP, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from reward_points.db import Base
from reward_points.timeutil import utcnow


class EventAward(Base):
    __tablename__ = "event_awards"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_awards_event_user"),
        CheckConstraint("points > 0", name="ck_event_awards_points_positive"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    points = Column(Integer, nullable=False)
    rank = Column(Integer, nullable=True)

    awarded_by = Column(UUID(as_uuid=True), nullable=True)
    awarded_at = Column(TIMESTAMP, nullable=False, default=utcnow)
