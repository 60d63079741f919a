import uuid
from sqlalchemy import Column, TIMESTAMP, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID

from reward_points.db import Base
from reward_points.timeutil import utcnow


class EventParticipant(Base):
    """A user registered for an event; only participants can receive its awards."""

    __tablename__ = "event_participants"
    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_event_participants_event_user"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    event_id = Column(UUID(as_uuid=True), ForeignKey("events.id"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)

    registered_at = Column(TIMESTAMP, nullable=False, default=utcnow)
