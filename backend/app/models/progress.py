"""Progress entry model (append-only audit trail of goal value changes)."""

import uuid

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Text, Uuid
from sqlalchemy.orm import relationship

from app.models import Base, utcnow


class Progress(Base):
    __tablename__ = "progress"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    goal_id = Column(Uuid(as_uuid=True), ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True)
    value = Column(Float, nullable=False)
    note = Column(Text, nullable=True)
    date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    custom_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    goal = relationship("Goal", back_populates="progress")
