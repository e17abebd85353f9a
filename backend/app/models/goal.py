"""Goal model."""

import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, Enum, Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.models import Base, utcnow


class ProgressMode(str, enum.Enum):
    MANUAL_TOTAL = "MANUAL_TOTAL"
    TASK_BASED = "TASK_BASED"
    HABIT = "HABIT"


class GoalType(str, enum.Enum):
    TOTAL_TARGET = "TOTAL_TARGET"
    FREQUENCY = "FREQUENCY"
    HABIT = "HABIT"


class GoalScope(str, enum.Enum):
    YEARLY = "YEARLY"
    MONTHLY = "MONTHLY"
    WEEKLY = "WEEKLY"
    DAILY = "DAILY"
    STANDALONE = "STANDALONE"


class FrequencyType(str, enum.Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class Goal(Base):
    __tablename__ = "goals"
    # Calendar range queries filter on both ends of the goal span
    __table_args__ = (Index("ix_goals_user_start_end", "user_id", "start_date", "end_date"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_id = Column(Uuid(as_uuid=True), ForeignKey("goals.id", ondelete="SET NULL"), nullable=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(Enum(GoalType), default=GoalType.TOTAL_TARGET, nullable=False)
    scope = Column(Enum(GoalScope), default=GoalScope.STANDALONE, nullable=False)
    progress_mode = Column(Enum(ProgressMode), default=ProgressMode.TASK_BASED, nullable=False)
    target_value = Column(Float, nullable=True)
    # Never negative; every writer clamps at zero
    current_value = Column(Float, default=0.0, nullable=False)
    frequency_target = Column(Integer, nullable=True)
    frequency_type = Column(Enum(FrequencyType), nullable=True)
    start_date = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=True)
    step_size = Column(Float, default=1.0, nullable=False)
    custom_data_label = Column(String(100), nullable=True)
    is_marked_complete = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    parent = relationship("Goal", remote_side=[id], back_populates="children")
    children = relationship("Goal", back_populates="parent", order_by="Goal.created_at.desc()")
    goal_tasks = relationship(
        "GoalTask",
        back_populates="goal",
        cascade="all, delete",
        order_by="GoalTask.created_at",
    )
    progress = relationship(
        "Progress",
        back_populates="goal",
        cascade="all, delete",
        order_by="Progress.date.desc()",
    )
