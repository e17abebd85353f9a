"""Task and goal-task link models."""

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.models import Base, utcnow


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    parent_task_id = Column(Uuid(as_uuid=True), ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    # Effort weight, also the progress increment applied to linked goals
    size = Column(Integer, default=1, nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    scheduled_date = Column(Date, nullable=True, index=True)
    custom_data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    parent_task = relationship("Task", remote_side=[id], back_populates="sub_tasks")
    sub_tasks = relationship("Task", back_populates="parent_task")
    goal_tasks = relationship("GoalTask", back_populates="task", cascade="all, delete")


class GoalTask(Base):
    __tablename__ = "goal_tasks"
    __table_args__ = (UniqueConstraint("goal_id", "task_id", name="uq_goal_tasks_goal_task"),)

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    goal_id = Column(Uuid(as_uuid=True), ForeignKey("goals.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = Column(Uuid(as_uuid=True), ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    goal = relationship("Goal", back_populates="goal_tasks")
    task = relationship("Task", back_populates="goal_tasks")
