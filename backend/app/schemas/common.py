"""Compact goal and task representations embedded in other responses."""

from datetime import date
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from app.models.goal import GoalScope, ProgressMode


class GoalBrief(BaseModel):
    id: UUID
    title: str
    scope: GoalScope
    progress_mode: ProgressMode
    is_marked_complete: bool

    class Config:
        from_attributes = True


class TaskBrief(BaseModel):
    id: UUID
    title: str
    size: int
    is_completed: bool
    scheduled_date: Optional[date] = None

    class Config:
        from_attributes = True
