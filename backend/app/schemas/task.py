"""Task schemas."""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.common import GoalBrief, TaskBrief


class TaskBase(BaseModel):
    """Base task schema."""

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    size: int = Field(default=1, gt=0)
    scheduled_date: Optional[date] = None
    custom_data: Optional[Dict[str, Any]] = None


class TaskCreate(TaskBase):
    """Schema for creating a task, optionally linked to goals."""

    parent_task_id: Optional[UUID] = None
    goal_ids: List[UUID] = []


class TaskUpdate(BaseModel):
    """Schema for a partial task update."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    size: Optional[int] = Field(None, gt=0)
    scheduled_date: Optional[date] = None
    custom_data: Optional[Dict[str, Any]] = None
    parent_task_id: Optional[UUID] = None
    is_completed: Optional[bool] = None


class TaskGoalLinkResponse(BaseModel):
    id: UUID
    goal: GoalBrief

    class Config:
        from_attributes = True


class TaskResponse(TaskBase):
    """Task with its goal links, parent task and subtasks."""

    id: UUID
    parent_task_id: Optional[UUID] = None
    is_completed: bool
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    goal_tasks: List[TaskGoalLinkResponse] = []
    parent_task: Optional[TaskBrief] = None
    sub_tasks: List[TaskBrief] = []

    class Config:
        from_attributes = True


class LinkGoalRequest(BaseModel):
    goal_id: UUID


class CalendarTasksResponse(BaseModel):
    tasks: List[TaskResponse]
    unscheduled_tasks: Optional[List[TaskResponse]] = None
