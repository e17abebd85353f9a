"""Goal schemas."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.goal import FrequencyType, GoalScope, GoalType, ProgressMode
from app.schemas.common import GoalBrief, TaskBrief
from app.schemas.progress import ProgressResponse, ProgressSummaryResponse


class GoalBase(BaseModel):
    """Fields shared by goal creation and responses."""

    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    type: GoalType = GoalType.TOTAL_TARGET
    scope: GoalScope = GoalScope.STANDALONE
    progress_mode: ProgressMode = ProgressMode.TASK_BASED
    target_value: Optional[float] = Field(None, ge=0)
    frequency_target: Optional[int] = Field(None, gt=0)
    frequency_type: Optional[FrequencyType] = None
    end_date: Optional[datetime] = None
    step_size: float = Field(default=1.0, gt=0)
    custom_data_label: Optional[str] = Field(None, max_length=100)


class GoalCreate(GoalBase):
    """Schema for creating a goal."""

    parent_id: Optional[UUID] = None
    current_value: Optional[float] = Field(None, ge=0)
    start_date: Optional[datetime] = None


class GoalUpdate(BaseModel):
    """Schema for a partial goal update."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    type: Optional[GoalType] = None
    scope: Optional[GoalScope] = None
    progress_mode: Optional[ProgressMode] = None
    target_value: Optional[float] = Field(None, ge=0)
    current_value: Optional[float] = Field(None, ge=0)
    frequency_target: Optional[int] = Field(None, gt=0)
    frequency_type: Optional[FrequencyType] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    step_size: Optional[float] = Field(None, gt=0)
    custom_data_label: Optional[str] = Field(None, max_length=100)
    parent_id: Optional[UUID] = None


class GoalResponse(GoalBase):
    """Scalar goal fields."""

    id: UUID
    parent_id: Optional[UUID] = None
    current_value: float
    start_date: datetime
    is_marked_complete: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class GoalTaskLinkResponse(BaseModel):
    id: UUID
    task: TaskBrief

    class Config:
        from_attributes = True


class GoalListItem(GoalResponse):
    parent: Optional[GoalBrief] = None


class GoalChildResponse(GoalResponse):
    goal_tasks: List[GoalTaskLinkResponse] = []


class GoalDetailResponse(GoalResponse):
    """Goal with its neighbourhood and computed progress summary."""

    parent: Optional[GoalBrief] = None
    children: List[GoalChildResponse] = []
    goal_tasks: List[GoalTaskLinkResponse] = []
    progress_summary: ProgressSummaryResponse


class GoalTreeNode(GoalResponse):
    goal_tasks: List[GoalTaskLinkResponse] = []
    children: List["GoalTreeNode"] = []
    progress: List[ProgressResponse] = []
    progress_summary: ProgressSummaryResponse


GoalTreeNode.model_rebuild()


class GoalTasksResponse(BaseModel):
    """Linked tasks and direct children of one goal."""

    tasks: List[TaskBrief]
    children: List[GoalResponse]


class BulkTaskItem(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    scheduled_date: Optional[date] = None
    size: int = Field(default=1, gt=0)


class BulkTasksCreate(BaseModel):
    tasks: List[BulkTaskItem] = Field(..., min_length=1)


class CompletionResponse(BaseModel):
    success: bool
    message: str
    goal: Optional[GoalResponse] = None
