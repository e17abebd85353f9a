"""Progress entry and progress summary schemas."""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.goal import ProgressMode


class ProgressCreate(BaseModel):
    """Manual progress submission; negative values are allowed (floored at 0)."""

    value: float
    note: Optional[str] = Field(None, max_length=1000)
    date: Optional[datetime] = None
    custom_data: Optional[Dict[str, Any]] = None


class ProgressResponse(BaseModel):
    id: UUID
    goal_id: UUID
    value: float
    note: Optional[str] = None
    date: datetime
    custom_data: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


class TaskTotalsResponse(BaseModel):
    total_count: int
    completed_count: int
    total_size: int
    completed_size: int


class ManualTotalsResponse(BaseModel):
    current_value: Optional[float] = None
    target_value: Optional[float] = None


class ProgressSummaryResponse(BaseModel):
    mode: ProgressMode
    percent_complete: float
    task_totals: TaskTotalsResponse
    manual_totals: ManualTotalsResponse
