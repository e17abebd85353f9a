"""Pydantic schemas."""

from app.schemas.common import GoalBrief, TaskBrief
from app.schemas.goal import (
    BulkTasksCreate,
    CompletionResponse,
    GoalCreate,
    GoalDetailResponse,
    GoalListItem,
    GoalResponse,
    GoalTasksResponse,
    GoalTreeNode,
    GoalUpdate,
)
from app.schemas.progress import ProgressCreate, ProgressResponse, ProgressSummaryResponse
from app.schemas.task import (
    CalendarTasksResponse,
    LinkGoalRequest,
    TaskCreate,
    TaskResponse,
    TaskUpdate,
)
from app.schemas.user import MessageResponse, UserResponse

__all__ = [
    "GoalBrief",
    "TaskBrief",
    "BulkTasksCreate",
    "CompletionResponse",
    "GoalCreate",
    "GoalDetailResponse",
    "GoalListItem",
    "GoalResponse",
    "GoalTasksResponse",
    "GoalTreeNode",
    "GoalUpdate",
    "ProgressCreate",
    "ProgressResponse",
    "ProgressSummaryResponse",
    "CalendarTasksResponse",
    "LinkGoalRequest",
    "TaskCreate",
    "TaskResponse",
    "TaskUpdate",
    "MessageResponse",
    "UserResponse",
]
