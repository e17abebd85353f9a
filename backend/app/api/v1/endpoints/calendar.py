"""Calendar endpoints: scheduled tasks and goals overlapping a date range."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.database import get_db
from app.models.goal import GoalScope
from app.models.user import User
from app.schemas.goal import GoalListItem, GoalTaskLinkResponse
from app.schemas.task import CalendarTasksResponse
from app.services import goal_service, task_service
from app.services.task_service import UNSCHEDULED_CALENDAR_LIMIT

router = APIRouter()


class CalendarGoal(GoalListItem):
    goal_tasks: List[GoalTaskLinkResponse] = []


class CalendarGoalsResponse(BaseModel):
    goals: List[CalendarGoal]


@router.get("/tasks", response_model=CalendarTasksResponse)
async def get_calendar_tasks(
    start_date: date,
    end_date: date,
    include_unscheduled: bool = False,
    parent_goal_id: Optional[UUID] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Tasks scheduled in the inclusive range, optionally with open unscheduled ones."""
    tasks = await task_service.list_tasks_in_range(
        db, current_user.id, start_date, end_date, goal_id=parent_goal_id
    )
    unscheduled = None
    if include_unscheduled:
        unscheduled = await task_service.list_unscheduled_tasks(
            db, current_user.id, goal_id=parent_goal_id, limit=UNSCHEDULED_CALENDAR_LIMIT
        )
    return CalendarTasksResponse(tasks=tasks, unscheduled_tasks=unscheduled)


@router.get("/goals", response_model=CalendarGoalsResponse)
async def get_calendar_goals(
    start_date: date,
    end_date: date,
    scope: Optional[GoalScope] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Goals that start or end in the range, or span all of it."""
    start, end = goal_service.day_bounds(start_date, end_date)
    goals = await goal_service.list_goals_in_range(db, current_user.id, start, end, scope=scope)
    return CalendarGoalsResponse(goals=goals)
