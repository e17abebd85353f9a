"""Goal endpoints."""

from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_completion_service, get_current_user
from app.core.database import get_db
from app.core.rate_limit import RATE_LIMITS, limiter
from app.models.goal import Goal, GoalScope
from app.models.user import User
from app.schemas.common import TaskBrief
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
from app.schemas.progress import ProgressCreate, ProgressResponse
from app.services import goal_service
from app.services.completion_service import CompletionService
from app.services.errors import ConflictError, NotFoundError
from app.services.progress_service import compute_goal_view

router = APIRouter()

# Progress entries shown per node in the goal tree
TREE_RECENT_PROGRESS = 5

# Columns that cannot be cleared through an update
NON_NULLABLE_FIELDS = {"title", "type", "scope", "progress_mode", "current_value", "step_size", "start_date"}


def _tree_nodes(goals: List[Goal], depth: int = 0):
    """Goals rendered in the tree, stopping at TREE_DEPTH levels below the roots."""
    for goal in goals:
        yield goal
        if depth < goal_service.TREE_DEPTH:
            yield from _tree_nodes(vars(goal).get("children", []), depth + 1)


def _tree_view(goal: Goal, progress: Dict[UUID, List[Any]], depth: int = 0) -> Dict[str, Any]:
    """Nest already-loaded children down to TREE_DEPTH levels."""
    view = compute_goal_view(goal)
    children = vars(goal).get("children", []) if depth < goal_service.TREE_DEPTH else []
    view["children"] = [_tree_view(child, progress, depth + 1) for child in children]
    view["progress"] = progress.get(goal.id, [])
    return view


async def _get_goal_or_404(db: AsyncSession, goal_id: UUID, user: User) -> Goal:
    goal = await goal_service.get_user_goal(db, goal_id, user.id)
    if not goal:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goal not found")
    return goal


@router.get("/", response_model=List[GoalListItem])
async def list_goals(
    completed: bool = False,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List goals created in a date range (default: the current year)."""
    today = date.today()
    start, end = goal_service.day_bounds(
        start_date or date(today.year, 1, 1),
        end_date or date(today.year, 12, 31),
    )
    return await goal_service.list_goals(db, current_user.id, completed, start, end)


@router.get("/tree", response_model=List[GoalTreeNode])
async def get_goal_tree(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Top-level goals with nested children, linked tasks and recent progress."""
    goals = await goal_service.load_goal_tree(db, current_user.id)
    node_ids = [goal.id for goal in _tree_nodes(goals)]
    progress = await goal_service.recent_progress(db, node_ids, TREE_RECENT_PROGRESS)
    return [_tree_view(goal, progress) for goal in goals]


@router.get("/scope/{scope}", response_model=List[GoalDetailResponse])
async def list_goals_by_scope(
    scope: GoalScope,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    goals = await goal_service.list_goals_by_scope(db, current_user.id, scope)
    return [compute_goal_view(goal) for goal in goals]


@router.post("/", response_model=GoalResponse, status_code=status.HTTP_201_CREATED)
async def create_goal(
    data: GoalCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a goal, optionally under a parent goal."""
    try:
        return await goal_service.create_goal(db, current_user.id, data.model_dump())
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.get("/{goal_id}", response_model=GoalDetailResponse)
async def get_goal(
    goal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get a goal with parent, children, linked tasks and its progress summary."""
    goal = await goal_service.load_goal_with_task_links(db, goal_id, current_user.id)
    if not goal:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goal not found")
    return compute_goal_view(goal)


@router.put("/{goal_id}", response_model=GoalResponse)
async def update_goal(
    goal_id: UUID,
    data: GoalUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    goal = await _get_goal_or_404(db, goal_id, current_user)
    update_data = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field not in NON_NULLABLE_FIELDS
    }
    try:
        return await goal_service.update_goal(db, goal, update_data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post("/{goal_id}/progress", response_model=ProgressResponse, status_code=status.HTTP_201_CREATED)
async def add_progress(
    goal_id: UUID,
    data: ProgressCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Record manual progress; the goal's value never drops below zero."""
    goal = await _get_goal_or_404(db, goal_id, current_user)
    return await goal_service.submit_progress(
        db, goal, data.value, data.note, data.date, data.custom_data
    )


@router.delete("/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_goal(
    goal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a goal with its progress entries and task links."""
    goal = await _get_goal_or_404(db, goal_id, current_user)
    await goal_service.delete_goal(db, goal)


@router.post("/{goal_id}/bulk-tasks", response_model=List[TaskBrief], status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMITS["bulk_write"])
async def bulk_create_tasks(
    request: Request,
    goal_id: UUID,
    data: BulkTasksCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create several tasks linked to the goal in one transaction."""
    goal = await _get_goal_or_404(db, goal_id, current_user)
    return await goal_service.bulk_create_tasks(
        db, goal, [item.model_dump() for item in data.tasks]
    )


@router.post("/{goal_id}/complete", response_model=CompletionResponse)
async def complete_goal(
    goal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    completion_service: CompletionService = Depends(get_completion_service),
):
    """Mark a goal completed; a task-based or habit parent gains one unit."""
    await _get_goal_or_404(db, goal_id, current_user)
    result = await completion_service.complete_goal(db, goal_id)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.message)
    return CompletionResponse(success=result.success, message=result.message, goal=result.updated_goal)


@router.post("/{goal_id}/uncomplete", response_model=CompletionResponse)
async def uncomplete_goal(
    goal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    completion_service: CompletionService = Depends(get_completion_service),
):
    """Mark a goal incomplete; a task-based or habit parent loses one unit."""
    await _get_goal_or_404(db, goal_id, current_user)
    result = await completion_service.uncomplete_goal(db, goal_id)
    if not result.success:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.message)
    return CompletionResponse(success=result.success, message=result.message, goal=result.updated_goal)


@router.get("/{goal_id}/tasks", response_model=GoalTasksResponse)
async def get_goal_tasks(
    goal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    goal = await goal_service.load_goal_tasks(db, goal_id, current_user.id)
    if not goal:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goal not found")
    return GoalTasksResponse(
        tasks=[link.task for link in goal.goal_tasks],
        children=goal.children,
    )


@router.get("/{goal_id}/activities", response_model=List[ProgressResponse])
async def get_goal_activities(
    goal_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Progress entries of a goal, newest first."""
    await _get_goal_or_404(db, goal_id, current_user)
    return await goal_service.list_goal_progress(db, goal_id)
