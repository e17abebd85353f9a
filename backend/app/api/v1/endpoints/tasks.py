"""Task endpoints."""

from datetime import date
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_completion_service, get_current_user
from app.core.database import get_db
from app.models.task import Task
from app.models.user import User
from app.schemas.task import LinkGoalRequest, TaskCreate, TaskResponse, TaskUpdate
from app.services import task_service
from app.services.completion_service import CompletionService
from app.services.errors import ConflictError, NotFoundError

router = APIRouter()


async def _get_task_or_404(db: AsyncSession, task_id: UUID, user: User) -> Task:
    task = await task_service.get_user_task(db, task_id, user.id)
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    return task


@router.get("/", response_model=List[TaskResponse])
async def list_tasks(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await task_service.list_tasks(db, current_user.id)


@router.get("/scheduled/{day}", response_model=List[TaskResponse])
async def list_scheduled_tasks(
    day: date,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Tasks scheduled on one day (YYYY-MM-DD)."""
    return await task_service.list_scheduled_tasks(db, current_user.id, day)


@router.get("/unscheduled/list", response_model=List[TaskResponse])
async def list_unscheduled_tasks(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Open tasks without a scheduled date."""
    return await task_service.list_unscheduled_tasks(db, current_user.id)


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await _get_task_or_404(db, task_id, current_user)


@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a task; each linked task-based goal's target grows by one."""
    try:
        task = await task_service.create_task(db, current_user.id, data.model_dump())
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return await _get_task_or_404(db, task.id, current_user)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: UUID,
    data: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Partial update. Completion set here does not touch linked goals."""
    task = await _get_task_or_404(db, task_id, current_user)
    update_data = {
        field: value
        for field, value in data.model_dump(exclude_unset=True).items()
        if value is not None or field not in {"title", "size", "is_completed"}
    }
    try:
        await task_service.update_task(db, task, update_data)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return await _get_task_or_404(db, task_id, current_user)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Delete a task and remove it from linked goals' totals."""
    task = await _get_task_or_404(db, task_id, current_user)
    await task_service.delete_task(db, task)


@router.post("/{task_id}/complete", response_model=TaskResponse)
async def toggle_task_completion(
    task_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    completion_service: CompletionService = Depends(get_completion_service),
):
    """Toggle completion and roll the change into linked task-based goals."""
    task = await _get_task_or_404(db, task_id, current_user)
    await completion_service.toggle_task(db, task)
    return await _get_task_or_404(db, task_id, current_user)


@router.post("/{task_id}/link-goal", response_model=TaskResponse)
async def link_goal(
    task_id: UUID,
    data: LinkGoalRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await _get_task_or_404(db, task_id, current_user)
    try:
        await task_service.link_goal(db, task, data.goal_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return await _get_task_or_404(db, task_id, current_user)


@router.post("/{task_id}/unlink-goal", response_model=TaskResponse)
async def unlink_goal(
    task_id: UUID,
    data: LinkGoalRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await _get_task_or_404(db, task_id, current_user)
    try:
        await task_service.unlink_goal(db, task, data.goal_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return await _get_task_or_404(db, task_id, current_user)
