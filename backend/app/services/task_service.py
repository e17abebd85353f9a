"""Task data access and task-level mutations."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import transaction
from app.models import utcnow
from app.models.goal import Goal, ProgressMode
from app.models.task import GoalTask, Task
from app.services import goal_service
from app.services.errors import ConflictError, NotFoundError
from app.services.progress_service import task_size

logger = logging.getLogger(__name__)

# Cap on unscheduled tasks returned alongside the calendar range
UNSCHEDULED_CALENDAR_LIMIT = 50


def _task_relations():
    return (
        selectinload(Task.goal_tasks).selectinload(GoalTask.goal),
        selectinload(Task.parent_task),
        selectinload(Task.sub_tasks),
    )


async def _fetch(db: AsyncSession, query):
    return await db.execute(query.execution_options(populate_existing=True))


async def get_user_task(db: AsyncSession, task_id: UUID, user_id: UUID) -> Optional[Task]:
    """Task with linked goals, parent task and subtasks."""
    result = await _fetch(
        db,
        select(Task).where(Task.id == task_id, Task.user_id == user_id).options(*_task_relations()),
    )
    return result.scalar_one_or_none()


async def list_tasks(db: AsyncSession, user_id: UUID) -> List[Task]:
    result = await _fetch(
        db,
        select(Task)
        .where(Task.user_id == user_id)
        .options(*_task_relations())
        .order_by(Task.created_at.desc()),
    )
    return list(result.scalars().all())


async def list_scheduled_tasks(db: AsyncSession, user_id: UUID, day: date) -> List[Task]:
    result = await _fetch(
        db,
        select(Task)
        .where(Task.user_id == user_id, Task.scheduled_date == day)
        .options(*_task_relations())
        .order_by(Task.created_at),
    )
    return list(result.scalars().all())


async def list_unscheduled_tasks(
    db: AsyncSession,
    user_id: UUID,
    goal_id: Optional[UUID] = None,
    limit: Optional[int] = None,
) -> List[Task]:
    query = (
        select(Task)
        .where(
            Task.user_id == user_id,
            Task.scheduled_date.is_(None),
            Task.is_completed == False,  # noqa: E712
        )
        .options(*_task_relations())
        .order_by(Task.created_at.desc())
    )
    if goal_id is not None:
        query = query.where(Task.goal_tasks.any(GoalTask.goal_id == goal_id))
    if limit is not None:
        query = query.limit(limit)
    result = await _fetch(db, query)
    return list(result.scalars().all())


async def list_tasks_in_range(
    db: AsyncSession,
    user_id: UUID,
    start: date,
    end: date,
    goal_id: Optional[UUID] = None,
) -> List[Task]:
    query = (
        select(Task)
        .where(
            Task.user_id == user_id,
            Task.scheduled_date >= start,
            Task.scheduled_date <= end,
        )
        .options(*_task_relations())
        .order_by(Task.scheduled_date)
    )
    if goal_id is not None:
        query = query.where(Task.goal_tasks.any(GoalTask.goal_id == goal_id))
    result = await _fetch(db, query)
    return list(result.scalars().all())


async def load_linked_goals(db: AsyncSession, task_id: UUID) -> List[Goal]:
    """Goals linked to a task, each with its own linked tasks loaded."""
    result = await _fetch(
        db,
        select(Goal)
        .join(GoalTask, GoalTask.goal_id == Goal.id)
        .where(GoalTask.task_id == task_id)
        .options(selectinload(Goal.goal_tasks).selectinload(GoalTask.task)),
    )
    return list(result.scalars().unique().all())


async def _require_user_goals(db: AsyncSession, goal_ids: Sequence[UUID], user_id: UUID) -> List[Goal]:
    if not goal_ids:
        return []
    result = await db.execute(select(Goal).where(Goal.id.in_(goal_ids), Goal.user_id == user_id))
    goals = list(result.scalars().all())
    if len(goals) != len(set(goal_ids)):
        raise NotFoundError("Goal not found")
    return goals


async def create_task(db: AsyncSession, user_id: UUID, data: Dict[str, Any]) -> Task:
    """Create a task linked to ``goal_ids``; each TASK_BASED goal's target grows by 1."""
    goal_ids = list(dict.fromkeys(data.pop("goal_ids", None) or []))
    async with transaction(db):
        goals = await _require_user_goals(db, goal_ids, user_id)
        parent_task_id = data.get("parent_task_id")
        if parent_task_id and await get_user_task(db, parent_task_id, user_id) is None:
            raise NotFoundError("Parent task not found")

        task = Task(user_id=user_id, **data)
        db.add(task)
        await db.flush()

        for goal in goals:
            db.add(GoalTask(goal_id=goal.id, task_id=task.id))
            goal_service.adjust_target_value(goal, 1)

    logger.info("Task created", extra={"task_id": str(task.id), "goals": len(goals)})
    return task


async def update_task(db: AsyncSession, task: Task, data: Dict[str, Any]) -> Task:
    """Plain field update; completion set here does not cascade to goals."""
    async with transaction(db):
        if "is_completed" in data:
            data["completed_at"] = utcnow() if data["is_completed"] else None
        parent_task_id = data.get("parent_task_id")
        if parent_task_id is not None:
            if parent_task_id == task.id:
                raise ConflictError("A task cannot be its own parent")
            if await get_user_task(db, parent_task_id, task.user_id) is None:
                raise NotFoundError("Parent task not found")
        for field, value in data.items():
            setattr(task, field, value)
    return task


async def delete_task(db: AsyncSession, task: Task) -> None:
    """Delete a task and take it out of every linked TASK_BASED goal's totals."""
    async with transaction(db):
        goals = await load_linked_goals(db, task.id)
        for goal in goals:
            if goal.progress_mode != ProgressMode.TASK_BASED:
                continue
            goal_service.adjust_target_value(goal, -1)
            if task.is_completed:
                await goal_service.record_progress(
                    db, goal, -task_size(task), f'Task "{task.title}" deleted'
                )
        await db.delete(task)
    logger.info("Task deleted", extra={"task_id": str(task.id), "goals": len(goals)})


async def link_goal(db: AsyncSession, task: Task, goal_id: UUID) -> None:
    async with transaction(db):
        goal = await goal_service.get_user_goal(db, goal_id, task.user_id)
        if goal is None:
            raise NotFoundError("Goal not found")

        existing = await db.execute(
            select(GoalTask.id).where(GoalTask.task_id == task.id, GoalTask.goal_id == goal_id)
        )
        if existing.first() is not None:
            raise ConflictError("Task is already linked to this goal")

        db.add(GoalTask(goal_id=goal_id, task_id=task.id))
        goal_service.adjust_target_value(goal, 1)


async def unlink_goal(db: AsyncSession, task: Task, goal_id: UUID) -> None:
    async with transaction(db):
        result = await db.execute(
            delete(GoalTask).where(GoalTask.task_id == task.id, GoalTask.goal_id == goal_id)
        )
        if result.rowcount == 0:
            raise NotFoundError("Task is not linked to this goal")

        goal = await db.get(Goal, goal_id)
        if goal is not None and goal.progress_mode == ProgressMode.TASK_BASED:
            goal_service.adjust_target_value(goal, -1)
            if task.is_completed:
                await goal_service.adjust_current_value(db, goal, -task_size(task))
