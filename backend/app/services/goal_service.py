"""Goal data access and goal-level mutations.

Each loader returns goals with exactly the relationships a view needs eagerly
fetched, so the pure aggregation code never triggers lazy IO.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from app.core.database import transaction
from app.models.goal import Goal, GoalScope, ProgressMode
from app.models.progress import Progress
from app.models.task import GoalTask, Task
from app.services.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

# Nesting depth of GET /goals/tree below the top-level goals
TREE_DEPTH = 3


def _with_tasks(path):
    return path.selectinload(Goal.goal_tasks).selectinload(GoalTask.task)


async def _fetch(db: AsyncSession, query):
    # Rows may already sit in the identity map with stale collections
    return await db.execute(query.execution_options(populate_existing=True))


def day_bounds(start: date, end: date):
    """UTC datetimes covering whole days from ``start`` through ``end``."""
    return (
        datetime.combine(start, time.min, tzinfo=timezone.utc),
        datetime.combine(end, time.max, tzinfo=timezone.utc),
    )


async def get_user_goal(db: AsyncSession, goal_id: UUID, user_id: UUID) -> Optional[Goal]:
    result = await _fetch(db, select(Goal).where(Goal.id == goal_id, Goal.user_id == user_id))
    return result.scalar_one_or_none()


async def list_goals(
    db: AsyncSession,
    user_id: UUID,
    include_completed: bool,
    start: datetime,
    end: datetime,
) -> List[Goal]:
    query = (
        select(Goal)
        .where(
            Goal.user_id == user_id,
            Goal.created_at >= start,
            Goal.created_at <= end,
        )
        .options(selectinload(Goal.parent))
        .order_by(Goal.created_at.desc())
    )
    if not include_completed:
        query = query.where(Goal.is_marked_complete == False)  # noqa: E712
    result = await _fetch(db, query)
    return list(result.scalars().all())


async def load_goal_with_task_links(db: AsyncSession, goal_id: UUID, user_id: UUID) -> Optional[Goal]:
    """Goal with parent, linked tasks, and children with their linked tasks."""
    result = await _fetch(
        db,
        select(Goal)
        .where(Goal.id == goal_id, Goal.user_id == user_id)
        .options(
            selectinload(Goal.parent),
            _with_tasks(selectinload(Goal.children)),
            selectinload(Goal.goal_tasks).selectinload(GoalTask.task),
        )
    )
    return result.scalar_one_or_none()


async def load_goal_tree(db: AsyncSession, user_id: UUID) -> List[Goal]:
    """Top-level goals with TREE_DEPTH levels of children and their linked tasks.

    One extra level is fetched so the deepest rendered goals still roll their
    children's tasks into their summaries.
    """
    children = selectinload(Goal.children)
    options = [selectinload(Goal.goal_tasks).selectinload(GoalTask.task), _with_tasks(children)]
    for _ in range(TREE_DEPTH):
        children = children.selectinload(Goal.children)
        options.append(_with_tasks(children))

    result = await _fetch(
        db,
        select(Goal)
        .where(Goal.user_id == user_id, Goal.parent_id.is_(None))
        .options(*options)
        .order_by(Goal.created_at.desc())
    )
    return list(result.scalars().all())


async def list_goals_by_scope(db: AsyncSession, user_id: UUID, scope: GoalScope) -> List[Goal]:
    result = await _fetch(
        db,
        select(Goal)
        .where(Goal.user_id == user_id, Goal.scope == scope)
        .options(
            selectinload(Goal.parent),
            selectinload(Goal.progress),
            _with_tasks(selectinload(Goal.children)),
            selectinload(Goal.goal_tasks).selectinload(GoalTask.task),
        )
        .order_by(Goal.created_at.desc())
    )
    return list(result.scalars().all())


async def load_goal_tasks(db: AsyncSession, goal_id: UUID, user_id: UUID) -> Optional[Goal]:
    """Goal with its linked tasks and its direct children."""
    result = await _fetch(
        db,
        select(Goal)
        .where(Goal.id == goal_id, Goal.user_id == user_id)
        .options(
            selectinload(Goal.goal_tasks).selectinload(GoalTask.task),
            selectinload(Goal.children),
        )
    )
    return result.scalar_one_or_none()


async def list_goals_in_range(
    db: AsyncSession,
    user_id: UUID,
    start: datetime,
    end: datetime,
    scope: Optional[GoalScope] = None,
) -> List[Goal]:
    """Goals starting or ending inside [start, end], or spanning all of it."""
    overlaps = or_(
        and_(Goal.start_date >= start, Goal.start_date <= end),
        and_(Goal.end_date >= start, Goal.end_date <= end),
        and_(Goal.start_date <= start, or_(Goal.end_date >= end, Goal.end_date.is_(None))),
    )
    query = (
        select(Goal)
        .where(Goal.user_id == user_id, overlaps)
        .options(
            selectinload(Goal.parent),
            selectinload(Goal.goal_tasks).selectinload(GoalTask.task),
        )
        .order_by(Goal.start_date)
    )
    if scope is not None:
        query = query.where(Goal.scope == scope)
    result = await _fetch(db, query)
    return list(result.scalars().all())


async def list_goal_progress(db: AsyncSession, goal_id: UUID) -> List[Progress]:
    result = await _fetch(
        db,
        select(Progress).where(Progress.goal_id == goal_id).order_by(Progress.date.desc())
    )
    return list(result.scalars().all())


async def recent_progress(
    db: AsyncSession, goal_ids: Sequence[UUID], limit: int
) -> Dict[UUID, List[Progress]]:
    """Up to ``limit`` newest progress entries per goal, in one query."""
    if not goal_ids:
        return {}
    rank = (
        func.row_number()
        .over(
            partition_by=Progress.goal_id,
            order_by=(Progress.date.desc(), Progress.created_at.desc()),
        )
        .label("rank")
    )
    ranked = select(Progress, rank).where(Progress.goal_id.in_(goal_ids)).subquery()
    entry = aliased(Progress, ranked)
    result = await _fetch(
        db,
        select(entry)
        .where(ranked.c.rank <= limit)
        .order_by(ranked.c.goal_id, ranked.c.rank)
    )

    by_goal: Dict[UUID, List[Progress]] = {goal_id: [] for goal_id in goal_ids}
    for progress in result.scalars().all():
        by_goal[progress.goal_id].append(progress)
    return by_goal


async def adjust_current_value(db: AsyncSession, goal: Goal, delta: float) -> None:
    """Add ``delta`` to the goal's current value in SQL, clamping at zero."""
    await db.flush()
    new_value = Goal.current_value + delta
    await db.execute(
        update(Goal)
        .where(Goal.id == goal.id)
        .values(current_value=case((new_value < 0, 0.0), else_=new_value))
        .execution_options(synchronize_session=False)
    )
    await db.refresh(goal, ["current_value"])


async def record_progress(
    db: AsyncSession,
    goal: Goal,
    delta: float,
    note: Optional[str],
    date: Optional[datetime] = None,
    custom_data: Optional[Dict[str, Any]] = None,
) -> Progress:
    """Apply a signed delta to a goal and append the matching audit entry."""
    await adjust_current_value(db, goal, delta)
    entry = Progress(goal_id=goal.id, value=delta, note=note, custom_data=custom_data)
    if date is not None:
        entry.date = date
    db.add(entry)
    await db.flush()
    return entry


def adjust_target_value(goal: Goal, delta: int) -> None:
    """Shift a TASK_BASED goal's target by ``delta``; null counts as 0, floor 0."""
    if goal.progress_mode != ProgressMode.TASK_BASED:
        return
    goal.target_value = max(0.0, (goal.target_value or 0) + delta)


async def _require_parent(db: AsyncSession, parent_id: UUID, user_id: UUID) -> Goal:
    parent = await get_user_goal(db, parent_id, user_id)
    if parent is None:
        raise NotFoundError("Parent goal not found")
    return parent


async def create_goal(db: AsyncSession, user_id: UUID, data: Dict[str, Any]) -> Goal:
    """Create a goal; a TASK_BASED child adds one unit to its parent's target."""
    async with transaction(db):
        parent = None
        if data.get("parent_id"):
            parent = await _require_parent(db, data["parent_id"], user_id)

        values = {key: value for key, value in data.items() if value is not None}
        goal = Goal(user_id=user_id, **values)
        db.add(goal)
        await db.flush()

        if parent is not None and goal.progress_mode == ProgressMode.TASK_BASED:
            adjust_target_value(parent, 1)

    logger.info("Goal created", extra={"goal_id": str(goal.id), "parent_id": str(goal.parent_id)})
    return goal


async def update_goal(db: AsyncSession, goal: Goal, data: Dict[str, Any]) -> Goal:
    async with transaction(db):
        new_parent_id = data.get("parent_id")
        if new_parent_id is not None:
            if new_parent_id == goal.id:
                raise ConflictError("A goal cannot be its own parent")
            await _require_parent(db, new_parent_id, goal.user_id)

        for field, value in data.items():
            setattr(goal, field, value)
    return goal


async def submit_progress(
    db: AsyncSession,
    goal: Goal,
    value: float,
    note: Optional[str],
    date: Optional[datetime],
    custom_data: Optional[Dict[str, Any]],
) -> Progress:
    async with transaction(db):
        entry = await record_progress(db, goal, value, note, date=date, custom_data=custom_data)
    return entry


async def delete_goal(db: AsyncSession, goal: Goal) -> None:
    """Delete a goal with its progress and links; linked tasks survive."""
    async with transaction(db):
        if goal.parent_id and goal.progress_mode == ProgressMode.TASK_BASED:
            parent = await db.get(Goal, goal.parent_id)
            if parent is not None:
                adjust_target_value(parent, -1)
        await db.delete(goal)
    logger.info("Goal deleted", extra={"goal_id": str(goal.id)})


async def bulk_create_tasks(
    db: AsyncSession,
    goal: Goal,
    items: Sequence[Dict[str, Any]],
) -> List[Task]:
    """Create tasks linked to ``goal`` in one transaction."""
    async with transaction(db):
        tasks = []
        for item in items:
            task = Task(
                user_id=goal.user_id,
                title=item["title"],
                scheduled_date=item.get("scheduled_date"),
                size=item.get("size") or 1,
                is_completed=False,
            )
            db.add(task)
            await db.flush()
            db.add(GoalTask(goal_id=goal.id, task_id=task.id))
            tasks.append(task)

        adjust_target_value(goal, len(tasks))
        await db.flush()

    logger.info("Bulk tasks created", extra={"goal_id": str(goal.id), "count": len(tasks)})
    return tasks
