"""Goal completion and its one-level cascade into the parent goal.

Two policies propagate a child's completion into its parent's running value:

* explicit completion (:meth:`CompletionService.complete_goal` /
  :meth:`CompletionService.uncomplete_goal`): flips the goal's manual completion
  flag idempotently; a ``TASK_BASED`` or ``HABIT`` parent moves by exactly one
  unit (never below zero) and gets an audit entry. ``MANUAL_TOTAL`` parents are
  left alone.
* task roll-up (:meth:`CompletionService.toggle_task`): toggling a task moves every
  linked ``TASK_BASED`` goal by the task size. When the toggle completes the task
  and a goal's task ratio reaches 100%, that goal's ``TASK_BASED`` parent gains one
  unit. This path does not look at the completion flag and is not idempotent
  across repeated toggles.

Neither policy walks further than the immediate parent. Every operation runs in a
single transaction.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import transaction
from app.models import utcnow
from app.models.goal import Goal, ProgressMode
from app.models.task import Task
from app.services import goal_service, task_service
from app.services.progress_service import TaskTotals, task_size

logger = logging.getLogger(__name__)

# Parent modes that count completed subgoals as progress units
CASCADING_PARENT_MODES = (ProgressMode.TASK_BASED, ProgressMode.HABIT)


@dataclass
class CompletionResult:
    success: bool
    message: str
    updated_goal: Optional[Goal] = None


class CompletionService:
    """Atomic, idempotent goal completion with parent bookkeeping."""

    async def complete_goal(self, db: AsyncSession, goal_id: UUID) -> CompletionResult:
        """Mark a goal completed and add one unit to a cascading parent."""
        return await self._set_completion(db, goal_id, completed=True)

    async def uncomplete_goal(self, db: AsyncSession, goal_id: UUID) -> CompletionResult:
        """Mark a goal incomplete and take one unit from a cascading parent."""
        return await self._set_completion(db, goal_id, completed=False)

    async def _set_completion(self, db: AsyncSession, goal_id: UUID, completed: bool) -> CompletionResult:
        state = "completed" if completed else "incomplete"

        async with transaction(db):
            goal = await db.get(Goal, goal_id, populate_existing=True)
            if goal is None:
                return CompletionResult(success=False, message="Goal not found")

            if goal.is_marked_complete == completed:
                logger.debug("Goal completion no-op", extra={"goal_id": str(goal_id), "state": state})
                return CompletionResult(
                    success=True,
                    message=f"Goal was already marked as {state} (no-op)",
                    updated_goal=goal,
                )

            goal.is_marked_complete = completed

            if goal.parent_id:
                parent = await db.get(Goal, goal.parent_id)
                if parent is not None and parent.progress_mode in CASCADING_PARENT_MODES:
                    await goal_service.record_progress(
                        db,
                        parent,
                        1 if completed else -1,
                        f'Subgoal "{goal.title}" marked as {state}',
                    )
                    logger.info(
                        "Completion cascaded to parent",
                        extra={
                            "goal_id": str(goal.id),
                            "parent_id": str(parent.id),
                            "parent_value": parent.current_value,
                        },
                    )
            await db.flush()

        logger.info("Goal marked %s", state, extra={"goal_id": str(goal_id)})
        return CompletionResult(success=True, message=f"Goal marked as {state}", updated_goal=goal)

    async def toggle_task(self, db: AsyncSession, task: Task) -> Task:
        """Flip a task's completion and roll the change into its linked goals."""
        completing = not task.is_completed
        delta = task_size(task) if completing else -task_size(task)
        verb = "completed" if completing else "reopened"

        async with transaction(db):
            task.is_completed = completing
            task.completed_at = utcnow() if completing else None
            await db.flush()

            for goal in await task_service.load_linked_goals(db, task.id):
                if goal.progress_mode != ProgressMode.TASK_BASED:
                    continue

                await goal_service.record_progress(db, goal, delta, f'Task "{task.title}" {verb}')

                if not (completing and goal.parent_id):
                    continue
                totals = TaskTotals().add_links(goal.goal_tasks, completed_task_ids={task.id})
                if totals.percent_complete < 100:
                    continue

                parent = await db.get(Goal, goal.parent_id)
                if parent is not None and parent.progress_mode == ProgressMode.TASK_BASED:
                    await goal_service.record_progress(
                        db, parent, 1, f'Subgoal "{goal.title}" completed (all tasks done)'
                    )
                    logger.info(
                        "Task roll-up completed subgoal",
                        extra={"goal_id": str(goal.id), "parent_id": str(parent.id)},
                    )

        logger.info("Task %s", verb, extra={"task_id": str(task.id), "delta": delta})
        return task
