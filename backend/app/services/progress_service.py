"""Goal progress aggregation.

Pure computations over already-loaded goal rows: no queries, no writes. A goal's
percent-complete comes from one of two ratios, chosen by its progress mode:

* task progress: completed linked-task size over total linked-task size. For
  ``TASK_BASED`` goals the direct children's linked tasks are rolled into the same
  totals (one level only, grandchildren are not visited).
* manual progress: current value over target value, capped at 100.

Both ratios are 0 when their denominator is missing or zero.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, Optional, Set
from uuid import UUID

from app.models.goal import ProgressMode


def _loaded(obj: Any, name: str, default: Any = None) -> Any:
    """Read an attribute only if it is already loaded.

    ORM relationships that were not eagerly fetched are absent from the instance
    dict; touching them would trigger lazy IO, so they count as empty here.
    """
    return vars(obj).get(name, default)


def task_size(task: Any) -> int:
    return (task.size if task is not None else None) or 1


@dataclass
class TaskTotals:
    """Running size/count totals over goal-task links."""

    total_count: int = 0
    completed_count: int = 0
    total_size: int = 0
    completed_size: int = 0

    def add_links(
        self,
        goal_tasks: Iterable[Any],
        completed_task_ids: Optional[Set[UUID]] = None,
    ) -> "TaskTotals":
        """Accumulate links; ids in ``completed_task_ids`` count as completed."""
        completed_task_ids = completed_task_ids or set()
        for link in goal_tasks:
            task = _loaded(link, "task")
            size = task_size(task)
            is_completed = bool(task is not None and task.is_completed) or (
                _loaded(link, "task_id") in completed_task_ids
            )
            self.total_count += 1
            self.total_size += size
            if is_completed:
                self.completed_count += 1
                self.completed_size += size
        return self

    @property
    def percent_complete(self) -> float:
        if self.total_size > 0:
            return self.completed_size / self.total_size * 100
        return 0.0


@dataclass
class ManualTotals:
    current_value: Optional[float] = None
    target_value: Optional[float] = None

    @property
    def percent_complete(self) -> float:
        if self.target_value:
            return min((self.current_value or 0) / self.target_value * 100, 100.0)
        return 0.0


@dataclass
class ProgressSummary:
    mode: ProgressMode
    percent_complete: float
    task_totals: TaskTotals = field(default_factory=TaskTotals)
    manual_totals: ManualTotals = field(default_factory=ManualTotals)


def goal_task_totals(goal: Any) -> TaskTotals:
    """Totals over a goal's own links plus, for TASK_BASED goals, its children's."""
    totals = TaskTotals().add_links(_loaded(goal, "goal_tasks", []) or [])

    children = _loaded(goal, "children", []) or []
    if children and goal.progress_mode == ProgressMode.TASK_BASED:
        for child in children:
            totals.add_links(_loaded(child, "goal_tasks", []) or [])
    return totals


def select_percent_complete(mode: ProgressMode, task_totals: TaskTotals, manual_totals: ManualTotals) -> float:
    if mode == ProgressMode.TASK_BASED:
        return task_totals.percent_complete
    if mode == ProgressMode.MANUAL_TOTAL:
        return manual_totals.percent_complete
    if mode == ProgressMode.HABIT:
        # Habit goals are tracked by logged occurrences against the target
        return manual_totals.percent_complete
    raise ValueError(f"Unknown progress mode: {mode!r}")


def summarize_goal(goal: Any) -> ProgressSummary:
    task_totals = goal_task_totals(goal)
    manual_totals = ManualTotals(current_value=goal.current_value, target_value=goal.target_value)
    return ProgressSummary(
        mode=goal.progress_mode,
        percent_complete=select_percent_complete(goal.progress_mode, task_totals, manual_totals),
        task_totals=task_totals,
        manual_totals=manual_totals,
    )


def compute_goal_view(goal: Any) -> Dict[str, Any]:
    """Return the goal's loaded fields plus a ``progress_summary`` mapping."""
    view = {key: value for key, value in vars(goal).items() if not key.startswith("_")}
    view["progress_summary"] = asdict(summarize_goal(goal))
    return view
