# app/core/aggregation.py
"""
Dashboard and summary aggregation over a task scope.

Counts come from independent repository queries, so under concurrent writes
the figures may not add up exactly; nothing here takes a snapshot.
"""
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.permissions import can_view_all_tasks
from app.db.crud import task as task_crud
from app.db.models import TaskPriority, TaskStatus, User

RECENT_TASKS_LIMIT = 10

_SEPARATORS = re.compile(r"[-_\s]+")
_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")


@dataclass(frozen=True)
class TaskScope:
    """Visibility boundary: every task, or only the tasks assigned to one user"""
    assignee_id: Optional[int] = None

    @classmethod
    def everything(cls) -> "TaskScope":
        return cls()

    @classmethod
    def assigned_to(cls, user: User) -> "TaskScope":
        return cls(assignee_id=user.id)

    @classmethod
    def for_user(cls, user: User) -> "TaskScope":
        """Admins see every task, members their own assignments"""
        return cls.everything() if can_view_all_tasks(user) else cls.assigned_to(user)

    @property
    def is_global(self) -> bool:
        return self.assignee_id is None


def normalize_label(value: Any) -> str:
    """Case, hyphen, underscore and whitespace insensitive form of a label"""
    if value is None:
        return ""
    if isinstance(value, (TaskStatus, TaskPriority)):
        value = value.value
    return _SEPARATORS.sub("", str(value).lower())


def display_key(label: str) -> str:
    """'In-Progress' -> 'InProgress'"""
    return _NON_ALNUM.sub("", label)


def _count_by_label(rows: Iterable[Tuple[Any, int]], labels: List[str]) -> Dict[str, int]:
    wanted = {normalize_label(label): label for label in labels}
    counts = {label: 0 for label in labels}
    for raw_label, count in rows:
        label = wanted.get(normalize_label(raw_label))
        if label is not None:
            counts[label] += count
    return counts


def build_distribution(rows: Iterable[Tuple[Any, int]], total: int) -> Dict[str, int]:
    """
    Per-status counts keyed by display key, plus All. Stored labels that match
    no known status after normalization are dropped.
    """
    counts = _count_by_label(rows, [status.value for status in TaskStatus])
    distribution = {display_key(label): count for label, count in counts.items()}
    distribution["All"] = total
    return distribution


def build_priority_levels(rows: Iterable[Tuple[Any, int]]) -> Dict[str, int]:
    return _count_by_label(rows, [priority.value for priority in TaskPriority])


def summarize_status_counts(rows: Iterable[Tuple[Any, int]]) -> Dict[str, int]:
    """pending / in_progress / completed from (label, count) rows"""
    counts = _count_by_label(rows, [status.value for status in TaskStatus])
    return {
        "pending": counts[TaskStatus.PENDING.value],
        "in_progress": counts[TaskStatus.IN_PROGRESS.value],
        "completed": counts[TaskStatus.COMPLETED.value],
    }


def match_label(raw_label: Any, enum_cls):
    """The enum member a stored label normalizes to, or the label itself when none does"""
    wanted = normalize_label(raw_label)
    for member in enum_cls:
        if normalize_label(member) == wanted:
            return member
    return raw_label


def project_recent_task(row) -> Dict[str, Any]:
    return {
        "id": row.id,
        "title": row.title,
        "status": match_label(row.status, TaskStatus),
        "priority": match_label(row.priority, TaskPriority),
        "due_date": row.due_date,
        "created_at": row.created_at,
    }


async def compute_status_summary(db: AsyncSession, scope: TaskScope) -> Dict[str, int]:
    """Total and per-status counts for the scope"""
    assignee_id = scope.assignee_id
    return {
        "all": await task_crud.count_tasks(db, assignee_id),
        "pending": await task_crud.count_tasks(db, assignee_id, TaskStatus.PENDING),
        "in_progress": await task_crud.count_tasks(db, assignee_id, TaskStatus.IN_PROGRESS),
        "completed": await task_crud.count_tasks(db, assignee_id, TaskStatus.COMPLETED),
    }


async def compute_dashboard(
        db: AsyncSession,
        scope: TaskScope,
        now: Optional[datetime] = None
) -> Dict[str, Any]:
    """Statistics, chart data and the most recent tasks for the scope"""
    now = now or datetime.now(timezone.utc)
    assignee_id = scope.assignee_id

    total = await task_crud.count_tasks(db, assignee_id)
    statistics = {
        "total_tasks": total,
        "pending_tasks": await task_crud.count_tasks(db, assignee_id, TaskStatus.PENDING),
        "completed_tasks": await task_crud.count_tasks(db, assignee_id, TaskStatus.COMPLETED),
        "overdue_tasks": await task_crud.count_overdue_tasks(db, now, assignee_id),
    }

    status_rows = await task_crud.count_tasks_grouped_by(db, "status", assignee_id)
    priority_rows = await task_crud.count_tasks_grouped_by(db, "priority", assignee_id)
    recent = await task_crud.get_recent_tasks(db, assignee_id, limit=RECENT_TASKS_LIMIT)

    return {
        "statistics": statistics,
        "charts": {
            "task_distribution": build_distribution(status_rows, total),
            "task_priority_levels": build_priority_levels(priority_rows),
        },
        "recent_tasks": [project_recent_task(task) for task in recent],
    }
