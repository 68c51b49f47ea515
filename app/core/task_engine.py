# app/core/task_engine.py
"""
Task state rules.

Keeps a task's checklist, numeric progress and status consistent on every
mutation path: creation, plain field edits, direct status changes and
checklist replacement. Functions mutate the given Task and return it; they do
not touch the database session and do not log.
"""
from collections.abc import Mapping
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from app.auth.permissions import ensure_can_mutate_progress
from app.db.models import Task, TaskAssignee, TaskPriority, TaskStatus, User
from app.exceptions.tasks import ValidationError

UPDATABLE_FIELDS = frozenset({
    "title", "description", "priority", "due_date",
    "attachments", "todo_checklist", "assigned_to",
})
NON_NULLABLE_FIELDS = frozenset({"title", "priority", "attachments", "todo_checklist", "assigned_to"})


def compute_progress(checklist: List[Dict[str, Any]]) -> int:
    """Rounded (half-up) percentage of completed items; 0 for an empty checklist"""
    total = len(checklist)
    if total == 0:
        return 0
    completed = sum(1 for item in checklist if item["completed"])
    # floor(100 * completed / total + 0.5) in integer arithmetic
    return (200 * completed + total) // (2 * total)


def status_for_progress(progress: int) -> TaskStatus:
    if progress >= 100:
        return TaskStatus.COMPLETED
    if progress > 0:
        return TaskStatus.IN_PROGRESS
    return TaskStatus.PENDING


def derive_checklist_count(task: Task) -> int:
    """Number of completed checklist items"""
    return sum(1 for item in (task.todo_checklist or []) if item.get("completed"))


def validate_checklist(checklist: Any) -> List[Dict[str, Any]]:
    """Return a clean copy of the checklist or raise ValidationError"""
    if not isinstance(checklist, list):
        raise ValidationError("Invalid input: todo_checklist must be an array")

    cleaned = []
    for index, item in enumerate(checklist):
        if not isinstance(item, Mapping):
            raise ValidationError(f"Invalid checklist item at position {index}")
        text = item.get("text")
        completed = item.get("completed", False)
        if not isinstance(text, str):
            raise ValidationError(f"Checklist item at position {index} needs a text")
        if not isinstance(completed, bool):
            raise ValidationError(f"Checklist item at position {index} has a non-boolean completed flag")
        cleaned.append({"text": text, "completed": completed})
    return cleaned


def _validate_assignees(assignees: Any) -> List[User]:
    if not isinstance(assignees, list):
        raise ValidationError("assigned_to must be an array of user IDs")
    return assignees


def _validate_attachments(attachments: Any) -> List[str]:
    if not isinstance(attachments, list) or not all(isinstance(url, str) for url in attachments):
        raise ValidationError("attachments must be an array of URLs")
    return list(attachments)


def _coerce_enum(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}', expected one of: {allowed}")


def _set_assignees(task: Task, users: Iterable[User]) -> None:
    # Reuse rows for users who stay assigned so the composite key is never re-inserted
    existing = {assignment.user_id: assignment for assignment in task.assignments}
    assignments = []
    seen = set()
    for user in users:
        if user.id in seen:
            continue
        seen.add(user.id)
        assignment = existing.get(user.id) or TaskAssignee(user=user, user_id=user.id)
        assignment.position = len(assignments)
        assignments.append(assignment)
    task.assignments = assignments


def initialize_task(
        *,
        title: str,
        creator: User,
        assignees: List[User],
        description: Optional[str] = None,
        priority: Any = TaskPriority.MEDIUM,
        due_date: Optional[datetime] = None,
        todo_checklist: Any = None,
        attachments: Any = None,
) -> Task:
    """Build a new task whose progress and status follow its initial checklist"""
    assignees = _validate_assignees(assignees)
    checklist = validate_checklist(todo_checklist if todo_checklist is not None else [])
    attachments = _validate_attachments(attachments if attachments is not None else [])
    priority = _coerce_enum(TaskPriority, priority, "priority")

    progress = compute_progress(checklist)
    task = Task(
        title=title,
        description=description,
        priority=priority,
        due_date=due_date,
        todo_checklist=checklist,
        attachments=attachments,
        progress=progress,
        status=status_for_progress(progress),
        created_by=creator,
        created_by_id=creator.id,
        assignments=[],
    )
    _set_assignees(task, assignees)
    return task


def apply_field_update(task: Task, fields: Dict[str, Any]) -> Task:
    """
    Merge explicitly supplied fields over the task.

    A key absent from `fields` keeps the stored value; a key present with an
    empty string or empty list clears it. Everything is validated before the
    first field is written. Progress and status are left as they are, even when
    the checklist is replaced here.
    """
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

    for field in NON_NULLABLE_FIELDS & set(fields):
        if fields[field] is None:
            raise ValidationError(f"{field} cannot be null")

    changes = dict(fields)
    if "assigned_to" in changes:
        changes["assigned_to"] = _validate_assignees(changes["assigned_to"])
    if "todo_checklist" in changes:
        changes["todo_checklist"] = validate_checklist(changes["todo_checklist"])
    if "attachments" in changes:
        changes["attachments"] = _validate_attachments(changes["attachments"])
    if "priority" in changes:
        changes["priority"] = _coerce_enum(TaskPriority, changes["priority"], "priority")

    assignees = changes.pop("assigned_to", None)
    for field, value in changes.items():
        setattr(task, field, value)
    if assignees is not None:
        _set_assignees(task, assignees)
    return task


def apply_status_change(task: Task, new_status: Any, caller: User) -> Task:
    """
    Set the status directly. Marking a task Completed also ticks every
    checklist item and sets progress to 100.
    """
    ensure_can_mutate_progress(caller, task, "update this task status")
    new_status = _coerce_enum(TaskStatus, new_status, "status")

    task.status = new_status
    if new_status == TaskStatus.COMPLETED:
        task.todo_checklist = [
            {**item, "completed": True} for item in (task.todo_checklist or [])
        ]
        task.progress = 100
    return task


def apply_checklist_update(task: Task, new_checklist: Any, caller: User) -> Task:
    """Replace the checklist wholesale and re-derive progress and status from it"""
    ensure_can_mutate_progress(caller, task, "update this task checklist")
    checklist = validate_checklist(new_checklist)

    task.todo_checklist = checklist
    task.progress = compute_progress(checklist)
    task.status = status_for_progress(task.progress)
    return task
