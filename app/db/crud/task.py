# app/db/crud/task.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func, cast, String, Select, Row
from sqlalchemy.orm import selectinload
from typing import Optional, List, Dict, Tuple
from uuid import UUID
from datetime import datetime
from loguru import logger

from app.db.models import Task, TaskAssignee, TaskStatus


def _task_query() -> Select:
    return select(Task).options(
        selectinload(Task.assignments).selectinload(TaskAssignee.user),
        selectinload(Task.created_by),
    )


def _scoped(query: Select, assignee_id: Optional[int]) -> Select:
    """Restrict a query to tasks assigned to one user; None means all tasks"""
    if assignee_id is not None:
        query = query.where(Task.assignments.any(TaskAssignee.user_id == assignee_id))
    return query


async def get_task_by_uuid(
        db: AsyncSession,
        task_uuid: UUID,
        populate_existing: bool = False
) -> Optional[Task]:
    """Get task by UUID with assignees and creator loaded"""
    query = _task_query().filter(Task.uuid == task_uuid)
    if populate_existing:
        query = query.execution_options(populate_existing=True)
    result = await db.execute(query)
    return result.scalars().first()


async def list_tasks(
        db: AsyncSession,
        assignee_id: Optional[int] = None,
        status_filter: Optional[TaskStatus] = None
) -> List[Task]:
    """Tasks in scope, newest first, optionally narrowed to one status"""
    query = _scoped(_task_query(), assignee_id)
    if status_filter:
        query = query.filter(Task.status == status_filter)
    query = query.order_by(Task.created_at.desc(), Task.id.desc())

    result = await db.execute(query)
    return list(result.scalars().unique().all())


async def save_task(db: AsyncSession, task: Task) -> Task:
    """Persist a new or modified task and return it freshly loaded"""
    try:
        db.add(task)
        await db.commit()
    except Exception as e:
        logger.error(f"Failed to save task {task.title}: {e}")
        await db.rollback()
        raise

    saved = await get_task_by_uuid(db, task.uuid, populate_existing=True)
    logger.info(f"Task saved: {saved.title} status={saved.status.value} progress={saved.progress}")
    return saved


async def delete_task(db: AsyncSession, task: Task) -> bool:
    """Delete a task (hard delete)"""
    try:
        await db.delete(task)
        await db.commit()
        logger.info(f"Task {task.title} deleted")
        return True

    except Exception as e:
        logger.error(f"Failed to delete task {task.title}: {e}")
        await db.rollback()
        return False


async def count_tasks(
        db: AsyncSession,
        assignee_id: Optional[int] = None,
        status_filter: Optional[TaskStatus] = None
) -> int:
    query = _scoped(select(func.count(Task.id)), assignee_id)
    if status_filter:
        query = query.filter(Task.status == status_filter)
    return await db.scalar(query) or 0


async def count_overdue_tasks(
        db: AsyncSession,
        now: datetime,
        assignee_id: Optional[int] = None
) -> int:
    """Tasks past their due date that are not completed; no due date is never overdue"""
    query = _scoped(select(func.count(Task.id)), assignee_id).filter(
        Task.due_date.is_not(None),
        Task.due_date < now,
        Task.status != TaskStatus.COMPLETED,
    )
    return await db.scalar(query) or 0


async def count_tasks_grouped_by(
        db: AsyncSession,
        field: str,
        assignee_id: Optional[int] = None
) -> List[Tuple[str, int]]:
    """(stored label, count) pairs for one column; labels come back exactly as persisted"""
    column = getattr(Task, field)
    label = cast(column, String)
    query = _scoped(select(label, func.count(Task.id)), assignee_id).group_by(label)

    result = await db.execute(query)
    return [(row[0], row[1]) for row in result.all()]


async def get_recent_tasks(
        db: AsyncSession,
        assignee_id: Optional[int] = None,
        limit: int = 10
) -> List[Row]:
    """
    Newest tasks as plain rows (id, title, status, priority, due_date, created_at).
    Status and priority are the stored labels, unchecked against the enums.
    """
    query = _scoped(select(
        Task.uuid.label("id"),
        Task.title,
        cast(Task.status, String).label("status"),
        cast(Task.priority, String).label("priority"),
        Task.due_date,
        Task.created_at,
    ), assignee_id)
    query = query.order_by(Task.created_at.desc(), Task.id.desc()).limit(limit)

    result = await db.execute(query)
    return list(result.all())


async def count_assigned_tasks_by_status(db: AsyncSession) -> Dict[int, List[Tuple[str, int]]]:
    """Per assignee: (stored status label, count) pairs"""
    label = cast(Task.status, String)
    result = await db.execute(
        select(TaskAssignee.user_id, label, func.count(Task.id))
        .join(Task, Task.id == TaskAssignee.task_id)
        .group_by(TaskAssignee.user_id, label)
    )

    counts: Dict[int, List[Tuple[str, int]]] = {}
    for user_id, status_label, count in result.all():
        counts.setdefault(user_id, []).append((status_label, count))
    return counts
