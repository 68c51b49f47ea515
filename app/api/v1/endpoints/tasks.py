# app/api/v1/endpoints/tasks.py
"""Task management endpoints"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from uuid import UUID
from loguru import logger

from app.db.database import get_db
from app.db import crud
from app.db.models import Task, TaskStatus, User
from app.api.v1.schemas.tasks import (
    TaskCreate, TaskUpdate, TaskResponse, TaskListItem, TaskListResponse,
    TaskStatusUpdate, TaskChecklistUpdate, TaskMutationResponse, MessageResponse,
    StatusSummary, DashboardResponse
)
from app.auth.dependencies import get_current_user, require_admin
from app.core import task_engine
from app.core.aggregation import TaskScope, compute_dashboard, compute_status_summary
from app.exceptions.tasks import TaskDomainError, NotFoundError, UnexpectedError

router = APIRouter()


async def load_task(db: AsyncSession, task_id: UUID) -> Task:
    task = await crud.task.get_task_by_uuid(db, task_id)
    if not task:
        raise NotFoundError("Task not found")
    return task


async def resolve_assignees(db: AsyncSession, user_ids: List[UUID]) -> List[User]:
    users = await crud.get_users_by_uuids(db, user_ids)
    if len(users) != len(user_ids):
        raise NotFoundError("Assigned user not found")
    return users


@router.get("/dashboard-data", response_model=DashboardResponse)
async def get_dashboard_data(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Dashboard over every task (admin)"""
    try:
        return await compute_dashboard(db, TaskScope.everything())

    except Exception as e:
        logger.error(f"Failed to build admin dashboard: {e}")
        raise UnexpectedError("Failed to retrieve dashboard data")


@router.get("/user-dashboard-data", response_model=DashboardResponse)
async def get_user_dashboard_data(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Dashboard over the tasks assigned to the caller"""
    try:
        return await compute_dashboard(db, TaskScope.assigned_to(current_user))

    except Exception as e:
        logger.error(f"Failed to build dashboard for user {current_user.id}: {e}")
        raise UnexpectedError("Failed to retrieve dashboard data")


@router.get("/", response_model=TaskListResponse)
async def list_tasks(
    status_filter: Optional[TaskStatus] = Query(None, alias="status", description="Filter by task status"),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """List tasks: admins see every task, members their assignments"""
    try:
        scope = TaskScope.for_user(current_user)
        tasks = await crud.task.list_tasks(
            db=db,
            assignee_id=scope.assignee_id,
            status_filter=status_filter
        )
        summary = await compute_status_summary(db, scope)

        return TaskListResponse(
            tasks=[TaskListItem.from_model(task) for task in tasks],
            status_summary=StatusSummary(**summary)
        )

    except Exception as e:
        logger.error(f"Failed to list tasks: {e}")
        raise UnexpectedError("Failed to retrieve tasks")


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a specific task by UUID"""
    try:
        task = await load_task(db, task_id)
        return TaskResponse.from_model(task)

    except TaskDomainError:
        raise
    except Exception as e:
        logger.error(f"Failed to get task {task_id}: {e}")
        raise UnexpectedError("Failed to retrieve task")


@router.post("/", response_model=TaskMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Create a new task (admin)"""
    try:
        assignees = await resolve_assignees(db, task_data.assigned_to)

        task = task_engine.initialize_task(
            title=task_data.title,
            description=task_data.description,
            priority=task_data.priority,
            due_date=task_data.due_date,
            assignees=assignees,
            creator=current_user,
            todo_checklist=[item.model_dump() for item in task_data.todo_checklist],
            attachments=task_data.attachments
        )
        task = await crud.task.save_task(db, task)

        logger.info(f"Task created: {task.title} by user {current_user.id} for {len(assignees)} assignee(s)")
        return TaskMutationResponse(
            message="Task created successfully",
            task=TaskResponse.from_model(task)
        )

    except TaskDomainError:
        raise
    except Exception as e:
        logger.error(f"Failed to create task: {e}")
        raise UnexpectedError("Failed to create task")


@router.put("/{task_id}", response_model=TaskMutationResponse)
async def update_task(
    task_id: UUID,
    updates: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Update task fields; only fields present in the body change"""
    try:
        task = await load_task(db, task_id)

        fields = updates.model_dump(exclude_unset=True)
        if fields.get("assigned_to") is not None:
            fields["assigned_to"] = await resolve_assignees(db, fields["assigned_to"])

        task_engine.apply_field_update(task, fields)
        task = await crud.task.save_task(db, task)

        logger.info(f"Task {task.title} updated by user {current_user.id}: {sorted(fields)}")
        return TaskMutationResponse(
            message="Task updated successfully",
            task=TaskResponse.from_model(task)
        )

    except TaskDomainError:
        raise
    except Exception as e:
        logger.error(f"Failed to update task {task_id}: {e}")
        raise UnexpectedError("Failed to update task")


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin)
):
    """Delete a task permanently (admin)"""
    try:
        task = await load_task(db, task_id)

        success = await crud.task.delete_task(db, task)
        if not success:
            raise UnexpectedError("Failed to delete task")
        return MessageResponse(message="Task deleted successfully")

    except TaskDomainError:
        raise
    except Exception as e:
        logger.error(f"Failed to delete task {task_id}: {e}")
        raise UnexpectedError("Failed to delete task")


@router.put("/{task_id}/status", response_model=TaskMutationResponse)
async def update_task_status(
    task_id: UUID,
    status_update: TaskStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Set the task status (assignee or admin)"""
    try:
        task = await load_task(db, task_id)

        task_engine.apply_status_change(task, status_update.status, current_user)
        task = await crud.task.save_task(db, task)

        return TaskMutationResponse(
            message="Task status updated successfully",
            task=TaskResponse.from_model(task)
        )

    except TaskDomainError:
        raise
    except Exception as e:
        logger.error(f"Failed to update task status {task_id}: {e}")
        raise UnexpectedError("Failed to update task status")


@router.put("/{task_id}/todo", response_model=TaskMutationResponse)
async def update_task_checklist(
    task_id: UUID,
    checklist_update: TaskChecklistUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Replace the checklist and re-derive progress and status (assignee or admin)"""
    try:
        task = await load_task(db, task_id)

        task_engine.apply_checklist_update(
            task,
            [item.model_dump() for item in checklist_update.todo_checklist],
            current_user
        )
        task = await crud.task.save_task(db, task)

        return TaskMutationResponse(
            message="Task checklist updated successfully",
            task=TaskResponse.from_model(task)
        )

    except TaskDomainError:
        raise
    except Exception as e:
        logger.error(f"Failed to update task checklist {task_id}: {e}")
        raise UnexpectedError("Failed to update task checklist")
