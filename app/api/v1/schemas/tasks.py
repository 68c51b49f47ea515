# app/api/v1/schemas/tasks.py
from pydantic import BaseModel, ConfigDict, Field, UUID4, field_validator
from typing import Optional, List, Dict, Union
from datetime import datetime, timezone

from app.core.task_engine import derive_checklist_count
from app.db.models import TaskPriority, TaskStatus


def _to_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ChecklistItem(BaseModel):
    """One todo checklist entry"""
    text: str = Field(..., max_length=1000, description="Checklist item text")
    completed: bool = Field(False, description="Whether the item is done")


class TaskCreate(BaseModel):
    """Schema for creating a task"""
    title: str = Field(..., min_length=1, max_length=500, description="Task title")
    description: Optional[str] = Field(None, description="Task description")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Task priority")
    due_date: Optional[datetime] = Field(None, description="Due date for the task")
    assigned_to: List[UUID4] = Field(..., description="UUIDs of the assigned users")
    todo_checklist: List[ChecklistItem] = Field(default_factory=list)
    attachments: List[str] = Field(default_factory=list, description="Attachment URLs")

    normalize_due_date = field_validator("due_date")(_to_utc)


class TaskUpdate(BaseModel):
    """
    Schema for editing task fields. Only keys present in the request body are
    applied; an explicit empty string or list clears the stored value.
    """
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    assigned_to: Optional[List[UUID4]] = None
    todo_checklist: Optional[List[ChecklistItem]] = None
    attachments: Optional[List[str]] = None

    normalize_due_date = field_validator("due_date")(_to_utc)


class TaskStatusUpdate(BaseModel):
    """Schema for updating task status"""
    status: TaskStatus = Field(..., description="New task status")


class TaskChecklistUpdate(BaseModel):
    """Schema for replacing the checklist"""
    todo_checklist: List[ChecklistItem] = Field(..., description="Full replacement checklist")


class AssigneeSummary(BaseModel):
    id: UUID4
    name: str
    email: str
    profile_image_url: Optional[str] = None

    @classmethod
    def from_model(cls, user):
        return cls(
            id=user.uuid,
            name=user.name,
            email=user.email,
            profile_image_url=user.profile_image_url
        )


class TaskResponse(BaseModel):
    """Full task with populated assignees"""
    id: UUID4 = Field(..., description="Task UUID")
    title: str
    description: Optional[str] = None
    priority: TaskPriority
    status: TaskStatus
    progress: int = Field(..., ge=0, le=100)
    due_date: Optional[datetime] = None
    assigned_to: List[AssigneeSummary]
    created_by_id: Optional[UUID4] = Field(None, description="Creator UUID")
    todo_checklist: List[ChecklistItem]
    attachments: List[str]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def _fields_from_model(cls, task) -> dict:
        return dict(
            id=task.uuid,
            title=task.title,
            description=task.description,
            priority=task.priority,
            status=task.status,
            progress=task.progress,
            due_date=task.due_date,
            assigned_to=[AssigneeSummary.from_model(user) for user in task.assignees],
            created_by_id=task.created_by.uuid if task.created_by else None,
            todo_checklist=task.todo_checklist or [],
            attachments=task.attachments or [],
            created_at=task.created_at,
            updated_at=task.updated_at
        )

    @classmethod
    def from_model(cls, task):
        """Convert Task model to API response using UUIDs"""
        return cls(**cls._fields_from_model(task))


class TaskListItem(TaskResponse):
    """Task in a listing, with the completed checklist count under both its names"""
    completed_checklist_count: int
    completed_todo_count: int

    @classmethod
    def from_model(cls, task):
        completed = derive_checklist_count(task)
        return cls(
            **cls._fields_from_model(task),
            completed_checklist_count=completed,
            completed_todo_count=completed
        )


class StatusSummary(BaseModel):
    all: int
    pending: int
    in_progress: int
    completed: int


class TaskListResponse(BaseModel):
    tasks: List[TaskListItem]
    status_summary: StatusSummary


class TaskMutationResponse(BaseModel):
    message: str
    task: TaskResponse


class MessageResponse(BaseModel):
    message: str


class DashboardStatistics(BaseModel):
    total_tasks: int
    pending_tasks: int
    completed_tasks: int
    overdue_tasks: int


class DashboardCharts(BaseModel):
    task_distribution: Dict[str, int] = Field(..., description="Pending, InProgress, Completed and All")
    task_priority_levels: Dict[str, int] = Field(..., description="Low, Medium and High")


class RecentTask(BaseModel):
    """Projection of a task for the dashboard"""
    model_config = ConfigDict(from_attributes=True)

    id: UUID4
    title: str
    status: Union[TaskStatus, str]
    priority: Union[TaskPriority, str]
    due_date: Optional[datetime] = None
    created_at: datetime


class DashboardResponse(BaseModel):
    statistics: DashboardStatistics
    charts: DashboardCharts
    recent_tasks: List[RecentTask]
