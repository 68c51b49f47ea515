# app/db/models/task.py
"""Task model with ordered assignees and a JSON checklist"""
from sqlalchemy import Column, Integer, String, Text, ForeignKey, Index, Enum, DateTime, JSON
from sqlalchemy.orm import relationship

from app.db.models.base import Base, TimestampMixin, UUIDMixin
from app.db.models.enums import TaskStatus, TaskPriority, enum_values


class TaskAssignee(Base):
    """Assignment of a user to a task; position keeps the display order"""
    __tablename__ = "task_assignees"

    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    task = relationship("Task", back_populates="assignments")
    user = relationship("User", lazy="selectin")

    __table_args__ = (
        Index('idx_task_assignee_user', 'user_id'),
    )

    def __repr__(self):
        return f"<TaskAssignee task_id={self.task_id} user_id={self.user_id}>"


class Task(Base, UUIDMixin, TimestampMixin):
    """Task assigned to one or more users, with a checklist driving its progress"""
    __tablename__ = "tasks"

    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(
        Enum(TaskPriority, name="task_priority", values_callable=enum_values),
        nullable=False,
        default=TaskPriority.MEDIUM,
        index=True,
    )
    status = Column(
        Enum(TaskStatus, name="task_status", values_callable=enum_values),
        nullable=False,
        default=TaskStatus.PENDING,
        index=True,
    )
    progress = Column(Integer, nullable=False, default=0)
    due_date = Column(DateTime(timezone=True), nullable=True)

    # [{"text": str, "completed": bool}, ...]
    todo_checklist = Column(JSON, nullable=False, default=list)
    attachments = Column(JSON, nullable=False, default=list)

    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Relationships
    created_by = relationship("User", foreign_keys=[created_by_id], lazy="selectin")
    assignments = relationship(
        "TaskAssignee",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by=TaskAssignee.position,
        lazy="selectin",
    )

    __table_args__ = (
        Index('idx_task_status_created', 'status', 'created_at'),
        Index('idx_task_due_status', 'due_date', 'status'),
    )

    @property
    def assignees(self):
        """Assigned users in display order"""
        return [assignment.user for assignment in self.assignments]

    @property
    def assignee_ids(self):
        return {assignment.user_id for assignment in self.assignments}

    def __repr__(self):
        return f"<Task title={self.title} status={self.status} progress={self.progress}>"
