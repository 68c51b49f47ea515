# app/auth/permissions.py
"""Capability checks for task operations, kept in one place"""
from app.db.models import Task, User, UserRole
from app.exceptions.tasks import ForbiddenError


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN


def is_assignee(user: User, task: Task) -> bool:
    """True when the user is among the task's assignees"""
    for assignment in task.assignments:
        if assignment.user_id is not None and assignment.user_id == user.id:
            return True
        if assignment.user is user:
            return True
    return False


def can_mutate_progress(user: User, task: Task) -> bool:
    """Status and checklist updates: any assignee, or an admin"""
    return is_admin(user) or is_assignee(user, task)


def can_create_task(user: User) -> bool:
    return is_admin(user)


def can_delete_task(user: User) -> bool:
    return is_admin(user)


def can_view_all_tasks(user: User) -> bool:
    return is_admin(user)


def ensure_can_mutate_progress(user: User, task: Task, action: str = "update this task") -> None:
    if not can_mutate_progress(user, task):
        raise ForbiddenError(f"Not authorized to {action}")
