# app/exceptions/tasks.py
"""Domain errors raised by the task engines and translated at the HTTP boundary"""
from fastapi import status


class TaskDomainError(Exception):
    """Base task domain error"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Task operation failed"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(TaskDomainError):
    """Malformed input shape, e.g. a checklist that is not a list"""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input"


class ForbiddenError(TaskDomainError):
    """Authenticated, but not allowed to act on this task"""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Not authorized to update this task"


class NotFoundError(TaskDomainError):
    """Referenced task or user does not exist"""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Task not found"


class UnexpectedError(TaskDomainError):
    """Persistence or unclassified failure; never shown to clients verbatim"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
