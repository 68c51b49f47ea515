# app/db/models/__init__.py
"""
Database models package
Imports all models for easy access
"""

# Import base classes and mixins
from app.db.models.base import Base, TimestampMixin, UUIDMixin

# Import all enums
from app.db.models.enums import TaskStatus, TaskPriority, UserRole

# Import authentication models
from app.db.models.auth import User

# Import task models
from app.db.models.task import Task, TaskAssignee

# Export all models and enums
__all__ = [
    # Base classes
    'Base', 'TimestampMixin', 'UUIDMixin',

    # Enums
    'TaskStatus', 'TaskPriority', 'UserRole',

    # Authentication models
    'User',

    # Task models
    'Task', 'TaskAssignee',
]
