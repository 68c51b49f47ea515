"""CRUD operations for database models"""
from .user import (
    get_user_by_email,
    get_user_by_id,
    get_user_by_uuid,
    get_users_by_uuids,
    list_users,
    create_user_db,
    update_user_db,
    get_user_count,
)
from . import task
from . import user

__all__ = [
    # User CRUD
    "get_user_by_email",
    "get_user_by_id",
    "get_user_by_uuid",
    "get_users_by_uuids",
    "list_users",
    "create_user_db",
    "update_user_db",
    "get_user_count",
    # Modules
    "task",
    "user",
]
