# app/db/models/enums.py
import enum


class TaskStatus(str, enum.Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In-Progress"
    COMPLETED = "Completed"


class TaskPriority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class UserRole(str, enum.Enum):
    MEMBER = "member"
    ADMIN = "admin"


def enum_values(enum_cls):
    """Persist enum values ("In-Progress") rather than member names ("IN_PROGRESS")"""
    return [member.value for member in enum_cls]
