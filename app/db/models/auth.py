# app/db/models/auth.py
"""User account model"""
from sqlalchemy import Column, String, Boolean, Enum, Index

from app.db.models.base import Base, TimestampMixin, UUIDMixin
from app.db.models.enums import UserRole, enum_values


class User(Base, UUIDMixin, TimestampMixin):
    """User model with UUID security"""
    __tablename__ = "users"

    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    profile_image_url = Column(String(1024), nullable=True)
    role = Column(
        Enum(UserRole, name="user_role", values_callable=enum_values),
        nullable=False,
        default=UserRole.MEMBER,
    )
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index('idx_user_email_active', 'email', 'is_active'),
        Index('idx_user_role', 'role'),
        Index('idx_user_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<User email={self.email} role={self.role}>"
