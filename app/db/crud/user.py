# app/db/crud/user.py
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func, Select
from typing import Optional, Dict, Any, List, Sequence
from uuid import UUID
from loguru import logger

from app.db.models import User, UserRole

# Never changed through a profile update
PROTECTED_FIELDS = frozenset({"id", "uuid", "role", "created_at"})


async def _first(db: AsyncSession, query: Select) -> Optional[User]:
    result = await db.execute(query)
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    return await _first(db, select(User).filter(User.email == email))


async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    return await _first(db, select(User).filter(User.id == user_id))


async def get_user_by_uuid(db: AsyncSession, user_uuid: UUID) -> Optional[User]:
    return await _first(db, select(User).filter(User.uuid == user_uuid))


async def get_users_by_uuids(db: AsyncSession, user_uuids: Sequence[UUID]) -> List[User]:
    """
    Resolve public UUIDs to users, preserving the requested order.
    Unknown UUIDs are left out; callers compare lengths to detect them.
    """
    if not user_uuids:
        return []
    result = await db.execute(select(User).filter(User.uuid.in_(set(user_uuids))))
    by_uuid = {user.uuid: user for user in result.scalars().all()}
    return [by_uuid[user_uuid] for user_uuid in user_uuids if user_uuid in by_uuid]


async def list_users(db: AsyncSession, role: Optional[UserRole] = None) -> List[User]:
    """All users, optionally of one role, oldest first"""
    query = select(User)
    if role is not None:
        query = query.filter(User.role == role)
    result = await db.execute(query.order_by(User.created_at.asc(), User.id.asc()))
    return list(result.scalars().all())


async def get_user_count(db: AsyncSession) -> int:
    return await db.scalar(select(func.count(User.id))) or 0


async def create_user_db(db: AsyncSession, user_data: Dict[str, Any]) -> User:
    if not user_data.get("email") or not user_data.get("hashed_password"):
        raise ValueError("Email and hashed_password are required")

    user = User(**user_data)
    db.add(user)
    try:
        await db.commit()
    except Exception as e:
        logger.error(f"Failed to create user {user_data['email']}: {e}")
        await db.rollback()
        raise

    await db.refresh(user)
    logger.info(f"User created: {user.email} role={user.role.value}")
    return user


async def update_user_db(db: AsyncSession, user: User, updates: Dict[str, Any]) -> User:
    """Apply present fields to the user; protected and unknown fields are skipped"""
    for key, value in updates.items():
        if key in PROTECTED_FIELDS or not hasattr(user, key):
            logger.warning(f"Ignoring update of field {key!r} for {user.email}")
            continue
        setattr(user, key, value)

    try:
        await db.commit()
    except Exception as e:
        logger.error(f"Failed to update user {user.email}: {e}")
        await db.rollback()
        raise

    await db.refresh(user)
    logger.info(f"User updated: {user.email}")
    return user
