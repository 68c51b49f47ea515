# app/api/v1/endpoints/users.py
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID
from slowapi.util import get_remote_address

from app.db.database import get_db
from app.db import crud
from app.api.v1.schemas.users import UserResponse, UserWithTaskCounts
from app.auth.dependencies import get_current_user, require_admin
from app.core.aggregation import summarize_status_counts
from app.db.models import User, UserRole
from app.core import tracing

router = APIRouter()


@router.get("/", response_model=List[UserWithTaskCounts])
async def list_members(
        request: Request,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(require_admin)
):
    """Members with their pending / in-progress / completed task counts (admin)"""
    ip = get_remote_address(request)
    tracing.info("Member listing requested", requester=current_user.email, ip=ip)

    try:
        members = await crud.list_users(db, role=UserRole.MEMBER)
        counts = await crud.task.count_assigned_tasks_by_status(db)

        return [
            UserWithTaskCounts.from_model(
                member,
                **{
                    f"{key}_tasks": value
                    for key, value in summarize_status_counts(counts.get(member.id, [])).items()
                }
            )
            for member in members
        ]

    except Exception as e:
        tracing.error("Member listing failed", requester=current_user.email, ip=ip, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error retrieving users"
        )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user_by_id_endpoint(
        request: Request,
        user_id: UUID,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    ip = get_remote_address(request)
    tracing.info("User lookup initiated", user_id=str(user_id), requester=current_user.email, ip=ip)

    user = await crud.get_user_by_uuid(db, user_id)
    if not user:
        tracing.warning("User not found", user_id=str(user_id), requester=current_user.email, ip=ip)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    return UserResponse.from_model(user)
