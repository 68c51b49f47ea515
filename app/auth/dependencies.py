# app/auth/dependencies.py
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession
from jose import JWTError
from pydantic import ValidationError as PydanticValidationError
from loguru import logger

from app.db.database import get_db
from app.auth.security import ACCESS_TOKEN_TYPE, decode_token
from app.auth.permissions import is_admin
from app.db.crud.user import get_user_by_id
from app.api.v1.schemas.auth import TokenData
from app.db.models import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def read_token(token: str) -> TokenData:
    """Claims of a valid access token, or 401"""
    try:
        payload = decode_token(token)
    except JWTError:
        raise _unauthorized()

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        logger.warning(f"Rejected token of type {payload.get('type')!r}")
        raise _unauthorized()

    try:
        token_data = TokenData(email=payload.get("sub"), user_id=payload.get("user_id"))
    except PydanticValidationError:
        raise _unauthorized()

    if token_data.email is None or token_data.user_id is None:
        logger.warning("Invalid token payload - missing sub or user_id")
        raise _unauthorized()
    return token_data


async def get_current_user(
        db: AsyncSession = Depends(get_db),
        token: str = Depends(oauth2_scheme)
) -> User:
    """The active user behind the bearer token"""
    token_data = read_token(token)

    user = await get_user_by_id(db, token_data.user_id)
    if not user:
        logger.warning(f"Token for unknown user | user_id={token_data.user_id}")
        raise _unauthorized()

    if not user.is_active:
        logger.warning(f"Inactive user authentication attempt | email={user.email}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")

    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not is_admin(current_user):
        logger.warning(f"Admin route refused | email={current_user.email}")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied, admin only"
        )
    return current_user
