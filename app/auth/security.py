# app/auth/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext
from loguru import logger

from app.core.config import settings

ACCESS_TOKEN_TYPE = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class Hasher:
    """bcrypt password hashing"""

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def get_password_hash(password: str) -> str:
        return pwd_context.hash(password)


def _signing_key() -> str:
    return settings.JWT_SECRET_KEY.get_secret_value()


def create_access_token(claims: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Sign `claims` as an access token. Every token gets its own `jti` and
    expires after ACCESS_TOKEN_EXPIRE_MINUTES unless told otherwise.
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = {
        **claims,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "jti": str(uuid.uuid4()),
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(payload, _signing_key(), algorithm=settings.ALGORITHM)


def create_token_for_user(user) -> str:
    return create_access_token({"sub": user.email, "user_id": user.id})


def decode_token(token: str) -> dict:
    """Verified payload; raises JWTError for bad signatures and expired tokens"""
    try:
        return jwt.decode(token, _signing_key(), algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decoding error: {e}")
        raise
