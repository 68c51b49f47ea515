# app/api/v1/endpoints/auth.py
import secrets

from fastapi import APIRouter, Depends, HTTPException, status, Request, UploadFile, File
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from slowapi.util import get_remote_address

from app.db.database import get_db
from app.auth.security import Hasher, create_token_for_user
from app.auth.dependencies import get_current_user
from app.db.crud.user import get_user_by_email, create_user_db, update_user_db
from app.api.v1.schemas.auth import AuthResponse, UserCreate, UserLogin, ProfileUpdate, ImageUploadResponse
from app.db.models import User, UserRole
from app.core.config import settings
from app.core import tracing
from app.exceptions.auth import InvalidCredentialsError, InactiveUserError, UserAlreadyExistsError
from app.integrations.storage import image_storage
from app.middleware.rate_limiting import limiter

router = APIRouter()


def role_for_invite_token(invite_token: str = None) -> UserRole:
    """Admin only with the configured invite token; everyone else is a member"""
    expected = settings.ADMIN_INVITE_TOKEN.get_secret_value() if settings.ADMIN_INVITE_TOKEN else None
    if invite_token and expected and secrets.compare_digest(invite_token, expected):
        return UserRole.ADMIN
    return UserRole.MEMBER


def auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        id=user.uuid,
        name=user.name,
        email=user.email,
        profile_image_url=user.profile_image_url,
        role=user.role,
        is_active=user.is_active,
        created_at=user.created_at,
        updated_at=user.updated_at,
        access_token=create_token_for_user(user)
    )


async def authenticate(db: AsyncSession, email: str, password: str, ip: str) -> User:
    user = await get_user_by_email(db, email)
    if not user or not Hasher.verify_password(password, user.hashed_password):
        tracing.warning("Login failed - invalid credentials", username=email, ip=ip)
        raise InvalidCredentialsError()

    if not user.is_active:
        tracing.warning("Login failed - account inactive", username=email, ip=ip)
        raise InactiveUserError()

    tracing.info("Login successful", email=user.email, user_id=user.id, ip=ip)
    return user


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def register_user(request: Request, user_in: UserCreate, db: AsyncSession = Depends(get_db)):
    ip = get_remote_address(request)
    tracing.info("Registration attempt", email=user_in.email, ip=ip)

    existing_user = await get_user_by_email(db, user_in.email)
    if existing_user:
        tracing.warning("Registration failed - user exists", email=user_in.email, ip=ip)
        raise UserAlreadyExistsError()

    user_data = {
        "name": user_in.name,
        "email": user_in.email,
        "hashed_password": Hasher.get_password_hash(user_in.password),
        "profile_image_url": user_in.profile_image_url,
        "role": role_for_invite_token(user_in.admin_invite_token),
    }

    try:
        user = await create_user_db(db, user_data)
    except Exception as e:
        tracing.error("Failed to create user", email=user_in.email, ip=ip, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not create user.")

    tracing.info("User registered successfully", email=user.email, user_id=user.id, role=user.role.value, ip=ip)
    return auth_response(user)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_for_access_token(request: Request, form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    ip = get_remote_address(request)
    tracing.info("Login attempt", username=form_data.username, ip=ip)

    user = await authenticate(db, form_data.username, form_data.password, ip)
    return auth_response(user)


@router.post("/login-json", response_model=AuthResponse)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login_via_json(request: Request, user_login: UserLogin, db: AsyncSession = Depends(get_db)):
    ip = get_remote_address(request)
    tracing.info("JSON login attempt", username=user_login.username, ip=ip)

    user = await authenticate(db, user_login.username, user_login.password, ip)
    return auth_response(user)


@router.get("/profile", response_model=AuthResponse)
async def read_profile(current_user: User = Depends(get_current_user)):
    tracing.info("User profile requested", user_email=current_user.email)
    return auth_response(current_user)


@router.put("/profile", response_model=AuthResponse)
async def update_profile(
        request: Request,
        profile: ProfileUpdate,
        db: AsyncSession = Depends(get_db),
        current_user: User = Depends(get_current_user)
):
    ip = get_remote_address(request)
    updates = profile.model_dump(exclude_unset=True)

    if updates.get("email") and updates["email"] != current_user.email:
        if await get_user_by_email(db, updates["email"]):
            tracing.warning("Profile update failed - email taken", email=current_user.email, ip=ip)
            raise UserAlreadyExistsError()

    password = updates.pop("password", None)
    if password:
        updates["hashed_password"] = Hasher.get_password_hash(password)

    for field in ("name", "email"):
        if field in updates and updates[field] is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be null")

    try:
        user = await update_user_db(db, current_user, updates)
    except Exception as e:
        tracing.error("Profile update failed", email=current_user.email, ip=ip, error=str(e))
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not update profile.")

    tracing.info("Profile updated", email=user.email, user_id=user.id, fields=sorted(updates), ip=ip)
    return auth_response(user)


@router.post("/upload-image", response_model=ImageUploadResponse)
async def upload_image(request: Request, image: UploadFile = File(...)):
    ip = get_remote_address(request)
    filename = await image_storage.save(image)

    image_url = str(request.url_for("uploads", path=filename))
    tracing.info("Image uploaded", filename=filename, ip=ip)
    return ImageUploadResponse(image_url=image_url)
