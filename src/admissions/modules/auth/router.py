"""Authentication router."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions.core.auth import get_auth_context
from admissions.core.authorization import REASON_ADMIN_REQUIRED, AuthContext
from admissions.core.config import settings
from admissions.core.database import get_db
from admissions.core.exceptions import (
    AuthzError,
    ConflictError,
    NotFoundError,
    TransientError,
    raise_http_error,
)
from admissions.core.security import create_access_token, hash_password, verify_password
from admissions.modules.auth.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from admissions.modules.users.models import User, UserRole
from admissions.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_token(user: User) -> str:
    return create_access_token(
        subject=str(user.id),
        additional_claims={"email": user.email, "role": user.role.value},
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """
    Register a new user account.

    Raises:
        HTTPException 403: Admin role requested while admin registration is disabled
        HTTPException 409: Email already registered
    """
    email = data.email.lower()

    if data.role == UserRole.ADMIN and not settings.allow_admin_registration:
        logger.warning("Rejected public registration with admin role")
        raise_http_error(AuthzError(REASON_ADMIN_REQUIRED))

    try:
        if await UserRepository.get_by_email(db, email):
            logger.warning("Registration attempt for an existing email")
            raise ConflictError(
                "User with this email already exists.",
                error_code="EMAIL_ALREADY_REGISTERED",
            )

        try:
            user = await UserRepository.create(
                db,
                email=email,
                password_hash=hash_password(data.password),
                first_name=data.first_name,
                last_name=data.last_name,
                role=data.role,
            )
        except IntegrityError as e:
            await db.rollback()
            raise ConflictError(
                "User with this email already exists.",
                error_code="EMAIL_ALREADY_REGISTERED",
            ) from e
    except ConflictError as e:
        raise_http_error(e)
    except SQLAlchemyError as e:
        logger.exception(f"Registration failed: {e}")
        raise_http_error(TransientError())

    return AuthResponse(
        access_token=_issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthResponse:
    """
    Authenticate a user and return an access token.

    Raises:
        HTTPException 401: Invalid credentials
    """
    user = await UserRepository.get_by_email(db, credentials.email.lower())

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "error": "INVALID_CREDENTIALS",
                "message": "Invalid email or password.",
            },
        )

    logger.info(f"User logged in: {user.id} (role: {user.role.value})")

    return AuthResponse(
        access_token=_issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.get("/me", response_model=UserResponse)
async def me(
    principal: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Return the authenticated user."""
    user = await UserRepository.get_by_id(db, principal.id)
    if user is None:
        raise_http_error(NotFoundError("User", principal.id))
    return UserResponse.model_validate(user)
