"""FastAPI dependencies."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from question_bank.config import get_settings
from question_bank.core.auth import supabase_auth
from question_bank.core.errors import (
    CandidateFetchError,
    EmbeddingProviderError,
    QuestionBankError,
    RankingWriteError,
    SessionStateError,
)
from question_bank.database import get_db
from question_bank.models.organization import Organization, OrganizationUser
from question_bank.models.user import User

logger = logging.getLogger(__name__)

DEV_USER_ID = UUID("00000000-0000-0000-0000-000000000de0")


async def get_or_create_dev_user(db: AsyncSession) -> User:
    """Get or create a dev user for local development."""
    return await supabase_auth.get_or_create_user(
        user_id=DEV_USER_ID,
        email="dev@questionbank.local",
        name="Dev User",
        db=db,
    )


async def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Validate the bearer JWT and return the authenticated user.

    In dev mode (DEV_AUTH_BYPASS=true), returns a local dev user.
    """
    settings = get_settings()

    if settings.dev_auth_bypass:
        logger.info("DEV MODE: Bypassing JWT auth, using dev user")
        return await get_or_create_dev_user(db)

    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        scheme, token = authorization.split(" ", 1)
        if scheme.lower() != "bearer":
            raise ValueError("Invalid scheme")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = supabase_auth.verify_token(token)
    except Exception as e:
        logger.error(f"Token validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = UUID(claims.get("sub", ""))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token claims",
        )

    metadata = claims.get("user_metadata") or {}
    return await supabase_auth.get_or_create_user(
        user_id=user_id,
        email=claims.get("email"),
        name=metadata.get("name") or metadata.get("full_name"),
        db=db,
    )


async def get_membership(
    organization_id: UUID,
    user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> OrganizationUser:
    """Membership of the current user in the path organization.

    Organization views are only reachable while the subscription is active.
    """
    organization = await db.get(Organization, organization_id)
    if organization is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization not found",
        )

    result = await db.execute(
        select(OrganizationUser).where(
            OrganizationUser.organization_id == organization_id,
            OrganizationUser.user_id == user.id,
        )
    )
    membership = result.scalar_one_or_none()
    if membership is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a member of this organization",
        )

    if not organization.is_active:
        raise HTTPException(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail="An active subscription is required",
        )

    return membership


async def require_admin(
    membership: Annotated[OrganizationUser, Depends(get_membership)],
) -> OrganizationUser:
    """Membership with the admin role."""
    if not membership.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be an admin to access this feature",
        )
    return membership


# Type aliases for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
Member = Annotated[OrganizationUser, Depends(get_membership)]
Admin = Annotated[OrganizationUser, Depends(require_admin)]


def http_error(error: QuestionBankError) -> HTTPException:
    """Map an operation failure to the HTTP error returned to the caller."""
    if isinstance(error, EmbeddingProviderError):
        code = status.HTTP_502_BAD_GATEWAY
    elif isinstance(error, (CandidateFetchError, RankingWriteError)):
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif isinstance(error, SessionStateError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST

    logger.error(f"{type(error).__name__}: {error}")
    return HTTPException(status_code=code, detail=str(error))
