"""Supabase JWT authentication module."""

from uuid import UUID

import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from question_bank.config import get_settings
from question_bank.models.user import User


class SupabaseAuth:
    """Supabase JWT validation and user mirroring."""

    def __init__(self) -> None:
        self.settings = get_settings()

    def verify_token(self, token: str) -> dict:
        """Validate a Supabase access token and return its claims.

        Args:
            token: JWT token from Authorization header

        Returns:
            JWT claims dict with 'sub' (user id), 'email', etc.

        Raises:
            jwt.InvalidTokenError: If token is invalid
            ValueError: If no JWT secret is configured
        """
        if not self.settings.supabase_jwt_secret:
            raise ValueError("SUPABASE_JWT_SECRET is not configured")

        return jwt.decode(
            token,
            self.settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience=self.settings.supabase_jwt_audience,
        )

    async def get_or_create_user(
        self,
        user_id: UUID,
        email: str | None,
        name: str | None,
        db: AsyncSession,
    ) -> User:
        """Get the mirrored user row, creating it on first sight.

        Args:
            user_id: Auth provider's user id (sub claim)
            email: User's email address
            name: User's display name
            db: Database session

        Returns:
            User object (existing or newly created)
        """
        user = await db.get(User, user_id)

        if user is not None:
            if email and user.email != email:
                user.email = email
                await db.commit()
            return user

        user = User(id=user_id, email=email, name=name)
        db.add(user)
        await db.commit()
        await db.refresh(user)

        return user


# Global instance
supabase_auth = SupabaseAuth()
