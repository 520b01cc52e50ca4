"""
Auth Service

Resolves the user behind a bearer token issued by the hosted auth
provider. Users are provisioned on their first authenticated request.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import verify_token
from app.models.user import User
from app.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class AuthService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)

    # ============================================================
    # Get Current User
    # ============================================================

    async def get_current_user(self, token: str) -> User:
        """
        Get user from access token.

        Raises:
            ValueError: If the token is invalid or its subject is not a UUID
        """
        payload = verify_token(token)

        if not payload:
            raise ValueError("Invalid or expired token")

        try:
            user_id = UUID(str(payload["sub"]))
        except ValueError:
            raise ValueError("Invalid token subject")

        user = await self.user_repo.get_or_create(user_id, email=payload.get("email"))
        return user
