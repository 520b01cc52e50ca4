from typing import Optional
from uuid import UUID
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User model."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_or_create(self, user_id: UUID, email: Optional[str] = None) -> User:
        """
        Return the user, provisioning a row on first sight of a token subject.
        """
        user = await self.get_by_id(user_id)
        if user:
            return user
        return await self.create(
            id=user_id,
            email=email,
            is_active=True,
            last_login=datetime.now(timezone.utc),
        )
