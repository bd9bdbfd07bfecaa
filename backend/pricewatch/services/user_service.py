"""User directory: the owner rows products and alerts hang off."""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pricewatch.models.user import User


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: uuid.UUID, email: Optional[str] = None) -> User:
        """Return the user, creating the row the first time an id shows up."""
        user = await self.get_user_by_id(user_id)
        if user is None:
            user = User(id=user_id, email=email)
            self.db.add(user)
            await self.db.flush()
        elif email and user.email != email:
            user.email = email
            await self.db.flush()
        return user

    async def lookup_email(self, user_id: uuid.UUID) -> Optional[str]:
        result = await self.db.execute(select(User.email).where(User.id == user_id))
        return result.scalar_one_or_none()
