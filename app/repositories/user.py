"""
GreenPantry API — User repository
"""
from sqlalchemy import func, select

from app.models.user import User
from app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    model = User

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.lower(), User.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()
