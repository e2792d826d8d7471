from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from app.services.store import repo
from app.services.store.models import ChatMessage, Conversation, User


class StatsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(self) -> List[User]:
        return await repo.list_users(self.db)

    async def usage_stats(self) -> dict:
        return {
            "users": await repo.count_rows(self.db, User),
            "chats": await repo.count_rows(self.db, Conversation),
            "messages": await repo.count_rows(self.db, ChatMessage),
        }
