"""
Chat Service Module
Conversation lifecycle: validate a turn, append it, ask the provider gateway
for a reply and persist both messages.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.chat.services.gateway import ProviderGateway
from app.services.store import repo
from app.services.store.models import ChatMessage, Conversation
from core.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

TITLE_MAX_CHARS = 30
IMAGE_ONLY_TITLE = "New Image Chat"
IMAGE_ONLY_CONTENT = "Image uploaded"


def make_title(text: Optional[str]) -> str:
    if not text:
        return IMAGE_ONLY_TITLE
    if len(text) > TITLE_MAX_CHARS:
        return text[:TITLE_MAX_CHARS] + "..."
    return text


@dataclass
class ChatResult:
    conversation_id: str
    title: str
    reply: str
    history: List[ChatMessage]


class ChatService:
    def __init__(self, db: AsyncSession, gateway: ProviderGateway):
        self.db = db
        self.gateway = gateway

    @property
    def context_size(self) -> int:
        return self.gateway.settings.CHAT_CONTEXT_MESSAGES

    async def _owned(self, user_id: str, conversation_id: str) -> Conversation:
        conv = await repo.get_owned_conversation(self.db, user_id, conversation_id)
        if conv is None:
            raise NotFoundError("Conversation not found")
        return conv

    async def send_message(
        self,
        user_id: str,
        conversation_id: Optional[str] = None,
        text: Optional[str] = None,
        image: Optional[str] = None,
    ) -> ChatResult:
        text = text if text and text.strip() else None
        image = image or None
        if text is None and image is None:
            raise ValidationError("Message or Image is required")

        if conversation_id:
            conv = await self._owned(user_id, conversation_id)
        else:
            conv = await repo.create_conversation(self.db, user_id, make_title(text))
            logger.info(f"Created conversation {conv.id} for user {user_id}")

        repo.append_message(conv, "user", text or IMAGE_ONLY_CONTENT, image)

        recent = conv.messages[-self.context_size:]
        reply = await self.gateway.reply(text, image, recent)
        if reply.failed:
            logger.warning(f"Conversation {conv.id}: {reply.provider} failed, storing error reply")
        else:
            logger.info(f"Conversation {conv.id}: reply from {reply.provider or 'no provider'}")

        repo.append_message(conv, "assistant", reply.text)
        conv.updated_at = datetime.now(timezone.utc)
        await self.db.commit()

        return ChatResult(
            conversation_id=conv.id,
            title=conv.title,
            reply=reply.text,
            history=list(conv.messages),
        )

    async def list_conversations(self, user_id: str) -> List[Conversation]:
        return await repo.list_conversations(self.db, user_id)

    async def get_conversation(self, user_id: str, conversation_id: str) -> Conversation:
        return await self._owned(user_id, conversation_id)

    async def delete_conversation(self, user_id: str, conversation_id: str) -> None:
        conv = await self._owned(user_id, conversation_id)
        await self.db.delete(conv)
        await self.db.commit()
        logger.info(f"Deleted conversation {conversation_id}")

    async def delete_all_conversations(self, user_id: str) -> int:
        deleted = await repo.delete_all_conversations(self.db, user_id)
        await self.db.commit()
        logger.info(f"Deleted {deleted} conversations for user {user_id}")
        return deleted
