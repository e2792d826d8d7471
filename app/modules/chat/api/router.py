from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from app.modules.auth.dependencies import get_current_user
from app.modules.chat.dependencies import get_gateway
from app.modules.chat.schema.chat import (
    ChatRequest,
    ChatResponse,
    ConversationOut,
    ConversationSummary,
    DeleteResponse,
    MessageOut,
)
from app.modules.chat.services.chat_service import ChatService
from app.modules.chat.services.gateway import ProviderGateway
from app.services.store.db import get_db
from app.services.store.models import User
from core.exceptions import AppError, UnhandledError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["Chat"])


def get_chat_service(
    db: AsyncSession = Depends(get_db),
    gateway: ProviderGateway = Depends(get_gateway),
) -> ChatService:
    return ChatService(db, gateway)


@router.post("", response_model=ChatResponse)
async def send_message(
    req: ChatRequest,
    user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Send a text and/or image turn and get the assistant reply."""
    try:
        result = await service.send_message(
            user_id=user.id,
            conversation_id=req.conversation_id,
            text=req.message,
            image=req.image,
        )
    except AppError:
        raise
    except Exception as e:
        logger.error(f"Chat request failed: {e}", exc_info=True)
        raise UnhandledError() from e

    return ChatResponse(
        conversation_id=result.conversation_id,
        title=result.title,
        response=result.reply,
        history=[MessageOut.from_message(m) for m in result.history],
    )


@router.get("/list", response_model=List[ConversationSummary])
async def list_conversations(
    user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> List[ConversationSummary]:
    rows = await service.list_conversations(user.id)
    return [
        ConversationSummary(id=c.id, title=c.title, created_at=c.created_at, updated_at=c.updated_at)
        for c in rows
    ]


@router.get("/{conversation_id}", response_model=ConversationOut)
async def get_conversation(
    conversation_id: str,
    user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> ConversationOut:
    conv = await service.get_conversation(user.id, conversation_id)
    return ConversationOut(
        id=conv.id,
        user_id=conv.user_id,
        title=conv.title,
        messages=[MessageOut.from_message(m) for m in conv.messages],
        created_at=conv.created_at,
        updated_at=conv.updated_at,
    )


@router.delete("/{conversation_id}", response_model=DeleteResponse, response_model_exclude_none=True)
async def delete_conversation(
    conversation_id: str,
    user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> DeleteResponse:
    await service.delete_conversation(user.id, conversation_id)
    return DeleteResponse(message="Conversation deleted")


@router.delete("", response_model=DeleteResponse)
async def delete_all_conversations(
    user: User = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> DeleteResponse:
    deleted = await service.delete_all_conversations(user.id)
    return DeleteResponse(message="All conversations deleted", deleted=deleted)
