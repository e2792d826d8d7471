from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import ChatMessage, Conversation, User


# ---------- users ----------

async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
    return await db.get(User, user_id)


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    res = await db.execute(select(User).where(User.email == email))
    return res.scalar_one_or_none()


async def add_user(db: AsyncSession, name: str, email: str, password_hash: str, role: str) -> User:
    user = User(name=name, email=email, password_hash=password_hash, role=role)
    db.add(user)
    await db.flush()
    return user


async def list_users(db: AsyncSession) -> List[User]:
    res = await db.execute(select(User).order_by(User.created_at.asc()))
    return list(res.scalars().all())


# ---------- conversations ----------

async def get_owned_conversation(db: AsyncSession, user_id: str, conversation_id: str) -> Optional[Conversation]:
    """Fetch a conversation only if ``user_id`` owns it; foreign ids look absent."""
    q = select(Conversation).where(
        Conversation.id == conversation_id,
        Conversation.user_id == user_id,
    )
    res = await db.execute(q)
    return res.scalar_one_or_none()


async def create_conversation(db: AsyncSession, user_id: str, title: str) -> Conversation:
    now = datetime.now(timezone.utc)
    conv = Conversation(user_id=user_id, title=title, created_at=now, updated_at=now, messages=[])
    db.add(conv)
    await db.flush()
    return conv


def append_message(conv: Conversation, role: str, content: str, image: Optional[str] = None) -> ChatMessage:
    msg = ChatMessage(
        position=len(conv.messages),
        role=role,
        content=content,
        image=image,
        timestamp=datetime.now(timezone.utc),
    )
    conv.messages.append(msg)
    return msg


async def list_conversations(db: AsyncSession, user_id: str) -> List[Conversation]:
    q = select(Conversation).where(Conversation.user_id == user_id).order_by(Conversation.updated_at.desc())
    res = await db.execute(q)
    return list(res.scalars().all())


async def delete_all_conversations(db: AsyncSession, user_id: str) -> int:
    owned = select(Conversation.id).where(Conversation.user_id == user_id)
    await db.execute(
        delete(ChatMessage)
        .where(ChatMessage.conversation_id.in_(owned))
        .execution_options(synchronize_session=False)
    )
    res = await db.execute(
        delete(Conversation)
        .where(Conversation.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    return res.rowcount or 0


# ---------- stats ----------

async def count_rows(db: AsyncSession, model) -> int:
    res = await db.execute(select(func.count()).select_from(model))
    return int(res.scalar_one())
