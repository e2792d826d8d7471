from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    image: Optional[str] = None  # base64 data URL or external URL
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class MessageOut(BaseModel):
    role: str
    content: str
    image: Optional[str] = None
    timestamp: datetime

    @classmethod
    def from_message(cls, m) -> "MessageOut":
        return cls(role=m.role, content=m.content, image=m.image, timestamp=m.timestamp)


class ChatResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(alias="conversationId")
    title: str
    response: str
    history: List[MessageOut]


class ConversationSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    title: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class ConversationOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="_id")
    user_id: str = Field(alias="userId")
    title: str
    messages: List[MessageOut]
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class DeleteResponse(BaseModel):
    message: str
    deleted: Optional[int] = None
