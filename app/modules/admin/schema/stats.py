from pydantic import BaseModel


class UsageStats(BaseModel):
    users: int
    chats: int
    messages: int
