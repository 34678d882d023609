from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from enum import Enum

from app.schemas.user import UserSummary


class ChatRoomTypeEnum(str, Enum):
    DIRECT = "DIRECT"
    GROUP = "GROUP"


class ChatRoomCreate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    type: ChatRoomTypeEnum
    user_ids: List[str] = Field(..., min_length=1, max_length=50)


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class Message(BaseModel):
    id: str
    content: str
    chat_room_id: str
    sender_id: str
    created_at: datetime
    sender: UserSummary

    model_config = ConfigDict(from_attributes=True)


class ChatRoom(BaseModel):
    id: str
    name: Optional[str] = None
    type: ChatRoomTypeEnum
    created_at: datetime
    updated_at: datetime
    users: List[UserSummary]
    last_message: Optional[Message] = None
    message_count: int = 0

    model_config = ConfigDict(from_attributes=True)
