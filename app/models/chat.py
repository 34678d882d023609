from sqlalchemy import Column, DateTime, ForeignKey, String, Table, Text
from sqlalchemy.orm import relationship
from app.db.base_class import Base, utcnow
import uuid
import enum


class ChatRoomType(str, enum.Enum):
    DIRECT = "DIRECT"  # Exactly two members, de-duplicated by membership
    GROUP = "GROUP"


chat_room_members = Table(
    "chat_room_members",
    Base.metadata,
    Column("chat_room_id", String, ForeignKey("chat_rooms.id"), primary_key=True),
    Column("user_id", String, ForeignKey("users.id"), primary_key=True),
)


class ChatRoom(Base):
    __tablename__ = "chat_rooms"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=True)
    type = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)

    users = relationship("User", secondary=chat_room_members, backref="chat_rooms")
    messages = relationship(
        "Message", back_populates="chat_room", cascade="all, delete-orphan"
    )


class Message(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True, index=True, default=lambda: str(uuid.uuid4()))
    content = Column(Text, nullable=False)
    chat_room_id = Column(String, ForeignKey("chat_rooms.id"), nullable=False, index=True)
    sender_id = Column(String, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    chat_room = relationship("ChatRoom", back_populates="messages")
    sender = relationship("User")
