from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.db.base_class import utcnow
from app.models.chat import ChatRoom, ChatRoomType, Message
from app.models.user import User
from app.schemas.chat import ChatRoomCreate, MessageCreate


class CRUDChatRoom(CRUDBase[ChatRoom, ChatRoomCreate, ChatRoomCreate]):
    def get_multi_by_member(self, db: Session, *, user_id: str) -> List[ChatRoom]:
        return (
            db.query(ChatRoom)
            .filter(ChatRoom.users.any(User.id == user_id))
            .order_by(ChatRoom.updated_at.desc())
            .all()
        )

    def get_for_member(
        self, db: Session, *, room_id: str, user_id: str
    ) -> Optional[ChatRoom]:
        """The room, or None if it does not exist or ``user_id`` is not in it."""
        return (
            db.query(ChatRoom)
            .filter(ChatRoom.id == room_id, ChatRoom.users.any(User.id == user_id))
            .first()
        )

    def get_direct_room_for_members(
        self, db: Session, *, member_ids: Sequence[str]
    ) -> Optional[ChatRoom]:
        """DIRECT room whose membership is exactly ``member_ids``."""
        wanted = set(member_ids)
        query = db.query(ChatRoom).filter(ChatRoom.type == ChatRoomType.DIRECT.value)
        for member_id in wanted:
            query = query.filter(ChatRoom.users.any(User.id == member_id))
        for room in query.order_by(ChatRoom.created_at).all():
            if {u.id for u in room.users} == wanted:
                return room
        return None

    def create_with_members(
        self, db: Session, *, obj_in: ChatRoomCreate, members: List[User]
    ) -> Tuple[ChatRoom, bool]:
        """
        Create a room for ``members`` and report whether it is new.

        A two-member DIRECT request reuses the existing room for that pair.
        GROUP rooms are always created.
        """
        if obj_in.type == ChatRoomType.DIRECT.value and len(members) == 2:
            existing = self.get_direct_room_for_members(
                db, member_ids=[str(m.id) for m in members]
            )
            if existing is not None:
                return existing, False

        room = ChatRoom(name=obj_in.name, type=obj_in.type.value, users=members)
        db.add(room)
        db.commit()
        db.refresh(room)
        return room, True

    def last_message(self, db: Session, *, room_id: str) -> Optional[Message]:
        return (
            db.query(Message)
            .filter(Message.chat_room_id == room_id)
            .order_by(Message.created_at.desc())
            .first()
        )

    def message_count(self, db: Session, *, room_id: str) -> int:
        return db.query(Message).filter(Message.chat_room_id == room_id).count()


class CRUDMessage(CRUDBase[Message, MessageCreate, MessageCreate]):
    def get_page(
        self, db: Session, *, room_id: str, page: int = 1, limit: int = 50
    ) -> List[Message]:
        """One page of a room's history, oldest message first.

        Pages are cut newest-first so page 1 is the most recent slice.
        """
        newest_first = (
            db.query(Message)
            .filter(Message.chat_room_id == room_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return list(reversed(newest_first))

    def create_in_room(
        self, db: Session, *, obj_in: MessageCreate, room: ChatRoom, sender_id: str
    ) -> Message:
        message = Message(
            content=obj_in.content, chat_room_id=room.id, sender_id=sender_id
        )
        db.add(message)
        room.updated_at = utcnow()
        db.add(room)
        db.commit()
        db.refresh(message)
        return message


chat_room = CRUDChatRoom(ChatRoom)
message = CRUDMessage(Message)
