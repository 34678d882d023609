from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app import crud, models, schemas
from app.api import deps

router = APIRouter()

ROOM_NOT_FOUND = "Chat room not found or access denied"


def serialize_room(db: Session, room: models.ChatRoom) -> dict:
    return {
        "id": room.id,
        "name": room.name,
        "type": room.type,
        "created_at": room.created_at,
        "updated_at": room.updated_at,
        "users": room.users,
        "last_message": crud.chat_room.last_message(db, room_id=str(room.id)),
        "message_count": crud.chat_room.message_count(db, room_id=str(room.id)),
    }


@router.get("/rooms", response_model=List[schemas.ChatRoom])
def read_rooms(
    db: Session = Depends(deps.get_db),
    current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    Rooms the caller belongs to, most recently active first.
    """
    rooms = crud.chat_room.get_multi_by_member(db, user_id=str(current_user.id))
    return [serialize_room(db, room) for room in rooms]


@router.post("/rooms", response_model=schemas.ChatRoom, status_code=201)
def create_room(
    *,
    db: Session = Depends(deps.get_db),
    room_in: schemas.ChatRoomCreate,
    response: Response,
    current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    Create a chat room with the caller as a member.

    A DIRECT room between two people is only created once; asking again
    returns the existing room with status 200.
    """
    member_ids = list(dict.fromkeys([str(current_user.id), *room_in.user_ids]))
    members = []
    for member_id in member_ids:
        member = crud.user.get(db, id=member_id)
        if not member:
            raise HTTPException(status_code=404, detail=f"User {member_id} not found")
        members.append(member)

    room, created = crud.chat_room.create_with_members(
        db, obj_in=room_in, members=members
    )
    if not created:
        response.status_code = 200
    return serialize_room(db, room)


@router.get("/rooms/{room_id}/messages", response_model=List[schemas.Message])
def read_messages(
    room_id: str,
    db: Session = Depends(deps.get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    One page of messages, oldest first. Page 1 holds the most recent ones.
    """
    room = crud.chat_room.get_for_member(
        db, room_id=room_id, user_id=str(current_user.id)
    )
    if not room:
        raise HTTPException(status_code=404, detail=ROOM_NOT_FOUND)
    return crud.message.get_page(db, room_id=room_id, page=page, limit=limit)


@router.post(
    "/rooms/{room_id}/messages", response_model=schemas.Message, status_code=201
)
def send_message(
    *,
    db: Session = Depends(deps.get_db),
    room_id: str,
    message_in: schemas.MessageCreate,
    current_user: models.User = Depends(deps.get_current_user),
) -> Any:
    """
    Post a message. Membership is checked on every call.
    """
    room = crud.chat_room.get_for_member(
        db, room_id=room_id, user_id=str(current_user.id)
    )
    if not room:
        raise HTTPException(status_code=404, detail=ROOM_NOT_FOUND)
    return crud.message.create_in_room(
        db, obj_in=message_in, room=room, sender_id=str(current_user.id)
    )
