# taskhub/routers/messages.py
# PURPOSE: direct messages. Every message is persisted; a realtime push to the
# recipient is attempted afterwards and its outcome never changes the response.

import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..db import get_db
from ..db_models import UserDB
from ..models import (
    Conversation,
    ConversationThread,
    Message,
    MessageCreate,
    ReadReceipt,
    UserBrief,
    UserPublic,
)
from ..realtime import presence
from .. import store_db

router = APIRouter(prefix="/messages", tags=["messages"])
logger = logging.getLogger("taskhub.messages")


@router.get("/", response_model=List[Conversation])
async def list_conversations(
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    """Group the caller's messages by the other party, latest conversation first."""
    grouped: Dict[int, Conversation] = {}
    for row in store_db.list_messages_for(db, user.id):
        other = row.recipient if row.sender_id == user.id else row.sender
        convo = grouped.get(other.id)
        if convo is None:
            convo = grouped[other.id] = Conversation(
                user=UserBrief.model_validate(other), messages=[]
            )
        convo.messages.append(Message.model_validate(row))
        if row.recipient_id == user.id and not row.read:
            convo.unread_count += 1
    # dicts keep insertion order and rows arrive newest first
    return list(grouped.values())


@router.get("/{user_id}", response_model=ConversationThread)
async def get_conversation(
    user_id: int,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    other = store_db.get_user(db, user_id)
    if other is None:
        raise HTTPException(status_code=404, detail="User not found")
    rows = store_db.conversation(db, user.id, other.id)
    return ConversationThread(
        user=UserPublic.model_validate(other),
        messages=[Message.model_validate(row) for row in rows],
    )


@router.post("/", response_model=Message, status_code=status.HTTP_201_CREATED)
async def send_message(
    item: MessageCreate,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    recipient = store_db.get_user(db, item.recipient_id)
    if recipient is None:
        raise HTTPException(status_code=404, detail="Recipient not found")

    row = store_db.create_message(
        db, sender_id=user.id, recipient_id=recipient.id, content=item.content
    )
    message = Message.model_validate(row)
    delivered = await presence.send_to(
        recipient.id, {"event": "newMessage", "message": message.model_dump(mode="json")}
    )
    logger.info(
        "message stored message_id=%s sender_id=%s recipient_id=%s pushed=%s",
        message.id, user.id, recipient.id, delivered,
    )
    return message


@router.patch("/read/{sender_id}", response_model=ReadReceipt)
async def mark_read(
    sender_id: int,
    db: Session = Depends(get_db),
    user: UserDB = Depends(get_current_user),
):
    modified = store_db.mark_read(db, sender_id=sender_id, recipient_id=user.id)
    return ReadReceipt(modified_count=modified)
