"""
Conversations between users with an accepted swap. Conversations are opened by accepting a
request; here they can only be listed and messaged by their two participants.
"""
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field
from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.api.middleware.auth import CurrentUserId
from skillswap.api.middleware.rate_limit import check_api_rate_limit
from skillswap.database.connection import get_db
from skillswap.models.conversation import Conversation, Message
from skillswap.utils.logger import get_logger
from skillswap.utils.validators import sanitize_string

logger = get_logger(__name__)
router = APIRouter()

MESSAGE_BODY_MAX_LENGTH = 5000


class ConversationResponse(BaseModel):
    id: str
    other_user_id: str
    created_at: datetime


class MessageResponse(BaseModel):
    id: str
    sender_id: str
    body: str
    is_read: bool
    created_at: datetime


class MessageCreateRequest(BaseModel):
    body: str = Field(..., min_length=1, max_length=MESSAGE_BODY_MAX_LENGTH)


def _message_response(m: Message) -> MessageResponse:
    return MessageResponse(
        id=str(m.id),
        sender_id=str(m.sender_id),
        body=m.body,
        is_read=m.is_read,
        created_at=m.created_at,
    )


async def _participant_conversation(db: AsyncSession, conversation_id: UUID, user_id: str) -> Conversation:
    conversation = await db.get(Conversation, conversation_id)
    if not conversation or not conversation.has_participant(UUID(user_id)):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Conversation not found")
    return conversation


@router.get("", response_model=list[ConversationResponse])
async def list_conversations(
    user_id: CurrentUserId,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    check_api_rate_limit(request, user_id)
    uid = UUID(user_id)
    result = await db.execute(
        select(Conversation)
        .where(or_(Conversation.user_a_id == uid, Conversation.user_b_id == uid))
        .order_by(Conversation.created_at.desc())
    )
    return [
        ConversationResponse(
            id=str(c.id),
            other_user_id=str(c.user_b_id if c.user_a_id == uid else c.user_a_id),
            created_at=c.created_at,
        )
        for c in result.scalars().all()
    ]


@router.get("/{conversation_id}/messages", response_model=list[MessageResponse])
async def list_messages(
    conversation_id: UUID,
    user_id: CurrentUserId,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Messages oldest first. Marks the other participant's messages as read."""
    check_api_rate_limit(request, user_id)
    await _participant_conversation(db, conversation_id, user_id)
    uid = UUID(user_id)
    await db.execute(
        update(Message)
        .where(
            Message.conversation_id == conversation_id,
            Message.sender_id != uid,
            Message.is_read.is_(False),
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    result = await db.execute(
        select(Message)
        .where(Message.conversation_id == conversation_id)
        .order_by(Message.created_at)
        .execution_options(populate_existing=True)
    )
    return [_message_response(m) for m in result.scalars().all()]


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    conversation_id: UUID,
    user_id: CurrentUserId,
    request: Request,
    body: MessageCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    check_api_rate_limit(request, user_id)
    await _participant_conversation(db, conversation_id, user_id)
    text = sanitize_string(body.body, MESSAGE_BODY_MAX_LENGTH)
    if not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message is empty")
    message = Message(conversation_id=conversation_id, sender_id=UUID(user_id), body=text)
    db.add(message)
    await db.commit()
    await db.refresh(message)
    return _message_response(message)
