"""
Swap requests: create, list, get, accept, decline, cancel, archive.
State changes go through SwapRequestService; a returned domain error becomes the HTTP error.
"""
from datetime import datetime
from enum import Enum
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.api.middleware.auth import CurrentUserId
from skillswap.api.middleware.error_handler import domain_http_error
from skillswap.api.middleware.rate_limit import check_api_rate_limit
from skillswap.database.connection import get_db
from skillswap.database.stores import SqlSwapRequestStore, swap_service_for
from skillswap.domain.entities import SwapRequest, SwapStatus
from skillswap.services.swaps.lifecycle import MAX_HOURS_PER_WEEK, MESSAGE_MAX_LENGTH, TransitionOutcome
from skillswap.utils.logger import get_logger
from skillswap.utils.validators import sanitize_string

logger = get_logger(__name__)
router = APIRouter()


class Mailbox(str, Enum):
    ALL = "all"
    SENT = "sent"
    RECEIVED = "received"


class SwapCreateRequest(BaseModel):
    to_user_id: UUID
    offered_skill_id: UUID
    requested_skill_id: UUID
    message: str | None = Field(None, max_length=MESSAGE_MAX_LENGTH)
    hours_per_week: float | None = Field(None, gt=0, le=MAX_HOURS_PER_WEEK)


class SwapResponse(BaseModel):
    id: str
    from_user_id: str
    to_user_id: str
    offered_skill_id: str
    requested_skill_id: str
    status: SwapStatus
    message: str | None
    hours_per_week: float | None
    created_at: datetime
    responded_at: datetime | None
    archived_at: datetime | None
    conversation_id: str | None = None


class SwapListResponse(BaseModel):
    requests: list[SwapResponse]
    total: int


def _swap_response(req: SwapRequest, conversation_id: str | None = None) -> SwapResponse:
    return SwapResponse(
        id=req.id,
        from_user_id=req.from_user_id,
        to_user_id=req.to_user_id,
        offered_skill_id=req.offered_skill_id,
        requested_skill_id=req.requested_skill_id,
        status=req.status,
        message=req.message,
        hours_per_week=req.hours_per_week,
        created_at=req.created_at,
        responded_at=req.responded_at,
        archived_at=req.archived_at,
        conversation_id=conversation_id,
    )


def _unwrap(outcome: TransitionOutcome) -> SwapResponse:
    if not outcome.ok:
        raise domain_http_error(outcome.error)
    return _swap_response(outcome.request, outcome.conversation_id)


@router.post("", response_model=SwapResponse, status_code=status.HTTP_201_CREATED)
async def create_swap_request(
    user_id: CurrentUserId,
    request: Request,
    body: SwapCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    """Propose a swap: your offered skill for one of the recipient's offered skills."""
    check_api_rate_limit(request, user_id)
    message = sanitize_string(body.message, MESSAGE_MAX_LENGTH) if body.message else None
    outcome = await swap_service_for(db).create(
        sender_id=user_id,
        recipient_id=str(body.to_user_id),
        offered_skill_id=str(body.offered_skill_id),
        requested_skill_id=str(body.requested_skill_id),
        message=message,
        hours_per_week=body.hours_per_week,
    )
    return _unwrap(outcome)


@router.get("", response_model=SwapListResponse)
async def list_swap_requests(
    user_id: CurrentUserId,
    request: Request,
    box: Mailbox = Mailbox.ALL,
    status_filter: SwapStatus | None = None,
    include_archived: bool = False,
    db: AsyncSession = Depends(get_db),
):
    """Requests sent and/or received by the current user, newest first. Archived ones are hidden by default."""
    check_api_rate_limit(request, user_id)
    requests = await SqlSwapRequestStore(db).list_for_user(user_id)
    if box is Mailbox.SENT:
        requests = [r for r in requests if r.from_user_id == user_id]
    elif box is Mailbox.RECEIVED:
        requests = [r for r in requests if r.to_user_id == user_id]
    if status_filter is not None:
        requests = [r for r in requests if r.status is status_filter]
    if not include_archived:
        requests = [r for r in requests if r.archived_at is None]
    out = [_swap_response(r) for r in requests]
    return SwapListResponse(requests=out, total=len(out))


@router.get("/{swap_id}", response_model=SwapResponse)
async def get_swap_request(
    swap_id: UUID,
    user_id: CurrentUserId,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    check_api_rate_limit(request, user_id)
    swap = await SqlSwapRequestStore(db).get(str(swap_id))
    if swap is None or not swap.is_participant(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Swap request not found")
    return _swap_response(swap)


@router.post("/{swap_id}/accept", response_model=SwapResponse)
async def accept_swap_request(
    swap_id: UUID,
    user_id: CurrentUserId,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Recipient accepts. Opens (or reuses) the conversation between the two users."""
    check_api_rate_limit(request, user_id)
    return _unwrap(await swap_service_for(db).accept(str(swap_id), user_id))


@router.post("/{swap_id}/decline", response_model=SwapResponse)
async def decline_swap_request(
    swap_id: UUID,
    user_id: CurrentUserId,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    check_api_rate_limit(request, user_id)
    return _unwrap(await swap_service_for(db).decline(str(swap_id), user_id))


@router.post("/{swap_id}/cancel", response_model=SwapResponse)
async def cancel_swap_request(
    swap_id: UUID,
    user_id: CurrentUserId,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    check_api_rate_limit(request, user_id)
    return _unwrap(await swap_service_for(db).cancel(str(swap_id), user_id))


@router.post("/{swap_id}/archive", response_model=SwapResponse)
async def archive_swap_request(
    swap_id: UUID,
    user_id: CurrentUserId,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Hide a finished request from the default list. Only terminal requests can be archived."""
    check_api_rate_limit(request, user_id)
    return _unwrap(await swap_service_for(db).archive(str(swap_id), user_id))
