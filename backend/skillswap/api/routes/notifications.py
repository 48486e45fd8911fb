"""
Notifications and navigation badges for the current user.
"""
from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.api.middleware.auth import CurrentUserId
from skillswap.api.middleware.rate_limit import check_api_rate_limit
from skillswap.database.connection import get_db
from skillswap.domain.entities import SwapEvent, SwapStatus
from skillswap.models.notification import NotificationRow
from skillswap.models.swap import SwapRequestRow

router = APIRouter()
badges_router = APIRouter()


class NotificationResponse(BaseModel):
    id: str
    event: SwapEvent
    swap_request_id: str | None
    is_read: bool
    created_at: datetime


class BadgeCountsResponse(BaseModel):
    pending_requests: int
    unread_notifications: int


@router.get("", response_model=list[NotificationResponse])
async def list_notifications(
    user_id: CurrentUserId,
    request: Request,
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
):
    check_api_rate_limit(request, user_id)
    query = select(NotificationRow).where(NotificationRow.user_id == UUID(user_id))
    if unread_only:
        query = query.where(NotificationRow.is_read.is_(False))
    result = await db.execute(query.order_by(NotificationRow.created_at.desc()).limit(limit))
    return [
        NotificationResponse(
            id=str(n.id),
            event=SwapEvent(n.event),
            swap_request_id=str(n.swap_request_id) if n.swap_request_id else None,
            is_read=n.is_read,
            created_at=n.created_at,
        )
        for n in result.scalars().all()
    ]


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification_read(
    notification_id: UUID,
    user_id: CurrentUserId,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    check_api_rate_limit(request, user_id)
    row = await db.get(NotificationRow, notification_id)
    if not row or row.user_id != UUID(user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    row.is_read = True
    await db.commit()


@router.post("/read-all", status_code=status.HTTP_204_NO_CONTENT)
async def mark_all_notifications_read(
    user_id: CurrentUserId,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    check_api_rate_limit(request, user_id)
    await db.execute(
        update(NotificationRow)
        .where(NotificationRow.user_id == UUID(user_id), NotificationRow.is_read.is_(False))
        .values(is_read=True)
    )
    await db.commit()


@badges_router.get("", response_model=BadgeCountsResponse)
async def get_badge_counts(
    user_id: CurrentUserId,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Pending requests received and unread notifications. Computed on every call."""
    check_api_rate_limit(request, user_id)
    uid = UUID(user_id)
    pending = await db.scalar(
        select(func.count())
        .select_from(SwapRequestRow)
        .where(SwapRequestRow.to_user_id == uid, SwapRequestRow.status == SwapStatus.PENDING.value)
    )
    unread = await db.scalar(
        select(func.count())
        .select_from(NotificationRow)
        .where(NotificationRow.user_id == uid, NotificationRow.is_read.is_(False))
    )
    return BadgeCountsResponse(pending_requests=pending or 0, unread_notifications=unread or 0)
