"""Notification feed endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dukasmart.core.deps import get_current_user
from dukasmart.db.base import get_db
from dukasmart.models.notification import Notification
from dukasmart.schemas.auth import CurrentUser
from dukasmart.schemas.notification import (
    NotificationActionRequest,
    NotificationActionResponse,
    NotificationListResponse,
    NotificationResponse,
    NotificationUpdateResponse,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])


async def _get_notification_or_404(db: AsyncSession, notification_id: UUID) -> Notification:
    notification = await db.get(Notification, notification_id)
    if not notification or notification.is_dismissed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
    return notification


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(100, ge=1, le=500),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Visible (non-dismissed) notifications, newest first."""
    visible = Notification.is_dismissed.is_(False)

    query = select(Notification).where(visible)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    unread_count = (
        await db.execute(
            select(func.count()).select_from(Notification).where(visible, Notification.is_read.is_(False))
        )
    ).scalar_one()

    result = await db.execute(query.order_by(Notification.created_at.desc()).limit(limit))
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in result.scalars().all()],
        total=total,
        unread_count=unread_count,
    )


@router.patch("/mark-all-read", response_model=NotificationUpdateResponse)
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        update(Notification)
        .where(Notification.is_read.is_(False), Notification.is_dismissed.is_(False))
        .values(is_read=True)
    )
    await db.commit()
    return NotificationUpdateResponse(updated=result.rowcount or 0)


@router.patch("/{notification_id}/read", response_model=NotificationUpdateResponse)
async def mark_read(
    notification_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Mark one notification read. Repeating the call changes nothing."""
    notification = await _get_notification_or_404(db, notification_id)
    updated = 0
    if not notification.is_read:
        notification.is_read = True
        updated = 1
        await db.commit()
    return NotificationUpdateResponse(updated=updated)


@router.delete("/{notification_id}", response_model=NotificationUpdateResponse)
async def dismiss_notification(
    notification_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Hide a notification from the feed. Dismissing twice is a no-op."""
    notification = await db.get(Notification, notification_id)
    if not notification:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
    updated = 0
    if not notification.is_dismissed:
        notification.is_dismissed = True
        updated = 1
        await db.commit()
    return NotificationUpdateResponse(updated=updated)


@router.post("/{notification_id}/action", response_model=NotificationActionResponse)
async def execute_action(
    notification_id: UUID,
    body: NotificationActionRequest | None = None,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Acknowledge the notification's action. The client navigates based on the returned type."""
    notification = await _get_notification_or_404(db, notification_id)
    if notification.action_type is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Notification has no action",
        )
    if body and body.action_type and body.action_type != notification.action_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Action does not match notification",
        )

    if not notification.is_read:
        notification.is_read = True
        await db.commit()

    return NotificationActionResponse(action_type=notification.action_type)
