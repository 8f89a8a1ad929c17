"""
Notification inbox endpoints:
  GET    /notifications/{address}            — inbox, newest first (limit/offset/unreadOnly)
  GET    /notifications/{address}/count      — unread count
  PUT    /notifications/{id}/read            — mark one read
  PUT    /notifications/{address}/read-all   — mark all read for an address
  DELETE /notifications/{id}                 — delete one

Mark/delete operations are idempotent: an already-read or already-deleted
notification is a silent success.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import AsyncSession

from social_index import queries
from social_index.database import get_db
from social_index.deps import Page
from social_index.errors import failing_as
from social_index.models import Notification
from social_index.schemas import MutationResponse, NotificationResponse, UnreadCount

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{address}", response_model=list[NotificationResponse])
async def list_notifications(
    address: str,
    page: Page = Depends(),
    unread_only: bool = Query(False, alias="unreadOnly"),
    db: AsyncSession = Depends(get_db),
):
    return await queries.notifications(db, address, page.limit, page.offset, unread_only)


@router.get("/{address}/count", response_model=UnreadCount)
async def count_unread(address: str, db: AsyncSession = Depends(get_db)):
    return UnreadCount(count=await queries.unread_count(db, address))


@router.put("/{notification_id}/read", response_model=MutationResponse, response_model_exclude_none=True)
async def mark_read(notification_id: int, db: AsyncSession = Depends(get_db)):
    with failing_as("Failed to mark as read"):
        await db.execute(
            update(Notification)
            .where(Notification.id == notification_id)
            .values(is_read=True)
        )
        await db.commit()
    logger.info("Notification %s marked as read", notification_id)
    return MutationResponse()


@router.put("/{address}/read-all", response_model=MutationResponse, response_model_exclude_none=True)
async def mark_all_read(address: str, db: AsyncSession = Depends(get_db)):
    with failing_as("Failed to mark all as read"):
        await db.execute(
            update(Notification)
            .where(Notification.user_address == address, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await db.commit()
    logger.info("All notifications marked as read for %s", address)
    return MutationResponse()


@router.delete("/{notification_id}", response_model=MutationResponse, response_model_exclude_none=True)
async def delete_notification(notification_id: int, db: AsyncSession = Depends(get_db)):
    with failing_as("Failed to delete notification"):
        await db.execute(delete(Notification).where(Notification.id == notification_id))
        await db.commit()
    logger.info("Notification %s deleted", notification_id)
    return MutationResponse()
