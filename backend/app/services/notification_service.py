"""
Notification Service.

Handles creation and state management of notifications.

Notifications are a side channel: they are written inside a SAVEPOINT of the
caller's transaction, so a failed insert is rolled back on its own and the
booking, delivery or payment that raised it still commits.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, List

from sqlalchemy import select, update, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


class NotificationService:

    @staticmethod
    async def _insert(db: AsyncSession, notification: Notification) -> Notification:
        db.add(notification)
        await db.flush()
        return notification

    @staticmethod
    async def notify(
        db: AsyncSession,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        entity_type: Optional[str] = None,
        entity_id: Optional[int] = None
    ) -> Optional[Notification]:
        """
        Best-effort notification.

        Returns:
            The notification, or None if it could not be written
        """
        notif = Notification(
            type=type,
            title=title,
            message=message,
            entity_type=entity_type,
            entity_id=entity_id
        )
        try:
            async with db.begin_nested():
                await NotificationService._insert(db, notif)
        except SQLAlchemyError as exc:
            logger.warning(
                "Notification '%s' for %s:%s dropped: %s", title, entity_type, entity_id, exc
            )
            return None
        return notif

    @staticmethod
    async def list_notifications(
        db: AsyncSession,
        unread_only: bool = False,
        limit: int = 50
    ) -> List[Notification]:
        query = select(Notification).order_by(Notification.created_at.desc(), Notification.id.desc())
        if unread_only:
            query = query.where(Notification.is_read == False)
        result = await db.execute(query.limit(limit))
        return list(result.scalars().all())

    @staticmethod
    async def unread_count(db: AsyncSession) -> int:
        result = await db.execute(
            select(func.count(Notification.id)).where(Notification.is_read == False)
        )
        return result.scalar_one()

    @staticmethod
    async def mark_read(db: AsyncSession, notification_id: int) -> bool:
        """Mark a notification as read."""
        stmt = update(Notification).where(
            Notification.id == notification_id
        ).values(
            is_read=True,
            read_at=datetime.now(timezone.utc)
        )
        result = await db.execute(stmt)
        return result.rowcount > 0

    @staticmethod
    async def mark_all_read(db: AsyncSession) -> int:
        """Mark all notifications as read."""
        stmt = update(Notification).where(
            Notification.is_read == False
        ).values(
            is_read=True,
            read_at=datetime.now(timezone.utc)
        )
        result = await db.execute(stmt)
        return result.rowcount
