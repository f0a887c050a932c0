"""
Notification repository for database operations.
"""
from typing import List, Optional
from datetime import datetime, timezone
from sqlalchemy.orm import Session

from repositories.base_repository import BaseRepository
from models.notification import Notification, NotificationAudience


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification entity operations."""

    def __init__(self):
        """Initialize NotificationRepository."""
        super().__init__(Notification)

    def get_by_key(
        self,
        session: Session,
        submission_id: str,
        target_state: str,
        audience: str
    ) -> Optional[Notification]:
        """Get the notification derived for (submission, target state, audience)."""
        return session.query(Notification).filter_by(
            submission_id=submission_id,
            target_state=target_state,
            audience=audience
        ).first()

    def list_unread_for_owner(self, session: Session, owner_id: str) -> List[Notification]:
        """Unread owner notifications, newest first."""
        return session.query(Notification).filter_by(
            audience=NotificationAudience.OWNER,
            recipient_id=owner_id,
            read=False
        ).order_by(Notification.updated_at.desc(), Notification.id.desc()).all()

    def list_unread_for_organizations(self, session: Session, limit: int = 100) -> List[Notification]:
        """Unread organization feed entries, newest first."""
        return session.query(Notification).filter_by(
            audience=NotificationAudience.ORGANIZATION,
            read=False
        ).order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    def mark_submission_read(self, session: Session, submission_id: str) -> int:
        """
        Mark all unread owner notifications of a submission as read.

        Returns:
            Number of notifications updated
        """
        updated = session.query(Notification).filter_by(
            submission_id=submission_id,
            audience=NotificationAudience.OWNER,
            read=False
        ).update(
            {'read': True, 'updated_at': datetime.now(timezone.utc)},
            synchronize_session=False
        )
        session.flush()
        return updated
