"""
Notification model for notices derived from submission transitions.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, UniqueConstraint
from datetime import datetime, timezone
from database import Base


class NotificationAudience:
    """Who a notification is addressed to."""
    OWNER = 'owner'
    ORGANIZATION = 'organization'


class Notification(Base):
    """Model for derived notifications; one per (submission, target state, audience)."""
    __tablename__ = 'notifications'
    __table_args__ = (
        UniqueConstraint('submission_id', 'target_state', 'audience', name='uq_notification_key'),
    )

    id = Column(Integer, primary_key=True)
    submission_id = Column(String(36), ForeignKey('submissions.id'), nullable=False, index=True)
    target_state = Column(String(50), nullable=False)
    audience = Column(String(20), nullable=False, default=NotificationAudience.OWNER)
    recipient_id = Column(String(128), index=True)  # owner id; empty for the organization feed
    message = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    last_event_id = Column(Integer)  # newest transition event applied to this notice
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f'<Notification {self.id}: {self.submission_id}/{self.target_state}>'

    def to_dict(self):
        """Convert notification to dictionary for API responses."""
        return {
            'id': self.id,
            'submission_id': self.submission_id,
            'target_state': self.target_state,
            'audience': self.audience,
            'recipient_id': self.recipient_id,
            'message': self.message,
            'read': self.read,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
