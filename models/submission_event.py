"""
Submission event model: append-only history of applied status transitions.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from database import Base


class SubmissionEvent(Base):
    """Immutable audit trail entry for submission status transitions."""
    __tablename__ = 'submission_events'

    id = Column(Integer, primary_key=True)
    submission_id = Column(String(36), ForeignKey('submissions.id'), nullable=False, index=True)
    owner_id = Column(String(128), nullable=False)
    actor_id = Column(String(128), nullable=False)
    actor_role = Column(String(20), nullable=False)
    from_status = Column(String(50), nullable=False)
    to_status = Column(String(50), nullable=False)
    payload = Column(JSON)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    submission = relationship('Submission', back_populates='events')

    def __repr__(self):
        return f'<SubmissionEvent {self.id}: {self.from_status} -> {self.to_status}>'

    def to_message(self):
        """Serialize event for the notification dispatcher and the transition topic."""
        return {
            'event_id': self.id,
            'submission_id': self.submission_id,
            'owner_id': self.owner_id,
            'actor_id': self.actor_id,
            'actor_role': self.actor_role,
            'from_status': self.from_status,
            'to_status': self.to_status,
            'payload': self.payload or {},
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
