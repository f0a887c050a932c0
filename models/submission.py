"""
Submission model: one e-waste item reported by a user and its lifecycle record.
"""
import uuid
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from database import Base


class SubmissionStatus:
    """Submission lifecycle statuses."""
    UNDECIDED = 'undecided'  # draft only, never persisted
    INTERESTED = 'interested'
    NOT_INTERESTED = 'not_interested'
    ACCEPTED = 'accepted'
    REJECTED = 'rejected'
    PICKUP_SCHEDULED = 'pickup_scheduled'
    DONE = 'done'

    PERSISTED = (INTERESTED, NOT_INTERESTED, ACCEPTED, REJECTED, PICKUP_SCHEDULED, DONE)
    TERMINAL = (NOT_INTERESTED, REJECTED, DONE)
    # Statuses an organization is allowed to browse
    ORGANIZATION_VISIBLE = (INTERESTED, ACCEPTED, PICKUP_SCHEDULED)


def _iso(value):
    return value.isoformat() if value else None


class Submission(Base):
    """Model for a user-reported e-waste item moving through the recycling workflow."""
    __tablename__ = 'submissions'
    __table_args__ = (
        UniqueConstraint('owner_id', 'image_ref', name='uq_submission_owner_image'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(128), ForeignKey('user_accounts.id'), nullable=False, index=True)
    status = Column(String(50), nullable=False, index=True)
    version = Column(Integer, nullable=False, default=1)  # bumped on every write, used for stale-state detection

    image_ref = Column(String(1000), nullable=False)  # image host object key
    analysis_text = Column(Text, nullable=False)
    item_name = Column(String(500))
    points_awarded = Column(Integer, nullable=False, default=0)

    # Pickup (present once scheduled, overwritten by rescheduling)
    pickup_when = Column(DateTime(timezone=True))
    pickup_location = Column(String(500))

    # Contact form (immutable once set)
    contact_name = Column(String(500))
    contact_email = Column(String(255))
    contact_phone = Column(String(50))
    contact_location = Column(String(500))
    contact_description = Column(Text)

    notification_acknowledged = Column(Boolean, nullable=False, default=False)

    # Organization actions
    accepted_by = Column(String(128))
    accepted_at = Column(DateTime(timezone=True))
    rejected_by = Column(String(128))
    rejected_at = Column(DateTime(timezone=True))
    scheduled_by = Column(String(128))
    scheduled_at = Column(DateTime(timezone=True))
    completed_by = Column(String(128))
    completed_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    owner = relationship('UserAccount', back_populates='submissions')
    events = relationship('SubmissionEvent', back_populates='submission', order_by='SubmissionEvent.id')

    def __repr__(self):
        return f'<Submission {self.id}: {self.status}>'

    @property
    def has_contact(self) -> bool:
        return bool(self.contact_name)

    @property
    def contact(self):
        if not self.has_contact:
            return None
        return {
            'name': self.contact_name,
            'email': self.contact_email,
            'phone': self.contact_phone,
            'location': self.contact_location,
            'description': self.contact_description
        }

    @property
    def pickup(self):
        if self.pickup_when is None and not self.pickup_location:
            return None
        return {'when': self.pickup_when, 'location': self.pickup_location}

    def to_dict(self):
        """Convert submission to dictionary for API responses."""
        return {
            'id': self.id,
            'owner_id': self.owner_id,
            'status': self.status,
            'image_ref': self.image_ref,
            'analysis_text': self.analysis_text,
            'item_name': self.item_name,
            'points_awarded': self.points_awarded,
            'pickup': {
                'when': _iso(self.pickup_when),
                'location': self.pickup_location
            } if self.pickup else None,
            'contact': self.contact,
            'notification_acknowledged': self.notification_acknowledged,
            'accepted_by': self.accepted_by,
            'accepted_at': _iso(self.accepted_at),
            'rejected_by': self.rejected_by,
            'rejected_at': _iso(self.rejected_at),
            'scheduled_by': self.scheduled_by,
            'scheduled_at': _iso(self.scheduled_at),
            'completed_by': self.completed_by,
            'completed_at': _iso(self.completed_at),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }
