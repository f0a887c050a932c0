"""
User account model for principals supplied by the auth provider.
"""
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from database import Base


class ActorRole:
    """Role claim attached to the acting principal."""
    USER = 'user'
    ORGANIZATION = 'organization'

    ALL = (USER, ORGANIZATION)


class UserAccount(Base):
    """Model for user and organization accounts keyed by the auth provider id."""
    __tablename__ = 'user_accounts'

    id = Column(String(128), primary_key=True)
    role = Column(String(20), nullable=False, default=ActorRole.USER)
    display_name = Column(String(500))
    email = Column(String(255))
    eco_points = Column(Integer, nullable=False, default=0)  # cached sum of ledger credits
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    # Relationships
    submissions = relationship('Submission', back_populates='owner')

    def __repr__(self):
        return f'<UserAccount {self.id}: {self.role}>'

    def to_dict(self):
        """Convert account to dictionary for API responses."""
        return {
            'id': self.id,
            'role': self.role,
            'display_name': self.display_name,
            'email': self.email,
            'eco_points': self.eco_points,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
