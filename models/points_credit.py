"""
Points credit model: one ledger entry per idempotency key.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from datetime import datetime, timezone
from database import Base


class PointsCredit(Base):
    """Ledger entry crediting eco points to a user."""
    __tablename__ = 'points_credits'

    id = Column(Integer, primary_key=True)
    idempotency_key = Column(String(128), unique=True, nullable=False)  # submission id
    user_id = Column(String(128), ForeignKey('user_accounts.id'), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def __repr__(self):
        return f'<PointsCredit {self.idempotency_key}: {self.amount}>'

    def to_dict(self):
        return {
            'id': self.id,
            'idempotency_key': self.idempotency_key,
            'user_id': self.user_id,
            'amount': self.amount,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }
