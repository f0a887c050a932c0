"""
Points credit repository for ledger operations.
"""
from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import func

from repositories.base_repository import BaseRepository
from models.points_credit import PointsCredit


class PointsCreditRepository(BaseRepository[PointsCredit]):
    """Repository for PointsCredit entity operations."""

    def __init__(self):
        """Initialize PointsCreditRepository."""
        super().__init__(PointsCredit)

    def get_by_key(self, session: Session, idempotency_key: str) -> Optional[PointsCredit]:
        """Get the ledger entry recorded for an idempotency key."""
        return session.query(PointsCredit).filter_by(
            idempotency_key=idempotency_key
        ).first()

    def sum_for_user(self, session: Session, user_id: str) -> int:
        """Sum of all credits for a user."""
        total = session.query(func.coalesce(func.sum(PointsCredit.amount), 0)).filter(
            PointsCredit.user_id == user_id
        ).scalar()
        return int(total or 0)
