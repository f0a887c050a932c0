"""
Points ledger: at-most-once eco point credits keyed by an idempotency key.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from injector import inject
from sqlalchemy.orm import Session

from database.connection import get_db_session
from models.user_account import ActorRole
from repositories.points_credit_repository import PointsCreditRepository
from repositories.user_account_repository import UserAccountRepository

logger = logging.getLogger(__name__)


@dataclass
class CreditResult:
    """Outcome of a credit request."""
    credited: bool
    amount: int
    total: int

    def to_dict(self):
        return {'credited': self.credited, 'amount': self.amount, 'total': self.total}


class PointsLedgerService:
    """Service crediting eco points exactly once per idempotency key."""

    @inject
    def __init__(
        self,
        points_repository: PointsCreditRepository,
        account_repository: UserAccountRepository
    ):
        """Initialize points ledger service."""
        self.points_repository = points_repository
        self.account_repository = account_repository

    def credit(
        self,
        session: Session,
        user_id: str,
        amount: int,
        idempotency_key: str
    ) -> CreditResult:
        """
        Credit points to a user unless the key was already credited.

        Runs inside the caller's session so the credit commits or rolls back
        together with the transition that triggered it.

        Args:
            session: Database session
            user_id: User receiving the points
            amount: Positive number of points
            idempotency_key: Submission id the credit belongs to

        Returns:
            CreditResult; a repeated key returns the prior amount with credited=False

        Raises:
            ValueError: If amount is not positive or the key is empty
        """
        if amount is None or amount <= 0:
            raise ValueError("Credit amount must be positive")
        if not idempotency_key:
            raise ValueError("Idempotency key is required")

        existing = self.points_repository.get_by_key(session, idempotency_key)
        if existing:
            logger.info(f"Credit for key {idempotency_key} already recorded, returning prior result")
            return CreditResult(
                credited=False,
                amount=existing.amount,
                total=self.points_repository.sum_for_user(session, existing.user_id)
            )

        account = self.account_repository.get_or_create_account(session, user_id, ActorRole.USER)
        self.points_repository.create(
            session,
            idempotency_key=idempotency_key,
            user_id=user_id,
            amount=amount,
            created_at=datetime.now(timezone.utc)
        )
        self.account_repository.add_points(session, account, amount)

        total = self.points_repository.sum_for_user(session, user_id)
        logger.info(f"Credited {amount} points to {user_id} for {idempotency_key} (total {total})")
        return CreditResult(credited=True, amount=amount, total=total)

    def total_for(self, user_id: str, session: Session = None) -> int:
        """Ledger total for a user."""
        if session is not None:
            return self.points_repository.sum_for_user(session, user_id)
        with get_db_session() as session:
            return self.points_repository.sum_for_user(session, user_id)
