"""
User account repository for database operations.
"""
from typing import Optional
from datetime import datetime, timezone
from sqlalchemy.orm import Session

from repositories.base_repository import BaseRepository
from models.user_account import UserAccount


class UserAccountRepository(BaseRepository[UserAccount]):
    """Repository for UserAccount entity operations."""

    def __init__(self):
        """Initialize UserAccountRepository."""
        super().__init__(UserAccount)

    def get_or_create_account(
        self,
        session: Session,
        user_id: str,
        role: str,
        display_name: Optional[str] = None,
        email: Optional[str] = None
    ) -> UserAccount:
        """
        Get existing account or create one for a principal seen for the first time.

        Args:
            session: Database session
            user_id: Auth provider user id
            role: Role claim
            display_name: Optional display name
            email: Optional email address

        Returns:
            UserAccount instance (existing or newly created)
        """
        account = self.get_by_id(session, user_id)

        if not account:
            now = datetime.now(timezone.utc)
            account = self.create(
                session,
                id=user_id,
                role=role,
                display_name=display_name,
                email=email,
                eco_points=0,
                created_at=now,
                updated_at=now
            )

        return account

    def add_points(self, session: Session, account: UserAccount, amount: int) -> UserAccount:
        """Increment the cached point total."""
        account.eco_points = (account.eco_points or 0) + amount
        account.updated_at = datetime.now(timezone.utc)
        session.flush()
        return account
