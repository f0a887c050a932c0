"""
User service for account and profile operations.
"""
import logging
from typing import Dict, Any
from injector import inject

from database.connection import get_db_session
from repositories.user_account_repository import UserAccountRepository
from repositories.submission_repository import SubmissionRepository
from services.points_ledger_service import PointsLedgerService
from services.status_workflow import Actor

logger = logging.getLogger(__name__)


class UserService:
    """Service class for user-related business operations."""

    @inject
    def __init__(
        self,
        account_repository: UserAccountRepository,
        submission_repository: SubmissionRepository,
        points_ledger: PointsLedgerService
    ):
        """Initialize UserService."""
        self.account_repository = account_repository
        self.submission_repository = submission_repository
        self.points_ledger = points_ledger

    def get_profile(self, actor: Actor, recent: int = 10) -> Dict[str, Any]:
        """
        Get the acting principal's profile.

        The account is created on first sight from the auth provider claims.

        Args:
            actor: Acting principal
            recent: Number of recent submissions to include

        Returns:
            Dictionary with account, eco points and recent submissions
        """
        with get_db_session() as session:
            account = self.account_repository.get_or_create_account(
                session, actor.user_id, actor.role, actor.display_name, actor.email
            )
            eco_points = self.points_ledger.total_for(actor.user_id, session=session)
            if account.eco_points != eco_points:
                logger.warning(
                    f"Cached points for {actor.user_id} ({account.eco_points}) differ from ledger ({eco_points})"
                )
                account.eco_points = eco_points

            submissions = self.submission_repository.list_by_owner(session, actor.user_id, limit=recent)

            return {
                'account': account.to_dict(),
                'eco_points': eco_points,
                'recent_submissions': [s.to_dict() for s in submissions]
            }
