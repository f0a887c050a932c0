"""
Submission event repository for transition history.
"""
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
from sqlalchemy.orm import Session

from repositories.base_repository import BaseRepository
from models.submission_event import SubmissionEvent


class SubmissionEventRepository(BaseRepository[SubmissionEvent]):
    """Repository for SubmissionEvent entity operations."""

    def __init__(self):
        """Initialize SubmissionEventRepository."""
        super().__init__(SubmissionEvent)

    def record_transition(
        self,
        session: Session,
        submission_id: str,
        owner_id: str,
        actor_id: str,
        actor_role: str,
        from_status: str,
        to_status: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> SubmissionEvent:
        """Append a transition to the submission's history."""
        return self.create(
            session,
            submission_id=submission_id,
            owner_id=owner_id,
            actor_id=actor_id,
            actor_role=actor_role,
            from_status=from_status,
            to_status=to_status,
            payload=payload or {},
            created_at=datetime.now(timezone.utc)
        )

    def list_for_submission(self, session: Session, submission_id: str) -> List[SubmissionEvent]:
        """Transition history of a submission in application order."""
        return session.query(SubmissionEvent).filter_by(
            submission_id=submission_id
        ).order_by(SubmissionEvent.id.asc()).all()
