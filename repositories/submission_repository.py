"""
Submission repository for database operations.
"""
from typing import List, Optional, Dict, Any, Iterable, Tuple
from datetime import datetime, timezone
from sqlalchemy.orm import Session
from sqlalchemy import and_

from repositories.base_repository import BaseRepository
from models.submission import Submission


class SubmissionRepository(BaseRepository[Submission]):
    """Repository for Submission entity operations."""

    def __init__(self):
        """Initialize SubmissionRepository."""
        super().__init__(Submission)

    def create_submission(
        self,
        session: Session,
        owner_id: str,
        image_ref: str,
        analysis_text: str,
        status: str,
        item_name: Optional[str] = None,
        contact: Optional[Dict[str, str]] = None
    ) -> Submission:
        """
        Persist a submission once the owner has made a recycle decision.

        Args:
            session: Database session
            owner_id: Submitting user id
            image_ref: Image host reference
            analysis_text: Hazard analysis text
            status: Initial persisted status (interested or not_interested)
            item_name: Optional item name from the contact form
            contact: Optional contact form fields

        Returns:
            Created submission instance
        """
        now = datetime.now(timezone.utc)
        contact = contact or {}
        submission = Submission(
            owner_id=owner_id,
            image_ref=image_ref,
            analysis_text=analysis_text,
            status=status,
            version=1,
            item_name=item_name,
            points_awarded=0,
            contact_name=contact.get('name'),
            contact_email=contact.get('email'),
            contact_phone=contact.get('phone'),
            contact_location=contact.get('location'),
            contact_description=contact.get('description'),
            notification_acknowledged=False,
            created_at=now,
            updated_at=now
        )
        session.add(submission)
        session.flush()
        return submission

    def list_by_owner(
        self,
        session: Session,
        owner_id: str,
        limit: int = 50,
        offset: int = 0
    ) -> List[Submission]:
        """
        Get an owner's submissions, newest first.

        Args:
            session: Database session
            owner_id: Owner user id
            limit: Maximum number of results
            offset: Number of results to skip

        Returns:
            List of submission instances
        """
        return session.query(Submission).filter_by(
            owner_id=owner_id
        ).order_by(
            Submission.created_at.desc()
        ).offset(offset).limit(limit).all()

    def list_by_status(
        self,
        session: Session,
        statuses: Iterable[str],
        page: int = 1,
        per_page: int = 20
    ) -> Tuple[List[Submission], int]:
        """
        Get submissions whose status is in the given set, with pagination.

        Args:
            session: Database session
            statuses: Status filter set
            page: Page number (1-based)
            per_page: Items per page

        Returns:
            Tuple of (submissions list, total count)
        """
        query = session.query(Submission).filter(Submission.status.in_(list(statuses)))

        total = query.count()

        offset = (page - 1) * per_page
        submissions = query.order_by(
            Submission.created_at.desc()
        ).offset(offset).limit(per_page).all()

        return submissions, total

    def compare_and_set(
        self,
        session: Session,
        submission: Submission,
        expected_status: str,
        expected_version: int,
        changes: Dict[str, Any]
    ) -> bool:
        """
        Apply changes only if the stored status and version still match.

        Args:
            session: Database session
            submission: Submission instance that was read
            expected_status: Status observed when the submission was read
            expected_version: Version observed when the submission was read
            changes: Column values to write

        Returns:
            True if the row was updated, False on stale state
        """
        values = dict(changes)
        values['version'] = expected_version + 1
        values['updated_at'] = datetime.now(timezone.utc)

        updated = session.query(Submission).filter(
            and_(
                Submission.id == submission.id,
                Submission.status == expected_status,
                Submission.version == expected_version
            )
        ).update(values, synchronize_session=False)

        session.flush()
        if updated:
            session.refresh(submission)
        return updated == 1

    def count_by_statuses(self, session: Session, statuses: Iterable[str]) -> int:
        """Count submissions whose status is in the given set."""
        return session.query(Submission).filter(
            Submission.status.in_(list(statuses))
        ).count()
