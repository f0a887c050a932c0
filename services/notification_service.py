"""
Notification dispatcher deriving owner and organization notices from transition events.
"""
import logging
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
from injector import inject
from sqlalchemy.orm import Session

from database.connection import get_db_session
from models.submission import Submission, SubmissionStatus
from models.notification import Notification, NotificationAudience
from repositories.notification_repository import NotificationRepository
from repositories.submission_event_repository import SubmissionEventRepository
from repositories.submission_repository import SubmissionRepository
from services.exceptions import NotFound, InvalidActor
from services.status_workflow import Actor, parse_timestamp

logger = logging.getLogger(__name__)

# Target states that produce a notice for the submission owner
OWNER_NOTIFIED_STATES = (
    SubmissionStatus.ACCEPTED,
    SubmissionStatus.PICKUP_SCHEDULED,
    SubmissionStatus.DONE
)


def _item_label(submission: Submission) -> str:
    return submission.item_name or 'an item'


def build_owner_message(submission: Submission, target_state: str, payload: Dict[str, Any]) -> str:
    """Owner-facing message for a transition into ``target_state``."""
    item = _item_label(submission)

    if target_state == SubmissionStatus.ACCEPTED:
        return f"Your request for '{item}' has been accepted!"

    if target_state == SubmissionStatus.PICKUP_SCHEDULED:
        message = f"Your request for pickup of '{item}' is scheduled!"
        when = parse_timestamp(payload.get('when'))
        location = payload.get('location')
        if when and location:
            message += f" Pickup on {when.strftime('%Y-%m-%d %H:%M')} UTC at {location}."
        return message

    if target_state == SubmissionStatus.DONE:
        return f"Pickup completed for '{item}'. Thank you for recycling!"

    raise ValueError(f"No owner notification for state '{target_state}'")


def build_organization_message(submission: Submission) -> str:
    """Organization feed message for a newly interested submission."""
    name = submission.contact_name or 'User'
    if submission.contact_email:
        return f"New submission from {name} ({submission.contact_email})"
    return f"New submission from {name}"


class NotificationService:
    """Service deriving, listing and acknowledging notifications."""

    @inject
    def __init__(
        self,
        notification_repository: NotificationRepository,
        submission_repository: SubmissionRepository,
        event_repository: SubmissionEventRepository
    ):
        """Initialize notification service."""
        self.notification_repository = notification_repository
        self.submission_repository = submission_repository
        self.event_repository = event_repository

    def handle_transition(self, event: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Derive the notification for a transition event.

        Safe to call repeatedly with the same event.

        Args:
            event: Transition event message (see SubmissionEvent.to_message)

        Returns:
            The affected notification as a dict, or None if the edge has no notice
        """
        with get_db_session() as session:
            submission = self.submission_repository.get_by_id(session, event['submission_id'])
            if not submission:
                logger.warning(f"Transition event for unknown submission {event['submission_id']}")
                return None

            notification = self._derive(
                session, submission, event['to_status'], event.get('payload') or {}, event.get('event_id')
            )
            return notification.to_dict() if notification else None

    def _derive(
        self,
        session: Session,
        submission: Submission,
        target_state: str,
        payload: Dict[str, Any],
        event_id: Optional[int] = None
    ) -> Optional[Notification]:
        if target_state in OWNER_NOTIFIED_STATES:
            return self._upsert(
                session,
                submission,
                target_state,
                NotificationAudience.OWNER,
                submission.owner_id,
                build_owner_message(submission, target_state, payload),
                event_id
            )
        if target_state == SubmissionStatus.INTERESTED:
            return self._upsert(
                session,
                submission,
                target_state,
                NotificationAudience.ORGANIZATION,
                None,
                build_organization_message(submission),
                event_id
            )
        return None

    def _upsert(
        self,
        session: Session,
        submission: Submission,
        target_state: str,
        audience: str,
        recipient_id: Optional[str],
        message: str,
        event_id: Optional[int] = None
    ) -> Notification:
        existing = self.notification_repository.get_by_key(
            session, submission.id, target_state, audience
        )

        if existing:
            if event_id is not None and existing.last_event_id is not None and event_id <= existing.last_event_id:
                logger.debug(f"Skipped replayed event {event_id} for {submission.id}/{target_state}")
                return existing
            if existing.message == message:
                if event_id is not None:
                    existing.last_event_id = event_id
                    session.flush()
                return existing
            # Changed payload (reschedule): refresh and surface again
            existing.message = message
            existing.read = False
            if event_id is not None:
                existing.last_event_id = event_id
            existing.updated_at = datetime.now(timezone.utc)
            notification = existing
            logger.info(f"Refreshed {audience} notification for {submission.id}/{target_state}")
        else:
            now = datetime.now(timezone.utc)
            notification = self.notification_repository.create(
                session,
                submission_id=submission.id,
                target_state=target_state,
                audience=audience,
                recipient_id=recipient_id,
                message=message,
                read=False,
                last_event_id=event_id,
                created_at=now,
                updated_at=now
            )
            logger.info(f"Created {audience} notification for {submission.id}/{target_state}")

        if audience == NotificationAudience.OWNER:
            submission.notification_acknowledged = False
        session.flush()
        return notification

    def refresh_organization_entry(self, session: Session, submission: Submission) -> Optional[Notification]:
        """Rewrite the feed entry of an interested submission after its contact details change."""
        notification = self.notification_repository.get_by_key(
            session, submission.id, SubmissionStatus.INTERESTED, NotificationAudience.ORGANIZATION
        )
        if not notification:
            return None

        message = build_organization_message(submission)
        if notification.message != message:
            notification.message = message
            notification.updated_at = datetime.now(timezone.utc)
            session.flush()
            logger.info(f"Refreshed organization feed entry for {submission.id}")
        return notification

    def regenerate(self, submission_id: str) -> List[Dict[str, Any]]:
        """
        Rebuild notifications for a submission from its transition history.

        Only the latest event per target state is replayed, so an existing
        notification is left untouched when nothing changed.
        """
        with get_db_session() as session:
            submission = self.submission_repository.get_by_id(session, submission_id)
            if not submission:
                raise NotFound(f"Submission {submission_id} not found")

            latest = {}
            for event in self.event_repository.list_for_submission(session, submission_id):
                latest[event.to_status] = event

            results = []
            for target_state, event in latest.items():
                notification = self._derive(session, submission, target_state, event.payload or {}, event.id)
                if notification:
                    results.append(notification.to_dict())

            logger.info(f"Regenerated {len(results)} notifications for submission {submission_id}")
            return results

    def list_unread(self, owner_id: str) -> List[Dict[str, Any]]:
        """Unread notifications addressed to a submission owner."""
        with get_db_session() as session:
            notifications = self.notification_repository.list_unread_for_owner(session, owner_id)
            return [n.to_dict() for n in notifications]

    def mark_read(self, actor: Actor, submission_id: str) -> Dict[str, Any]:
        """
        Mark a submission's owner notifications read and acknowledge it.

        Raises:
            NotFound: Unknown submission
            InvalidActor: Actor is not the submission owner
        """
        with get_db_session() as session:
            submission = self.submission_repository.get_by_id(session, submission_id)
            if not submission:
                raise NotFound(f"Submission {submission_id} not found")
            if actor.user_id != submission.owner_id:
                raise InvalidActor('Only the owning user may acknowledge notifications')

            updated = self.notification_repository.mark_submission_read(session, submission_id)
            submission.notification_acknowledged = True
            session.flush()

            return {
                'submission_id': submission_id,
                'marked_read': updated,
                'notification_acknowledged': True
            }

    def list_organization_feed(self, actor: Actor) -> List[Dict[str, Any]]:
        """Unread organization feed entries."""
        if not actor.is_organization:
            raise InvalidActor('Only organizations may read the organization feed')
        with get_db_session() as session:
            notifications = self.notification_repository.list_unread_for_organizations(session)
            return [n.to_dict() for n in notifications]

    def mark_organization_read(self, actor: Actor, notification_id: int) -> Dict[str, Any]:
        """Mark one organization feed entry read."""
        if not actor.is_organization:
            raise InvalidActor('Only organizations may acknowledge feed entries')
        with get_db_session() as session:
            notification = self.notification_repository.get_by_id(session, notification_id)
            if not notification or notification.audience != NotificationAudience.ORGANIZATION:
                raise NotFound(f"Notification {notification_id} not found")
            notification.read = True
            notification.updated_at = datetime.now(timezone.utc)
            session.flush()
            return notification.to_dict()
