"""
Submission workflow service: applies status transitions against the store.

Each call loads the submission, runs the pure transition function from
``services.status_workflow``, writes the changes with a version check, records
the transition event and credits points in one database transaction. The
transition event is dispatched only after commit.
"""
import logging
from typing import Dict, Any, List, Optional, Iterable
from injector import inject
from sqlalchemy.exc import IntegrityError

import config.settings as settings
from database.connection import get_db_session
from models.submission import SubmissionStatus
from models.user_account import ActorRole
from repositories.submission_repository import SubmissionRepository
from repositories.submission_event_repository import SubmissionEventRepository
from repositories.user_account_repository import UserAccountRepository
from repositories.image_draft_repository import ImageDraftRepository
from services.exceptions import (
    NotFound, InvalidActor, InvalidTransition, MissingPayload, Conflict, ValidationError
)
from services.kafka_service import KafkaService
from services.notification_service import NotificationService
from services.points_ledger_service import PointsLedgerService
from services.s3_service import S3Service
from services.status_workflow import Actor, SubmissionState, evaluate_transition

logger = logging.getLogger(__name__)

CONTACT_FIELDS = ('name', 'email', 'phone', 'location', 'description')

DECISIONS = {
    'recycle': SubmissionStatus.INTERESTED,
    'decline': SubmissionStatus.NOT_INTERESTED
}


def normalize_contact(contact: Any) -> Dict[str, Optional[str]]:
    """
    Validate and trim a contact form.

    Raises:
        MissingPayload: name, email or location missing, or email malformed
    """
    if not isinstance(contact, dict):
        raise MissingPayload('Contact details are required', field='contact')

    cleaned = {}
    for key in CONTACT_FIELDS:
        value = contact.get(key)
        cleaned[key] = value.strip() if isinstance(value, str) and value.strip() else None

    for required in ('name', 'email', 'location'):
        if not cleaned[required]:
            raise MissingPayload(f"Contact {required} is required", field=required)
    if '@' not in cleaned['email']:
        raise MissingPayload('Invalid email format', field='email')

    return cleaned


class SubmissionWorkflowService:
    """Service enforcing the submission status workflow."""

    @inject
    def __init__(
        self,
        submission_repository: SubmissionRepository,
        event_repository: SubmissionEventRepository,
        account_repository: UserAccountRepository,
        points_ledger: PointsLedgerService,
        notification_service: NotificationService,
        kafka_service: KafkaService,
        draft_repository: ImageDraftRepository,
        s3_service: S3Service
    ):
        """Initialize submission workflow service."""
        self.submission_repository = submission_repository
        self.event_repository = event_repository
        self.account_repository = account_repository
        self.points_ledger = points_ledger
        self.notification_service = notification_service
        self.kafka_service = kafka_service
        self.draft_repository = draft_repository
        self.s3_service = s3_service
        self.dispatch_mode = settings.NOTIFICATION_DISPATCH_MODE
        self.recycle_points = settings.RECYCLE_POINTS

    # ------------------------------------------------------------------
    # User decisions
    # ------------------------------------------------------------------

    def submit_decision(
        self,
        actor: Actor,
        image_ref: str,
        decision: str,
        item_name: Optional[str] = None,
        contact: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Turn the owner's analyzed draft into a submission with their recycle decision.

        The analysis text is taken from the stored draft, never from the
        caller. A retried request for the same owner and image returns the
        stored submission instead of creating a second one.

        Args:
            actor: Owning user
            image_ref: Image host reference from the draft
            decision: 'recycle' or 'decline'
            item_name: Optional item name
            contact: Optional contact form

        Returns:
            Created submission as a dict

        Raises:
            ValidationError: Bad decision, or no analyzed draft of the actor's for this image
            Conflict: A different decision was already recorded for this image
            Unavailable: The image host could not be checked
        """
        if decision not in DECISIONS:
            raise ValidationError(f"Decision must be one of {sorted(DECISIONS)}", field='decision')
        if not image_ref or not isinstance(image_ref, str):
            raise ValidationError('image_ref is required', field='image_ref')

        target_status = DECISIONS[decision]
        draft_state = SubmissionState(status=SubmissionStatus.UNDECIDED, owner_id=actor.user_id)
        outcome = evaluate_transition(draft_state, actor, target_status)

        if not image_ref.startswith(f"uploads/{actor.user_id}/"):
            raise ValidationError('image_ref does not belong to this user', field='image_ref')

        cleaned_contact = None
        if contact:
            if target_status != SubmissionStatus.INTERESTED:
                raise ValidationError('Contact details are only accepted with a recycle decision', field='contact')
            cleaned_contact = normalize_contact(contact)
        item_name = item_name.strip() if isinstance(item_name, str) and item_name.strip() else None

        try:
            with get_db_session() as session:
                self.account_repository.get_or_create_account(
                    session, actor.user_id, ActorRole.USER, actor.display_name, actor.email
                )

                existing = self.submission_repository.find_one_by(
                    session, owner_id=actor.user_id, image_ref=image_ref
                )
                if existing:
                    return self._decision_retry(existing, target_status)

                draft = self.draft_repository.get_for_owner(session, actor.user_id, image_ref)
                if not draft:
                    raise ValidationError('No analyzed image found for image_ref', field='image_ref')
                if not self.s3_service.image_exists(image_ref):
                    raise ValidationError('Image is no longer available on the image host', field='image_ref')

                submission = self.submission_repository.create_submission(
                    session,
                    owner_id=actor.user_id,
                    image_ref=image_ref,
                    analysis_text=draft.analysis_text,
                    status=target_status,
                    item_name=item_name,
                    contact=cleaned_contact
                )
                self.draft_repository.delete(session, draft)

                if outcome.awards_points:
                    credit = self.points_ledger.credit(
                        session, actor.user_id, self.recycle_points, submission.id
                    )
                    submission.points_awarded = credit.amount

                event = self.event_repository.record_transition(
                    session,
                    submission_id=submission.id,
                    owner_id=submission.owner_id,
                    actor_id=actor.user_id,
                    actor_role=actor.role,
                    from_status=outcome.from_status,
                    to_status=outcome.to_status,
                    payload=outcome.event_payload
                )
                event_message = event.to_message()
                result = submission.to_dict()

        except IntegrityError as e:
            logger.warning(f"Concurrent decision for image {image_ref}: {e}")
            with get_db_session() as session:
                existing = self.submission_repository.find_one_by(
                    session, owner_id=actor.user_id, image_ref=image_ref
                )
                if existing:
                    return self._decision_retry(existing, target_status)
            raise Conflict('Submission was modified concurrently, retry the request')

        logger.info(
            f"Submission {result['id']}: {outcome.from_status} -> {outcome.to_status} by {actor.user_id}"
        )
        self._dispatch(event_message)
        return result

    def _decision_retry(self, existing, target_status: str) -> Dict[str, Any]:
        if existing.status != target_status:
            raise Conflict(
                'A decision was already recorded for this image',
                submission_id=existing.id,
                current_status=existing.status
            )
        logger.info(f"Decision retry for submission {existing.id}, returning stored record")
        return existing.to_dict()

    def provide_contact(
        self,
        actor: Actor,
        submission_id: str,
        contact: Dict[str, Any],
        item_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Attach the contact form to an interested submission.

        Raises:
            NotFound: Unknown submission
            InvalidActor: Actor is not the owner
            InvalidTransition: Submission is no longer interested, or contact already set
            MissingPayload: Contact incomplete
        """
        cleaned = normalize_contact(contact)

        with get_db_session() as session:
            submission = self._load(session, submission_id)
            if actor.role != ActorRole.USER or actor.user_id != submission.owner_id:
                raise InvalidActor('Only the owning user may provide contact details')
            if submission.status != SubmissionStatus.INTERESTED:
                raise InvalidTransition(
                    'Contact details can only be provided while the submission is interested',
                    current_status=submission.status
                )
            if submission.has_contact:
                raise InvalidTransition('Contact details were already provided')

            changes = {f'contact_{key}': value for key, value in cleaned.items()}
            if isinstance(item_name, str) and item_name.strip():
                changes['item_name'] = item_name.strip()

            if not self.submission_repository.compare_and_set(
                session, submission, submission.status, submission.version, changes
            ):
                raise Conflict('Submission changed while saving contact details')
            self.notification_service.refresh_organization_entry(session, submission)

            logger.info(f"Contact details attached to submission {submission_id}")
            return submission.to_dict()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def transition(
        self,
        actor: Actor,
        submission_id: str,
        target_status: str,
        payload: Optional[Dict[str, Any]] = None,
        expected_status: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Validate and apply a status transition.

        Args:
            actor: Acting principal
            submission_id: Submission to move
            target_status: Requested status
            payload: Edge payload ({'when', 'location'} for pickup)
            expected_status: Status the caller last observed

        Returns:
            Updated submission as a dict

        Raises:
            NotFound, InvalidActor, InvalidTransition, MissingPayload, Conflict
        """
        event_message = None

        try:
            with get_db_session() as session:
                submission = self._load(session, submission_id)
                state = SubmissionState.from_submission(submission)

                if expected_status and expected_status != state.status:
                    raise Conflict(
                        f"Submission is '{state.status}', expected '{expected_status}'",
                        current_status=state.status
                    )

                try:
                    outcome = evaluate_transition(state, actor, target_status, payload)
                except (InvalidActor, InvalidTransition, MissingPayload) as e:
                    logger.warning(
                        f"Rejected transition {state.status} -> {target_status} "
                        f"on {submission_id} by {actor.user_id}: {e.message}"
                    )
                    raise

                if outcome.is_noop:
                    logger.info(f"Submission {submission_id}: identical reschedule ignored")
                    return submission.to_dict()

                changes = dict(outcome.changes)
                if outcome.awards_points:
                    credit = self.points_ledger.credit(
                        session, submission.owner_id, self.recycle_points, submission.id
                    )
                    changes['points_awarded'] = credit.amount

                if not self.submission_repository.compare_and_set(
                    session, submission, state.status, submission.version, changes
                ):
                    raise Conflict(
                        'Submission was modified by another actor, reload and retry',
                        submission_id=submission_id
                    )

                event = self.event_repository.record_transition(
                    session,
                    submission_id=submission.id,
                    owner_id=submission.owner_id,
                    actor_id=actor.user_id,
                    actor_role=actor.role,
                    from_status=outcome.from_status,
                    to_status=outcome.to_status,
                    payload=outcome.event_payload
                )
                event_message = event.to_message()
                result = submission.to_dict()

        except IntegrityError as e:
            logger.warning(f"Concurrent write on submission {submission_id}: {e}")
            raise Conflict('Submission was modified concurrently, retry the request')

        logger.info(
            f"Submission {submission_id}: {outcome.from_status} -> {outcome.to_status} by {actor.user_id}"
        )
        self._dispatch(event_message)
        return result

    def accept(self, actor: Actor, submission_id: str, expected_status: Optional[str] = None) -> Dict[str, Any]:
        return self.transition(actor, submission_id, SubmissionStatus.ACCEPTED, expected_status=expected_status)

    def reject(self, actor: Actor, submission_id: str, expected_status: Optional[str] = None) -> Dict[str, Any]:
        return self.transition(actor, submission_id, SubmissionStatus.REJECTED, expected_status=expected_status)

    def schedule_pickup(
        self,
        actor: Actor,
        submission_id: str,
        when: Any,
        location: Optional[str],
        expected_status: Optional[str] = None
    ) -> Dict[str, Any]:
        """Schedule (or reschedule) the pickup of an accepted submission."""
        return self.transition(
            actor,
            submission_id,
            SubmissionStatus.PICKUP_SCHEDULED,
            payload={'when': when, 'location': location},
            expected_status=expected_status
        )

    def mark_done(self, actor: Actor, submission_id: str, expected_status: Optional[str] = None) -> Dict[str, Any]:
        return self.transition(actor, submission_id, SubmissionStatus.DONE, expected_status=expected_status)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_submission(self, actor: Actor, submission_id: str) -> Dict[str, Any]:
        """
        Get a submission visible to the actor.

        Owners see their own submissions; organizations see submissions in
        interested, accepted or pickup_scheduled.
        """
        with get_db_session() as session:
            submission = self._load(session, submission_id)
            self._check_read_access(actor, submission)
            return submission.to_dict()

    def get_history(self, actor: Actor, submission_id: str) -> List[Dict[str, Any]]:
        """Transition history of a submission visible to the actor."""
        with get_db_session() as session:
            submission = self._load(session, submission_id)
            self._check_read_access(actor, submission)
            events = self.event_repository.list_for_submission(session, submission_id)
            return [event.to_message() for event in events]

    def list_for_owner(self, actor: Actor, limit: int = 50) -> List[Dict[str, Any]]:
        """The actor's own submissions, newest first."""
        with get_db_session() as session:
            submissions = self.submission_repository.list_by_owner(session, actor.user_id, limit=limit)
            return [s.to_dict() for s in submissions]

    def list_for_organization(
        self,
        actor: Actor,
        statuses: Optional[Iterable[str]] = None,
        page: int = 1,
        per_page: int = 20
    ) -> Dict[str, Any]:
        """
        List submissions for organization triage.

        Raises:
            InvalidActor: Actor is not an organization, or a status outside the visible set was requested
        """
        if not actor.is_organization:
            raise InvalidActor('Only organizations may browse submissions')

        statuses = list(statuses) if statuses else list(SubmissionStatus.ORGANIZATION_VISIBLE)
        hidden = [s for s in statuses if s not in SubmissionStatus.ORGANIZATION_VISIBLE]
        if hidden:
            raise InvalidActor(f"Organizations may not list submissions in {hidden}")

        page = max(page, 1)
        per_page = min(max(per_page, 1), 100)

        with get_db_session() as session:
            submissions, total = self.submission_repository.list_by_status(
                session, statuses, page=page, per_page=per_page
            )
            return {
                'submissions': [s.to_dict() for s in submissions],
                'pagination': {
                    'page': page,
                    'per_page': per_page,
                    'total': total,
                    'pages': (total + per_page - 1) // per_page
                }
            }

    def organization_stats(self, actor: Actor) -> Dict[str, int]:
        """Submission counts shown on the organization profile."""
        if not actor.is_organization:
            raise InvalidActor('Only organizations may view submission statistics')

        with get_db_session() as session:
            return {
                'total_submissions': self.submission_repository.count(session),
                'accepted_submissions': self.submission_repository.count_by_statuses(
                    session,
                    (SubmissionStatus.ACCEPTED, SubmissionStatus.PICKUP_SCHEDULED, SubmissionStatus.DONE)
                ),
                'completed_pickups': self.submission_repository.count_by_statuses(
                    session, (SubmissionStatus.DONE,)
                )
            }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, session, submission_id: str):
        submission = self.submission_repository.get_by_id(session, submission_id)
        if not submission:
            raise NotFound(f"Submission {submission_id} not found")
        return submission

    def _check_read_access(self, actor: Actor, submission) -> None:
        if actor.is_organization:
            if submission.status not in SubmissionStatus.ORGANIZATION_VISIBLE:
                raise InvalidActor('Organizations may not view submissions in this status')
        elif actor.user_id != submission.owner_id:
            raise InvalidActor('Submission belongs to another user')

    def _dispatch(self, event_message: Dict[str, Any]) -> None:
        """Hand a committed transition event to the notification dispatcher."""
        if self.dispatch_mode == 'kafka':
            if self.kafka_service.publish_submission_transition(event_message):
                return
            logger.error(
                f"Failed to publish transition for {event_message['submission_id']}, dispatching inline"
            )

        try:
            self.notification_service.handle_transition(event_message)
        except Exception as e:
            # Notifications are derived; regenerate() rebuilds them from history
            logger.error(f"Notification dispatch failed for {event_message['submission_id']}: {e}")
