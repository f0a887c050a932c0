"""
Submission status workflow: the allowed transition graph and a pure transition
function, independent of storage.

    undecided --user--> interested | not_interested
    interested --organization--> accepted | rejected
    accepted --organization--> pickup_scheduled
    pickup_scheduled --organization--> pickup_scheduled (reschedule) | done

The engine service loads a snapshot, calls ``evaluate_transition`` and writes
the resulting changes; nothing here touches the database.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from models.submission import SubmissionStatus
from models.user_account import ActorRole
from services.exceptions import InvalidActor, InvalidTransition, MissingPayload

# Allowed edges: current status -> set of target statuses
TRANSITIONS = {
    SubmissionStatus.UNDECIDED: {SubmissionStatus.INTERESTED, SubmissionStatus.NOT_INTERESTED},
    SubmissionStatus.INTERESTED: {SubmissionStatus.ACCEPTED, SubmissionStatus.REJECTED},
    SubmissionStatus.ACCEPTED: {SubmissionStatus.PICKUP_SCHEDULED},
    SubmissionStatus.PICKUP_SCHEDULED: {SubmissionStatus.PICKUP_SCHEDULED, SubmissionStatus.DONE},
}

# Role authorized to move a submission into each target status
EDGE_ROLES = {
    SubmissionStatus.INTERESTED: ActorRole.USER,
    SubmissionStatus.NOT_INTERESTED: ActorRole.USER,
    SubmissionStatus.ACCEPTED: ActorRole.ORGANIZATION,
    SubmissionStatus.REJECTED: ActorRole.ORGANIZATION,
    SubmissionStatus.PICKUP_SCHEDULED: ActorRole.ORGANIZATION,
    SubmissionStatus.DONE: ActorRole.ORGANIZATION,
}

# Organization action stamps written alongside the status
_ACTION_STAMPS = {
    SubmissionStatus.ACCEPTED: ('accepted_by', 'accepted_at'),
    SubmissionStatus.REJECTED: ('rejected_by', 'rejected_at'),
    SubmissionStatus.PICKUP_SCHEDULED: ('scheduled_by', 'scheduled_at'),
    SubmissionStatus.DONE: ('completed_by', 'completed_at'),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or datetime into aware UTC, or None if impossible."""
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None
    raw = value.strip()
    if raw.endswith('Z'):
        raw = raw[:-1] + '+00:00'
    try:
        return as_utc(datetime.fromisoformat(raw))
    except ValueError:
        return None


@dataclass(frozen=True)
class Actor:
    """Acting principal as asserted by the auth provider."""
    user_id: str
    role: str
    display_name: Optional[str] = field(default=None, compare=False)
    email: Optional[str] = field(default=None, compare=False)

    @property
    def is_organization(self) -> bool:
        return self.role == ActorRole.ORGANIZATION


@dataclass(frozen=True)
class SubmissionState:
    """The parts of a submission the transition function reads."""
    status: str
    owner_id: str
    has_contact: bool = False
    pickup_when: Optional[datetime] = None
    pickup_location: Optional[str] = None

    @classmethod
    def from_submission(cls, submission) -> 'SubmissionState':
        return cls(
            status=submission.status,
            owner_id=submission.owner_id,
            has_contact=submission.has_contact,
            pickup_when=as_utc(submission.pickup_when),
            pickup_location=submission.pickup_location
        )


@dataclass
class TransitionOutcome:
    """Result of a valid transition request."""
    from_status: str
    to_status: str
    changes: Dict[str, Any] = field(default_factory=dict)
    awards_points: bool = False
    is_noop: bool = False

    @property
    def event_payload(self) -> Dict[str, Any]:
        """JSON-safe payload recorded with the transition event."""
        payload = {}
        if self.changes.get('pickup_when') is not None:
            payload['when'] = self.changes['pickup_when'].isoformat()
            payload['location'] = self.changes['pickup_location']
        return payload


def _validate_pickup(payload: Optional[Dict[str, Any]], now: datetime):
    payload = payload or {}
    when = parse_timestamp(payload.get('when'))
    location = payload.get('location')
    location = location.strip() if isinstance(location, str) else ''

    if when is None:
        raise MissingPayload('Pickup requires a date and time', field='when')
    if when < now:
        raise MissingPayload('Pickup time must not be in the past', field='when')
    if not location:
        raise MissingPayload('Pickup requires a location', field='location')
    return when, location


def evaluate_transition(
    state: SubmissionState,
    actor: Actor,
    target_status: str,
    payload: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None
) -> TransitionOutcome:
    """
    Validate a transition request and compute the resulting field changes.

    Checks run in a fixed order: actor authorization, graph membership, payload.

    Args:
        state: Snapshot of the submission's current state
        actor: Acting principal
        target_status: Requested status
        payload: Edge payload ({'when', 'location'} for pickup scheduling)
        now: Current time (defaults to UTC now)

    Returns:
        TransitionOutcome describing the changes to persist

    Raises:
        InvalidActor: Role (or principal) not allowed on this edge
        InvalidTransition: Edge not in the graph
        MissingPayload: Pickup payload incomplete, or contact missing for acceptance
    """
    now = as_utc(now) or utcnow()

    required_role = EDGE_ROLES.get(target_status)
    if required_role is None:
        raise InvalidTransition(
            f"Unknown target status '{target_status}'",
            current_status=state.status
        )
    if actor.role != required_role:
        raise InvalidActor(
            f"Role '{actor.role}' may not move a submission to '{target_status}'",
            required_role=required_role
        )
    if required_role == ActorRole.USER and actor.user_id != state.owner_id:
        raise InvalidActor('Only the owning user may decide on a submission')

    if target_status not in TRANSITIONS.get(state.status, set()):
        raise InvalidTransition(
            f"Cannot move submission from '{state.status}' to '{target_status}'",
            current_status=state.status,
            target_status=target_status
        )

    outcome = TransitionOutcome(from_status=state.status, to_status=target_status)

    if target_status == SubmissionStatus.ACCEPTED and not state.has_contact:
        raise MissingPayload('Contact details are required before acceptance', field='contact')

    if target_status == SubmissionStatus.PICKUP_SCHEDULED:
        when, location = _validate_pickup(payload, now)
        if (state.status == SubmissionStatus.PICKUP_SCHEDULED
                and state.pickup_when == when
                and state.pickup_location == location):
            outcome.is_noop = True
            return outcome
        outcome.changes['pickup_when'] = when
        outcome.changes['pickup_location'] = location

    stamps = _ACTION_STAMPS.get(target_status)
    if stamps:
        by_field, at_field = stamps
        outcome.changes[by_field] = actor.user_id
        outcome.changes[at_field] = now

    outcome.changes['status'] = target_status
    outcome.awards_points = target_status == SubmissionStatus.INTERESTED
    return outcome
