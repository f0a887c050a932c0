"""
Tests for the pure status transition function.
"""
import pytest
from datetime import datetime, timedelta, timezone

from models.submission import SubmissionStatus
from models.user_account import ActorRole
from services.exceptions import InvalidActor, InvalidTransition, MissingPayload
from services.status_workflow import (
    TRANSITIONS, EDGE_ROLES, Actor, SubmissionState, evaluate_transition, parse_timestamp
)

NOW = datetime(2026, 5, 1, 12, 0, tzinfo=timezone.utc)
OWNER = Actor('user-1', ActorRole.USER)
ORG = Actor('org-1', ActorRole.ORGANIZATION)
ALL_STATES = (SubmissionStatus.UNDECIDED,) + SubmissionStatus.PERSISTED
ALL_TARGETS = SubmissionStatus.PERSISTED


def _actor_for(target):
    return OWNER if EDGE_ROLES[target] == ActorRole.USER else ORG


def _payload_for(target):
    if target == SubmissionStatus.PICKUP_SCHEDULED:
        return {'when': (NOW + timedelta(days=1)).isoformat(), 'location': 'Depot A'}
    return None


VALID_EDGES = [(src, dst) for src, targets in TRANSITIONS.items() for dst in sorted(targets)]
INVALID_EDGES = [
    (src, dst) for src in ALL_STATES for dst in ALL_TARGETS
    if dst not in TRANSITIONS.get(src, set())
]


class TestGraph:
    """Edge membership and role authorization."""

    @pytest.mark.parametrize('current,target', VALID_EDGES)
    def test_valid_edges_succeed(self, current, target):
        state = SubmissionState(status=current, owner_id='user-1', has_contact=True)
        outcome = evaluate_transition(state, _actor_for(target), target, _payload_for(target), now=NOW)

        assert outcome.from_status == current
        assert outcome.to_status == target
        assert outcome.changes['status'] == target

    @pytest.mark.parametrize('current,target', INVALID_EDGES)
    def test_edges_outside_graph_fail(self, current, target):
        state = SubmissionState(status=current, owner_id='user-1', has_contact=True)

        with pytest.raises(InvalidTransition):
            evaluate_transition(state, _actor_for(target), target, _payload_for(target), now=NOW)

    @pytest.mark.parametrize('current,target', VALID_EDGES)
    def test_wrong_role_fails(self, current, target):
        state = SubmissionState(status=current, owner_id='user-1', has_contact=True)
        wrong_actor = ORG if EDGE_ROLES[target] == ActorRole.USER else OWNER

        with pytest.raises(InvalidActor):
            evaluate_transition(state, wrong_actor, target, _payload_for(target), now=NOW)

    def test_only_owner_may_decide(self):
        state = SubmissionState(status=SubmissionStatus.UNDECIDED, owner_id='user-1')

        with pytest.raises(InvalidActor):
            evaluate_transition(state, Actor('user-2', ActorRole.USER), SubmissionStatus.INTERESTED)

    def test_unknown_target(self):
        state = SubmissionState(status=SubmissionStatus.INTERESTED, owner_id='user-1')

        with pytest.raises(InvalidTransition):
            evaluate_transition(state, ORG, 'archived')

    def test_terminal_states_have_no_exits(self):
        for terminal in SubmissionStatus.TERMINAL:
            assert terminal not in TRANSITIONS


class TestPayloads:
    """Contact and pickup payload requirements."""

    def test_accept_requires_contact(self):
        state = SubmissionState(status=SubmissionStatus.INTERESTED, owner_id='user-1', has_contact=False)

        with pytest.raises(MissingPayload):
            evaluate_transition(state, ORG, SubmissionStatus.ACCEPTED, now=NOW)

    @pytest.mark.parametrize('payload', [
        None,
        {'when': (NOW + timedelta(hours=1)).isoformat()},
        {'when': (NOW + timedelta(hours=1)).isoformat(), 'location': '   '},
        {'location': 'Depot A'},
        {'when': 'next tuesday', 'location': 'Depot A'},
        {'when': (NOW - timedelta(minutes=1)).isoformat(), 'location': 'Depot A'},
    ])
    def test_incomplete_pickup_payload(self, payload):
        state = SubmissionState(status=SubmissionStatus.ACCEPTED, owner_id='user-1', has_contact=True)

        with pytest.raises(MissingPayload):
            evaluate_transition(state, ORG, SubmissionStatus.PICKUP_SCHEDULED, payload, now=NOW)

    def test_pickup_at_present_time_is_allowed(self):
        state = SubmissionState(status=SubmissionStatus.ACCEPTED, owner_id='user-1', has_contact=True)
        outcome = evaluate_transition(
            state, ORG, SubmissionStatus.PICKUP_SCHEDULED,
            {'when': NOW.isoformat(), 'location': 'Depot A'}, now=NOW
        )

        assert outcome.changes['pickup_when'] == NOW
        assert outcome.changes['pickup_location'] == 'Depot A'
        assert outcome.changes['scheduled_by'] == 'org-1'
        assert outcome.event_payload == {'when': NOW.isoformat(), 'location': 'Depot A'}

    def test_identical_reschedule_is_noop(self):
        when = NOW + timedelta(days=1)
        state = SubmissionState(
            status=SubmissionStatus.PICKUP_SCHEDULED,
            owner_id='user-1',
            has_contact=True,
            pickup_when=when,
            pickup_location='Depot A'
        )
        outcome = evaluate_transition(
            state, ORG, SubmissionStatus.PICKUP_SCHEDULED,
            {'when': when.isoformat().replace('+00:00', 'Z'), 'location': 'Depot A'}, now=NOW
        )

        assert outcome.is_noop
        assert outcome.changes == {}

    def test_changed_reschedule_overwrites_pickup(self):
        state = SubmissionState(
            status=SubmissionStatus.PICKUP_SCHEDULED,
            owner_id='user-1',
            has_contact=True,
            pickup_when=NOW + timedelta(days=1),
            pickup_location='Depot A'
        )
        outcome = evaluate_transition(
            state, ORG, SubmissionStatus.PICKUP_SCHEDULED,
            {'when': (NOW + timedelta(days=3)).isoformat(), 'location': 'Depot B'}, now=NOW
        )

        assert not outcome.is_noop
        assert outcome.changes['pickup_location'] == 'Depot B'

    def test_only_interested_awards_points(self):
        state = SubmissionState(status=SubmissionStatus.UNDECIDED, owner_id='user-1')

        assert evaluate_transition(state, OWNER, SubmissionStatus.INTERESTED).awards_points
        assert not evaluate_transition(state, OWNER, SubmissionStatus.NOT_INTERESTED).awards_points


def test_parse_timestamp_handles_naive_and_zulu():
    assert parse_timestamp('2026-05-01T12:00:00Z') == NOW
    assert parse_timestamp('2026-05-01T12:00:00') == NOW
    assert parse_timestamp(datetime(2026, 5, 1, 12, 0)) == NOW
    assert parse_timestamp('') is None
    assert parse_timestamp(12345) is None
