"""
Tests for the submission workflow service wired to the database.
"""
import pytest
from unittest.mock import patch

from database.connection import get_db_session
from models.submission import SubmissionStatus
from repositories.submission_event_repository import SubmissionEventRepository
from repositories.submission_repository import SubmissionRepository
from services.exceptions import (
    NotFound, InvalidActor, InvalidTransition, MissingPayload, Conflict, ValidationError, Unavailable
)


def _stored_status(submission_id):
    with get_db_session() as session:
        return SubmissionRepository().get_by_id(session, submission_id).status


class TestLifecycleScenarios:
    """End-to-end lifecycle of a single submission."""

    def test_recycle_through_done(self, workflow, decide, ledger, notification_service,
                                  user, org, future_when, contact):
        submission = decide(
            user,
            image_ref='uploads/user-1/s1.jpg',
            analysis_text='Recognized Item: Laptop',
            decision='recycle',
            contact=contact
        )
        sid = submission['id']
        assert submission['status'] == SubmissionStatus.INTERESTED
        assert submission['points_awarded'] == 50
        assert ledger.total_for(user.user_id) == 50

        assert workflow.accept(org, sid)['status'] == SubmissionStatus.ACCEPTED

        with pytest.raises(MissingPayload):
            workflow.schedule_pickup(org, sid, when=future_when, location=None)
        assert _stored_status(sid) == SubmissionStatus.ACCEPTED

        scheduled = workflow.schedule_pickup(org, sid, when=future_when, location='Depot A')
        assert scheduled['status'] == SubmissionStatus.PICKUP_SCHEDULED
        assert scheduled['pickup']['location'] == 'Depot A'
        assert scheduled['scheduled_by'] == org.user_id

        unread = notification_service.list_unread(user.user_id)
        assert {n['target_state'] for n in unread} == {
            SubmissionStatus.ACCEPTED, SubmissionStatus.PICKUP_SCHEDULED
        }

        done = workflow.mark_done(org, sid)
        assert done['status'] == SubmissionStatus.DONE
        assert done['completed_by'] == org.user_id

        with pytest.raises(InvalidTransition):
            workflow.accept(org, sid)
        assert _stored_status(sid) == SubmissionStatus.DONE
        assert ledger.total_for(user.user_id) == 50

    def test_decline_is_terminal_and_unrewarded(self, workflow, decide, ledger, user, org):
        submission = decide(
            user,
            image_ref='uploads/user-1/s2.jpg',
            analysis_text='No response from AI.',
            decision='decline'
        )
        sid = submission['id']

        assert submission['status'] == SubmissionStatus.NOT_INTERESTED
        assert submission['points_awarded'] == 0
        assert submission['analysis_text'] == 'No response from AI.'
        assert ledger.total_for(user.user_id) == 0

        for attempt in (workflow.accept, workflow.reject, workflow.mark_done):
            with pytest.raises(InvalidTransition):
                attempt(org, sid)
        with pytest.raises(InvalidTransition):
            workflow.transition(user, sid, SubmissionStatus.INTERESTED)
        assert _stored_status(sid) == SubmissionStatus.NOT_INTERESTED

    def test_events_recorded_per_transition(self, workflow, interested_submission, user, org, future_when):
        sid = interested_submission['id']
        workflow.accept(org, sid)
        workflow.schedule_pickup(org, sid, when=future_when, location='Depot A')
        workflow.schedule_pickup(org, sid, when=future_when, location='Depot A')

        history = workflow.get_history(user, sid)
        assert [(e['from_status'], e['to_status']) for e in history] == [
            (SubmissionStatus.UNDECIDED, SubmissionStatus.INTERESTED),
            (SubmissionStatus.INTERESTED, SubmissionStatus.ACCEPTED),
            (SubmissionStatus.ACCEPTED, SubmissionStatus.PICKUP_SCHEDULED),
        ]
        assert history[-1]['payload']['location'] == 'Depot A'


class TestDecisions:
    """Recycle decision and contact capture."""

    def test_retried_decision_does_not_duplicate(self, workflow, decide, ledger, user):
        first = decide(user, 'uploads/user-1/x.png', 'recycle')
        second = workflow.submit_decision(user, 'uploads/user-1/x.png', 'recycle')

        assert first['id'] == second['id']
        assert ledger.total_for(user.user_id) == 50

    def test_conflicting_decision_for_same_image(self, workflow, decide, user):
        decide(user, 'uploads/user-1/x.png', 'recycle')

        with pytest.raises(Conflict):
            decide(user, 'uploads/user-1/x.png', 'decline')

    def test_concurrent_retry_returns_stored_submission(self, workflow, decide, analyzed_draft, ledger, user):
        first = decide(user, 'uploads/user-1/same.png', 'recycle')
        analyzed_draft(user.user_id, 'uploads/user-1/same.png')
        original_lookup = workflow.submission_repository.find_one_by
        lookups = []

        def lookup_before_first_commit(session, **filters):
            lookups.append(filters)
            if len(lookups) == 1:
                return None
            return original_lookup(session, **filters)

        with patch.object(workflow.submission_repository, 'find_one_by', side_effect=lookup_before_first_commit):
            second = workflow.submit_decision(user, 'uploads/user-1/same.png', 'recycle')

        assert second['id'] == first['id']
        assert ledger.total_for(user.user_id) == 50
        with get_db_session() as session:
            assert SubmissionRepository().count(session, owner_id=user.user_id) == 1

    def test_concurrent_retry_with_other_decision_conflicts(self, workflow, decide, analyzed_draft, user):
        decide(user, 'uploads/user-1/same.png', 'recycle')
        analyzed_draft(user.user_id, 'uploads/user-1/same.png')
        original_lookup = workflow.submission_repository.find_one_by
        lookups = []

        def lookup_before_first_commit(session, **filters):
            lookups.append(filters)
            return None if len(lookups) == 1 else original_lookup(session, **filters)

        with patch.object(workflow.submission_repository, 'find_one_by', side_effect=lookup_before_first_commit):
            with pytest.raises(Conflict):
                workflow.submit_decision(user, 'uploads/user-1/same.png', 'decline')

    def test_analysis_text_comes_from_stored_draft(self, decide, user):
        submission = decide(user, 'uploads/user-1/tv.png', 'recycle', analysis_text='Recognized Item: CRT TV')

        assert submission['analysis_text'] == 'Recognized Item: CRT TV'

    def test_decision_consumes_draft(self, workflow, decide, user):
        decide(user, 'uploads/user-1/tv.png', 'recycle')

        with get_db_session() as session:
            assert workflow.draft_repository.get_for_owner(session, user.user_id, 'uploads/user-1/tv.png') is None

    def test_decision_without_analyzed_draft_is_rejected(self, workflow, ledger, user):
        for i in range(3):
            with pytest.raises(ValidationError):
                workflow.submit_decision(user, f'uploads/user-1/never-uploaded-{i}.png', 'recycle')

        assert ledger.total_for(user.user_id) == 0
        with get_db_session() as session:
            assert SubmissionRepository().count(session) == 0

    def test_decision_on_another_users_image_is_rejected(self, workflow, analyzed_draft, ledger, user, other_user):
        analyzed_draft(other_user.user_id, 'uploads/user-2/someone-elses.jpg')

        with pytest.raises(ValidationError):
            workflow.submit_decision(user, 'uploads/user-2/someone-elses.jpg', 'recycle')
        with pytest.raises(ValidationError):
            workflow.submit_decision(user, 'not-a-real-ref', 'recycle')

        assert ledger.total_for(user.user_id) == 0

    def test_decision_requires_image_on_host(self, workflow, analyzed_draft, image_host, ledger, user):
        analyzed_draft(user.user_id, 'uploads/user-1/expired.png')
        image_host.image_exists.return_value = False

        with pytest.raises(ValidationError):
            workflow.submit_decision(user, 'uploads/user-1/expired.png', 'recycle')

        image_host.image_exists.assert_called_once_with('uploads/user-1/expired.png')
        assert ledger.total_for(user.user_id) == 0

    def test_image_host_outage_is_unavailable(self, workflow, analyzed_draft, image_host, user):
        analyzed_draft(user.user_id, 'uploads/user-1/phone.png')
        image_host.image_exists.side_effect = Unavailable('Image host is unavailable')

        with pytest.raises(Unavailable):
            workflow.submit_decision(user, 'uploads/user-1/phone.png', 'recycle')

        with get_db_session() as session:
            assert workflow.draft_repository.get_for_owner(session, user.user_id, 'uploads/user-1/phone.png')

    def test_unknown_decision(self, workflow, decide, user):
        with pytest.raises(ValidationError):
            decide(user, 'uploads/user-1/x.png', 'maybe')

    def test_organization_cannot_decide(self, workflow, decide, org):
        with pytest.raises(InvalidActor):
            decide(org, 'uploads/org-1/x.png', 'recycle')

    def test_accept_without_contact_then_provide_contact(self, workflow, decide, user, org, contact):
        sid = decide(user, 'uploads/user-1/y.png', 'recycle')['id']

        with pytest.raises(MissingPayload):
            workflow.accept(org, sid)

        updated = workflow.provide_contact(user, sid, contact, item_name='Battery pack')
        assert updated['contact']['email'] == contact['email']
        assert updated['item_name'] == 'Battery pack'

        assert workflow.accept(org, sid)['status'] == SubmissionStatus.ACCEPTED

    def test_contact_is_immutable(self, workflow, interested_submission, user, contact):
        with pytest.raises(InvalidTransition):
            workflow.provide_contact(user, interested_submission['id'], contact)

    def test_contact_only_by_owner(self, workflow, decide, user, other_user, contact):
        sid = decide(user, 'uploads/user-1/z.png', 'recycle')['id']

        with pytest.raises(InvalidActor):
            workflow.provide_contact(other_user, sid, contact)

    def test_contact_requires_email(self, workflow, decide, user, contact):
        sid = decide(user, 'uploads/user-1/z.png', 'recycle')['id']

        with pytest.raises(MissingPayload):
            workflow.provide_contact(user, sid, dict(contact, email='not-an-email'))


class TestConcurrency:
    """Stale-state detection."""

    def test_expected_status_mismatch(self, workflow, interested_submission, org):
        sid = interested_submission['id']
        workflow.accept(org, sid)

        with pytest.raises(Conflict):
            workflow.reject(org, sid, expected_status=SubmissionStatus.INTERESTED)
        assert _stored_status(sid) == SubmissionStatus.ACCEPTED

    def test_stale_version_rejected_without_side_effects(self, workflow, interested_submission, org):
        sid = interested_submission['id']

        with patch.object(workflow.submission_repository, 'compare_and_set', return_value=False):
            with pytest.raises(Conflict):
                workflow.accept(org, sid)

        assert _stored_status(sid) == SubmissionStatus.INTERESTED
        with get_db_session() as session:
            assert len(SubmissionEventRepository().list_for_submission(session, sid)) == 1

    def test_compare_and_set_bumps_version(self, interested_submission):
        repo = SubmissionRepository()
        with get_db_session() as session:
            submission = repo.get_by_id(session, interested_submission['id'])
            assert repo.compare_and_set(session, submission, SubmissionStatus.INTERESTED, 1, {'item_name': 'x'})
            assert submission.version == 2
            assert not repo.compare_and_set(session, submission, SubmissionStatus.INTERESTED, 1, {'item_name': 'y'})


class TestReads:
    """Read authorization and organization views."""

    def test_unknown_submission(self, workflow, org):
        with pytest.raises(NotFound):
            workflow.accept(org, 'missing-id')

    def test_other_user_cannot_read(self, workflow, interested_submission, other_user):
        with pytest.raises(InvalidActor):
            workflow.get_submission(other_user, interested_submission['id'])

    def test_organization_listing_limited_to_open_statuses(self, workflow, decide, interested_submission, user, org):
        decide(user, 'uploads/user-1/declined.png', 'decline')

        listing = workflow.list_for_organization(org)
        assert [s['id'] for s in listing['submissions']] == [interested_submission['id']]
        assert listing['pagination']['total'] == 1

        with pytest.raises(InvalidActor):
            workflow.list_for_organization(org, [SubmissionStatus.NOT_INTERESTED])
        with pytest.raises(InvalidActor):
            workflow.list_for_organization(user)

    def test_organization_stats(self, workflow, decide, interested_submission, user, org, future_when):
        sid = interested_submission['id']
        workflow.accept(org, sid)
        workflow.schedule_pickup(org, sid, when=future_when, location='Depot A')
        workflow.mark_done(org, sid)
        decide(user, 'uploads/user-1/other.png', 'recycle')

        assert workflow.organization_stats(org) == {
            'total_submissions': 2,
            'accepted_submissions': 1,
            'completed_pickups': 1
        }


class TestDispatch:
    """Delivery of transition events to the notification dispatcher."""

    def test_kafka_mode_publishes_event(self, workflow, kafka_service, notification_service,
                                        interested_submission, org):
        workflow.dispatch_mode = 'kafka'
        workflow.accept(org, interested_submission['id'])

        event = kafka_service.publish_submission_transition.call_args[0][0]
        assert event['to_status'] == SubmissionStatus.ACCEPTED
        assert event['actor_id'] == org.user_id
        assert notification_service.list_unread('user-1') == []

    def test_kafka_failure_falls_back_to_inline(self, workflow, kafka_service, notification_service,
                                                 interested_submission, org):
        workflow.dispatch_mode = 'kafka'
        kafka_service.publish_submission_transition.return_value = False
        workflow.accept(org, interested_submission['id'])

        assert len(notification_service.list_unread('user-1')) == 1

    def test_dispatch_failure_keeps_transition(self, workflow, interested_submission, org):
        with patch.object(workflow.notification_service, 'handle_transition', side_effect=RuntimeError('boom')):
            result = workflow.accept(org, interested_submission['id'])

        assert result['status'] == SubmissionStatus.ACCEPTED
        assert _stored_status(interested_submission['id']) == SubmissionStatus.ACCEPTED
