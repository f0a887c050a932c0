"""
Organization routes: submission triage, pickup scheduling and the new-submission feed.
"""
from flask import Blueprint, request, jsonify
import logging
from injector import inject

from routes.auth import get_actor, unauthorized, error_response, internal_error, json_body
from services.exceptions import WorkflowError
from services.notification_service import NotificationService
from services.submission_workflow_service import SubmissionWorkflowService

logger = logging.getLogger(__name__)

organization_bp = Blueprint('organization', __name__, url_prefix='/api/v1/organization')


def _expected_status(data):
    value = data.get('expected_status')
    return value.strip() if isinstance(value, str) and value.strip() else None


@organization_bp.route('/submissions', methods=['GET'])
@inject
def list_submissions(workflow_service: SubmissionWorkflowService):
    """
    List submissions open for triage.

    Query parameters:
    - status: Comma-separated statuses (default: interested,accepted,pickup_scheduled)
    - page: Page number (default: 1)
    - per_page: Items per page (default: 20, max: 100)

    Returns:
        JSON with paginated list of submissions
    """
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        page = int(request.args.get('page', 1))
        per_page = int(request.args.get('per_page', 20))
        status_filter = request.args.get('status')
        statuses = [s.strip() for s in status_filter.split(',') if s.strip()] if status_filter else None

        result = workflow_service.list_for_organization(actor, statuses, page=page, per_page=per_page)
        return jsonify({'success': True, **result})

    except ValueError:
        return jsonify({
            'success': False,
            'error': 'validation_error',
            'message': 'page and per_page must be integers'
        }), 400
    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('listing submissions', e)


@organization_bp.route('/submissions/<submission_id>/accept', methods=['POST'])
@inject
def accept_submission(submission_id: str, workflow_service: SubmissionWorkflowService):
    """Accept an interested submission (requires the owner's contact details)."""
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        data = json_body()
        submission = workflow_service.accept(actor, submission_id, expected_status=_expected_status(data))
        return jsonify({'success': True, 'submission': submission})
    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('accepting submission', e)


@organization_bp.route('/submissions/<submission_id>/reject', methods=['POST'])
@inject
def reject_submission(submission_id: str, workflow_service: SubmissionWorkflowService):
    """Reject an interested submission."""
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        data = json_body()
        submission = workflow_service.reject(actor, submission_id, expected_status=_expected_status(data))
        return jsonify({'success': True, 'submission': submission})
    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('rejecting submission', e)


@organization_bp.route('/submissions/<submission_id>/schedule', methods=['POST'])
@inject
def schedule_pickup(submission_id: str, workflow_service: SubmissionWorkflowService):
    """
    Schedule or reschedule the pickup of an accepted submission.

    Required fields:
    - when: ISO-8601 timestamp, not in the past
    - location: Pickup location

    Optional fields:
    - expected_status: Status last observed by the caller
    """
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        data = json_body()
        submission = workflow_service.schedule_pickup(
            actor,
            submission_id,
            when=data.get('when'),
            location=data.get('location'),
            expected_status=_expected_status(data)
        )
        return jsonify({'success': True, 'submission': submission})
    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('scheduling pickup', e)


@organization_bp.route('/submissions/<submission_id>/done', methods=['POST'])
@inject
def mark_done(submission_id: str, workflow_service: SubmissionWorkflowService):
    """Mark a scheduled pickup as completed."""
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        data = json_body()
        submission = workflow_service.mark_done(actor, submission_id, expected_status=_expected_status(data))
        return jsonify({'success': True, 'submission': submission})
    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('completing pickup', e)


@organization_bp.route('/stats', methods=['GET'])
@inject
def get_stats(workflow_service: SubmissionWorkflowService):
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        return jsonify({'success': True, 'stats': workflow_service.organization_stats(actor)})
    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('computing statistics', e)


@organization_bp.route('/notifications', methods=['GET'])
@inject
def list_feed(notification_service: NotificationService):
    """Unread new-submission notices for organizations."""
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        notifications = notification_service.list_organization_feed(actor)
        return jsonify({'success': True, 'notifications': notifications, 'count': len(notifications)})
    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('listing organization notifications', e)


@organization_bp.route('/notifications/<int:notification_id>/read', methods=['POST'])
@inject
def mark_feed_read(notification_id: int, notification_service: NotificationService):
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        notification = notification_service.mark_organization_read(actor, notification_id)
        return jsonify({'success': True, 'notification': notification})
    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('marking notification read', e)
