"""
Notification routes for submission owners.
"""
from flask import Blueprint, jsonify
import logging
from injector import inject

from routes.auth import get_actor, unauthorized, error_response, internal_error
from services.exceptions import WorkflowError
from services.notification_service import NotificationService

logger = logging.getLogger(__name__)

notifications_bp = Blueprint('notifications', __name__, url_prefix='/api/v1/notifications')


@notifications_bp.route('', methods=['GET'])
@inject
def list_unread(notification_service: NotificationService):
    """Unread notifications for the acting user."""
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        notifications = notification_service.list_unread(actor.user_id)
        return jsonify({'success': True, 'notifications': notifications, 'count': len(notifications)})
    except Exception as e:
        return internal_error('listing notifications', e)


@notifications_bp.route('/<submission_id>/read', methods=['POST'])
@inject
def mark_read(submission_id: str, notification_service: NotificationService):
    """Mark a submission's notifications read and acknowledge it."""
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        return jsonify({'success': True, **notification_service.mark_read(actor, submission_id)})
    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('marking notifications read', e)
