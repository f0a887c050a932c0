"""
Request helpers shared by the API blueprints: acting principal and error bodies.

Authentication itself happens upstream; the gateway forwards the verified
principal in ``X-User-Id`` / ``X-User-Role`` headers.
"""
from flask import request, jsonify
import logging
from typing import Optional

from models.user_account import ActorRole
from services.exceptions import WorkflowError, ValidationError
from services.status_workflow import Actor

logger = logging.getLogger(__name__)

USER_ID_HEADER = 'X-User-Id'
USER_ROLE_HEADER = 'X-User-Role'
USER_NAME_HEADER = 'X-User-Name'
USER_EMAIL_HEADER = 'X-User-Email'


def get_actor() -> Optional[Actor]:
    """Build the acting principal from request headers, or None if absent or invalid."""
    user_id = (request.headers.get(USER_ID_HEADER) or '').strip()
    role = (request.headers.get(USER_ROLE_HEADER) or '').strip().lower()

    if not user_id or role not in ActorRole.ALL:
        return None

    return Actor(
        user_id=user_id,
        role=role,
        display_name=request.headers.get(USER_NAME_HEADER) or None,
        email=request.headers.get(USER_EMAIL_HEADER) or None
    )


def json_body(required: bool = False) -> dict:
    """
    JSON object sent with the request, or an empty dict when there is none.

    Raises:
        ValidationError: Body is JSON but not an object, or missing when required
    """
    data = request.get_json(silent=True)
    if data is None:
        if required:
            raise ValidationError('No JSON data provided')
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def unauthorized():
    return jsonify({
        'success': False,
        'error': 'unauthorized',
        'message': f'{USER_ID_HEADER} and {USER_ROLE_HEADER} headers are required'
    }), 401


def error_response(error: WorkflowError):
    return jsonify(error.to_dict()), error.http_status


def internal_error(action: str, error: Exception):
    logger.error(f"Error {action}: {error}")
    return jsonify({
        'success': False,
        'error': 'internal_error',
        'message': f'Failed {action}'
    }), 500
