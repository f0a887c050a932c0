"""
User profile routes.
"""
from flask import Blueprint, jsonify
import logging
from injector import inject

from routes.auth import get_actor, unauthorized, internal_error
from services.user_service import UserService

logger = logging.getLogger(__name__)

users_bp = Blueprint('users', __name__, url_prefix='/api/v1/users')


@users_bp.route('/me', methods=['GET'])
@inject
def get_me(user_service: UserService):
    """
    Get the acting principal's profile.

    Returns:
        JSON with account, eco_points (ledger total) and recent submissions
    """
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        return jsonify({'success': True, **user_service.get_profile(actor)})
    except Exception as e:
        return internal_error('retrieving profile', e)
