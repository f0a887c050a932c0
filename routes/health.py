"""
Health check routes for the application.
"""
from flask import Blueprint, jsonify
import logging
from injector import inject

from services.analysis_service import AnalysisService
from database.connection import health_check as database_health_check
import config.settings as settings

logger = logging.getLogger(__name__)

health_bp = Blueprint('health', __name__, url_prefix='/api/v1')


@health_bp.route('/health', methods=['GET'])
@inject
def health_check(analysis_service: AnalysisService):
    """Health check endpoint."""
    database_status = database_health_check()
    analysis_status = analysis_service.test_connection()

    return jsonify({
        "status": "healthy" if database_status else "degraded",
        "version": "1.0.0",
        "api_version": "v1",
        "database_available": database_status,
        "analysis_available": analysis_status,
        "analysis_model": settings.GEMINI_MODEL,
        "notification_dispatch_mode": settings.NOTIFICATION_DISPATCH_MODE
    })
