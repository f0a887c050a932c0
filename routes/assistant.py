"""
Recycling assistant route backed by the analysis endpoint.
"""
from flask import Blueprint, jsonify
import logging
from injector import inject

from routes.auth import get_actor, unauthorized, error_response, internal_error, json_body
from services.analysis_service import AnalysisService
from services.exceptions import WorkflowError

logger = logging.getLogger(__name__)

assistant_bp = Blueprint('assistant', __name__, url_prefix='/api/v1/assistant')


@assistant_bp.route('/ask', methods=['POST'])
@inject
def ask(analysis_service: AnalysisService):
    """
    Answer a free-text e-waste question.

    Required fields:
    - question: The user's question
    """
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        data = json_body()
        question = (data.get('question') or '').strip()
        if not question:
            return jsonify({'success': False, 'error': 'validation_error', 'message': 'question is required'}), 400

        answer = analysis_service.ask(question)
        return jsonify({'success': True, 'answer': answer})

    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('answering question', e)
