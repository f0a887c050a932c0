"""
Submission routes for users: image analysis, recycle decision and contact form.
"""
from flask import Blueprint, request, jsonify
import logging
from injector import inject
from werkzeug.utils import secure_filename

from routes.auth import get_actor, unauthorized, error_response, internal_error, json_body
from services.exceptions import WorkflowError
from services.submission_service import SubmissionService
from services.submission_workflow_service import SubmissionWorkflowService

logger = logging.getLogger(__name__)

submissions_bp = Blueprint('submissions', __name__, url_prefix='/api/v1/submissions')


@submissions_bp.route('/analyze', methods=['POST'])
@inject
def analyze_image(submission_service: SubmissionService):
    """
    Upload an item image and get its hazard analysis.

    Nothing is stored until the user posts a decision for the returned draft.

    Required form data:
    - file: Item image (PNG, JPG, GIF, WEBP, BMP)

    Returns:
        JSON with the undecided draft (image_ref, image_url, analysis_text)
    """
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        if 'file' not in request.files:
            return jsonify({'success': False, 'error': 'validation_error', 'message': 'No file provided'}), 400

        file = request.files['file']
        if file.filename == '':
            return jsonify({'success': False, 'error': 'validation_error', 'message': 'No file selected'}), 400

        file_content = file.read()
        filename = secure_filename(file.filename)

        logger.info(f"Analyzing image {filename} for {actor.user_id}")

        draft = submission_service.create_draft(actor, file_content, filename)
        return jsonify({'success': True, 'draft': draft.to_dict()}), 200

    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('analyzing image', e)


@submissions_bp.route('', methods=['POST'])
@inject
def submit_decision(workflow_service: SubmissionWorkflowService):
    """
    Record the user's recycle decision for an analyzed image.

    The stored analysis of the draft is attached to the submission.

    Required fields:
    - image_ref: Image reference from the user's analyzed draft
    - decision: 'recycle' or 'decline'

    Optional fields:
    - item_name: Item name
    - contact: {name, email, phone, location, description}

    Returns:
        JSON with the created submission
    """
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        data = json_body(required=True)

        submission = workflow_service.submit_decision(
            actor,
            image_ref=data.get('image_ref'),
            decision=data.get('decision'),
            item_name=data.get('item_name'),
            contact=data.get('contact')
        )
        return jsonify({'success': True, 'submission': submission}), 201

    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('recording decision', e)


@submissions_bp.route('', methods=['GET'])
@inject
def list_my_submissions(workflow_service: SubmissionWorkflowService):
    """List the acting user's submissions, newest first."""
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        limit = min(int(request.args.get('limit', 50)), 100)
        submissions = workflow_service.list_for_owner(actor, limit=limit)
        return jsonify({'success': True, 'submissions': submissions, 'count': len(submissions)})

    except ValueError:
        return jsonify({'success': False, 'error': 'validation_error', 'message': 'limit must be an integer'}), 400
    except Exception as e:
        return internal_error('listing submissions', e)


@submissions_bp.route('/<submission_id>', methods=['GET'])
@inject
def get_submission(submission_id: str, workflow_service: SubmissionWorkflowService):
    """Get one submission (owner, or organization while it is open for triage)."""
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        return jsonify({'success': True, 'submission': workflow_service.get_submission(actor, submission_id)})
    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('retrieving submission', e)


@submissions_bp.route('/<submission_id>/events', methods=['GET'])
@inject
def get_submission_events(submission_id: str, workflow_service: SubmissionWorkflowService):
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        return jsonify({'success': True, 'events': workflow_service.get_history(actor, submission_id)})
    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('retrieving submission history', e)


@submissions_bp.route('/<submission_id>/contact', methods=['PUT'])
@inject
def provide_contact(submission_id: str, workflow_service: SubmissionWorkflowService):
    """
    Attach the contact form to an interested submission.

    Required fields:
    - contact: {name, email, location, phone?, description?}

    Optional fields:
    - item_name: Item name
    """
    actor = get_actor()
    if actor is None:
        return unauthorized()

    try:
        data = json_body()
        submission = workflow_service.provide_contact(
            actor,
            submission_id,
            contact=data.get('contact'),
            item_name=data.get('item_name')
        )
        return jsonify({'success': True, 'submission': submission})

    except WorkflowError as e:
        return error_response(e)
    except Exception as e:
        return internal_error('saving contact details', e)
