"""
Error taxonomy for the submission workflow.

Every error is recoverable by the caller (retry with corrected input or fresh
state). Routes map them to HTTP responses through ``code`` and ``http_status``.
"""


class WorkflowError(Exception):
    """Base class for workflow errors."""
    code = 'workflow_error'
    http_status = 400

    def __init__(self, message: str = None, **details):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__
        self.details = details

    def to_dict(self):
        body = {
            'success': False,
            'error': self.code,
            'message': self.message
        }
        if self.details:
            body['details'] = self.details
        return body


class NotFound(WorkflowError):
    """No submission with the given id exists."""
    code = 'not_found'
    http_status = 404


class InvalidActor(WorkflowError):
    """The acting role (or principal) may not perform the requested edge."""
    code = 'invalid_actor'
    http_status = 403


class InvalidTransition(WorkflowError):
    """The requested edge is not in the status graph."""
    code = 'invalid_transition'
    http_status = 409


class MissingPayload(WorkflowError):
    """Required transition payload (pickup or contact) is missing or invalid."""
    code = 'missing_payload'
    http_status = 400


class Conflict(WorkflowError):
    """Stored state changed since it was read; the write was not applied."""
    code = 'conflict'
    http_status = 409


class Unavailable(WorkflowError):
    """A collaborator (image host, analysis endpoint, store) failed or timed out."""
    code = 'unavailable'
    http_status = 503


class ValidationError(WorkflowError):
    """Malformed request input."""
    code = 'validation_error'
    http_status = 400
