"""
Repository pattern implementation for database operations.
"""

from .base_repository import BaseRepository
from .user_account_repository import UserAccountRepository
from .submission_repository import SubmissionRepository
from .submission_event_repository import SubmissionEventRepository
from .points_credit_repository import PointsCreditRepository
from .notification_repository import NotificationRepository
from .image_draft_repository import ImageDraftRepository

__all__ = [
    'BaseRepository',
    'UserAccountRepository',
    'SubmissionRepository',
    'SubmissionEventRepository',
    'PointsCreditRepository',
    'NotificationRepository',
    'ImageDraftRepository'
]
