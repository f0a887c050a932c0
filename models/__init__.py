"""
Database models package.
"""
# Import all models for easy access
from .user_account import UserAccount, ActorRole
from .submission import Submission, SubmissionStatus
from .submission_event import SubmissionEvent
from .points_credit import PointsCredit
from .notification import Notification, NotificationAudience
from .image_draft import ImageDraft

# Import Base for table creation
from database import Base

# Export all models
__all__ = [
    'UserAccount',
    'ActorRole',
    'Submission',
    'SubmissionStatus',
    'SubmissionEvent',
    'PointsCredit',
    'Notification',
    'NotificationAudience',
    'ImageDraft',
    'Base'
]
