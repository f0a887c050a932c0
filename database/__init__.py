"""
Database package: declarative base and model registration.
"""
from sqlalchemy.orm import declarative_base

# Create base class for models
Base = declarative_base()

# Import all models to ensure they are registered with Base
# This must be done after Base is created but before any table operations
try:
    from models import (
        UserAccount, Submission, SubmissionEvent,
        PointsCredit, Notification
    )
except ImportError:
    # Models may not be available during initial setup
    pass
