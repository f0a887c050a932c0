"""
Shared fixtures: a throwaway SQLite database and wired workflow services.
"""
import os
import tempfile

# Must be set before config.settings / database.connection are imported
_DB_DIR = tempfile.mkdtemp(prefix='ewaste-tests-')
os.environ['DATABASE_URL'] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ['NOTIFICATION_DISPATCH_MODE'] = 'inline'

import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import models  # noqa: F401  registers tables on Base
from database import Base
from database.connection import engine, get_db_session
from models.user_account import ActorRole
from repositories.image_draft_repository import ImageDraftRepository
from repositories.notification_repository import NotificationRepository
from repositories.points_credit_repository import PointsCreditRepository
from repositories.submission_event_repository import SubmissionEventRepository
from repositories.submission_repository import SubmissionRepository
from repositories.user_account_repository import UserAccountRepository
from services.notification_service import NotificationService
from services.points_ledger_service import PointsLedgerService
from services.status_workflow import Actor
from services.submission_workflow_service import SubmissionWorkflowService

CONTACT = {
    'name': 'Asha Rao',
    'email': 'asha@example.com',
    'phone': '555-0100',
    'location': '12 Green Street',
    'description': 'Old phone with swollen battery'
}


@pytest.fixture(autouse=True)
def clean_database():
    """Recreate all tables for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def user():
    return Actor(user_id='user-1', role=ActorRole.USER, display_name='Asha', email='asha@example.com')


@pytest.fixture
def other_user():
    return Actor(user_id='user-2', role=ActorRole.USER)


@pytest.fixture
def org():
    return Actor(user_id='org-1', role=ActorRole.ORGANIZATION)


@pytest.fixture
def contact():
    return dict(CONTACT)


@pytest.fixture
def future_when():
    return (datetime.now(timezone.utc) + timedelta(days=2)).replace(microsecond=0).isoformat()


@pytest.fixture
def ledger():
    return PointsLedgerService(PointsCreditRepository(), UserAccountRepository())


@pytest.fixture
def notification_service():
    return NotificationService(NotificationRepository(), SubmissionRepository(), SubmissionEventRepository())


@pytest.fixture
def kafka_service():
    kafka = MagicMock()
    kafka.publish_submission_transition.return_value = True
    return kafka


@pytest.fixture
def image_host():
    s3 = MagicMock()
    s3.image_exists.return_value = True
    return s3


@pytest.fixture
def workflow(ledger, notification_service, kafka_service, image_host):
    service = SubmissionWorkflowService(
        SubmissionRepository(),
        SubmissionEventRepository(),
        UserAccountRepository(),
        ledger,
        notification_service,
        kafka_service,
        ImageDraftRepository(),
        image_host
    )
    service.dispatch_mode = 'inline'
    service.recycle_points = 50
    return service


@pytest.fixture
def analyzed_draft():
    """Store an analyzed draft for an image, as the analyze endpoint does."""
    def store(owner_id, image_ref, analysis_text='Recognized Item: Mobile phone'):
        with get_db_session() as session:
            ImageDraftRepository().save_draft(session, owner_id, image_ref, analysis_text)
        return image_ref
    return store


@pytest.fixture
def decide(workflow, analyzed_draft):
    """Analyze an image for the actor, then record their decision."""
    def submit(actor, image_ref, decision, analysis_text='Recognized Item: Mobile phone', **kwargs):
        analyzed_draft(actor.user_id, image_ref, analysis_text)
        return workflow.submit_decision(actor, image_ref, decision, **kwargs)
    return submit


@pytest.fixture
def interested_submission(decide, user):
    """A submission the user chose to recycle, with contact details."""
    return decide(
        user,
        image_ref='uploads/user-1/abc123.jpg',
        analysis_text='Recognized Item: Mobile phone\nHazards:\n- Lithium battery',
        decision='recycle',
        item_name='Old phone',
        contact=CONTACT
    )
