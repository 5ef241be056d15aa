"""
Shared fixtures: every service runs against FakeFirestore with recording
collaborators, so no test touches Firebase or sends email.
"""

import pytest

from fixit.core.auth import Principal, Role
from fixit.services.comment_service import CommentService
from fixit.services.moderation_service import ModerationService
from fixit.services.notifications import NotificationService
from fixit.services.report_lifecycle import ReportLifecycleManager
from fixit.services.reputation_service import default_reputation
from fixit.services.suspension_service import UserSuspensionManager
from fixit.services.user_service import UserService
from fixit.utils.firestore_helpers import utcnow
from tests.fakes import FakeFirestore, RecordingProvider, RecordingReputation


@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def notifier(provider):
    return NotificationService(provider)


@pytest.fixture
def reputation():
    return RecordingReputation()


@pytest.fixture
def users(db):
    return UserService(db)


@pytest.fixture
def lifecycle(db, notifier, reputation, users):
    return ReportLifecycleManager(db=db, notifier=notifier, reputation=reputation, user_service=users)


@pytest.fixture
def moderation(db, notifier, users, lifecycle):
    return ModerationService(db=db, notifier=notifier, user_service=users, lifecycle=lifecycle)


@pytest.fixture
def suspensions(db, notifier, users):
    return UserSuspensionManager(db=db, notifier=notifier, user_service=users)


@pytest.fixture
def comments(db, users):
    return CommentService(db=db, user_service=users)


@pytest.fixture
def admin():
    return Principal(user_id="admin-1", role=Role.ADMINISTRATOR, email="admin@fixit.local")


@pytest.fixture
def member():
    return Principal(user_id="resident-1", role=Role.MEMBER, email="resident-1@example.com")


@pytest.fixture
def add_user(db):
    """Insert an active user document and return its id."""

    def _add(uid, **overrides):
        data = {
            "f_name": uid.split("-")[0].capitalize(),
            "l_name": "Tester",
            "email": f"{uid}@example.com",
            "address": "",
            "barangay": "Poblacion",
            "municipality": "San Isidro",
            "contact": "",
            "profile_picture": "",
            "reputation": default_reputation(),
            "last_login": utcnow(),
            "created_at": utcnow(),
        }
        data.update(overrides)
        db.put("users", uid, data)
        return uid

    return _add


@pytest.fixture
def submit(lifecycle):
    """Create a report through the lifecycle manager."""

    def _submit(author_id, **overrides):
        payload = {
            "title": "Broken streetlight",
            "description": "Out for a week near the plaza.",
            "category": "Electricity",
            "location": "Rizal St., Poblacion",
        }
        payload.update(overrides)
        return lifecycle.create(payload, author_id)

    return _submit
