"""
Tests for user registration and the dual-store admin views.
"""

from datetime import timedelta

import pytest

from fixit.core.exceptions import ConflictError, NotFoundError
from fixit.models.user import UserCreate
from fixit.utils.firestore_helpers import utcnow


def _profile(**overrides):
    data = {"f_name": "Maria", "l_name": "Santos", "email": "maria@example.com"}
    data.update(overrides)
    return UserCreate(**data)


def test_register_creates_profile_with_default_reputation(users, db):
    user = users.register("maria-1", _profile())

    stored = db.docs("users")["maria-1"]
    assert user["id"] == "maria-1"
    assert stored["reputation"]["points"] == 0
    assert stored["reputation"]["level"] == "Newcomer"


def test_register_twice_conflicts(users):
    users.register("maria-1", _profile())
    with pytest.raises(ConflictError):
        users.register("maria-1", _profile())


def test_list_all_users_includes_suspended_under_original_id(users, suspensions, add_user, admin):
    add_user("maria-1")
    add_user("jose-2")
    suspensions.suspend(admin, "jose-2", "spam")

    listed = {u["id"]: u for u in users.list_all_users()}

    assert set(listed) == {"maria-1", "jose-2"}
    assert listed["jose-2"]["suspended"] is True
    assert listed["jose-2"]["suspension_reason"] == "spam"
    assert listed["maria-1"]["suspended"] is False
    assert [u["id"] for u in users.list_suspended()] == ["jose-2"]


def test_user_stats_counts_both_stores(users, suspensions, submit, add_user, admin):
    add_user("maria-1")
    add_user("jose-2", last_login=utcnow() - timedelta(days=90))
    add_user("ana-3")
    suspensions.suspend(admin, "ana-3", "spam")
    submit("maria-1")
    submit("maria-1", is_urgent=True)

    assert users.user_stats() == {
        "total_users": 3,
        "active_users": 2,
        "recently_active_users": 1,
        "suspended_users": 1,
        "total_reports": 2,
    }


def test_user_details_include_report_count(users, submit, add_user):
    add_user("maria-1", address="12 Rizal St.")
    submit("maria-1")

    details = users.get_user_details("maria-1")

    assert details["report_count"] == 1
    assert details["address"] == "12 Rizal St."


def test_user_details_unknown_user(users):
    with pytest.raises(NotFoundError):
        users.get_user_details("ghost-1")


def test_resolve_user_prefers_active_store(users, add_user, db):
    add_user("maria-1", email="active@example.com")
    db.put("suspended_users", "rec-1", {"original_user_id": "maria-1", "email": "stale@example.com"})

    resolved = users.resolve_user("maria-1")

    assert resolved["email"] == "active@example.com"
    assert resolved["suspended"] is False
