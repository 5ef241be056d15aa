"""
Tests for suspending and reinstating users across the two user stores.
"""

import pytest

from fixit.core.exceptions import ConflictError, ForbiddenError, NotFoundError
from fixit.services.suspension_service import UserSuspensionManager
from tests.fakes import ExplodingDB


def _suspended(db):
    return db.docs("suspended_users")


def test_suspend_unsuspend_scenario_by_original_id(suspensions, users, add_user, admin, db):
    uid = add_user("maria-1")
    before = db.docs("users")[uid]

    result = suspensions.suspend(admin, uid, "policy violation")

    assert users.get_active_user(uid) is None
    record = users.find_suspended(uid)
    assert record["original_user_id"] == uid
    assert record["suspension_reason"] == "policy violation"
    assert record["suspended_by"] == admin.user_id
    assert result["user"]["id"] == uid
    assert result["suspended_record_id"] == record["id"]

    suspensions.unsuspend(admin, uid)

    assert _suspended(db) == {}
    assert db.docs("users")[uid] == before


def test_unsuspend_by_record_id(suspensions, users, add_user, admin, db):
    uid = add_user("maria-1")
    record_id = suspensions.suspend(admin, uid, "policy violation")["suspended_record_id"]

    result = suspensions.unsuspend(admin, record_id)

    assert result["user"]["id"] == uid
    assert result["already_restored"] is False
    assert users.get_active_user(uid)["id"] == uid
    assert _suspended(db) == {}


def test_user_is_in_exactly_one_store(suspensions, add_user, admin, db):
    uid = add_user("maria-1")
    suspensions.suspend(admin, uid, "spam")
    assert uid not in db.docs("users")
    assert len(_suspended(db)) == 1


def test_suspend_twice_conflicts(suspensions, add_user, admin):
    uid = add_user("maria-1")
    suspensions.suspend(admin, uid, "spam")
    with pytest.raises(ConflictError):
        suspensions.suspend(admin, uid, "spam again")


def test_suspend_unknown_user(suspensions, admin):
    with pytest.raises(NotFoundError):
        suspensions.suspend(admin, "ghost-1", "spam")


def test_unsuspend_unknown_user(suspensions, admin):
    with pytest.raises(NotFoundError):
        suspensions.unsuspend(admin, "ghost-1")


def test_members_cannot_suspend(suspensions, add_user, member, db):
    uid = add_user("maria-1")
    with pytest.raises(ForbiddenError):
        suspensions.suspend(member, uid, "spam")
    with pytest.raises(ForbiddenError):
        suspensions.unsuspend(member, uid)
    assert uid in db.docs("users")


def test_suspend_and_unsuspend_notify_user(suspensions, add_user, admin, provider):
    uid = add_user("maria-1")
    suspensions.suspend(admin, uid, "policy violation")
    suspensions.unsuspend(admin, uid)

    subjects = [m["subject"] for m in provider.sent]
    assert provider.recipients() == ["maria-1@example.com", "maria-1@example.com"]
    assert "Suspended" in subjects[0]
    assert "Reinstated" in subjects[1]


def test_half_finished_suspend_is_repaired_by_unsuspend(suspensions, users, add_user, admin, db):
    uid = add_user("maria-1")
    db.fail_once("delete", "users", uid)

    with pytest.raises(RuntimeError):
        suspensions.suspend(admin, uid, "spam")
    # Record created, active user not yet removed
    assert uid in db.docs("users")
    assert len(_suspended(db)) == 1

    result = suspensions.unsuspend(admin, uid)

    assert result["already_restored"] is True
    assert _suspended(db) == {}
    assert users.get_active_user(uid)["id"] == uid


def test_unsuspend_deletes_stray_record(suspensions, add_user, admin, db):
    uid = add_user("maria-1", f_name="Maria")
    db.put("suspended_users", "rec-1", {"original_user_id": uid, "f_name": "Old", "suspended": True})

    result = suspensions.unsuspend(admin, "rec-1")

    assert result["already_restored"] is True
    assert _suspended(db) == {}
    assert db.docs("users")[uid]["f_name"] == "Maria"


def test_unsuspend_falls_back_to_merge_on_collision(suspensions, users, add_user, admin, db, monkeypatch):
    uid = add_user("maria-1", contact="0917")
    db.put("suspended_users", "rec-1", {
        "original_user_id": uid,
        "f_name": "Maria",
        "l_name": "Santos",
        "email": "maria@example.com",
        "suspended": True,
        "suspension_reason": "spam",
    })
    # The active lookup misses, but the document appears before create()
    monkeypatch.setattr(users, "get_active_user", lambda user_id: None)

    result = suspensions.unsuspend(admin, uid)

    restored = db.docs("users")[uid]
    assert result["already_restored"] is False
    assert restored["email"] == "maria@example.com"
    assert restored["contact"] == "0917"
    assert "suspension_reason" not in restored
    assert _suspended(db) == {}


def test_registration_refused_while_suspended(suspensions, users, add_user, admin):
    from fixit.models.user import UserCreate

    uid = add_user("maria-1")
    suspensions.suspend(admin, uid, "spam")

    with pytest.raises(ConflictError):
        users.register(uid, UserCreate(f_name="Maria", l_name="Santos", email="m@example.com"))


def test_suspension_refuses_members_before_storage(notifier, users, member):
    manager = UserSuspensionManager(db=ExplodingDB(), notifier=notifier, user_service=users)
    with pytest.raises(ForbiddenError):
        manager.suspend(member, "maria-1", "spam")
    with pytest.raises(ForbiddenError):
        manager.unsuspend(member, "maria-1")
