"""
Tests for the report lifecycle:
- Creation rules (required fields, urgency, geo-tagging)
- Administrator transitions and their notifications
- Resolution as a two-step move with retry reconciliation
- Owner-only edits and retraction
"""

import pytest

from fixit.core.auth import Principal, Role
from fixit.core.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from fixit.services.report_lifecycle import ReportLifecycleManager
from tests.fakes import ExplodingDB


def _live(db):
    return db.docs("reports")


def _archived(db):
    return db.docs("resolved_reports")


# --- Creation ---

def test_create_non_urgent_awaits_approval(submit, add_user, db):
    owner = add_user("maria-1")
    report = submit(owner, latitude="14.5995", longitude="120.9842")

    assert report["status"] == "awaiting-approval"
    assert report["comments"] == [] and report["flags"] == []
    assert report["geo_tagged"] is True
    assert report["owner"]["id"] == owner
    assert report["owner"]["suspended"] is False
    assert _live(db)[report["id"]]["geo_tagged_at"] is not None


def test_create_urgent_starts_pending(submit):
    assert submit("maria-1", is_urgent=True)["status"] == "pending"


def test_create_out_of_range_coordinates_not_geo_tagged(submit):
    report = submit("maria-1", latitude=123.0, longitude=10.0)
    assert report["geo_tagged"] is False


@pytest.mark.parametrize("field", ["title", "description", "category", "location"])
def test_create_requires_fields(submit, db, field):
    with pytest.raises(ValidationError) as exc:
        submit("maria-1", **{field: "   "})
    assert exc.value.context["field"] == field
    assert _live(db) == {}


def test_create_limits_images(submit):
    with pytest.raises(ValidationError):
        submit("maria-1", images=[f"https://img/{i}.jpg" for i in range(6)])


# --- Approval and rejection ---

def test_approve_moves_to_pending_and_notifies_owner(lifecycle, submit, add_user, admin, provider, db):
    owner = add_user("maria-1")
    report = submit(owner)

    approved = lifecycle.approve(admin, report["id"])

    assert approved["status"] == "pending"
    assert _live(db)[report["id"]]["status"] == "pending"
    assert provider.recipients() == ["maria-1@example.com"]
    assert "Approved" in provider.sent[0]["subject"]


def test_approve_twice_is_invalid_transition(lifecycle, submit, admin):
    report = submit("maria-1")
    lifecycle.approve(admin, report["id"])
    with pytest.raises(InvalidTransitionError):
        lifecycle.approve(admin, report["id"])


def test_approve_unknown_report(lifecycle, admin):
    with pytest.raises(NotFoundError):
        lifecycle.approve(admin, "missing")


def test_approve_succeeds_when_notification_fails(lifecycle, submit, add_user, admin, provider, db):
    owner = add_user("maria-1")
    provider.fail_for.add("maria-1@example.com")
    report = submit(owner)

    approved = lifecycle.approve(admin, report["id"])

    assert approved["status"] == "pending"
    assert provider.sent == []


def test_admin_operations_refuse_members_before_storage(notifier, reputation, users, member):
    manager = ReportLifecycleManager(db=ExplodingDB(), notifier=notifier, reputation=reputation, user_service=users)
    with pytest.raises(ForbiddenError):
        manager.approve(member, "r1")
    with pytest.raises(ForbiddenError):
        manager.reject(member, "r1", ["spam"])
    with pytest.raises(ForbiddenError):
        manager.update_status(member, "r1", "pending")
    with pytest.raises(ForbiddenError):
        manager.resolve(member, "r1", "fixed", ["https://proof/1.jpg"])
    with pytest.raises(ForbiddenError):
        manager.verify(member, "r1")


def test_reject_deletes_without_archive(lifecycle, submit, add_user, admin, provider, db):
    owner = add_user("maria-1")
    report = submit(owner)

    lifecycle.reject(admin, report["id"], ["Duplicate of an existing report", ""])

    assert report["id"] not in _live(db)
    assert _archived(db) == {}
    assert lifecycle.find_resolved(report["id"]) is None
    assert "Duplicate of an existing report" in provider.sent[0]["html"]


def test_reject_requires_awaiting_approval(lifecycle, submit, admin):
    report = submit("maria-1", is_urgent=True)
    with pytest.raises(InvalidTransitionError):
        lifecycle.reject(admin, report["id"], [])


# --- Status updates ---

def test_update_status_moves_both_ways(lifecycle, submit, admin):
    report = submit("maria-1", is_urgent=True)
    assert lifecycle.update_status(admin, report["id"], "in-progress")["status"] == "in-progress"
    assert lifecycle.update_status(admin, report["id"], "pending")["status"] == "pending"


def test_update_status_refuses_unreviewed_report(lifecycle, submit, admin):
    report = submit("maria-1")
    with pytest.raises(InvalidTransitionError):
        lifecycle.update_status(admin, report["id"], "in-progress")


@pytest.mark.parametrize("value", ["resolved", "closed", ""])
def test_update_status_refuses_other_values(lifecycle, submit, admin, db, value):
    report = submit("maria-1", is_urgent=True)
    with pytest.raises(ValidationError):
        lifecycle.update_status(admin, report["id"], value)
    assert _live(db)[report["id"]]["status"] == "pending"


# --- Resolution ---

def test_resolve_requires_proof_and_leaves_report_live(lifecycle, submit, admin, db):
    report = submit("maria-1", is_urgent=True)
    with pytest.raises(ValidationError):
        lifecycle.resolve(admin, report["id"], "Fixed", [])
    with pytest.raises(ValidationError):
        lifecycle.resolve(admin, report["id"], "Fixed", ["  "])
    assert report["id"] in _live(db)
    assert _archived(db) == {}


def test_resolve_refuses_unreviewed_report(lifecycle, submit, admin, db):
    report = submit("maria-1")
    with pytest.raises(InvalidTransitionError):
        lifecycle.resolve(admin, report["id"], "Fixed", ["https://proof/1.jpg"])
    assert _archived(db) == {}


def test_resolve_moves_report_to_archive(lifecycle, submit, add_user, admin, reputation, db):
    owner = add_user("maria-1")
    report = submit(owner, is_urgent=True, images=["https://img/before.jpg"])

    record = lifecycle.resolve(admin, report["id"], "Replaced the bulb", ["https://proof/after.jpg"])

    assert report["id"] not in _live(db)
    assert list(_archived(db)) == [record["id"]]
    assert record["original_report_id"] == report["id"]
    assert record["proof_images"] == ["https://proof/after.jpg"]
    assert record["original_images"] == ["https://img/before.jpg"]
    assert record["resolved_by"] == admin.user_id
    assert record["status"] == "resolved"
    assert reputation.awards == [("resolved", owner)]


def test_resolve_retry_reuses_existing_record(lifecycle, submit, admin, db):
    report = submit("maria-1", is_urgent=True)
    db.fail_once("delete", "reports", report["id"])

    with pytest.raises(RuntimeError):
        lifecycle.resolve(admin, report["id"], "Fixed", ["https://proof/1.jpg"])
    # Half-finished: record written, live report still present
    assert report["id"] in _live(db)
    assert len(_archived(db)) == 1

    record = lifecycle.resolve(admin, report["id"], "Fixed", ["https://proof/1.jpg"])

    assert report["id"] not in _live(db)
    assert list(_archived(db)) == [record["id"]]


def test_resolve_already_resolved_returns_record(lifecycle, submit, admin, reputation, db):
    report = submit("maria-1", is_urgent=True)
    first = lifecycle.resolve(admin, report["id"], "Fixed", ["https://proof/1.jpg"])

    again = lifecycle.resolve(admin, report["id"], "Fixed", ["https://proof/1.jpg"])

    assert again["id"] == first["id"]
    assert len(_archived(db)) == 1
    assert len(reputation.awards) == 1


def test_resolve_unknown_report(lifecycle, admin):
    with pytest.raises(NotFoundError):
        lifecycle.resolve(admin, "missing", "Fixed", ["https://proof/1.jpg"])


def test_resolve_survives_reputation_failure(db, notifier, users, submit, admin):
    from tests.fakes import RecordingReputation

    manager = ReportLifecycleManager(db=db, notifier=notifier, reputation=RecordingReputation(fail=True), user_service=users)
    report = submit("maria-1", is_urgent=True)

    record = manager.resolve(admin, report["id"], "Fixed", ["https://proof/1.jpg"])

    assert record["original_report_id"] == report["id"]


def test_report_is_never_both_live_and_archived(lifecycle, submit, admin):
    report = submit("maria-1", is_urgent=True)
    lifecycle.resolve(admin, report["id"], "Fixed", ["https://proof/1.jpg"])

    with pytest.raises(NotFoundError):
        lifecycle.get(report["id"])
    assert lifecycle.find_resolved(report["id"]) is not None


# --- Verification ---

def test_verify_awards_once(lifecycle, submit, add_user, admin, reputation):
    owner = add_user("maria-1")
    report = submit(owner, is_urgent=True)

    verified = lifecycle.verify(admin, report["id"])
    lifecycle.verify(admin, report["id"])

    assert verified["is_verified"] is True
    assert verified["verified_by"] == admin.user_id
    assert reputation.awards == [("verified", owner)]


# --- Owner edits ---

def test_owner_can_edit_content(lifecycle, submit):
    report = submit("maria-1")
    edited = lifecycle.update_content(report["id"], "maria-1", {"title": "Two lights out", "latitude": 10, "longitude": 20})
    assert edited["title"] == "Two lights out"
    assert edited["geo_tagged"] is True
    assert edited["status"] == "awaiting-approval"


def test_non_owner_cannot_edit_or_delete(lifecycle, submit, db):
    report = submit("maria-1")
    with pytest.raises(ForbiddenError):
        lifecycle.update_content(report["id"], "jose-2", {"title": "Hijacked"})
    with pytest.raises(ForbiddenError):
        lifecycle.delete(report["id"], "jose-2")
    assert _live(db)[report["id"]]["title"] == "Broken streetlight"


def test_owner_delete_accepts_wrapped_identity(lifecycle, submit, db):
    report = submit("maria-1")
    lifecycle.delete(report["id"], {"$oid": "maria-1"})
    assert _live(db) == {}


# --- Reads ---

def test_listing_and_summary(lifecycle, submit, admin):
    submit("maria-1")
    urgent = submit("maria-1", is_urgent=True)
    progressing = submit("jose-2", is_urgent=True)
    lifecycle.update_status(admin, progressing["id"], "in-progress")
    lifecycle.resolve(admin, urgent["id"], "Fixed", ["https://proof/1.jpg"])

    assert [r["status"] for r in lifecycle.list_by_status("awaiting-approval")] == ["awaiting-approval"]
    assert len(lifecycle.list_by_status()) == 2
    assert [r["original_report_id"] for r in lifecycle.list_by_status("resolved")] == [urgent["id"]]
    assert len(lifecycle.list_for_owner("maria-1")) == 1
    assert lifecycle.count_resolved() == 1
    assert lifecycle.summary() == {
        "total": 3,
        "awaiting_approval": 1,
        "pending": 0,
        "in_progress": 1,
        "resolved": 1,
    }


def test_summary_counts_legacy_resolved_live_report(lifecycle, submit, db):
    submit("maria-1", is_urgent=True)
    db.put("reports", "legacy-1", {"title": "Old report", "user_id": "jose-2", "status": "resolved"})

    assert lifecycle.summary() == {
        "total": 2,
        "awaiting_approval": 0,
        "pending": 1,
        "in_progress": 1,
        "resolved": 0,
    }
    assert lifecycle.get("legacy-1")["status"] == "in-progress"


def test_owner_summary_survives_suspension(lifecycle, suspensions, submit, add_user, admin):
    owner = add_user("maria-1")
    report = submit(owner)

    suspensions.suspend(admin, owner, "policy violation")
    fetched = lifecycle.get(report["id"])

    assert fetched["owner"]["id"] == owner
    assert fetched["owner"]["suspended"] is True
    assert fetched["owner"]["email"] == "maria-1@example.com"


def test_member_principal_role():
    assert not Principal(user_id="u1").is_admin
    assert Principal(user_id="u1", role=Role.ADMINISTRATOR).is_admin
