"""
Tests for outbound notifications and reputation awards.
"""

from types import SimpleNamespace

import pytest

from fixit.core.exceptions import DependencyFailure
from fixit.services.notifications import BrevoEmailProvider, LoggingEmailProvider, NotificationService, templates
from fixit.services.reputation_service import ReputationService


def test_send_returns_false_without_recipient():
    provider = LoggingEmailProvider()
    assert NotificationService(provider).send("", "Hi", "<p>Hi</p>") is False
    assert provider.outbox == []


def test_send_swallows_provider_exception(provider):
    provider.fail_for.add("a@example.com")
    assert NotificationService(provider).send("a@example.com", "Hi", "<p>Hi</p>") is False


def test_send_template_renders_escaped_text():
    provider = LoggingEmailProvider()
    sent = NotificationService(provider).send_template(
        "a@example.com", templates.report_removed("Ana <b>", "Pothole", "Spam & noise")
    )
    assert sent is True
    assert "Ana &lt;b&gt;" in provider.outbox[0]["html"]
    assert "Spam &amp; noise" in provider.outbox[0]["html"]


def test_brevo_posts_transactional_email(monkeypatch):
    brevo = BrevoEmailProvider(api_key="key-123", sender_address="no-reply@fixit.local", sender_name="FixIt")
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append((url, json, headers))
        return SimpleNamespace(status_code=201, content=b"{}", text="{}", json=lambda: {"messageId": "m1"})

    monkeypatch.setattr(brevo.session, "post", fake_post)

    assert brevo.send_email("a@example.com", "Subject", "<p>Body</p>") is True
    url, payload, headers = calls[0]
    assert url == BrevoEmailProvider.BASE_URL
    assert payload["to"] == [{"email": "a@example.com"}]
    assert headers["api-key"] == "key-123"


def test_brevo_rejection_is_reported_as_failure(monkeypatch):
    brevo = BrevoEmailProvider(api_key="key-123")
    monkeypatch.setattr(
        brevo.session, "post",
        lambda *args, **kwargs: SimpleNamespace(status_code=401, content=b"", text="unauthorized"),
    )
    assert NotificationService(brevo).send("a@example.com", "Subject", "<p>Body</p>") is False


def test_reputation_award_updates_level_and_counters(db, add_user):
    uid = add_user("maria-1")
    reputation = ReputationService(db)

    reputation.award_resolved_report(uid)
    result = reputation.award_verified_report(uid)

    stored = db.docs("users")[uid]["reputation"]
    assert stored == result
    assert stored["points"] == 35
    assert stored["resolved_reports"] == 1
    assert stored["verified_reports"] == 1
    assert stored["level"] == "Contributor"


def test_reputation_award_for_inactive_user_fails(db):
    with pytest.raises(DependencyFailure):
        ReputationService(db).award_resolved_report("ghost-1")
