"""
Email templates for lifecycle, moderation and suspension notifications.

Each template returns an EmailTemplate(subject, html). Bodies are short HTML
fragments; user-provided text is escaped.
"""

from html import escape
from typing import Iterable, NamedTuple, Optional

BRAND = "FixIt"

_WRAPPER = '<div style="font-family: Arial, sans-serif; line-height: 1.6;">{body}</div>'


class EmailTemplate(NamedTuple):
    subject: str
    html: str


def _render(body: str) -> str:
    return _WRAPPER.format(body=body)


def report_approved(owner_name: str, report_title: str, report_id: str) -> EmailTemplate:
    body = (
        "<h2>Report Approved!</h2>"
        f"<p>Hi {escape(owner_name)},</p>"
        "<p>Your report has been approved by our administrators and is now publicly visible.</p>"
        "<ul>"
        f"<li><strong>Report ID:</strong> {escape(report_id)}</li>"
        f"<li><strong>Title:</strong> {escape(report_title)}</li>"
        "<li><strong>Status:</strong> Pending</li>"
        "</ul>"
        "<p>Our team will now work on resolving this issue. Thank you for helping improve our community!</p>"
    )
    return EmailTemplate(f"Your {BRAND} Report Has Been Approved (ID: {report_id})", _render(body))


def report_rejected(owner_name: str, report_title: str, report_id: str, reasons: Iterable[str]) -> EmailTemplate:
    reason_items = "".join(f"<li>{escape(r)}</li>" for r in reasons if r and r.strip())
    if not reason_items:
        reason_items = "<li>The report did not meet our community guidelines</li>"
    body = (
        "<h2>Report Not Approved</h2>"
        f"<p>Hi {escape(owner_name)},</p>"
        "<p>We regret to inform you that your report was not approved for public posting.</p>"
        "<ul>"
        f"<li><strong>Report ID:</strong> {escape(report_id)}</li>"
        f"<li><strong>Title:</strong> {escape(report_title)}</li>"
        "</ul>"
        f"<p><strong>Reasons:</strong></p><ul>{reason_items}</ul>"
        "<p>If you believe this was a mistake, feel free to submit a new report with more details.</p>"
    )
    return EmailTemplate(f"Your {BRAND} Report Was Not Approved (ID: {report_id})", _render(body))


def report_removed(owner_name: str, report_title: str, reason: str, warning: Optional[str] = None) -> EmailTemplate:
    body = (
        "<h2>Your Report Has Been Removed</h2>"
        f"<p>Hi {escape(owner_name)},</p>"
        f"<p>Your report <strong>{escape(report_title)}</strong> was removed by a moderator.</p>"
        f"<p><strong>Reason:</strong> {escape(reason)}</p>"
    )
    if warning:
        body += f"<p><strong>Warning from the moderators:</strong> {escape(warning)}</p>"
    body += "<p>Please review our community guidelines before submitting new reports.</p>"
    return EmailTemplate(f"Your Report Has Been Removed - {report_title}", _render(body))


def thank_flagger(flagger_name: str, report_title: str) -> EmailTemplate:
    body = (
        "<h2>Thank You for Flagging</h2>"
        f"<p>Hi {escape(flagger_name)},</p>"
        f"<p>The report <strong>{escape(report_title)}</strong> you flagged has been reviewed "
        "and removed by our moderators.</p>"
        "<p>Thank you for helping keep the community accurate and respectful.</p>"
    )
    return EmailTemplate(f"Thank You for Flagging - {report_title}", _render(body))


def user_suspended(user_name: str, reason: str) -> EmailTemplate:
    body = (
        "<h2>Account Suspended</h2>"
        f"<p>Hi {escape(user_name)},</p>"
        f"<p>Your {BRAND} account has been suspended by an administrator.</p>"
        f"<p><strong>Reason:</strong> {escape(reason or 'Not specified')}</p>"
        "<p>Contact your local administrator if you believe this was a mistake.</p>"
    )
    return EmailTemplate(f"Your {BRAND} Account Has Been Suspended", _render(body))


def user_unsuspended(user_name: str) -> EmailTemplate:
    body = (
        "<h2>Account Reinstated</h2>"
        f"<p>Hi {escape(user_name)},</p>"
        f"<p>Your {BRAND} account has been reinstated. You can sign in and submit reports again.</p>"
    )
    return EmailTemplate(f"Your {BRAND} Account Has Been Reinstated", _render(body))
