"""Firestore collection names."""

REPORTS = "reports"
RESOLVED_REPORTS = "resolved_reports"
USERS = "users"
SUSPENDED_USERS = "suspended_users"
