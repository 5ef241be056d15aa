"""
Seed script for FixIt Civic Hub demo data in Firestore.

Usage:
  - Dry run (default): python scripts/seed_db.py
  - Apply to configured DB: python scripts/seed_db.py --apply
  - Use a different seed file: python scripts/seed_db.py --file ./my_seed.json --apply

Behavior:
  - Loads `db_seed.json` from repo root when present, else a built-in demo set.
  - Registers each resident through UserService (skips ones already registered).
  - Submits each report through ReportLifecycleManager, so statuses and
    geo-tagging follow the same rules as the API.

NOTE: Ensure `FIREBASE_CREDENTIALS_PATH` is set in `.env` before running with --apply.
"""

import argparse
import json
import os

from fixit.config.firebase import get_db
from fixit.core.exceptions import ConflictError
from fixit.models.user import UserCreate
from fixit.services.notifications import LoggingEmailProvider, NotificationService
from fixit.services.report_lifecycle import ReportLifecycleManager
from fixit.services.user_service import UserService

DEMO_SEED = {
    "users": {
        "demo-resident-1": {
            "f_name": "Maria",
            "l_name": "Santos",
            "email": "maria.santos@example.com",
            "barangay": "Poblacion",
            "municipality": "San Isidro",
        },
        "demo-resident-2": {
            "f_name": "Jose",
            "l_name": "Reyes",
            "email": "jose.reyes@example.com",
            "barangay": "San Roque",
            "municipality": "San Isidro",
        },
    },
    "reports": [
        {
            "user_id": "demo-resident-1",
            "title": "Broken streetlight",
            "description": "Streetlight near the plaza has been out for a week.",
            "category": "Electricity",
            "location": "Rizal St., Poblacion",
            "latitude": 14.5995,
            "longitude": 120.9842,
        },
        {
            "user_id": "demo-resident-2",
            "title": "Flooded intersection",
            "description": "Knee-deep water after every rain; drainage is clogged.",
            "category": "Drainage",
            "location": "Mabini corner Luna",
            "is_urgent": True,
        },
    ],
}


def load_seed(path: str) -> dict:
    if not os.path.exists(path):
        print(f"Seed file not found: {path}, using built-in demo data")
        return DEMO_SEED
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_to_db(db, seed: dict, apply: bool = False):
    users = lifecycle = None
    if apply:
        # Seeding never sends real email
        notifier = NotificationService(LoggingEmailProvider())
        users = UserService(db)
        lifecycle = ReportLifecycleManager(db=db, notifier=notifier, user_service=users)

    for uid, profile in seed.get("users", {}).items():
        print(f"Preparing: users/{uid}")
        if not apply:
            continue
        try:
            users.register(uid, UserCreate(**profile))
            print(f"Wrote: users/{uid}")
        except ConflictError as e:
            print(f"Skipped users/{uid}: {e.message}")

    for report in seed.get("reports", []):
        print(f"Preparing: report '{report['title']}' by {report['user_id']}")
        if not apply:
            continue
        payload = {k: v for k, v in report.items() if k != "user_id"}
        created = lifecycle.create(payload, report["user_id"])
        print(f"Wrote: reports/{created['id']} ({created['status']})")


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--apply", action="store_true", help="Write seed to the DB instead of dry-run")
    parser.add_argument("--file", default=os.path.join(os.getcwd(), "db_seed.json"), help="Seed JSON file")
    args = parser.parse_args()

    seed = load_seed(args.file)
    db = get_db() if args.apply else None

    write_to_db(db, seed, apply=args.apply)

    if args.apply:
        print("Seeding completed.")
    else:
        print("Dry run complete. Re-run with --apply to write to DB.")


if __name__ == "__main__":
    main()
