"""
Services layer - Business logic goes here.
Keep services focused on specific domains (reports, moderation, users).

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Services raise domain errors from fixit.core.exceptions; routes never
  translate them by hand
- Collaborators (notifications, reputation, media) are injected by reference
"""
