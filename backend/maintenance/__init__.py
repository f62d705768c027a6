"""
Maintenance jobs triggered by document events or the scheduler.

Responsibilities:
- Keep a place's average rating in sync with its reviews.
- Prune resolved reports older than six months.
- Flag heavily reported places and notify moderators.
- Anonymize a deleted account's reviews and places.
- Regenerate contributor statistics.
"""
