"""
Document store.

Responsibilities:
- Hold place, review, report, top-picks and account documents in named collections.
- Validate documents into typed records at read time.
- Apply grouped writes as one atomic batch.
"""