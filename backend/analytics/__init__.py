"""
Job run analytics.

Responsibilities:
- Record one event per job run (name, outcome, duration, result counts).
- Aggregate run events into per-job statistics for the admin API.
"""
