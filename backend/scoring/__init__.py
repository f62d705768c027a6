"""
Top Picks scoring engine.

Responsibilities:
- Score a place from its reviews, verification status and reports.
- Rank all places and keep the best N as a single Top Picks list.
"""
