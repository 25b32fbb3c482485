"""API Layer — FastAPI routes for probes and round statistics.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses
"""
