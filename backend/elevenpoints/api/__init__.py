"""API Layer: FastAPI routes, dependency providers and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return JSON, except the SSE session feed
    - Routes stay thin and delegate to services/
"""
