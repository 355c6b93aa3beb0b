"""Core Layer: pure game logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/ or models/
    - All functions are pure and deterministic (randomness is injected by callers)
"""
