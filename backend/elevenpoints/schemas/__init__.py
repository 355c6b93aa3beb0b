"""Pydantic Schemas: request validation at the HTTP boundary.

Invariants:
    - Schemas validate shape and enumerations; cross-field row rules live in core/session_rules.py
    - Both snake_case and camelCase keys are accepted for ids sent by the voice host tools
"""
