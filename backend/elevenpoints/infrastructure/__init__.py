"""Infrastructure: database sessions, logging, and upstream HTTP clients.

Invariants:
    - Every upstream failure surfaces as UpstreamError / NoResultsError
    - Every database failure surfaces as PersistenceError
"""
