"""Services: imperative shell around the pure core.

Invariants:
    - Every session mutation goes through SessionStore (sparse updates only)
    - Every committed change is published to the RealtimeHub after commit
"""
