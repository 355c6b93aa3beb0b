"""ORM Models: SQLAlchemy declarative rows for the game show.

Invariants:
    - All models inherit from Base (db/base.py)
    - GameSession is the aggregate root; SessionMedia rows are scoped by session_id
"""

from elevenpoints.models.session import GameSession  # noqa: F401
from elevenpoints.models.session_media import SessionMedia  # noqa: F401
