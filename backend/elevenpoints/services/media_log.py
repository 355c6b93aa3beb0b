"""Media Log: fetch a topical image and append it to the session's round 3 log.

Invariants:
    - Exactly one row appended per successful fetch; none on any failure
    - The image is drawn uniformly at random from the provider's result page
    - No deduplication: the same topic twice yields two rows
    - The newest row (highest id) is the image currently on screen
"""

import logging
import random
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from elevenpoints.core.errors import ErrorContext, NoResultsError, ValidationError
from elevenpoints.models.session_media import SessionMedia
from elevenpoints.services.realtime_sync import RealtimeHub
from elevenpoints.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class ImageSearch(Protocol):
    """Structural contract for the image provider (infrastructure/image_search.py)."""
    async def search(self, topic: str, session_id: str | None = None) -> list[str]: ...


class MediaLog:
    def __init__(
        self,
        db: AsyncSession,
        image_search: ImageSearch,
        hub: RealtimeHub,
        rng: random.Random | None = None,
    ):
        self.db = db
        self.image_search = image_search
        self.hub = hub
        self.rng = rng or random.Random()

    async def fetch_and_store(self, session_id: str, topic: str) -> dict:
        """Search `topic`, pick one result at random, append it, and return the row."""
        topic = (topic or "").strip()
        if not topic:
            raise ValidationError("topic is required", "topic", ErrorContext(session_id=session_id))
        await SessionStore(self.db, self.hub).get(session_id)

        urls = await self.image_search.search(topic, session_id=session_id)
        if not urls:
            logger.warning(
                f"No images found for topic: {topic}", extra={"session_id": session_id},
            )
            raise NoResultsError(topic, ErrorContext(session_id=session_id))

        image_url = self.rng.choice(urls)
        row = SessionMedia(session_id=session_id, image_url=image_url, topic=topic)
        self.db.add(row)
        await self.db.commit()
        await self.db.refresh(row)

        media = row.to_dict()
        logger.info(f"Image stored: {image_url}", extra={"session_id": session_id})
        self.hub.publish_media(media)
        return media

    async def list_media(self, session_id: str) -> list[dict]:
        return await load_media(self.db, session_id)

    async def latest(self, session_id: str) -> dict | None:
        result = await self.db.execute(
            select(SessionMedia)
            .where(SessionMedia.session_id == session_id)
            .order_by(SessionMedia.id.desc())
            .limit(1),
        )
        row = result.scalar_one_or_none()
        return row.to_dict() if row else None


async def load_media(db: AsyncSession, session_id: str) -> list[dict]:
    """All media rows for a session in insertion order (read-only, no provider needed)."""
    result = await db.execute(
        select(SessionMedia)
        .where(SessionMedia.session_id == session_id)
        .order_by(SessionMedia.id),
    )
    return [m.to_dict() for m in result.scalars().all()]
