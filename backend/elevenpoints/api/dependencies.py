"""Dependency Providers: services wired per request, upstream clients shared per process.

Invariants:
    - One ImageSearchClient and one ConversationCredentialClient per process
      (each holds a pooled httpx.AsyncClient), closed on shutdown
    - Store and media log are built per request around the request's DB session

Design Decisions:
    - Tests replace upstream clients through app.dependency_overrides
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from elevenpoints.config import get_settings
from elevenpoints.infrastructure.conversation_credentials import ConversationCredentialClient
from elevenpoints.infrastructure.database import get_db
from elevenpoints.infrastructure.image_search import ImageSearchClient
from elevenpoints.services.media_log import MediaLog
from elevenpoints.services.realtime_sync import RealtimeHub, get_realtime_hub
from elevenpoints.services.session_store import SessionStore

_image_search: ImageSearchClient | None = None
_credential_client: ConversationCredentialClient | None = None


def get_image_search() -> ImageSearchClient:
    global _image_search
    if _image_search is None:
        _image_search = ImageSearchClient.from_settings(get_settings())
    return _image_search


def get_credential_client() -> ConversationCredentialClient:
    global _credential_client
    if _credential_client is None:
        _credential_client = ConversationCredentialClient.from_settings(get_settings())
    return _credential_client


def get_session_store(
    db: AsyncSession = Depends(get_db),
    hub: RealtimeHub = Depends(get_realtime_hub),
) -> SessionStore:
    return SessionStore(db, hub)


def get_media_log(
    db: AsyncSession = Depends(get_db),
    image_search=Depends(get_image_search),
    hub: RealtimeHub = Depends(get_realtime_hub),
) -> MediaLog:
    return MediaLog(db, image_search, hub)


async def close_upstream_clients() -> None:
    """Release pooled upstream connections (called from the app lifespan)."""
    global _image_search, _credential_client
    if _image_search is not None:
        await _image_search.aclose()
        _image_search = None
    if _credential_client is not None:
        await _credential_client.aclose()
        _credential_client = None
