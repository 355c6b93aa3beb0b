"""Image Search Client: photo lookup by topic for the round 3 image questions.

Invariants:
    - One request per search, restricted to a fixed page size
    - Returns the page as a list of display URLs (possibly empty)
    - Provider failures map to UpstreamError (HTTP 500); missing key is a ConfigurationError
"""

import logging

import httpx

from elevenpoints.config import Settings
from elevenpoints.core.errors import ConfigurationError, ErrorContext
from elevenpoints.infrastructure.http_client import ResilientHTTPClient

logger = logging.getLogger(__name__)


class ImageSearchClient:
    """Unsplash photo search."""

    def __init__(
        self,
        access_key: str,
        base_url: str = "https://api.unsplash.com",
        page_size: int = 10,
        orientation: str = "landscape",
        timeout_seconds: float = 15.0,
        max_retries: int = 2,
        base_delay_ms: int = 500,
        max_delay_ms: int = 8_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.access_key = access_key
        self.page_size = page_size
        self.orientation = orientation
        self._http = ResilientHTTPClient(
            "image_search",
            base_url,
            headers={"Authorization": f"Client-ID {access_key}"},
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            base_delay_ms=base_delay_ms,
            max_delay_ms=max_delay_ms,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageSearchClient":
        return cls(
            access_key=settings.unsplash_access_key,
            base_url=settings.unsplash_base_url,
            page_size=settings.image_page_size,
            orientation=settings.image_orientation,
            timeout_seconds=settings.upstream_timeout_seconds,
            max_retries=settings.upstream_max_retries,
            base_delay_ms=settings.upstream_base_delay_ms,
            max_delay_ms=settings.upstream_max_delay_ms,
        )

    async def search(self, topic: str, session_id: str | None = None) -> list[str]:
        """Return the image URLs of the first result page for `topic`."""
        context = ErrorContext(session_id=session_id)
        if not self.access_key:
            logger.error("Missing Unsplash configuration", extra={"session_id": session_id})
            raise ConfigurationError("unsplash_access_key", context=context)

        data = await self._http.get_json(
            "/search/photos",
            params={
                "query": topic,
                "orientation": self.orientation,
                "per_page": self.page_size,
            },
            context=context,
        )
        results = data.get("results") if isinstance(data, dict) else None
        urls = []
        for photo in results or []:
            url = (photo.get("urls") or {}).get("regular")
            if url:
                urls.append(url)
        return urls[: self.page_size]

    async def aclose(self) -> None:
        await self._http.aclose()
