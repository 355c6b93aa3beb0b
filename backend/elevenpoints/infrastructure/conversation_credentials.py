"""Conversation Credential Client: signed connection URLs for the AI voice host.

Invariants:
    - Fails closed with ConfigurationError when API key or agent id is absent
    - Upstream error statuses are propagated to the caller (UpstreamError.http_status)
    - Returned URL always carries the session id as a trailing query parameter
"""

import logging

import httpx

from elevenpoints.config import Settings
from elevenpoints.core.errors import ConfigurationError, ErrorContext, UpstreamError
from elevenpoints.infrastructure.http_client import ResilientHTTPClient

logger = logging.getLogger(__name__)

SIGNED_URL_PATH = "/v1/convai/conversation/get_signed_url"


class ConversationCredentialClient:
    """Issues time-limited signed URLs from the ElevenLabs conversational API."""

    def __init__(
        self,
        api_key: str,
        agent_id: str,
        base_url: str = "https://api.elevenlabs.io",
        timeout_seconds: float = 15.0,
        max_retries: int = 2,
        base_delay_ms: int = 500,
        max_delay_ms: int = 8_000,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.agent_id = agent_id
        self._http = ResilientHTTPClient(
            "elevenlabs",
            base_url,
            headers={"xi-api-key": api_key},
            timeout_seconds=timeout_seconds,
            max_retries=max_retries,
            base_delay_ms=base_delay_ms,
            max_delay_ms=max_delay_ms,
            propagate_status=True,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "ConversationCredentialClient":
        return cls(
            api_key=settings.elevenlabs_api_key,
            agent_id=settings.elevenlabs_agent_id,
            base_url=settings.elevenlabs_base_url,
            timeout_seconds=settings.upstream_timeout_seconds,
            max_retries=settings.upstream_max_retries,
            base_delay_ms=settings.upstream_base_delay_ms,
            max_delay_ms=settings.upstream_max_delay_ms,
        )

    async def get_signed_url(self, session_id: str) -> str:
        """Request a signed URL and bind it to `session_id`."""
        context = ErrorContext(session_id=session_id)
        if not self.api_key or not self.agent_id:
            logger.error("Missing ElevenLabs configuration", extra={"session_id": session_id})
            raise ConfigurationError(
                "elevenlabs_api_key" if not self.api_key else "elevenlabs_agent_id",
                context=context,
            )

        data = await self._http.get_json(
            SIGNED_URL_PATH, params={"agent_id": self.agent_id}, context=context,
        )
        signed_url = data.get("signed_url") if isinstance(data, dict) else None
        if not signed_url:
            logger.error(
                "ElevenLabs response missing signed_url",
                extra={"session_id": session_id},
            )
            raise UpstreamError("elevenlabs", context=context)
        separator = "&" if "?" in signed_url else "?"
        return f"{signed_url}{separator}session_id={session_id}"

    async def aclose(self) -> None:
        await self._http.aclose()
