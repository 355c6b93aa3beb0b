"""Conversation routes: credential issuance, connection lifecycle and mode signals."""

import pytest

from elevenpoints.core.errors import ConfigurationError, UpstreamError
from elevenpoints.services.host_connection import get_host_registry


@pytest.fixture
async def session_id(client):
    res = await client.post("/api/v1/sessions")
    return res.json()["id"]


async def test_signed_url_issued(client, credentials):
    res = await client.post("/api/v1/conversation/signed-url", json={"sessionId": "abcd1234"})

    assert res.status_code == 200
    assert res.json()["signedUrl"].endswith("session_id=abcd1234")
    assert credentials.calls == ["abcd1234"]


async def test_signed_url_requires_session_id(client):
    res = await client.post("/api/v1/conversation/signed-url", json={})
    assert res.status_code == 400


async def test_signed_url_propagates_provider_status(client, credentials):
    credentials.error = UpstreamError("elevenlabs", http_status=401)

    res = await client.post("/api/v1/conversation/signed-url", json={"session_id": "abcd1234"})

    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UPSTREAM_ERROR"


async def test_signed_url_fails_closed_without_configuration(client, credentials):
    credentials.error = ConfigurationError("elevenlabs_api_key")

    res = await client.post("/api/v1/conversation/signed-url", json={"session_id": "abcd1234"})

    assert res.status_code == 500
    assert res.json()["error"]["message"] == "Server configuration error"


async def test_connection_lifecycle(client, session_id):
    base = f"/api/v1/sessions/{session_id}/conversation"

    idle = (await client.get(base)).json()
    assert idle["status"] == "idle"
    assert idle["capture_enabled"] is False

    started = await client.post(f"{base}/start")
    assert started.status_code == 200
    assert started.json()["status"] == "connected"
    assert started.json()["signed_url"].endswith(f"session_id={session_id}")

    listening = await client.post(f"{base}/mode", json={"mode": "listening"})
    assert listening.json()["capture_enabled"] is True
    speaking = await client.post(f"{base}/mode", json={"mode": "speaking"})
    assert speaking.json()["capture_enabled"] is False
    await client.post(f"{base}/mode", json={"mode": "listening"})

    status = (await client.get(base)).json()
    assert status["last_signal"] == "listening"
    assert status["capture_enabled"] is True

    ended = await client.post(f"{base}/end")
    assert ended.json()["status"] == "ended"
    assert ended.json()["capture_enabled"] is False


async def test_reads_do_not_register_and_end_forgets(client, session_id):
    base = f"/api/v1/sessions/{session_id}/conversation"
    registry = get_host_registry()

    await client.get(base)
    assert registry.peek(session_id) is None

    await client.post(f"{base}/start")
    assert registry.peek(session_id) is not None

    ended = await client.post(f"{base}/end")
    assert ended.json()["status"] == "ended"
    assert registry.peek(session_id) is None
    assert (await client.get(base)).json()["status"] == "idle"
    res = await client.post(f"{base}/mode", json={"mode": "listening"})
    assert res.status_code == 409


async def test_mode_signal_requires_active_connection(client, session_id):
    res = await client.post(
        f"/api/v1/sessions/{session_id}/conversation/mode", json={"mode": "listening"},
    )
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CONNECTION_CLOSED"


async def test_unknown_mode_is_ignored(client, session_id):
    base = f"/api/v1/sessions/{session_id}/conversation"
    await client.post(f"{base}/start")

    res = await client.post(f"{base}/mode", json={"mode": "thinking"})

    assert res.status_code == 200
    assert res.json()["capture_enabled"] is False


async def test_start_failure_reports_error(client, session_id, credentials):
    credentials.error = UpstreamError("elevenlabs", http_status=503)
    base = f"/api/v1/sessions/{session_id}/conversation"

    res = await client.post(f"{base}/start")

    assert res.status_code == 503
    assert (await client.get(base)).json()["status"] == "error"


async def test_start_unknown_session(client, credentials):
    res = await client.post("/api/v1/sessions/missing1/conversation/start")
    assert res.status_code == 404
    assert credentials.calls == []
