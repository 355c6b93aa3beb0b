"""Host connection: signed-URL lifecycle, sequential mode signals, teardown.

Invariants:
    - Capture starts disabled and follows listening/speaking in arrival order
    - A failed credential request of any kind leaves the connection in error
    - A handshake outliving a cancelled caller still settles the status
    - Ending while connecting aborts the request and reports the closed connection
    - Ending resets the gate and notifies viewers if capture was on
"""

import asyncio

import pytest

from elevenpoints.core.domain_types import ConnectionStatus
from elevenpoints.core.errors import ConnectionClosedError, UpstreamError
from elevenpoints.services.host_connection import (
    HostConnection, HostConnectionRegistry, ModeSignalActor,
)
from tests.services.fakes import FakeCredentials


@pytest.fixture
def captured():
    return []


@pytest.fixture
def listener(captured):
    return lambda session_id, enabled: captured.append((session_id, enabled))


async def test_actor_applies_signals_in_order(listener, captured):
    actor = ModeSignalActor("abcd1234", listener)

    trace = [await actor.submit(s) for s in ["speaking", "listening", "speaking", "listening"]]
    await actor.stop()

    assert trace == [False, True, False, True]
    assert captured == [("abcd1234", True), ("abcd1234", False), ("abcd1234", True)]


async def test_actor_ignores_unknown_signals(listener, captured):
    actor = ModeSignalActor("abcd1234", listener)

    assert await actor.submit("thinking") is False
    assert await actor.submit("listening") is True
    assert await actor.submit("thinking") is True
    await actor.stop()

    assert captured == [("abcd1234", True)]


async def test_start_connects_with_signed_url(listener):
    conn = HostConnection("abcd1234", listener)

    url = await conn.start(FakeCredentials())

    assert url.endswith("session_id=abcd1234")
    assert conn.status is ConnectionStatus.CONNECTED
    assert conn.active
    assert conn.actor.running
    assert conn.to_dict()["capture_enabled"] is False
    await conn.end()


async def test_start_failure_sets_error_status():
    conn = HostConnection("abcd1234")
    error = UpstreamError("elevenlabs", http_status=401)

    with pytest.raises(UpstreamError) as exc:
        await conn.start(FakeCredentials(error=error))

    assert exc.value.http_status == 401
    assert conn.status is ConnectionStatus.ERROR
    assert not conn.active


async def test_end_while_connecting_aborts_request():
    conn = HostConnection("abcd1234")
    credentials = FakeCredentials(block=True)

    starting = asyncio.create_task(conn.start(credentials))
    await credentials.started.wait()
    assert conn.status is ConnectionStatus.CONNECTING

    await conn.end()

    with pytest.raises(ConnectionClosedError):
        await starting
    assert credentials.cancelled
    assert conn.status is ConnectionStatus.ENDED
    assert conn.pending_requests == 0


async def test_end_resets_capture_and_notifies(listener, captured):
    conn = HostConnection("abcd1234", listener)
    await conn.start(FakeCredentials())
    await conn.actor.submit("listening")

    await conn.end()

    assert conn.actor.capture_enabled is False
    assert captured == [("abcd1234", True), ("abcd1234", False)]
    assert not conn.actor.running


async def test_registry_tracks_connections(listener):
    registry = HostConnectionRegistry(listener)
    conn = registry.get("abcd1234")
    assert registry.get("abcd1234") is conn
    assert not registry.is_active("abcd1234")

    await conn.start(FakeCredentials())
    assert registry.is_active("abcd1234")

    await registry.shutdown()
    assert conn.status is ConnectionStatus.ENDED
    assert not registry.is_active("abcd1234")


async def _settle(conn):
    while conn.pending_requests:
        await asyncio.sleep(0)
    await asyncio.sleep(0)


async def test_unexpected_start_failure_sets_error_status():
    registry = HostConnectionRegistry()
    conn = registry.get("abcd1234")

    with pytest.raises(RuntimeError):
        await conn.start(FakeCredentials(error=RuntimeError("boom")))

    assert conn.status is ConnectionStatus.ERROR
    assert not registry.is_active("abcd1234")


async def test_cancelled_caller_handshake_still_connects():
    conn = HostConnection("abcd1234")
    credentials = FakeCredentials(block=True)

    starting = asyncio.create_task(conn.start(credentials))
    await credentials.started.wait()
    starting.cancel()
    with pytest.raises(asyncio.CancelledError):
        await starting
    assert conn.status is ConnectionStatus.CONNECTING

    credentials.released.set()
    await _settle(conn)

    assert conn.status is ConnectionStatus.CONNECTED
    assert conn.signed_url.endswith("session_id=abcd1234")
    assert conn.actor.running
    await conn.end()


async def test_cancelled_caller_handshake_failure_sets_error():
    conn = HostConnection("abcd1234")
    credentials = FakeCredentials(error=RuntimeError("boom"), block=True)

    starting = asyncio.create_task(conn.start(credentials))
    await credentials.started.wait()
    starting.cancel()
    with pytest.raises(asyncio.CancelledError):
        await starting

    credentials.released.set()
    await _settle(conn)

    assert conn.status is ConnectionStatus.ERROR
    assert not conn.active


async def test_registry_reads_do_not_register():
    registry = HostConnectionRegistry()

    assert registry.peek("abcd1234") is None
    assert registry.describe("abcd1234")["status"] == "idle"
    assert registry.capture_enabled("abcd1234") is False
    assert not registry.is_active("abcd1234")
    assert registry.peek("abcd1234") is None


async def test_registry_end_forgets_connection(listener, captured):
    registry = HostConnectionRegistry(listener)
    conn = registry.get("abcd1234")
    await conn.start(FakeCredentials())
    await conn.actor.submit("listening")
    assert registry.capture_enabled("abcd1234")

    final = await registry.end("abcd1234")

    assert final["status"] == "ended"
    assert final["capture_enabled"] is False
    assert registry.peek("abcd1234") is None
    assert registry.get("abcd1234") is not conn
    assert captured == [("abcd1234", True), ("abcd1234", False)]
