"""Realtime hub: per-session fan-out, ordering and overflow handling."""

from elevenpoints.services.realtime_sync import (
    CAPTURE_EVENT, MEDIA_EVENT, RESYNC_EVENT, SESSION_EVENT, RealtimeHub,
)


def test_events_reach_only_that_sessions_subscribers():
    hub = RealtimeHub()
    mine = hub.subscribe("aaaa1111")
    other = hub.subscribe("bbbb2222")

    reached = hub.publish_session({"id": "aaaa1111", "q_number": 1})

    assert reached == 1
    assert mine.queue.qsize() == 1
    assert other.queue.empty()


def test_events_arrive_in_publish_order():
    hub = RealtimeHub()
    sub = hub.subscribe("aaaa1111")

    hub.publish_session({"id": "aaaa1111", "q_number": 1})
    hub.publish_media({"id": 1, "session_id": "aaaa1111", "image_url": "u"})
    hub.publish_capture("aaaa1111", True)

    types = [sub.queue.get_nowait().type for _ in range(3)]
    assert types == [SESSION_EVENT, MEDIA_EVENT, CAPTURE_EVENT]


def test_every_subscriber_receives_the_event():
    hub = RealtimeHub()
    subs = [hub.subscribe("aaaa1111") for _ in range(3)]

    assert hub.publish_session({"id": "aaaa1111"}) == 3
    assert all(s.queue.qsize() == 1 for s in subs)


def test_overflow_collapses_backlog_into_resync():
    hub = RealtimeHub(queue_size=2)
    sub = hub.subscribe("aaaa1111")

    for n in range(3):
        hub.publish_session({"id": "aaaa1111", "q_number": n})

    assert sub.queue.qsize() == 1
    assert sub.queue.get_nowait().type == RESYNC_EVENT


def test_closed_subscription_is_removed():
    hub = RealtimeHub()
    with hub.subscribe("aaaa1111"):
        assert hub.subscriber_count("aaaa1111") == 1
    assert hub.subscriber_count("aaaa1111") == 0
    assert hub.publish_session({"id": "aaaa1111"}) == 0


async def test_get_returns_none_on_timeout():
    hub = RealtimeHub()
    sub = hub.subscribe("aaaa1111")
    assert await sub.get(timeout=0.01) is None
