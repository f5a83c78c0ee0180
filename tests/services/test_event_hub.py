"""Tests for EventHub fan-out."""

from fideo.schemas import NotificationEvent, ProgressUpdateEvent, SessionEndedEvent
from fideo.services.event_hub import EventHub


class TestEventHub:
    async def test_publish_without_subscribers_is_noop(self):
        hub = EventHub()

        hub.publish(NotificationEvent(title="t", body="b"))

        assert hub.subscriber_count == 0

    async def test_every_subscriber_receives_events(self):
        hub = EventHub()
        event = SessionEndedEvent(title="A", code=0)

        async with hub.subscribe() as first, hub.subscribe() as second:
            assert hub.subscriber_count == 2
            hub.publish(event)

            assert first.get_nowait() == event
            assert second.get_nowait() == event

        assert hub.subscriber_count == 0

    async def test_slow_subscriber_drops_oldest(self):
        hub = EventHub(max_queue=2)

        async with hub.subscribe() as queue:
            for frame in range(3):
                hub.publish(ProgressUpdateEvent(snapshot={"A": {0: {"frame": str(frame)}}}))

            received = [queue.get_nowait(), queue.get_nowait()]

        assert [e.snapshot["A"][0]["frame"] for e in received] == ["1", "2"]
