"""Tests for the best-effort notification bus."""

import asyncio

from focus_engine.session.notifications import NotificationBus


class TestNotificationBus:
    def test_listener_receives_events(self):
        bus = NotificationBus()
        got = []
        bus.register_listener(got.append)
        bus.publish({"event": "tick"})
        assert got == [{"event": "tick"}]

    def test_failing_listener_does_not_stop_others(self):
        bus = NotificationBus()
        got = []

        def broken(event):
            raise RuntimeError("popup closed")

        bus.register_listener(broken)
        bus.register_listener(got.append)
        bus.publish({"event": "phase_ended"})
        assert got == [{"event": "phase_ended"}]

    def test_publish_without_listeners(self):
        NotificationBus().publish({"event": "tick"})

    def test_unregister(self):
        bus = NotificationBus()
        got = []
        bus.register_listener(got.append)
        bus.unregister_listener(got.append)
        bus.publish({"event": "tick"})
        assert got == []

    async def test_queue_subscription(self):
        bus = NotificationBus()
        queue = bus.subscribe_queue()
        bus.publish({"event": "tick", "n": 1})
        assert await asyncio.wait_for(queue.get(), timeout=1) == {"event": "tick", "n": 1}
        bus.unsubscribe_queue(queue)
        assert bus.listener_count == 0

    async def test_full_queue_drops_events(self):
        bus = NotificationBus()
        queue = bus.subscribe_queue(maxsize=2)
        for n in range(5):
            bus.publish({"event": "tick", "n": n})
        assert queue.qsize() == 2
        assert (await queue.get())["n"] == 0
        assert (await queue.get())["n"] == 1
