"""
Unit tests for versioned snapshot feeds.
"""

import threading

from services.status_feed import UNCHANGED, SnapshotFeed


def replace_all(feed, items):
    return feed.update(lambda _current: dict(items))


class TestSnapshotFeed:
    """Publishing, waiting and subscribing."""

    def test_starts_empty_at_version_zero(self):
        snapshot = SnapshotFeed().current()
        assert snapshot.version == 0
        assert len(snapshot) == 0

    def test_update_in_place_bumps_version(self):
        feed = SnapshotFeed()
        before = feed.current()

        after = feed.update(lambda items: items.update({"a": 1}))

        assert after.version == 1
        assert after.get("a") == 1
        assert "a" not in before

    def test_update_returning_new_dict(self):
        feed = SnapshotFeed()
        replace_all(feed, {"a": 1, "b": 2})

        snapshot = feed.update(lambda items: {k: v for k, v in items.items() if k != "a"})

        assert dict(snapshot.items) == {"b": 2}

    def test_unchanged_publishes_nothing(self):
        feed = SnapshotFeed()
        replace_all(feed, {"a": 1})
        seen = []
        feed.subscribe(seen.append)

        snapshot = feed.update(lambda items: UNCHANGED)

        assert snapshot.version == 1
        assert seen == []

    def test_wait_for_change_returns_newer_snapshot(self):
        feed = SnapshotFeed()
        ready = threading.Event()

        def writer():
            ready.wait(timeout=2.0)
            replace_all(feed, {"a": 1})

        thread = threading.Thread(target=writer)
        thread.start()
        ready.set()
        snapshot = feed.wait_for_change(0, timeout=2.0)
        thread.join()

        assert snapshot.version == 1

    def test_wait_for_change_times_out(self):
        feed = SnapshotFeed()
        assert feed.wait_for_change(0, timeout=0.01).version == 0

    def test_subscribers_see_every_version(self):
        feed = SnapshotFeed()
        versions = []
        unsubscribe = feed.subscribe(lambda snapshot: versions.append(snapshot.version))

        replace_all(feed, {"a": 1})
        replace_all(feed, {"a": 2})
        unsubscribe()
        replace_all(feed, {"a": 3})

        assert versions == [1, 2]

    def test_failing_subscriber_does_not_reach_writer(self):
        feed = SnapshotFeed()
        seen = []

        def broken(_snapshot):
            raise RuntimeError("subscriber bug")

        feed.subscribe(broken)
        feed.subscribe(seen.append)

        snapshot = replace_all(feed, {"a": 1})

        assert snapshot.version == 1
        assert seen == [snapshot]

    def test_view_is_read_only_facade(self):
        feed = SnapshotFeed()
        view = feed.view()
        replace_all(feed, {"a": 1})

        assert view.current().get("a") == 1
        assert not hasattr(view, "update")


class TestDeliveryOrder:
    """Subscribers never see versions go backwards."""

    def test_concurrent_writers_deliver_in_version_order(self):
        feed = SnapshotFeed()
        delivered = []
        first_delivery_started = threading.Event()
        release_first_delivery = threading.Event()

        def slow_subscriber(snapshot):
            if snapshot.version == 1:
                first_delivery_started.set()
                release_first_delivery.wait(timeout=3.0)
            delivered.append(snapshot.version)

        feed.subscribe(slow_subscriber)

        first = threading.Thread(target=replace_all, args=(feed, {"a": "PRINTING"}))
        first.start()
        assert first_delivery_started.wait(timeout=3.0)

        second = threading.Thread(target=replace_all, args=(feed, {"a": "CANCELLED"}))
        second.start()
        second.join(timeout=3.0)
        assert not second.is_alive()
        assert feed.current().version == 2

        release_first_delivery.set()
        first.join(timeout=3.0)

        assert delivered == [1, 2]

    def test_subscriber_writing_to_feed_keeps_order(self):
        feed = SnapshotFeed()
        first_seen = []
        second_seen = []

        def writes_back(snapshot):
            first_seen.append(snapshot.version)
            if snapshot.version == 1:
                replace_all(feed, {"a": 2})

        feed.subscribe(writes_back)
        feed.subscribe(lambda snapshot: second_seen.append(snapshot.version))

        replace_all(feed, {"a": 1})

        assert first_seen == [1, 2]
        assert second_seen == [1, 2]
