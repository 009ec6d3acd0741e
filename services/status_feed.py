"""
Observable, versioned snapshot feeds.

A feed holds one immutable Snapshot at a time. Its owner publishes a new
snapshot on every change; readers grab the current reference without
taking any lock, block until the version moves past one they have seen,
or register a callback.

Thread Safety:
    - Writes are serialized by a Condition; each write builds a fresh dict
      and swaps the reference (readers never see a half-applied update)
    - Reads of current() are a single attribute load
    - Subscriber callbacks run on a writer's thread, after the swap,
      in version order. While one thread is delivering, newer versions
      written by other threads are handed to it and coalesced to the
      latest one; subscribers never see a version go backwards
    - A failing callback is logged and never reaches the writer

Usage:
    feed = SnapshotFeed[PrintJobStatus]()
    feed.update(lambda items: {**items, "A": status})   # owner only

    view = feed.view()                                  # hand this out
    snapshot = view.current()
    snapshot = view.wait_for_change(snapshot.version, timeout=1.0)
    unsubscribe = view.subscribe(lambda snap: print(snap.version))
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from logging_config import get_logger
from models.print_job import Snapshot

logger = get_logger(__name__)

T = TypeVar("T")

Subscriber = Callable[[Snapshot[T]], None]

# Returned by an update function to leave the feed untouched (no new version)
UNCHANGED = object()


class FeedView(Generic[T]):
    """Read-only side of a feed. Subscribers get this, never the feed."""

    def __init__(self, feed: "SnapshotFeed[T]"):
        self._feed = feed

    def current(self) -> Snapshot[T]:
        return self._feed.current()

    def wait_for_change(self, after_version: int, timeout: Optional[float] = None) -> Snapshot[T]:
        return self._feed.wait_for_change(after_version, timeout)

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self._feed.subscribe(callback)


class SnapshotFeed(Generic[T]):
    """Single-writer, multi-reader feed of versioned snapshots."""

    def __init__(self, name: str = "feed"):
        self._name = name
        self._condition = threading.Condition()
        self._snapshot: Snapshot[T] = Snapshot(0)
        self._subscribers: List[Subscriber] = []
        self._delivering = False
        self._delivered_version = 0

    def current(self) -> Snapshot[T]:
        return self._snapshot

    def view(self) -> FeedView[T]:
        return FeedView(self)

    def update(self, mutate: Callable[[Dict[str, T]], Any]) -> Snapshot[T]:
        """
        Apply `mutate` to a private copy of the current items and publish
        the result as the next version.

        `mutate` may edit the copy in place (returning None), return a new
        dict, or return UNCHANGED to publish nothing. It runs under the
        write lock and must not call back into the feed.
        """
        with self._condition:
            working = dict(self._snapshot.items)
            result = mutate(working)
            if result is UNCHANGED:
                return self._snapshot
            new_items = working if result is None else result
            snapshot = Snapshot(self._snapshot.version + 1, new_items)
            self._snapshot = snapshot
            self._condition.notify_all()
            deliver = not self._delivering
            self._delivering = True

        if deliver:
            self._deliver()
        return snapshot

    def _deliver(self) -> None:
        # Only one thread delivers at a time. It keeps going until the latest
        # version is out, so writers that arrive meanwhile never block here.
        finished = False
        try:
            while True:
                with self._condition:
                    snapshot = self._snapshot
                    if snapshot.version <= self._delivered_version:
                        self._delivering = False
                        finished = True
                        return
                    self._delivered_version = snapshot.version
                    subscribers = list(self._subscribers)

                for callback in subscribers:
                    try:
                        callback(snapshot)
                    except Exception as e:
                        logger.error(f"{self._name} subscriber failed: {e}", exc_info=True)
        finally:
            if not finished:
                with self._condition:
                    self._delivering = False

    def wait_for_change(self, after_version: int, timeout: Optional[float] = None) -> Snapshot[T]:
        """
        Block until a snapshot newer than `after_version` exists, or the
        timeout expires. Returns the current snapshot either way.
        """
        with self._condition:
            self._condition.wait_for(lambda: self._snapshot.version > after_version, timeout=timeout)
            return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for every future snapshot. Returns an unsubscribe function."""
        with self._condition:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._condition:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe
