"""
Automatic document downloads with one thread per download.

The manager owns the download-state map. Each order's document is
fetched on its own thread; the thread consumes the downloader's frame
stream and publishes every frame to the download feed.

Thread Safety:
    - The feed is the only shared state; threads write their own order's
      entry through feed.update()
    - Starting a download is serialized by a lock so two pushes of the
      same order never start two threads

Usage:
    manager = DownloadManager(DocumentDownloader(download_dir))
    manager.request_download(order)          # no-op if already done/running
    files = manager.downloaded_files()       # order id -> Path
    manager.retry(order_id)                  # after an Error
    manager.shutdown()
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, Optional

from core.document_downloader import DocumentDownloader
from logging_config import get_logger, get_order_logger, set_thread_name
from models.download import DownloadState
from models.order import PrintOrder
from models.print_job import Snapshot
from services.status_feed import UNCHANGED, FeedView, SnapshotFeed


logger = get_logger(__name__)


def local_file_name(order: PrintOrder) -> str:
    """Per-order file name; orders may share a document name but never a file."""
    return f"{order.order_id}-{order.document_name or 'document.pdf'}"


class DownloadManager:
    """
    Starts, tracks and retries document downloads.

    Attributes:
        download_feed: read-only view of the per-order download states
    """

    def __init__(self, downloader: DocumentDownloader):
        self._downloader = downloader
        self._feed: SnapshotFeed[DownloadState] = SnapshotFeed("downloads")

        self._lock = threading.Lock()
        self._orders: Dict[str, PrintOrder] = {}
        self._threads: Dict[str, threading.Thread] = {}
        self._cancel_events: Dict[str, threading.Event] = {}
        self._closed = False

        logger.info(f"DownloadManager initialized (download dir: {downloader.download_dir})")

    @property
    def download_feed(self) -> FeedView[DownloadState]:
        return self._feed.view()

    def states(self) -> Snapshot[DownloadState]:
        return self._feed.current()

    def state_for(self, order_id: str) -> DownloadState:
        return self._feed.current().get(order_id) or DownloadState.idle()

    def downloaded_files(self) -> Dict[str, Path]:
        """Order id -> local file for every Completed download."""
        return {
            order_id: state.file_path
            for order_id, state in self._feed.current().items.items()
            if state.is_completed and state.file_path is not None
        }

    @property
    def is_downloading(self) -> bool:
        return any(state.is_downloading for state in self._feed.current().values())

    def request_download(self, order: PrintOrder) -> bool:
        """
        Start downloading an order's document unless it is already
        downloading or downloaded, or previously failed.

        Failed downloads are only restarted through retry().

        Returns:
            True if a download thread was started
        """
        state = self.state_for(order.order_id)
        if state.is_downloading or state.is_completed:
            return False
        if state.is_error:
            logger.debug(f"Download for {order.order_id} failed earlier, waiting for retry")
            return False
        return self._start(order)

    def retry(self, order_id: str) -> bool:
        """
        Restart a failed download.

        Returns:
            True if a new attempt was started, False if the order is
            unknown or its download has not failed
        """
        with self._lock:
            order = self._orders.get(order_id)
        if order is None:
            logger.warning(f"Cannot retry download for unknown order {order_id}")
            return False
        if not self.state_for(order_id).is_error:
            logger.info(f"Download for {order_id} has not failed, nothing to retry")
            return False

        get_order_logger(order_id).info("Retrying download")
        return self._start(order)

    def forget(self, order_id: str) -> None:
        """Drop an order's download state (e.g. once it is printed)."""
        with self._lock:
            self._orders.pop(order_id, None)
            event = self._cancel_events.pop(order_id, None)
        if event is not None:
            event.set()

        def remove(items):
            return UNCHANGED if items.pop(order_id, None) is None else None

        self._feed.update(remove)

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        with self._lock:
            threads = list(self._threads.values())
        for thread in threads:
            thread.join(timeout=timeout)
        return not any(thread.is_alive() for thread in threads)

    def shutdown(self, timeout_per_thread: float = 5.0) -> None:
        """Cancel in-flight downloads and wait for their threads."""
        with self._lock:
            self._closed = True
            events = list(self._cancel_events.values())
            active = [(key, t) for key, t in self._threads.items() if t.is_alive()]

        for event in events:
            event.set()

        if active:
            logger.info(f"Waiting for {len(active)} download threads to stop...")
        for order_id, thread in active:
            thread.join(timeout=timeout_per_thread)
            if thread.is_alive():
                logger.warning(f"Download thread {order_id[:8]} did not stop in time")

        logger.info("Download manager shutdown complete")

    # =========================================================================
    # DOWNLOAD THREADS
    # =========================================================================

    def _start(self, order: PrintOrder) -> bool:
        order_id = order.order_id

        with self._lock:
            if self._closed:
                logger.warning(f"Download manager closed, not downloading {order_id}")
                return False
            running = self._threads.get(order_id)
            if running is not None and running.is_alive():
                return False
            state = self.state_for(order_id)
            if state.is_downloading or state.is_completed:
                return False

            self._orders[order_id] = order
            cancel_event = threading.Event()
            self._cancel_events[order_id] = cancel_event

            self._feed.update(lambda items: items.update({order_id: DownloadState.downloading(0.0)}))

            thread = threading.Thread(
                target=self._download_thread_main,
                args=(order, cancel_event),
                name=f"Download-{order_id[:8]}",
                daemon=True,
            )
            self._threads[order_id] = thread

        get_order_logger(order_id).info(f"Starting download: {order.document_name}")
        thread.start()
        return True

    def _download_thread_main(self, order: PrintOrder, cancel_event: threading.Event) -> None:
        set_thread_name(f"Download-{order.order_id[:8]}")
        order_logger = get_order_logger(order.order_id)

        try:
            frames = self._downloader.download_document(
                order.document_url,
                local_file_name(order),
                cancel_event=cancel_event,
            )
            for state, _path in frames:
                self._publish(order.order_id, state, cancel_event)
                if state.is_completed:
                    order_logger.info(f"Download completed: {state.file_path}")
                elif state.is_error:
                    order_logger.error(f"Download failed: {state.message}")

        except Exception as e:
            order_logger.error(f"Unexpected download error: {e}", exc_info=True)
            self._publish(order.order_id, DownloadState.error(f"Download error: {e}"), cancel_event)

    def _publish(self, order_id: str, state: DownloadState, cancel_event: threading.Event) -> None:
        # A forgotten or superseded attempt must not write back
        with self._lock:
            if self._cancel_events.get(order_id) is not cancel_event:
                return
        self._feed.update(lambda items: items.update({order_id: state}))
