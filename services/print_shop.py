"""
Print shop service: the glue between the order feed, downloads and the
print queue.

On every order feed push the service:
    1. Splits orders into printed and pending
       (printed orders drop their download state)
    2. Moves paid SUBMITTED orders to QUEUED (background, failures logged)
    3. Starts downloads for paid QUEUED orders that have a document URL

An order is ready to print once it is paid, QUEUED and its document is
downloaded. start_printing() hands the ready orders to the orchestrator,
whose order-printed hook writes PRINTED back to the order feed.

Usage:
    submitter = PrintSubmitter(directory, backend, settings_store.current)
    service = PrintShopService(feed, downloads, submitter, directory, settings_store)
    service.start()
    service.start_printing()
    service.close()
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, List, Optional, Set

from core.printer_directory import PrinterDirectory
from logging_config import get_logger
from models.order import OrderStatus, PrintOrder
from models.printer_settings import PrinterAssignment
from services.download_manager import DownloadManager
from services.order_feed import OrderFeed, Subscription
from services.print_submitter import PrintSubmitter
from services.queue_orchestrator import PrintQueueOrchestrator
from services.settings_store import SettingsStore


logger = get_logger(__name__)


class PrintShopService:
    """
    Application-level state for one print shop.

    Attributes:
        orchestrator: the print queue
        downloads: the download manager
    """

    def __init__(
        self,
        order_feed: OrderFeed,
        downloads: DownloadManager,
        submitter: PrintSubmitter,
        directory: PrinterDirectory,
        settings_store: SettingsStore,
        inter_job_delay_seconds: float = 2.0,
        auto_queue_paid_orders: bool = True,
        orchestrator: Optional[PrintQueueOrchestrator] = None,
    ):
        self._feed = order_feed
        self._downloads = downloads
        self._directory = directory
        self._settings_store = settings_store
        self._auto_queue = auto_queue_paid_orders

        self._orchestrator = orchestrator or PrintQueueOrchestrator(
            submitter,
            on_order_printed=self._mark_printed,
            inter_job_delay_seconds=inter_job_delay_seconds,
        )

        self._lock = threading.Lock()
        self._pending: List[PrintOrder] = []
        self._printed: List[PrintOrder] = []
        self._queueing: Set[str] = set()
        self._queue_threads: List[threading.Thread] = []
        self._subscription: Optional[Subscription] = None

        logger.info("PrintShopService initialized")

    @property
    def orchestrator(self) -> PrintQueueOrchestrator:
        return self._orchestrator

    @property
    def downloads(self) -> DownloadManager:
        return self._downloads

    @property
    def is_printing(self) -> bool:
        return self._orchestrator.is_running

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> None:
        """Subscribe to the order feed. Raises OrderFeedError if that fails."""
        if self._subscription is not None:
            return
        self._subscription = self._feed.subscribe(self._on_orders)
        logger.info("Listening to order feed")

    def close(self, timeout: float = 5.0) -> None:
        """Unsubscribe, stop printing and wind down all worker threads."""
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None
        self._orchestrator.shutdown(timeout)
        self._downloads.shutdown(timeout)
        with self._lock:
            threads = list(self._queue_threads)
        for thread in threads:
            thread.join(timeout=timeout)
        logger.info("PrintShopService closed")

    # =========================================================================
    # ORDERS
    # =========================================================================

    def pending_orders(self) -> List[PrintOrder]:
        with self._lock:
            return list(self._pending)

    def printed_orders(self) -> List[PrintOrder]:
        with self._lock:
            return list(self._printed)

    def ready_orders(self) -> List[PrintOrder]:
        """Paid, QUEUED orders whose document is downloaded, in feed order."""
        files = self._downloads.downloaded_files()
        return [order for order in self.pending_orders() if order.is_queued and order.order_id in files]

    def _on_orders(self, orders: List[PrintOrder]) -> None:
        logger.info(f"Received {len(orders)} orders from order feed")

        printed = [order for order in orders if order.is_printed]
        pending = [order for order in orders if not order.is_printed]
        with self._lock:
            self._printed = printed
            self._pending = pending

        for order in printed:
            self._downloads.forget(order.order_id)

        if self._auto_queue:
            for order in pending:
                if order.is_awaiting_queue:
                    self._queue_order(order.order_id)

        for order in pending:
            if order.is_queued and order.document_url:
                self._downloads.request_download(order)

    def _queue_order(self, order_id: str) -> None:
        with self._lock:
            if order_id in self._queueing:
                return
            self._queueing.add(order_id)

        def run() -> None:
            try:
                logger.info(f"Adding paid order to queue: {order_id}")
                self._feed.update_order_status(order_id, OrderStatus.QUEUED.value)
            except Exception as e:
                logger.error(f"Failed to add order {order_id} to queue: {e}")
            finally:
                with self._lock:
                    self._queueing.discard(order_id)

        thread = threading.Thread(target=run, name=f"Enqueue-{order_id[:8]}", daemon=True)
        with self._lock:
            self._queue_threads = [t for t in self._queue_threads if t.is_alive()]
            self._queue_threads.append(thread)
        thread.start()

    def _mark_printed(self, order_id: str) -> None:
        self._feed.update_order_status(order_id, OrderStatus.PRINTED.value)

    def wait_until_idle(self, timeout: Optional[float] = None) -> None:
        """Wait for background enqueue threads and downloads (tests, shutdown)."""
        with self._lock:
            threads = list(self._queue_threads)
        for thread in threads:
            thread.join(timeout=timeout)
        self._downloads.wait_until_idle(timeout)

    # =========================================================================
    # PRINT QUEUE
    # =========================================================================

    def start_printing(self) -> bool:
        """
        Start a queue run over the ready orders.

        Returns:
            True if a run was started
        """
        if not self._settings_store.current().is_configured():
            logger.warning("Printer settings not configured, using the system default printer")

        ready = self.ready_orders()
        if not ready:
            logger.info("No orders ready to print")
            return False

        files: Dict[str, Path] = self._downloads.downloaded_files()
        return self._orchestrator.start_printing(ready, files)

    def stop_printing(self) -> None:
        self._orchestrator.stop_printing()

    def clear_completed_jobs(self) -> int:
        return self._orchestrator.clear_completed_jobs()

    # =========================================================================
    # PRINTERS & SETTINGS
    # =========================================================================

    def available_printers(self) -> List[str]:
        return self._directory.list_printers()

    def default_printer(self) -> Optional[str]:
        return self._directory.default_printer()

    def printer_assignment(self) -> PrinterAssignment:
        return self._settings_store.current()

    def update_printer_assignment(self, assignment: PrinterAssignment) -> PrinterAssignment:
        """
        Persist and apply a new printer assignment.

        Raises:
            SettingsError: if the assignment cannot be saved
        """
        self._settings_store.save(assignment)
        logger.info(f"Printer assignment updated: {assignment}")
        return assignment

