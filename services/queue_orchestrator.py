"""
Print queue orchestration with one background worker per queue run.

A queue run takes a fixed, ordered list of ready orders plus their
downloaded files and prints them strictly one after another. The
orchestrator owns the per-order status map and publishes every change
through a status feed.

State per order:
    WAITING -> PRINTING -> (COMPLETED | FAILED)
    WAITING | PRINTING -> CANCELLED          (stop_printing)

Guarantees:
    - One run at a time per orchestrator; start_printing during a run is
      ignored with a warning
    - All admitted orders show WAITING, as one snapshot, before
      start_printing returns
    - Terminal entries are never overwritten within a run; only
      clear_completed_jobs removes them, only a new run re-admits them
    - A failing order never stops the others

Thread Model:
    Caller thread (UI / HTTP)
    ├── start_printing / stop_printing / clear_completed_jobs
    Queue thread (one per run)
    └── submits orders sequentially, sleeps between jobs on the run's
        cancel event so a stop request interrupts the pause at once
    Callback threads (one per printed order)
    └── run the order-printed hook; failures are only logged

Usage:
    orchestrator = PrintQueueOrchestrator(submitter, on_order_printed=mark_printed)
    orchestrator.start_printing(ready_orders, downloaded_files)
    snapshot = orchestrator.status_feed.current()
    orchestrator.stop_printing()
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from logging_config import get_logger, get_order_logger, set_thread_name
from models.order import PrintOrder
from models.print_job import PrintJobStatus, PrintStatus, Snapshot
from services.print_submitter import PrintSubmitter
from services.status_feed import UNCHANGED, FeedView, SnapshotFeed


# Module logger
logger = get_logger(__name__)

CANCELLED_MESSAGE = "Cancelled by user"
FILE_NOT_FOUND_MESSAGE = "File not found"
WAITING_MESSAGE = "Waiting in queue..."


class _QueueRun:
    """Everything one queue run owns. Never shared between runs."""

    def __init__(self, run_id: int, orders: List[PrintOrder], files: Mapping[str, Path]):
        self.run_id = run_id
        self.orders = tuple(orders)
        self.files: Dict[str, Path] = {key: Path(value) for key, value in files.items()}
        self.cancel_event = threading.Event()
        self.thread: Optional[threading.Thread] = None


class PrintQueueOrchestrator:
    """
    Runs queue runs and owns the print status map.

    Attributes:
        status_feed: read-only view of the per-order status snapshots
        is_running: whether a run is active
    """

    def __init__(
        self,
        submitter: PrintSubmitter,
        on_order_printed: Optional[Callable[[str], None]] = None,
        inter_job_delay_seconds: float = 2.0,
        stop_join_timeout_seconds: float = 10.0,
    ):
        """
        Args:
            submitter: Print submitter used for every order
            on_order_printed: Hook called (on its own thread) with the order
                id of every order that reached COMPLETED
            inter_job_delay_seconds: Pause after each print attempt
            stop_join_timeout_seconds: How long start_printing waits for a
                stopped run's worker to wind down
        """
        self._submitter = submitter
        self._on_order_printed = on_order_printed
        self._delay = inter_job_delay_seconds
        self._join_timeout = stop_join_timeout_seconds

        self._feed: SnapshotFeed[PrintJobStatus] = SnapshotFeed("print-status")
        self._lock = threading.RLock()
        self._running = False
        self._run: Optional[_QueueRun] = None
        self._run_counter = 0
        self._callback_threads: List[threading.Thread] = []

        logger.info(f"PrintQueueOrchestrator initialized (inter-job delay: {inter_job_delay_seconds}s)")

    @property
    def status_feed(self) -> FeedView[PrintJobStatus]:
        return self._feed.view()

    @property
    def is_running(self) -> bool:
        return self._running

    def statuses(self) -> Snapshot[PrintJobStatus]:
        return self._feed.current()

    # =========================================================================
    # PUBLIC CONTROL
    # =========================================================================

    def start_printing(self, orders: Iterable[PrintOrder], files: Mapping[str, Path]) -> bool:
        """
        Start a queue run over `orders`, in the given order.

        Args:
            orders: Ready orders; duplicates (same order id) are dropped
            files: Downloaded document per order id

        Returns:
            True if a run was started, False if the request was ignored
        """
        unique: List[PrintOrder] = []
        seen = set()
        for order in orders:
            if order.order_id in seen:
                logger.warning(f"Order {order.order_id} listed twice, printing it once")
                continue
            seen.add(order.order_id)
            unique.append(order)

        if not unique:
            logger.info("No orders to print, queue not started")
            return False

        with self._lock:
            if self._running:
                logger.warning("Print queue already running, ignoring start request")
                return False
            previous = self._run

        # A stopped run may still be unwinding its last submission
        if previous is not None and previous.thread is not None and previous.thread.is_alive():
            previous.thread.join(timeout=self._join_timeout)
            if previous.thread.is_alive():
                logger.warning("Previous print queue has not stopped yet, ignoring start request")
                return False

        with self._lock:
            if self._running:
                logger.warning("Print queue already running, ignoring start request")
                return False

            self._run_counter += 1
            run = _QueueRun(self._run_counter, unique, files)
            self._run = run
            self._running = True

            logger.info(f"Starting print queue with {len(unique)} orders")
            self._feed.update(lambda items: items.update({
                order.order_id: PrintJobStatus(order.order_id, PrintStatus.WAITING, WAITING_MESSAGE)
                for order in unique
            }))
            logger.info(f"Initialized {len(unique)} orders in print queue")

            run.thread = threading.Thread(
                target=self._process_queue,
                args=(run,),
                name="Queue",
                daemon=True,
            )
            run.thread.start()

        return True

    def stop_printing(self) -> None:
        """
        Stop the active run and cancel every WAITING or PRINTING order.

        Safe to call any number of times.
        """
        with self._lock:
            run = self._run
            if run is not None:
                run.cancel_event.set()
            if self._running:
                logger.info("Stopping print queue")
            self._running = False

        def cancel_pending(items: Dict[str, PrintJobStatus]):
            changed = False
            for order_id, entry in items.items():
                if entry.status in (PrintStatus.WAITING, PrintStatus.PRINTING):
                    logger.info(f"Cancelling order: {order_id}")
                    items[order_id] = PrintJobStatus(order_id, PrintStatus.CANCELLED, CANCELLED_MESSAGE)
                    changed = True
            return None if changed else UNCHANGED

        self._feed.update(cancel_pending)

    def clear_completed_jobs(self) -> int:
        """
        Remove COMPLETED, FAILED and CANCELLED entries from the status map.

        Returns:
            Number of entries removed
        """
        removed = 0

        def drop_terminal(items: Dict[str, PrintJobStatus]):
            nonlocal removed
            kept = {key: entry for key, entry in items.items() if not entry.is_terminal}
            removed = len(items) - len(kept)
            return kept if removed else UNCHANGED

        self._feed.update(drop_terminal)
        if removed:
            logger.info(f"Cleared {removed} finished print jobs")
        return removed

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the current run and pending order-printed hooks to finish.

        Returns:
            True if everything finished within `timeout`
        """
        with self._lock:
            run = self._run
        if run is not None and run.thread is not None:
            run.thread.join(timeout=timeout)

        # Hooks are spawned by the queue thread, so collect them after it ends
        with self._lock:
            callbacks = list(self._callback_threads)
        for thread in callbacks:
            thread.join(timeout=timeout)

        threads = callbacks + ([run.thread] if run is not None and run.thread is not None else [])
        return not any(thread.is_alive() for thread in threads)

    def shutdown(self, timeout: float = 5.0) -> None:
        """Stop any active run and wait for worker threads. Call on application exit."""
        if self._running:
            self.stop_printing()
        if not self.wait_until_idle(timeout):
            logger.warning("Print queue threads did not finish in time")
        logger.info("Print queue shutdown complete")

    # =========================================================================
    # QUEUE THREAD
    # =========================================================================

    def _process_queue(self, run: _QueueRun) -> None:
        set_thread_name("Queue")
        total = len(run.orders)
        logger.info(f"Processing {total} orders in queue (run {run.run_id})")

        try:
            for index, order in enumerate(run.orders, start=1):
                if run.cancel_event.is_set():
                    logger.info("Print queue stopped, breaking out of processing")
                    break

                logger.info(f"Processing order {index}/{total}: {order.order_id}")
                attempted = self._process_order(run, order)

                if attempted and index < total:
                    logger.info(f"Waiting {self._delay}s before next print job...")
                    if run.cancel_event.wait(self._delay):
                        logger.info("Print queue stopped during inter-job delay")
                        break

            logger.info("Queue processing completed")

        except Exception as e:
            logger.error(f"Print queue processing error: {e}", exc_info=True)
            self._fail_remaining(f"Print queue error: {e}")

        finally:
            with self._lock:
                if self._run is run:
                    self._running = False
            logger.info("Print queue finished")

    def _process_order(self, run: _QueueRun, order: PrintOrder) -> bool:
        """
        Print one order. Returns True if the submitter was invoked.
        """
        order_id = order.order_id
        order_logger = get_order_logger(order_id)

        file_path = run.files.get(order_id)
        if file_path is None or not file_path.exists():
            order_logger.warning(f"File not found for order: {order_id}")
            self._transition(order_id, PrintStatus.FAILED, FILE_NOT_FOUND_MESSAGE)
            return False

        order_logger.info(f"Starting print job for: {order.document_name}")
        if not self._transition(order_id, PrintStatus.PRINTING, "Starting print job..."):
            return False

        try:
            outcome = self._submitter.submit(
                file_path,
                order,
                on_progress=lambda stage: self._update_progress(order_id, stage),
                cancel_event=run.cancel_event,
            )
        except Exception as e:
            order_logger.error(f"Print error for order {order_id}: {e}", exc_info=True)
            self._transition(order_id, PrintStatus.FAILED, f"Error: {e}")
            return True

        status = PrintStatus.COMPLETED if outcome.success else PrintStatus.FAILED
        order_logger.info(f"Print job finished for {order_id}: {status.value} - {outcome.message}")

        if self._transition(order_id, status, outcome.message or "Unknown error"):
            if outcome.success:
                self._notify_order_printed(order_id)
        elif outcome.success:
            order_logger.warning(
                f"Spooler accepted order {order_id} after it was cancelled; order left unprinted"
            )
        return True

    def _fail_remaining(self, message: str) -> None:
        def fail_pending(items: Dict[str, PrintJobStatus]):
            changed = False
            for order_id, entry in items.items():
                if entry.status in (PrintStatus.WAITING, PrintStatus.PRINTING):
                    items[order_id] = PrintJobStatus(order_id, PrintStatus.FAILED, message)
                    changed = True
            return None if changed else UNCHANGED

        self._feed.update(fail_pending)

    # =========================================================================
    # STATUS MAP WRITES
    # =========================================================================

    def _transition(self, order_id: str, status: PrintStatus, message: str) -> bool:
        """
        Move an order to `status` unless it already reached a terminal state.

        Returns:
            True if the transition was applied
        """
        applied = False

        def mutate(items: Dict[str, PrintJobStatus]):
            nonlocal applied
            current = items.get(order_id)
            if current is not None and current.is_terminal:
                return UNCHANGED
            items[order_id] = PrintJobStatus(order_id, status, message)
            applied = True
            return None

        self._feed.update(mutate)
        return applied

    def _update_progress(self, order_id: str, progress: str) -> None:
        get_order_logger(order_id).debug(f"Print progress: {progress}")

        def mutate(items: Dict[str, PrintJobStatus]):
            current = items.get(order_id)
            if current is None or current.status is not PrintStatus.PRINTING:
                return UNCHANGED
            items[order_id] = current.with_progress(progress)
            return None

        self._feed.update(mutate)

    # =========================================================================
    # ORDER-PRINTED HOOK
    # =========================================================================

    def _notify_order_printed(self, order_id: str) -> None:
        if self._on_order_printed is None:
            return

        hook = self._on_order_printed

        def run_hook() -> None:
            try:
                logger.info(f"Marking order {order_id} as printed")
                hook(order_id)
            except Exception as e:
                logger.error(f"Failed to update status for {order_id}: {e}")

        thread = threading.Thread(target=run_hook, name=f"Callback-{order_id[:8]}", daemon=True)
        with self._lock:
            self._callback_threads = [t for t in self._callback_threads if t.is_alive()]
            self._callback_threads.append(thread)
        thread.start()
