"""
Services layer for the print shop agent.

This module contains the business logic services:
- PrintSubmitter: One order -> one CUPS job
- PrintQueueOrchestrator: Sequential queue runs and print statuses
- DownloadManager: Background document downloads
- PrintShopService: Order feed, downloads and queue wired together

Thread Model:
    Main Thread (Flask)
    ├── Queue thread (one per queue run)
    ├── Download threads (one per document)
    └── Callback / enqueue threads (one per order status write)

Status maps are published as immutable snapshots through SnapshotFeed.
"""

from .status_feed import SnapshotFeed, FeedView, UNCHANGED
from .settings_store import SettingsStore
from .order_feed import OrderFeed, InMemoryOrderFeed, Subscription
from .print_submitter import PrintSubmitter, PrintOutcome
from .queue_orchestrator import PrintQueueOrchestrator
from .download_manager import DownloadManager
from .print_shop import PrintShopService

__all__ = [
    "SnapshotFeed",
    "FeedView",
    "UNCHANGED",
    "SettingsStore",
    "OrderFeed",
    "InMemoryOrderFeed",
    "Subscription",
    "PrintSubmitter",
    "PrintOutcome",
    "PrintQueueOrchestrator",
    "DownloadManager",
    "PrintShopService",
]
