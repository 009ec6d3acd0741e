"""
Data models for the print shop agent.

This module contains immutable dataclasses for:
- PrintOrder: Customer order as delivered by the order feed
- PrintSettings: Per-order print configuration
- PrinterAssignment: Color mode to printer mapping
- DownloadState: Document download progress
- PrintJobStatus: Per-order print queue status
- Snapshot: Versioned, read-only collection published by status feeds

All dataclasses are frozen so they can be handed between threads freely.
"""

from .order import PrintOrder, PrintSettings, OrderStatus, PageSelection
from .printer_settings import PrinterAssignment, MONOCHROME_ALIASES
from .download import DownloadState, DownloadPhase
from .print_job import PrintJobStatus, PrintStatus, Snapshot, TERMINAL_STATUSES

__all__ = [
    # Order models
    "PrintOrder",
    "PrintSettings",
    "OrderStatus",
    "PageSelection",
    # Printer models
    "PrinterAssignment",
    "MONOCHROME_ALIASES",
    # Download models
    "DownloadState",
    "DownloadPhase",
    # Print queue models
    "PrintJobStatus",
    "PrintStatus",
    "Snapshot",
    "TERMINAL_STATUSES",
]
