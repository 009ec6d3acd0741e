"""
Core module for the print shop agent.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy
- printer_directory: CUPS printer enumeration (lpstat)
- cups_backend: Print job hand-off to CUPS (lp)
- document_downloader: HTTP document fetching
"""

from .exceptions import (
    PrintShopError,
    PrinterUnavailableError,
    PrinterNotFoundError,
    PrintSubmissionError,
    PrintCancelledError,
    NoValidPagesError,
    UnsupportedDocumentError,
    DocumentDownloadError,
    OrderFeedError,
    SettingsError,
)
from .printer_directory import PrinterDirectory, PrinterInfo
from .cups_backend import PrintBackend, CupsPrintBackend
from .document_downloader import DocumentDownloader

__all__ = [
    "PrintShopError",
    "PrinterUnavailableError",
    "PrinterNotFoundError",
    "PrintSubmissionError",
    "PrintCancelledError",
    "NoValidPagesError",
    "UnsupportedDocumentError",
    "DocumentDownloadError",
    "OrderFeedError",
    "SettingsError",
    "PrinterDirectory",
    "PrinterInfo",
    "PrintBackend",
    "CupsPrintBackend",
    "DocumentDownloader",
]
