"""
Custom exceptions for the print shop agent.

Exception Hierarchy:
    PrintShopError (base)
    ├── PrinterUnavailableError - CUPS tools missing or not answering
    ├── PrinterNotFoundError    - No printer could be resolved for an order
    ├── PrintSubmissionError    - The spooler rejected the job
    │   └── PrintCancelledError - Submission interrupted by a stop request
    ├── NoValidPagesError       - Custom page range selects nothing
    ├── UnsupportedDocumentError - Document is not a printable PDF
    ├── DocumentDownloadError   - Transfer or filesystem failure while downloading
    ├── OrderFeedError          - Order store subscription misuse or failure
    └── SettingsError           - Printer settings cannot be persisted

Usage:
    Infrastructure code raises these. The submitter, downloader and queue
    orchestrator convert them into per-order statuses so one bad order
    never stops the rest of the run.
"""

from typing import Optional, Dict, Any


class PrintShopError(Exception):
    """
    Base exception for all print shop errors.

    All custom exceptions inherit from this class, allowing callers to catch
    all application-specific errors with a single except clause if needed.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# PRINTER ERRORS
# =============================================================================

class PrinterUnavailableError(PrintShopError):
    """
    The CUPS command-line tools are missing or did not answer.

    Typical causes:
    - cups-client not installed
    - LP_PATH / LPSTAT_PATH pointing at the wrong binary
    """

    def __init__(self, tool: str, reason: str = "not found in PATH"):
        message = f"CUPS not available: '{tool}' {reason}"
        details = {
            "tool": tool,
            "resolution": "Install the CUPS client tools or fix LP_PATH/LPSTAT_PATH in .env"
        }
        super().__init__(message, details)
        self.tool = tool


class PrinterNotFoundError(PrintShopError):
    """No printer could be resolved for an order."""

    def __init__(self, message: str = "No printer found", color_mode: Optional[str] = None):
        details = {"color_mode": color_mode} if color_mode else None
        super().__init__(message, details)
        self.color_mode = color_mode


class PrintSubmissionError(PrintShopError):
    """
    The print spooler did not accept the job.

    Success for a submission means acceptance by the spooler only; this is
    raised when even that did not happen.
    """

    def __init__(
        self,
        message: str,
        printer_name: Optional[str] = None,
        order_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if printer_name:
            error_details["printer"] = printer_name
        if order_id:
            error_details["order_id"] = order_id
        super().__init__(message, error_details)
        self.printer_name = printer_name
        self.order_id = order_id


class PrintCancelledError(PrintSubmissionError):
    """A stop request interrupted the submission before the spooler answered."""

    def __init__(self, printer_name: Optional[str] = None, order_id: Optional[str] = None):
        super().__init__("Print job cancelled", printer_name=printer_name, order_id=order_id)


# =============================================================================
# DOCUMENT ERRORS
# =============================================================================

class NoValidPagesError(PrintShopError):
    """A non-blank custom page range selected no page of the document."""

    def __init__(self, page_range: str, total_pages: int):
        message = f"No valid pages to print from range: {page_range}"
        details = {"page_range": page_range, "total_pages": total_pages}
        super().__init__(message, details)
        self.page_range = page_range
        self.total_pages = total_pages


class UnsupportedDocumentError(PrintShopError):
    """The downloaded document cannot be printed (wrong format or unreadable)."""


class DocumentDownloadError(PrintShopError):
    """Transfer, HTTP or filesystem failure while fetching a document."""

    def __init__(self, message: str, url: Optional[str] = None):
        details = {"url": url} if url else None
        super().__init__(message, details)
        self.url = url


# =============================================================================
# COLLABORATOR ERRORS
# =============================================================================

class OrderFeedError(PrintShopError):
    """The order feed was misused (double subscription) or failed."""


class SettingsError(PrintShopError):
    """Printer settings could not be written."""
