"""
Print submission for a single order.

The submitter turns (local document, order, printer assignment) into one
spooler job:

    1. Resolve the target printer
    2. Resolve the custom page selection (hard failure if it selects nothing)
    3. Build the device attribute set
    4. Write a page-filtered copy when only some pages are wanted
    5. Hand the file to the spooler and wait for acceptance

Every stage is reported through `on_progress`; the result is reported
exactly once through `on_complete` and returned as a PrintOutcome.
Failures never raise out of submit().

Usage:
    submitter = PrintSubmitter(PrinterDirectory(), CupsPrintBackend(), settings_store.load)
    outcome = submitter.submit(path, order, on_progress=print)
    if not outcome.success:
        print(outcome.message)
"""

from __future__ import annotations

import threading
from contextlib import ExitStack
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from core.cups_backend import PrintBackend
from core.exceptions import (
    NoValidPagesError,
    PrinterNotFoundError,
    PrintShopError,
    UnsupportedDocumentError,
)
from core.printer_directory import PrinterDirectory, PrinterInfo
from logging_config import get_order_logger
from models.order import PrintOrder
from models.printer_settings import PrinterAssignment
from modules.page_selector import is_blank_range, parse_page_range
from modules.pdf_analyzer import PDFAnalyzer
from modules.print_attributes import build_print_attributes

ProgressCallback = Callable[[str], None]
CompletionCallback = Callable[[bool, str], None]

SUPPORTED_EXTENSIONS = frozenset({".pdf"})


@dataclass(frozen=True)
class PrintOutcome:
    """Result of one submission attempt."""

    success: bool
    message: str
    printer_name: Optional[str] = None
    spooler_job_id: Optional[str] = None


class PrintSubmitter:
    """
    Submits one order at a time to a physical printer.

    Holds no long-lived locks or handles; every submit() call is a
    self-contained unit of work.
    """

    def __init__(
        self,
        directory: PrinterDirectory,
        backend: PrintBackend,
        assignment_provider: Callable[[], PrinterAssignment] = PrinterAssignment,
        pdf_analyzer: Optional[PDFAnalyzer] = None,
    ):
        """
        Args:
            directory: Printer enumeration and lookup
            backend: Spooler the jobs are handed to
            assignment_provider: Returns the current printer assignment;
                called on every submission so settings changes apply to
                the next order
            pdf_analyzer: PDF page counting and filtering
        """
        self._directory = directory
        self._backend = backend
        self._assignment_provider = assignment_provider
        self._pdf = pdf_analyzer or PDFAnalyzer()

    def resolve_printer(self, order: PrintOrder) -> PrinterInfo:
        """
        Pick the printer for an order.

        Raises:
            PrinterNotFoundError: assignment configured but this color mode
                has no slot, or no printer exists at all
        """
        order_logger = get_order_logger(order.order_id)
        assignment = self._assignment_provider()
        color_mode = order.print_settings.color_mode

        if assignment.is_configured():
            name = assignment.printer_for_color_mode(color_mode)
            if not name:
                raise PrinterNotFoundError(
                    f"No printer assigned for color mode {color_mode}", color_mode=color_mode
                )
            printer = self._directory.resolve(name)
            if printer is not None:
                return printer
            order_logger.warning(f"Assigned printer {name!r} not found, falling back to default printer")

        printer = self._directory.resolve_default()
        if printer is None:
            raise PrinterNotFoundError("No printer found")
        return printer

    def submit(
        self,
        file_path: Path,
        order: PrintOrder,
        on_progress: Optional[ProgressCallback] = None,
        on_complete: Optional[CompletionCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> PrintOutcome:
        outcome = self._submit(Path(file_path), order, on_progress or (lambda _stage: None), cancel_event)
        if on_complete is not None:
            on_complete(outcome.success, outcome.message)
        return outcome

    def _submit(
        self,
        file_path: Path,
        order: PrintOrder,
        progress: ProgressCallback,
        cancel_event: Optional[threading.Event],
    ) -> PrintOutcome:
        order_logger = get_order_logger(order.order_id)
        printer: Optional[PrinterInfo] = None

        try:
            order_logger.info(f"Starting print job for: {file_path.name}")
            progress("Preparing document for printing...")
            if file_path.suffix.lower() not in SUPPORTED_EXTENSIONS:
                raise UnsupportedDocumentError(f"Unsupported file format: {file_path.suffix or 'none'}")

            progress("Setting up printer...")
            printer = self.resolve_printer(order)
            order_logger.info(f"Using printer: {printer.name}")

            settings = order.print_settings
            pages = None
            if settings.is_custom_selection and not is_blank_range(settings.custom_pages):
                progress("Selecting pages...")
                total_pages = self._pdf.page_count(file_path)
                pages = parse_page_range(settings.custom_pages, total_pages)
                if not pages:
                    raise NoValidPagesError(settings.custom_pages, total_pages)
                if pages == set(range(1, total_pages + 1)):
                    pages = None
                else:
                    order_logger.info(f"Valid pages to print: {sorted(pages)}")

            progress("Configuring print settings...")
            attributes = build_print_attributes(settings)

            with ExitStack() as resources:
                print_path = file_path
                if pages is not None:
                    progress("Creating print job...")
                    print_path = resources.enter_context(self._pdf.filtered_copy(file_path, pages))

                progress("Sending to printer...")
                job_id = self._backend.submit(
                    print_path,
                    printer.name,
                    attributes,
                    job_name=order.document_name or file_path.name,
                    cancel_event=cancel_event,
                )

            progress("Print job submitted successfully")
            order_logger.info(f"Print job accepted by {printer.name} (job id: {job_id})")
            return PrintOutcome(
                success=True,
                message=f"Document printed successfully on {printer.name}",
                printer_name=printer.name,
                spooler_job_id=job_id,
            )

        except PrintShopError as e:
            order_logger.error(f"Print failed: {e}")
            return PrintOutcome(False, e.message, printer.name if printer else None)
        except Exception as e:
            order_logger.error(f"Print error for {file_path.name}: {e}", exc_info=True)
            return PrintOutcome(False, f"Print error: {e}", printer.name if printer else None)
