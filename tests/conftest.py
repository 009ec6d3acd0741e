"""
Shared fixtures and fakes for the print shop tests.

Fakes stand in for CUPS, the network and the print submitter so every
component can be tested on a machine without printers.
"""

import threading
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from pypdf import PdfWriter

from core.cups_backend import PrintBackend
from core.exceptions import PrintCancelledError, PrintSubmissionError
from core.printer_directory import PrinterInfo
from models.download import DownloadState
from models.order import PrintOrder, PrintSettings
from services.print_submitter import PrintOutcome


# Fakes

class FakeDirectory:
    """PrinterDirectory stand-in with a fixed printer list."""

    def __init__(self, printers=("Office_Color", "Office_BW"), default: Optional[str] = "Office_Color"):
        self.printers = list(printers)
        self.default = default

    def list_printers(self) -> List[str]:
        return list(self.printers)

    def default_printer(self) -> Optional[str]:
        return self.default

    def resolve(self, name):
        if name and name in self.printers:
            return PrinterInfo(name=name, is_default=(name == self.default))
        return None

    def resolve_default(self):
        if self.default:
            return PrinterInfo(name=self.default, is_default=True)
        if self.printers:
            return PrinterInfo(name=self.printers[0])
        return None


class FakeBackend(PrintBackend):
    """Records submissions instead of printing."""

    def __init__(self, fail_with: Optional[str] = None):
        self.fail_with = fail_with
        self.calls: List[Dict] = []

    def submit(self, file_path, printer_name, attributes, *, job_name, cancel_event=None):
        with Path(file_path).open("rb") as handle:
            data = handle.read()
        self.calls.append({
            "file_path": Path(file_path),
            "printer_name": printer_name,
            "attributes": attributes,
            "job_name": job_name,
            "data": data,
        })
        if cancel_event is not None and cancel_event.is_set():
            raise PrintCancelledError(printer_name=printer_name)
        if self.fail_with:
            raise PrintSubmissionError(self.fail_with, printer_name=printer_name)
        return f"{printer_name}-{len(self.calls)}"


class FakeSubmitter:
    """
    PrintSubmitter stand-in for orchestrator tests.

    Outcomes are scripted per order id (default: success). An order listed
    in `block` waits on its Event before returning, so tests can observe
    the queue mid-run.
    """

    def __init__(self, outcomes: Optional[Dict[str, PrintOutcome]] = None, block: Optional[Dict[str, threading.Event]] = None):
        self.outcomes = outcomes or {}
        self.block = block or {}
        self.started: Dict[str, threading.Event] = {}
        self.calls: List[str] = []
        self._lock = threading.Lock()

    def started_event(self, order_id: str) -> threading.Event:
        with self._lock:
            return self.started.setdefault(order_id, threading.Event())

    def submit(self, file_path, order, on_progress=None, on_complete=None, cancel_event=None):
        with self._lock:
            self.calls.append(order.order_id)
        if on_progress:
            on_progress("Sending to printer...")
        self.started_event(order.order_id).set()

        gate = self.block.get(order.order_id)
        if gate is not None:
            gate.wait(timeout=5.0)

        outcome = self.outcomes.get(
            order.order_id,
            PrintOutcome(True, "Document printed successfully on Office_Color", "Office_Color", "job-1"),
        )
        if on_complete:
            on_complete(outcome.success, outcome.message)
        return outcome


class InstantDownloader:
    """DocumentDownloader stand-in that writes a 2-page PDF at once; URLs containing 'broken' fail."""

    def __init__(self, download_dir: Path):
        self.download_dir = download_dir
        self.requests: List[str] = []

    def download_document(self, url, file_name, cancel_event=None):
        self.requests.append(url)
        yield DownloadState.downloading(0.0), None
        if "broken" in url:
            yield DownloadState.error("HTTP 500 for " + url), None
            return
        self.download_dir.mkdir(parents=True, exist_ok=True)
        path = write_pdf(self.download_dir / file_name, 2)
        yield DownloadState.completed(path), path


# Helpers

def make_order(order_id: str, **overrides) -> PrintOrder:
    """Paid, QUEUED order with sensible defaults."""
    settings = overrides.pop("print_settings", None) or PrintSettings(**overrides.pop("settings", {}))
    fields = dict(
        order_id=order_id,
        document_url=f"https://files.example.com/{order_id}.pdf",
        document_name=f"{order_id}.pdf",
        order_status="QUEUED",
        paid=True,
        created_at="2024-05-01T10:00:00Z",
        print_settings=settings,
    )
    fields.update(overrides)
    return PrintOrder(**fields)


def write_pdf(path: Path, pages: int) -> Path:
    """Write a PDF with `pages` blank pages of distinct widths."""
    writer = PdfWriter()
    for index in range(pages):
        writer.add_blank_page(width=100 + index, height=200)
    with path.open("wb") as handle:
        writer.write(handle)
    return path


# Fixtures

@pytest.fixture
def fake_directory():
    return FakeDirectory()


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def pdf_factory(tmp_path):
    """Create PDFs with a given page count inside tmp_path."""
    def _make(name: str = "document.pdf", pages: int = 5) -> Path:
        return write_pdf(tmp_path / name, pages)
    return _make
