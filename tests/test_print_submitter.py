"""
Unit tests for the print submitter and the PDF helpers it relies on.

CUPS is replaced by FakeBackend/FakeDirectory; documents are real PDFs
written with pypdf.
"""

import threading
from unittest.mock import MagicMock

import pytest
from pypdf import PdfReader

from core.exceptions import UnsupportedDocumentError
from models.printer_settings import PrinterAssignment
from modules.pdf_analyzer import PDFAnalyzer
from modules.print_attributes import ColorMode
from services.print_submitter import PrintSubmitter

from conftest import FakeBackend, FakeDirectory, make_order


def page_widths(data: bytes, tmp_path):
    path = tmp_path / "submitted.pdf"
    path.write_bytes(data)
    return [int(page.mediabox.width) for page in PdfReader(str(path)).pages]


# Tests for PDFAnalyzer

class TestPDFAnalyzer:
    """Page counting and filtered copies."""

    def test_page_count(self, pdf_factory):
        assert PDFAnalyzer().page_count(pdf_factory(pages=4)) == 4

    def test_page_count_rejects_non_pdf(self, tmp_path):
        bogus = tmp_path / "bogus.pdf"
        bogus.write_bytes(b"this is not a pdf")

        with pytest.raises(UnsupportedDocumentError):
            PDFAnalyzer().page_count(bogus)

    def test_filtered_copy_keeps_selected_pages_in_order(self, pdf_factory):
        source = pdf_factory(pages=5)

        with PDFAnalyzer().filtered_copy(source, [5, 2, 3]) as copy_path:
            widths = [int(page.mediabox.width) for page in PdfReader(str(copy_path)).pages]
            assert copy_path != source

        assert widths == [101, 102, 104]

    def test_filtered_copy_removed_on_exit(self, pdf_factory):
        with PDFAnalyzer().filtered_copy(pdf_factory(pages=2), [1]) as copy_path:
            assert copy_path.exists()
        assert not copy_path.exists()

    def test_filtered_copy_removed_on_error(self, pdf_factory):
        with pytest.raises(RuntimeError):
            with PDFAnalyzer().filtered_copy(pdf_factory(pages=2), [1]) as copy_path:
                raise RuntimeError("boom")
        assert not copy_path.exists()


# Tests for PrintSubmitter

class TestPrintSubmitter:
    """One order -> one spooler job."""

    def make_submitter(self, backend=None, directory=None, assignment=None):
        assignment = assignment or PrinterAssignment()
        return PrintSubmitter(directory or FakeDirectory(), backend or FakeBackend(), lambda: assignment)

    def test_prints_whole_document(self, pdf_factory, tmp_path):
        backend = FakeBackend()
        source = pdf_factory(pages=3)
        progress = []

        outcome = self.make_submitter(backend).submit(source, make_order("A1"), on_progress=progress.append)

        assert outcome.success
        assert outcome.message == "Document printed successfully on Office_Color"
        assert outcome.spooler_job_id == "Office_Color-1"
        call = backend.calls[0]
        assert call["file_path"] == source
        assert call["job_name"] == "A1.pdf"
        assert page_widths(call["data"], tmp_path) == [100, 101, 102]
        assert progress[0] == "Preparing document for printing..."
        assert progress[-1] == "Print job submitted successfully"

    def test_custom_pages_print_filtered_copy(self, pdf_factory, tmp_path):
        backend = FakeBackend()
        order = make_order("A1", settings={"pages_to_print": "CUSTOM", "custom_pages": "1-2,5"})

        outcome = self.make_submitter(backend).submit(pdf_factory(pages=5), order)

        assert outcome.success
        assert page_widths(backend.calls[0]["data"], tmp_path) == [100, 101, 104]
        assert not backend.calls[0]["file_path"].exists()

    def test_custom_range_selecting_all_pages_prints_original(self, pdf_factory):
        backend = FakeBackend()
        source = pdf_factory(pages=3)
        order = make_order("A1", settings={"pages_to_print": "CUSTOM", "custom_pages": "1-10"})

        assert self.make_submitter(backend).submit(source, order).success
        assert backend.calls[0]["file_path"] == source

    def test_blank_custom_range_prints_all_pages(self, pdf_factory):
        backend = FakeBackend()
        source = pdf_factory(pages=3)
        order = make_order("A1", settings={"pages_to_print": "CUSTOM", "custom_pages": "  "})

        assert self.make_submitter(backend).submit(source, order).success
        assert backend.calls[0]["file_path"] == source

    def test_unparseable_custom_range_fails(self, pdf_factory):
        backend = FakeBackend()
        completions = []
        order = make_order("A1", settings={"pages_to_print": "CUSTOM", "custom_pages": "abc"})

        outcome = self.make_submitter(backend).submit(
            pdf_factory(pages=5), order, on_complete=lambda ok, msg: completions.append((ok, msg))
        )

        assert not outcome.success
        assert outcome.message == "No valid pages to print from range: abc"
        assert completions == [(False, "No valid pages to print from range: abc")]
        assert backend.calls == []

    def test_unsupported_extension_fails(self, tmp_path):
        doc = tmp_path / "letter.docx"
        doc.write_bytes(b"PK")

        outcome = self.make_submitter().submit(doc, make_order("A1"))

        assert not outcome.success
        assert outcome.message == "Unsupported file format: .docx"

    def test_no_printer_found(self, pdf_factory):
        directory = FakeDirectory(printers=(), default=None)

        outcome = self.make_submitter(directory=directory).submit(pdf_factory(), make_order("A1"))

        assert not outcome.success
        assert outcome.message == "No printer found"

    def test_backend_failure_becomes_outcome(self, pdf_factory):
        backend = FakeBackend(fail_with="lp failed (rc=1): printer offline")

        outcome = self.make_submitter(backend).submit(pdf_factory(), make_order("A1"))

        assert not outcome.success
        assert outcome.message == "lp failed (rc=1): printer offline"
        assert outcome.printer_name == "Office_Color"

    def test_unexpected_error_becomes_outcome(self, pdf_factory):
        backend = FakeBackend()
        backend.submit = MagicMock(side_effect=RuntimeError("kaput"))

        outcome = self.make_submitter(backend).submit(pdf_factory(), make_order("A1"))

        assert not outcome.success
        assert outcome.message == "Print error: kaput"

    def test_on_complete_called_once_on_success(self, pdf_factory):
        completions = []

        self.make_submitter().submit(
            pdf_factory(), make_order("A1"), on_complete=lambda ok, msg: completions.append(ok)
        )

        assert completions == [True]

    def test_cancel_event_passed_to_backend(self, pdf_factory):
        cancel = threading.Event()
        cancel.set()

        outcome = self.make_submitter().submit(pdf_factory(), make_order("A1"), cancel_event=cancel)

        assert not outcome.success
        assert outcome.message == "Print job cancelled"

    def test_attributes_follow_order_settings(self, pdf_factory):
        backend = FakeBackend()
        order = make_order("A1", settings={"color_mode": "BW", "copies": 3})

        self.make_submitter(backend).submit(pdf_factory(), order)

        attributes = backend.calls[0]["attributes"]
        assert attributes.copies == 3
        assert attributes.color_mode is ColorMode.MONOCHROME


class TestPrinterResolution:
    """Which printer an order goes to."""

    def make_submitter(self, assignment, directory=None):
        return PrintSubmitter(directory or FakeDirectory(), FakeBackend(), lambda: assignment)

    def test_unconfigured_uses_default_printer(self):
        printer = self.make_submitter(PrinterAssignment()).resolve_printer(make_order("A1"))
        assert printer.name == "Office_Color"

    def test_color_order_with_only_fallback(self):
        assignment = PrinterAssignment(fallback_printer="Office_BW")
        printer = self.make_submitter(assignment).resolve_printer(make_order("A1"))
        assert printer.name == "Office_BW"

    def test_monochrome_order_prefers_bw_slot(self):
        assignment = PrinterAssignment(black_white_printer="Office_BW", fallback_printer="Office_Color")
        order = make_order("A1", settings={"color_mode": "MONOCHROME"})
        assert self.make_submitter(assignment).resolve_printer(order).name == "Office_BW"

    def test_missing_slot_without_fallback_fails(self, pdf_factory):
        assignment = PrinterAssignment(color_printer="Office_Color")
        order = make_order("A1", settings={"color_mode": "MONOCHROME"})

        outcome = self.make_submitter(assignment).submit(pdf_factory(), order)

        assert not outcome.success
        assert outcome.message == "No printer assigned for color mode MONOCHROME"

    def test_uninstalled_assigned_printer_falls_back_to_default(self):
        assignment = PrinterAssignment(color_printer="Gone_Printer")
        printer = self.make_submitter(assignment).resolve_printer(make_order("A1"))
        assert printer.name == "Office_Color"

    def test_assignment_read_on_every_submission(self):
        current = {"assignment": PrinterAssignment(color_printer="Office_Color")}
        submitter = PrintSubmitter(FakeDirectory(), FakeBackend(), lambda: current["assignment"])

        assert submitter.resolve_printer(make_order("A1")).name == "Office_Color"
        current["assignment"] = PrinterAssignment(color_printer="Office_BW")
        assert submitter.resolve_printer(make_order("A1")).name == "Office_BW"
