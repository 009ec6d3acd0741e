"""
Unit tests for the data models: orders, printer assignment, download and
print status entries, snapshots.
"""

import pytest

from models.download import DownloadPhase, DownloadState
from models.order import PrintOrder, PrintSettings
from models.print_job import PrintJobStatus, PrintStatus, Snapshot
from models.printer_settings import PrinterAssignment


class TestPrinterAssignment:
    """Color mode to printer resolution."""

    def test_color_with_only_fallback(self):
        assignment = PrinterAssignment(fallback_printer="Fallback")
        assert assignment.printer_for_color_mode("COLOR") == "Fallback"

    def test_monochrome_prefers_bw_slot(self):
        assignment = PrinterAssignment(black_white_printer="Mono", fallback_printer="Fallback")
        assert assignment.printer_for_color_mode("MONOCHROME") == "Mono"

    @pytest.mark.parametrize("mode", ["BW", "bw", "GRAYSCALE", "black_white", "Grey"])
    def test_monochrome_aliases(self, mode):
        assignment = PrinterAssignment(color_printer="Color", black_white_printer="Mono")
        assert assignment.printer_for_color_mode(mode) == "Mono"

    def test_unknown_mode_uses_fallback(self):
        assignment = PrinterAssignment(color_printer="Color", fallback_printer="Fallback")
        assert assignment.printer_for_color_mode("SEPIA") == "Fallback"

    def test_empty_slot_without_fallback(self):
        assignment = PrinterAssignment(color_printer="Color")
        assert assignment.printer_for_color_mode("MONOCHROME") == ""

    def test_is_configured(self):
        assert not PrinterAssignment().is_configured()
        assert PrinterAssignment(fallback_printer="X").is_configured()

    def test_from_dict_tolerates_garbage(self):
        assert PrinterAssignment.from_dict(None) == PrinterAssignment()
        assert PrinterAssignment.from_dict({"color_printer": None}) == PrinterAssignment()


class TestPrintOrder:
    """Order store documents map onto PrintOrder."""

    def test_from_dict(self):
        order = PrintOrder.from_dict({
            "orderId": "abc",
            "documentUrl": "https://x/doc.pdf",
            "documentName": "doc.pdf",
            "orderStatus": "QUEUED",
            "paid": True,
            "pageCount": "7",
            "printSettings": {"colorMode": "BW", "copies": 2, "pagesToPrint": "CUSTOM", "customPages": "1-2"},
        })

        assert order.order_id == "abc"
        assert order.page_count == 7
        assert order.is_queued
        assert order.print_settings.color_mode == "BW"
        assert order.print_settings.copies == 2
        assert order.print_settings.is_custom_selection

    def test_missing_fields_use_defaults(self):
        order = PrintOrder.from_dict({"orderId": "x", "pageCount": "many"})

        assert order.page_count == 0
        assert not order.paid
        assert order.print_settings == PrintSettings()

    def test_round_trip_shape(self):
        order = PrintOrder(order_id="x", paid=True, order_status="SUBMITTED")
        assert PrintOrder.from_dict(order.to_dict()) == order

    def test_status_predicates(self):
        assert PrintOrder("a", paid=True, order_status="SUBMITTED").is_awaiting_queue
        assert not PrintOrder("a", paid=False, order_status="SUBMITTED").is_awaiting_queue
        assert PrintOrder("a", order_status="PRINTED").is_printed

    def test_copies_clamped(self):
        assert PrintSettings(copies=0).copies == 1


class TestDownloadState:

    def test_progress_clamped(self):
        assert DownloadState.downloading(1.7).progress == 1.0
        assert DownloadState.downloading(-1).progress == 0.0

    def test_terminal_phases(self, tmp_path):
        assert DownloadState.completed(tmp_path / "a.pdf").is_terminal
        assert DownloadState.error("boom").is_terminal
        assert not DownloadState.downloading(0.5).is_terminal
        assert DownloadState.idle().phase is DownloadPhase.IDLE

    def test_error_message_defaults(self):
        assert DownloadState.error("").message == "Download failed"


class TestPrintJobStatus:

    @pytest.mark.parametrize("status,terminal", [
        (PrintStatus.WAITING, False),
        (PrintStatus.PRINTING, False),
        (PrintStatus.COMPLETED, True),
        (PrintStatus.FAILED, True),
        (PrintStatus.CANCELLED, True),
    ])
    def test_terminal_statuses(self, status, terminal):
        assert PrintJobStatus("a", status).is_terminal is terminal

    def test_with_progress_keeps_status(self):
        entry = PrintJobStatus("a", PrintStatus.PRINTING, "Starting print job...")
        updated = entry.with_progress("Sending to printer...")

        assert updated.status is PrintStatus.PRINTING
        assert updated.message == "Starting print job..."
        assert updated.progress == "Sending to printer..."

    def test_to_dict(self):
        data = PrintJobStatus("a", PrintStatus.FAILED, "File not found").to_dict()
        assert data["status"] == "FAILED"
        assert data["message"] == "File not found"


class TestSnapshot:

    def test_snapshot_is_read_only(self):
        source = {"a": 1}
        snapshot = Snapshot(3, source)
        source["b"] = 2

        assert snapshot.version == 3
        assert "b" not in snapshot
        with pytest.raises(TypeError):
            snapshot.items["c"] = 3

    def test_mapping_helpers(self):
        snapshot = Snapshot(1, {"a": 1, "b": 2})

        assert len(snapshot) == 2
        assert sorted(snapshot) == ["a", "b"]
        assert snapshot.get("a") == 1
        assert snapshot.get("z") is None
