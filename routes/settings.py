"""
Printer and settings routes.

Handles:
- /api/printers - Installed printers and the system default
- /api/settings/printers - Read and update the printer assignment
"""

from flask import Blueprint, current_app, request

from core.exceptions import SettingsError
from logging_config import get_logger
from models.printer_settings import PrinterAssignment


# Module logger
logger = get_logger(__name__)

settings_bp = Blueprint("settings", __name__)

ASSIGNMENT_FIELDS = ("color_printer", "black_white_printer", "fallback_printer")


@settings_bp.route("/api/printers", methods=["GET"])
def list_printers():
    service = current_app.config["PRINT_SHOP"]
    return {
        "printers": service.available_printers(),
        "default": service.default_printer(),
    }


@settings_bp.route("/api/settings/printers", methods=["GET"])
def get_printer_settings():
    service = current_app.config["PRINT_SHOP"]
    assignment = service.printer_assignment()
    return {**assignment.to_dict(), "configured": assignment.is_configured()}


@settings_bp.route("/api/settings/printers", methods=["PUT"])
def update_printer_settings():
    """
    Replace the printer assignment.

    Unknown printer names are accepted (the printer may be offline right
    now) but reported back as warnings.
    """
    service = current_app.config["PRINT_SHOP"]

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return {"error": "Expected a JSON object"}, 400

    bad_fields = [key for key in ASSIGNMENT_FIELDS if key in payload and not isinstance(payload[key], (str, type(None)))]
    if bad_fields:
        return {"error": "Printer names must be strings", "fields": bad_fields}, 400

    assignment = PrinterAssignment.from_dict(payload)

    try:
        service.update_printer_assignment(assignment)
    except SettingsError as e:
        logger.error(f"Saving printer settings failed: {e}")
        return {"error": e.message}, 500

    known = set(service.available_printers())
    warnings = [
        f"Printer '{name}' is not installed"
        for name in (assignment.color_printer, assignment.black_white_printer, assignment.fallback_printer)
        if name and name not in known
    ]
    return {**assignment.to_dict(), "configured": assignment.is_configured(), "warnings": warnings}
