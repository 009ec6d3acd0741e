"""
API routes (JSON endpoints).

Handles:
- /api/queue - Print queue status and control (start, stop, clear)
- /api/orders - Order listing and intake
- /api/downloads - Download states and retries
- /health - Health check endpoint
"""

from flask import Blueprint, current_app, request

from core.exceptions import OrderFeedError
from logging_config import get_logger
from models.order import PrintOrder


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


def _print_shop():
    return current_app.config["PRINT_SHOP"]


@api_bp.route("/api/queue", methods=["GET"])
def queue_status():
    """Current print status snapshot."""
    service = _print_shop()
    snapshot = service.orchestrator.statuses()
    return {
        "version": snapshot.version,
        "running": service.is_printing,
        "statuses": {order_id: entry.to_dict() for order_id, entry in snapshot.items.items()},
    }


@api_bp.route("/api/queue/start", methods=["POST"])
def queue_start():
    """
    Start printing all ready orders.

    409 if a queue run is already active, 400 if nothing is ready.
    """
    service = _print_shop()

    if service.is_printing:
        return {"started": False, "error": "Print queue already running"}, 409

    ready = service.ready_orders()
    if not ready:
        return {"started": False, "error": "No orders ready to print"}, 400

    started = service.start_printing()
    if not started:
        return {"started": False, "error": "Print queue already running"}, 409

    logger.info(f"Print queue started from API with {len(ready)} ready orders")
    return {"started": True, "orders": [order.order_id for order in ready]}, 202


@api_bp.route("/api/queue/stop", methods=["POST"])
def queue_stop():
    _print_shop().stop_printing()
    return {"stopped": True}


@api_bp.route("/api/queue/clear", methods=["POST"])
def queue_clear():
    removed = _print_shop().clear_completed_jobs()
    return {"removed": removed}


@api_bp.route("/api/orders", methods=["GET"])
def list_orders():
    service = _print_shop()
    return {
        "pending": [order.to_dict() for order in service.pending_orders()],
        "printed": [order.to_dict() for order in service.printed_orders()],
        "ready": [order.order_id for order in service.ready_orders()],
    }


@api_bp.route("/api/orders", methods=["POST"])
def add_orders():
    """
    Order intake for the in-process order feed.

    Accepts one order document or a list of them, in the order store's
    camelCase shape.
    """
    feed = current_app.config.get("ORDER_FEED")
    if feed is None or not hasattr(feed, "add_orders"):
        return {"error": "Order intake not available"}, 501

    payload = request.get_json(silent=True)
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list) or not all(isinstance(item, dict) for item in payload):
        return {"error": "Expected an order object or a list of order objects"}, 400

    orders = [PrintOrder.from_dict(item) for item in payload]
    missing_id = [index for index, order in enumerate(orders) if not order.order_id]
    if missing_id:
        return {"error": "Every order needs an orderId", "invalid": missing_id}, 400

    try:
        count = feed.add_orders(orders)
    except OrderFeedError as e:
        logger.error(f"Order intake failed: {e}")
        return {"error": e.message}, 502

    return {"accepted": count}, 201


@api_bp.route("/api/downloads", methods=["GET"])
def list_downloads():
    snapshot = _print_shop().downloads.states()
    return {
        "version": snapshot.version,
        "downloads": {order_id: state.to_dict() for order_id, state in snapshot.items.items()},
    }


@api_bp.route("/api/downloads/<order_id>/retry", methods=["POST"])
def retry_download(order_id: str):
    if _print_shop().downloads.retry(order_id):
        return {"retrying": True}, 202
    return {"retrying": False, "error": "Download has not failed or order is unknown"}, 409


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    service = current_app.config.get("PRINT_SHOP")
    if service is None:
        health_status["checks"]["print_shop"] = "not_available"
        health_status["status"] = "degraded"
        return health_status, 503

    health_status["checks"]["print_shop"] = "ok"
    health_status["checks"]["print_queue"] = "running" if service.is_printing else "idle"

    # Check printers
    try:
        printers = service.available_printers()
    except Exception as e:
        logger.error(f"Printer check failed: {e}")
        printers = []
    if printers:
        health_status["checks"]["printers"] = len(printers)
    else:
        health_status["checks"]["printers"] = "none_found"
        health_status["status"] = "degraded"

    # Check printer assignment
    if service.printer_assignment().is_configured():
        health_status["checks"]["printer_assignment"] = "configured"
    else:
        health_status["checks"]["printer_assignment"] = "not_configured"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
