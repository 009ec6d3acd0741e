"""
Print shop agent: Flask entry point.

create_app() loads configuration, builds the print pipeline, subscribes
it to the order feed and exposes it through the JSON blueprints.

Threads:
    Main Thread
    ├── Flask request handling (operator API)
    └── Cleanup on shutdown

    Download Threads (one per order document)
    Queue Thread (one per queue run, orders printed strictly in sequence)
    Callback Threads (order status writes back to the order feed)

No global singletons: every collaborator is constructed here and handed
to the next one.
"""

from __future__ import annotations

import atexit
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Flask
from werkzeug.exceptions import HTTPException

from logging_config import setup_logging, get_logger
from core.cups_backend import CupsPrintBackend
from core.document_downloader import DocumentDownloader
from core.exceptions import PrintShopError
from core.printer_directory import PrinterDirectory
from services.download_manager import DownloadManager
from services.order_feed import InMemoryOrderFeed, OrderFeed
from services.print_shop import PrintShopService
from services.print_submitter import PrintSubmitter
from services.settings_store import SettingsStore
from routes import register_blueprints


logger = get_logger(__name__)


def _get_base_path() -> Path:
    """Directory holding .env: next to the executable when frozen, else next to app.py."""
    if getattr(sys, 'frozen', False):
        return Path(sys.executable).parent
    else:
        return Path(__file__).parent


def build_print_shop(config: Dict[str, Any], order_feed: OrderFeed) -> PrintShopService:
    """
    Construct the print pipeline from configuration values.

    Args:
        config: Flask config (or any mapping with the same keys)
        order_feed: Where orders come from

    Returns:
        PrintShopService, not yet subscribed to the feed
    """
    directory = PrinterDirectory(lpstat_path=config["LPSTAT_PATH"])
    backend = CupsPrintBackend(lp_path=config["LP_PATH"])
    settings_store = SettingsStore(config["PRINTER_SETTINGS_FILE"])
    submitter = PrintSubmitter(directory, backend, settings_store.current)

    downloader = DocumentDownloader(
        config["DOWNLOAD_DIR"],
        chunk_size=config["DOWNLOAD_CHUNK_SIZE"],
        timeout_seconds=config["DOWNLOAD_TIMEOUT_SECONDS"],
    )
    downloads = DownloadManager(downloader)

    return PrintShopService(
        order_feed,
        downloads,
        submitter,
        directory,
        settings_store,
        inter_job_delay_seconds=config["INTER_JOB_DELAY_SECONDS"],
        auto_queue_paid_orders=config["AUTO_QUEUE_PAID_ORDERS"],
    )

def _load_environment() -> None:
    """Read .env from the application directory, falling back to the working directory."""
    env_file = _get_base_path() / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)


def _configure_logging(app: Flask) -> None:
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    app_logger = setup_logging(
        log_level=log_level,
        log_dir=Path(app.config["LOG_DIR"]),
        enable_file_logging=app.config.get("ENVIRONMENT") == "production",
    )
    # Flask's own messages go through the same handlers
    app.logger.handlers = app_logger.handlers
    app.logger.setLevel(log_level)


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(PrintShopError)
    def handle_print_shop_error(e):
        logger.error(f"Request failed: {e}")
        return {"error": e.message, "details": e.details}, 500

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return {"error": e.description}, e.code

    @app.errorhandler(500)
    def handle_server_error(e):
        logger.error(f"Unhandled error: {e}", exc_info=True)
        return {"error": "An unexpected error occurred"}, 500


def create_app(
    config_overrides: Optional[Dict[str, Any]] = None,
    print_shop: Optional[PrintShopService] = None,
    order_feed: Optional[OrderFeed] = None,
) -> Flask:
    """
    Build the Flask app and start the print shop service behind it.

    The config class is named by PRINT_SHOP_CONFIG (default config.Config).

    Args:
        config_overrides: Values applied on top of the config class
        print_shop: Pre-built service (tests); built from config otherwise
        order_feed: Order source; an in-memory feed when omitted

    Returns:
        Configured Flask application

    Raises:
        OrderFeedError: If the order feed cannot be subscribed to
    """
    _load_environment()

    app = Flask(__name__)
    app.config.from_object(os.environ.get("PRINT_SHOP_CONFIG", "config.Config"))
    if config_overrides:
        app.config.update(config_overrides)

    _configure_logging(app)
    logger.info(f"Starting print shop agent in {app.config.get('ENVIRONMENT')} mode")

    if order_feed is None:
        order_feed = InMemoryOrderFeed()
    if print_shop is None:
        print_shop = build_print_shop(app.config, order_feed)

    try:
        print_shop.start()
    except PrintShopError as e:
        logger.error(f"Print shop service failed to start: {e}")
        raise

    app.config["ORDER_FEED"] = order_feed
    app.config["PRINT_SHOP"] = print_shop
    logger.info("Print shop service started")

    if not app.config.get("TESTING"):
        atexit.register(print_shop.close)

    register_blueprints(app)
    _register_error_handlers(app)

    logger.info("Application ready")
    return app


if __name__ == "__main__":
    application = create_app()
    # The reloader would start a second set of worker threads
    application.run(debug=os.environ.get("FLASK_DEBUG", "1") == "1", use_reloader=False)
