"""
Logging setup for the print shop agent.

Queue runs, downloads and order status writes happen on their own
threads, so every record is stamped with the name of the thread that
wrote it. Worker threads rename themselves (Queue, Download-<id>,
Callback-<id>) with set_thread_name().

Handlers:
    - stdout, always
    - print_shop.log, rotating, when file logging is enabled
    - print_shop_error.log, rotating, ERROR and above only

Record layout:
    2025-12-03 10:15:31 [INFO    ] [Download-a1b2c3d4] print_shop.services.download_manager - Download complete
    2025-12-03 10:15:32 [ERROR   ] [Queue] print_shop.order.a1b2c3d4 - Print failed: lp failed (rc=1)

Usage:
    setup_logging(log_level=logging.INFO, log_dir=Path("logs"))
    logger = get_logger(__name__)
    order_logger = get_order_logger(order.order_id)
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


APP_LOGGER_NAME = "print_shop"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class ThreadContextFilter(logging.Filter):
    """Stamps thread_name and thread_id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.thread_name = threading.current_thread().name
        record.thread_id = threading.get_ident()
        return True


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter, thread_filter: logging.Filter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(thread_filter)
    return handler


def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure the application logger.

    Safe to call more than once: existing handlers are replaced, so each
    app built by the test suite starts from a clean logger.

    Args:
        app_name: Name of the application logger
        log_level: Minimum level for console and application log
        log_dir: Where log files go (default: ./logs next to this file)
        enable_file_logging: Write rotating log files as well as stdout

    Returns:
        The configured application logger
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    thread_filter = ThreadContextFilter()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(log_level)
    console.setFormatter(formatter)
    console.addFilter(thread_filter)
    logger.addHandler(console)

    if enable_file_logging:
        log_dir = log_dir or Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log = log_dir / f"{app_name}.log"
        logger.addHandler(_rotating_handler(app_log, log_level, formatter, thread_filter))
        logger.addHandler(_rotating_handler(log_dir / f"{app_name}_error.log", logging.ERROR, formatter, thread_filter))
        logger.info(f"File logging enabled: {app_log}")

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """Module logger under the application namespace, e.g. print_shop.services.print_shop."""
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def get_order_logger(order_id: str) -> logging.Logger:
    """
    Logger for everything that happens to one order.

    Named print_shop.order.<first 8 chars of the id> so one order can be
    followed across the queue, download and callback threads.
    """
    return logging.getLogger(f"{APP_LOGGER_NAME}.order.{order_id[:8]}")


def set_thread_name(name: str) -> None:
    """Rename the current thread; the name shows up in every record it logs."""
    threading.current_thread().name = name
