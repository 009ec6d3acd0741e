"""
Configuration for the print shop agent.

All values can be overridden from the environment or a .env file next to
the application.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"
    LOG_DIR = os.environ.get("LOG_DIR", str(BASE_DIR / "logs"))

    # Private downloads area for order documents
    DOWNLOAD_DIR = os.environ.get(
        "DOWNLOAD_DIR",
        str(Path.home() / "Downloads" / "PrintShop")
    )
    DOWNLOAD_TIMEOUT_SECONDS = float(os.environ.get("DOWNLOAD_TIMEOUT_SECONDS", "30"))
    DOWNLOAD_CHUNK_SIZE = int(os.environ.get("DOWNLOAD_CHUNK_SIZE", "8192"))

    # Printer assignment persistence
    PRINTER_SETTINGS_FILE = os.environ.get(
        "PRINTER_SETTINGS_FILE",
        str(BASE_DIR / "printer-settings.json")
    )

    # ==========================================================================
    # Print queue
    # ==========================================================================
    # INTER_JOB_DELAY_SECONDS: pause after every print attempt so the device
    #   settles and the spooler is not flooded. A stop request cuts it short.
    # AUTO_QUEUE_PAID_ORDERS: paid SUBMITTED orders are moved to QUEUED as
    #   soon as they show up in the order feed.
    # ==========================================================================
    INTER_JOB_DELAY_SECONDS = float(os.environ.get("INTER_JOB_DELAY_SECONDS", "2.0"))
    AUTO_QUEUE_PAID_ORDERS = _env_bool("AUTO_QUEUE_PAID_ORDERS", True)

    # CUPS command-line tools
    LP_PATH = os.environ.get("LP_PATH", "lp")
    LPSTAT_PATH = os.environ.get("LPSTAT_PATH", "lpstat")


class ProductionConfig(Config):
    """Production configuration."""
    ENVIRONMENT = "production"
    DEBUG = False
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    INTER_JOB_DELAY_SECONDS = 0.0
