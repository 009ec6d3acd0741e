"""Persistence of the printer assignment as a small JSON file."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Optional

from core.exceptions import SettingsError
from logging_config import get_logger
from models.printer_settings import PrinterAssignment

logger = get_logger(__name__)


class SettingsStore:
    """
    Loads and saves the PrinterAssignment.

    A missing or unreadable file yields an empty (unconfigured) assignment.
    current() serves the last loaded or saved assignment from memory.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = threading.Lock()
        self._current: Optional[PrinterAssignment] = None

    @property
    def path(self) -> Path:
        return self._path

    def current(self) -> PrinterAssignment:
        with self._lock:
            cached = self._current
        if cached is None:
            cached = self.load()
        return cached

    def load(self) -> PrinterAssignment:
        assignment = self._read()
        with self._lock:
            self._current = assignment
        return assignment

    def _read(self) -> PrinterAssignment:
        if not self._path.exists():
            logger.info(f"Settings file {self._path} not found, using default settings")
            return PrinterAssignment()
        try:
            with self._path.open("r", encoding="utf-8") as f:
                assignment = PrinterAssignment.from_dict(json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load printer settings from {self._path}: {e}")
            return PrinterAssignment()
        logger.info(f"Printer settings loaded: {assignment}")
        return assignment

    def save(self, assignment: PrinterAssignment) -> None:
        """
        Write atomically via a temporary file and os.replace().

        Raises:
            SettingsError: if the file cannot be written
        """
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with tmp_path.open("w", encoding="utf-8") as f:
                json.dump(assignment.to_dict(), f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise SettingsError(f"Failed to save printer settings: {e}", {"path": str(self._path)}) from e
        with self._lock:
            self._current = assignment
        logger.info("Printer settings saved successfully")
