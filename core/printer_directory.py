"""
Printer discovery through the CUPS command-line tools.

All lookups are synchronous and never raise: a machine without CUPS, or
with zero printers, yields empty results and a warning in the log.
"""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass
from typing import List, Optional

from logging_config import get_logger

logger = get_logger(__name__)

_NO_DEFAULT_MARKER = "no system default destination"
_DEFAULT_PREFIX = "system default destination:"


@dataclass(frozen=True)
class PrinterInfo:
    """Handle for a resolved print target."""

    name: str
    is_default: bool = False


class PrinterDirectory:
    """
    Enumerates CUPS destinations and resolves print targets.

    Names are matched exactly and case-sensitively; enumeration order is
    whatever CUPS reports.
    """

    def __init__(self, lpstat_path: str = "lpstat", timeout_seconds: float = 10.0) -> None:
        self._lpstat_path = lpstat_path
        self._timeout = timeout_seconds

    def _lpstat(self, *args: str) -> Optional[str]:
        if shutil.which(self._lpstat_path) is None:
            logger.warning(f"'{self._lpstat_path}' not found in PATH, no printers available")
            return None
        try:
            proc = subprocess.run(
                [self._lpstat_path, *args],
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"lpstat {' '.join(args)} failed: {e}")
            return None
        if proc.returncode != 0:
            # lpstat exits non-zero when there are simply no destinations
            logger.debug(f"lpstat {' '.join(args)} rc={proc.returncode}: {(proc.stderr or '').strip()}")
            return None
        return proc.stdout or ""

    def list_printers(self) -> List[str]:
        output = self._lpstat("-e")
        if output is None:
            return []
        printers = [line.strip() for line in output.splitlines() if line.strip()]
        logger.info(f"Found {len(printers)} available printers: {printers}")
        return printers

    def default_printer(self) -> Optional[str]:
        output = self._lpstat("-d")
        if not output:
            return None
        for line in output.splitlines():
            line = line.strip()
            if line.startswith(_NO_DEFAULT_MARKER):
                return None
            if line.startswith(_DEFAULT_PREFIX):
                name = line[len(_DEFAULT_PREFIX):].strip()
                return name or None
        return None

    def resolve(self, name: str) -> Optional[PrinterInfo]:
        if not name:
            return None
        if name not in self.list_printers():
            return None
        return PrinterInfo(name=name, is_default=(name == self.default_printer()))

    def resolve_default(self) -> Optional[PrinterInfo]:
        """Default destination, else the first enumerated printer."""
        default = self.default_printer()
        if default:
            return PrinterInfo(name=default, is_default=True)
        printers = self.list_printers()
        if printers:
            logger.info(f"No default printer, using first available: {printers[0]}")
            return PrinterInfo(name=printers[0])
        return None
