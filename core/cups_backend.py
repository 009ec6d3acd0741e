"""
Print job hand-off to CUPS.

A backend takes a ready, local file plus a device attribute set and hands
it to the OS spooler. Success means the spooler accepted the job.
"""

from __future__ import annotations

import re
import shutil
import subprocess
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Sequence

from core.exceptions import PrintCancelledError, PrintSubmissionError, PrinterUnavailableError
from logging_config import get_logger
from modules.print_attributes import PrintAttributes

logger = get_logger(__name__)

_REQUEST_ID = re.compile(r"request id is (\S+)")


class PrintBackend(ABC):
    """
    Abstract print spooler interface.

    The submitter owns printer selection and document preparation. Concrete
    implementations only hand a ready file to the OS spooler.
    """

    @abstractmethod
    def submit(
        self,
        file_path: Path,
        printer_name: str,
        attributes: PrintAttributes,
        *,
        job_name: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[str]:
        """
        Submit `file_path` to `printer_name` and return the spooler job id.

        - Returns once the spooler accepted the job, not when paper comes out.
        - Raises PrintCancelledError if `cancel_event` is set first.
        - Raises PrintSubmissionError on rejection.
        """
        raise NotImplementedError


class CupsPrintBackend(PrintBackend):
    """
    CUPS-backed spooler using the `lp` command.

    Design constraints:
    - Acceptance-only: the job id is returned, device completion is not tracked.
    - Copies are sent as one job (`-n`), the printer collates.
    """

    def __init__(
            self,
            lp_path: str = "lp",
            extra_args: Optional[Sequence[str]] = None,
            poll_interval: float = 0.1,
            timeout_seconds: float = 120.0,
    ) -> None:
        self._lp_path = lp_path
        self._extra_args = list(extra_args or [])
        self._poll_interval = poll_interval
        self._timeout = timeout_seconds

    def _validate(self, file_path: Path) -> None:
        if shutil.which(self._lp_path) is None:
            raise PrinterUnavailableError(self._lp_path)
        if not file_path.exists():
            raise PrintSubmissionError(f"Print file does not exist: {file_path}")
        if not file_path.is_file():
            raise PrintSubmissionError(f"Print path is not a file: {file_path}")

    def build_command(self, file_path: Path, printer_name: str, attributes: PrintAttributes, job_name: str):
        return [
            self._lp_path,
            "-d", printer_name,
            "-t", job_name,
            *attributes.to_lp_options(),
            *self._extra_args,
            str(file_path),
        ]

    def submit(
        self,
        file_path: Path,
        printer_name: str,
        attributes: PrintAttributes,
        *,
        job_name: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> Optional[str]:
        self._validate(file_path)
        cancel_event = cancel_event or threading.Event()
        if cancel_event.is_set():
            raise PrintCancelledError(printer_name=printer_name)

        cmd = self.build_command(file_path, printer_name, attributes, job_name)
        logger.debug(f"Running: {' '.join(cmd)}")
        proc = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )

        # Wait in short slices so a stop request is honoured promptly
        waited = 0.0
        while True:
            try:
                stdout, stderr = proc.communicate(timeout=self._poll_interval)
                break
            except subprocess.TimeoutExpired:
                waited += self._poll_interval
                if cancel_event.is_set():
                    logger.info(f"Cancelling lp for {printer_name}")
                    proc.kill()
                    proc.communicate()
                    raise PrintCancelledError(printer_name=printer_name)
                if waited >= self._timeout:
                    proc.kill()
                    proc.communicate()
                    raise PrintSubmissionError(
                        f"lp did not answer within {self._timeout:.0f}s",
                        printer_name=printer_name,
                    )

        if proc.returncode != 0:
            out = (stdout or "") + (stderr or "")
            raise PrintSubmissionError(
                f"lp failed (rc={proc.returncode}): {out.strip()}",
                printer_name=printer_name,
            )

        match = _REQUEST_ID.search(stdout or "")
        job_id = match.group(1) if match else None
        logger.info(f"Job accepted by {printer_name}: {job_id or '(no request id)'}")
        return job_id
