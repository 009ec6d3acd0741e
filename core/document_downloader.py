"""
HTTP document downloader.

Fetches an order's document into the private downloads area and reports
progress as a stream of DownloadState frames:

    Downloading(0.0)
    Downloading(p)...          only when the server declares Content-Length
    Completed(path) | Error(reason)

Each call is one attempt. Failures are reported as an Error frame, never
raised; partially written bytes are left in place and overwritten by the
next attempt.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterator, Optional, Tuple

import requests
from werkzeug.utils import secure_filename

from core.exceptions import DocumentDownloadError
from logging_config import get_logger
from models.download import DownloadState

logger = get_logger(__name__)

DownloadFrame = Tuple[DownloadState, Optional[Path]]

DEFAULT_SUFFIX = ".pdf"


class DocumentDownloader:
    """Streams remote documents to local files."""

    def __init__(
        self,
        download_dir: str | Path,
        session: Optional[requests.Session] = None,
        chunk_size: int = 8192,
        timeout_seconds: float = 30.0,
    ):
        self._download_dir = Path(download_dir)
        self._session = session or requests.Session()
        self._chunk_size = chunk_size
        self._timeout = timeout_seconds

    @property
    def download_dir(self) -> Path:
        return self._download_dir

    def destination_for(self, file_name: str) -> Path:
        """
        Local path for a document name, confined to the downloads area.

        secure_filename drops non-ASCII characters, so the stem and the
        extension are sanitized separately and the extension survives.
        """
        name = Path(file_name or "")
        stem = secure_filename(name.stem) or "document"
        extension = secure_filename(name.suffix)
        suffix = f".{extension}" if extension else DEFAULT_SUFFIX
        return self._download_dir / f"{stem}{suffix}"

    def download_document(
        self,
        url: str,
        file_name: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> Iterator[DownloadFrame]:
        """
        Download `url` to `file_name` inside the downloads area.

        Yields (DownloadState, path) pairs; path is set only on the final
        Completed frame.
        """
        yield DownloadState.downloading(0.0), None

        try:
            path = yield from self._transfer(url, file_name, cancel_event)
        except DocumentDownloadError as e:
            logger.error(f"Download failed for {file_name}: {e.message}")
            yield DownloadState.error(e.message), None
            return
        except requests.RequestException as e:
            logger.error(f"Download failed for {file_name}: {e}")
            yield DownloadState.error(f"Download failed: {e}"), None
            return
        except OSError as e:
            logger.error(f"Could not write {file_name}: {e}")
            yield DownloadState.error(f"Could not save document: {e}"), None
            return

        logger.info(f"Downloaded {url} -> {path}")
        yield DownloadState.completed(path), path

    def _transfer(
        self,
        url: str,
        file_name: str,
        cancel_event: Optional[threading.Event],
    ) -> Iterator[DownloadFrame]:
        if not url:
            raise DocumentDownloadError("Document URL is empty")

        self._download_dir.mkdir(parents=True, exist_ok=True)
        destination = self.destination_for(file_name)

        with self._session.get(url, stream=True, timeout=self._timeout) as response:
            if response.status_code >= 400:
                raise DocumentDownloadError(f"HTTP {response.status_code} for {url}", url=url)

            try:
                content_length = int(response.headers.get("Content-Length", -1))
            except (TypeError, ValueError):
                content_length = -1

            received = 0
            last_progress = 0.0
            with destination.open("wb") as output:
                for chunk in response.iter_content(chunk_size=self._chunk_size):
                    if cancel_event is not None and cancel_event.is_set():
                        raise DocumentDownloadError("Download cancelled", url=url)
                    if not chunk:
                        continue
                    output.write(chunk)
                    received += len(chunk)
                    if content_length > 0:
                        progress = min(received / content_length, 1.0)
                        if progress > last_progress:
                            last_progress = progress
                            yield DownloadState.downloading(progress), None

        return destination
