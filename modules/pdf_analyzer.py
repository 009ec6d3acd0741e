"""PDF helpers for the print submitter: page counting and page-filtered copies."""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError

from core.exceptions import UnsupportedDocumentError


class PDFAnalyzer:
    """Open PDFs for printing and build independent page subsets."""

    def page_count(self, pdf_path: str | Path) -> int:
        path = Path(pdf_path)
        try:
            with path.open("rb") as handle:
                return len(PdfReader(handle).pages)
        except (PdfReadError, ValueError) as exc:
            raise UnsupportedDocumentError(f"Cannot read PDF {path.name}: {exc}") from exc

    @contextmanager
    def filtered_copy(self, pdf_path: str | Path, pages: Iterable[int]) -> Iterator[Path]:
        """
        Write a new PDF holding only `pages` (1-based, printed in ascending
        order) and yield its path. The copy is deleted when the block exits,
        whatever happens inside it.
        """
        source = Path(pdf_path)
        fd, tmp_name = tempfile.mkstemp(prefix=f"{source.stem}-", suffix=".pdf")
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            with source.open("rb") as handle:
                reader = PdfReader(handle)
                writer = PdfWriter()
                for page_number in sorted(set(pages)):
                    writer.add_page(reader.pages[page_number - 1])
                with tmp_path.open("wb") as out:
                    writer.write(out)
            yield tmp_path
        finally:
            tmp_path.unlink(missing_ok=True)
