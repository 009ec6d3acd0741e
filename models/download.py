"""
Download state model.

One DownloadState per order, owned by the download manager. A single
attempt moves Idle -> Downloading(0..1, non-decreasing) -> Completed | Error.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional


class DownloadPhase(Enum):
    IDLE = "idle"
    DOWNLOADING = "downloading"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class DownloadState:
    """Immutable download state frame."""

    phase: DownloadPhase
    progress: float = 0.0
    """Fraction in [0, 1]; meaningful while DOWNLOADING, 1.0 once COMPLETED."""

    file_path: Optional[Path] = None
    """Local file, set only when COMPLETED."""

    message: str = ""
    """Failure reason, set only on ERROR."""

    @classmethod
    def idle(cls) -> "DownloadState":
        return cls(DownloadPhase.IDLE)

    @classmethod
    def downloading(cls, progress: float) -> "DownloadState":
        return cls(DownloadPhase.DOWNLOADING, progress=min(max(progress, 0.0), 1.0))

    @classmethod
    def completed(cls, file_path: Path) -> "DownloadState":
        return cls(DownloadPhase.COMPLETED, progress=1.0, file_path=file_path)

    @classmethod
    def error(cls, message: str) -> "DownloadState":
        return cls(DownloadPhase.ERROR, message=message or "Download failed")

    @property
    def is_downloading(self) -> bool:
        return self.phase is DownloadPhase.DOWNLOADING

    @property
    def is_completed(self) -> bool:
        return self.phase is DownloadPhase.COMPLETED

    @property
    def is_error(self) -> bool:
        return self.phase is DownloadPhase.ERROR

    @property
    def is_terminal(self) -> bool:
        return self.phase in (DownloadPhase.COMPLETED, DownloadPhase.ERROR)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "progress": round(self.progress, 4),
            "file_path": str(self.file_path) if self.file_path else None,
            "message": self.message,
        }
