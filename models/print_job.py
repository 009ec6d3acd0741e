"""
Print job status models.

These models describe where every order of a queue run stands. The queue
orchestrator is the only writer; the UI, the HTTP API and tests read them
through the status feed.

Thread Safety:
    - PrintJobStatus is a frozen dataclass
    - Snapshots wrap a read-only mapping and are replaced, never mutated
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Generic, Iterator, Mapping, Optional, TypeVar


class PrintStatus(Enum):
    """
    Status of one order within a queue run.

    Lifecycle:
        WAITING -> PRINTING -> (COMPLETED | FAILED)
        WAITING | PRINTING -> CANCELLED
    """

    WAITING = "WAITING"
    """Admitted to the run, not yet picked up."""

    PRINTING = "PRINTING"
    """Handed to the print submitter."""

    COMPLETED = "COMPLETED"
    """Accepted by the print spooler."""

    FAILED = "FAILED"
    """Missing file, no printer, bad page range or spooler error."""

    CANCELLED = "CANCELLED"
    """Stopped by the operator before finishing."""

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({PrintStatus.COMPLETED, PrintStatus.FAILED, PrintStatus.CANCELLED})


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PrintJobStatus:
    """Status entry for one order."""

    order_id: str
    status: PrintStatus
    message: str = ""
    progress: str = ""
    """Latest stage description reported by the submitter."""

    updated_at: datetime = field(default_factory=_utc_now)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def with_progress(self, progress: str) -> "PrintJobStatus":
        return PrintJobStatus(self.order_id, self.status, self.message, progress)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "status": self.status.value,
            "message": self.message,
            "progress": self.progress,
            "updated_at": self.updated_at.isoformat(),
        }


T = TypeVar("T")


class Snapshot(Generic[T]):
    """
    Versioned, read-only view of a keyed collection.

    A snapshot never changes after construction; writers publish a new one
    with a higher version instead.
    """

    __slots__ = ("_version", "_items")

    def __init__(self, version: int, items: Optional[Mapping[str, T]] = None):
        self._version = version
        self._items: Mapping[str, T] = MappingProxyType(dict(items or {}))

    @property
    def version(self) -> int:
        return self._version

    @property
    def items(self) -> Mapping[str, T]:
        return self._items

    def get(self, key: str) -> Optional[T]:
        return self._items.get(key)

    def values(self):
        return self._items.values()

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"Snapshot(version={self._version}, items={dict(self._items)!r})"
