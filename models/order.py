"""
Order data models.

These models represent a customer's print order as delivered by the
remote order store: a document reference plus the print settings the
customer picked.

Thread Safety:
    - PrintOrder and PrintSettings are frozen dataclasses (immutable)
    - Safe to hand to download threads and the queue worker
    - The order store replaces orders, it never mutates ours
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional


class OrderStatus(str, Enum):
    """
    Order status strings written by the order store and by us.

    Lifecycle:
        SUBMITTED -> QUEUED -> PRINTED
    """

    SUBMITTED = "SUBMITTED"
    """Customer finished the order (may still be unpaid)."""

    QUEUED = "QUEUED"
    """Admitted to the print queue."""

    PRINTED = "PRINTED"
    """Accepted by a printer."""


class PageSelection(str, Enum):
    """Which pages of the document to print."""

    ALL = "ALL"
    CUSTOM = "CUSTOM"


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _as_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


@dataclass(frozen=True)
class PrintSettings:
    """
    Print configuration attached to an order.

    Values are kept as the raw strings sent by the order store. Mapping to
    device attributes (and defaulting unknown values) happens in
    modules.print_attributes so diagnostics are logged per job.
    """

    color_mode: str = "COLOR"
    """COLOR or a monochrome alias (MONOCHROME, BW, GRAYSCALE, ...)."""

    copies: int = 1
    """Number of copies, always >= 1."""

    paper_size: str = "A4"
    """A4, A3, LETTER or LEGAL."""

    orientation: str = "PORTRAIT"
    """PORTRAIT or LANDSCAPE."""

    quality: str = "NORMAL"
    """HIGH, NORMAL or DRAFT."""

    pages_to_print: str = PageSelection.ALL.value
    """ALL or CUSTOM."""

    custom_pages: str = ""
    """Free-text page range, only meaningful when pages_to_print is CUSTOM."""

    def __post_init__(self) -> None:
        if self.copies < 1:
            object.__setattr__(self, "copies", 1)

    @property
    def is_custom_selection(self) -> bool:
        return self.pages_to_print.strip().upper() == PageSelection.CUSTOM.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the order store's camelCase shape."""
        return {
            "colorMode": self.color_mode,
            "copies": self.copies,
            "paperSize": self.paper_size,
            "orientation": self.orientation,
            "quality": self.quality,
            "pagesToPrint": self.pages_to_print,
            "customPages": self.custom_pages,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PrintSettings":
        """Create from the order store's printSettings sub-object."""
        if not isinstance(data, dict):
            return cls()
        return cls(
            color_mode=_as_str(data.get("colorMode"), "COLOR"),
            copies=_as_int(data.get("copies"), 1),
            paper_size=_as_str(data.get("paperSize"), "A4"),
            orientation=_as_str(data.get("orientation"), "PORTRAIT"),
            quality=_as_str(data.get("quality"), "NORMAL"),
            pages_to_print=_as_str(data.get("pagesToPrint"), PageSelection.ALL.value),
            custom_pages=_as_str(data.get("customPages"), ""),
        )


@dataclass(frozen=True)
class PrintOrder:
    """
    A customer order as seen by the print shop.

    Created and changed only by the order store. We read it and request
    status transitions through the order feed.
    """

    order_id: str
    """Unique order identifier."""

    document_url: str = ""
    """Where the document can be downloaded from."""

    document_name: str = ""
    """Display name of the document (also used as local file name)."""

    order_status: str = ""
    """SUBMITTED, QUEUED, PRINTED or anything else the store writes."""

    paid: bool = False
    """Whether payment went through."""

    in_queue: bool = False
    """Store-side queue flag."""

    page_count: int = 0
    """Page count reported by the store (informational)."""

    payment_amount: float = 0.0
    customer_phone: str = ""
    created_at: str = ""
    updated_at: str = ""

    print_settings: PrintSettings = field(default_factory=PrintSettings)
    """Per-order print configuration."""

    @property
    def is_printed(self) -> bool:
        return self.order_status == OrderStatus.PRINTED.value

    @property
    def is_awaiting_queue(self) -> bool:
        """Paid, submitted, not yet admitted to the queue."""
        return self.paid and self.order_status == OrderStatus.SUBMITTED.value

    @property
    def is_queued(self) -> bool:
        return self.paid and self.order_status == OrderStatus.QUEUED.value

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the order store's camelCase shape."""
        return {
            "orderId": self.order_id,
            "documentUrl": self.document_url,
            "documentName": self.document_name,
            "orderStatus": self.order_status,
            "paid": self.paid,
            "inQueue": self.in_queue,
            "pageCount": self.page_count,
            "paymentAmount": self.payment_amount,
            "customerPhone": self.customer_phone,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "printSettings": self.print_settings.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrintOrder":
        """
        Create from an order store document.

        Missing or mistyped fields fall back to defaults, a broken field
        never drops the whole order.
        """
        return cls(
            order_id=_as_str(data.get("orderId")),
            document_url=_as_str(data.get("documentUrl")),
            document_name=_as_str(data.get("documentName")),
            order_status=_as_str(data.get("orderStatus")),
            paid=bool(data.get("paid", False)),
            in_queue=bool(data.get("inQueue", False)),
            page_count=_as_int(data.get("pageCount"), 0),
            payment_amount=_as_float(data.get("paymentAmount"), 0.0),
            customer_phone=_as_str(data.get("customerPhone")),
            created_at=_as_str(data.get("createdAt")),
            updated_at=_as_str(data.get("updatedAt")),
            print_settings=PrintSettings.from_dict(data.get("printSettings")),
        )
