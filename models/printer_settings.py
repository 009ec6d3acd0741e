"""
Printer assignment model.

Maps color-mode categories to physical printer names, with a fallback
slot used when the specific slot is empty.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Any

MONOCHROME_ALIASES = frozenset({
    "MONOCHROME", "BW", "BLACK_WHITE", "BLACKWHITE", "GRAYSCALE", "GREY",
})


@dataclass(frozen=True)
class PrinterAssignment:
    """
    Operator configuration: which printer handles which color mode.

    An empty string means "unassigned".
    """

    color_printer: str = ""
    black_white_printer: str = ""
    fallback_printer: str = ""

    def printer_for_color_mode(self, color_mode: str) -> str:
        """
        Resolve the printer name for an order's color mode.

        Specific slot first, then the fallback slot, else "".
        Unknown color modes go straight to the fallback slot.
        """
        mode = (color_mode or "").strip().upper()
        if mode == "COLOR":
            return self.color_printer or self.fallback_printer
        if mode in MONOCHROME_ALIASES:
            return self.black_white_printer or self.fallback_printer
        return self.fallback_printer

    def is_configured(self) -> bool:
        return bool(self.color_printer or self.black_white_printer or self.fallback_printer)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "color_printer": self.color_printer,
            "black_white_printer": self.black_white_printer,
            "fallback_printer": self.fallback_printer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PrinterAssignment":
        if not isinstance(data, dict):
            return cls()
        return cls(
            color_printer=str(data.get("color_printer") or ""),
            black_white_printer=str(data.get("black_white_printer") or ""),
            fallback_printer=str(data.get("fallback_printer") or ""),
        )
