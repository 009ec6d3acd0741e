"""Map order print settings onto device attributes for the print spooler."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Mapping, TypeVar

from logging_config import get_logger
from models.order import PrintSettings
from models.printer_settings import MONOCHROME_ALIASES

logger = get_logger(__name__)


class PaperSize(Enum):
    A4 = "A4"
    A3 = "A3"
    LETTER = "Letter"
    LEGAL = "Legal"


class Orientation(Enum):
    # IPP orientation-requested enum values
    PORTRAIT = "3"
    LANDSCAPE = "4"


class ColorMode(Enum):
    COLOR = "color"
    MONOCHROME = "monochrome"


class PrintQuality(Enum):
    # IPP print-quality enum values
    DRAFT = "3"
    NORMAL = "4"
    HIGH = "5"


E = TypeVar("E", bound=Enum)

_PAPER_SIZES: Mapping[str, PaperSize] = {
    "A4": PaperSize.A4,
    "A3": PaperSize.A3,
    "LETTER": PaperSize.LETTER,
    "LEGAL": PaperSize.LEGAL,
}

_ORIENTATIONS: Mapping[str, Orientation] = {
    "PORTRAIT": Orientation.PORTRAIT,
    "LANDSCAPE": Orientation.LANDSCAPE,
}

_COLOR_MODES: Mapping[str, ColorMode] = {
    "COLOR": ColorMode.COLOR,
    **{alias: ColorMode.MONOCHROME for alias in MONOCHROME_ALIASES},
}

_QUALITIES: Mapping[str, PrintQuality] = {
    "HIGH": PrintQuality.HIGH,
    "NORMAL": PrintQuality.NORMAL,
    "DRAFT": PrintQuality.DRAFT,
}


@dataclass(frozen=True)
class PrintAttributes:
    """Device attribute set for one print job."""

    copies: int = 1
    paper_size: PaperSize = PaperSize.A4
    orientation: Orientation = Orientation.PORTRAIT
    color_mode: ColorMode = ColorMode.COLOR
    quality: PrintQuality = PrintQuality.NORMAL

    def to_lp_options(self) -> List[str]:
        """Render as lp command-line arguments."""
        return [
            "-n", str(self.copies),
            "-o", f"media={self.paper_size.value}",
            "-o", f"orientation-requested={self.orientation.value}",
            "-o", f"print-color-mode={self.color_mode.value}",
            "-o", f"print-quality={self.quality.value}",
        ]


def _lookup(table: Mapping[str, E], raw: str, default: E, field_name: str) -> E:
    key = (raw or "").strip().upper()
    value = table.get(key)
    if value is None:
        logger.warning(f"Unknown {field_name}: {raw!r}, defaulting to {default.name}")
        return default
    return value


def build_print_attributes(settings: PrintSettings) -> PrintAttributes:
    """
    Build the attribute set for an order.

    Out-of-table values are logged and replaced by the field default,
    they never fail the job.
    """
    attributes = PrintAttributes(
        copies=max(1, settings.copies),
        paper_size=_lookup(_PAPER_SIZES, settings.paper_size, PaperSize.A4, "paper size"),
        orientation=_lookup(_ORIENTATIONS, settings.orientation, Orientation.PORTRAIT, "orientation"),
        color_mode=_lookup(_COLOR_MODES, settings.color_mode, ColorMode.COLOR, "color mode"),
        quality=_lookup(_QUALITIES, settings.quality, PrintQuality.NORMAL, "quality"),
    )
    logger.debug(f"Print attributes: {attributes}")
    return attributes
