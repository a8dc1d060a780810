"""Font discovery and text rendering helpers."""

from __future__ import annotations

import os
import threading
from typing import List, Optional, Tuple

from fpdf import FPDF  # type: ignore

from .config import PROJECT_ROOT

# Top of the text box to baseline, as a fraction of the font size.
ASCENT_RATIO = 0.8


def find_font_path(env_var: str, candidates: List[str]) -> Optional[str]:
    override = os.getenv(env_var)
    if override and os.path.exists(override):
        return override

    for path in candidates:
        if os.path.exists(path):
            return path
    return None


def latin1_safe(text: str) -> str:
    return text.encode("latin-1", "replace").decode("latin-1")


FONT_INIT_LOCK = threading.Lock()


class FontManager:
    """Draws text on an FPDF page with the invoice's fonts.

    A DejaVu TTF is used when one is installed so item names keep their
    original characters; otherwise the PDF core Helvetica family is used and
    text is reduced to Latin-1. The brand signature always uses core Times
    italic.
    """

    FAMILY = "InvoiceFont"
    CORE_FAMILY = "Helvetica"
    SIGNATURE_FAMILY = "Times"
    BUNDLED_REGULAR = os.path.join(PROJECT_ROOT, "fonts", "DejaVuSans.ttf")
    BUNDLED_BOLD = os.path.join(PROJECT_ROOT, "fonts", "DejaVuSans-Bold.ttf")
    SYSTEM_REGULAR_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/Library/Fonts/DejaVuSans.ttf",
    ]
    SYSTEM_BOLD_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
        "/Library/Fonts/DejaVuSans-Bold.ttf",
    ]

    def __init__(self, pdf: FPDF, use_core_fonts: bool = False) -> None:
        self.pdf = pdf
        self.family = self.CORE_FAMILY
        self.unicode = False
        self.has_bold = True

        if use_core_fonts:
            return

        regular_path = find_font_path(
            "INVOICE_FONT_PATH",
            [self.BUNDLED_REGULAR, *self.SYSTEM_REGULAR_CANDIDATES],
        )
        if not regular_path:
            return

        bold_path = find_font_path(
            "INVOICE_FONT_BOLD_PATH",
            [self.BUNDLED_BOLD, *self.SYSTEM_BOLD_CANDIDATES],
        )

        with FONT_INIT_LOCK:
            self.pdf.add_font(self.FAMILY, "", regular_path)
            self.has_bold = False
            if bold_path:
                self.pdf.add_font(self.FAMILY, "B", bold_path)
                self.has_bold = True
        self.family = self.FAMILY
        self.unicode = True

    def _select(self, size: float, bold: bool = False, signature: bool = False) -> None:
        if signature:
            self.pdf.set_font(self.SIGNATURE_FAMILY, "I", size)
            return
        style = "B" if bold and self.has_bold else ""
        self.pdf.set_font(self.family, style, size)

    def _prepare(self, text: str, signature: bool = False) -> str:
        if self.unicode and not signature:
            return text
        return latin1_safe(text)

    def text_width(self, text: str, size: float, bold: bool = False, signature: bool = False) -> float:
        self._select(size, bold=bold, signature=signature)
        return self.pdf.get_string_width(self._prepare(text, signature))

    def draw_text(
        self,
        x: float,
        y: float,
        text: str,
        size: float,
        color: Tuple[int, int, int],
        bold: bool = False,
        signature: bool = False,
    ) -> None:
        """Draw ``text`` with its baseline at ``y``."""
        self.pdf.set_text_color(*color)
        self._select(size, bold=bold, signature=signature)
        text = self._prepare(text, signature)
        if bold and not self.has_bold and not signature:
            self.pdf.text(x, y, text)
            self.pdf.text(x + 0.4, y, text)
        else:
            self.pdf.text(x, y, text)

    def draw_in_box(
        self,
        x: float,
        width: float,
        top: float,
        text: str,
        size: float,
        color: Tuple[int, int, int],
        align: str = "L",
        bold: bool = False,
        signature: bool = False,
    ) -> None:
        """Draw one line of text aligned inside ``[x, x + width]`` with its top at ``top``."""
        if align == "L":
            left = x
        else:
            text_w = self.text_width(text, size, bold=bold, signature=signature)
            left = x + (width - text_w) / 2.0 if align == "C" else x + width - text_w
        self.draw_text(left, top + size * ASCENT_RATIO, text, size, color, bold=bold, signature=signature)
