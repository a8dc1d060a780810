"""Formatting and text measurement helpers."""

from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable, List, Optional, Protocol

from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


class TextWidthProvider(Protocol):
    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        ...


def parse_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    """Coerce ``value`` to a finite Decimal, returning ``default`` when it is missing or invalid."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return default
    if not result.is_finite():
        return default
    return result


def fmt_money(amount: Decimal, prefix: str) -> str:
    return f"{prefix} {amount.quantize(CENT, rounding=ROUND_HALF_UP):.2f}"


def fmt_qty(qty: Any) -> str:
    try:
        quantity = float(qty)
        if quantity.is_integer():
            return str(int(quantity))
        return str(quantity)
    except (TypeError, ValueError):
        return str(qty)


def long_date(value: date) -> str:
    return f"{value.day} {value:%B %Y}"


def fmt_invoice_date(raw: Any, now: Optional[Callable[[], datetime]] = None) -> str:
    """Format an order timestamp as '18 October 2026'.

    Numbers are read as epoch milliseconds. Missing or unparseable input
    renders the current date instead of failing.
    """
    clock = now or datetime.now
    if isinstance(raw, (datetime, date)):
        return long_date(raw)
    if isinstance(raw, (int, float, Decimal)) and not isinstance(raw, bool):
        try:
            return long_date(datetime.fromtimestamp(float(raw) / 1000))
        except (ValueError, OverflowError, OSError):
            logger.debug("Out-of-range invoice timestamp %r, using current date", raw)
            return long_date(clock())

    text = str(raw).strip() if raw is not None else ""
    if text:
        try:
            return long_date(dateutil_parser.parse(text))
        except (ValueError, OverflowError):
            logger.debug("Unparseable invoice date %r, using current date", text)
    return long_date(clock())


def join_present(parts: List[str], separator: str = ", ") -> str:
    return separator.join(part.strip() for part in parts if part and part.strip())


def wrap_text(
    fonts_obj: TextWidthProvider,
    text: str,
    max_width: float,
    font_size: int,
    bold: bool = False,
) -> List[str]:
    def line_width(value: str) -> float:
        return fonts_obj.text_width(value, font_size, bold=bold)

    def wrap_paragraph(paragraph: str) -> List[str]:
        words = paragraph.split()
        if not words:
            return [paragraph]

        lines: List[str] = []
        current = ""
        for word in words:
            candidate = word if not current else f"{current} {word}"
            if line_width(candidate) <= max_width:
                current = candidate
                continue

            if current:
                lines.append(current)
                current = ""
            if line_width(word) <= max_width:
                current = word
                continue

            # Single word wider than the column: break it by character.
            chunk = ""
            for char in word:
                candidate_chunk = chunk + char
                if chunk and line_width(candidate_chunk) > max_width:
                    lines.append(chunk)
                    chunk = char
                else:
                    chunk = candidate_chunk
            current = chunk

        if current:
            lines.append(current)
        return lines

    result: List[str] = []
    for paragraph in text.split("\n"):
        result.extend(wrap_paragraph(paragraph))
    return result if result else [text]
