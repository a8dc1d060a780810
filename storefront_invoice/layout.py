"""Page geometry, palette and table columns for the invoice layout.

Everything the renderer needs to place content lives in a frozen
:class:`LayoutConfig`. The default instance reproduces the storefront's
A4 invoice; alternate themes are built with :func:`dataclasses.replace`.
Units are PDF points with a top-left origin.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Tuple

from . import config
from .errors import LayoutConfigError

RGB = Tuple[int, int, int]

_HEX_COLOR = re.compile(r"^#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$", re.IGNORECASE)


def hex_to_rgb(value: str) -> RGB:
    match = _HEX_COLOR.match(value.strip())
    if not match:
        raise LayoutConfigError(f"Invalid hex colour: {value!r}")
    r, g, b = (int(part, 16) for part in match.groups())
    return (r, g, b)


@dataclass(frozen=True)
class Palette:
    primary: RGB = hex_to_rgb("#C89E7E")
    primary_dark: RGB = hex_to_rgb("#7A5051")
    primary_light: RGB = hex_to_rgb("#CAB19B")
    secondary: RGB = hex_to_rgb("#AB8A8A")
    background: RGB = hex_to_rgb("#FAF8F5")
    text_primary: RGB = hex_to_rgb("#3A1F23")
    text_secondary: RGB = hex_to_rgb("#7A5051")
    white: RGB = (255, 255, 255)


@dataclass(frozen=True)
class ColumnSpec:
    title: str
    width: float
    align: str = "L"


@dataclass(frozen=True)
class Column:
    title: str
    x: float
    width: float
    align: str

    @property
    def right(self) -> float:
        return self.x + self.width


DEFAULT_COLUMNS: Tuple[ColumnSpec, ...] = (
    ColumnSpec("Item", 180, "L"),
    ColumnSpec("Size", 42, "C"),
    ColumnSpec("Color", 52, "C"),
    ColumnSpec("Qty", 32, "C"),
    ColumnSpec("Price", 70, "R"),
    ColumnSpec("Total", 80, "R"),
)


@dataclass(frozen=True)
class LayoutConfig:
    page_width: float = 595.28
    page_height: float = 841.89
    margin: float = 40.0

    palette: Palette = field(default_factory=Palette)

    # Header
    logo_size: float = 130.0
    title_offset: float = 30.0
    title_size: int = 36
    info_offset: float = 35.0
    label_size: int = 10
    value_size: int = 12
    info_block_h: float = 90.0

    # Billing block
    bill_box_width: float = 280.0
    bill_box_height: float = 100.0
    bill_box_border: float = 1.5
    bill_padding: float = 10.0
    bill_line_h: float = 15.0
    bill_gap_after: float = 20.0

    # Line-item table
    columns: Tuple[ColumnSpec, ...] = DEFAULT_COLUMNS
    table_indent: float = 10.0
    column_gap: float = 8.0
    table_gap_before: float = 10.0
    header_row_h: float = 32.0
    header_row_gap: float = 12.0
    header_text_size: int = 11
    row_text_size: int = 10
    row_line_h: float = 12.0
    min_row_h: float = 24.0
    row_padding: float = 12.0
    continuation_header_top: float = 50.0
    footer_reserve: float = 250.0

    # Totals
    totals_gap_before: float = 20.0
    totals_label_w: float = 100.0
    totals_row_h: float = 20.0
    grand_total_gap: float = 8.0
    grand_total_size: int = 13
    totals_gap_after: float = 30.0

    # Footer
    footer_gap_before: float = 20.0
    thanks_size: int = 18
    disclaimer_size: int = 9
    disclaimer_opacity: float = 0.8
    signature_size: int = 15
    signature_w: float = 150.0

    currency_prefix: str = "Rs."
    brand_name: str = "Arudhra Fashions"
    disclaimer: str = (
        "This computer-generated document is valid without signature or company stamp."
    )
    item_placeholder: str = "Product"
    empty_cell: str = "-"

    def __post_init__(self) -> None:
        check_column_fit(self)

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.margin

    @property
    def content_right(self) -> float:
        return self.page_width - self.margin

    @property
    def page_bottom_limit(self) -> float:
        return self.page_height - self.footer_reserve

    @property
    def thank_you(self) -> str:
        return f"Thank You for Shopping with {self.brand_name}!"

    @classmethod
    def from_env(cls) -> "LayoutConfig":
        return cls(brand_name=config.BRAND_NAME, currency_prefix=config.CURRENCY_PREFIX)

    def with_overrides(self, **changes: object) -> "LayoutConfig":
        return replace(self, **changes)


def column_layout(layout: LayoutConfig) -> Tuple[Column, ...]:
    """Place each column after the previous one plus the fixed gap."""
    x = layout.margin + layout.table_indent
    placed = []
    for spec in layout.columns:
        placed.append(Column(title=spec.title, x=x, width=spec.width, align=spec.align))
        x += spec.width + layout.column_gap
    return tuple(placed)


def check_column_fit(layout: LayoutConfig) -> None:
    if not layout.columns:
        raise LayoutConfigError("Line-item table needs at least one column.")
    for spec in layout.columns:
        if spec.width <= 0:
            raise LayoutConfigError(f"Column {spec.title!r} must have a positive width.")
        if spec.align not in ("L", "C", "R"):
            raise LayoutConfigError(f"Column {spec.title!r} has unknown alignment {spec.align!r}.")
    if layout.content_width <= 0:
        raise LayoutConfigError("Margins leave no room for content.")

    last = column_layout(layout)[-1]
    if last.right > layout.content_right:
        raise LayoutConfigError(
            f"Column {last.title!r} ends at {last.right:.2f}pt, "
            f"past the right margin at {layout.content_right:.2f}pt."
        )


DEFAULT_LAYOUT = LayoutConfig()
