"""Page-break decisions and page-count estimates for the line-item table."""

from __future__ import annotations

import math

from .layout import LayoutConfig


def header_bottom(layout: LayoutConfig) -> float:
    return layout.margin + layout.title_offset + layout.info_offset + layout.info_block_h


def first_table_top(layout: LayoutConfig) -> float:
    return header_bottom(layout) + layout.bill_box_height + layout.bill_gap_after + layout.table_gap_before


def rows_top(header_top: float, layout: LayoutConfig) -> float:
    return header_top + layout.header_row_h + layout.header_row_gap


def needs_page_break(y: float, row_h: float, layout: LayoutConfig) -> bool:
    """True when a row of ``row_h`` starting at ``y`` would cross the footer reserve."""
    return y + row_h > layout.page_bottom_limit


def rows_per_page(start_y: float, layout: LayoutConfig) -> int:
    available = layout.page_bottom_limit - start_y
    return max(1, int(math.floor(available / layout.min_row_h)))


def first_page_capacity(layout: LayoutConfig) -> int:
    return rows_per_page(rows_top(first_table_top(layout), layout), layout)


def continuation_capacity(layout: LayoutConfig) -> int:
    return rows_per_page(rows_top(layout.continuation_header_top, layout), layout)


def estimate_page_count(item_count: int, layout: LayoutConfig) -> int:
    """Lower bound on pages, assuming every row has the minimum height."""
    first = first_page_capacity(layout)
    if item_count <= first:
        return 1
    remaining = item_count - first
    per_page = continuation_capacity(layout)
    return 1 + (remaining + per_page - 1) // per_page


def max_items_for_pages(page_count: int, layout: LayoutConfig) -> int:
    if page_count <= 1:
        return first_page_capacity(layout)
    return first_page_capacity(layout) + continuation_capacity(layout) * (page_count - 1)


def max_name_lines(layout: LayoutConfig) -> int:
    """Most wrapped item-name lines a row can hold and still fit on a continuation page."""
    available = layout.page_bottom_limit - rows_top(layout.continuation_header_top, layout) - layout.row_padding
    return max(1, int(math.floor(available / layout.row_line_h)))
