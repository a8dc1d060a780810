"""Invoice PDF rendering logic."""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Tuple

from fpdf import FPDF  # type: ignore

from .fonts import FontManager
from .formatting import fmt_invoice_date, fmt_money, fmt_qty, join_present, wrap_text
from .layout import DEFAULT_LAYOUT, RGB, Column, LayoutConfig, check_column_fit, column_layout
from .models import InvoiceInput, LineItem
from .pagination import max_name_lines, needs_page_break, rows_top

logger = logging.getLogger(__name__)

BillingLine = Tuple[str, int, bool]


class InvoiceRenderer:
    """Lays one invoice out on A4 pages.

    Every ``_draw_*`` section takes the layout cursor (the top of the space
    it may use) and returns the cursor for the next section. A renderer owns
    its own FPDF document and is used for exactly one invoice.
    """

    def __init__(
        self,
        invoice: InvoiceInput,
        layout: LayoutConfig = DEFAULT_LAYOUT,
        brand_image: Optional[str] = None,
        use_core_fonts: bool = False,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        check_column_fit(layout)
        self.invoice = invoice
        self.layout = layout
        self.columns: Tuple[Column, ...] = column_layout(layout)
        self.brand_image = brand_image
        self.clock = clock or datetime.now

        self.pdf = FPDF(orientation="P", unit="pt", format=(layout.page_width, layout.page_height))
        self.pdf.set_auto_page_break(False)
        self.pdf.add_page()

        self.fonts = FontManager(self.pdf, use_core_fonts=use_core_fonts)

    @property
    def page_count(self) -> int:
        return self.pdf.page_no()

    @property
    def total_column(self) -> Column:
        return self.columns[-1]

    def _centered(self, top: float, text: str, size: int, color: RGB, bold: bool = False) -> None:
        self.fonts.draw_in_box(
            self.layout.margin, self.layout.content_width, top, text, size, color, align="C", bold=bold
        )

    def _draw_brand_image(self) -> None:
        if not self.brand_image:
            return
        size = self.layout.logo_size
        try:
            self.pdf.image(
                self.brand_image,
                x=self.layout.page_width - self.layout.margin - size,
                y=self.layout.margin,
                w=size,
                h=size,
                keep_aspect_ratio=True,
            )
        except Exception as exc:
            logger.warning("Could not draw brand image %s: %s", self.brand_image, exc)

    def _draw_header(self, y: float) -> float:
        layout = self.layout
        palette = layout.palette
        order = self.invoice.order

        self._draw_brand_image()

        title_y = y + layout.title_offset
        self._centered(title_y, "INVOICE", layout.title_size, palette.primary_dark, bold=True)

        info_y = title_y + layout.info_offset
        self._centered(info_y, "Invoice No:", layout.label_size, palette.text_secondary)
        self._centered(info_y + 15, order.id, layout.value_size, palette.text_primary, bold=True)

        invoice_date = fmt_invoice_date(order.created_at, now=self.clock)
        self._centered(info_y + 35, "Date:", layout.label_size, palette.text_secondary)
        self._centered(info_y + 50, invoice_date, layout.value_size, palette.text_primary, bold=True)

        return info_y + layout.info_block_h

    def billing_lines(self) -> List[BillingLine]:
        invoice = self.invoice
        lines: List[BillingLine] = [(invoice.bill_to_name, 11, True)]

        address = invoice.order.shipping_address
        if address is not None:
            if address.line:
                lines.append((address.line, 9, False))
            city_state_zip = join_present([address.city, address.state, address.postal_code])
            if city_state_zip:
                lines.append((city_state_zip, 9, False))

        if invoice.bill_to_mobile:
            lines.append((f"Mobile: {invoice.bill_to_mobile}", 9, False))
        if invoice.bill_to_email:
            lines.append((f"Email: {invoice.bill_to_email}", 9, False))
        return lines

    def _draw_billing(self, y: float) -> float:
        layout = self.layout
        palette = layout.palette
        x = layout.margin
        width = layout.bill_box_width
        height = layout.bill_box_height

        self.pdf.set_fill_color(*palette.background)
        self.pdf.rect(x, y, width, height, style="F")
        self.pdf.set_draw_color(*palette.primary_light)
        self.pdf.set_line_width(layout.bill_box_border)
        self.pdf.rect(x, y, width, height, style="D")

        text_x = x + layout.bill_padding
        self.fonts.draw_in_box(text_x, width, y + layout.bill_padding, "Bill To:", 12, palette.primary_dark, bold=True)

        box_bottom = y + height
        line_y = y + 25
        for index, (text, size, bold) in enumerate(self.billing_lines()):
            if line_y + size > box_bottom:
                # The box does not grow; remaining lines are clipped.
                break
            color = palette.text_primary if bold else palette.text_secondary
            self.fonts.draw_in_box(text_x, width - 2 * layout.bill_padding, line_y, text, size, color, bold=bold)
            line_y += 18 if index == 0 else layout.bill_line_h

        return box_bottom + layout.bill_gap_after

    def _draw_table_header(self, top: float) -> None:
        layout = self.layout
        palette = layout.palette

        self.pdf.set_fill_color(*palette.primary_dark)
        self.pdf.rect(layout.margin, top, layout.content_width, layout.header_row_h, style="F")

        for column in self.columns:
            self.fonts.draw_in_box(
                column.x,
                column.width,
                top + 10,
                column.title,
                layout.header_text_size,
                palette.white,
                align=column.align,
                bold=True,
            )

    def item_name_lines(self, item: LineItem) -> List[str]:
        name_column = self.columns[0]
        size = self.layout.row_text_size
        lines = wrap_text(self.fonts, item.name, name_column.width, size)
        limit = max_name_lines(self.layout)
        if len(lines) <= limit:
            return lines

        logger.warning("Item name %.40r wraps to %d lines; truncating to %d", item.name, len(lines), limit)
        last = lines[limit - 1].rstrip()
        while last and self.fonts.text_width(last + "...", size) > name_column.width:
            last = last[:-1].rstrip()
        return lines[: limit - 1] + [last + "..."]

    def row_height(self, name_lines: List[str]) -> float:
        measured = len(name_lines) * self.layout.row_line_h
        return max(self.layout.min_row_h, measured + self.layout.row_padding)

    def _start_continuation_page(self) -> float:
        self.pdf.add_page()
        header_top = self.layout.continuation_header_top
        self._draw_table_header(header_top)
        return rows_top(header_top, self.layout)

    def row_cells(self, item: LineItem) -> List[str]:
        prefix = self.layout.currency_prefix
        placeholder = self.layout.empty_cell
        return [
            item.size or placeholder,
            item.color or placeholder,
            fmt_qty(item.quantity),
            fmt_money(item.unit_price, prefix),
            fmt_money(item.line_total, prefix),
        ]

    def _draw_row(self, index: int, item: LineItem, name_lines: List[str], y: float, row_h: float) -> None:
        layout = self.layout
        palette = layout.palette
        size = layout.row_text_size

        if index % 2 == 0:
            self.pdf.set_fill_color(*palette.background)
            self.pdf.rect(layout.margin, y - 3, layout.content_width, row_h, style="F")

        name_column = self.columns[0]
        for line_index, line in enumerate(name_lines):
            self.fonts.draw_in_box(
                name_column.x,
                name_column.width,
                y + line_index * layout.row_line_h,
                line,
                size,
                palette.text_primary,
                align=name_column.align,
            )

        for column, text in zip(self.columns[1:], self.row_cells(item)):
            self.fonts.draw_in_box(column.x, column.width, y, text, size, palette.text_primary, align=column.align)

    def _draw_items(self, y: float) -> float:
        header_top = y + self.layout.table_gap_before
        self._draw_table_header(header_top)
        y = rows_top(header_top, self.layout)

        for index, item in enumerate(self.invoice.order.items):
            name_lines = self.item_name_lines(item)
            row_h = self.row_height(name_lines)
            if needs_page_break(y, row_h, self.layout):
                y = self._start_continuation_page()
            self._draw_row(index, item, name_lines, y, row_h)
            y += row_h

        return y

    def totals_rows(self) -> List[Tuple[str, Decimal]]:
        order = self.invoice.order
        rows: List[Tuple[str, Decimal]] = [("Subtotal:", order.subtotal)]
        if order.shipping_cost > 0:
            rows.append(("Shipping:", order.shipping_cost))
        if order.tax > 0:
            rows.append(("Tax (GST):", order.tax))
        return rows

    def _totals_height(self) -> float:
        layout = self.layout
        return (
            layout.totals_gap_before
            + len(self.totals_rows()) * layout.totals_row_h
            + layout.grand_total_gap
            + layout.totals_gap_after
        )

    def _footer_height(self) -> float:
        layout = self.layout
        return layout.footer_gap_before + 30 + 25 + layout.signature_size

    def _ensure_room(self, y: float, needed: float) -> float:
        if y + needed <= self.layout.page_height - self.layout.margin:
            return y
        self.pdf.add_page()
        return self.layout.margin

    def _draw_totals(self, y: float) -> float:
        layout = self.layout
        palette = layout.palette
        prefix = layout.currency_prefix
        value_column = self.total_column
        label_x = value_column.x - layout.totals_label_w - 10

        totals_y = y + layout.totals_gap_before
        for label, amount in self.totals_rows():
            self.fonts.draw_in_box(
                label_x, layout.totals_label_w, totals_y, label, layout.row_text_size, palette.text_secondary, align="R"
            )
            self.fonts.draw_in_box(
                value_column.x,
                value_column.width,
                totals_y,
                fmt_money(amount, prefix),
                layout.row_text_size,
                palette.text_primary,
                align="R",
            )
            totals_y += layout.totals_row_h

        totals_y += layout.grand_total_gap
        size = layout.grand_total_size
        self.fonts.draw_in_box(
            label_x, layout.totals_label_w, totals_y, "Total:", size, palette.primary_dark, align="R", bold=True
        )
        self.fonts.draw_in_box(
            value_column.x,
            value_column.width,
            totals_y,
            fmt_money(self.invoice.order.total, prefix),
            size,
            palette.text_primary,
            align="R",
            bold=True,
        )
        return totals_y + layout.totals_gap_after

    def _draw_footer(self, y: float) -> float:
        layout = self.layout
        palette = layout.palette

        footer_y = y + layout.footer_gap_before
        self._centered(footer_y, layout.thank_you, layout.thanks_size, palette.primary_dark, bold=True)

        disclaimer_y = footer_y + 30
        with self.pdf.local_context(fill_opacity=layout.disclaimer_opacity):
            self._centered(disclaimer_y, layout.disclaimer, layout.disclaimer_size, palette.text_secondary)

        brand_y = disclaimer_y + 25
        self.fonts.draw_in_box(
            layout.content_right - layout.signature_w,
            layout.signature_w,
            brand_y,
            layout.brand_name,
            layout.signature_size,
            palette.primary_dark,
            align="R",
            signature=True,
        )
        return brand_y + layout.signature_size

    def render(self) -> bytes:
        y = self._draw_header(self.layout.margin)
        y = self._draw_billing(y)
        y = self._draw_items(y)
        y = self._ensure_room(y, self._totals_height() + self._footer_height())
        y = self._draw_totals(y)
        self._draw_footer(y)

        pdf_blob = self.pdf.output()
        if isinstance(pdf_blob, (bytes, bytearray)):
            return bytes(pdf_blob)
        raise RuntimeError(f"Unexpected PDF output type: {type(pdf_blob).__name__}")


def render_invoice(
    invoice: InvoiceInput,
    layout: LayoutConfig = DEFAULT_LAYOUT,
    brand_image: Optional[str] = None,
) -> bytes:
    return InvoiceRenderer(invoice, layout, brand_image=brand_image).render()
