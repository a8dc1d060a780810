import unittest
from datetime import date, datetime
from decimal import Decimal

from storefront_invoice.formatting import (
    fmt_invoice_date,
    fmt_money,
    fmt_qty,
    join_present,
    parse_decimal,
    wrap_text,
)


class FixedWidthFonts:
    """Every character is 5pt wide regardless of size."""

    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        return 5.0 * len(text)


def fixed_clock() -> datetime:
    return datetime(2026, 10, 18, 9, 0, 0)


class FormattingTests(unittest.TestCase):
    def test_fmt_money_uses_prefix_and_two_decimals(self) -> None:
        self.assertEqual(fmt_money(Decimal("499.5"), "Rs."), "Rs. 499.50")
        self.assertEqual(fmt_money(Decimal("0"), "Rs."), "Rs. 0.00")
        self.assertEqual(fmt_money(Decimal("10.005"), "Rs."), "Rs. 10.01")

    def test_parse_decimal_defaults_missing_and_invalid_values(self) -> None:
        self.assertEqual(parse_decimal(None), Decimal("0"))
        self.assertEqual(parse_decimal("abc"), Decimal("0"))
        self.assertEqual(parse_decimal("NaN"), Decimal("0"))
        self.assertEqual(parse_decimal(True, Decimal("7")), Decimal("7"))
        self.assertEqual(parse_decimal(" 12.40 "), Decimal("12.40"))
        self.assertEqual(parse_decimal(3), Decimal("3"))

    def test_fmt_qty_handles_integer_and_float_values(self) -> None:
        self.assertEqual(fmt_qty(3), "3")
        self.assertEqual(fmt_qty(2.5), "2.5")

    def test_fmt_invoice_date_formats_iso_timestamps(self) -> None:
        self.assertEqual(fmt_invoice_date("2026-01-15T10:30:00Z", now=fixed_clock), "15 January 2026")
        self.assertEqual(fmt_invoice_date(date(2025, 3, 4), now=fixed_clock), "4 March 2025")

    def test_fmt_invoice_date_falls_back_to_today(self) -> None:
        self.assertEqual(fmt_invoice_date("not-a-date", now=fixed_clock), "18 October 2026")
        self.assertEqual(fmt_invoice_date(None, now=fixed_clock), "18 October 2026")
        self.assertEqual(fmt_invoice_date("  ", now=fixed_clock), "18 October 2026")

    def test_fmt_invoice_date_reads_numbers_as_epoch_milliseconds(self) -> None:
        # 2025-10-09T12:00:00Z is 9 or 10 October in every local timezone.
        formatted = fmt_invoice_date(1760011200000, now=fixed_clock)

        self.assertTrue(formatted.endswith("October 2025"), formatted)
        self.assertEqual(fmt_invoice_date(Decimal("1760011200000"), now=fixed_clock), formatted)

    def test_fmt_invoice_date_out_of_range_numbers_fall_back_to_today(self) -> None:
        self.assertEqual(fmt_invoice_date(1e30, now=fixed_clock), "18 October 2026")
        self.assertEqual(fmt_invoice_date(True, now=fixed_clock), "18 October 2026")

    def test_join_present_skips_empty_parts(self) -> None:
        self.assertEqual(join_present(["Chennai", "", "600001"]), "Chennai, 600001")
        self.assertEqual(join_present(["", " "]), "")

    def test_wrap_text_breaks_on_words(self) -> None:
        lines = wrap_text(FixedWidthFonts(), "silk saree with zari border", 60, 10)

        self.assertEqual(lines, ["silk saree", "with zari", "border"])

    def test_wrap_text_splits_words_longer_than_the_column(self) -> None:
        lines = wrap_text(FixedWidthFonts(), "abcdefghijklmnop", 25, 10)

        self.assertEqual(lines, ["abcde", "fghij", "klmno", "p"])


if __name__ == "__main__":
    unittest.main()
