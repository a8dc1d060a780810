import unittest

from storefront_invoice.layout import DEFAULT_LAYOUT
from storefront_invoice.pagination import (
    continuation_capacity,
    estimate_page_count,
    first_page_capacity,
    first_table_top,
    max_items_for_pages,
    max_name_lines,
    needs_page_break,
    rows_top,
)


class PaginationTests(unittest.TestCase):
    def test_table_starts_below_header_and_billing_block(self) -> None:
        self.assertAlmostEqual(first_table_top(DEFAULT_LAYOUT), 325.0)
        self.assertAlmostEqual(rows_top(first_table_top(DEFAULT_LAYOUT), DEFAULT_LAYOUT), 369.0)

    def test_page_capacities_for_minimum_row_height(self) -> None:
        self.assertEqual(first_page_capacity(DEFAULT_LAYOUT), 9)
        self.assertEqual(continuation_capacity(DEFAULT_LAYOUT), 20)

    def test_needs_page_break_only_past_footer_reserve(self) -> None:
        limit = DEFAULT_LAYOUT.page_bottom_limit

        self.assertFalse(needs_page_break(limit - 24, 24, DEFAULT_LAYOUT))
        self.assertTrue(needs_page_break(limit - 23, 24, DEFAULT_LAYOUT))

    def test_estimate_page_count_boundary_values(self) -> None:
        self.assertEqual(estimate_page_count(1, DEFAULT_LAYOUT), 1)
        self.assertEqual(estimate_page_count(9, DEFAULT_LAYOUT), 1)
        self.assertEqual(estimate_page_count(10, DEFAULT_LAYOUT), 2)
        self.assertEqual(estimate_page_count(29, DEFAULT_LAYOUT), 2)
        self.assertEqual(estimate_page_count(30, DEFAULT_LAYOUT), 3)
        self.assertEqual(estimate_page_count(40, DEFAULT_LAYOUT), 3)

    def test_max_items_for_pages_matches_capacity_rules(self) -> None:
        self.assertEqual(max_items_for_pages(1, DEFAULT_LAYOUT), 9)
        self.assertEqual(max_items_for_pages(2, DEFAULT_LAYOUT), 29)
        self.assertEqual(max_items_for_pages(3, DEFAULT_LAYOUT), 49)

    def test_max_name_lines_fit_below_continuation_header(self) -> None:
        limit = max_name_lines(DEFAULT_LAYOUT)
        row_h = limit * DEFAULT_LAYOUT.row_line_h + DEFAULT_LAYOUT.row_padding
        top = rows_top(DEFAULT_LAYOUT.continuation_header_top, DEFAULT_LAYOUT)

        self.assertEqual(limit, 40)
        self.assertFalse(needs_page_break(top, row_h, DEFAULT_LAYOUT))
        self.assertTrue(needs_page_break(top, row_h + DEFAULT_LAYOUT.row_line_h, DEFAULT_LAYOUT))


if __name__ == "__main__":
    unittest.main()
