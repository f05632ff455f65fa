"""
Tests for invoice money calculations.
"""

import pytest
import itertools

from services.invoice_calculator import (
    InvoiceItem,
    build_item,
    build_items,
    compute_totals,
    format_currency,
    line_total,
    safe_float,
    safe_int,
)


class TestSafeConversions:

    def test_safe_float_parses_strings(self):
        assert safe_float("12.5") == 12.5
        assert safe_float(3) == 3.0

    def test_safe_float_bad_values_are_zero(self):
        assert safe_float("abc") == 0.0
        assert safe_float("") == 0.0
        assert safe_float(None) == 0.0
        assert safe_float(float("nan")) == 0.0

    def test_safe_int(self):
        assert safe_int("3") == 3
        assert safe_int("3.0") == 3
        assert safe_int("x") == 0
        assert safe_int(None) == 0


class TestTotals:

    def test_reference_scenario(self):
        """100 x 2 + 50 x 1 at 18% GST -> 250 / 45 / 295."""
        totals = compute_totals(
            [{"unit_price": 100, "quantity": 2}, {"unit_price": 50, "quantity": 1}],
            18,
        )
        assert totals.subtotal == 250
        assert totals.tax_amount == 45
        assert totals.total == 295

    def test_line_total(self):
        assert line_total(19.99, 3) == pytest.approx(59.97)
        assert line_total("abc", 3) == 0

    def test_subtotal_independent_of_order(self):
        items = [
            {"unit_price": 10.1, "quantity": 3},
            {"unit_price": 0.2, "quantity": 7},
            {"unit_price": 999.99, "quantity": 1},
        ]
        expected = sum(i["unit_price"] * i["quantity"] for i in items)
        for permutation in itertools.permutations(items):
            assert compute_totals(list(permutation), 0).subtotal == pytest.approx(expected)

    def test_total_is_subtotal_plus_tax_exactly(self):
        totals = compute_totals([{"unit_price": 33.33, "quantity": 3}], 12.5)
        assert totals.subtotal + totals.tax_amount == totals.total

    def test_full_precision_kept(self):
        totals = compute_totals([{"unit_price": 10, "quantity": 1}], 33.3333)
        assert totals.tax_amount == 10 * 33.3333 / 100

    def test_unparsable_inputs_count_as_zero(self):
        totals = compute_totals(
            [{"unit_price": "n/a", "quantity": 5}, {"unit_price": 20, "quantity": ""}],
            "eighteen",
        )
        assert totals.subtotal == 0
        assert totals.tax_amount == 0
        assert totals.total == 0

    def test_accepts_invoice_items(self):
        items = [InvoiceItem(name="A", unit_price=5, quantity=4)]
        assert compute_totals(items, 10).total == 22

    def test_empty_items(self):
        totals = compute_totals([], 18)
        assert totals.subtotal == 0
        assert totals.total == 0


class TestBuildItems:

    def test_build_item_recomputes_line_total(self):
        item = build_item({"name": " Widget ", "unit_price": "2.5", "quantity": "4", "line_total": 999})
        assert item.name == "Widget"
        assert item.unit_price == 2.5
        assert item.quantity == 4
        assert item.line_total == 10

    def test_build_items_skips_blank_rows(self):
        items = build_items([
            {"name": "Design", "unit_price": 100, "quantity": 1},
            {"name": "", "unit_price": "", "quantity": ""},
            {"name": "   ", "unit_price": 5, "quantity": 1},
        ])
        assert [i.name for i in items] == ["Design"]


class TestFormatCurrency:

    def test_small_amount(self):
        assert format_currency(295) == "₹295.00"

    def test_indian_grouping(self):
        assert format_currency(1234567.891) == "₹12,34,567.89"
        assert format_currency(1000) == "₹1,000.00"

    def test_negative(self):
        assert format_currency(-1500) == "-₹1,500.00"
