"""
Tests for CSV and PDF invoice export.
"""

import sys
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from services.company_service import DEFAULT_COMPANY_INFO
from services.customer_service import Customer
from services.invoice_export import (
    CSV_BOM,
    escape_csv_cell,
    format_date,
    generate_invoice_html,
    generate_invoice_pdf,
    generate_invoices_csv,
    invoice_pdf_filename,
)
from services.invoice_service import _parse_invoice
from tests.conftest import make_invoice_row


@pytest.fixture
def invoice():
    customer = Customer(id="cust-1", name="Acme, \"The\" Traders", address="12 MG Road", gstin="29AAACA1234B1Z5")
    return _parse_invoice(make_invoice_row("inv-1", invoice_number="INV-2025-007"), customer)


class TestFormatting:

    def test_format_date(self):
        assert format_date(date(2025, 1, 5)) == "05/01/2025"
        assert format_date("2025-01-30") == "30/01/2025"
        assert format_date("") == "N/A"
        assert format_date(None) == "N/A"
        assert format_date("someday") == "someday"

    def test_escape_csv_cell(self):
        assert escape_csv_cell("plain") == "plain"
        assert escape_csv_cell("a,b") == '"a,b"'
        assert escape_csv_cell('say "hi"') == '"say ""hi"""'
        assert escape_csv_cell("two\nlines") == '"two\nlines"'
        assert escape_csv_cell(None) == ""


class TestCsv:

    def test_csv_layout(self, invoice):
        text = generate_invoices_csv([invoice])

        assert text.startswith(CSV_BOM)
        lines = text[len(CSV_BOM):].split("\n")
        assert lines[0] == "Invoice #,Client Name,Invoice Date,Due Date,Total Amount,Status"
        assert lines[1] == 'INV-2025-007,"Acme, ""The"" Traders",15/01/2025,30/01/2025,295.00,Unpaid'

    def test_empty_csv_has_header(self):
        assert generate_invoices_csv([]) == CSV_BOM + "Invoice #,Client Name,Invoice Date,Due Date,Total Amount,Status"


class TestHtml:

    def test_contains_parties_items_and_totals(self, invoice):
        html = generate_invoice_html(invoice, DEFAULT_COMPANY_INFO)

        assert "INV-2025-007" in html
        assert "Sriyantra Solutions" in html
        assert "Acme, &quot;The&quot; Traders" in html
        assert "Consulting" in html
        assert "₹250.00" in html
        assert "GST (18%)" in html
        assert "₹45.00" in html
        assert "₹295.00" in html
        assert "Thank you" in html

    def test_escapes_item_names(self, invoice):
        invoice.items[0].name = "<script>alert(1)</script>"
        html = generate_invoice_html(invoice, DEFAULT_COMPANY_INFO)
        assert "<script>" not in html


class TestPdf:

    def test_pdf_uses_weasyprint(self, invoice):
        fake_weasyprint = MagicMock()
        fake_weasyprint.HTML.return_value.write_pdf.return_value = b"%PDF-1.7"

        with patch.dict(sys.modules, {"weasyprint": fake_weasyprint}):
            pdf = generate_invoice_pdf(invoice, DEFAULT_COMPANY_INFO)

        assert pdf == b"%PDF-1.7"
        html_arg = fake_weasyprint.HTML.call_args.kwargs["string"]
        assert "INV-2025-007" in html_arg

    def test_filename(self, invoice):
        assert invoice_pdf_filename(invoice) == "INV-2025-007.pdf"
