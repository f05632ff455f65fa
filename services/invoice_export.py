"""
Invoice export - CSV listing and PDF documents

CSV columns: Invoice #, Client Name, Invoice Date, Due Date, Total Amount, Status.
PDF: fixed A4 invoice layout rendered from HTML with WeasyPrint.
"""

from datetime import date
from html import escape
from typing import Any, Iterable, List

from .company_service import CompanyInfo
from .invoice_calculator import format_currency
from .invoice_service import Invoice

CSV_HEADERS = ["Invoice #", "Client Name", "Invoice Date", "Due Date", "Total Amount", "Status"]
CSV_BOM = "\ufeff"  # Excel needs it to detect UTF-8


def format_date(value: Any) -> str:
    """Format a date as DD/MM/YYYY; unknown formats are returned unchanged."""
    if isinstance(value, date):
        return value.strftime("%d/%m/%Y")
    if not value:
        return "N/A"
    text = str(value)
    parts = text.split("-")
    if len(parts) == 3 and all(p.isdigit() for p in parts) and len(parts[0]) == 4:
        year, month, day = parts
        return f"{day}/{month}/{year}"
    return text


def escape_csv_cell(value: Any) -> str:
    """Quote a cell only if it contains a quote, comma or newline."""
    text = "" if value is None else str(value)
    if '"' in text or "," in text or "\n" in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def invoice_csv_row(invoice: Invoice) -> List[str]:
    return [
        escape_csv_cell(invoice.invoice_number),
        escape_csv_cell(invoice.customer.name),
        escape_csv_cell(format_date(invoice.invoice_date)),
        escape_csv_cell(format_date(invoice.due_date)),
        escape_csv_cell(f"{invoice.total_amount:.2f}"),
        escape_csv_cell(invoice.status.value),
    ]


def generate_invoices_csv(invoices: Iterable[Invoice]) -> str:
    """
    Render invoices as CSV text (with BOM).

    Example:
        csv_text = generate_invoices_csv(filter_invoices(invoices, "acme"))
    """
    lines = [",".join(CSV_HEADERS)]
    lines.extend(",".join(invoice_csv_row(inv)) for inv in invoices)
    return CSV_BOM + "\n".join(lines)


# =============================================================================
# PDF
# =============================================================================

INVOICE_CSS = """
@page { size: A4; margin: 1.5cm; }
body { font-family: 'DejaVu Sans', Helvetica, Arial, sans-serif; font-size: 10pt; color: #222; }
.header { display: flex; justify-content: space-between; border-bottom: 1px solid #ccc; padding-bottom: 10px; }
.header h1 { font-size: 22pt; margin: 0; }
.company { text-align: right; }
.company .name { font-weight: bold; font-size: 12pt; }
.parties { display: flex; justify-content: space-between; margin: 20px 0; }
.label { font-weight: bold; color: #555; }
table.items { width: 100%; border-collapse: collapse; }
table.items th { background: #f0f0f0; text-align: left; padding: 6px; border-bottom: 1px solid #ccc; }
table.items td { padding: 6px; border-bottom: 1px solid #eee; }
.num { text-align: right; }
table.totals { margin-left: auto; margin-top: 15px; }
table.totals td { padding: 4px 8px; }
table.totals .grand td { font-weight: bold; font-size: 12pt; border-top: 1px solid #333; }
.notes { margin-top: 30px; color: #555; }
"""


def generate_invoice_html(invoice: Invoice, company: CompanyInfo) -> str:
    """
    Generate HTML for an invoice document.

    Layout:
    - Title, invoice number and dates on the left, company ("from") on the right
    - Bill-to customer block
    - Items table (description, quantity, unit price, line total)
    - Subtotal, GST and total
    - Notes
    """
    customer = invoice.customer

    item_rows = ""
    for index, item in enumerate(invoice.items, 1):
        item_rows += f"""
        <tr>
            <td>{index}</td>
            <td>{escape(item.name)}</td>
            <td class="num">{item.quantity}</td>
            <td class="num">{format_currency(item.unit_price)}</td>
            <td class="num">{format_currency(item.line_total)}</td>
        </tr>"""

    customer_gstin = f"<div>GSTIN: {escape(customer.gstin)}</div>" if customer.gstin else ""
    gst_percent = f"{invoice.gst_percent:g}"

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Invoice {escape(invoice.invoice_number)}</title>
    <style>{INVOICE_CSS}</style>
</head>
<body>
    <div class="header">
        <div>
            <h1>Invoice</h1>
            <div>Invoice #: {escape(invoice.invoice_number)}</div>
            <div>Date: {format_date(invoice.invoice_date)}</div>
            <div>Due Date: {format_date(invoice.due_date)}</div>
            <div>Status: {invoice.status.value}</div>
        </div>
        <div class="company">
            <div class="name">{escape(company.name)}</div>
            <div>{escape(company.address)}</div>
            <div>{escape(company.phone)}</div>
            <div>GSTIN: {escape(company.gstin)}</div>
        </div>
    </div>

    <div class="parties">
        <div>
            <div class="label">Bill To</div>
            <div><strong>{escape(customer.name)}</strong></div>
            <div>{escape(customer.address)}</div>
            <div>{escape(customer.phone)}</div>
            {customer_gstin}
        </div>
    </div>

    <table class="items">
        <thead>
            <tr><th>#</th><th>Item</th><th class="num">Qty</th><th class="num">Unit Price</th><th class="num">Total</th></tr>
        </thead>
        <tbody>{item_rows}
        </tbody>
    </table>

    <table class="totals">
        <tr><td>Subtotal</td><td class="num">{format_currency(invoice.subtotal)}</td></tr>
        <tr><td>GST ({gst_percent}%)</td><td class="num">{format_currency(invoice.gst_amount)}</td></tr>
        <tr class="grand"><td>Total</td><td class="num">{format_currency(invoice.total_amount)}</td></tr>
    </table>

    <div class="notes">
        <div class="label">Notes</div>
        <div>{escape(invoice.notes)}</div>
    </div>
</body>
</html>"""


def generate_invoice_pdf(invoice: Invoice, company: CompanyInfo) -> bytes:
    """
    Generate the invoice PDF.

    Returns:
        PDF file as bytes
    """
    try:
        from weasyprint import HTML
    except ImportError:
        raise ImportError("weasyprint is required for PDF generation. Install with: pip install weasyprint")

    html = generate_invoice_html(invoice, company)
    return HTML(string=html).write_pdf()


def invoice_pdf_filename(invoice: Invoice) -> str:
    return f"{invoice.invoice_number}.pdf"
