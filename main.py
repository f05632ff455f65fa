"""
Invoicer - FastHTML + Supabase

Single-user invoicing: customers, products, company profile, invoices with
drafting, preview, PDF and CSV export.
Run with: python main.py
"""

from fasthtml.common import *
from starlette.responses import Response, RedirectResponse
from datetime import date, timedelta
from typing import List, Optional
from urllib.parse import urlencode
import logging
import os
from dotenv import load_dotenv

load_dotenv()

from services.database import AvailableStore, RecordStore, connect_store, sign_in
from services.errors import InvoiceAppError, ValidationError
from services.invoice_calculator import format_currency, safe_float
from services.invoice_status import InvoiceStatus, STATUS_COLORS
from services.invoice_numbering import get_next_invoice_number
from services.customer_service import Customer, get_customers, get_customer_by_id, save_customer, delete_customer
from services.product_service import Product, get_products, get_product_by_id, save_product, delete_product
from services.company_service import CompanyInfo, get_company_info, save_company_info
from services.invoice_service import (
    Invoice,
    get_invoices,
    get_invoice_by_id,
    save_invoice,
    update_invoice_status,
    delete_invoice,
    filter_invoices,
    summarize_invoices,
    status_for_resave,
)
from services.drafting_service import DraftRequest, draft_invoice
from services.invoice_export import format_date, generate_invoices_csv, generate_invoice_html, generate_invoice_pdf, invoice_pdf_filename

logger = logging.getLogger(__name__)

DEFAULT_GST_PERCENT = 18
DEFAULT_DUE_DAYS = 15
DEFAULT_NOTES = "Thank you for your business. Payment is due within 15 days."
EDITOR_ITEM_ROWS = 5

# ============================================================================
# APP SETUP
# ============================================================================

app, rt = fast_app(
    secret_key=os.getenv("APP_SECRET", "dev-secret-change-in-production"),
)

# ============================================================================
# STYLES
# ============================================================================

APP_STYLES = """
* { box-sizing: border-box; }
body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; margin: 0; padding: 0; background: #f5f5f5; color: #333; line-height: 1.6; }
nav { background: #1a1a2e; color: white; padding: 1rem 0; }
nav .nav-container { max-width: 1200px; margin: 0 auto; padding: 0 1rem; display: flex; justify-content: space-between; align-items: center; }
nav ul { list-style: none; margin: 0; padding: 0; display: flex; gap: 1.5rem; align-items: center; }
nav a { color: #a0a0ff; text-decoration: none; }
nav a:hover { color: white; }
nav strong { color: white; font-size: 1.2rem; }
h1, h2, h3 { color: #1a1a2e; margin-top: 0; }
input, select, button, textarea { padding: 0.5rem; font-size: 1rem; border: 1px solid #ddd; border-radius: 4px; }
button { background: #4a4aff; color: white; border: none; cursor: pointer; padding: 0.6rem 1.2rem; }
button.secondary { background: #6c757d; }
button.danger { background: #dc3545; }
table { width: 100%; border-collapse: collapse; background: white; margin-top: 1rem; }
th, td { padding: 0.75rem; text-align: left; border-bottom: 1px solid #eee; }
th { background: #f8f9fa; font-weight: 600; }
label { display: block; margin-bottom: 1rem; font-weight: 500; }
label input, label select, label textarea { margin-top: 0.25rem; width: 100%; }
.container { max-width: 1200px; margin: 0 auto; padding: 1rem; }
.card { background: white; padding: 1.5rem; border-radius: 8px; margin-bottom: 1rem; box-shadow: 0 1px 3px rgba(0,0,0,0.1); }
.stats-grid { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 1rem; }
.stat-value { font-size: 1.8rem; font-weight: bold; color: #4a4aff; }
.alert { padding: 1rem; border-radius: 4px; margin-bottom: 1rem; }
.alert-error { background: #f8d7da; color: #721c24; }
.alert-success { background: #d4edda; color: #155724; }
.status-badge { padding: 0.2rem 0.6rem; border-radius: 999px; color: white; font-size: 0.8rem; }
.inline { display: inline; }
.item-row { display: grid; grid-template-columns: 2fr 3fr 1fr 1fr; gap: 0.5rem; margin-bottom: 0.5rem; }
"""

# ============================================================================
# LAYOUT HELPERS
# ============================================================================

def nav_bar(session):
    """Navigation bar component"""
    user = session.get("user")
    if user:
        return Nav(
            Div(
                Ul(Li(Strong("Invoicer"))),
                Ul(
                    Li(A("Dashboard", href="/dashboard")),
                    Li(A("New Invoice", href="/invoices/new")),
                    Li(A("Customers", href="/customers")),
                    Li(A("Products", href="/products")),
                    Li(A("Settings", href="/settings")),
                    Li(A(f"Logout ({user.get('email', 'User')})", href="/logout")),
                ),
                cls="nav-container"
            )
        )
    return Nav(
        Div(
            Ul(Li(Strong("Invoicer"))),
            Ul(Li(A("Login", href="/login"))),
            cls="nav-container"
        )
    )


def page_layout(title, *content, session=None):
    """Standard page layout wrapper"""
    return Html(
        Head(
            Title(f"{title} - Invoicer"),
            Meta(charset="utf-8"),
            Meta(name="viewport", content="width=device-width, initial-scale=1"),
            Style(APP_STYLES),
        ),
        Body(
            nav_bar(session or {}),
            Main(Div(*content, cls="container"))
        )
    )


def error_alert(message):
    return Div(message, cls="alert alert-error")


def require_login(session):
    """Check if user is logged in"""
    if not session.get("user"):
        return RedirectResponse("/login", status_code=303)
    return None


async def get_store(session) -> RecordStore:
    """Record store for this request, signed in as the session's user."""
    tokens = session.get("tokens") or {}
    return await connect_store(
        access_token=tokens.get("access_token"),
        refresh_token=tokens.get("refresh_token"),
    )


def unavailable_page(store, session):
    return page_layout("Unavailable",
        error_alert(f"The application cannot reach its database: {store.reason}"),
        session=session
    )


def status_badge(status: InvoiceStatus):
    """Status badge component"""
    return Span(status.value, cls="status-badge", style=f"background: {STATUS_COLORS[status]};")


# ============================================================================
# AUTH ROUTES
# ============================================================================

def login_form(email=""):
    return Form(
        Label("Email", Input(name="email", type="email", value=email, placeholder="your@email.com", required=True)),
        Label("Password", Input(name="password", type="password", required=True)),
        Button("Sign In", type="submit"),
        method="post",
        action="/login"
    )


@rt("/")
def get(session):
    if session.get("user"):
        return RedirectResponse("/dashboard", status_code=303)
    return RedirectResponse("/login", status_code=303)


@rt("/login")
def get(session):
    if session.get("user"):
        return RedirectResponse("/dashboard", status_code=303)

    return page_layout("Login",
        Div(H1("Login"), login_form(), cls="card", style="max-width: 400px; margin: 2rem auto;"),
        session=session
    )


@rt("/login")
async def post(email: str, password: str, session):
    """Authenticate with Supabase"""
    store = await connect_store()
    try:
        user = await sign_in(store, email, password)
    except Exception as e:
        error_msg = str(e)
        if "Invalid login credentials" in error_msg:
            error_msg = "Invalid email or password"
        logger.warning(f"Login failed for {email}: {e}")
        return page_layout("Login",
            Div(error_alert(error_msg), H1("Login"), login_form(email),
                cls="card", style="max-width: 400px; margin: 2rem auto;"),
            session=session
        )

    session["user"] = {"id": user["id"], "email": user["email"]}
    session["tokens"] = {
        "access_token": user["access_token"],
        "refresh_token": user["refresh_token"],
    }
    return RedirectResponse("/dashboard", status_code=303)


@rt("/logout")
def get(session):
    session.clear()
    return RedirectResponse("/login", status_code=303)


# ============================================================================
# DASHBOARD
# ============================================================================

def invoice_row(invoice: Invoice):
    return Tr(
        Td(A(invoice.invoice_number, href=f"/invoices/{invoice.id}")),
        Td(invoice.customer.name),
        Td(format_date(invoice.invoice_date)),
        Td(format_date(invoice.due_date)),
        Td(format_currency(invoice.total_amount)),
        Td(status_badge(invoice.status)),
        Td(
            A("Edit", href=f"/invoices/{invoice.id}/edit"), " ",
            Form(Button("Delete", cls="danger"), method="post",
                 action=f"/invoices/{invoice.id}/delete", cls="inline",
                 onsubmit="return confirm('Delete this invoice?');"),
        ),
    )


def status_filter_select(current: str):
    options = [Option("All statuses", value="all", selected=current == "all")]
    options += [Option(s.value, value=s.value, selected=current == s.value) for s in InvoiceStatus]
    return Select(*options, name="status")


@rt("/dashboard")
async def get(session, search: str = "", status: str = "all"):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    if not isinstance(store, AvailableStore):
        return unavailable_page(store, session)

    try:
        invoices = await get_invoices(store)
        filtered = filter_invoices(invoices, search, status)
    except InvoiceAppError as e:
        return page_layout("Dashboard", error_alert(str(e)), session=session)

    summary = summarize_invoices(invoices)

    return page_layout("Dashboard",
        H1("Invoices"),
        Div(
            Div(P("Total Invoiced"), Div(format_currency(summary.total_invoiced), cls="stat-value"), cls="card"),
            Div(P("Total Paid"), Div(format_currency(summary.total_paid), cls="stat-value"), cls="card"),
            Div(P("Outstanding"), Div(format_currency(summary.outstanding), cls="stat-value"), cls="card"),
            cls="stats-grid"
        ),
        Div(
            Form(
                Input(name="search", value=search, placeholder="Search by number or client"),
                status_filter_select(status),
                Button("Filter", type="submit"),
                A("Export CSV", href="/invoices.csv?" + urlencode({"search": search, "status": status})),
                method="get", action="/dashboard"
            ),
            Table(
                Thead(Tr(Th("Invoice #"), Th("Client"), Th("Date"), Th("Due"), Th("Total"), Th("Status"), Th(""))),
                Tbody(*[invoice_row(inv) for inv in filtered]),
            ) if filtered else P("No invoices found."),
            cls="card"
        ),
        session=session
    )


@rt("/invoices.csv")
async def get(session, search: str = "", status: str = "all"):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        invoices = filter_invoices(await get_invoices(store), search, status)
    except InvoiceAppError as e:
        return page_layout("Export", error_alert(str(e)), session=session)
    return Response(
        generate_invoices_csv(invoices),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="invoices.csv"'},
    )


# ============================================================================
# INVOICE EDITOR
# ============================================================================

def item_rows(items: List[dict], products: List[Product]):
    rows = []
    padded = list(items) + [{}] * max(EDITOR_ITEM_ROWS - len(items), 1)
    for item in padded:
        rows.append(Div(
            Select(Option("Product...", value=""),
                   *[Option(f"{p.name} ({format_currency(p.unit_price)})", value=p.id) for p in products],
                   name="item_product"),
            Input(name="item_name", value=item.get("name", ""), placeholder="Item description"),
            Input(name="item_price", value=item.get("unit_price", ""), placeholder="Unit price"),
            Input(name="item_qty", value=item.get("quantity", ""), placeholder="Qty"),
            cls="item-row"
        ))
    return rows


def invoice_form(action: str, values: dict, customers: List[Customer], products: List[Product], submit_label: str):
    return Form(
        Label("Customer", Select(
            Option("Select a customer", value=""),
            *[Option(c.name, value=c.id, selected=c.id == values.get("customer_id")) for c in customers],
            name="customer_id", required=True)),
        Label("Invoice Number", Input(name="invoice_number", value=values.get("invoice_number", ""), required=True)),
        Label("Invoice Date", Input(name="invoice_date", type="date", value=values.get("invoice_date", ""))),
        Label("Due Date", Input(name="due_date", type="date", value=values.get("due_date", ""))),
        H3("Items"),
        *item_rows(values.get("items", []), products),
        Label("GST %", Input(name="gst_percent", type="number", step="any", value=values.get("gst_percent", DEFAULT_GST_PERCENT))),
        Label("Notes", Textarea(values.get("notes", ""), name="notes", rows=3)),
        Button(submit_label, type="submit"),
        method="post", action=action, cls="card"
    )


async def read_invoice_form(req, products: List[Product]) -> dict:
    """Collect editor fields; a chosen product fills a row's blank name/price."""
    form = await req.form()
    by_id = {p.id: p for p in products}

    items = []
    rows = zip(form.getlist("item_product"), form.getlist("item_name"),
               form.getlist("item_price"), form.getlist("item_qty"))
    for product_id, name, price, qty in rows:
        product = by_id.get(product_id)
        if product:
            name = name or product.name
            price = price or product.unit_price
        if not (name or "").strip():
            continue
        items.append({"name": name, "unit_price": price, "quantity": qty})

    return {
        "customer_id": form.get("customer_id") or None,
        "invoice_number": form.get("invoice_number", ""),
        "invoice_date": form.get("invoice_date") or date.today().isoformat(),
        "due_date": form.get("due_date") or date.today().isoformat(),
        "items": items,
        "gst_percent": form.get("gst_percent", DEFAULT_GST_PERCENT),
        "notes": form.get("notes", ""),
    }


async def submit_invoice(req, session, existing: Optional[Invoice]):
    """Draft and save the submitted editor form."""
    store = await get_store(session)
    try:
        customers = await get_customers(store)
        products = await get_products(store)
    except InvoiceAppError as e:
        return page_layout("Invoice", error_alert(str(e)), session=session)
    values = await read_invoice_form(req, products)

    action = f"/invoices/{existing.id}/edit" if existing else "/invoices/new"
    label = "Update Invoice" if existing else "Generate & Save Invoice"

    try:
        customer = next((c for c in customers if c.id == values["customer_id"]), None)
        if not customer:
            raise ValidationError("Please select a customer.")

        draft = await draft_invoice(DraftRequest(
            customer=customer,
            invoice_number=values["invoice_number"],
            invoice_date=values["invoice_date"],
            due_date=values["due_date"],
            items=values["items"],
            gst_percent=safe_float(values["gst_percent"]),
            notes=values["notes"],
            invoice_id=existing.id if existing else None,
        ))
        saved = await save_invoice(store, draft, status=status_for_resave(existing))
    except InvoiceAppError as e:
        return page_layout("Invoice",
            error_alert(str(e)),
            invoice_form(action, values, customers, products, label),
            session=session
        )

    return RedirectResponse(f"/invoices/{saved.id}", status_code=303)


@rt("/invoices/new")
async def get(session):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        customers = await get_customers(store)
        products = await get_products(store)
        invoice_number = await get_next_invoice_number(store)
    except InvoiceAppError as e:
        return page_layout("New Invoice", error_alert(str(e)), session=session)

    today = date.today()
    values = {
        "invoice_number": invoice_number,
        "invoice_date": today.isoformat(),
        "due_date": (today + timedelta(days=DEFAULT_DUE_DAYS)).isoformat(),
        "gst_percent": DEFAULT_GST_PERCENT,
        "notes": DEFAULT_NOTES,
    }
    return page_layout("New Invoice",
        H1("New Invoice"),
        invoice_form("/invoices/new", values, customers, products, "Generate & Save Invoice"),
        session=session
    )


@rt("/invoices/new")
async def post(req, session):
    redirect = require_login(session)
    if redirect:
        return redirect
    return await submit_invoice(req, session, None)


def invoice_values(invoice: Invoice) -> dict:
    return {
        "customer_id": invoice.customer.id,
        "invoice_number": invoice.invoice_number,
        "invoice_date": invoice.invoice_date.isoformat(),
        "due_date": invoice.due_date.isoformat(),
        "items": [item.to_dict() for item in invoice.items],
        "gst_percent": f"{invoice.gst_percent:g}",
        "notes": invoice.notes,
    }


@rt("/invoices/{invoice_id}/edit")
async def get(invoice_id: str, session):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        invoice = await get_invoice_by_id(store, invoice_id)
        customers = await get_customers(store)
        products = await get_products(store)
    except InvoiceAppError as e:
        return page_layout("Edit Invoice", error_alert(str(e)), session=session)

    if not invoice:
        return page_layout("Not Found", error_alert("Invoice not found."), session=session)

    return page_layout("Edit Invoice",
        H1(f"Edit {invoice.invoice_number}"),
        invoice_form(f"/invoices/{invoice.id}/edit", invoice_values(invoice), customers, products, "Update Invoice"),
        session=session
    )


@rt("/invoices/{invoice_id}/edit")
async def post(invoice_id: str, req, session):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        existing = await get_invoice_by_id(store, invoice_id)
    except InvoiceAppError as e:
        return page_layout("Edit Invoice", error_alert(str(e)), session=session)
    if not existing:
        return page_layout("Not Found", error_alert("Invoice not found."), session=session)
    return await submit_invoice(req, session, existing)


# ============================================================================
# INVOICE PREVIEW / STATUS / EXPORT
# ============================================================================

@rt("/invoices/{invoice_id}")
async def get(invoice_id: str, session):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        invoice = await get_invoice_by_id(store, invoice_id)
        company = await get_company_info(store)
    except InvoiceAppError as e:
        return page_layout("Invoice", error_alert(str(e)), session=session)

    if not invoice:
        return page_layout("Not Found", error_alert("Invoice not found."), session=session)

    status_buttons = []
    if invoice.status != InvoiceStatus.PAID:
        status_buttons.append(Form(Hidden(name="status", value="Paid"), Button("Mark as Paid"),
                                   method="post", action=f"/invoices/{invoice.id}/status", cls="inline"))
    if invoice.status not in (InvoiceStatus.UNPAID, InvoiceStatus.OVERDUE):
        status_buttons.append(Form(Hidden(name="status", value="Unpaid"), Button("Mark as Unpaid", cls="secondary"),
                                   method="post", action=f"/invoices/{invoice.id}/status", cls="inline"))

    return page_layout(invoice.invoice_number,
        Div(
            Strong("Status: "), status_badge(invoice.status), " ",
            *status_buttons, " ",
            A("Download PDF", href=f"/invoices/{invoice.id}/pdf"), " ",
            A("Edit", href=f"/invoices/{invoice.id}/edit"),
            cls="card"
        ),
        Div(Iframe(srcdoc=generate_invoice_html(invoice, company), style="width: 100%; height: 900px; border: 0;"),
            cls="card"),
        session=session
    )


@rt("/invoices/{invoice_id}/status")
async def post(invoice_id: str, status: str, session):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        await update_invoice_status(store, invoice_id, status)
    except InvoiceAppError as e:
        return page_layout("Invoice", error_alert(str(e)), session=session)
    return RedirectResponse(f"/invoices/{invoice_id}", status_code=303)


@rt("/invoices/{invoice_id}/delete")
async def post(invoice_id: str, session):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        await delete_invoice(store, invoice_id)
    except InvoiceAppError as e:
        return page_layout("Dashboard", error_alert(str(e)), session=session)
    return RedirectResponse("/dashboard", status_code=303)


@rt("/invoices/{invoice_id}/pdf")
async def get(invoice_id: str, session):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        invoice = await get_invoice_by_id(store, invoice_id)
        company = await get_company_info(store)
    except InvoiceAppError as e:
        return page_layout("Invoice", error_alert(str(e)), session=session)

    if not invoice:
        return page_layout("Not Found", error_alert("Invoice not found."), session=session)

    try:
        pdf = generate_invoice_pdf(invoice, company)
    except (ImportError, OSError) as e:
        logger.error(f"PDF generation failed for {invoice.invoice_number}: {e}")
        return page_layout("Invoice", error_alert(f"Could not generate PDF: {e}"), session=session)

    return Response(
        pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{invoice_pdf_filename(invoice)}"'},
    )


# ============================================================================
# CUSTOMERS
# ============================================================================

def customer_form(customer: Optional[Customer] = None):
    customer = customer or Customer(id="", name="")
    return Form(
        Hidden(name="customer_id", value=customer.id),
        Label("Name", Input(name="name", value=customer.name, required=True)),
        Label("Address", Textarea(customer.address, name="address", rows=2)),
        Label("Phone", Input(name="phone", value=customer.phone)),
        Label("GSTIN", Input(name="gstin", value=customer.gstin)),
        Button("Update Customer" if customer.id else "Save Customer", type="submit"),
        A("Cancel", href="/customers") if customer.id else "",
        method="post", action="/customers", cls="card"
    )


async def customers_page(store, session, message=None, form_customer=None):
    try:
        customers = await get_customers(store)
    except InvoiceAppError as e:
        return page_layout("Customers", message or "", error_alert(str(e)), session=session)

    return page_layout("Customers",
        H1("Customers"),
        message if message else "",
        customer_form(form_customer),
        Table(
            Thead(Tr(Th("Name"), Th("Address"), Th("Phone"), Th("GSTIN"), Th(""))),
            Tbody(*[Tr(
                Td(c.name), Td(c.address), Td(c.phone), Td(c.gstin),
                Td(A("Edit", href=f"/customers/{c.id}/edit"), " ",
                   Form(Button("Delete", cls="danger"), method="post",
                        action=f"/customers/{c.id}/delete", cls="inline")),
            ) for c in customers]),
        ) if customers else P("No customers yet."),
        session=session
    )


@rt("/customers")
async def get(session):
    redirect = require_login(session)
    if redirect:
        return redirect
    store = await get_store(session)
    return await customers_page(store, session)


@rt("/customers/{customer_id}/edit")
async def get(customer_id: str, session):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        customer = await get_customer_by_id(store, customer_id)
    except InvoiceAppError as e:
        return await customers_page(store, session, error_alert(str(e)))

    if not customer:
        return await customers_page(store, session, error_alert("Customer not found."))
    return await customers_page(store, session, form_customer=customer)


@rt("/customers")
async def post(name: str, session, address: str = "", phone: str = "", gstin: str = "", customer_id: str = ""):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        await save_customer(store, name, address=address, phone=phone, gstin=gstin,
                            customer_id=customer_id or None)
    except InvoiceAppError as e:
        draft = Customer(id=customer_id, name=name, address=address, phone=phone, gstin=gstin)
        return await customers_page(store, session, error_alert(str(e)), draft)
    return RedirectResponse("/customers", status_code=303)


@rt("/customers/{customer_id}/delete")
async def post(customer_id: str, session):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        await delete_customer(store, customer_id)
    except InvoiceAppError as e:
        return await customers_page(store, session, error_alert(str(e)))
    return RedirectResponse("/customers", status_code=303)


# ============================================================================
# PRODUCTS
# ============================================================================

def product_form(product: Optional[Product] = None):
    product = product or Product(id="", name="", unit_price="")
    return Form(
        Hidden(name="product_id", value=product.id),
        Label("Name", Input(name="name", value=product.name, required=True)),
        Label("Unit Price", Input(name="unit_price", type="number", step="any", min="0",
                                  value=product.unit_price, required=True)),
        Button("Update Product" if product.id else "Save Product", type="submit"),
        A("Cancel", href="/products") if product.id else "",
        method="post", action="/products", cls="card"
    )


async def products_page(store, session, message=None, form_product=None):
    try:
        products = await get_products(store)
    except InvoiceAppError as e:
        return page_layout("Products", message or "", error_alert(str(e)), session=session)

    return page_layout("Products",
        H1("Products"),
        message if message else "",
        product_form(form_product),
        Table(
            Thead(Tr(Th("Name"), Th("Unit Price"), Th(""))),
            Tbody(*[Tr(
                Td(p.name), Td(format_currency(p.unit_price)),
                Td(A("Edit", href=f"/products/{p.id}/edit"), " ",
                   Form(Button("Delete", cls="danger"), method="post",
                        action=f"/products/{p.id}/delete", cls="inline")),
            ) for p in products]),
        ) if products else P("No products yet."),
        session=session
    )


@rt("/products")
async def get(session):
    redirect = require_login(session)
    if redirect:
        return redirect
    store = await get_store(session)
    return await products_page(store, session)


@rt("/products/{product_id}/edit")
async def get(product_id: str, session):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        product = await get_product_by_id(store, product_id)
    except InvoiceAppError as e:
        return await products_page(store, session, error_alert(str(e)))

    if not product:
        return await products_page(store, session, error_alert("Product not found."))
    return await products_page(store, session, form_product=product)


@rt("/products")
async def post(name: str, unit_price: str, session, product_id: str = ""):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        await save_product(store, name, unit_price, product_id=product_id or None)
    except InvoiceAppError as e:
        draft = Product(id=product_id, name=name, unit_price=unit_price)
        return await products_page(store, session, error_alert(str(e)), draft)
    return RedirectResponse("/products", status_code=303)


@rt("/products/{product_id}/delete")
async def post(product_id: str, session):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        await delete_product(store, product_id)
    except InvoiceAppError as e:
        return await products_page(store, session, error_alert(str(e)))
    return RedirectResponse("/products", status_code=303)


# ============================================================================
# SETTINGS (COMPANY PROFILE)
# ============================================================================

def settings_page(company: CompanyInfo, session, message=None):
    return page_layout("Settings",
        H1("Company Profile"),
        message if message else "",
        Form(
            Label("Company Name", Input(name="name", value=company.name, required=True)),
            Label("Address", Textarea(company.address, name="address", rows=2)),
            Label("Phone", Input(name="phone", value=company.phone)),
            Label("GSTIN", Input(name="gstin", value=company.gstin)),
            Button("Save", type="submit"),
            method="post", action="/settings", cls="card"
        ),
        session=session
    )


@rt("/settings")
async def get(session):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    try:
        company = await get_company_info(store)
    except InvoiceAppError as e:
        return page_layout("Settings", error_alert(str(e)), session=session)
    return settings_page(company, session)


@rt("/settings")
async def post(name: str, session, address: str = "", phone: str = "", gstin: str = ""):
    redirect = require_login(session)
    if redirect:
        return redirect

    store = await get_store(session)
    info = CompanyInfo(name=name, address=address, phone=phone, gstin=gstin)
    try:
        saved = await save_company_info(store, info)
    except InvoiceAppError as e:
        return settings_page(info, session, error_alert(str(e)))
    return settings_page(saved, session, Div("Settings saved successfully!", cls="alert alert-success"))


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print("\n" + "="*50)
    print("  Invoicer - FastHTML + Supabase")
    print("="*50)
    print("  URL: http://localhost:5001")
    print("="*50 + "\n")

    serve(port=5001)
