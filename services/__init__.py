"""
Invoicing Services

Record store and auth gateway, invoice calculations, status resolution,
invoice numbering, invoice assembly and CRUD, customers, products,
company profile, drafting and exports.
"""

from .database import (
    AvailableStore,
    UnavailableStore,
    RecordStore,
    connect_store,
    require_client,
    get_owner_id,
    require_owner_id,
    sign_in,
)
from .errors import (
    InvoiceAppError,
    ConfigurationError,
    SchemaMismatchError,
    NotAuthenticatedError,
    AccessDeniedError,
    StorageError,
    RecordNotFoundError,
    ValidationError,
    DraftingError,
)
from .invoice_calculator import (
    InvoiceItem,
    InvoiceTotals,
    line_total,
    compute_totals,
    build_items,
    format_currency,
)
from .invoice_status import (
    InvoiceStatus,
    Derive,
    Explicit,
    NewInvoiceStatus,
    derive_status,
    resolve_status,
    parse_status,
)
from .invoice_numbering import (
    format_invoice_number,
    next_invoice_number_after,
    get_next_invoice_number,
)
from .customer_service import (
    Customer,
    get_customers,
    get_customer_by_id,
    save_customer,
    delete_customer,
)
from .product_service import (
    Product,
    get_products,
    get_product_by_id,
    save_product,
    delete_product,
)
from .company_service import (
    CompanyInfo,
    DEFAULT_COMPANY_INFO,
    get_company_info,
    save_company_info,
)
from .invoice_service import (
    Invoice,
    InvoiceSaveRequest,
    InvoiceSummary,
    build_save_request,
    save_request_from_invoice,
    assemble_invoices,
    get_invoices,
    get_invoice_by_id,
    save_invoice,
    update_invoice_status,
    delete_invoice,
    filter_invoices,
    summarize_invoices,
    status_for_resave,
)
from .drafting_service import DraftRequest, draft_invoice
from .invoice_export import generate_invoices_csv, generate_invoice_html, generate_invoice_pdf
