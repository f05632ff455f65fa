"""
Invoice money calculations.

Pure functions: line totals, subtotal, GST amount and grand total.
Arithmetic keeps full float precision; rounding only happens when a value is
formatted for display.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List


@dataclass
class InvoiceItem:
    """One priced, quantified line on an invoice."""
    name: str
    unit_price: float
    quantity: int
    line_total: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "line_total": self.line_total,
        }


@dataclass
class InvoiceTotals:
    subtotal: float
    tax_amount: float
    total: float


def safe_float(value: Any, default: float = 0.0) -> float:
    """Safely convert value to float"""
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (ValueError, TypeError):
        return default
    if result != result:  # NaN
        return default
    return result


def safe_int(value: Any, default: int = 0) -> int:
    """Safely convert value to int (accepts "3" and "3.0")"""
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        pass
    number = safe_float(value, float(default))
    return int(number)


def line_total(unit_price: Any, quantity: Any) -> float:
    return safe_float(unit_price) * safe_int(quantity)


def compute_totals(items: Iterable[Any], tax_percent: Any) -> InvoiceTotals:
    """
    Compute subtotal, tax and total for a list of items.

    Args:
        items: InvoiceItem objects or dicts with unit_price and quantity
        tax_percent: Flat GST percentage

    Returns:
        InvoiceTotals with subtotal, tax_amount and total

    Example:
        >>> compute_totals([{"unit_price": 100, "quantity": 2},
        ...                 {"unit_price": 50, "quantity": 1}], 18)
        InvoiceTotals(subtotal=250.0, tax_amount=45.0, total=295.0)
    """
    subtotal = 0.0
    for item in items:
        if isinstance(item, dict):
            subtotal += line_total(item.get("unit_price"), item.get("quantity"))
        else:
            subtotal += line_total(item.unit_price, item.quantity)

    tax_amount = subtotal * safe_float(tax_percent) / 100
    return InvoiceTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=subtotal + tax_amount,
    )


def build_item(raw: Dict[str, Any]) -> InvoiceItem:
    """Build an InvoiceItem from a stored or submitted row, recomputing line_total."""
    unit_price = safe_float(raw.get("unit_price"))
    quantity = safe_int(raw.get("quantity"))
    return InvoiceItem(
        name=str(raw.get("name") or "").strip(),
        unit_price=unit_price,
        quantity=quantity,
        line_total=unit_price * quantity,
    )


def build_items(raw_items: Iterable[Dict[str, Any]]) -> List[InvoiceItem]:
    """Build items from form rows; rows without a name are skipped."""
    items = []
    for raw in raw_items or []:
        item = build_item(raw)
        if item.name:
            items.append(item)
    return items


def format_currency(amount: Any) -> str:
    """
    Format an amount as Indian rupees, e.g. 123456.5 -> "₹1,23,456.50".
    """
    value = safe_float(amount)
    sign = "-" if value < 0 else ""
    whole, fraction = f"{abs(value):.2f}".split(".")

    # Indian grouping: last three digits, then groups of two
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])

    return f"{sign}₹{whole}.{fraction}"
