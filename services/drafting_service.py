"""
Invoice drafting via the Gemini API.

Turns the editor's draft input (customer, dates, rough item lines, GST and
notes) into a savable InvoiceSaveRequest. Gemini only polishes text: item
names and the notes. Prices, quantities and every total are always taken
from the draft and recomputed locally.

Gemini API used:
- POST https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent
"""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from .customer_service import Customer
from .errors import DraftingError
from .invoice_service import InvoiceSaveRequest, build_save_request

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"


@dataclass
class DraftRequest:
    customer: Customer
    invoice_number: str
    invoice_date: Any
    due_date: Any
    items: List[Dict[str, Any]] = field(default_factory=list)
    gst_percent: Any = 18
    notes: str = ""
    invoice_id: Optional[str] = None


def draft_locally(request: DraftRequest) -> InvoiceSaveRequest:
    """Normalize the draft without any external call."""
    return build_save_request(
        invoice_id=request.invoice_id,
        invoice_number=request.invoice_number,
        invoice_date=request.invoice_date,
        due_date=request.due_date,
        customer_id=request.customer.id,
        items=request.items,
        gst_percent=request.gst_percent,
        notes=request.notes,
    )


def build_prompt(draft: InvoiceSaveRequest, customer: Customer) -> str:
    lines = "\n".join(
        f"- {item.name} (qty {item.quantity} x {item.unit_price})" for item in draft.items
    )
    return (
        "You are preparing a professional invoice.\n"
        f"Customer: {customer.name}, {customer.address}\n"
        f"Invoice number: {draft.invoice_number}\n"
        f"Line items:\n{lines}\n"
        f"Notes: {draft.notes}\n\n"
        "Rewrite each line item name as a clear, professional description and "
        "polish the notes. Keep the same number of items in the same order. "
        'Respond with JSON only: {"items": [{"name": "..."}], "notes": "..."}'
    )


# ============================================================================
# GEMINI API CALL (internal)
# ============================================================================

async def _call_gemini_api(prompt: str, api_key: str, model: str) -> dict:
    """Call Gemini generateContent and return the JSON document it produced."""
    payload = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {"responseMimeType": "application/json"},
    }
    headers = {"x-goog-api-key": api_key, "Content-Type": "application/json"}

    async with httpx.AsyncClient(timeout=30.0) as client:
        response = await client.post(GEMINI_URL.format(model=model), json=payload, headers=headers)
        response.raise_for_status()
        body = response.json()

    text = body["candidates"][0]["content"]["parts"][0]["text"]
    generated = json.loads(text)
    if not isinstance(generated, dict):
        raise ValueError("Gemini response is not a JSON object")
    return generated


def merge_generated(draft: InvoiceSaveRequest, generated: dict) -> InvoiceSaveRequest:
    """
    Apply generated item names and notes onto the draft.

    Generated items are matched by position; missing or blank names keep the
    draft's name.
    """
    generated_items = generated.get("items")
    if not isinstance(generated_items, list):
        generated_items = []

    items = []
    for index, item in enumerate(draft.items):
        name = item.name
        if index < len(generated_items) and isinstance(generated_items[index], dict):
            name = str(generated_items[index].get("name") or "").strip() or item.name
        items.append({"name": name, "unit_price": item.unit_price, "quantity": item.quantity})

    notes = str(generated.get("notes") or "").strip() or draft.notes

    return build_save_request(
        invoice_id=draft.id,
        invoice_number=draft.invoice_number,
        invoice_date=draft.invoice_date,
        due_date=draft.due_date,
        customer_id=draft.customer_id,
        items=items,
        gst_percent=draft.gst_percent,
        notes=notes,
    )


async def draft_invoice(
    request: DraftRequest,
    *,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    fallback: bool = True,
) -> InvoiceSaveRequest:
    """
    Draft an invoice from editor input.

    Args:
        request: Draft input
        api_key: Gemini key (defaults to GEMINI_API_KEY)
        model: Gemini model (defaults to GEMINI_MODEL or gemini-2.5-flash)
        fallback: Use the local draft when the call fails instead of raising

    Raises:
        ValidationError: Draft input is incomplete
        DraftingError: Call failed and fallback is False
    """
    draft = draft_locally(request)

    api_key = api_key or os.getenv("GEMINI_API_KEY")
    if not api_key:
        logger.info("Gemini not configured (GEMINI_API_KEY missing), using local draft")
        return draft

    model = model or os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)

    try:
        generated = await _call_gemini_api(build_prompt(draft, request.customer), api_key, model)
    except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
        if not fallback:
            raise DraftingError(f"Invoice drafting failed: {e}") from e
        logger.warning(f"Gemini drafting failed for {draft.invoice_number}, using local draft: {e}")
        return draft

    logger.info(f"Invoice {draft.invoice_number} drafted with {model}")
    return merge_generated(draft, generated)
