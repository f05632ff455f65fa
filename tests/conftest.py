"""
Shared pytest fixtures for Invoicer tests.

Provides:
- In-memory async Supabase client (tables, filters, ordering, auth)
- Record store fixtures
- Test data factories
"""

import pytest
import os
import sys
import uuid
from copy import deepcopy
from datetime import datetime, timedelta
from types import SimpleNamespace

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment before importing app
os.environ["TESTING"] = "true"
os.environ["SUPABASE_URL"] = "https://test.supabase.co"
os.environ["SUPABASE_ANON_KEY"] = "test-key"
os.environ["APP_SECRET"] = "test-secret"
os.environ.pop("GEMINI_API_KEY", None)

from services.database import AvailableStore, UnavailableStore


OWNER_ID = "user-1"


# ============================================================================
# MOCK FACTORIES
# ============================================================================

def make_uuid():
    """Generate a UUID string."""
    return str(uuid.uuid4())


def make_customer(customer_id=None, name="Acme Traders", user_id=OWNER_ID, **extra):
    """Create a customer row."""
    row = {
        "id": customer_id or make_uuid(),
        "name": name,
        "address": "12 MG Road, Bangalore",
        "phone": "+91 98450 12345",
        "gstin": "29AAACA1234B1Z5",
        "user_id": user_id,
        "created_at": "2025-01-15T10:00:00Z",
    }
    row.update(extra)
    return row


def make_invoice_row(
    invoice_id=None,
    customer_id="cust-1",
    invoice_number="INV-2025-001",
    status="Unpaid",
    user_id=OWNER_ID,
    created_at="2025-01-15T10:00:00Z",
    **extra
):
    """Create an invoice row as stored (items embedded)."""
    row = {
        "id": invoice_id or make_uuid(),
        "invoice_number": invoice_number,
        "invoice_date": "2025-01-15",
        "due_date": "2025-01-30",
        "customer_id": customer_id,
        "items": [
            {"name": "Consulting", "unit_price": 100, "quantity": 2, "line_total": 200},
            {"name": "Support", "unit_price": 50, "quantity": 1, "line_total": 50},
        ],
        "subtotal": 250,
        "gst_percent": 18,
        "gst_amount": 45,
        "total_amount": 295,
        "notes": "Thank you",
        "status": status,
        "user_id": user_id,
        "created_at": created_at,
    }
    row.update(extra)
    return row


# ============================================================================
# SUPABASE MOCK
# ============================================================================

class MockSupabaseResponse:
    """Mock response from Supabase queries."""
    def __init__(self, data=None, count=None):
        self.data = data or []
        self.count = count


class MockSupabaseQuery:
    """In-memory query builder with an awaitable execute()."""

    def __init__(self, client, table_name):
        self.client = client
        self.table_name = table_name
        self._op = "select"
        self._payload = None
        self._eq = {}
        self._in = {}
        self._order = []
        self._limit = None

    def select(self, columns="*", count=None):
        return self

    def insert(self, data):
        self._op = "insert"
        self._payload = data
        return self

    def update(self, data):
        self._op = "update"
        self._payload = data
        return self

    def delete(self):
        self._op = "delete"
        return self

    def eq(self, column, value):
        self._eq[column] = value
        return self

    def in_(self, column, values):
        self._in[column] = list(values)
        return self

    def order(self, column, desc=False):
        self._order.append((column, desc))
        return self

    def limit(self, count):
        self._limit = count
        return self

    def _matches(self, row):
        if any(row.get(col) != val for col, val in self._eq.items()):
            return False
        return all(row.get(col) in vals for col, vals in self._in.items())

    async def execute(self):
        self.client.calls.append({
            "table": self.table_name,
            "op": self._op,
            "eq": dict(self._eq),
            "in": dict(self._in),
        })
        error = self.client.errors.get((self.table_name, self._op)) or self.client.errors.get(self.table_name)
        if error:
            raise error

        rows = self.client.tables.setdefault(self.table_name, [])

        if self._op == "insert":
            row = deepcopy(self._payload)
            row.setdefault("id", make_uuid())
            row.setdefault("created_at", self.client.next_timestamp())
            rows.append(row)
            return MockSupabaseResponse(data=[deepcopy(row)])

        matched = [row for row in rows if self._matches(row)]

        if self._op == "update":
            for row in matched:
                row.update(deepcopy(self._payload))
            return MockSupabaseResponse(data=deepcopy(matched))

        if self._op == "delete":
            self.client.tables[self.table_name] = [row for row in rows if not self._matches(row)]
            return MockSupabaseResponse(data=deepcopy(matched))

        for column, desc in reversed(self._order):
            matched = sorted(matched, key=lambda r: str(r.get(column) or ""), reverse=desc)
        if self._limit is not None:
            matched = matched[:self._limit]
        return MockSupabaseResponse(data=deepcopy(matched))


class MockAuth:
    """Mock of the async auth client."""

    def __init__(self, user_id=None):
        self.user_id = user_id

    async def get_user(self, jwt=None):
        if not self.user_id:
            return None
        return SimpleNamespace(user=SimpleNamespace(id=self.user_id, email="owner@example.com"))


class MockSupabaseClient:
    """In-memory async Supabase client for testing."""

    def __init__(self, user_id=OWNER_ID):
        self.tables = {}
        self.errors = {}
        self.calls = []
        self.auth = MockAuth(user_id)
        self._clock = datetime(2025, 1, 1, 9, 0, 0)

    def set_table_data(self, table_name, data):
        """Set mock data for a table."""
        self.tables[table_name] = deepcopy(data)

    def fail(self, table_name, error, op=None):
        """Make queries on a table (optionally one operation) raise error."""
        key = (table_name, op) if op else table_name
        self.errors[key] = error

    def next_timestamp(self):
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat() + "Z"

    def table(self, name):
        """Return a query for the table."""
        return MockSupabaseQuery(self, name)

    def calls_for(self, table_name, op=None):
        return [c for c in self.calls if c["table"] == table_name and (op is None or c["op"] == op)]


@pytest.fixture
def mock_supabase():
    """In-memory Supabase client signed in as OWNER_ID."""
    return MockSupabaseClient()


@pytest.fixture
def store(mock_supabase):
    """Available record store backed by the mock client."""
    return AvailableStore(client=mock_supabase)


@pytest.fixture
def anonymous_store():
    """Available store with nobody signed in."""
    return AvailableStore(client=MockSupabaseClient(user_id=None))


@pytest.fixture
def unavailable_store():
    return UnavailableStore(reason="SUPABASE_URL and SUPABASE_ANON_KEY must be set")
