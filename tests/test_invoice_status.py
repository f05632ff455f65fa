"""
Tests for invoice status resolution.
"""

import pytest
from datetime import date, datetime, timedelta

from services.errors import ValidationError
from services.invoice_status import (
    Derive,
    Explicit,
    InvoiceStatus,
    derive_status,
    parse_status,
    resolve_status,
)

TODAY = date(2025, 6, 15)


class TestDeriveStatus:

    def test_past_due_date_is_overdue(self):
        assert derive_status(TODAY - timedelta(days=1), TODAY) == InvoiceStatus.OVERDUE

    def test_due_today_is_unpaid(self):
        assert derive_status(TODAY, TODAY) == InvoiceStatus.UNPAID

    def test_future_due_date_is_unpaid(self):
        assert derive_status(TODAY + timedelta(days=15), TODAY) == InvoiceStatus.UNPAID

    def test_time_of_day_is_ignored(self):
        """A due datetime late on the same day is not overdue."""
        assert derive_status(datetime(2025, 6, 15, 23, 59), TODAY) == InvoiceStatus.UNPAID
        assert derive_status("2025-06-15T00:00:00Z", TODAY) == InvoiceStatus.UNPAID
        assert derive_status("2025-06-14", TODAY) == InvoiceStatus.OVERDUE

    def test_never_produces_draft(self):
        for offset in range(-5, 6):
            assert derive_status(TODAY + timedelta(days=offset), TODAY) != InvoiceStatus.DRAFT

    def test_invalid_date_raises(self):
        with pytest.raises(ValidationError):
            derive_status("not-a-date", TODAY)


class TestResolveStatus:

    def test_derive_uses_due_date(self):
        assert resolve_status(Derive(), "2025-01-01", TODAY) == InvoiceStatus.OVERDUE
        assert resolve_status(Derive(), "2025-12-31", TODAY) == InvoiceStatus.UNPAID

    @pytest.mark.parametrize("status", list(InvoiceStatus))
    def test_explicit_wins_regardless_of_due_date(self, status):
        assert resolve_status(Explicit(status), "2000-01-01", TODAY) == status
        assert resolve_status(Explicit(status), "2099-01-01", TODAY) == status


class TestParseStatus:

    def test_parse_known_values(self):
        assert parse_status("Paid") == InvoiceStatus.PAID
        assert parse_status("overdue") == InvoiceStatus.OVERDUE
        assert parse_status(InvoiceStatus.DRAFT) == InvoiceStatus.DRAFT

    def test_parse_unknown_raises(self):
        with pytest.raises(ValidationError) as excinfo:
            parse_status("Cancelled")
        assert "Unknown invoice status" in str(excinfo.value)
