"""
Error taxonomy for the invoicing services.

Every storage or validation failure reaches the web layer as one of these,
carrying a single descriptive message. Nothing here is retried.
"""

from typing import Optional

from postgrest.exceptions import APIError
import httpx


# PostgREST / Postgres error codes we classify explicitly
RLS_VIOLATION_CODE = "42501"
UNDEFINED_COLUMN_CODE = "42703"


class InvoiceAppError(Exception):
    """Base class for all application errors."""


class ConfigurationError(InvoiceAppError):
    """Storage client is not configured or could not be created."""


class SchemaMismatchError(InvoiceAppError):
    """An expected column is missing from a table."""


class NotAuthenticatedError(InvoiceAppError):
    """A write was attempted without a signed-in owner."""


class AccessDeniedError(InvoiceAppError):
    """The write was rejected by row-level security."""


class StorageError(InvoiceAppError):
    """Any other failure talking to the record store."""


class RecordNotFoundError(InvoiceAppError):
    """A record that must exist could not be found."""


class ValidationError(InvoiceAppError):
    """User input is not acceptable."""


class DraftingError(InvoiceAppError):
    """The drafting call failed or returned something unusable."""


def schema_error_message(table: str) -> str:
    return (
        f"Database Schema Error: The '{table}' table is missing the 'user_id' column. "
        "Please run the SQL setup script to update your database."
    )


def is_missing_owner_column(exc: Exception) -> bool:
    """True if the error says the user_id column does not exist."""
    message = str(getattr(exc, "message", None) or exc)
    if "user_id" not in message:
        return False
    return getattr(exc, "code", None) == UNDEFINED_COLUMN_CODE or "does not exist" in message


def classify_storage_error(exc: Exception, action: str, table: Optional[str] = None) -> InvoiceAppError:
    """
    Convert a client exception into an application error.

    Args:
        exc: Exception raised by the Supabase/PostgREST client
        action: Human readable description, e.g. "fetching invoices"
        table: Table involved, used for the schema mismatch message

    Returns:
        The matching InvoiceAppError subclass instance
    """
    if isinstance(exc, InvoiceAppError):
        return exc

    if isinstance(exc, APIError):
        if table and is_missing_owner_column(exc):
            return SchemaMismatchError(schema_error_message(table))
        if exc.code == RLS_VIOLATION_CODE:
            return AccessDeniedError(f"Error {action}: permission denied ({exc.message})")
        return StorageError(f"Error {action}: {exc.message}")

    if isinstance(exc, httpx.HTTPError):
        return StorageError(f"Error {action}: storage is unreachable ({exc})")

    return StorageError(f"Error {action}: {exc}")
