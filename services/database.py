"""
Supabase database service - the record store gateway and auth provider

The store is created once by connect_store() and passed explicitly into every
service function. A missing or broken configuration produces an
UnavailableStore instead of a client, so each call site decides what absence
means for it (empty result, default value or ConfigurationError).
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from dotenv import load_dotenv
from supabase import AsyncClient, acreate_client

from .errors import (
    ConfigurationError,
    NotAuthenticatedError,
    classify_storage_error,
)

load_dotenv()

logger = logging.getLogger(__name__)


# =============================================================================
# STORE VARIANTS
# =============================================================================

@dataclass(frozen=True)
class AvailableStore:
    """A connected Supabase client."""
    client: AsyncClient
    is_available: bool = field(default=True, init=False)


@dataclass(frozen=True)
class UnavailableStore:
    """Storage could not be configured; reason says why."""
    reason: str
    is_available: bool = field(default=False, init=False)


RecordStore = Union[AvailableStore, UnavailableStore]


async def connect_store(
    url: Optional[str] = None,
    key: Optional[str] = None,
    *,
    access_token: Optional[str] = None,
    refresh_token: Optional[str] = None,
) -> RecordStore:
    """
    Create the record store.

    Args:
        url: Supabase project URL (defaults to SUPABASE_URL)
        key: Supabase anon key (defaults to SUPABASE_ANON_KEY)
        access_token: Session access token to restore the signed-in user
        refresh_token: Session refresh token

    Returns:
        AvailableStore on success, UnavailableStore otherwise
    """
    url = url or os.getenv("SUPABASE_URL")
    key = key or os.getenv("SUPABASE_ANON_KEY")

    if not url or not key:
        reason = "SUPABASE_URL and SUPABASE_ANON_KEY must be set"
        logger.error(f"Supabase credentials are missing: {reason}")
        return UnavailableStore(reason=reason)

    try:
        client = await acreate_client(url, key)
    except Exception as e:
        logger.error(f"Could not initialize Supabase client: {e}")
        return UnavailableStore(reason=f"Supabase client could not be created: {e}")

    if access_token and refresh_token:
        try:
            await client.auth.set_session(access_token, refresh_token)
        except Exception as e:
            # Expired or revoked session: the store stays usable, just anonymous
            logger.warning(f"Could not restore auth session: {e}")

    return AvailableStore(client=client)


def require_client(store: RecordStore, action: str) -> AsyncClient:
    """Return the client or raise ConfigurationError."""
    if isinstance(store, AvailableStore):
        return store.client
    raise ConfigurationError(f"Cannot {action}: storage is unavailable ({store.reason})")


# =============================================================================
# AUTH
# =============================================================================

async def get_owner_id(store: RecordStore) -> Optional[str]:
    """
    Get the id of the signed-in user.

    Returns:
        User UUID, or None when storage is unavailable or nobody is signed in
    """
    if not isinstance(store, AvailableStore):
        return None

    try:
        response = await store.client.auth.get_user()
    except Exception as e:
        logger.warning(f"Could not resolve current user: {e}")
        return None

    if response and response.user:
        return response.user.id
    return None


async def require_owner_id(store: RecordStore, action: str) -> str:
    """Get the signed-in user id or raise NotAuthenticatedError."""
    require_client(store, action)
    owner_id = await get_owner_id(store)
    if not owner_id:
        raise NotAuthenticatedError(f"User must be logged in to {action}.")
    return owner_id


async def sign_in(store: RecordStore, email: str, password: str) -> Dict[str, Any]:
    """
    Sign in with email and password.

    Returns:
        Dict with user id, email and session tokens for the web session
    """
    client = require_client(store, "sign in")
    response = await client.auth.sign_in_with_password({
        "email": email,
        "password": password,
    })
    if not response.user or not response.session:
        raise NotAuthenticatedError("Invalid email or password")

    return {
        "id": response.user.id,
        "email": response.user.email,
        "access_token": response.session.access_token,
        "refresh_token": response.session.refresh_token,
    }


# =============================================================================
# QUERY EXECUTION
# =============================================================================

async def execute(query, action: str, table: Optional[str] = None):
    """
    Await a PostgREST query and translate client errors.

    Args:
        query: Query builder with an awaitable execute()
        action: Description used in error messages, e.g. "fetching customers"
        table: Table name for schema mismatch detection

    Raises:
        InvoiceAppError subclass describing the failure
    """
    try:
        return await query.execute()
    except Exception as e:
        error = classify_storage_error(e, action, table)
        logger.error(str(error))
        raise error from e
