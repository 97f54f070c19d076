"""
Supabase clients.

- ``get_client``          shared anon client (public reads, no sign-ins)
- ``create_anon_client``  throwaway anon client for sign-ins and refreshes
- ``create_user_client``  anon client acting as a signed-in user, so row-level
                          security sees the right ``auth.uid()``
- ``get_admin_client``    service-role client, built lazily so a missing key
                          only fails the operations that need it
"""
import logging
from typing import Optional

from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from ..config import SUPABASE_KEY, SUPABASE_SERVICE_ROLE_KEY, SUPABASE_URL
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_shared_client: Optional[Client] = None


def get_client() -> Client:
    global _shared_client
    if _shared_client is None:
        if not SUPABASE_URL or not SUPABASE_KEY:
            raise ConfigurationError("SUPABASE_URL / SUPABASE_KEY가 설정되지 않았습니다.")
        _shared_client = create_client(SUPABASE_URL, SUPABASE_KEY)
        logger.info("✅ Supabase client ready")
    return _shared_client


def create_anon_client() -> Client:
    """Fresh anon client for password sign-ins and token refreshes.

    Signing in rewrites the client's auth header, so this must never be the shared client.
    """
    if not SUPABASE_URL or not SUPABASE_KEY:
        raise ConfigurationError("SUPABASE_URL / SUPABASE_KEY가 설정되지 않았습니다.")
    return create_client(SUPABASE_URL, SUPABASE_KEY)


def create_user_client(access_token: Optional[str]) -> Client:
    """Client whose PostgREST and Storage calls carry the user's JWT."""
    if not access_token:
        return get_client()
    if not SUPABASE_URL or not SUPABASE_KEY:
        raise ConfigurationError("SUPABASE_URL / SUPABASE_KEY가 설정되지 않았습니다.")
    options = ClientOptions(headers={"Authorization": f"Bearer {access_token}"})
    client = create_client(SUPABASE_URL, SUPABASE_KEY, options=options)
    client.postgrest.auth(access_token)
    return client


def get_admin_client() -> Client:
    if not SUPABASE_URL:
        raise ConfigurationError("SUPABASE_URL is not set")
    if not SUPABASE_SERVICE_ROLE_KEY:
        raise ConfigurationError("SUPABASE_SERVICE_ROLE_KEY is not set")
    # Standalone client so admin calls never share an auth context with user sessions
    return create_client(SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY)
