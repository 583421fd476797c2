"""Supabase client creation and the process-wide document store."""

from supabase import AsyncClient, AsyncClientOptions, acreate_client

from src.skills_audit.config import settings
from src.skills_audit.services.database.store import DocumentStore

# Global document store instance (initialized in main.py startup)
_document_store: DocumentStore | None = None


def _server_options() -> AsyncClientOptions:
    # Server-side clients must never keep a signed-in user's session
    return AsyncClientOptions(auto_refresh_token=False, persist_session=False)


async def create_supabase_client() -> AsyncClient:
    """
    Create a Supabase client with the anon key.

    Used for end-user auth flows (sign-in, sign-up, password reset mail).

    Returns:
        Async Supabase client that does not persist sessions
    """
    return await acreate_client(
        settings.supabase_url, settings.supabase_anon_key, options=_server_options()
    )


async def create_supabase_admin_client() -> AsyncClient:
    """
    Create a Supabase admin client with the service role key.

    This client bypasses Row-Level Security and can call the auth admin API.
    Only use it for trusted server-side operations: document access and
    account updates on behalf of an already-authorized caller.

    Returns:
        Async Supabase client with full database access
    """
    return await acreate_client(
        settings.supabase_url, settings.supabase_service_role_key, options=_server_options()
    )


def set_document_store(store: DocumentStore | None) -> None:
    """
    Set the global document store.

    Called during application startup, and by tests to install a double.
    """
    global _document_store
    _document_store = store


def get_document_store() -> DocumentStore:
    """
    Get the global document store.

    Raises:
        RuntimeError: If the store was not initialized
    """
    if _document_store is None:
        raise RuntimeError(
            "Document store not initialized. "
            "Ensure application startup calls set_document_store()."
        )
    return _document_store
