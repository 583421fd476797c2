"""Document store access and entity models."""

from src.skills_audit.services.database.connection import (
    create_supabase_admin_client,
    create_supabase_client,
    get_document_store,
    set_document_store,
)
from src.skills_audit.services.database.exceptions import (
    BatchCommitError,
    DocumentNotFoundError,
    DocumentStoreError,
    InvalidCursorError,
)
from src.skills_audit.services.database.memory import InMemoryDocumentStore
from src.skills_audit.services.database.query import OrderBy, Page, Predicate
from src.skills_audit.services.database.store import (
    Batch,
    DocumentStore,
    SupabaseDocumentStore,
)

__all__ = [
    "Batch",
    "BatchCommitError",
    "DocumentNotFoundError",
    "DocumentStore",
    "DocumentStoreError",
    "InMemoryDocumentStore",
    "InvalidCursorError",
    "OrderBy",
    "Page",
    "Predicate",
    "SupabaseDocumentStore",
    "create_supabase_admin_client",
    "create_supabase_client",
    "get_document_store",
    "set_document_store",
]
