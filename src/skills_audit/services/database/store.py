"""Document-store access over Supabase tables."""

import logging
from collections.abc import Sequence
from typing import Any, Protocol

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient

from src.skills_audit.config import settings
from src.skills_audit.services.database.exceptions import (
    BatchCommitError,
    DocumentNotFoundError,
    DocumentStoreError,
)
from src.skills_audit.services.database.query import (
    OrderBy,
    Page,
    Predicate,
    build_page,
    collection_name,
    decode_cursor,
)

logger = logging.getLogger(__name__)


class Batch(Protocol):
    """Staged writes applied together by ``commit``: all of them, or none."""

    def set(self, collection: str, document_id: str, value: dict[str, Any]) -> None: ...

    def delete(self, collection: str, document_id: str) -> None: ...

    async def commit(self) -> None: ...


class DocumentStore(Protocol):
    """Collection/id document access used by every service."""

    async def get_by_id(self, collection: str, document_id: str) -> dict[str, Any] | None: ...

    async def set(self, collection: str, document_id: str, value: dict[str, Any]) -> None: ...

    async def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None: ...

    async def delete(self, collection: str, document_id: str) -> None: ...

    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
        cursor: str | None = None,
    ) -> Page: ...

    async def count(self, collection: str, predicates: Sequence[Predicate] = ()) -> int: ...

    def batch(self) -> Batch: ...


def _quote(value: Any) -> str:
    """Quote a value for use inside a PostgREST ``or``/``and`` expression."""
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def _conjunction(conditions: list[str]) -> str:
    if len(conditions) == 1:
        return conditions[0]
    return f"and({','.join(conditions)})"


def _equal(field: str, value: Any) -> str:
    return f"{field}.is.null" if value is None else f"{field}.eq.{_quote(value)}"


def _after(order: OrderBy, value: Any) -> str | None:
    """Condition for rows past ``value`` on one sort field, or None if none can be.

    Nulls sort first ascending and last descending, so they always rank lowest.
    """
    if value is None:
        return None if order.descending else f"{order.field}.not.is.null"
    if order.descending:
        return f"or({order.field}.lt.{_quote(value)},{order.field}.is.null)"
    return f"{order.field}.gt.{_quote(value)}"


def keyset_filter(order_by: Sequence[OrderBy], values: list[Any], last_id: str) -> str:
    """
    Build the PostgREST ``or`` expression selecting rows strictly after a cursor.

    For ordering (a asc, b asc) and cursor values (A, B, ID) this yields
    ``a.gt.A, and(a.eq.A,b.gt.B), and(a.eq.A,b.eq.B,id.gt.ID)``. A descending
    field also admits nulls after a non-null value, and a null cursor value
    is matched with ``is.null``.

    Example:
        >>> keyset_filter((OrderBy("name"),), ["Excel"], "abc")
        'name.gt."Excel",and(name.eq."Excel",id.gt."abc")'
    """
    clauses: list[str] = []
    equal_prefix: list[str] = []
    for order, value in zip(order_by, values):
        after = _after(order, value)
        if after is not None:
            clauses.append(_conjunction([*equal_prefix, after]))
        equal_prefix.append(_equal(order.field, value))
    clauses.append(_conjunction([*equal_prefix, f"id.gt.{_quote(last_id)}"]))
    return ",".join(clauses)


def set_operation(collection: str, document_id: str, value: dict[str, Any]) -> dict[str, Any]:
    """
    A whole-row write for the batch function.

    Columns missing from ``value`` are written as null, never kept from the
    stored row.
    """
    return {
        "op": "set",
        "collection": collection_name(collection),
        "id": document_id,
        "value": {**value, "id": document_id},
    }


class SupabaseBatch:
    """Batch that ships staged operations to a transactional Postgres function."""

    def __init__(self, client: AsyncClient, function_name: str) -> None:
        self.client = client
        self.function_name = function_name
        self._operations: list[dict[str, Any]] = []

    def set(self, collection: str, document_id: str, value: dict[str, Any]) -> None:
        self._operations.append(set_operation(collection, document_id, value))

    def delete(self, collection: str, document_id: str) -> None:
        self._operations.append(
            {"op": "delete", "collection": collection_name(collection), "id": document_id}
        )

    async def commit(self) -> None:
        """
        Apply all staged operations in one database transaction.

        Raises:
            BatchCommitError: If the function rejects any operation; nothing is written
        """
        if not self._operations:
            return

        try:
            await self.client.rpc(
                self.function_name, {"operations": self._operations}
            ).execute()
        except (APIError, httpx.HTTPError) as e:
            logger.error(
                f"Batch of {len(self._operations)} operations rejected: {e}",
                exc_info=True,
                extra={"error_type": "batch_commit_failed", "operations": len(self._operations)},
            )
            raise BatchCommitError(f"Batch commit failed: {e}") from e

        logger.info(f"Committed batch of {len(self._operations)} operations")
        self._operations = []


class SupabaseDocumentStore:
    """
    DocumentStore backed by Supabase tables, one table per collection.

    Every table has a text ``id`` primary key. Provider and transport errors
    are re-raised as ``DocumentStoreError`` so callers handle a single type.

    Example:
        >>> store = SupabaseDocumentStore(client)
        >>> page = await store.query(
        ...     "users",
        ...     [eq("department", "Finance"), eq("is_active", True)],
        ...     order_by=[asc("last_name")],
        ...     limit=10,
        ... )
        >>> next_page = await store.query(..., cursor=page.next_cursor)
    """

    def __init__(
        self,
        client: AsyncClient,
        page_size: int = settings.default_page_size,
        batch_function: str = settings.batch_function_name,
    ) -> None:
        self.client = client
        self.page_size = page_size
        self.batch_function = batch_function

    async def _execute(self, builder: Any, description: str) -> Any:
        try:
            return await builder.execute()
        except (APIError, httpx.HTTPError) as e:
            logger.error(
                f"Document store {description} failed: {e}",
                exc_info=True,
                extra={"error_type": "document_store_error"},
            )
            raise DocumentStoreError(f"{description} failed: {e}") from e

    async def get_by_id(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """Fetch a document by id, or None if it does not exist."""
        table = collection_name(collection)
        builder = self.client.table(table).select("*").eq("id", document_id).limit(1)
        response = await self._execute(builder, f"get {table}/{document_id}")
        return response.data[0] if response.data else None

    async def set(self, collection: str, document_id: str, value: dict[str, Any]) -> None:
        """
        Write a whole document through the batch function, creating it if absent.

        Columns absent from ``value`` become null; nothing of the stored row is kept.
        """
        table = collection_name(collection)
        builder = self.client.rpc(
            self.batch_function, {"operations": [set_operation(collection, document_id, value)]}
        )
        await self._execute(builder, f"set {table}/{document_id}")

    async def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        """
        Merge the named fields into an existing document.

        Raises:
            DocumentNotFoundError: If no document has this id
        """
        table = collection_name(collection)
        builder = self.client.table(table).update(fields).eq("id", document_id)
        response = await self._execute(builder, f"update {table}/{document_id}")
        if not response.data:
            raise DocumentNotFoundError(table, document_id)

    async def delete(self, collection: str, document_id: str) -> None:
        table = collection_name(collection)
        builder = self.client.table(table).delete().eq("id", document_id)
        await self._execute(builder, f"delete {table}/{document_id}")

    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
        cursor: str | None = None,
    ) -> Page:
        """
        Run a conjunctive query, optionally resuming after a cursor.

        A cursor implies pagination, so ``limit`` falls back to the default
        page size when one is given without a limit.

        Raises:
            InvalidCursorError: If the cursor was not produced for this ordering
            DocumentStoreError: If the query fails
        """
        table = collection_name(collection)
        order_by = tuple(order_by)
        if cursor is not None and limit is None:
            limit = self.page_size

        builder = self.client.table(table).select("*")
        for predicate in predicates:
            builder = getattr(builder, predicate.op.value)(predicate.field, predicate.value)

        if cursor is not None:
            values, last_id = decode_cursor(cursor, order_by)
            builder = builder.or_(keyset_filter(order_by, values, last_id))

        for order in order_by:
            builder = builder.order(order.field, desc=order.descending, nullsfirst=not order.descending)
        builder = builder.order("id")

        if limit is not None:
            builder = builder.limit(limit)

        response = await self._execute(builder, f"query {table}")
        return build_page(response.data or [], order_by, limit)

    async def count(self, collection: str, predicates: Sequence[Predicate] = ()) -> int:
        table = collection_name(collection)
        builder = self.client.table(table).select("id", count="exact")
        for predicate in predicates:
            builder = getattr(builder, predicate.op.value)(predicate.field, predicate.value)

        response = await self._execute(builder, f"count {table}")
        return response.count or 0

    def batch(self) -> SupabaseBatch:
        return SupabaseBatch(self.client, self.batch_function)
