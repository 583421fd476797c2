"""In-memory DocumentStore with the same semantics as the Supabase store (tests/local runs)."""

import copy
import logging
from collections import defaultdict
from collections.abc import Sequence
from typing import Any

from src.skills_audit.config import settings
from src.skills_audit.services.database.exceptions import (
    BatchCommitError,
    DocumentNotFoundError,
)
from src.skills_audit.services.database.query import (
    OrderBy,
    Page,
    Predicate,
    build_page,
    collection_name,
    decode_cursor,
    sort_key_after,
)

logger = logging.getLogger(__name__)

Collections = dict[str, dict[str, dict[str, Any]]]


class InMemoryBatch:
    """Applies staged operations to a copy of the store, then swaps it in."""

    def __init__(self, store: "InMemoryDocumentStore") -> None:
        self.store = store
        self._operations: list[tuple[str, str, str, dict[str, Any] | None]] = []

    def set(self, collection: str, document_id: str, value: dict[str, Any]) -> None:
        self._operations.append(("set", collection_name(collection), document_id, value))

    def delete(self, collection: str, document_id: str) -> None:
        self._operations.append(("delete", collection_name(collection), document_id, None))

    async def commit(self) -> None:
        working: Collections = {name: dict(docs) for name, docs in self.store.collections.items()}
        try:
            for operation in self._operations:
                self.store.apply_operation(working, *operation)
        except Exception as e:
            raise BatchCommitError(f"Batch commit failed: {e}") from e

        self.store.collections = defaultdict(dict, working)
        self._operations = []


class InMemoryDocumentStore:
    """
    Dictionary-backed DocumentStore.

    Documents are deep-copied on the way in and out so callers can never
    mutate stored state through a returned reference.
    """

    def __init__(self, page_size: int = settings.default_page_size) -> None:
        self.page_size = page_size
        self.collections: Collections = defaultdict(dict)

    def apply_operation(
        self,
        collections: Collections,
        op: str,
        collection: str,
        document_id: str,
        value: dict[str, Any] | None,
    ) -> None:
        """Apply a single staged batch operation to ``collections``."""
        documents = collections.setdefault(collection, {})
        if op == "set":
            documents[document_id] = {**copy.deepcopy(value or {}), "id": document_id}
        else:
            documents.pop(document_id, None)

    async def get_by_id(self, collection: str, document_id: str) -> dict[str, Any] | None:
        document = self.collections[collection_name(collection)].get(document_id)
        return copy.deepcopy(document) if document is not None else None

    async def set(self, collection: str, document_id: str, value: dict[str, Any]) -> None:
        self.collections[collection_name(collection)][document_id] = {
            **copy.deepcopy(value),
            "id": document_id,
        }

    async def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        name = collection_name(collection)
        document = self.collections[name].get(document_id)
        if document is None:
            raise DocumentNotFoundError(name, document_id)
        document.update(copy.deepcopy(fields))

    async def delete(self, collection: str, document_id: str) -> None:
        self.collections[collection_name(collection)].pop(document_id, None)

    def _matching(self, collection: str, predicates: Sequence[Predicate]) -> list[dict[str, Any]]:
        return [
            document
            for document in self.collections[collection_name(collection)].values()
            if all(predicate.matches(document) for predicate in predicates)
        ]

    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate] = (),
        order_by: Sequence[OrderBy] = (),
        limit: int | None = None,
        cursor: str | None = None,
    ) -> Page:
        order_by = tuple(order_by)
        if cursor is not None and limit is None:
            limit = self.page_size

        documents = sorted(self._matching(collection, predicates), key=lambda d: d["id"])
        # Stable sorts from the least to the most significant key
        for order in reversed(order_by):
            documents.sort(
                key=lambda d, field=order.field: (d.get(field) is not None, d.get(field)),
                reverse=order.descending,
            )

        if cursor is not None:
            values, last_id = decode_cursor(cursor, order_by)
            documents = [d for d in documents if sort_key_after(d, order_by, values, last_id)]

        if limit is not None:
            documents = documents[:limit]

        return build_page([copy.deepcopy(d) for d in documents], order_by, limit)

    async def count(self, collection: str, predicates: Sequence[Predicate] = ()) -> int:
        return len(self._matching(collection, predicates))

    def batch(self) -> InMemoryBatch:
        return InMemoryBatch(self)
