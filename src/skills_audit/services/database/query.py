"""Query primitives shared by every DocumentStore implementation."""

import base64
import binascii
import json
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any

from src.skills_audit.services.database.exceptions import InvalidCursorError


def plain_value(value: Any) -> Any:
    """Convert enums and dates to the JSON form they are stored in."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


def collection_name(collection: str) -> str:
    """Accept either a ``Collection`` member or a plain table name."""
    return collection.value if isinstance(collection, Enum) else collection


class Operator(str, Enum):
    """Comparison operators supported in predicates (PostgREST names)."""

    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"


@dataclass(frozen=True)
class Predicate:
    """A single ``field <op> value`` clause. Predicates in a query are ANDed."""

    field: str
    op: Operator
    value: Any

    def __post_init__(self) -> None:
        # Stored documents hold JSON values, so compare against the same form
        object.__setattr__(self, "value", plain_value(self.value))

    def matches(self, document: dict[str, Any]) -> bool:
        """Evaluate the clause against an in-memory document."""
        actual = document.get(self.field)
        if self.op is Operator.EQ:
            return actual == self.value
        if self.op is Operator.NEQ:
            return actual != self.value
        if actual is None or self.value is None:
            return False
        if self.op is Operator.GT:
            return actual > self.value
        if self.op is Operator.GTE:
            return actual >= self.value
        if self.op is Operator.LT:
            return actual < self.value
        return actual <= self.value


def eq(field: str, value: Any) -> Predicate:
    return Predicate(field, Operator.EQ, value)


def gte(field: str, value: Any) -> Predicate:
    return Predicate(field, Operator.GTE, value)


def lte(field: str, value: Any) -> Predicate:
    return Predicate(field, Operator.LTE, value)


@dataclass(frozen=True)
class OrderBy:
    """Sort key. ``id`` is always appended as an ascending tie-breaker."""

    field: str
    descending: bool = False


def asc(field: str) -> OrderBy:
    return OrderBy(field)


def desc(field: str) -> OrderBy:
    return OrderBy(field, descending=True)


class Page:
    """
    One page of query results.

    Documents are exposed as a single-pass iterator: once consumed, iterating
    again yields nothing. ``next_cursor`` is set only when the page was full,
    i.e. when more documents may follow.
    """

    def __init__(self, documents: Iterable[dict[str, Any]], next_cursor: str | None = None):
        self._documents: Iterator[dict[str, Any]] = iter(documents)
        self.next_cursor = next_cursor

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return self._documents


def build_page(
    documents: list[dict[str, Any]], order_by: tuple[OrderBy, ...], limit: int | None
) -> Page:
    """Wrap fetched documents, computing the resume cursor when the page is full."""
    next_cursor = None
    if limit is not None and documents and len(documents) == limit:
        next_cursor = encode_cursor(documents[-1], order_by)
    return Page(documents, next_cursor)


def encode_cursor(last_document: dict[str, Any], order_by: tuple[OrderBy, ...]) -> str:
    """Encode the sort-key values of the last document of a page as an opaque token."""
    payload = {
        "keys": [order.field for order in order_by],
        "values": [last_document.get(order.field) for order in order_by],
        "id": last_document["id"],
    }
    raw = json.dumps(payload, separators=(",", ":"), default=str).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii")


def decode_cursor(cursor: str, order_by: tuple[OrderBy, ...]) -> tuple[list[Any], str]:
    """
    Decode a cursor produced by ``encode_cursor`` for the same ordering.

    Returns:
        Tuple of (sort-key values, last document id)

    Raises:
        InvalidCursorError: If the token is malformed or was built for other sort keys
    """
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")))
        keys, values, last_id = payload["keys"], payload["values"], payload["id"]
    except (binascii.Error, UnicodeError, ValueError, KeyError, TypeError) as e:
        raise InvalidCursorError(f"Malformed cursor: {e}") from e

    if keys != [order.field for order in order_by]:
        raise InvalidCursorError("Cursor does not match the requested ordering")
    return values, last_id


def sort_key_after(
    document: dict[str, Any], order_by: tuple[OrderBy, ...], values: list[Any], last_id: str
) -> bool:
    """True when ``document`` sorts strictly after the cursor position."""
    for order, value in zip(order_by, values):
        actual = document.get(order.field)
        if actual == value:
            continue
        # None sorts before any value in ascending order
        if actual is None:
            return order.descending
        if value is None:
            return not order.descending
        return actual < value if order.descending else actual > value
    return document["id"] > last_id
