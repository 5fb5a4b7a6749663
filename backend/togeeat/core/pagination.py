"""Pagination Assembler — uniform {total, items} envelope for every listing.

Invariants:
    - wrap() is PURE: no IO, no mutation of the items it receives
    - total is the count of all rows matching the query, independent of the page
    - len(items) <= limit is guaranteed by the gateway, not checked here
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from togeeat.core.errors import ValidationError

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    total: int
    items: list[T]


def wrap(total: int, items: Sequence[T]) -> Page[T]:
    """Wrap a (count, page-of-items) pair into a Page."""
    if isinstance(total, bool) or not isinstance(total, int) or total < 0:
        raise ValidationError(f"invalid total: {total!r}", field="total")
    if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
        raise ValidationError("items must be a sequence", field="items")
    return Page(total=total, items=list(items))
