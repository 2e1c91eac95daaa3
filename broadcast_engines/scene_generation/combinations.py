"""k-subset enumeration over an ordered camera roster."""
from __future__ import annotations

from typing import List, Sequence, TypeVar

T = TypeVar("T")


def combinations(items: Sequence[T], size: int) -> List[List[T]]:
    """All `size`-element subsets of `items`, preserving roster order inside each subset.

    Subsets containing the first item come first, then those without it, so
    the sequence is deterministic for a given roster.
    """
    if size == 0:
        return [[]]
    if not items:
        return []
    first, rest = items[0], items[1:]
    with_first = [[first, *combo] for combo in combinations(rest, size - 1)]
    without_first = combinations(rest, size)
    return with_first + without_first
