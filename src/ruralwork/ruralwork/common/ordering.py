from __future__ import annotations

from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def sort_desc(items: Iterable[T], key: Callable[[T], float]) -> list[T]:
    """Descending sort that keeps equal items in input order.

    ``sorted`` is stable and stays stable with ``reverse=True``; no secondary key is applied.
    """

    return sorted(items, key=key, reverse=True)
