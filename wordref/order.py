# wordref/order.py

"""
Canonical first-appearance order of cited entries.

The persisted order is only ever reshuffled by `rebuild`, which is fed a
fresh reading-order scan of the document. Between rebuilds the only change
allowed is appending a newly cited id, so a citation's number may change
from one refresh to the next but never in the middle of one.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from wordref.storage import OrderStore


def canonical_order(raw_ids: Iterable[str]) -> List[str]:
    """
    Keep each id the first time it appears, dropping later repeats.

    >>> canonical_order(["A", "B", "A", "C", "B"])
    ['A', 'B', 'C']
    """
    seen = set()
    ordered: List[str] = []
    for entry_id in raw_ids:
        if entry_id in seen:
            continue
        seen.add(entry_id)
        ordered.append(entry_id)
    return ordered


def index_in(order: List[str], entry_id: str) -> Optional[int]:
    """
    1-based position of `entry_id` in `order`, None if unseen.
    """
    try:
        return order.index(entry_id) + 1
    except ValueError:
        return None


class OrderTracker:
    def __init__(self, store: OrderStore) -> None:
        self.store = store

    def current(self) -> List[str]:
        return self.store.get()

    def index_of(self, entry_id: str) -> Optional[int]:
        return index_in(self.store.get(), entry_id)

    def mark_cited(self, entry_id: str) -> None:
        self.store.mark_cited(entry_id)

    def ensure_index(self, entry_id: str) -> int:
        """
        Index of `entry_id`, appending it to the order first if needed.
        """
        self.store.mark_cited(entry_id)
        index = self.index_of(entry_id)
        return index if index is not None else 1

    def rebuild(self, raw_ids: Iterable[str]) -> List[str]:
        """
        Replace the persisted order with the canonical form of `raw_ids`.
        """
        order = canonical_order(raw_ids)
        self.store.put(order)
        return order

    def clear(self) -> None:
        self.store.clear()
