# wordref/labels.py

"""
Display text for markers, resolved against the cited order and the library.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

from wordref.models.entry import Entry
from wordref.order import index_in
from wordref.styles import Style


def single_label(
    entry_id: str,
    style: Style,
    order: List[str],
    library: Dict[str, Entry],
) -> Optional[str]:
    """
    Label for a single marker. None when the style needs the entry and the
    library no longer has it, or the id is not in the order.
    """
    return style.citation_class.in_text(library.get(entry_id), index_in(order, entry_id))


def group_label(
    entry_ids: Sequence[str],
    style: Style,
    order: List[str],
    library: Dict[str, Entry],
    extra_indices: Iterable[int] = (),
) -> Optional[str]:
    """
    Combined label for a group of ids.

    Numeric styles take the union of every resolved index (plus any
    `extra_indices` recovered from existing marker text); author-year
    styles list each entry that still exists in the library.
    """
    indices = [i for i in (index_in(order, eid) for eid in entry_ids) if i is not None]
    indices.extend(extra_indices)
    entries = [library.get(eid) for eid in entry_ids]
    return style.citation_class.group_text(entries, indices)
