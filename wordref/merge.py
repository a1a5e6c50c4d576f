# wordref/merge.py

"""
Merge single citation markers into one group marker, and split groups back.

Combined text follows the style class: numeric styles show the union of
the members' indices in one bracket with range compression ("[2,5-7]"),
author-year styles list each member inside one parenthesis
("(Smith, 2020; Doe, 2019)").
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Optional, Sequence

from wordref.document.host import DocumentHost
from wordref.labels import group_label, single_label
from wordref.models.entry import Entry
from wordref.models.marker import GroupMarker, SingleMarker, decode_tag
from wordref.order import OrderTracker, index_in
from wordref.ranges import parse as parse_indices
from wordref.scanner import ScannedMarker, decode_refs, flatten_ids, sort_by_location
from wordref.styles import Style

logger = logging.getLogger("wordref.merge")

NEED_TWO_CITATIONS = "Select at least two citations to merge."
NOTHING_TO_UNMERGE = "Nothing to unmerge."
EMPTY_GROUP = "Empty group."
PLACEHOLDER_TEXT = "[?]"


@dataclass
class MergeOutcome:
    ok: bool
    message: str
    handle: Optional[Hashable] = None
    entry_ids: List[str] = field(default_factory=list)
    # handles of the markers created by an unmerge
    created: List[Hashable] = field(default_factory=list)


async def _combined_text(
    host: DocumentHost,
    members: List[ScannedMarker],
    style: Style,
    order: List[str],
    library: Dict[str, Entry],
    extra_ids: Sequence[str] = (),
) -> str:
    ids = flatten_ids(members) + list(extra_ids)

    extra: List[int] = []
    if style.is_numeric:
        # ids the order has never seen keep whatever number they show now
        for member in members:
            if any(index_in(order, eid) is None for eid in member.ids):
                extra.extend(parse_indices(await host.get_marker_text(member.handle)))

    label = group_label(ids, style, order, library, extra)
    if label is None:
        return await host.get_marker_text(members[0].handle)
    return label


async def merge_markers(
    host: DocumentHost,
    members: List[ScannedMarker],
    style: Style,
    order: List[str],
    library: Dict[str, Entry],
) -> MergeOutcome:
    """
    Fold `members` (already in reading order) into the first one.

    The first marker is rewritten in place as a group; the rest are
    deleted together with their content.
    """
    ids = flatten_ids(members)
    text = await _combined_text(host, members, style, order, library)

    first = members[0]
    await host.set_marker(first.handle, GroupMarker(tuple(ids)).tag, text)
    for other in members[1:]:
        await host.delete_marker(other.handle, keep_content=False)

    logger.info("Merged %d citations into %s", len(members), text)
    return MergeOutcome(True, f"Merged {len(members)} citations.", first.handle, ids)


async def extend_marker(
    host: DocumentHost,
    target: ScannedMarker,
    entry_id: str,
    style: Style,
    order: List[str],
    library: Dict[str, Entry],
) -> MergeOutcome:
    """
    Append `entry_id` to an existing citation, turning a single into a group.
    """
    ids = list(target.ids) + [entry_id]
    text = await _combined_text(host, [target], style, order, library, extra_ids=[entry_id])
    await host.set_marker(target.handle, GroupMarker(tuple(ids)).tag, text)
    return MergeOutcome(True, f"Added {entry_id} to an existing citation.", target.handle, ids)


async def merge_selection(
    host: DocumentHost,
    tracker: OrderTracker,
    library: Dict[str, Entry],
    style: Style,
) -> MergeOutcome:
    """
    Merge the single citations under the current selection.

    Fewer than two eligible markers is reported back, not raised, and
    leaves the document untouched.
    """
    style = Style.parse(style)
    refs = await host.selection_markers()
    singles = [m for m in decode_refs(refs) if m.is_single]
    if len(singles) < 2:
        return MergeOutcome(False, NEED_TWO_CITATIONS)

    ordered = await sort_by_location(host, singles)
    return await merge_markers(host, ordered, style, tracker.current(), library)


async def unmerge_selection(
    host: DocumentHost,
    tracker: OrderTracker,
    library: Dict[str, Entry],
    style: Style,
) -> MergeOutcome:
    """
    Split the group citation under the selection into single citations.

    The singles go immediately before the group, separated by one space,
    and the group is deleted. Their labels are provisional until the next
    refresh renumbers the document.
    """
    style = Style.parse(style)
    refs = await host.selection_markers()
    groups = [m for m in decode_refs(refs) if m.is_group]
    if not groups:
        return MergeOutcome(False, NOTHING_TO_UNMERGE)

    group = (await sort_by_location(host, groups))[0]
    ids = list(group.ids)
    if not ids:
        return MergeOutcome(False, EMPTY_GROUP, group.handle)

    order = tracker.current()
    created: List[Hashable] = []
    for i, entry_id in enumerate(ids):
        text = single_label(entry_id, style, order, library) or PLACEHOLDER_TEXT
        handle = await host.insert_marker_before(group.handle, SingleMarker(entry_id).tag, text)
        created.append(handle)
        if i < len(ids) - 1:
            await host.insert_text_before(group.handle, " ")
    await host.delete_marker(group.handle, keep_content=False)

    logger.info("Split group into %d citations", len(ids))
    return MergeOutcome(True, f"Split into {len(ids)} citations.", None, ids, created)


async def merge_adjacent(
    host: DocumentHost,
    tracker: OrderTracker,
    library: Dict[str, Entry],
    style: Style,
) -> List[MergeOutcome]:
    """
    Merge every run of two or more single citations that touch each other.

    Each paragraph is handled on its own. Any text between two markers,
    whitespace included, ends a run, as does a group or foreign marker.
    """
    style = Style.parse(style)
    order = tracker.current()
    outcomes: List[MergeOutcome] = []

    for items in await host.paragraph_contents():
        runs: List[List[ScannedMarker]] = []
        run: List[ScannedMarker] = []
        for item in items:
            if isinstance(item, str):
                if item:
                    runs.append(run)
                    run = []
                continue
            marker = decode_tag(item.tag)
            if isinstance(marker, SingleMarker):
                run.append(ScannedMarker(item.handle, marker))
            else:
                runs.append(run)
                run = []
        runs.append(run)

        for members in runs:
            if len(members) >= 2:
                outcomes.append(await merge_markers(host, members, style, order, library))

    return outcomes
