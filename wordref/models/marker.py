# wordref/models/marker.py

"""
Marker tags as stored on the document host.

Two shapes exist on the wire:

    cite:<id>                single citation
    group:<id>(,<id>)*       grouped citation, ids in internal order

Everything outside this module works with the `SingleMarker` /
`GroupMarker` variant and never touches the raw string.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

SINGLE_PREFIX = "cite:"
GROUP_PREFIX = "group:"

_ID_RE = re.compile(r"^[^:,\s]+$")


def is_valid_id(entry_id: str) -> bool:
    return bool(entry_id) and _ID_RE.match(entry_id) is not None


@dataclass(frozen=True)
class SingleMarker:
    entry_id: str

    @property
    def ids(self) -> Tuple[str, ...]:
        return (self.entry_id,)

    @property
    def tag(self) -> str:
        return f"{SINGLE_PREFIX}{self.entry_id}"


@dataclass(frozen=True)
class GroupMarker:
    entry_ids: Tuple[str, ...]

    @property
    def ids(self) -> Tuple[str, ...]:
        return self.entry_ids

    @property
    def tag(self) -> str:
        return GROUP_PREFIX + ",".join(self.entry_ids)


Marker = Union[SingleMarker, GroupMarker]


def encode_tag(marker: Marker) -> str:
    return marker.tag


def decode_tag(tag: Optional[str]) -> Optional[Marker]:
    """
    Parse a host tag into a marker, or return None for tags that are not ours.

    A group tag keeps only the ids that are valid; `group:` with nothing
    usable decodes to an empty GroupMarker so callers can report it.
    """
    if not tag:
        return None
    tag = tag.strip()

    if tag.startswith(SINGLE_PREFIX):
        entry_id = tag[len(SINGLE_PREFIX):].strip()
        if not is_valid_id(entry_id):
            return None
        return SingleMarker(entry_id)

    if tag.startswith(GROUP_PREFIX):
        raw = tag[len(GROUP_PREFIX):]
        ids = tuple(part.strip() for part in raw.split(",") if is_valid_id(part.strip()))
        return GroupMarker(ids)

    return None
