from .entry import Entry, Note
from .marker import GroupMarker, Marker, SingleMarker, decode_tag, encode_tag

__all__ = [
    "Entry",
    "Note",
    "Marker",
    "SingleMarker",
    "GroupMarker",
    "decode_tag",
    "encode_tag",
]
