# wordref/document/__init__.py

"""
Document hosts: the abstract interface the engine talks to and an
in-memory implementation used by the CLI, the HTTP API and the tests.
"""

from .host import DocumentHost, LocationRelation, MarkerRef
from .memory import MemoryDocument, Paragraph, Selection

__all__ = [
    "DocumentHost",
    "LocationRelation",
    "MarkerRef",
    "MemoryDocument",
    "Paragraph",
    "Selection",
]
