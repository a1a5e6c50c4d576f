# tests/conftest.py

from __future__ import annotations

from typing import Callable, Dict

import pytest

from wordref.config.settings import Settings
from wordref.document.memory import MemoryDocument
from wordref.models.entry import Entry
from wordref.order import OrderTracker
from wordref.storage import LibraryStore, MemoryStore, OrderStore
from wordref.styles import Style
from wordref.workspace import CitationWorkspace


def make_entry(entry_id: str, author: str, year: str, title: str, **fields: str) -> Entry:
    return Entry(
        id=entry_id,
        type=fields.pop("type", "article"),
        fields={"author": author, "year": year, "title": title, **fields},
    )


@pytest.fixture
def library_entries() -> Dict[str, Entry]:
    entries = [
        make_entry(
            "smith2020",
            "Smith, John and Doe, Jane",
            "2020",
            "Graph Methods",
            journal="Journal of Graphs",
            volume="12",
            number="3",
            pages="1-10",
            doi="10.1000/graphs",
        ),
        make_entry("adams2018", "Adams, Ann", "2018", "Early Work", journal="Old Journal"),
        make_entry("brown2019", "Brown, Bob", "2019", "Middle Work", booktitle="Proc. Conf"),
        make_entry("zhou2021", "Zhou, Zed", "2021", "Late Work", journal="New Journal"),
        make_entry("kim2016", "Kim, Kay", "2016", "Older Work", journal="Old Journal"),
        make_entry("lee2015", "Lee, Lou", "2015", "Oldest Work", journal="Old Journal"),
    ]
    return {e.id: e for e in entries}


@pytest.fixture
def store(library_entries) -> MemoryStore:
    kv = MemoryStore()
    LibraryStore(kv).put(library_entries)
    return kv


@pytest.fixture
def library(store) -> LibraryStore:
    return LibraryStore(store)


@pytest.fixture
def tracker(store) -> OrderTracker:
    return OrderTracker(OrderStore(store))


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(DATA_DIR=tmp_path, style_debounce_seconds=0.01)


@pytest.fixture
def make_workspace(store, test_settings) -> Callable[..., CitationWorkspace]:
    """
    Build a workspace over a markup document and the shared sample library.
    """

    def _make(markup: str = "", style: str = "ieee", **overrides) -> CitationWorkspace:
        settings = test_settings.model_copy(update=overrides) if overrides else test_settings
        ws = CitationWorkspace(MemoryDocument.from_markup(markup), store, settings)
        ws.style = Style.parse(style)
        return ws

    return _make
