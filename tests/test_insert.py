# tests/test_insert.py

import asyncio

import pytest

from doc_hosts import RefusingDocument
from wordref.document.memory import MemoryDocument
from wordref.errors import HostOperationFailure
from wordref.insert import (
    AT_END,
    AT_SELECTION,
    MERGED,
    TEXT_AT_END,
    TEXT_AT_SELECTION,
    insert_citation,
)
from wordref.styles import Style

ALL_MARKER_INSERTS = {"insert_marker_at_selection", "insert_marker_at_end"}


def _insert(doc, entry_id, style, tracker, library, **kwargs):
    lib = library.get()
    return asyncio.run(insert_citation(doc, lib[entry_id], Style.parse(style), tracker, lib, **kwargs))


def test_insert_at_caret_marks_cited(tracker, library):
    doc = MemoryDocument.from_markup("Results {{^}}hold.")

    outcome = _insert(doc, "smith2020", "ieee", tracker, library)

    assert outcome.method == AT_SELECTION
    assert outcome.has_marker
    assert outcome.text == "[1]"
    assert doc.to_markup() == "Results {{cite:smith2020|[1]}}{{^}}hold."
    assert tracker.current() == ["smith2020"]


def test_author_year_insert_uses_surname_and_year(tracker, library):
    doc = MemoryDocument.from_markup("As shown {{^}}.")
    outcome = _insert(doc, "adams2018", "harvard", tracker, library)
    assert outcome.text == "(Adams, 2018)"


def test_numeric_insert_after_citation_folds_into_it(tracker, library):
    tracker.rebuild(["smith2020"])
    doc = MemoryDocument.from_markup("See {{cite:smith2020|[1]}}{{^}} for more.")

    outcome = _insert(doc, "adams2018", "ieee", tracker, library)

    assert outcome.method == MERGED
    assert outcome.text == "[1,2]"
    assert doc.marker_tags() == ["group:smith2020,adams2018"]
    assert tracker.current() == ["smith2020", "adams2018"]


def test_numeric_insert_into_selected_group_appends(tracker, library):
    tracker.rebuild(["smith2020", "adams2018"])
    doc = MemoryDocument.from_markup("See {{[}}{{group:smith2020,adams2018|[1,2]}}{{]}} for more.")

    outcome = _insert(doc, "brown2019", "numeric", tracker, library)

    assert outcome.method == MERGED
    assert doc.marker_texts() == ["[1-3]"]
    assert doc.marker_tags() == ["group:smith2020,adams2018,brown2019"]


def test_safe_mode_inserts_a_separate_marker(tracker, library):
    tracker.rebuild(["smith2020"])
    doc = MemoryDocument.from_markup("See {{cite:smith2020|[1]}}{{^}} for more.")

    outcome = _insert(doc, "adams2018", "ieee", tracker, library, merge_into_neighbour=False)

    assert outcome.method == AT_SELECTION
    assert doc.marker_texts() == ["[1]", "[2]"]


def test_author_year_never_folds(tracker, library):
    doc = MemoryDocument.from_markup("See {{cite:smith2020|(Smith, 2020)}}{{^}}.")
    outcome = _insert(doc, "adams2018", "apa", tracker, library)
    assert outcome.method == AT_SELECTION
    assert doc.marker_texts() == ["(Smith, 2020)", "(Adams, 2018)"]


def test_no_selection_falls_back_to_end_of_body(tracker, library):
    doc = MemoryDocument.from_markup("Body text.\n# References\n[1] old")

    outcome = _insert(doc, "smith2020", "ieee", tracker, library)

    assert outcome.method == AT_END
    assert [p.text() for p in doc.paragraphs] == ["Body text.", "[1]", "References", "[1] old"]


def test_selection_in_heading_falls_back_to_end(tracker, library):
    doc = MemoryDocument.from_markup("# Title\nBody.")
    doc.select(0, 0)

    outcome = _insert(doc, "smith2020", "apa", tracker, library)

    assert outcome.method == AT_END
    assert doc.paragraphs[-1].text() == "(Smith, 2020)"


def test_force_append_end_ignores_caret(tracker, library):
    doc = MemoryDocument.from_markup("Results {{^}}hold.")
    outcome = _insert(doc, "smith2020", "ieee", tracker, library, force_append_end=True)
    assert outcome.method == AT_END
    assert doc.paragraphs[0].text() == "Results hold."


def test_plain_text_fallback_when_markers_refused(tracker, library):
    doc = RefusingDocument.from_markup("Results {{^}}hold.")
    doc.refuse = set(ALL_MARKER_INSERTS)

    outcome = _insert(doc, "smith2020", "ieee", tracker, library)

    assert outcome.method == TEXT_AT_SELECTION
    assert not outcome.has_marker
    assert doc.render() == "Results [1]hold."
    assert tracker.current() == []


def test_plain_text_at_end_is_last_resort(tracker, library):
    doc = RefusingDocument.from_markup("Results {{^}}hold.")
    doc.refuse = ALL_MARKER_INSERTS | {"insert_text_at_selection"}

    outcome = _insert(doc, "smith2020", "ieee", tracker, library)

    assert outcome.method == TEXT_AT_END
    assert doc.paragraphs[-1].text() == "[1]"


def test_everything_refused_raises(tracker, library):
    doc = RefusingDocument.from_markup("Results {{^}}hold.")
    doc.refuse = ALL_MARKER_INSERTS | {"insert_text_at_selection", "insert_text_at_end"}

    with pytest.raises(HostOperationFailure):
        _insert(doc, "smith2020", "ieee", tracker, library)
    assert tracker.current() == []
    assert doc.marker_tags() == []


def test_failed_insert_keeps_earlier_order_and_numbers(tracker, library):
    tracker.rebuild(["adams2018"])
    doc = RefusingDocument.from_markup("Seen {{cite:adams2018|[1]}}. Results {{^}}hold.")
    doc.refuse = ALL_MARKER_INSERTS | {"insert_text_at_selection", "insert_text_at_end"}

    with pytest.raises(HostOperationFailure):
        _insert(doc, "smith2020", "ieee", tracker, library)
    assert tracker.current() == ["adams2018"]

    doc.refuse = set()
    outcome = _insert(doc, "zhou2021", "ieee", tracker, library, merge_into_neighbour=False)
    assert outcome.text == "[2]"
    assert tracker.current() == ["adams2018", "zhou2021"]


def test_plain_text_fallback_can_be_disabled(tracker, library):
    doc = RefusingDocument.from_markup("Results {{^}}hold.")
    doc.refuse = set(ALL_MARKER_INSERTS)

    with pytest.raises(HostOperationFailure):
        _insert(doc, "smith2020", "ieee", tracker, library, plain_text_fallback=False)
    assert doc.render() == "Results hold."
