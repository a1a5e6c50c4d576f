# tests/test_bibtex.py

import pytest

from wordref.bibtex import find_existing, looks_like_bibtex, parse_bibtex, search_library
from wordref.errors import ParseFailure
from wordref.models.entry import Entry, Note

TWO_RECORDS = """
@Article{smith2020,
  author  = {Smith, John and Doe, Jane},
  title   = {Graph Methods},
  journal = {Journal of Graphs},
  year    = {2020},
  Volume  = {12}
}

@inproceedings{lee2015,
  author    = {Lee, Lou},
  title     = {Oldest Work},
  booktitle = {Proc. Conf},
  year      = 2015
}
"""


def test_parse_two_records():
    entries = parse_bibtex(TWO_RECORDS)

    assert [e.id for e in entries] == ["smith2020", "lee2015"]
    assert [e.type for e in entries] == ["article", "inproceedings"]
    assert entries[0].field("volume") == "12"
    assert entries[1].field("booktitle") == "Proc. Conf"
    assert entries[1].field("year") == "2015"


def test_keys_with_reserved_characters_are_rewritten():
    [entry] = parse_bibtex("@misc{smith:2020, title = {T}}")
    assert entry.id == "smith-2020"


def test_empty_input_is_no_entries():
    assert parse_bibtex("   ") == []


def test_non_bibtex_input_fails():
    with pytest.raises(ParseFailure):
        parse_bibtex("just some words")


def test_parse_failure_is_a_value_error():
    with pytest.raises(ValueError):
        parse_bibtex("just some words")


def test_looks_like_bibtex():
    assert looks_like_bibtex("@book{k, title={T}}")
    assert not looks_like_bibtex("graph methods")


def test_find_existing_by_key_doi_then_title(library_entries):
    assert find_existing(Entry(id="smith2020"), library_entries) == ("smith2020", "citationKey")
    assert find_existing(
        Entry(id="x", fields={"doi": " 10.1000/GRAPHS "}), library_entries
    ) == ("smith2020", "doi")
    assert find_existing(
        Entry(id="y", fields={"title": "Early  work."}), library_entries
    ) == ("adams2018", "title")
    assert find_existing(Entry(id="z", fields={"title": "Unrelated"}), library_entries) is None


def test_search_library_matches_fields_and_notes(library_entries):
    library_entries["kim2016"].notes = [Note(where="ch. 2", text="baseline numbers")]

    assert [e.id for e in search_library(library_entries, "BASELINE")] == ["kim2016"]
    assert {e.id for e in search_library(library_entries, "old journal")} == {
        "adams2018",
        "kim2016",
        "lee2015",
    }
    assert len(search_library(library_entries, "")) == len(library_entries)
