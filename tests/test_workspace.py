# tests/test_workspace.py

import asyncio

import pytest

from wordref.errors import ParseFailure
from wordref.styles import Style

NEW_BIBTEX = """
@article{nguyen2022,
  author = {Nguyen, Nia},
  title = {Fresh Results},
  journal = {Current Journal},
  year = {2022},
  doi = {10.5555/FRESH}
}
"""


def test_add_entries_skips_duplicates_by_key_doi_and_title(make_workspace):
    ws = make_workspace()
    bibtex = NEW_BIBTEX + """
@article{smith2020, title = {Anything}}
@article{other, title = {X}, doi = {10.1000/GRAPHS}}
@article{again, title = {graph   methods!}}
"""
    result = ws.add_entries(bibtex)

    assert result.added == ["nguyen2022"]
    assert sorted(result.duplicates) == [
        ("again", "smith2020", "title"),
        ("other", "smith2020", "doi"),
        ("smith2020", "smith2020", "citationKey"),
    ]
    assert ws.entries()["nguyen2022"].field("journal") == "Current Journal"


def test_add_entries_attaches_note(make_workspace):
    ws = make_workspace()
    ws.add_entries(NEW_BIBTEX, note_where="p. 4", note_text="main claim")
    note = ws.entries()["nguyen2022"].notes[0]
    assert (note.where, note.text) == ("p. 4", "main claim")
    assert [e.id for e in ws.search("main claim")] == ["nguyen2022"]


def test_bad_bibtex_changes_nothing(make_workspace):
    ws = make_workspace()
    before = ws.entries()
    with pytest.raises(ParseFailure):
        ws.add_entries("definitely not bibtex")
    assert ws.entries() == before


def test_cite_then_cite_earlier_renumbers(make_workspace):
    ws = make_workspace("First paragraph {{^}}.\nSecond paragraph.", style="ieee")

    first = asyncio.run(ws.cite("smith2020"))
    assert first.insert.text == "[1]"
    assert first.report.order == ["smith2020"]

    ws.host.select(0, 0)
    second = asyncio.run(ws.cite("adams2018"))

    assert second.report.order == ["adams2018", "smith2020"]
    assert ws.host.marker_texts() == ["[1]", "[2]"]
    assert [line[:3] for line in second.report.bibliography] == ["[1]", "[2]"]
    assert "Adams" in second.report.bibliography[0]


def test_cite_merges_touching_citations(make_workspace):
    ws = make_workspace("See {{cite:smith2020|[1]}}{{^}}.", style="numeric")
    ws.tracker.rebuild(["smith2020"])

    result = asyncio.run(ws.cite("adams2018"))

    assert result.insert.method == "merged"
    assert ws.host.marker_texts() == ["[1,2]"]


def test_cite_with_merging_disabled_keeps_separate_markers(make_workspace):
    ws = make_workspace(
        "See {{cite:smith2020|[1]}}{{^}}.",
        style="numeric",
        safe_mode_no_merge=True,
    )

    result = asyncio.run(ws.cite("adams2018"))

    assert result.merged == []
    assert ws.host.marker_texts() == ["[1]", "[2]"]


def test_cite_unknown_entry(make_workspace):
    ws = make_workspace("Text {{^}}.")
    with pytest.raises(KeyError):
        asyncio.run(ws.cite("nobody"))


def test_add_and_cite(make_workspace):
    ws = make_workspace("Text {{^}}.", style="apa")
    added, cites = asyncio.run(ws.add_and_cite(NEW_BIBTEX))
    assert added.added == ["nguyen2022"]
    assert cites[0].insert.text == "(Nguyen, 2022)"
    assert any("Fresh Results" in line for line in cites[0].report.bibliography)


def test_change_style_debounced_last_wins(make_workspace):
    ws = make_workspace("A {{cite:smith2020}} B {{cite:adams2018}}.", style="apa")

    async def scenario():
        return await asyncio.gather(ws.change_style("mla"), ws.change_style("ieee"))

    first, second = asyncio.run(scenario())

    assert first is None
    assert second.style is Style.IEEE
    assert ws.style is Style.IEEE
    assert ws.host.marker_texts() == ["[1]", "[2]"]


def test_reset_numbering_rebuilds_from_document(make_workspace):
    ws = make_workspace("A {{cite:adams2018|[9]}} B {{cite:smith2020|[4]}}.")
    ws.tracker.rebuild(["zhou2021", "smith2020", "adams2018"])

    report = asyncio.run(ws.reset_numbering())

    assert report.order == ["adams2018", "smith2020"]
    assert ws.host.marker_texts() == ["[1]", "[2]"]


def test_clear_library_empties_bibliography(make_workspace):
    ws = make_workspace("A {{cite:smith2020}}.")
    asyncio.run(ws.refresh())

    report = asyncio.run(ws.clear_library())

    assert ws.entries() == {}
    assert report.bibliography == []
    assert report.dangling == ["smith2020"]
    assert asyncio.run(ws.host.read_bibliography()) == []


def test_remove_entry_then_refresh(make_workspace):
    ws = make_workspace("A {{cite:smith2020}} B {{cite:adams2018}}.")
    assert ws.remove_entry("adams2018")
    assert not ws.remove_entry("adams2018")

    report = asyncio.run(ws.update_bibliography())
    assert report.dangling == ["adams2018"]


def test_merge_and_unmerge_refresh_afterwards(make_workspace):
    ws = make_workspace("{{[}}{{cite:smith2020|x}} and {{cite:adams2018|y}}{{]}}", style="ieee")

    outcome, report = asyncio.run(ws.merge_selection())
    assert outcome.ok
    assert report.order == ["smith2020", "adams2018"]
    assert ws.host.marker_texts() == ["[1,2]"]

    ws.host.select_marker(outcome.handle)
    outcome, report = asyncio.run(ws.unmerge_selection())
    assert outcome.ok
    assert ws.host.marker_texts() == ["[1]", "[2]"]


def test_merge_selection_noop_skips_refresh(make_workspace):
    ws = make_workspace("Nothing {{^}} here.")
    outcome, report = asyncio.run(ws.merge_selection())
    assert not outcome.ok
    assert report is None
