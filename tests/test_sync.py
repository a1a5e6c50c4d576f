# tests/test_sync.py

import asyncio

from doc_hosts import BrokenScanDocument, FlakyDocument, SlowDocument
from wordref.document.memory import MemoryDocument
from wordref.styles import Style
from wordref.sync import StyleDebouncer, SyncPipeline, SyncState

DOC = "Intro {{cite:smith2020}} then {{cite:adams2018}} and again {{cite:smith2020}}."


def test_numeric_refresh_numbers_by_first_appearance(library, tracker):
    doc = MemoryDocument.from_markup(DOC)
    report = asyncio.run(SyncPipeline(doc, library, tracker).refresh_all("ieee"))

    assert report.ok
    assert report.order == ["smith2020", "adams2018"]
    assert tracker.current() == ["smith2020", "adams2018"]
    assert doc.marker_texts() == ["[1]", "[2]", "[1]"]
    assert report.bibliography[0].startswith("[1] Smith, John")
    assert report.bibliography[1].startswith("[2] Adams, Ann")
    assert doc.paragraphs[-3].text() == "References"
    assert asyncio.run(doc.read_bibliography()) == report.bibliography


def test_refresh_is_idempotent(library, tracker):
    doc = MemoryDocument.from_markup(DOC)
    pipeline = SyncPipeline(doc, library, tracker)

    asyncio.run(pipeline.refresh_all("ieee"))
    snapshot = doc.to_dict()
    second = asyncio.run(pipeline.refresh_all("ieee"))

    assert second.rewritten == 0
    assert doc.to_dict() == snapshot


def test_stale_stored_order_is_replaced(library, tracker):
    tracker.rebuild(["zhou2021", "adams2018", "smith2020"])
    doc = MemoryDocument.from_markup(DOC)

    report = asyncio.run(SyncPipeline(doc, library, tracker).refresh_all("numeric"))

    assert report.order == ["smith2020", "adams2018"]
    assert doc.marker_texts() == ["[1]", "[2]", "[1]"]


def test_author_year_bibliography_sorted_by_surname(library, tracker):
    doc = MemoryDocument.from_markup(DOC + "\nLater {{group:zhou2021,brown2019}}.")
    report = asyncio.run(SyncPipeline(doc, library, tracker).refresh_all("apa"))

    assert doc.marker_texts() == [
        "(Smith, 2020)",
        "(Adams, 2018)",
        "(Smith, 2020)",
        "(Zhou, 2021; Brown, 2019)",
    ]
    surnames = [line.split(",")[0] for line in report.bibliography]
    assert surnames == ["Adams", "Brown", "Smith", "Zhou"]


def test_numeric_bibliography_keeps_citation_order(library, tracker):
    doc = MemoryDocument.from_markup("{{cite:zhou2021}} {{cite:adams2018}}")
    report = asyncio.run(SyncPipeline(doc, library, tracker).refresh_all("vancouver"))

    assert [line.split(".")[0] for line in report.bibliography] == ["1", "2"]
    assert "Zhou" in report.bibliography[0]


def test_deleted_entry_is_left_out_without_crashing(library, tracker):
    doc = MemoryDocument.from_markup(DOC)
    pipeline = SyncPipeline(doc, library, tracker)
    asyncio.run(pipeline.refresh_all("ieee"))

    library.remove("adams2018")
    report = asyncio.run(pipeline.refresh_all("ieee"))

    assert report.ok
    assert report.dangling == ["adams2018"]
    assert len(report.bibliography) == 1
    assert "Adams" not in report.bibliography[0]
    # numbering still comes from the document
    assert doc.marker_texts() == ["[1]", "[2]", "[1]"]

    author_year = asyncio.run(pipeline.refresh_all("apa"))
    assert author_year.ok
    # the dangling marker keeps whatever text it had
    assert doc.marker_texts() == ["(Smith, 2020)", "[2]", "(Smith, 2020)"]


def test_existing_bibliography_is_replaced_not_duplicated(library, tracker):
    doc = MemoryDocument.from_markup(
        "Text {{cite:adams2018}}.\n# Bibliography\nstale line one\nstale line two"
    )
    pipeline = SyncPipeline(doc, library, tracker, heading="References")

    asyncio.run(pipeline.refresh_all("ieee"))
    asyncio.run(pipeline.refresh_all("ieee"))

    lines = asyncio.run(doc.read_bibliography())
    assert len(lines) == 1
    assert lines[0].startswith("[1] Adams")
    headings = [p.text() for p in doc.paragraphs if p.kind == "heading"]
    assert headings == ["Bibliography"]


def test_empty_document_writes_empty_block(library, tracker):
    doc = MemoryDocument.from_markup("Nothing cited here.")
    report = asyncio.run(SyncPipeline(doc, library, tracker).refresh_all("apa"))

    assert report.order == []
    assert report.bibliography == []
    assert asyncio.run(doc.read_bibliography()) == []


def test_failed_marker_update_does_not_stop_the_rest(library, tracker):
    doc = FlakyDocument.from_markup(DOC)
    doc.broken = {1}

    report = asyncio.run(SyncPipeline(doc, library, tracker).refresh_all("ieee"))

    assert report.ok
    assert len(report.failures) == 1
    assert doc.marker_texts() == ["", "[2]", "[1]"]
    assert len(report.bibliography) == 2


def test_host_failure_is_reported_and_state_resets(library, tracker):
    doc = BrokenScanDocument.from_markup(DOC)
    pipeline = SyncPipeline(doc, library, tracker)

    report = asyncio.run(pipeline.refresh_all("ieee"))

    assert not report.ok
    assert "document is busy" in report.error
    assert pipeline.state is SyncState.IDLE


def test_single_flight_drops_overlapping_refresh(library, tracker):
    doc = SlowDocument.from_markup(DOC)
    pipeline = SyncPipeline(doc, library, tracker)

    async def scenario():
        return await asyncio.gather(pipeline.refresh_all("ieee"), pipeline.refresh_all("apa"))

    first, second = asyncio.run(scenario())

    assert first is not None and first.style is Style.IEEE
    assert second is None
    assert doc.list_calls == 1
    assert not pipeline.running


def test_try_start_and_finish():
    pipeline = SyncPipeline(MemoryDocument(), None, None)
    assert pipeline.try_start()
    assert not pipeline.try_start()
    pipeline.finish()
    assert pipeline.try_start()


class CountingPipeline(SyncPipeline):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.styles = []

    async def refresh_all(self, style):
        self.styles.append(Style.parse(style))
        return await super().refresh_all(style)


def test_debounce_collapses_rapid_style_changes(library, tracker):
    doc = MemoryDocument.from_markup(DOC)
    pipeline = CountingPipeline(doc, library, tracker)

    async def scenario():
        debouncer = StyleDebouncer(pipeline, delay=0.02)
        debouncer.request("apa")
        debouncer.request("mla")
        debouncer.request("vancouver")
        return await debouncer.flush()

    report = asyncio.run(scenario())

    assert pipeline.styles == [Style.VANCOUVER]
    assert report.style is Style.VANCOUVER
    assert doc.marker_texts() == ["[1]", "[2]", "[1]"]


def test_debounce_cancel_leaves_document_alone(library, tracker):
    doc = MemoryDocument.from_markup(DOC)
    pipeline = CountingPipeline(doc, library, tracker)

    async def scenario():
        debouncer = StyleDebouncer(pipeline, delay=0.02)
        debouncer.request("ieee")
        debouncer.cancel()
        return await debouncer.flush()

    assert asyncio.run(scenario()) is None
    assert pipeline.styles == []


def test_custom_heading_bibliography_is_not_duplicated_after_reload(library, tracker):
    doc = MemoryDocument.from_markup(DOC)
    asyncio.run(SyncPipeline(doc, library, tracker, heading="Works Cited").refresh_all("ieee"))

    reloaded = MemoryDocument.from_markup(doc.to_markup(), heading="Works Cited")
    asyncio.run(SyncPipeline(reloaded, library, tracker, heading="Works Cited").refresh_all("ieee"))

    text = reloaded.render()
    assert text.count("Graph Methods") == 1
    assert text.count("Works Cited") == 1
