# tests/test_scanner.py

import asyncio

from doc_hosts import TiedHost
from wordref.document.host import MarkerRef
from wordref.document.memory import MemoryDocument
from wordref.scanner import flatten_ids, scan_document, sort_by_location


def test_scan_follows_reading_order_not_creation_order():
    doc = MemoryDocument.from_markup("Intro {{cite:b|x}} then {{cite:c|y}}.")

    async def scenario():
        first = (await doc.list_markers())[0]
        # created last, but sits in front of everything
        await doc.insert_marker_before(first.handle, "cite:a", "z")
        return await scan_document(doc)

    scanned = asyncio.run(scenario())
    assert [m.ids for m in scanned] == [("a",), ("b",), ("c",)]


def test_scan_skips_foreign_markers_and_expands_groups():
    doc = MemoryDocument.from_markup(
        "{{cite:a}} {{toc:1}} {{group:b,a,c}} {{cite:d}}"
    )
    scanned = asyncio.run(scan_document(doc))
    assert len(scanned) == 3
    assert scanned[1].is_group and not scanned[1].is_single
    assert flatten_ids(scanned) == ["a", "b", "a", "c", "d"]


def test_same_position_keeps_discovery_order():
    refs = [MarkerRef("x", "cite:x"), MarkerRef("y", "cite:y"), MarkerRef("z", "cite:z")]
    host = TiedHost(refs, {"x": 2, "y": 1, "z": 1})

    ordered = asyncio.run(sort_by_location(host, refs))
    assert [r.handle for r in ordered] == ["y", "z", "x"]


def test_all_tied_is_stable():
    refs = [MarkerRef(h, f"cite:{h}") for h in ("p", "q", "r", "s")]
    host = TiedHost(refs, {h: 0 for h in ("p", "q", "r", "s")})

    ordered = asyncio.run(sort_by_location(host, refs))
    assert [r.handle for r in ordered] == ["p", "q", "r", "s"]


def test_comparisons_bounded_quadratically():
    n = 8
    refs = [MarkerRef(i, f"cite:e{i}") for i in range(n)]
    # discovered back to front
    host = TiedHost(refs, {i: n - i for i in range(n)})

    ordered = asyncio.run(sort_by_location(host, refs))
    assert [r.handle for r in ordered] == list(reversed(range(n)))
    assert host.comparisons <= n * (n - 1) // 2


def test_scan_is_read_only():
    doc = MemoryDocument.from_markup("A {{cite:a|old}} B {{group:a,b|[9]}}")
    before = doc.to_dict()
    asyncio.run(scan_document(doc))
    assert doc.to_dict() == before
