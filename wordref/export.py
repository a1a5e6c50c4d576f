# wordref/export.py

"""
Alternate serializations of the library: JSON, CSV and XML.
"""

from __future__ import annotations

import csv
import io
import json
import xml.etree.ElementTree as ET
from typing import Callable, Dict

from wordref.models.entry import Entry

CSV_COLUMNS = [
    "id",
    "type",
    "title",
    "author",
    "year",
    "journal",
    "booktitle",
    "volume",
    "number",
    "pages",
    "doi",
    "notes",
]


def export_json(library: Dict[str, Entry]) -> str:
    return json.dumps(
        {entry_id: entry.model_dump() for entry_id, entry in library.items()},
        indent=2,
        ensure_ascii=False,
    )


def export_csv(library: Dict[str, Entry]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for entry in library.values():
        row = {col: entry.field(col) for col in CSV_COLUMNS[2:-1]}
        row["id"] = entry.id
        row["type"] = entry.type
        row["notes"] = " | ".join(f"{n.where} {n.text}".strip() for n in entry.notes)
        writer.writerow(row)
    return buf.getvalue()


def export_xml(library: Dict[str, Entry]) -> str:
    root = ET.Element("wordref")
    for entry in library.values():
        el = ET.SubElement(root, "entry", {"id": entry.id, "type": entry.type})
        for name, value in entry.fields.items():
            field_el = ET.SubElement(el, "field", {"name": name})
            field_el.text = value
        for note in entry.notes:
            note_el = ET.SubElement(el, "note", {"where": note.where})
            note_el.text = note.text
    return ET.tostring(root, encoding="unicode")


EXPORTERS: Dict[str, Callable[[Dict[str, Entry]], str]] = {
    "json": export_json,
    "csv": export_csv,
    "xml": export_xml,
}


def export_library(library: Dict[str, Entry], fmt: str) -> str:
    try:
        exporter = EXPORTERS[fmt.lower()]
    except KeyError:
        raise ValueError(f"Unknown export format {fmt!r}; expected one of {sorted(EXPORTERS)}")
    return exporter(library)
