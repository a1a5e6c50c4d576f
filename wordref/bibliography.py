# wordref/bibliography.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from wordref.document.host import DocumentHost
from wordref.models.entry import Entry
from wordref.styles import Style, format_bibliography_entry

logger = logging.getLogger("wordref.bibliography")


@dataclass
class BibliographyBlock:
    lines: List[str] = field(default_factory=list)
    # ids in the cited order that no longer exist in the library
    dangling: List[str] = field(default_factory=list)


def build_bibliography(
    order: List[str],
    library: Dict[str, Entry],
    style: Style,
) -> BibliographyBlock:
    """
    Render the reference list for `order`.

    Ids missing from the library are skipped. Numeric styles keep the
    cited order and number each line with the id's cited index (so lines
    match the in-text labels); author-year styles sort by first author.
    """
    block = BibliographyBlock()
    items: List[Tuple[int, Entry]] = []
    for position, entry_id in enumerate(order, start=1):
        entry = library.get(entry_id)
        if entry is None:
            logger.debug("Cited id %r has no library entry; leaving it out", entry_id)
            block.dangling.append(entry_id)
            continue
        items.append((position, entry))

    for index, entry in style.citation_class.order_entries(items):
        block.lines.append(format_bibliography_entry(entry, style, index))
    return block


async def write_bibliography(
    host: DocumentHost,
    block: BibliographyBlock,
    heading: str = "References",
) -> None:
    await host.write_bibliography(block.lines, heading=heading)
