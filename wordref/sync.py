# wordref/sync.py

"""
Full refresh: scan -> canonical order -> persist -> re-render markers ->
rebuild bibliography.

The pipeline owns a tiny state machine (IDLE -> RUNNING -> IDLE). A
refresh requested while one is running is dropped, not queued; the next
user action triggers a new one. Since nothing locks the document, an edit
landing mid-refresh can leave a transient inconsistency that the next
refresh repairs.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from wordref.bibliography import build_bibliography, write_bibliography
from wordref.document.host import DocumentHost
from wordref.errors import HostOperationFailure
from wordref.labels import group_label, single_label
from wordref.order import OrderTracker
from wordref.scanner import flatten_ids, scan_document
from wordref.storage import LibraryStore
from wordref.styles import Style

logger = logging.getLogger("wordref.sync")


class SyncState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class RefreshReport:
    style: Style
    order: List[str] = field(default_factory=list)
    markers: int = 0
    rewritten: int = 0
    failures: List[str] = field(default_factory=list)
    bibliography: List[str] = field(default_factory=list)
    dangling: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SyncPipeline:
    def __init__(
        self,
        host: DocumentHost,
        library: LibraryStore,
        tracker: OrderTracker,
        *,
        heading: str = "References",
    ) -> None:
        self.host = host
        self.library = library
        self.tracker = tracker
        self.heading = heading
        self.state = SyncState.IDLE

    # ------------------------------------------------------------------
    # Single-flight guard
    # ------------------------------------------------------------------
    def try_start(self) -> bool:
        if self.state is SyncState.RUNNING:
            return False
        self.state = SyncState.RUNNING
        return True

    def finish(self) -> None:
        self.state = SyncState.IDLE

    @property
    def running(self) -> bool:
        return self.state is SyncState.RUNNING

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------
    async def refresh_all(self, style: Union[str, Style, None]) -> Optional[RefreshReport]:
        """
        Bring every marker and the bibliography in line with the document.

        Returns None when another refresh is already running. Host failures
        are logged and reported on the returned report rather than raised.
        """
        sty = Style.parse(style)
        if not self.try_start():
            logger.info("Refresh already in progress; dropping request for %s", sty.value)
            return None
        try:
            return await self._refresh(sty)
        except HostOperationFailure as exc:
            logger.exception("Refresh failed")
            return RefreshReport(style=sty, error=f"Refresh failed: {exc}")
        finally:
            self.finish()

    async def _refresh(self, style: Style) -> RefreshReport:
        host = self.host

        # 1. scan in reading order
        scanned = await scan_document(host)

        # 2. canonical order, replacing what was stored
        order = self.tracker.rebuild(flatten_ids(scanned))
        library = self.library.get()
        report = RefreshReport(style=style, order=order, markers=len(scanned))

        # 3 + 4. markers, each one on its own
        for item in scanned:
            if item.is_group:
                label = group_label(list(item.ids), style, order, library)
            else:
                label = single_label(item.ids[0], style, order, library)
            if label is None:
                continue

            try:
                current = await host.get_marker_text(item.handle)
                if current != label:
                    await host.set_marker(item.handle, item.marker.tag, label)
                    report.rewritten += 1
            except HostOperationFailure as exc:
                logger.warning("Could not update marker %r: %s", item.handle, exc)
                report.failures.append(f"{item.marker.tag}: {exc}")

        # 5. bibliography, replaced wholesale
        block = build_bibliography(order, library, style)
        await write_bibliography(host, block, heading=self.heading)
        report.bibliography = block.lines
        report.dangling = block.dangling

        logger.info(
            "Refreshed %d markers (%d rewritten, %d failed), %d references in %s",
            report.markers,
            report.rewritten,
            len(report.failures),
            len(block.lines),
            style.value,
        )
        return report


class StyleDebouncer:
    """
    Collapse bursts of style changes into one refresh.

    Each request starts a delayed task; a new request cancels the previous
    one while it is still waiting out its delay. Once a refresh has
    started it is left to finish.
    """

    def __init__(self, pipeline: SyncPipeline, delay: float = 0.15) -> None:
        self.pipeline = pipeline
        self.delay = delay
        self._waiting: Optional[asyncio.Task] = None
        self._last: Optional[asyncio.Task] = None

    def request(self, style: Union[str, Style, None]) -> asyncio.Task:
        if self._waiting is not None and not self._waiting.done():
            self._waiting.cancel()
        task = asyncio.get_running_loop().create_task(self._run(Style.parse(style)))
        self._waiting = task
        self._last = task
        return task

    async def _run(self, style: Style) -> Optional[RefreshReport]:
        await asyncio.sleep(self.delay)
        if self._waiting is asyncio.current_task():
            self._waiting = None
        return await self.pipeline.refresh_all(style)

    async def flush(self) -> Optional[RefreshReport]:
        """
        Wait for the most recent request to settle.
        """
        task = self._last
        if task is None:
            return None
        try:
            return await task
        except asyncio.CancelledError:
            return None

    def cancel(self) -> None:
        if self._waiting is not None and not self._waiting.done():
            self._waiting.cancel()
        self._waiting = None
