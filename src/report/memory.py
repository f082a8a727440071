"""In-memory report widget.

Implements the report widget surface without a browser: it records every
command, keeps the page filters those commands leave behind and lets
callers emit selection/render events. Used by the test suite and by the
replay tool.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging_config import get_logger
from src.report.payloads import BasicFilter
from src.report.widget import RENDER_SETTLED_EVENT, SELECTION_EVENT, EventHandler

logger = get_logger("report.memory")


@dataclass
class ReportCommand:
    """One command received by the widget."""

    name: str
    filters: Optional[List[dict]] = None

    @property
    def basic_filters(self) -> List[BasicFilter]:
        return [BasicFilter.from_command(f) for f in self.filters or []]


class MemoryReportWidget:
    """Report widget double with a real event/command surface."""

    def __init__(self, ready: bool = True, render_on_apply: bool = False):
        self.ready = ready
        self.render_on_apply = render_on_apply
        self.page_filters: List[dict] = []
        self.commands: List[ReportCommand] = []
        self.fail_with: Optional[BaseException] = None
        self._handlers: Dict[str, List[EventHandler]] = {}

    @property
    def is_ready(self) -> bool:
        return self.ready

    # Events ------------------------------------------------------------

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event: str, payload: Optional[dict] = None) -> None:
        for handler in list(self._handlers.get(event, [])):
            handler(payload)

    def handler_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def select(self, data_points: List[dict]) -> None:
        """Emit an "element selected" event."""
        self.emit(SELECTION_EVENT, {"dataPoints": data_points})

    def render(self) -> None:
        """Emit a "render settled" event."""
        self.emit(RENDER_SETTLED_EVENT, None)

    def set_slicer(self, table: str, column: str, values: List[Any]) -> None:
        """Simulate a slicer interaction: page filters change, then a render."""
        self.page_filters = [
            f for f in self.page_filters
            if f.get("target") != {"table": table, "column": column}
        ]
        if values:
            self.page_filters.append(
                BasicFilter(table=table, column=column, values=values).to_command()
            )
        self.render()

    # Commands ----------------------------------------------------------

    async def get_page_filters(self) -> List[dict]:
        return [dict(f) for f in self.page_filters]

    async def set_filters(self, filters: List[dict]) -> None:
        self._maybe_fail()
        self.commands.append(ReportCommand("set_filters", [dict(f) for f in filters]))
        self.page_filters = [dict(f) for f in filters]
        self._after_apply()

    async def remove_all_filters(self) -> None:
        self._maybe_fail()
        self.commands.append(ReportCommand("remove_all_filters"))
        self.page_filters = []
        self._after_apply()

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    def _after_apply(self) -> None:
        if self.render_on_apply:
            self.render()
