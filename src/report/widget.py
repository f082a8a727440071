"""Report widget boundary.

The report widget is a black box consumed through its event/command
surface only.
"""

from typing import Any, Callable, List, Optional, Protocol, runtime_checkable

# Inbound events
SELECTION_EVENT = "dataSelected"
RENDER_SETTLED_EVENT = "rendered"

EventHandler = Callable[[Optional[dict]], Any]


@runtime_checkable
class ReportWidget(Protocol):
    """Event/command surface of an embedded report."""

    @property
    def is_ready(self) -> bool:
        ...

    def on(self, event: str, handler: EventHandler) -> None:
        ...

    def off(self, event: str, handler: EventHandler) -> None:
        ...

    async def get_page_filters(self) -> List[dict]:
        """Active page-level filters in the widget's basic-filter shape."""
        ...

    async def set_filters(self, filters: List[dict]) -> None:
        ...

    async def remove_all_filters(self) -> None:
        ...
