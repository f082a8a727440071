"""Report widget adapter: payload schemas, extractor, applier."""

from .payloads import (
    IS_ONE_OF,
    BasicFilter,
    SelectionEventPayload,
    RenderSettledPayload,
    PageFiltersPollResult,
)
from .widget import ReportWidget, SELECTION_EVENT, RENDER_SETTLED_EVENT
from .extractor import ReportExtractor
from .applier import ReportApplier, build_basic_filters
from .memory import MemoryReportWidget, ReportCommand

__all__ = [
    "IS_ONE_OF",
    "BasicFilter",
    "SelectionEventPayload",
    "RenderSettledPayload",
    "PageFiltersPollResult",
    "ReportWidget",
    "SELECTION_EVENT",
    "RENDER_SETTLED_EVENT",
    "ReportExtractor",
    "ReportApplier",
    "build_basic_filters",
    "MemoryReportWidget",
    "ReportCommand",
]
