"""Filter sync session: one store shared by a report widget and a map view.

A session lives for one page mount. ``attach()`` wires everything up,
``detach()`` undoes it.

Usage:
    session = FilterSyncSession(report_widget, map_view)
    session.attach()
    ...
    session.detach()
"""

from pathlib import Path
from typing import Optional
import sys

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config, SyncConfig
from config.logging_config import get_logger
from src.core.mapping import FieldMappingTable, load_field_mappings
from src.core.store import FilterStore
from src.core.tasks import TaskRunner
from src.geomap.applier import MapApplier
from src.geomap.extractor import MapExtractor
from src.geomap.layers import LayerRegistry
from src.geomap.widget import MapView
from src.report.applier import ReportApplier
from src.report.extractor import ReportExtractor
from src.report.widget import ReportWidget

logger = get_logger("session")


class FilterSyncSession:
    """Mounts both extractor/applier pairs on one store."""

    def __init__(
        self,
        report: ReportWidget,
        view: MapView,
        mappings: Optional[FieldMappingTable] = None,
        store: Optional[FilterStore] = None,
        runner: Optional[TaskRunner] = None,
        settings: Optional[SyncConfig] = None,
    ):
        settings = settings or config.sync
        self.report = report
        self.view = view
        self.mappings = mappings if mappings is not None else load_field_mappings()
        self.store = store or FilterStore()
        self.runner = runner or TaskRunner()
        self.registry = LayerRegistry()

        self.report_extractor = ReportExtractor(
            self.store, self.mappings, report, self.runner,
            render_debounce_ms=settings.render_debounce_ms,
        )
        self.report_applier = ReportApplier(
            self.store, report, self.runner,
            retries=settings.apply_retries,
            backoff_ms=settings.retry_backoff_ms,
        )
        self.map_extractor = MapExtractor(
            self.store, self.mappings, view, self.registry, self.runner,
            hover_debounce_ms=settings.hover_debounce_ms,
        )
        self.map_applier = MapApplier(
            self.store, self.mappings, view, self.registry, self.runner,
            zoom_expand_factor=settings.zoom_expand_factor,
            min_extent_size=settings.min_extent_size,
            retries=settings.apply_retries,
            backoff_ms=settings.retry_backoff_ms,
            highlight_on_zoom=settings.highlight_on_zoom,
        )
        self.attached = False

    @property
    def degraded(self) -> bool:
        return self.report_applier.degraded or self.map_applier.degraded

    @property
    def active_label(self) -> Optional[str]:
        return self.map_applier.active_label

    def attach(self) -> None:
        """Register layers, capture the initial extent and hook every event."""
        if self.attached:
            return
        self.registry.clear()
        self.registry.register(self.view.layers)
        self.map_applier.attach()
        self.report_applier.attach()
        self.map_extractor.attach()
        self.report_extractor.attach()
        self.attached = True
        logger.info(
            f"Session attached: {len(self.registry)} operational layer(s), "
            f"{len(self.registry.visualization_only())} visualization-only, "
            f"{len(self.mappings)} mapping row(s)"
        )

    def detach(self) -> None:
        """Unhook events and subscriptions and drop pending debounces."""
        if not self.attached:
            return
        self.report_extractor.detach()
        self.map_extractor.detach()
        self.report_applier.detach()
        self.map_applier.detach()
        self.attached = False
        logger.info("Session detached")

    async def settle(self) -> None:
        """Flush pending debounces and wait for in-flight widget calls."""
        self.report_extractor.render_debouncer.flush()
        self.map_extractor.hover_debouncer.flush()
        await self.runner.drain()
