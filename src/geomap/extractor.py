"""Map-side extractor.

Click: hit-test the registered operational layers. No hit clears the
store; otherwise the first hit's attributes are mapped back to report
coordinates and written as a map-sourced snapshot.

Hover: a separately debounced hit-test that only highlights the feature
under the pointer and shows a tooltip. It never writes the store.
"""

from pathlib import Path
from typing import List, Optional
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config
from config.logging_config import get_logger
from src.core.debounce import Debouncer
from src.core.entries import FilterEntry, FilterSource, merge_entries
from src.core.errors import MappingNotFound, WidgetNotReady
from src.core.mapping import FieldMappingTable
from src.core.store import FilterStore
from src.core.tasks import TaskRunner
from src.geomap.layers import LayerRegistry
from src.geomap.widget import CLICK_EVENT, POINTER_MOVE_EVENT, HitResult, MapView, ScreenPoint

logger = get_logger("geomap.extractor")


def screen_point(event: Optional[dict]) -> Optional[ScreenPoint]:
    """Read the screen point from a click / pointer-move payload."""
    if not event:
        return None
    point = event.get("screen_point")
    if point is None and "x" in event and "y" in event:
        point = (event["x"], event["y"])
    if point is None or len(point) != 2:
        return None
    return (float(point[0]), float(point[1]))


class MapExtractor:
    """Listens to the map view and writes map-sourced snapshots."""

    def __init__(
        self,
        store: FilterStore,
        mappings: FieldMappingTable,
        view: MapView,
        registry: LayerRegistry,
        runner: TaskRunner,
        hover_debounce_ms: Optional[int] = None,
    ):
        self.store = store
        self.mappings = mappings
        self.view = view
        self.registry = registry
        self.runner = runner
        window = config.sync.hover_debounce_ms if hover_debounce_ms is None else hover_debounce_ms
        self.hover_debouncer = Debouncer(window, self.hover, runner, name="map-hover")
        self._hover_highlight = None
        self._attached = False

    def attach(self) -> None:
        if self._attached:
            return
        self.view.on(CLICK_EVENT, self.handle_click)
        self.view.on(POINTER_MOVE_EVENT, self.handle_pointer_move)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        self.view.off(CLICK_EVENT, self.handle_click)
        self.view.off(POINTER_MOVE_EVENT, self.handle_pointer_move)
        self.hover_debouncer.cancel()
        self._clear_hover()
        self._attached = False

    def normalize(self, hit: HitResult) -> List[FilterEntry]:
        """
        Map a hit feature's attributes to report-addressable entries.

        Only rows for the hit layer (or rows without a layer) are used;
        attributes with no row are not propagated.
        """
        entries = []
        for row in self.mappings.for_layer(hit.layer_title):
            value = hit.attributes.get(row.map_field)
            if value is None:
                continue
            try:
                entries.append(FilterEntry(
                    field=row.map_field,
                    values=(row.normalize(value),),
                    source=FilterSource.MAP,
                    report_table=row.report_table,
                    report_column=row.report_column,
                ))
            except TypeError as e:
                logger.debug(f"Skipping {hit.layer_title}.{row.map_field} value {value!r}: {e}")
        return merge_entries(entries)

    async def _hit_test(self, point: ScreenPoint) -> List[HitResult]:
        if not self.view.is_ready:
            raise WidgetNotReady("map")
        hits = await self.view.hit_test(point, self.registry.operational())
        return [h for h in hits if h.layer_title in self.registry]

    # -------------------------------------------------------------------------
    # Click
    # -------------------------------------------------------------------------

    def handle_click(self, event: Optional[dict]) -> None:
        point = screen_point(event)
        if point is None:
            logger.debug(f"Ignoring click without a screen point: {event!r}")
            return
        self.runner.spawn(self.resolve_click(point), label="map-click")

    async def resolve_click(self, point: ScreenPoint) -> None:
        """Hit-test a click and write the resulting snapshot."""
        try:
            hits = await self._hit_test(point)
        except WidgetNotReady as e:
            logger.info(f"Ignoring click: {e}")
            return
        except Exception as e:
            logger.warning(f"Hit test failed: {e}")
            return

        if not hits:
            logger.debug("Click hit no feature; clearing filters")
            self.store.clear_filters(FilterSource.MAP)
            return

        hit = hits[0]
        entries = self.normalize(hit)
        if not entries:
            logger.debug(str(MappingNotFound(f"layer '{hit.layer_title}'", "map->report")))
            return

        logger.info(f"Map click on '{hit.layer_title}' -> {len(entries)} filter(s)")
        self.store.set_filters(entries, FilterSource.MAP)

    # -------------------------------------------------------------------------
    # Hover
    # -------------------------------------------------------------------------

    def handle_pointer_move(self, event: Optional[dict]) -> None:
        point = screen_point(event)
        if point is not None:
            self.hover_debouncer.trigger(point)

    async def hover(self, point: ScreenPoint) -> None:
        """Transient highlight + tooltip for the feature under the pointer."""
        try:
            hits = await self._hit_test(point)
        except WidgetNotReady:
            return
        except Exception as e:
            logger.debug(f"Hover hit test failed: {e}")
            return

        self._clear_hover()
        if not hits:
            self.view.hide_tooltip()
            return

        hit = hits[0]
        layer = self.registry.get(hit.layer_title)
        self._hover_highlight = self.view.highlight(layer, [hit.as_feature()])
        self.view.show_tooltip(point, hit)

    def _clear_hover(self) -> None:
        if self._hover_highlight is not None:
            self._hover_highlight.remove()
            self._hover_highlight = None
