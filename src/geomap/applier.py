"""Map-side applier.

Reacts to report-sourced entries. Every dispatch recomputes the whole
desired map state from the current snapshot:

1. Filterable layers get a predicate built from the entries (or none when
   no clause applies). Visualization-only layers are never touched: their
   heatmap/cluster surface is an aggregate over the full dataset and is
   scoped by the zoom step only.
2. Zoom: filterable layers are scanned in order and the first one whose
   feature query returns geometry wins. Its matches are unioned, expanded
   and animated to, then highlighted. Later layers are not queried.
3. An empty snapshot removes every predicate and the highlight and
   restores the extent captured at load.

Widget calls are fire-and-forget and independent of each other; with
back-to-back snapshots the last operation to settle wins. A zoom started
for a snapshot that has since been replaced neither moves the view nor
highlights.
"""

from pathlib import Path
from typing import List, Optional, Set, Tuple
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config
from config.logging_config import get_logger
from src.core.entries import FilterEntry, FilterSource, describe_entries
from src.core.errors import ApplyFailure, QueryFailure, WidgetNotReady
from src.core.mapping import FieldMappingTable
from src.core.retry import apply_with_policy
from src.core.store import FilterSnapshot, FilterStore
from src.core.tasks import TaskRunner
from src.geomap.extent import Extent, union_extents
from src.geomap.layers import LayerRegistry, MapLayer
from src.geomap.predicates import PredicateBuilder
from src.geomap.widget import READY_EVENT, MapView

logger = get_logger("geomap.applier")


class MapApplier:
    """Applies report-sourced snapshots to the map view."""

    def __init__(
        self,
        store: FilterStore,
        mappings: FieldMappingTable,
        view: MapView,
        registry: LayerRegistry,
        runner: TaskRunner,
        zoom_expand_factor: Optional[float] = None,
        min_extent_size: Optional[float] = None,
        retries: Optional[int] = None,
        backoff_ms: Optional[int] = None,
        highlight_on_zoom: Optional[bool] = None,
    ):
        self.store = store
        self.view = view
        self.registry = registry
        self.runner = runner
        self.builder = PredicateBuilder(mappings)
        sync = config.sync
        self.zoom_expand_factor = sync.zoom_expand_factor if zoom_expand_factor is None else zoom_expand_factor
        self.min_extent_size = sync.min_extent_size if min_extent_size is None else min_extent_size
        self.retries = sync.apply_retries if retries is None else retries
        self.backoff_ms = sync.retry_backoff_ms if backoff_ms is None else backoff_ms
        self.highlight_on_zoom = sync.highlight_on_zoom if highlight_on_zoom is None else highlight_on_zoom

        self.initial_extent: Optional[Extent] = None
        self.active_label: Optional[str] = None
        self.last_error: Optional[ApplyFailure] = None
        self._failed_layers: Set[str] = set()
        self._applied = False
        self._highlight = None
        self._unsubscribe = None
        self._watching_ready = False

    @property
    def degraded(self) -> bool:
        """True while any layer is holding a predicate it failed to replace."""
        return bool(self._failed_layers)

    @property
    def failed_layers(self) -> List[str]:
        return sorted(self._failed_layers)

    def attach(self) -> None:
        if self.capture_initial_extent() is None and not self._watching_ready:
            self.view.on(READY_EVENT, self._on_view_ready)
            self._watching_ready = True
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self.on_snapshot)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._stop_watching_ready()
        self._clear_highlight()

    def capture_initial_extent(self) -> Optional[Extent]:
        """
        Remember the load-time extent that clearing restores.

        Normally captured at attach or on the view's ready event. A view that
        never announces readiness is captured on the first snapshot handled
        after it becomes ready.
        """
        if self.initial_extent is None and self.view.is_ready:
            self.initial_extent = self.view.extent
            logger.debug(f"Captured initial extent {self.initial_extent}")
        return self.initial_extent

    def _on_view_ready(self, payload: Optional[dict] = None) -> None:
        self.capture_initial_extent()
        self._stop_watching_ready()

    def _stop_watching_ready(self) -> None:
        if self._watching_ready:
            self.view.off(READY_EVENT, self._on_view_ready)
            self._watching_ready = False

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    def on_snapshot(self, snapshot: FilterSnapshot) -> None:
        """Store subscriber; recomputes the map's desired state."""
        if not self.view.is_ready:
            logger.info(f"Skipping map apply: {WidgetNotReady('map')}")
            return
        self.capture_initial_extent()

        if snapshot.is_empty:
            self.reset()
            return

        incoming = snapshot.entries_from(FilterSource.REPORT)
        if not incoming:
            # The map's own selection; drop report-driven filtering if any
            if self._applied:
                self.remove_predicates()
            return

        self.apply(incoming)

    def apply(self, entries: List[FilterEntry]) -> None:
        """Set predicates on filterable layers and zoom to the first match."""
        self._clear_highlight()

        zoom_candidates: List[Tuple[MapLayer, str]] = []
        for layer in self.registry.filterable():
            predicate = self.builder.build(layer, entries)
            self.runner.spawn(
                self._set_predicate(layer, predicate), label=f"predicate:{layer.title}"
            )
            if predicate is not None:
                zoom_candidates.append((layer, predicate))

        self._applied = True
        self.active_label = describe_entries(entries)
        logger.info(f"Applying report filters to map: {self.active_label}")

        if zoom_candidates:
            self.runner.spawn(
                self.zoom_to_matches(zoom_candidates, self.store.snapshot.version),
                label="map-zoom",
            )

    def remove_predicates(self) -> None:
        """Remove predicates from every filterable layer and drop the highlight."""
        self._clear_highlight()
        for layer in self.registry.filterable():
            self.runner.spawn(self._set_predicate(layer, None), label=f"predicate:{layer.title}")
        self._applied = False
        self.active_label = None

    def reset(self) -> None:
        """Clear state: no predicates, no highlight, back to the load extent."""
        self.remove_predicates()
        if self.initial_extent is not None:
            self.runner.spawn(self._go_to(self.initial_extent), label="map-restore-extent")

    # -------------------------------------------------------------------------
    # Widget operations
    # -------------------------------------------------------------------------

    async def _set_predicate(self, layer: MapLayer, predicate: Optional[str]) -> None:
        try:
            await apply_with_policy(
                lambda: self.view.set_layer_predicate(layer, predicate),
                f"set predicate on '{layer.title}'",
                self.retries,
                self.backoff_ms,
            )
        except WidgetNotReady as e:
            logger.info(f"Skipping predicate on '{layer.title}': {e}")
            return
        except ApplyFailure as e:
            # Layer keeps whatever predicate it last accepted
            logger.warning(str(e))
            self._failed_layers.add(layer.title)
            self.last_error = e
            return
        self._failed_layers.discard(layer.title)
        if not self._failed_layers:
            self.last_error = None

    async def _go_to(self, extent: Extent) -> bool:
        try:
            await self.view.go_to(extent)
        except Exception as e:
            logger.debug(f"View animation failed: {e}")
            return False
        return True

    def _superseded(self, version: Optional[int]) -> bool:
        return version is not None and self.store.snapshot.version != version

    async def zoom_to_matches(
        self, candidates: List[Tuple[MapLayer, str]], version: Optional[int] = None
    ) -> Optional[MapLayer]:
        """
        Zoom to the matches of the first layer that yields geometry.

        This is an ordered scan with early exit, not a race: layers are
        queried one after another in registry order and scanning stops at
        the first success. Failures fall through to the next layer; if none
        succeeds the predicates stay applied and the view does not move.

        Args:
            candidates: ``(layer, predicate)`` pairs in registry order.
            version: Snapshot version the zoom was started for. Once the
                store moves past it the scan stops without moving or
                highlighting.

        Returns:
            The layer that was zoomed to, or None.
        """
        for layer, predicate in candidates:
            try:
                features = await self.view.query_features(layer, predicate)
            except Exception as e:
                logger.debug(str(QueryFailure(layer.title, str(e))))
                continue

            if self._superseded(version):
                logger.debug(f"Snapshot {version} superseded; abandoning zoom")
                return None

            extent = union_extents(f.extent for f in features)
            if extent is None:
                logger.debug(str(QueryFailure(layer.title, "no matching geometry")))
                continue

            target = extent.expand(self.zoom_expand_factor, self.min_extent_size)
            await self._go_to(target)
            if self._superseded(version):
                logger.debug(f"Snapshot {version} superseded; skipping highlight")
                return None
            if self.highlight_on_zoom:
                self._clear_highlight()
                self._highlight = self.view.highlight(layer, features)
            logger.debug(f"Zoomed to {len(features)} match(es) on '{layer.title}'")
            return layer

        logger.debug("No filterable layer returned geometry; not zooming")
        return None

    def _clear_highlight(self) -> None:
        if self._highlight is not None:
            self._highlight.remove()
            self._highlight = None
