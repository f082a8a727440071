"""In-memory map view.

Implements the map view surface without a browser. Feature attributes
live in pandas DataFrames and layer predicates are evaluated with an
in-memory DuckDB connection, so a predicate the builder emits is checked
as a real WHERE clause. Screen points are taken to be map coordinates.

Used by the test suite and by the replay tool.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence
import sys

import duckdb
import pandas as pd

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging_config import get_logger
from src.geomap.extent import Extent, union_extents
from src.geomap.layers import FEATURE_LAYER, MapLayer
from src.geomap.widget import (
    CLICK_EVENT,
    POINTER_MOVE_EVENT,
    READY_EVENT,
    EventHandler,
    Feature,
    HitResult,
    ScreenPoint,
)

logger = get_logger("geomap.memory")

ROW_COLUMN = "__row"
DEFAULT_EXTENT = Extent(0.0, 0.0, 1.0, 1.0)


class MemoryHighlight:
    """Highlight handle; removing it drops it from the view's active set."""

    def __init__(self, view: "MemoryMapView", layer: MapLayer, features: List[Feature]):
        self.view = view
        self.layer = layer
        self.features = list(features)
        self.removed = False

    def remove(self) -> None:
        if self.removed:
            return
        self.removed = True
        if self in self.view.active_highlights:
            self.view.active_highlights.remove(self)


class MemoryMapView:
    """Map view double backed by DuckDB."""

    def __init__(
        self,
        layers: Sequence[MapLayer],
        features: Optional[Dict[str, List[Feature]]] = None,
        extent: Optional[Extent] = None,
        ready: bool = True,
        hit_tolerance: float = 0.0,
    ):
        self._layers = list(layers)
        self._features: Dict[str, List[Feature]] = {
            layer.title: list((features or {}).get(layer.title, [])) for layer in self._layers
        }
        self._frames: Dict[str, pd.DataFrame] = {
            layer.title: self._frame(layer, self._features[layer.title]) for layer in self._layers
        }
        self._conn = duckdb.connect(":memory:")
        self._handlers: Dict[str, List[EventHandler]] = {}

        self.ready = ready
        self.hit_tolerance = hit_tolerance
        self.current_extent = extent or self._data_extent() or DEFAULT_EXTENT
        self.predicates: Dict[str, Optional[str]] = {layer.title: None for layer in self._layers}
        self.predicate_calls: List[tuple] = []
        self.query_calls: List[tuple] = []
        self.go_to_calls: List[Extent] = []
        self.highlights: List[MemoryHighlight] = []
        self.active_highlights: List[MemoryHighlight] = []
        self.tooltip: Optional[tuple] = None
        self.fail_predicates_with: Optional[BaseException] = None
        self.fail_queries_with: Optional[BaseException] = None

    @staticmethod
    def _frame(layer: MapLayer, features: List[Feature]) -> pd.DataFrame:
        columns = list(layer.fields)
        for feature in features:
            for name in feature.attributes:
                if name not in columns:
                    columns.append(name)
        records = [
            {ROW_COLUMN: i, **{c: f.attributes.get(c) for c in columns}}
            for i, f in enumerate(features)
        ]
        return pd.DataFrame(records, columns=[ROW_COLUMN] + columns)

    def _data_extent(self) -> Optional[Extent]:
        return union_extents(
            f.extent for features in self._features.values() for f in features
        )

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def is_ready(self) -> bool:
        return self.ready

    @property
    def layers(self) -> List[MapLayer]:
        return list(self._layers)

    @property
    def extent(self) -> Extent:
        return self.current_extent

    def layer(self, title: str) -> Optional[MapLayer]:
        for layer in self._layers:
            if layer.title == title:
                return layer
        return None

    def features(self, title: str) -> List[Feature]:
        return list(self._features.get(title, []))

    def visible_features(self, title: str) -> List[Feature]:
        """Features of a layer that pass its current predicate."""
        return self._select(title, self.predicates.get(title))

    def close(self) -> None:
        self._conn.close()

    # -------------------------------------------------------------------------
    # Predicate evaluation
    # -------------------------------------------------------------------------

    def _select(self, title: str, predicate: Optional[str]) -> List[Feature]:
        features = self._features.get(title, [])
        if predicate is None or not features:
            return list(features)
        frame = self._frames[title]
        self._conn.register("features", frame)
        try:
            rows = self._conn.execute(
                f"SELECT {ROW_COLUMN} FROM features WHERE {predicate} ORDER BY {ROW_COLUMN}"
            ).fetchdf()[ROW_COLUMN].tolist()
        finally:
            self._conn.unregister("features")
        return [features[int(i)] for i in rows]

    # -------------------------------------------------------------------------
    # Events
    # -------------------------------------------------------------------------

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

    def click(self, x: float, y: float) -> None:
        self.emit(CLICK_EVENT, {"screen_point": [x, y]})

    def move(self, x: float, y: float) -> None:
        self.emit(POINTER_MOVE_EVENT, {"screen_point": [x, y]})

    def finish_loading(self) -> None:
        """Mark the view ready and announce it."""
        self.ready = True
        self.emit(READY_EVENT, {"extent": self.current_extent})

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    async def hit_test(self, point: ScreenPoint, layers: List[MapLayer]) -> List[HitResult]:
        x, y = point
        tol = self.hit_tolerance
        hits = []
        for layer in layers:
            for feature in self.visible_features(layer.title):
                extent = feature.extent
                if extent is None:
                    continue
                if extent.xmin - tol <= x <= extent.xmax + tol and extent.ymin - tol <= y <= extent.ymax + tol:
                    hits.append(HitResult(layer.title, dict(feature.attributes), feature.geometry))
        return hits

    async def set_layer_predicate(self, layer: MapLayer, predicate: Optional[str]) -> None:
        if self.fail_predicates_with is not None:
            raise self.fail_predicates_with
        if layer.title not in self.predicates:
            raise KeyError(f"Unknown layer: {layer.title}")
        # Invalid SQL raises here, like the widget rejecting the expression
        self._select(layer.title, predicate)
        self.predicates[layer.title] = predicate
        self.predicate_calls.append((layer.title, predicate))

    async def query_features(self, layer: MapLayer, predicate: str) -> List[Feature]:
        self.query_calls.append((layer.title, predicate))
        if self.fail_queries_with is not None:
            raise self.fail_queries_with
        return self._select(layer.title, predicate)

    async def go_to(self, extent: Extent) -> None:
        self.go_to_calls.append(extent)
        self.current_extent = extent

    def highlight(self, layer: MapLayer, features: List[Feature]) -> MemoryHighlight:
        handle = MemoryHighlight(self, layer, features)
        self.highlights.append(handle)
        self.active_highlights.append(handle)
        return handle

    def show_tooltip(self, point: ScreenPoint, hit: HitResult) -> None:
        self.tooltip = (point, hit)

    def hide_tooltip(self) -> None:
        self.tooltip = None

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_geojson(cls, document: Dict[str, Any], **kwargs) -> "MemoryMapView":
        """
        Build a view from a layers document.

        Expected format::

            {
              "extent": [xmin, ymin, xmax, ymax],          # optional
              "layers": [
                {
                  "title": "Permits",
                  "layer_type": "feature",                  # optional
                  "renderer_type": "simple",                # optional
                  "feature_reduction": null,                # optional
                  "fields": ["County"],                     # optional
                  "features": {"type": "FeatureCollection", "features": [...]}
                }
              ]
            }

        ``features`` may also be a bare list of GeoJSON features.
        """
        layers = []
        features: Dict[str, List[Feature]] = {}
        for layer_doc in document.get("layers", []):
            raw = layer_doc.get("features") or []
            if isinstance(raw, dict):
                raw = raw.get("features", [])
            parsed = [
                Feature(dict(f.get("properties") or {}), f.get("geometry")) for f in raw
            ]
            fields = layer_doc.get("fields")
            if fields is None:
                fields = _field_names(f.attributes for f in parsed)
            layer = MapLayer(
                title=layer_doc["title"],
                layer_type=layer_doc.get("layer_type", FEATURE_LAYER),
                renderer_type=layer_doc.get("renderer_type", "simple"),
                feature_reduction=layer_doc.get("feature_reduction"),
                fields=tuple(fields),
            )
            layers.append(layer)
            features[layer.title] = parsed

        extent = document.get("extent")
        if extent is not None and "extent" not in kwargs:
            kwargs["extent"] = Extent(*[float(v) for v in extent])
        logger.debug(f"Loaded {len(layers)} layer(s) into memory map view")
        return cls(layers, features, **kwargs)


def _field_names(attribute_sets: Iterable[Dict[str, Any]]) -> List[str]:
    names: List[str] = []
    for attributes in attribute_sets:
        for name in attributes:
            if name not in names:
                names.append(name)
    return names
