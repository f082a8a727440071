"""Map widget boundary.

The map view is a black box consumed through hit-testing, layer
predicates, feature queries, view animation and highlights.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from src.geomap.extent import Extent
from src.geomap.layers import MapLayer

# Inbound events
CLICK_EVENT = "click"
POINTER_MOVE_EVENT = "pointer-move"
# Fired once when the view has loaded its initial extent
READY_EVENT = "ready"

EventHandler = Callable[[dict], Any]
ScreenPoint = Tuple[float, float]


@dataclass
class Feature:
    """A map feature: attributes plus an optional GeoJSON-like geometry."""

    attributes: Dict[str, Any] = field(default_factory=dict)
    geometry: Optional[Dict[str, Any]] = None

    @property
    def extent(self) -> Optional[Extent]:
        return Extent.from_geometry(self.geometry)


@dataclass
class HitResult:
    """One feature hit by a hit-test."""

    layer_title: str
    attributes: Dict[str, Any]
    geometry: Optional[Dict[str, Any]] = None

    def as_feature(self) -> Feature:
        return Feature(dict(self.attributes), self.geometry)


class HighlightHandle(Protocol):
    """Disposable highlight returned by the map view."""

    def remove(self) -> None:
        ...


@runtime_checkable
class MapView(Protocol):
    """Command/event surface of a map view."""

    @property
    def is_ready(self) -> bool:
        ...

    @property
    def layers(self) -> List[MapLayer]:
        """Every layer in the map, basemap tiles included."""
        ...

    @property
    def extent(self) -> Extent:
        """Current view extent."""
        ...

    def on(self, event: str, handler: EventHandler) -> None:
        ...

    def off(self, event: str, handler: EventHandler) -> None:
        ...

    async def hit_test(self, point: ScreenPoint, layers: List[MapLayer]) -> List[HitResult]:
        """Hits at a point, restricted to ``layers``, topmost first."""
        ...

    async def set_layer_predicate(self, layer: MapLayer, predicate: Optional[str]) -> None:
        ...

    async def query_features(self, layer: MapLayer, predicate: str) -> List[Feature]:
        ...

    async def go_to(self, extent: Extent) -> None:
        """Animate the view to ``extent``."""
        ...

    def highlight(self, layer: MapLayer, features: List[Feature]) -> HighlightHandle:
        ...

    def show_tooltip(self, point: ScreenPoint, hit: HitResult) -> None:
        ...

    def hide_tooltip(self) -> None:
        ...
