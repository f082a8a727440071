"""Map layer model and filterable / visualization-only classification.

Density (heatmap) and clustered/binned point layers render an aggregate
over their full feature set; a row predicate would empty or distort the
surface. Those layers are visualization-only: they are scoped by zooming
alone and never receive a predicate.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging_config import get_logger

logger = get_logger("geomap.layers")

FEATURE_LAYER = "feature"
HEATMAP_RENDERERS = {"heatmap"}
AGGREGATING_REDUCTIONS = {"cluster", "binning"}


class LayerKind(str, Enum):
    """How a layer may be filtered."""
    FILTERABLE = "filterable"
    VISUALIZATION_ONLY = "visualization_only"


@dataclass(frozen=True)
class MapLayer:
    """Static description of one map layer."""

    title: str
    layer_type: str = FEATURE_LAYER
    renderer_type: str = "simple"
    feature_reduction: Optional[str] = None
    fields: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_operational(self) -> bool:
        """Feature layers are operational; basemap tiles and the like are not."""
        return self.layer_type == FEATURE_LAYER

    def has_field(self, name: str) -> bool:
        return name in self.fields


def classify_layer(layer: MapLayer) -> LayerKind:
    """Classify a layer from its renderer and feature reduction."""
    if (layer.renderer_type or "").lower() in HEATMAP_RENDERERS:
        return LayerKind.VISUALIZATION_ONLY
    if (layer.feature_reduction or "").lower() in AGGREGATING_REDUCTIONS:
        return LayerKind.VISUALIZATION_ONLY
    return LayerKind.FILTERABLE


class LayerRegistry:
    """Operational layers registered at load, with cached classification."""

    def __init__(self, layers: Iterable[MapLayer] = ()):
        self._layers: List[MapLayer] = []
        self._kinds: Dict[str, LayerKind] = {}
        self.register(layers)

    def register(self, layers: Iterable[MapLayer]) -> None:
        """Register operational layers; classification happens once, here."""
        for layer in layers:
            if not layer.is_operational:
                logger.debug(f"Skipping non-operational layer '{layer.title}' ({layer.layer_type})")
                continue
            if layer.title in self._kinds:
                logger.warning(f"Duplicate layer title '{layer.title}'; keeping the first")
                continue
            kind = classify_layer(layer)
            self._layers.append(layer)
            self._kinds[layer.title] = kind
            logger.debug(f"Registered layer '{layer.title}' as {kind.value}")

    def clear(self) -> None:
        self._layers.clear()
        self._kinds.clear()

    def __len__(self) -> int:
        return len(self._layers)

    def __contains__(self, title: str) -> bool:
        return title in self._kinds

    def get(self, title: str) -> Optional[MapLayer]:
        for layer in self._layers:
            if layer.title == title:
                return layer
        return None

    def kind(self, title: str) -> Optional[LayerKind]:
        return self._kinds.get(title)

    def operational(self) -> List[MapLayer]:
        return list(self._layers)

    def filterable(self) -> List[MapLayer]:
        return [l for l in self._layers if self._kinds[l.title] == LayerKind.FILTERABLE]

    def visualization_only(self) -> List[MapLayer]:
        return [l for l in self._layers if self._kinds[l.title] == LayerKind.VISUALIZATION_ONLY]
