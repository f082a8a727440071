"""Map widget adapter: layers, predicates, extents, extractor, applier."""

from .layers import LayerKind, LayerRegistry, MapLayer, classify_layer
from .predicates import PredicateBuilder, PredicateClause, build_clause, join_clauses, quote_value
from .extent import Extent, union_extents
from .widget import CLICK_EVENT, POINTER_MOVE_EVENT, READY_EVENT, Feature, HitResult, MapView
from .extractor import MapExtractor
from .applier import MapApplier
from .memory import MemoryHighlight, MemoryMapView

__all__ = [
    # Layers
    "LayerKind",
    "LayerRegistry",
    "MapLayer",
    "classify_layer",
    # Predicates
    "PredicateBuilder",
    "PredicateClause",
    "build_clause",
    "join_clauses",
    "quote_value",
    # Extents
    "Extent",
    "union_extents",
    # Widget
    "CLICK_EVENT",
    "POINTER_MOVE_EVENT",
    "READY_EVENT",
    "Feature",
    "HitResult",
    "MapView",
    "MapExtractor",
    "MapApplier",
    "MemoryHighlight",
    "MemoryMapView",
]
