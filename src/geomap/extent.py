"""Bounding extents of GeoJSON-like geometries."""

from dataclasses import dataclass
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class Extent:
    """Axis-aligned bounding box in map units."""

    xmin: float
    ymin: float
    xmax: float
    ymax: float

    def __post_init__(self):
        if self.xmin > self.xmax or self.ymin > self.ymax:
            raise ValueError(f"Invalid extent: {self}")

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    @property
    def center(self) -> tuple:
        return ((self.xmin + self.xmax) / 2.0, (self.ymin + self.ymax) / 2.0)

    def contains(self, x: float, y: float) -> bool:
        return self.xmin <= x <= self.xmax and self.ymin <= y <= self.ymax

    def union(self, other: "Extent") -> "Extent":
        return Extent(
            min(self.xmin, other.xmin),
            min(self.ymin, other.ymin),
            max(self.xmax, other.xmax),
            max(self.ymax, other.ymax),
        )

    def expand(self, factor: float, min_size: float = 0.0) -> "Extent":
        """
        Scale around the center by ``factor``.

        Args:
            factor: 1.0 keeps the extent, 1.5 adds 25% on each side.
            min_size: Lower bound for width and height, so a single point
                still yields a usable view.
        """
        cx, cy = self.center
        half_w = max(self.width * factor, min_size) / 2.0
        half_h = max(self.height * factor, min_size) / 2.0
        return Extent(cx - half_w, cy - half_h, cx + half_w, cy + half_h)

    def to_dict(self) -> dict:
        return {"xmin": self.xmin, "ymin": self.ymin, "xmax": self.xmax, "ymax": self.ymax}

    @classmethod
    def from_coordinates(cls, coords: Sequence[Sequence[float]]) -> "Extent":
        points = np.asarray(coords, dtype=float).reshape(-1, 2)
        if points.size == 0:
            raise ValueError("No coordinates")
        xmin, ymin = points.min(axis=0)
        xmax, ymax = points.max(axis=0)
        return cls(float(xmin), float(ymin), float(xmax), float(ymax))

    @classmethod
    def from_geometry(cls, geometry: Optional[Mapping[str, Any]]) -> Optional["Extent"]:
        """Extent of a GeoJSON-like geometry, or None when it has no coordinates."""
        if not geometry:
            return None
        positions = list(_iter_positions(geometry))
        if not positions:
            return None
        return cls.from_coordinates(positions)


def _iter_positions(geometry: Mapping[str, Any]) -> Iterator[List[float]]:
    if geometry.get("type") == "GeometryCollection":
        for member in geometry.get("geometries", []):
            yield from _iter_positions(member)
        return
    yield from _flatten(geometry.get("coordinates"))


def _flatten(coords: Any) -> Iterator[List[float]]:
    if coords is None:
        return
    if len(coords) >= 2 and all(isinstance(c, (int, float)) for c in coords[:2]):
        yield [float(coords[0]), float(coords[1])]
        return
    for item in coords:
        yield from _flatten(item)


def union_extents(extents: Iterable[Optional[Extent]]) -> Optional[Extent]:
    """Union of the given extents, skipping None; None when nothing is left."""
    result = None
    for extent in extents:
        if extent is None:
            continue
        result = extent if result is None else result.union(extent)
    return result
