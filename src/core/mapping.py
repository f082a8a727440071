"""Field mapping table between report and map coordinate spaces.

The report addresses data as (table, column); the map addresses it as
(layer title, attribute field). Rows are hand-authored, loaded once at
startup and immutable afterwards.

One report column may fan out to several map layers, each with its own
attribute name. That is expected, not an error.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional, Tuple
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.config_loader import ConfigurationError, MappingRows
from config.logging_config import get_logger
from src.core.entries import Scalar
from src.core.transforms import Transform, get_transform

logger = get_logger("mapping")


@dataclass(frozen=True)
class FieldMapping:
    """Static translation rule for one report column on one map layer (or all)."""

    report_table: str
    report_column: str
    map_field: str
    map_layer_title: Optional[str] = None
    transform: Optional[Transform] = None

    def applies_to_layer(self, layer_title: Optional[str]) -> bool:
        """A row without a layer title applies to every layer."""
        return self.map_layer_title is None or self.map_layer_title == layer_title

    def matches_report(self, table: str, column: str) -> bool:
        return self.report_table == table and self.report_column == column

    def normalize(self, value: Scalar) -> Scalar:
        """Apply the row's transform (identity when unset)."""
        if self.transform is None:
            return value
        return self.transform(value)


class FieldMappingTable:
    """Immutable lookup over FieldMapping rows."""

    def __init__(self, mappings: Iterable[FieldMapping]):
        self._mappings: Tuple[FieldMapping, ...] = tuple(mappings)

    @property
    def mappings(self) -> Tuple[FieldMapping, ...]:
        return self._mappings

    def __len__(self) -> int:
        return len(self._mappings)

    def __iter__(self):
        return iter(self._mappings)

    def for_report_column(
        self, table: str, column: str, layer_title: Optional[str] = None
    ) -> List[FieldMapping]:
        """
        Rows for a report (table, column).

        Args:
            table: Report table name.
            column: Report column name.
            layer_title: Restrict to rows applying to this layer. When
                omitted, rows for every layer are returned (fan-out).

        Returns:
            Matching rows, in table order.
        """
        return [
            m for m in self._mappings
            if m.matches_report(table, column)
            and (layer_title is None or m.applies_to_layer(layer_title))
        ]

    def for_map_field(self, layer_title: Optional[str], field: str) -> List[FieldMapping]:
        """Rows for a map (layer title, attribute field)."""
        return [
            m for m in self._mappings
            if m.map_field == field and m.applies_to_layer(layer_title)
        ]

    def for_layer(self, layer_title: Optional[str]) -> List[FieldMapping]:
        """All rows applicable to a layer."""
        return [m for m in self._mappings if m.applies_to_layer(layer_title)]

    def has_report_column(self, table: str, column: str) -> bool:
        return any(m.matches_report(table, column) for m in self._mappings)

    def is_mapped_field(self, field: str) -> bool:
        """Check if any row uses ``field`` as its map attribute."""
        return any(m.map_field == field for m in self._mappings)


def mapping_from_row(row: dict) -> FieldMapping:
    """
    Build a FieldMapping from one mapping-file row.

    Raises:
        ConfigurationError: If the row names an unknown transform.
    """
    transform = None
    transform_name = row.get("transform")
    if transform_name:
        try:
            transform = get_transform(transform_name)
        except KeyError as e:
            raise ConfigurationError(str(e)) from e

    return FieldMapping(
        report_table=row["report_table"],
        report_column=row["report_column"],
        map_field=row["map_field"],
        map_layer_title=row.get("map_layer_title") or None,
        transform=transform,
    )


@lru_cache(maxsize=8)
def load_field_mappings(path: Optional[Path] = None) -> FieldMappingTable:
    """
    Load the field mapping table from YAML.

    Args:
        path: Mapping file. Defaults to the configured mapping file.

    Returns:
        Immutable FieldMappingTable (cached per path).
    """
    rows = MappingRows(path)
    table = FieldMappingTable(mapping_from_row(row) for row in rows.rows)
    logger.info(f"Loaded {len(table)} field mappings")
    return table
