"""
Predicate builder for map feature layers.

Builds the per-layer WHERE expression a map widget accepts as its layer
definition expression. The map takes a literal string, so values are
inlined rather than bound:

- numeric values are written as-is: ``Pop = 1200``
- strings are single-quoted with quotes doubled: ``Name = 'O''Neil'``
- one value gives an equality, several give ``Field IN (a, b)``
- clauses for different fields are joined with ``AND``

Usage:
    builder = PredicateBuilder(mappings)
    where = builder.build(layer, entries)   # None when nothing applies
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging_config import get_logger
from src.core.entries import FilterEntry, Scalar, is_numeric, unique_values
from src.core.mapping import FieldMapping, FieldMappingTable
from src.geomap.layers import MapLayer

logger = get_logger("geomap.predicates")


def quote_value(value: Scalar) -> str:
    """Render a scalar as a predicate literal."""
    if is_numeric(value):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


@dataclass(frozen=True)
class PredicateClause:
    """Represents one field constraint."""

    field: str
    values: Tuple[Scalar, ...]

    def to_sql(self) -> Optional[str]:
        """Convert to an equality or IN expression (None when no values)."""
        values = unique_values(self.values)
        if not values:
            return None
        if len(values) == 1:
            return f"{self.field} = {quote_value(values[0])}"
        listed = ", ".join(quote_value(v) for v in values)
        return f"{self.field} IN ({listed})"


def build_clause(field: str, values: Sequence[Scalar]) -> Optional[str]:
    """Shortcut for ``PredicateClause(field, values).to_sql()``."""
    return PredicateClause(field, tuple(values)).to_sql()


def join_clauses(clauses: Iterable[Optional[str]]) -> Optional[str]:
    """AND-join non-empty clauses; None when there are none."""
    parts = [c for c in clauses if c]
    return " AND ".join(parts) if parts else None


class PredicateBuilder:
    """Builds layer predicates from filter entries through the mapping table."""

    def __init__(self, mappings: FieldMappingTable):
        self.mappings = mappings

    def _row_for(self, layer: MapLayer, entry: FilterEntry) -> Optional[FieldMapping]:
        rows = self.mappings.for_map_field(layer.title, entry.field)
        if not rows:
            return None
        # Prefer the row the entry was extracted through
        for row in rows:
            if entry.report_target and row.matches_report(*entry.report_target):
                return row
        return rows[0]

    def clauses_for(self, layer: MapLayer, entries: Iterable[FilterEntry]) -> List[PredicateClause]:
        """
        Clauses that apply to ``layer``.

        Mapped entries produce a clause only on layers that have a mapping
        row for their field; values pass through the row's transform.
        Pass-through entries (no row anywhere for their field) apply to
        layers that expose an attribute of that name.

        Args:
            layer: Target layer.
            entries: Entries from the current snapshot.

        Returns:
            At most one clause per field; entries resolving to the same
            layer field have their values merged, each listed once.
        """
        by_field: Dict[str, List[Scalar]] = {}
        for entry in entries:
            row = self._row_for(layer, entry)
            if row is not None:
                field, values = row.map_field, [row.normalize(v) for v in entry.values]
            elif not self.mappings.is_mapped_field(entry.field) and layer.has_field(entry.field):
                field, values = entry.field, list(entry.values)
            else:
                continue
            by_field.setdefault(field, []).extend(values)
        return [
            PredicateClause(field, tuple(unique_values(values)))
            for field, values in by_field.items()
        ]

    def build(self, layer: MapLayer, entries: Iterable[FilterEntry]) -> Optional[str]:
        """Build the layer predicate, or None when no clause applies."""
        where = join_clauses(c.to_sql() for c in self.clauses_for(layer, entries))
        if where is None:
            logger.debug(f"No clause applies to layer '{layer.title}'")
        return where
