"""Normalized filter entries shared by both widget adapters.

A FilterEntry is one selection constraint keyed by its canonical field (the
map-side attribute name). Widget-specific payloads are converted into entries
at the adapter boundary; nothing downstream sees a widget shape.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union

Scalar = Union[str, int, float]


class FilterSource(str, Enum):
    """Which widget produced an entry."""
    REPORT = "report"
    MAP = "map"


def is_numeric(value: Scalar) -> bool:
    """Check if a scalar is numeric (bool is not)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def unique_values(values: Iterable[Scalar]) -> Tuple[Scalar, ...]:
    """De-duplicate values keeping first-seen order."""
    seen = []
    for value in values:
        if value is None or isinstance(value, bool):
            raise TypeError(f"Filter values must be str, int or float, got {value!r}")
        if not isinstance(value, (str, int, float)):
            raise TypeError(f"Filter values must be str, int or float, got {type(value).__name__}")
        if value not in seen:
            seen.append(value)
    return tuple(seen)


@dataclass(frozen=True)
class FilterEntry:
    """One normalized selection constraint."""

    field: str
    values: Tuple[Scalar, ...]
    source: FilterSource
    report_table: Optional[str] = None
    report_column: Optional[str] = None

    def __post_init__(self):
        if not self.field:
            raise ValueError("FilterEntry requires a field name")
        object.__setattr__(self, "values", unique_values(self.values))
        object.__setattr__(self, "source", FilterSource(self.source))

    @property
    def report_target(self) -> Optional[Tuple[str, str]]:
        """Report (table, column) coordinates, if this entry maps back."""
        if self.report_table and self.report_column:
            return (self.report_table, self.report_column)
        return None

    def merge(self, values: Iterable[Scalar]) -> "FilterEntry":
        """Return a copy with the union of this entry's values and ``values``."""
        return replace(self, values=self.values + tuple(values))

    def content_key(self) -> Tuple[str, frozenset]:
        """Source-independent identity used to compare snapshots."""
        return (self.field, frozenset(self.values))

    def to_dict(self) -> Dict[str, object]:
        """Convert to dictionary for logging and replay output."""
        return {
            "field": self.field,
            "values": list(self.values),
            "source": self.source.value,
            "report_table": self.report_table,
            "report_column": self.report_column,
        }


def merge_entries(entries: Iterable[FilterEntry]) -> List[FilterEntry]:
    """
    Collapse entries so each canonical field appears once.

    Values for a repeated field are merged into the first entry for that
    field; the first entry's report coordinates are kept.

    Args:
        entries: Entries from one interaction event.

    Returns:
        Entries in first-seen field order.
    """
    by_field: Dict[str, FilterEntry] = {}
    for entry in entries:
        existing = by_field.get(entry.field)
        if existing is None:
            by_field[entry.field] = entry
        else:
            by_field[entry.field] = existing.merge(entry.values)
    return list(by_field.values())


def report_content(entries: Iterable[FilterEntry]) -> frozenset:
    """
    Entries projected onto report coordinates.

    Fan-out entries (several map fields for one report column) collapse
    into one (table, column, values) item, so a snapshot can be compared
    with what the report widget itself reports as active.
    """
    grouped: Dict[Tuple[str, str], set] = {}
    for entry in entries:
        target = entry.report_target or ("", entry.field)
        grouped.setdefault(target, set()).update(entry.values)
    return frozenset((table, column, frozenset(values)) for (table, column), values in grouped.items())


def describe_entries(entries: Iterable[FilterEntry]) -> str:
    """Get a human-readable summary of entries."""
    parts = []
    for entry in entries:
        values = [str(v) for v in entry.values]
        if len(values) > 3:
            parts.append(f"{entry.field}: {len(values)} selected")
        else:
            parts.append(f"{entry.field}: {', '.join(values)}")
    return " | ".join(parts) if parts else "No active filters"
