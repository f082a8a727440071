"""Core filter synchronization: entries, store, mapping table, scheduling."""

from .entries import (
    FilterEntry,
    FilterSource,
    Scalar,
    describe_entries,
    is_numeric,
    merge_entries,
    report_content,
)
from .errors import (
    SyncError,
    MappingNotFound,
    WidgetNotReady,
    QueryFailure,
    ApplyFailure,
)
from .mapping import FieldMapping, FieldMappingTable, load_field_mappings
from .store import FilterSnapshot, FilterStore
from .tasks import TaskRunner
from .debounce import Debouncer
from .retry import apply_with_policy
from .transforms import TRANSFORMS, get_transform, strip_decoration

__all__ = [
    # Entries
    "FilterEntry",
    "FilterSource",
    "Scalar",
    "describe_entries",
    "is_numeric",
    "merge_entries",
    "report_content",
    # Errors
    "SyncError",
    "MappingNotFound",
    "WidgetNotReady",
    "QueryFailure",
    "ApplyFailure",
    # Mapping
    "FieldMapping",
    "FieldMappingTable",
    "load_field_mappings",
    # Store
    "FilterSnapshot",
    "FilterStore",
    # Scheduling
    "TaskRunner",
    "Debouncer",
    "apply_with_policy",
    # Transforms
    "TRANSFORMS",
    "get_transform",
    "strip_decoration",
]
