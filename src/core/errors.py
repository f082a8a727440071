"""Error taxonomy for filter synchronization.

None of these surface to the viewer. Each extractor/applier catches them
locally and logs; at worst one widget silently keeps its previous state.
"""

from typing import Optional


class SyncError(Exception):
    """Base class for filter synchronization errors."""

    pass


class MappingNotFound(SyncError):
    """No field mapping row matches a report or map coordinate."""

    def __init__(self, coordinate: str, direction: str):
        self.coordinate = coordinate
        self.direction = direction
        super().__init__(f"No field mapping for {coordinate} ({direction})")


class WidgetNotReady(SyncError):
    """The target widget is not initialized yet; the cycle is skipped."""

    def __init__(self, widget: str):
        self.widget = widget
        super().__init__(f"{widget} widget is not ready")


class QueryFailure(SyncError):
    """A feature query for zoom/highlight failed or returned nothing."""

    def __init__(self, layer_title: str, reason: str):
        self.layer_title = layer_title
        self.reason = reason
        super().__init__(f"Feature query on '{layer_title}' failed: {reason}")


class ApplyFailure(SyncError):
    """A set-filters / set-predicate command was rejected by the widget."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        message = f"{operation} failed"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
