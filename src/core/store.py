"""Shared filter store.

Holds the current normalized filter snapshot and which side produced it.
Every write replaces the whole snapshot and notifies all subscribers
synchronously. The store has no business logic: each applier filters the
snapshot down to entries from the other side.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Tuple
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.logging_config import get_logger
from src.core.entries import FilterEntry, FilterSource, describe_entries, merge_entries

logger = get_logger("store")


@dataclass(frozen=True)
class FilterSnapshot:
    """Immutable view of the store after one write."""

    entries: Tuple[FilterEntry, ...] = ()
    source: Optional[FilterSource] = None
    version: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def entries_from(self, source: FilterSource) -> List[FilterEntry]:
        """Entries produced by ``source``."""
        return [e for e in self.entries if e.source == source]

    def content(self) -> frozenset:
        """Source-independent content, for comparing snapshots."""
        return frozenset(e.content_key() for e in self.entries)

    def summary(self) -> str:
        return describe_entries(self.entries)


Subscriber = Callable[[FilterSnapshot], None]


class FilterStore:
    """Observable holder of the current filter snapshot."""

    def __init__(self):
        self._snapshot = FilterSnapshot()
        self._subscribers: List[Subscriber] = []

    @property
    def snapshot(self) -> FilterSnapshot:
        return self._snapshot

    @property
    def entries(self) -> Tuple[FilterEntry, ...]:
        return self._snapshot.entries

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a subscriber.

        Returns:
            A callable that removes the subscriber.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def set_filters(self, entries: Iterable[FilterEntry], source: FilterSource) -> FilterSnapshot:
        """
        Replace the snapshot with ``entries``.

        Entries for the same canonical field are merged; entries from earlier
        writes are discarded (snapshot-replace, not incremental merge).

        Args:
            entries: Entries from one interaction event.
            source: Side that produced the write.

        Returns:
            The new snapshot.
        """
        merged = merge_entries(entries)
        self._replace(FilterSnapshot(
            entries=tuple(merged),
            source=FilterSource(source),
            version=self._snapshot.version + 1,
        ))
        return self._snapshot

    def clear_filters(self, source: Optional[FilterSource] = None) -> FilterSnapshot:
        """Replace the snapshot with an empty one."""
        self._replace(FilterSnapshot(
            entries=(),
            source=FilterSource(source) if source is not None else None,
            version=self._snapshot.version + 1,
        ))
        return self._snapshot

    def _replace(self, snapshot: FilterSnapshot) -> None:
        self._snapshot = snapshot
        origin = snapshot.source.value if snapshot.source else "-"
        logger.debug(f"Filter snapshot v{snapshot.version} from {origin}: {snapshot.summary()}")

        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"Filter subscriber {callback!r} failed: {e}", exc_info=True)
