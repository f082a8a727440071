"""Report-side applier.

Converts map-sourced entries into the report's basic filters ("is one
of"). Report-sourced snapshots never produce a command here, so the report
never re-applies its own selection.
"""

from pathlib import Path
from typing import Dict, List, Optional, Tuple
import sys

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config
from config.logging_config import get_logger
from src.core.entries import FilterEntry, FilterSource
from src.core.errors import ApplyFailure, MappingNotFound, WidgetNotReady
from src.core.retry import apply_with_policy
from src.core.store import FilterSnapshot, FilterStore
from src.core.tasks import TaskRunner
from src.report.payloads import BasicFilter
from src.report.widget import ReportWidget

logger = get_logger("report.applier")


def build_basic_filters(entries: List[FilterEntry]) -> List[BasicFilter]:
    """
    Group entries by report (table, column) into basic filters.

    Entries without report coordinates cannot be expressed on the report
    and are dropped.
    """
    grouped: Dict[Tuple[str, str], List] = {}
    for entry in entries:
        target = entry.report_target
        if target is None:
            logger.debug(str(MappingNotFound(entry.field, "map->report")))
            continue
        values = grouped.setdefault(target, [])
        for value in entry.values:
            if value not in values:
                values.append(value)

    return [
        BasicFilter(table=table, column=column, values=values)
        for (table, column), values in grouped.items()
    ]


class ReportApplier:
    """Applies map-sourced snapshots to the report widget."""

    def __init__(
        self,
        store: FilterStore,
        widget: ReportWidget,
        runner: TaskRunner,
        retries: Optional[int] = None,
        backoff_ms: Optional[int] = None,
    ):
        self.store = store
        self.widget = widget
        self.runner = runner
        self.retries = config.sync.apply_retries if retries is None else retries
        self.backoff_ms = config.sync.retry_backoff_ms if backoff_ms is None else backoff_ms
        self.degraded = False
        self.last_error: Optional[ApplyFailure] = None
        self._pushed = False
        self._unsubscribe = None

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self.on_snapshot)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def on_snapshot(self, snapshot: FilterSnapshot) -> None:
        """Store subscriber; recomputes the report's desired filters."""
        incoming = snapshot.entries_from(FilterSource.MAP)

        if not incoming and not (snapshot.is_empty and self._pushed):
            return

        if not self.widget.is_ready:
            logger.info(f"Skipping report apply: {WidgetNotReady('report')}")
            return

        if incoming:
            filters = build_basic_filters(incoming)
            if not filters:
                return
            self._pushed = True
            self.runner.spawn(self._set_filters(filters), label="report-set-filters")
        else:
            self._pushed = False
            self.runner.spawn(self._remove_all(), label="report-remove-filters")

    async def _set_filters(self, filters: List[BasicFilter]) -> None:
        commands = [f.to_command() for f in filters]
        if await self._run(lambda: self.widget.set_filters(commands), "report set_filters"):
            logger.info(f"Applied {len(commands)} map filter(s) to report")

    async def _remove_all(self) -> None:
        if await self._run(self.widget.remove_all_filters, "report remove_all_filters"):
            logger.info("Removed map filters from report")

    async def _run(self, operation, description: str) -> bool:
        try:
            await apply_with_policy(operation, description, self.retries, self.backoff_ms)
        except WidgetNotReady as e:
            logger.info(f"Skipping {description}: {e}")
            return False
        except ApplyFailure as e:
            # Report keeps whatever it last accepted
            logger.warning(str(e))
            self.degraded = True
            self.last_error = e
            return False
        self.degraded = False
        self.last_error = None
        return True
