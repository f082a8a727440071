"""Report-side extractor.

Turns report widget events into report-sourced filter snapshots:

- "element selected": every (table, column, value) triplet of every
  selected data point goes through the mapping table into one entry set.
  A selection with no data points clears the store.
- "render settled": fires after every re-render, slicer changes included.
  Debounced with a trailing window, then the active page filters are
  polled; this recovers slicer selections that emit no selection event.
"""

from pathlib import Path
from typing import Iterable, List, Optional
import sys

from pydantic import ValidationError

PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config
from config.logging_config import get_logger
from src.core.debounce import Debouncer
from src.core.entries import FilterEntry, FilterSource, merge_entries, report_content
from src.core.errors import MappingNotFound, WidgetNotReady
from src.core.mapping import FieldMappingTable
from src.core.store import FilterStore
from src.core.tasks import TaskRunner
from src.report.payloads import (
    PageFiltersPollResult,
    RenderSettledPayload,
    SelectionEventPayload,
    Triplet,
)
from src.report.widget import RENDER_SETTLED_EVENT, SELECTION_EVENT, ReportWidget

logger = get_logger("report.extractor")


class ReportExtractor:
    """Listens to the report widget and writes report-sourced snapshots."""

    def __init__(
        self,
        store: FilterStore,
        mappings: FieldMappingTable,
        widget: ReportWidget,
        runner: TaskRunner,
        render_debounce_ms: Optional[int] = None,
    ):
        self.store = store
        self.mappings = mappings
        self.widget = widget
        self.runner = runner
        window = config.sync.render_debounce_ms if render_debounce_ms is None else render_debounce_ms
        self.render_debouncer = Debouncer(
            window, self.poll_page_filters, runner, name="report-render-poll"
        )
        self._last_poll: frozenset = frozenset()
        self._attached = False

    def attach(self) -> None:
        if self._attached:
            return
        self.widget.on(SELECTION_EVENT, self.handle_selection)
        self.widget.on(RENDER_SETTLED_EVENT, self.handle_render_settled)
        self._attached = True

    def detach(self) -> None:
        if not self._attached:
            return
        self.widget.off(SELECTION_EVENT, self.handle_selection)
        self.widget.off(RENDER_SETTLED_EVENT, self.handle_render_settled)
        self.render_debouncer.cancel()
        self._attached = False

    # -------------------------------------------------------------------------
    # Normalization
    # -------------------------------------------------------------------------

    def normalize(self, triplets: Iterable[Triplet]) -> List[FilterEntry]:
        """
        Convert report (table, column, value) triplets into filter entries.

        Each triplet fans out to every mapping row for its column, keyed by
        the row's map field with the row's transform applied. An unmapped
        column passes through under its raw name.

        Args:
            triplets: Triplets from one event or poll.

        Returns:
            Entries with one entry per canonical field.
        """
        entries = []
        for table, column, value in triplets:
            if value is None:
                continue

            rows = self.mappings.for_report_column(table, column)
            if not rows:
                logger.debug(str(MappingNotFound(f"{table}.{column}", "report->map")))
                candidates = [(column, value)]
            else:
                candidates = [(row.map_field, row.normalize(value)) for row in rows]

            for field, normalized in candidates:
                try:
                    entries.append(FilterEntry(
                        field=field,
                        values=(normalized,),
                        source=FilterSource.REPORT,
                        report_table=table,
                        report_column=column,
                    ))
                except TypeError as e:
                    logger.debug(f"Skipping {table}.{column} value {value!r}: {e}")

        return merge_entries(entries)

    # -------------------------------------------------------------------------
    # Selection events
    # -------------------------------------------------------------------------

    def handle_selection(self, raw: Optional[dict]) -> None:
        """Handle the "element selected" event."""
        try:
            payload = SelectionEventPayload.model_validate(raw or {})
        except ValidationError as e:
            logger.warning(f"Ignoring malformed selection event: {e}")
            return

        if not payload.data_points:
            logger.debug("Selection with no data points; clearing filters")
            self.store.clear_filters(FilterSource.REPORT)
            return

        entries = self.normalize(payload.iter_triplets())
        if entries:
            logger.info(f"Report selection -> {len(entries)} filter(s)")
            self.store.set_filters(entries, FilterSource.REPORT)

    # -------------------------------------------------------------------------
    # Render-settled polling
    # -------------------------------------------------------------------------

    def handle_render_settled(self, raw: Optional[dict] = None) -> None:
        """Handle the high-frequency "render settled" event."""
        try:
            RenderSettledPayload.model_validate(raw or {})
        except ValidationError as e:
            logger.debug(f"Unexpected render payload: {e}")
        self.render_debouncer.trigger()

    async def poll_page_filters(self) -> None:
        """Poll active page filters and push them if they changed."""
        try:
            if not self.widget.is_ready:
                raise WidgetNotReady("report")
            raw_filters = await self.widget.get_page_filters()
            result = PageFiltersPollResult.from_widget(raw_filters)
        except WidgetNotReady as e:
            logger.info(f"Skipping page filter poll: {e}")
            return
        except ValidationError as e:
            logger.warning(f"Ignoring malformed page filters: {e}")
            return
        except Exception as e:
            logger.warning(f"Page filter poll failed: {e}")
            return

        entries = self.normalize(result.iter_triplets())
        polled = report_content(entries)
        previous, self._last_poll = self._last_poll, polled
        snapshot = self.store.snapshot

        if not entries:
            # A slicer was cleared; only undo what the report itself put there
            if previous and not snapshot.is_empty and snapshot.source == FilterSource.REPORT:
                logger.info("Page filters cleared; clearing report filters")
                self.store.clear_filters(FilterSource.REPORT)
            return

        if polled == previous:
            logger.debug("Page filters unchanged since last poll")
            return
        if polled == report_content(snapshot.entries):
            logger.debug("Page filters already reflected in the current snapshot")
            return

        logger.info(f"Page filters changed -> {len(entries)} filter(s)")
        self.store.set_filters(entries, FilterSource.REPORT)
