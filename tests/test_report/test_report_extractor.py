"""Tests for the report-side extractor."""

import asyncio

PIN_FORSYTH = "\U0001F4CD   Forsyth"


def _extractor(store, mapping_table, widget):
    from src.core.tasks import TaskRunner
    from src.report.extractor import ReportExtractor

    runner = TaskRunner()
    extractor = ReportExtractor(store, mapping_table, widget, runner, render_debounce_ms=0)
    extractor.attach()
    return extractor


async def _settle(extractor):
    extractor.render_debouncer.flush()
    await extractor.runner.drain()


class TestSelectionEvents:
    """Tests for "element selected" handling."""

    def test_selection_fans_out_through_mappings(self, store, mapping_table, report_widget, forsyth_selection):
        """A decorated slicer label becomes one entry per map field, transformed."""
        from src.core.entries import FilterSource

        _extractor(store, mapping_table, report_widget)
        report_widget.select(forsyth_selection)

        snapshot = store.snapshot
        assert snapshot.source is FilterSource.REPORT
        assert [(e.field, e.values) for e in snapshot.entries] == [
            ("County", ("Forsyth",)),
            ("Lebel", ("Forsyth",)),
        ]
        assert all(e.report_target == ("Permits", "County Label") for e in snapshot.entries)

    def test_multiple_points_merge_values(self, store, mapping_table, report_widget):
        _extractor(store, mapping_table, report_widget)
        target = {"table": "Permits", "column": "County Label"}
        report_widget.select([
            {"identity": [{"target": target, "equals": PIN_FORSYTH}]},
            {"identity": [{"target": target, "equals": "Forsyth"}]},
            {"identity": [{"target": target, "equals": "Wake"}]},
        ])

        county = store.snapshot.entries[0]
        assert county.values == ("Forsyth", "Wake")

    def test_empty_selection_clears(self, store, mapping_table, report_widget, forsyth_selection):
        _extractor(store, mapping_table, report_widget)
        report_widget.select(forsyth_selection)
        report_widget.select([])

        assert store.snapshot.is_empty
        assert store.snapshot.version == 2

    def test_unmapped_column_passes_through(self, store, mapping_table, report_widget):
        """A report column with no mapping row is kept under its raw name."""
        _extractor(store, mapping_table, report_widget)
        report_widget.select([
            {"identity": [{"target": {"table": "Permits", "column": "Status"}, "equals": "Open"}]}
        ])

        entry = store.snapshot.entries[0]
        assert entry.field == "Status"
        assert entry.values == ("Open",)
        assert entry.report_target == ("Permits", "Status")

    def test_null_values_skipped(self, store, mapping_table, report_widget):
        _extractor(store, mapping_table, report_widget)
        report_widget.select([
            {"identity": [{"target": {"table": "Permits", "column": "County Label"}, "equals": None}]}
        ])

        assert store.snapshot.version == 0

    def test_malformed_selection_ignored(self, store, mapping_table, report_widget):
        _extractor(store, mapping_table, report_widget)
        report_widget.emit("dataSelected", {"dataPoints": "not-a-list"})

        assert store.snapshot.version == 0

    def test_detach_unhooks_events(self, store, mapping_table, report_widget, forsyth_selection):
        extractor = _extractor(store, mapping_table, report_widget)
        extractor.detach()
        report_widget.select(forsyth_selection)

        assert store.snapshot.version == 0
        assert report_widget.handler_count("dataSelected") == 0
        assert report_widget.handler_count("rendered") == 0


class TestRenderPolling:
    """Tests for render-settled page filter polling."""

    def test_slicer_change_recovered_by_poll(self, store, mapping_table, report_widget):
        from src.core.entries import FilterSource

        async def scenario():
            extractor = _extractor(store, mapping_table, report_widget)
            report_widget.set_slicer("Permits", "County Label", [PIN_FORSYTH])
            await _settle(extractor)

        asyncio.run(scenario())

        assert store.snapshot.source is FilterSource.REPORT
        assert store.snapshot.entries[0].values == ("Forsyth",)

    def test_render_burst_polls_once(self, store, mapping_table, report_widget):
        async def scenario():
            from src.report.extractor import ReportExtractor
            from src.core.tasks import TaskRunner

            runner = TaskRunner()
            extractor = ReportExtractor(store, mapping_table, report_widget, runner, render_debounce_ms=20)
            extractor.attach()
            report_widget.page_filters = [
                {"target": {"table": "Permits", "column": "County Label"}, "operator": "In", "values": ["Wake"]}
            ]
            for _ in range(10):
                report_widget.render()
            await asyncio.sleep(0.1)
            await runner.drain()
            return extractor.render_debouncer.fired

        assert asyncio.run(scenario()) == 1
        assert store.snapshot.version == 1

    def test_unchanged_poll_suppressed(self, store, mapping_table, report_widget):
        async def scenario():
            extractor = _extractor(store, mapping_table, report_widget)
            report_widget.set_slicer("Permits", "County Label", ["Wake"])
            await _settle(extractor)
            report_widget.render()
            await _settle(extractor)

        asyncio.run(scenario())
        assert store.snapshot.version == 1

    def test_poll_matching_snapshot_suppressed(self, store, mapping_table, report_widget):
        """Filters the map pushed into the report do not come back as a report write."""
        from src.core.entries import FilterEntry, FilterSource

        async def scenario():
            extractor = _extractor(store, mapping_table, report_widget)
            store.set_filters(
                [FilterEntry("County", ("Forsyth",), FilterSource.MAP, "Permits", "County Label")],
                FilterSource.MAP,
            )
            report_widget.page_filters = [
                {"target": {"table": "Permits", "column": "County Label"}, "operator": "In",
                 "values": ["Forsyth"]}
            ]
            report_widget.render()
            await _settle(extractor)

        asyncio.run(scenario())
        assert store.snapshot.version == 1
        assert store.snapshot.source is FilterSource.MAP

    def test_cleared_slicer_clears_report_filters(self, store, mapping_table, report_widget):
        async def scenario():
            extractor = _extractor(store, mapping_table, report_widget)
            report_widget.set_slicer("Permits", "County Label", ["Wake"])
            await _settle(extractor)
            report_widget.set_slicer("Permits", "County Label", [])
            await _settle(extractor)

        asyncio.run(scenario())
        assert store.snapshot.is_empty
        assert store.snapshot.version == 2

    def test_empty_poll_keeps_map_selection(self, store, mapping_table, report_widget):
        """An empty page never clears a selection the map made."""
        from src.core.entries import FilterEntry, FilterSource

        async def scenario():
            extractor = _extractor(store, mapping_table, report_widget)
            report_widget.set_slicer("Permits", "County Label", ["Wake"])
            await _settle(extractor)
            store.set_filters([FilterEntry("County", ("Forsyth",), FilterSource.MAP)], FilterSource.MAP)
            report_widget.page_filters = []
            report_widget.render()
            await _settle(extractor)

        asyncio.run(scenario())
        assert store.snapshot.source is FilterSource.MAP
        assert not store.snapshot.is_empty

    def test_not_ready_skips_poll(self, store, mapping_table, report_widget):
        async def scenario():
            extractor = _extractor(store, mapping_table, report_widget)
            report_widget.ready = False
            report_widget.set_slicer("Permits", "County Label", ["Wake"])
            await _settle(extractor)

        asyncio.run(scenario())
        assert store.snapshot.version == 0
