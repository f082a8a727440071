"""Tests for the filter store."""


def _entry(field, *values, source="report"):
    from src.core.entries import FilterEntry

    return FilterEntry(field, values, source, "Permits", "County Label")


class TestFilterStore:
    """Tests for snapshot replacement and notification."""

    def test_starts_empty(self, store):
        assert store.snapshot.is_empty
        assert store.snapshot.version == 0
        assert store.snapshot.source is None

    def test_set_filters_replaces_snapshot(self, store):
        """Each write replaces the previous entries entirely."""
        from src.core.entries import FilterSource

        store.set_filters([_entry("County", "Forsyth")], FilterSource.REPORT)
        snapshot = store.set_filters([_entry("Pop", 10, source="map")], FilterSource.MAP)

        assert [e.field for e in snapshot.entries] == ["Pop"]
        assert snapshot.source is FilterSource.MAP
        assert snapshot.version == 2

    def test_set_filters_merges_same_field(self, store):
        from src.core.entries import FilterSource

        snapshot = store.set_filters(
            [_entry("County", "Forsyth"), _entry("County", "Wake", "Forsyth")],
            FilterSource.REPORT,
        )

        assert len(snapshot.entries) == 1
        assert snapshot.entries[0].values == ("Forsyth", "Wake")

    def test_clear_filters(self, store):
        from src.core.entries import FilterSource

        store.set_filters([_entry("County", "Forsyth")], FilterSource.REPORT)
        snapshot = store.clear_filters(FilterSource.MAP)

        assert snapshot.is_empty
        assert snapshot.source is FilterSource.MAP
        assert snapshot.summary() == "No active filters"

    def test_subscribers_notified_in_order(self, store):
        from src.core.entries import FilterSource

        calls = []
        store.subscribe(lambda s: calls.append(("a", s.version)))
        store.subscribe(lambda s: calls.append(("b", s.version)))

        store.set_filters([_entry("County", "Forsyth")], FilterSource.REPORT)

        assert calls == [("a", 1), ("b", 1)]

    def test_unsubscribe(self, store):
        from src.core.entries import FilterSource

        calls = []
        unsubscribe = store.subscribe(calls.append)
        unsubscribe()
        unsubscribe()

        store.clear_filters(FilterSource.REPORT)

        assert calls == []

    def test_failing_subscriber_does_not_block_others(self, store):
        """One subscriber raising does not stop the rest of the dispatch."""
        from src.core.entries import FilterSource

        calls = []

        def broken(snapshot):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(calls.append)

        store.set_filters([_entry("County", "Forsyth")], FilterSource.REPORT)

        assert len(calls) == 1

    def test_entries_from_source(self, store):
        from src.core.entries import FilterSource

        snapshot = store.set_filters([_entry("County", "Forsyth")], FilterSource.REPORT)

        assert len(snapshot.entries_from(FilterSource.REPORT)) == 1
        assert snapshot.entries_from(FilterSource.MAP) == []
