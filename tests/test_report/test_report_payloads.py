"""Tests for report widget payload schemas."""

import pytest


class TestSelectionPayload:
    """Tests for the "element selected" payload."""

    def test_identity_and_values_triplets(self):
        from src.report.payloads import SelectionEventPayload

        payload = SelectionEventPayload.model_validate({
            "dataPoints": [{
                "identity": [
                    {"target": {"table": "Permits", "column": "County Label"}, "equals": "Wake"}
                ],
                "values": [
                    {"target": {"table": "Permits", "measure": "Total"}, "value": 12},
                    {"target": {"table": "Permits", "column": "Status"}, "formattedValue": "Open"},
                ],
            }]
        })

        assert list(payload.iter_triplets()) == [
            ("Permits", "County Label", "Wake"),
            ("Permits", "Total", 12),
            ("Permits", "Status", "Open"),
        ]

    def test_empty_payload(self):
        from src.report.payloads import SelectionEventPayload

        assert SelectionEventPayload.model_validate({}).data_points == []

    def test_malformed_payload(self):
        from pydantic import ValidationError
        from src.report.payloads import SelectionEventPayload

        with pytest.raises(ValidationError):
            SelectionEventPayload.model_validate({"dataPoints": [{"identity": [{"equals": 1}]}]})


class TestPageFilters:
    """Tests for polled page filters and outbound basic filters."""

    def test_poll_keeps_value_filters_only(self):
        from src.report.payloads import PageFiltersPollResult

        result = PageFiltersPollResult.from_widget([
            {"target": {"table": "Permits", "column": "County Label"}, "operator": "In",
             "values": ["Forsyth", "Wake"]},
            {"target": {"table": "Permits", "column": "Status"}, "operator": "NotIn",
             "values": ["Closed"]},
            {"target": {"table": "Permits", "column": "Issued"}, "logicalOperator": "And",
             "conditions": []},
            {"target": {"table": "Permits", "column": "Empty"}, "operator": "In", "values": []},
        ])

        assert list(result.iter_triplets()) == [
            ("Permits", "County Label", "Forsyth"),
            ("Permits", "County Label", "Wake"),
        ]

    def test_basic_filter_command_shape(self):
        from src.report.payloads import BASIC_FILTER_SCHEMA, BasicFilter

        command = BasicFilter(table="Permits", column="County Label", values=["Forsyth"]).to_command()

        assert command == {
            "$schema": BASIC_FILTER_SCHEMA,
            "target": {"table": "Permits", "column": "County Label"},
            "operator": "In",
            "values": ["Forsyth"],
            "filterType": 1,
        }
        assert BasicFilter.from_command(command).values == ["Forsyth"]
