"""Tests for the field mapping table and its YAML loader."""

import pytest


class TestFieldMappingTable:
    """Tests for mapping lookups."""

    def test_report_column_fans_out(self, mapping_table):
        """One report column maps to a row per layer."""
        rows = mapping_table.for_report_column("Permits", "County Label")

        assert [(r.map_layer_title, r.map_field) for r in rows] == [
            ("Permits", "County"),
            ("Counties", "County"),
            ("Dentists", "Lebel"),
        ]

    def test_report_column_restricted_to_layer(self, mapping_table):
        rows = mapping_table.for_report_column("Permits", "County Label", "Dentists")

        assert [r.map_field for r in rows] == ["Lebel"]

    def test_unknown_report_column(self, mapping_table):
        assert mapping_table.for_report_column("Permits", "Status") == []
        assert not mapping_table.has_report_column("Permits", "Status")

    def test_for_map_field(self, mapping_table):
        assert len(mapping_table.for_map_field("Counties", "County")) == 1
        assert mapping_table.for_map_field("Counties", "Lebel") == []

    def test_layerless_row_applies_everywhere(self):
        from src.core.mapping import FieldMapping, FieldMappingTable

        table = FieldMappingTable([FieldMapping("Permits", "Status", "Status")])

        assert len(table.for_layer("Anything")) == 1
        assert len(table.for_map_field("Other", "Status")) == 1

    def test_is_mapped_field(self, mapping_table):
        assert mapping_table.is_mapped_field("Lebel")
        assert not mapping_table.is_mapped_field("Pop")

    def test_normalize_applies_transform(self, mapping_table):
        row = mapping_table.for_layer("Permits")[0]

        assert row.normalize("\U0001F4CD   Forsyth") == "Forsyth"


class TestMappingLoader:
    """Tests for loading mapping rows from YAML."""

    def test_load_from_file(self, mapping_file):
        from src.core.mapping import load_field_mappings

        table = load_field_mappings(mapping_file)

        assert len(table) == 2
        county, status = table.mappings
        assert county.map_layer_title == "Permits"
        assert county.normalize("\U0001F4CD Wake") == "Wake"
        assert status.map_layer_title is None
        assert status.transform is None

    def test_bundled_mapping_file_loads(self):
        """The shipped mapping file is valid."""
        from config.settings import PROJECT_ROOT
        from src.core.mapping import load_field_mappings

        table = load_field_mappings(PROJECT_ROOT / "config" / "field_mappings.yaml")

        assert len(table) == 4
        assert {r.map_field for r in table} == {"County", "Lebel"}

    def test_missing_keys_rejected(self, tmp_path):
        from config.config_loader import ConfigurationError, MappingRows

        path = tmp_path / "bad.yaml"
        path.write_text("mappings:\n  - report_table: Permits\n    map_field: County\n")

        with pytest.raises(ConfigurationError) as exc:
            MappingRows(path)
        assert "report_column" in str(exc.value)

    def test_unknown_transform_rejected(self, tmp_path):
        from config.config_loader import ConfigurationError
        from src.core.mapping import load_field_mappings

        path = tmp_path / "bad_transform.yaml"
        path.write_text(
            "mappings:\n"
            "  - report_table: Permits\n"
            "    report_column: County Label\n"
            "    map_field: County\n"
            "    transform: titlecase\n"
        )

        with pytest.raises(ConfigurationError):
            load_field_mappings(path)

    def test_missing_file(self, tmp_path):
        from config.config_loader import ConfigurationError, load_mapping_file

        with pytest.raises(ConfigurationError):
            load_mapping_file(tmp_path / "nope.yaml")

    def test_mappings_must_be_list(self, tmp_path):
        from config.config_loader import ConfigurationError, MappingRows

        path = tmp_path / "not_list.yaml"
        path.write_text("mappings:\n  report_table: Permits\n")

        with pytest.raises(ConfigurationError):
            MappingRows(path)
