"""Pytest configuration and fixtures for Filter Sync tests."""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

PIN_FORSYTH = "\U0001F4CD   Forsyth"


def _point(x, y):
    return {"type": "Point", "coordinates": [x, y]}


def _square(xmin, ymin, xmax, ymax):
    return {
        "type": "Polygon",
        "coordinates": [[[xmin, ymin], [xmax, ymin], [xmax, ymax], [xmin, ymax], [xmin, ymin]]],
    }


@pytest.fixture
def sync_settings():
    """Sync settings with zero debounce windows and no retries."""
    from config.settings import SyncConfig

    return SyncConfig(
        render_debounce_ms=0,
        hover_debounce_ms=0,
        zoom_expand_factor=1.5,
        min_extent_size=0.01,
        apply_retries=0,
        retry_backoff_ms=0,
        highlight_on_zoom=True,
    )


@pytest.fixture
def mapping_table():
    """One report column fanned out to three layers with different attribute names."""
    from src.core.mapping import FieldMapping, FieldMappingTable
    from src.core.transforms import strip_decoration

    return FieldMappingTable([
        FieldMapping("Permits", "County Label", "County", "Permits", strip_decoration),
        FieldMapping("Permits", "County Label", "County", "Counties", strip_decoration),
        FieldMapping("Permits", "County Label", "Lebel", "Dentists", strip_decoration),
    ])


@pytest.fixture
def map_layers():
    """Layer set: two filterable point layers, a polygon layer, a heatmap and a basemap."""
    from src.geomap.layers import MapLayer

    return [
        MapLayer("Permits", fields=("County", "Pop")),
        MapLayer("Permits Heat", renderer_type="heatmap", fields=("County",)),
        MapLayer("Counties", fields=("County",)),
        MapLayer("Dentists", fields=("Lebel",)),
        MapLayer("Basemap", layer_type="tile"),
    ]


@pytest.fixture
def map_features():
    """Features per layer title."""
    from src.geomap.widget import Feature

    permits = [
        Feature({"County": "Forsyth", "Pop": 1200}, _point(1.0, 1.0)),
        Feature({"County": "Forsyth", "Pop": 300}, _point(1.2, 1.1)),
        Feature({"County": "Wake", "Pop": 5000}, _point(5.0, 5.0)),
        Feature({"County": "Guilford", "Pop": 800}, _point(9.0, 9.0)),
    ]
    return {
        "Permits": permits,
        "Permits Heat": list(permits),
        "Counties": [
            Feature({"County": "Forsyth"}, _square(0, 0, 2, 2)),
            Feature({"County": "Wake"}, _square(4, 4, 6, 6)),
            Feature({"County": "Guilford"}, _square(8, 8, 10, 10)),
        ],
        "Dentists": [
            Feature({"Lebel": "Forsyth"}, _point(1.5, 1.5)),
            Feature({"Lebel": "Wake"}, _point(4.5, 4.5)),
        ],
    }


@pytest.fixture
def initial_extent():
    from src.geomap.extent import Extent

    return Extent(-1.0, -1.0, 11.0, 11.0)


@pytest.fixture
def map_view(map_layers, map_features, initial_extent):
    """In-memory map view over the fixture layers."""
    from src.geomap.memory import MemoryMapView

    view = MemoryMapView(map_layers, map_features, extent=initial_extent)
    yield view
    view.close()


@pytest.fixture
def report_widget():
    """In-memory report widget that re-renders after every applied command."""
    from src.report.memory import MemoryReportWidget

    return MemoryReportWidget(render_on_apply=True)


@pytest.fixture
def registry(map_layers):
    from src.geomap.layers import LayerRegistry

    return LayerRegistry(map_layers)


@pytest.fixture
def store():
    from src.core.store import FilterStore

    return FilterStore()


@pytest.fixture
def session(report_widget, map_view, mapping_table, sync_settings):
    """Unattached session over the in-memory widgets."""
    from src.session import FilterSyncSession

    return FilterSyncSession(
        report_widget, map_view, mappings=mapping_table, settings=sync_settings
    )


@pytest.fixture
def forsyth_selection():
    """Report data points for a decorated "Forsyth" slicer label."""
    return [{
        "identity": [{
            "target": {"table": "Permits", "column": "County Label"},
            "equals": PIN_FORSYTH,
        }]
    }]


@pytest.fixture
def mapping_file(tmp_path):
    """Mapping YAML written to a temp dir."""
    path = tmp_path / "field_mappings.yaml"
    path.write_text(
        "mappings:\n"
        "  - report_table: Permits\n"
        "    report_column: County Label\n"
        "    map_layer_title: Permits\n"
        "    map_field: County\n"
        "    transform: strip_decoration\n"
        "  - report_table: Permits\n"
        "    report_column: Status\n"
        "    map_field: Status\n",
        encoding="utf-8",
    )
    return path
