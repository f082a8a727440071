#!/usr/bin/env python3
"""
Replay recorded widget events through a filter sync session.

Loads map layers into an in-memory map view, mounts a session with an
in-memory report widget, replays the events and prints the widget
commands each one produced (one JSON object per line).

Layers file: see ``MemoryMapView.from_geojson``.

Events file: a JSON list of objects, each with a ``type``:

    {"type": "map_click", "point": [x, y]}
    {"type": "report_selection", "dataPoints": [...]}
    {"type": "report_selection", "selection": [{"table": t, "column": c, "value": v}]}
    {"type": "report_render"}
    {"type": "report_render", "slicer": {"table": t, "column": c, "values": [...]}}
    {"type": "clear"}

Usage:
    filtersync-replay layers.json events.json
    filtersync-replay layers.json events.json --mappings my_mappings.yaml -v
"""

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional
import sys

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import config, ConfigurationError
from config.logging_config import get_logger, setup_logging
from src.core.mapping import load_field_mappings
from src.geomap.memory import MemoryMapView
from src.report.memory import MemoryReportWidget
from src.report.widget import SELECTION_EVENT
from src.session import FilterSyncSession

logger = get_logger("replay")

EVENT_TYPES = ("map_click", "report_selection", "report_render", "clear")


def _selection_payload(event: Dict[str, Any]) -> dict:
    """Selection payload from either widget-native data points or a shorthand list."""
    if "dataPoints" in event:
        return {"dataPoints": event["dataPoints"]}
    data_points = [
        {"identity": [{"target": {"table": s["table"], "column": s["column"]}, "equals": s["value"]}]}
        for s in event.get("selection", [])
    ]
    return {"dataPoints": data_points}


def dispatch(session: FilterSyncSession, event: Dict[str, Any]) -> None:
    """Feed one recorded event to the session's widgets."""
    kind = event.get("type")
    report: MemoryReportWidget = session.report
    view: MemoryMapView = session.view

    if kind == "map_click":
        x, y = event["point"]
        view.click(x, y)
    elif kind == "report_selection":
        report.emit(SELECTION_EVENT, _selection_payload(event))
    elif kind == "report_render":
        slicer = event.get("slicer")
        if slicer:
            report.set_slicer(slicer["table"], slicer["column"], slicer.get("values", []))
        else:
            report.render()
    elif kind == "clear":
        session.store.clear_filters()
    else:
        raise ValueError(f"Unknown event type {kind!r}; expected one of {', '.join(EVENT_TYPES)}")


async def replay(
    layers_doc: Dict[str, Any],
    events: List[Dict[str, Any]],
    mapping_path: Optional[Path] = None,
) -> List[dict]:
    """
    Replay events and collect the commands each one produced.

    Returns:
        One record per event: the report commands, map predicate calls,
        view moves and the resulting store summary.
    """
    report = MemoryReportWidget(render_on_apply=True)
    view = MemoryMapView.from_geojson(layers_doc)
    session = FilterSyncSession(report, view, mappings=load_field_mappings(mapping_path))
    session.attach()

    records = []
    try:
        for i, event in enumerate(events):
            seen_report = len(report.commands)
            seen_predicates = len(view.predicate_calls)
            seen_moves = len(view.go_to_calls)

            dispatch(session, event)
            await session.settle()
            # An applied command can itself trigger a render poll
            await session.settle()

            records.append({
                "event": i,
                "type": event.get("type"),
                "report": [
                    {"command": c.name, "filters": c.filters or []}
                    for c in report.commands[seen_report:]
                ],
                "map_predicates": [
                    {"layer": title, "predicate": predicate}
                    for title, predicate in view.predicate_calls[seen_predicates:]
                ],
                "map_go_to": [e.to_dict() for e in view.go_to_calls[seen_moves:]],
                "filters": session.store.snapshot.summary(),
            })
    finally:
        session.detach()
        session.runner.close()
        view.close()
    return records


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Replay widget events through a map/report filter sync session"
    )
    parser.add_argument("layers", type=Path, help="Layers JSON file")
    parser.add_argument("events", type=Path, help="Events JSON file")
    parser.add_argument(
        "--mappings",
        type=Path,
        help=f"Field mapping YAML (default: {config.mapping.path})"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging"
    )
    args = parser.parse_args(argv)

    setup_logging("DEBUG" if args.verbose else None)

    try:
        layers_doc = json.loads(args.layers.read_text())
        events = json.loads(args.events.read_text())
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read input: {e}")
        return 1
    if not isinstance(events, list):
        logger.error("Events file must contain a JSON list")
        return 1

    try:
        records = asyncio.run(replay(layers_doc, events, args.mappings))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except ValueError as e:
        logger.error(str(e))
        return 1

    for record in records:
        print(json.dumps(record, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
