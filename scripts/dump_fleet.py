#!/usr/bin/env python3
"""Dump the reconciled fleet state.

Reads the full event log from the hosted store, reconciles it, and prints
the location summary, the risk aging histogram with vehicle ids, and
optionally a single vehicle lookup and the raw log.

Usage
-----
Set environment variables and run::

    export FLEET_BASE_URL="https://xyz.supabase.co"
    export FLEET_API_KEY="..."
    python scripts/dump_fleet.py

Options::

    --vehicle N          Look up vehicle N
    --history            Print the full event log, newest first
    --report N           Append a report for vehicle N before dumping
    --location risk|safe Location for --report (default: risk)
    --json               Output as machine-readable JSON
    -v, --verbose        Enable DEBUG logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyfleet import FleetConfig, FleetError, FleetMonitor, Location  # noqa: E402
from pyfleet.models import LocationEvent, Vehicle  # noqa: E402
from pyfleet.state import AgeBucket  # noqa: E402

# ── helpers ──────────────────────────────────────────────────


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _event_line(event: LocationEvent) -> str:
    when = event.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    return f"{when} - vehicle {event.vehicle_id} - {event.location.label} - reporters: {event.reporter_count}"


def _vehicle_dict(vehicle: Vehicle) -> dict[str, Any]:
    return {
        "vehicle_id": vehicle.vehicle_id,
        "current_location": vehicle.current_location.value,
        "arrival_at_current_location": vehicle.arrival_at_current_location.isoformat(),
        "latest_event": vehicle.latest_event.model_dump(mode="json"),
        "event_count": vehicle.event_count,
    }


def _render_text(
    summary: dict[Location, int],
    histogram: dict[AgeBucket, list[int]],
    vehicle_query: str | None,
    vehicle: Vehicle | None,
    history: list[LocationEvent] | None,
) -> str:
    out: list[str] = [_section("Fleet status")]
    for location, count in summary.items():
        out.append(f"  {location.label}: {count}")

    out.append(_section("Risk vehicles by time in location"))
    for bucket, vehicle_ids in histogram.items():
        ids = ", ".join(str(v) for v in vehicle_ids) or "none"
        out.append(f"  {bucket.label} ({len(vehicle_ids)}): {ids}")

    if vehicle_query is not None:
        out.append(_section(f"Vehicle {vehicle_query}"))
        if vehicle is None:
            out.append("  No record found")
        else:
            out.append(f"  {_event_line(vehicle.latest_event)}")
            arrived = vehicle.arrival_at_current_location.astimezone().strftime("%Y-%m-%d %H:%M:%S")
            out.append(f"  at {vehicle.current_location.label} since {arrived}")

    if history is not None:
        out.append(_section("Report log"))
        if not history:
            out.append("  No reports yet")
        out.extend(f"  {_event_line(event)}" for event in history)
    return "\n".join(out)


# ── main ─────────────────────────────────────────────────────


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dump reconciled fleet location state")
    parser.add_argument("--vehicle", help="Look up a single vehicle id")
    parser.add_argument("--history", action="store_true", help="Print the full event log")
    parser.add_argument("--report", help="Append a report for this vehicle id first")
    parser.add_argument("--location", choices=("risk", "safe"), default="risk", help="Location for --report")
    parser.add_argument("--json", action="store_true", dest="as_json", help="Output JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace) -> int:
    config = FleetConfig.from_env()
    async with FleetMonitor(config) as monitor:
        if args.report is not None:
            event = await monitor.report(args.report, args.location)
            print(f"Recorded report {event.report_id}", file=sys.stderr)

        now = datetime.now(UTC)
        summary = monitor.location_summary()
        histogram = monitor.risk_aging_histogram(now)
        vehicle = monitor.lookup(args.vehicle) if args.vehicle is not None else None
        history = monitor.history() if args.history else None

    if args.as_json:
        payload: dict[str, Any] = {
            "generated_at": now.isoformat(),
            "summary": {location.value: count for location, count in summary.items()},
            "risk_aging": {bucket.value: ids for bucket, ids in histogram.items()},
        }
        if args.vehicle is not None:
            payload["vehicle"] = _vehicle_dict(vehicle) if vehicle is not None else None
        if history is not None:
            payload["history"] = [event.model_dump(mode="json") for event in history]
        print(json.dumps(payload, indent=2))
    else:
        print(_render_text(summary, histogram, args.vehicle, vehicle, history))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except FleetError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
