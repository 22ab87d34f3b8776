#!/usr/bin/env python3
"""Dump the enriched Digital Matter device list.

Runs the full enrichment pipeline (vendor list, Geotab serials, Geotab
registry match, battery, parameters) and prints one row per device,
optionally with every parameter the catalog describes.

Usage
-----
Set environment variables and run::

    export GEOTAB_DATABASE="my_database"
    export GEOTAB_USERNAME="you@example.com"
    export GEOTAB_SESSION_ID="..."
    python scripts/dump_devices.py

Options::

    --search TERM        Only show devices matching TERM
    --params             Print catalogued parameters per device
    --json               Output as machine-readable JSON
    --output FILE        Write output to FILE instead of stdout
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

from pydmatter import (  # noqa: E402
    DeviceStore,
    DmClient,
    DmConfig,
    EnrichmentPipeline,
    GeotabCredentials,
    GeotabRegistry,
)
from pydmatter.catalog import describe_parameters  # noqa: E402
from pydmatter.models import Device  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _print_params(device: Device, out: list[str]) -> None:
    if not device.has_parameters:
        out.append("    (no parameters)")
        return
    for section in describe_parameters(device.system_parameters or {}, device.device_type):
        out.append(f"    [{section.section.section_id}] {section.section.name}")
        for field in section.fields:
            shown = field.value
            if field.options:
                selected = next((o.label for o in field.options if o.selected), None)
                if selected is not None:
                    shown = f"{field.value} ({selected})"
            out.append(f"      {field.spec.label:<32} {shown}")


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Dump enriched Digital Matter devices for debugging / development.",
    )
    parser.add_argument("--search", default="", help="Only show devices matching TERM")
    parser.add_argument("--params", action="store_true", help="Print catalogued parameters per device")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = DmConfig.from_env()
    credentials = GeotabCredentials.from_env()

    async with (
        DmClient(config) as client,
        GeotabRegistry(credentials, request_timeout=config.request_timeout) as registry,
    ):
        store = DeviceStore(EnrichmentPipeline.from_config(client, registry, config), client)
        pipeline_result = await store.reload()

    devices = store.search(args.search)
    result: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "outcome": str(pipeline_result.outcome),
        "reason": pipeline_result.reason,
        "summary": store.summary(args.search),
        "devices": [device.model_dump(mode="json") for device in devices],
    }

    if args.json_mode:
        payload = json.dumps(result, indent=2, default=str, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            print(f"JSON written to {args.output}", file=sys.stderr)
        else:
            print(payload)
        return

    out: list[str] = [_section("pydmatter dump_devices")]
    out.append(f"  time      : {result['timestamp']}")
    out.append(f"  database  : {credentials.database}")
    out.append(f"  outcome   : {result['outcome']} {pipeline_result.reason}".rstrip())
    out.append(f"  devices   : {result['summary']}")
    views = {view.serial_number: view for view in store.project(args.search)}
    for device in devices:
        view = views[device.serial_number]
        out.append(_section(view.title))
        out.append(f"  serial    : {view.serial_number}")
        out.append(f"  geotab    : {view.geotab_serial}")
        out.append(f"  battery   : {view.battery} ({view.battery_band})")
        out.append(f"  type      : {view.device_type}")
        if args.params:
            _print_params(device, out)

    text = "\n".join(out)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
        print(f"Output written to {args.output}")
    else:
        print(text)


if __name__ == "__main__":
    asyncio.run(main())
