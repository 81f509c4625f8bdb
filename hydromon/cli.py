"""Command line tools for the hydroponic monitor.

Usage:
    hydromon decode FB0AF80B0002 --device-code CZ01
    hydromon sync
    hydromon history --limit 20
    hydromon export --format csv --output readings.csv
    hydromon status
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import timedelta
from typing import List, Optional

from hydromon.api.service import DashboardService
from hydromon.decoder.hex_decoder import decode_trace
from hydromon.ingest import build_scheduler
from hydromon.ingest.config import load_config
from hydromon.shared.exceptions import HydromonError
from hydromon.shared.logging import setup_logging
from hydromon.shared.models import to_iso, utcnow

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="hydromon", description="Hydroponic telemetry tools")
    p.add_argument("--config", help="path to a YAML config file")
    p.add_argument("--log-level", default=None, help="override LOG_LEVEL")
    sub = p.add_subparsers(dest="command", required=True)

    dec = sub.add_parser("decode", help="decode a raw hex payload and show every step")
    dec.add_argument("payload")
    dec.add_argument("--device-code", default=None)

    sub.add_parser("sync", help="fetch the latest reading once")

    hist = sub.add_parser(
        "history",
        help="fetch recent history from the platform (stamped with ingestion time, in upstream order)",
    )
    hist.add_argument("--limit", type=int, default=10)

    exp = sub.add_parser("export", help="sync history and export it")
    exp.add_argument("--format", dest="fmt", default="json", choices=["json", "csv"])
    exp.add_argument("--limit", type=int, default=None, help="defaults to history_limit")
    exp.add_argument("--output", "-o", default=None, help="write to file instead of stdout")

    sub.add_parser("status", help="sync once and print the system status")
    return p


def _cmd_decode(args) -> int:
    trace = decode_trace(args.payload, args.device_code)
    print(json.dumps(trace, indent=2))
    return 0


async def _cmd_sync(service: DashboardService) -> int:
    outcome = await service.sync()
    if not outcome.success:
        print(f"sync failed: {outcome.failure.value}", file=sys.stderr)
        return 1
    print(json.dumps(outcome.reading.to_dict(), indent=2))
    return 0


async def _load_history(service: DashboardService, limit: int) -> int:
    """Store fetched history, oldest first, one millisecond apart.

    Upstream creation times are not kept; the offsets only preserve order.
    """
    fetcher = service.scheduler.fetcher
    start = utcnow()
    stored = 0
    for index, reading in enumerate(await fetcher.fetch_history(limit)):
        timestamp = start + timedelta(milliseconds=index)
        if service.context.record_reading(reading, timestamp) is not None:
            stored += 1
    return stored


async def _cmd_history(args, service: DashboardService) -> int:
    count = await _load_history(service, args.limit)
    if not count:
        print("no history available", file=sys.stderr)
        return 1
    for r in reversed(service.get_recent(count)):
        print(f"{to_iso(r.timestamp)}  {r.temperature:6.1f}°C  pH {r.ph:5.2f}  TDS {r.tds_level:7.1f}")
    logger.info(f"Loaded {count} history readings")
    return 0


async def _cmd_export(args, service: DashboardService) -> int:
    await _load_history(service, args.limit)
    result = service.export(args.fmt)
    if args.output:
        with open(args.output, "w") as f:
            f.write(result.body)
        print(f"Wrote {result.filename} ({result.content_type}) to {args.output}")
    else:
        print(result.body)
    return 0


async def _cmd_status(service: DashboardService) -> int:
    await service.sync()
    print(json.dumps(service.get_status().to_dict(), indent=2))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    setup_logging(args.log_level or config.log_level)

    if args.command == "decode":
        try:
            return _cmd_decode(args)
        except HydromonError as e:
            print(f"error: {e}", file=sys.stderr)
            return 2

    if getattr(args, "limit", 0) is None:
        args.limit = config.history_limit

    scheduler = build_scheduler(config)
    service = DashboardService(scheduler.context, scheduler)
    try:
        if args.command == "sync":
            return asyncio.run(_cmd_sync(service))
        if args.command == "history":
            return asyncio.run(_cmd_history(args, service))
        if args.command == "export":
            return asyncio.run(_cmd_export(args, service))
        if args.command == "status":
            return asyncio.run(_cmd_status(service))
    except HydromonError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    finally:
        scheduler.context.close()
    return 1


if __name__ == "__main__":
    sys.exit(main())
