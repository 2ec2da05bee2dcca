"""Run the registry core: load the feed, then keep it fresh until interrupted."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import signal
import sys

from pypoi.config import PoiConfig
from pypoi.exceptions import PoiError
from pypoi.service import PoiService

_logger = logging.getLogger("pypoi")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="pypoi", description=__doc__)
    parser.add_argument("--source-url", help="Feature feed URL (default: $SOURCE_DATA_URL)")
    parser.add_argument("--status-url", help="Preparation status URL (default: $PREPARATION_STATUS_URL)")
    parser.add_argument("--reference-table", help="JSON reference augmentation table")
    parser.add_argument("--no-mqtt", action="store_true", help="Do not subscribe to telemetry")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def _run(config: PoiConfig) -> None:
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)

    async with PoiService(config) as service:
        _logger.info("Serving %d entities; press Ctrl+C to stop", len(service.store))
        await stop.wait()
        _logger.info("Shutting down ...")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, object] = {}
    if args.source_url:
        overrides["source_url"] = args.source_url
    if args.status_url:
        overrides["status_url"] = args.status_url
    if args.reference_table:
        overrides["reference_table_path"] = args.reference_table
    if args.no_mqtt:
        overrides["mqtt"] = {"enabled": False}

    try:
        config = PoiConfig.from_env(**overrides)
        asyncio.run(_run(config))
    except PoiError as exc:
        _logger.error("Startup failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
