"""CLI entrypoint printing the machine reports as JSON."""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, Optional

from .config import load_config
from .logging_config import configure_logging
from .probes.base import ProbeError
from .report import TelemetryReportBuilder

LOGGER = logging.getLogger(__name__)


async def collect(
    builder: TelemetryReportBuilder,
    *,
    general: bool = True,
    usage: bool = True,
    pid: Optional[int] = None,
) -> Dict[str, Any]:
    payload: Dict[str, Any] = {}
    if general:
        payload["general"] = (await builder.general_info()).to_dict()
    if usage:
        payload["usage"] = (await builder.resource_usage_info(pid)).to_dict()
    return payload


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Machine identity and resource usage probe")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to configuration file",
    )
    parser.add_argument(
        "--general",
        action="store_true",
        help="Only report general machine information",
    )
    parser.add_argument(
        "--usage",
        action="store_true",
        help="Only report resource usage",
    )
    parser.add_argument(
        "--pid",
        type=int,
        default=None,
        help="Process whose usage is reported (defaults to this process)",
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="JSON indentation",
    )
    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_logging(config.logging)

    # Neither flag means both reports.
    general = args.general or not args.usage
    usage = args.usage or not args.general

    builder = TelemetryReportBuilder(config)
    try:
        payload = asyncio.run(collect(builder, general=general, usage=usage, pid=args.pid))
    except ProbeError as exc:
        LOGGER.error("Report collection failed: %s", exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print(json.dumps(payload, indent=args.indent))
    return 0


if __name__ == "__main__":
    sys.exit(main())
