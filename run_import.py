"""CLI entry point.

This script imports one property listing through the remote job queue and
writes the terminal result as JSON.

Examples:
    python run_import.py https://example.com/listing/123 --user-id u1
    python run_import.py https://example.com/listing/123 --user-id u1 --out result.json
    python run_import.py https://example.com/listing/123 --user-id u1 --timeout 300 -v

Endpoints come from IMPORT_ENDPOINT and IMPORT_STATUS_ENDPOINT (environment or
.env). Exit status: 0 on success, 1 if the job failed remotely, 2 if the
import could not be run.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from property_import import ImportJobError, ImportJobStatus, ImportOrchestrator, ImportSettings

logger = logging.getLogger("property_import.cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Import a property listing via the remote job queue.")
    p.add_argument("url", type=str, help="Listing URL (or description text) to import.")
    p.add_argument("--user-id", type=str, required=True, help="User the import runs on behalf of.")
    p.add_argument("--out", type=str, default=None, help="Output JSON file path (default: stdout).")
    p.add_argument("--interval", type=float, default=None, help="Seconds between status checks.")
    p.add_argument("--timeout", type=float, default=None, help="Seconds to wait for the job to finish.")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return p.parse_args(argv)


def print_tick(status: ImportJobStatus) -> None:
    print(f"[{status.job_id or '?'}] {status.status}", file=sys.stderr)


async def run(args: argparse.Namespace, client: Optional[httpx.AsyncClient] = None) -> int:
    settings = ImportSettings.from_env()
    if args.interval is not None:
        settings.poll_interval_s = args.interval
    if args.timeout is not None:
        settings.poll_timeout_s = args.timeout

    async with ImportOrchestrator.from_settings(settings, client=client) as orchestrator:
        try:
            result = await orchestrator.import_property(args.url, args.user_id, print_tick)
        except (ImportJobError, ValueError) as exc:
            logger.error("Import failed: %s", exc)
            return 2

    text = json.dumps(result.to_wire(), indent=2, ensure_ascii=False)
    if args.out:
        out_path = Path(args.out).expanduser().resolve()
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding="utf-8")
        print(f"Wrote import result to: {out_path}", file=sys.stderr)
    else:
        print(text)

    if not result.ok:
        if result.retry_after_seconds:
            print(f"Job failed: {result.error}. Retry in {result.retry_after_seconds:g}s.", file=sys.stderr)
        else:
            print(f"Job failed: {result.error or 'Import failed'}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
