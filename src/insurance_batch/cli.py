# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Command-line entry point.

Usage::

    python -m insurance_batch serve
    python -m insurance_batch run-job contract_status_update
    python -m insurance_batch run-job all
    python -m insurance_batch quote --product-id 1 --gender M --age 30 \\
        --period 20 --amount 1000000
"""

import argparse
import asyncio
import json
import signal
import sys
from collections.abc import Sequence
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel

from .core.clock import SystemClock
from .core.config import Settings, get_settings
from .core.database import Database
from .core.logging_utils import get_logger, level_from_name
from .core.result_types import Err
from .persistence.postgres_store import PostgresStore
from .scheduler.core import JobId
from .services.batch_control import BatchControl
from .services.rating.premium_calculator import calculate_premium

logger = get_logger(__name__)

RUN_ALL = "all"


def _decimal(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation as e:
        raise argparse.ArgumentTypeError(f"not a decimal amount: {value!r}") from e


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for ``python -m insurance_batch``."""
    parser = argparse.ArgumentParser(
        prog="insurance_batch",
        description="Insurance contract batch engine and premium calculator",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("serve", help="Run the scheduler until SIGINT/SIGTERM")

    run_job = commands.add_parser(
        "run-job", help="Run one job now and print its result"
    )
    run_job.add_argument(
        "job", choices=[job.value for job in JobId] + [RUN_ALL], help="Job id or 'all'"
    )

    quote = commands.add_parser(
        "quote", help="Calculate a premium and print it as JSON"
    )
    quote.add_argument("--product-id", type=int, required=True)
    quote.add_argument("--gender", required=True)
    quote.add_argument("--age", type=int, required=True)
    quote.add_argument("--period", type=int, required=True)
    quote.add_argument("--amount", type=_decimal, required=True)
    quote.add_argument(
        "--as-of", type=date.fromisoformat, default=None, help="YYYY-MM-DD"
    )
    return parser


def render(result: Any) -> tuple[str, bool]:
    """JSON text for a job or quote result and whether it succeeded."""
    if result is None:
        return json.dumps({"error": "Job failed, see the log for details"}), False
    if isinstance(result, Err):
        return json.dumps({"error": str(result.error)}), False
    value = getattr(result, "value", result)
    if isinstance(value, BaseModel):
        return value.model_dump_json(indent=2), True
    if isinstance(value, tuple):
        parts = [v.model_dump(mode="json") for v in value if isinstance(v, BaseModel)]
        return json.dumps(parts, indent=2), True
    return json.dumps(value, indent=2, default=str), True


async def _serve(control: BatchControl) -> int:
    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_requested.set)

    await control.start()
    logger.info("Batch scheduler running, press Ctrl+C to stop")
    await stop_requested.wait()

    drained = await control.stop()
    if not drained:
        logger.warning("Some jobs were cancelled before completing")
    return 0


async def _run_job(control: BatchControl, job: str) -> int:
    if job == RUN_ALL:
        results = await control.run_all()
    else:
        results = {JobId(job): await control.run_now(job)}

    ok = True
    for job_id, result in results.items():
        text, succeeded = render(result)
        ok = ok and succeeded
        print(f"# {job_id.value}")
        print(text)
    return 0 if ok else 1


async def _quote(
    store: PostgresStore, clock: SystemClock, args: argparse.Namespace
) -> int:
    result = await calculate_premium(
        store,
        args.product_id,
        args.gender,
        args.age,
        args.period,
        args.amount,
        clock=clock,
        as_of=args.as_of,
    )
    text, succeeded = render(result)
    print(text)
    return 0 if succeeded else 1


async def run(args: argparse.Namespace, settings: Settings) -> int:
    """Connect to the database and dispatch the parsed command."""
    db = Database(settings)
    await db.connect()
    try:
        store = PostgresStore(db)
        clock = SystemClock(settings.batch_timezone)
        if args.command == "quote":
            return await _quote(store, clock, args)

        control = BatchControl(store, clock, settings)
        if args.command == "serve":
            return await _serve(control)
        return await _run_job(control, args.job)
    finally:
        await db.disconnect()


def main(argv: Sequence[str] | None = None) -> None:  # pragma: no cover
    args = build_parser().parse_args(argv)
    settings = get_settings()
    get_logger("insurance_batch", level=level_from_name(settings.log_level))
    sys.exit(asyncio.run(run(args, settings)))
