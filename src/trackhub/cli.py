"""Command line entry point: run the provider jobs against Sankhya."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import logging.handlers
import signal
import sys
from collections.abc import Sequence
from pathlib import Path

import aiohttp
from dotenv import load_dotenv

from trackhub.config import HubConfig
from trackhub.connectors import AtualcargoConnector, SitraxConnector
from trackhub.exceptions import ConfigError
from trackhub.gateway import SankhyaGateway
from trackhub.ingestion import map_atualcargo_positions, map_sitrax_positions
from trackhub.jobs import ProviderJob
from trackhub.processor import SyncProcessor
from trackhub.scheduler import JobScheduler
from trackhub.store import PositionStore

_logger = logging.getLogger("trackhub")

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str, log_file: str | None = None) -> None:
    logging.basicConfig(level=level, format=_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(path, maxBytes=10 * 1024 * 1024, backupCount=5)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logging.getLogger().addHandler(handler)


def build_jobs(
    config: HubConfig,
    store: PositionStore,
    http_session: aiohttp.ClientSession,
    *,
    only: Sequence[str] = (),
) -> list[ProviderJob]:
    """Create one job per configured and enabled provider.

    All jobs share *store* (and its gateway session) but each gets its own
    :class:`SyncProcessor`.
    """
    timeout = config.sankhya.request_timeout
    jobs: list[ProviderJob] = []

    def _wanted(name: str) -> bool:
        if only and name not in only:
            return False
        return config.job_settings(name).enabled

    if config.atualcargo is not None and _wanted("atualcargo"):
        connector = AtualcargoConnector(config.atualcargo, http_session, timeout=timeout)
        jobs.append(
            ProviderJob(
                name="Atualcargo",
                fetch=connector.get_last_positions,
                mapper=map_atualcargo_positions,
                processor=SyncProcessor(store, config.sync, source="Atualcargo"),
                interval=config.job_settings("atualcargo").interval,
            )
        )

    if config.sitrax is not None and _wanted("sitrax"):
        sitrax = SitraxConnector(config.sitrax, http_session, timeout=timeout)
        jobs.append(
            ProviderJob(
                name="Sitrax",
                fetch=sitrax.get_last_positions,
                mapper=map_sitrax_positions,
                processor=SyncProcessor(store, config.sync, source="Sitrax"),
                interval=config.job_settings("sitrax").interval,
            )
        )
    return jobs


async def run(config: HubConfig, *, once: bool = False, only: Sequence[str] = ()) -> int:
    _logger.info("[Service] Starting tracking integration hub...")
    async with aiohttp.ClientSession() as http_session:
        async with SankhyaGateway(config.sankhya, session=http_session) as gateway:
            jobs = build_jobs(config, PositionStore(gateway), http_session, only=only)
            if not jobs:
                _logger.error("No provider job is configured and enabled.")
                return 1

            scheduler = JobScheduler(jobs)
            if once:
                await scheduler.run_once()
                return 0

            loop = asyncio.get_running_loop()
            for sig in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError):
                    loop.add_signal_handler(sig, scheduler.stop)
            await scheduler.run_forever()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="trackhub",
        description="Replicate new provider positions into Sankhya.",
    )
    parser.add_argument("--once", action="store_true", help="Run a single cycle of every job and exit")
    parser.add_argument(
        "--job",
        action="append",
        default=[],
        choices=["atualcargo", "sitrax"],
        help="Only run this job (repeatable)",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Read settings from this dotenv file; real environment variables win (default: .env)",
    )
    parser.add_argument("--log-file", help="Also write logs to this rotating file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    load_dotenv(args.env_file)
    try:
        config = HubConfig.from_env()
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    configure_logging("DEBUG" if args.verbose else config.log_level, args.log_file)
    return asyncio.run(run(config, once=args.once, only=args.job))
