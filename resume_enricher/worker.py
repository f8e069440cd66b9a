"""Command line entry point for the enrichment worker."""
from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from resume_enricher.core.settings import Settings, configure_logging, load_settings
from resume_enricher.infrastructure import build_enrichment_gateway, open_repository
from resume_enricher.workers.enrichment import EnrichmentWorker

logger = logging.getLogger("resume_enricher.worker")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Resume role enrichment worker")
    subcommands = parser.add_subparsers(dest="command", required=True)

    run = subcommands.add_parser("run", help="claim and enrich pending jobs")
    run.add_argument(
        "--once",
        action="store_true",
        help="process pending jobs until none remain, then exit",
    )
    return parser


async def _run(settings: Settings, *, once: bool) -> None:
    repository = open_repository(settings)
    gateway = build_enrichment_gateway(settings)
    worker = EnrichmentWorker(
        repository,
        gateway,
        poll_interval=settings.poll_interval,
        item_delay=settings.item_delay,
    )

    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, worker.stop)
        except (NotImplementedError, RuntimeError):
            logger.debug("Signal handlers unavailable for %s", signum)

    try:
        if once:
            processed = await worker.drain()
            logger.info("Processed %d job(s)", processed)
        else:
            await worker.run()
    finally:
        aclose = getattr(gateway, "aclose", None)
        if aclose is not None:
            await aclose()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = load_settings()
    configure_logging(settings.log_level)

    asyncio.run(_run(settings, once=args.once))
    return 0


if __name__ == "__main__":
    sys.exit(main())
