"""Worker entry point."""

import argparse
import asyncio
import logging
import sys

from parcel_watch.config import Settings, settings
from parcel_watch.pipeline import run_once
from parcel_watch.runner import ScheduledRunner


def setup_logging(config: Settings) -> None:
    """Configure logging for the worker."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="parcel-watch",
        description="Watch the parcel grid for new deployments and post about them.",
    )
    parser.add_argument("--once", action="store_true", help="Run the pipeline once and exit")
    parser.add_argument(
        "--dry-run", action="store_true", help="Log posts instead of publishing them"
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    """Run the worker process."""
    args = parse_args(argv)
    config = settings.model_copy(update={"dry_run": True}) if args.dry_run else settings

    setup_logging(config)
    logger = logging.getLogger(__name__)
    logger.info("Parcel watch starting...")

    if args.once:
        await run_once(config)
        logger.info("Done")
        return

    runner = ScheduledRunner(config)
    await runner.run()


def run() -> None:
    """Entry point for the worker."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
