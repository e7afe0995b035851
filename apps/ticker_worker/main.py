# apps/ticker_worker/main.py

import argparse
import asyncio
import sys
from pathlib import Path

from packages.ticker_lib.config import settings
from packages.ticker_lib.http import open_http_client
from packages.ticker_lib.logging import LogManager
from .engine import TickerEngine
from .publisher import write_artifacts, write_log
from .sources.factory import build_sources


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="StellarTerm Ticker Worker")
    parser.add_argument(
        "--output-dir",
        type=str,
        default=settings.pipeline.output_dir,
        help="Directory the artifacts are written to.",
    )
    parser.add_argument(
        "--directory-source",
        choices=["remote", "file"],
        default=settings.directory.source,
        help="Where the asset directory is loaded from.",
    )
    parser.add_argument(
        "--directory-path",
        type=str,
        default=None,
        help="Directory JSON file (with --directory-source file).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log score breakdowns and per-source details.",
    )
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    # 1. Parse Arguments
    args = parse_args(argv)
    settings.directory.source = args.directory_source
    if args.directory_path:
        settings.directory.path = args.directory_path

    # 2. Setup Infrastructure
    debug = args.debug or settings.system.debug
    log_manager = LogManager(service_name="ticker-worker", debug=debug)
    logger = log_manager.get_logger("main")
    history = log_manager.capture(level="DEBUG" if debug else "INFO")

    logger.info(
        f"Initializing {settings.system.project_name} v{settings.system.version} | "
        f"Env: {settings.system.environment} | Directory: {args.directory_source} | "
        f"Output: {args.output_dir}"
    )

    # 3. Execution
    try:
        async with open_http_client(settings.http) as http:
            sources = build_sources(http, settings, log_manager)
            engine = TickerEngine(
                sources=sources,
                logger=log_manager.get_logger("ticker-engine"),
                settings=settings,
                history=history,
            )
            result = await engine.run()
    finally:
        log_manager.release(history)

    # 4. Publish
    output_dir = Path(args.output_dir)
    for path in write_artifacts(result.files, output_dir):
        logger.info(f"Wrote {path}")
    write_log(result.log, output_dir)
    logger.info(f"Run finished with {len(result.errors)} logged errors")

    if not result.succeeded:
        logger.error(f"Run failed: {result.status.error}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
