#!/usr/bin/env python3
"""
Main entry point for the word crawler.
"""

import asyncio
import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from wordcrawler import __version__
from wordcrawler.crawler.engine import ParallelWebCrawler
from wordcrawler.crawler.parser import HtmlPageParser
from wordcrawler.crawler.result import CrawlResult
from wordcrawler.storage.result_writer import CrawlResultWriter, ResultWriteError
from wordcrawler.utils.config import (
    Config, CrawlConfigurationError, load_config, validate_crawler_config
)
from wordcrawler.utils.logger import setup_logging, log_system_info
from wordcrawler.utils.profiler import Profiler


class CrawlerApp:
    """Main application class for the word crawler."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._shutdown_event: Optional[asyncio.Event] = None
        self._previous_handlers = {}

    def setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, initiating shutdown...")
            loop.call_soon_threadsafe(self._shutdown_event.set)

        for signum in (signal.SIGINT, signal.SIGTERM):
            self._previous_handlers[signum] = signal.signal(signum, signal_handler)

    def restore_signal_handlers(self):
        for signum, handler in self._previous_handlers.items():
            signal.signal(signum, handler)
        self._previous_handlers.clear()

    def apply_overrides(self, config: Config, seeds: Optional[List[str]] = None,
                        timeout: Optional[float] = None, max_depth: Optional[int] = None) -> Config:
        """Apply command line overrides to the crawler section and re-validate it."""
        if seeds:
            config.crawler.start_pages = list(seeds)
        if timeout is not None:
            config.crawler.timeout_seconds = timeout
        if max_depth is not None:
            config.crawler.max_depth = max_depth

        validate_crawler_config(config.crawler)
        return config

    async def run(self, config_path: str, seeds: Optional[List[str]] = None,
                  timeout: Optional[float] = None, max_depth: Optional[int] = None,
                  dry_run: bool = False) -> int:
        """Run the word crawler. Returns the process exit code."""
        try:
            config = self.apply_overrides(load_config(config_path), seeds, timeout, max_depth)
        except CrawlConfigurationError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 1

        setup_logging(config.logging)
        log_system_info()

        self.logger.info("=== WORD CRAWLER STARTING ===")
        self.logger.info(f"Configuration loaded from: {config_path}")
        self.logger.info(f"Start pages: {config.crawler.start_pages}")
        self.logger.info(f"Max depth: {config.crawler.max_depth}")
        self.logger.info(f"Timeout: {config.crawler.timeout_seconds}s")
        self.logger.info(f"Parallelism: {config.crawler.parallelism}")

        if dry_run:
            self.logger.info("DRY RUN MODE: configuration is valid, no crawling performed")
            return 0

        self._shutdown_event = asyncio.Event()
        self.setup_signal_handlers()
        profiler = Profiler()

        try:
            parser = HtmlPageParser.from_config(config.crawler)
            async with parser.fetcher:
                crawler = profiler.wrap(ParallelWebCrawler(config.crawler.to_request(), parser))
                result = await self._crawl_until_shutdown(crawler)

            if result is None:
                self.logger.info("Shutdown requested, crawl abandoned")
                return 1

            self.write_result(config, result)
            self.write_profile(config, profiler)

        except (CrawlConfigurationError, ResultWriteError) as e:
            self.logger.error(f"Fatal error: {e}")
            return 1

        except Exception as e:
            self.logger.error(f"Fatal error: {e}", exc_info=True)
            return 1

        finally:
            self.restore_signal_handlers()
            self.logger.info("=== WORD CRAWLER FINISHED ===")

        return 0

    async def _crawl_until_shutdown(self, crawler) -> Optional[CrawlResult]:
        """Run the crawl; return None if a shutdown signal arrives first."""
        crawl_task = asyncio.create_task(crawler.crawl())
        shutdown_task = asyncio.create_task(self._shutdown_event.wait())

        done, pending = await asyncio.wait(
            [crawl_task, shutdown_task],
            return_when=asyncio.FIRST_COMPLETED
        )

        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        if crawl_task in done:
            return crawl_task.result()
        return None

    def write_result(self, config: Config, result: CrawlResult):
        """Write the crawl result to the configured path, or stdout."""
        writer = CrawlResultWriter(result)
        if config.output.result_path:
            writer.write(config.output.result_path)
        else:
            writer.write_stream(sys.stdout)
            sys.stdout.flush()

    def write_profile(self, config: Config, profiler: Profiler):
        """Write profile data (and metrics when enabled)."""
        if config.output.profile_output_path:
            profiler.write_data(config.output.profile_output_path)
        else:
            profiler.write_stream(sys.stdout)
            sys.stdout.flush()

        if config.monitoring.metrics_enabled:
            profiler.write_metrics(config.monitoring.textfile_path)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Parallel word-counting web crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                              # Run with default config.yaml
  python main.py --config my_config.yaml      # Run with custom config
  python main.py --seed https://example.com/  # Override the start pages
  python main.py --timeout 10 --max-depth 3   # Override crawl bounds
  python main.py --dry-run                    # Validate configuration only
        """
    )

    parser.add_argument(
        '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )

    parser.add_argument(
        '--seed',
        action='append',
        metavar='URL',
        help='Start page; may be repeated. Replaces the configured start pages'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        help='Crawl timeout in seconds'
    )

    parser.add_argument(
        '--max-depth',
        type=int,
        help='Maximum link depth'
    )

    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Validate configuration without crawling'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'Word Crawler {__version__}'
    )

    args = parser.parse_args(argv)

    if not Path(args.config).exists():
        print(f"Error: Configuration file '{args.config}' not found.", file=sys.stderr)
        print("Please create a config.yaml file or specify a different path with --config",
              file=sys.stderr)
        return 1

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(
            config_path=args.config,
            seeds=args.seed,
            timeout=args.timeout,
            max_depth=args.max_depth,
            dry_run=args.dry_run
        ))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
