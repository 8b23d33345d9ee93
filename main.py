#!/usr/bin/env python3
"""
Main entry point for the web crawler.
"""

import asyncio
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from qrawler import __version__
from qrawler.crawler.scheduler import CrawlerScheduler
from qrawler.crawler.shutdown import ShutdownCoordinator
from qrawler.storage.context import CrawlContext
from qrawler.utils.config import Config, ConfigError, ConfigManager, load_config
from qrawler.utils.logger import log_system_info, setup_logging


DEFAULT_CONFIG_PATH = 'config.yaml'


class CrawlerApp:
    """Main application class for the web crawler."""

    def __init__(self):
        self.scheduler: Optional[CrawlerScheduler] = None
        self.logger = logging.getLogger(__name__)

    async def run(self, config: Config, fresh: bool = False, enable_json: bool = False) -> int:
        """
        Run the web crawler until SIGINT/SIGTERM.

        Returns:
            0 after a checkpointed shutdown, 1 on a fatal error
        """
        setup_logging(config.logging, enable_json=enable_json)
        log_system_info()

        self.logger.info("=== WEB CRAWLER STARTING ===")
        self.logger.info(f"Seed URL: {config.crawler.seed_url}")
        self.logger.info(f"Request queue size: {config.crawler.request_queue_size}")
        self.logger.info(
            f"Workers: {config.crawler.fetch_workers} fetch, {config.crawler.parse_workers} parse"
        )

        shutdown = ShutdownCoordinator()
        shutdown.install()
        context = None

        try:
            context = CrawlContext.open(config.storage)
            self.scheduler = CrawlerScheduler(config, context)
            await self.scheduler.initialize(fresh=fresh)
            await self.scheduler.run(shutdown)

        except Exception as e:
            self.logger.critical(f"Fatal error: {e}", exc_info=True)
            return 1

        finally:
            if self.scheduler:
                await self.scheduler.close()
            if context is not None:
                context.close()
            shutdown.uninstall()
            self.logger.info("=== WEB CRAWLER FINISHED ===")

        return 0


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Resumable breadth-first web crawler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                             # Run with config.yaml if present, else defaults
  python main.py --config my_config.yaml     # Run with custom config
  python main.py --seed https://example.com  # Start from another seed
  python main.py --fresh                     # Ignore the saved checkpoint

Send SIGINT (Ctrl+C) or SIGTERM to save the frontier and exit.
        """
    )

    parser.add_argument(
        '--config',
        default=None,
        help=f'Path to configuration file (default: {DEFAULT_CONFIG_PATH} if it exists)'
    )

    parser.add_argument(
        '--seed',
        help='Seed URL used when no checkpoint is found'
    )

    parser.add_argument(
        '--fresh',
        action='store_true',
        help='Ignore an existing checkpoint and start from the seed URL'
    )

    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit structured JSON log lines'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'qrawler {__version__}'
    )

    args = parser.parse_args(argv)

    config_path = args.config
    if config_path is None and Path(DEFAULT_CONFIG_PATH).exists():
        config_path = DEFAULT_CONFIG_PATH

    try:
        config = load_config(config_path)
        if args.seed:
            config.crawler.seed_url = args.seed
            ConfigManager.validate_config(config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    app = CrawlerApp()
    return asyncio.run(app.run(config, fresh=args.fresh, enable_json=args.json_logs))


if __name__ == '__main__':
    sys.exit(main())
