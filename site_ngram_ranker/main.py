"""
Command-line entry point for the site n-gram ranker.
"""

import sys
import json
import argparse
from dataclasses import replace
from typing import Any, List, Optional

from site_ngram_ranker.analysis import STOPWORDS, with_extra_stopwords
from site_ngram_ranker.crawl import CrawlBudget, RankingResult
from site_ngram_ranker.fetchers import HTTPClient, PageFetcher
from site_ngram_ranker.services import NGramRanker, serve
from site_ngram_ranker.utils.logging import setup_logging, get_logger
from site_ngram_ranker.utils.errors import ConfigurationError, ValidationError
from config import ConfigManager, SystemConfig, get_config


logger = get_logger(__name__)

ORDER_NAMES = {1: "unigrams", 2: "bigrams", 3: "trigrams"}


def create_cli_parser() -> argparse.ArgumentParser:
    """Create command-line interface parser."""
    parser = argparse.ArgumentParser(
        description='Site N-gram Ranker - most frequent words and phrases of a website',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s https://example.com                  # Top words of up to 5 pages
  %(prog)s https://example.com -n 2             # Top two-word phrases
  %(prog)s https://example.com --max-pages 20   # Crawl a larger part of the site
  %(prog)s https://example.com -o json          # Machine-readable output
  %(prog)s --serve --port 8080                  # Start the HTTP API
        """
    )

    parser.add_argument(
        'url',
        nargs='?',
        help='Seed URL; only pages on the same origin are crawled'
    )

    parser.add_argument(
        '--serve',
        action='store_true',
        help='Run the HTTP API instead of a single ranking'
    )

    # Configuration options
    parser.add_argument(
        '--config', '-c',
        type=str,
        help='Path to configuration file (default: config.json)'
    )

    # Crawl options
    parser.add_argument(
        '--order', '-n',
        type=int,
        choices=[1, 2, 3],
        help='N-gram order: 1 words, 2 word pairs, 3 word triples'
    )

    parser.add_argument(
        '--max-pages',
        type=int,
        help='Maximum number of pages to fetch'
    )

    parser.add_argument(
        '--max-links',
        type=int,
        help='Maximum links followed from each page'
    )

    parser.add_argument(
        '--timeout',
        type=float,
        help='Per-page fetch timeout in seconds'
    )

    parser.add_argument(
        '--limit',
        type=int,
        help='Number of n-grams to report'
    )

    parser.add_argument(
        '--workers',
        type=int,
        help='Number of concurrent fetch workers'
    )

    # Output options
    parser.add_argument(
        '--output', '-o',
        type=str,
        choices=['json', 'text'],
        default='text',
        help='Output format for results (default: text)'
    )

    # Logging options
    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Override log level from configuration'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose output (equivalent to --log-level DEBUG)'
    )

    # API options
    parser.add_argument(
        '--host',
        type=str,
        help='API bind address (with --serve)'
    )

    parser.add_argument(
        '--port',
        type=int,
        help='API port (with --serve)'
    )

    return parser


def format_output(data: Any, format_type: str) -> str:
    """Format output data according to specified format."""
    if format_type == 'json':
        return json.dumps(data, indent=2, default=str, ensure_ascii=False)

    if isinstance(data, dict):
        lines = []
        for key, value in data.items():
            if isinstance(value, dict):
                lines.append(f"{key}:")
                for sub_key, sub_value in value.items():
                    lines.append(f"  {sub_key}: {sub_value}")
            elif isinstance(value, list):
                lines.append(f"{key}: {', '.join(map(str, value))}")
            else:
                lines.append(f"{key}: {value}")
        return '\n'.join(lines)
    elif isinstance(data, list):
        return '\n'.join(map(str, data))
    else:
        return str(data)


def format_ranking(result: RankingResult, format_type: str) -> str:
    """Render a ranking as JSON or as an aligned text table."""
    if format_type == 'json':
        return format_output(result.to_dict(), 'json')

    if not result.success:
        return f"Error: {result.error_message}"

    title = f"Top {ORDER_NAMES[result.order]} for {result.seed_url}"
    lines = [title, "=" * len(title)]

    if not result.entries:
        lines.append("(no n-grams found)")
    else:
        width = max(len(entry.ngram) for entry in result.entries)
        for position, entry in enumerate(result.entries, 1):
            lines.append(f"{position:>3}. {entry.ngram:<{width}}  {entry.count}")

    if result.stats:
        stats = result.stats
        lines.append("")
        lines.append(
            f"Pages fetched: {stats.pages_fetched}, failed: {stats.pages_failed}, "
            f"elapsed: {stats.elapsed_seconds:.2f}s"
        )

    return '\n'.join(lines)


def load_config(config_path: Optional[str]) -> SystemConfig:
    if config_path:
        return ConfigManager(config_path).load_config()
    return get_config()


def build_budget(config: SystemConfig, args: argparse.Namespace) -> CrawlBudget:
    """Default budget from configuration, overridden by command-line options."""
    budget = config.crawl.to_budget(args.order)

    overrides = {
        'max_pages': args.max_pages,
        'max_links_per_page': args.max_links,
        'fetch_timeout': args.timeout,
        'result_limit': args.limit,
        'max_workers': args.workers,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}

    return replace(budget, **overrides) if overrides else budget


def build_ranker(config: SystemConfig, budget: CrawlBudget) -> NGramRanker:
    """Wire fetcher, stopwords and budget into a ranker."""
    http_client = HTTPClient(
        user_agents=config.fetcher.user_agents,
        timeout=budget.fetch_timeout,
        max_content_bytes=config.fetcher.max_content_bytes,
        pool_size=max(budget.max_workers, 10),
        verify_ssl=config.fetcher.verify_ssl
    )
    fetcher = PageFetcher(http_client, parser=config.fetcher.parser)

    stopwords = STOPWORDS
    if config.analysis.extra_stopwords:
        stopwords = with_extra_stopwords(config.analysis.extra_stopwords)

    return NGramRanker(fetcher=fetcher, budget=budget, stopwords=stopwords)


def main(argv: Optional[List[str]] = None):
    """Main entry point with command-line interface."""
    parser = create_cli_parser()
    args = parser.parse_args(argv)

    if not args.serve and not args.url:
        parser.error("a URL is required unless --serve is given")

    exit_code = 0
    ranker = None

    try:
        config = load_config(args.config)

        if args.verbose:
            log_level = 'DEBUG'
        elif args.log_level:
            log_level = args.log_level
        else:
            log_level = config.log_level
        setup_logging(log_level, log_file=config.log_file, retention_days=config.log_retention_days)

        budget = build_budget(config, args)
        ranker = build_ranker(config, budget)

        if args.serve:
            serve(
                ranker,
                host=args.host or config.api.host,
                port=args.port or config.api.port,
                max_pages_limit=config.api.max_pages_limit
            )
        else:
            result = ranker.rank(args.url, budget.ngram_order)
            print(format_ranking(result, args.output))
            if not result.success:
                exit_code = 1

    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
        exit_code = 0
    except (ValidationError, ConfigurationError) as e:
        logger.error(f"{type(e).__name__}: {e.message}")
        print(format_output({'error': e.message, **e.details}, args.output), file=sys.stderr)
        exit_code = 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        exit_code = 1
    finally:
        if ranker:
            ranker.close()

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
