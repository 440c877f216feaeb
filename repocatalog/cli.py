from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from loguru import logger

from repocatalog.config import Config, load_catalog
from repocatalog.errors import ConfigError
from repocatalog.github import GitHubClient
from repocatalog.sync import run_sync


def cmd_sync(config: Config) -> int:
    """Sync every catalog repository and return the process exit code."""
    print(f"{'=' * 60}")
    print(" GitHub Sync - Project Catalog")
    print(f"{'=' * 60}")

    if config.github_token:
        logger.info("Using GITHUB_TOKEN for authenticated requests")
    else:
        logger.warning(
            "No GITHUB_TOKEN set: unauthenticated requests are limited to 60/hour "
            "and contribution data is skipped"
        )

    try:
        config.validate()
        entries = load_catalog(config.repos_config)
    except (FileNotFoundError, ConfigError) as exc:
        logger.error("Invalid configuration: {}", exc)
        return 1
    logger.info("Found {} repositories to sync", len(entries))

    try:
        with GitHubClient(config.github_token) as github:
            stats = run_sync(config, github, entries)
    except Exception:
        logger.opt(exception=True).error("Fatal error during sync")
        return 1

    if stats.failed:
        logger.error("{} repositories failed to sync", stats.failed)
    return stats.exit_code


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {raw!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


class _InterceptHandler(logging.Handler):
    """Route stdlib logging (httpx, httpcore) into loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1
        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _setup_logging(verbose: bool = False) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "INFO",
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> — "
            "<level>{message}</level>"
        ),
    )

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="repocatalog",
        description="Fetch GitHub repository data and generate static catalog content",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Catalog YAML file (default: env REPOS_CONFIG or repos.yaml)",
    )
    parser.add_argument("--cache-dir", type=Path, default=None, help="Per-repo cache directory")
    parser.add_argument(
        "--generated-dir", type=Path, default=None, help="Where the JSON artifacts go"
    )
    parser.add_argument(
        "--content-dir", type=Path, default=None, help="Where per-project markdown goes"
    )
    parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=None,
        help=(
            "Max repositories fetched at once, capped at 4 "
            "(default: env SYNC_CONCURRENCY or 4)"
        ),
    )
    parser.add_argument(
        "--profile-user",
        default=None,
        help="Account for the profile README and contributions (default: first repo owner)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()
    _setup_logging(args.verbose)

    try:
        config = Config.from_env()
    except ConfigError as exc:
        logger.error("Invalid configuration: {}", exc)
        sys.exit(1)
    if args.config is not None:
        config.repos_config = args.config
    if args.cache_dir is not None:
        config.cache_dir = args.cache_dir
    if args.generated_dir is not None:
        config.generated_dir = args.generated_dir
    if args.content_dir is not None:
        config.content_dir = args.content_dir
    if args.concurrency is not None:
        config.sync_concurrency = args.concurrency
    if args.profile_user is not None:
        config.profile_username = args.profile_user

    sys.exit(cmd_sync(config))


if __name__ == "__main__":
    main()
