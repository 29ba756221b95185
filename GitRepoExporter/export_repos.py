#!/usr/bin/env python3
"""
Main export script for GitRepoExporter.
Fetches every repository visible to the authenticated GitHub account and
clones the selected ones locally.
"""

import argparse
import logging
import sys
from functools import partial

from core.entities import FilterConfiguration, OwnerType, Visibility
from core.errors import ConfigurationError
from core.formatting import format_bytes
from core.use_cases import ExportRepositories
from infrastructure.environment import load_config
from infrastructure.git_client import GitCloner, authenticated_url, directory_size
from infrastructure.github_client import GitHubClient
from infrastructure.progress_logger import LoggingProgressSink

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def comma_list(value: str) -> list:
    """Split a comma separated option, dropping blank entries."""
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Clone the GitHub repositories visible to your account"
    )
    parser.add_argument(
        "-s",
        "--summary",
        action="store_true",
        help="Display a summary of repositories, languages, orgs etc and exit",
    )
    parser.add_argument(
        "-l",
        "--languages",
        type=comma_list,
        help="Filter by project language (comma separated)",
    )
    parser.add_argument(
        "-f",
        "--only-from",
        type=comma_list,
        help="Filter by owner name (comma separated)",
    )
    parser.add_argument(
        "-t",
        "--owner-type",
        choices=[t.value for t in OwnerType if t is not OwnerType.ALL],
        default=OwnerType.ALL.value,
        help="Filter by owner type",
    )
    parser.add_argument(
        "-b",
        "--visibility",
        choices=[v.value for v in Visibility if v is not Visibility.ALL],
        default=Visibility.ALL.value,
        help="Filter by repository visibility",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Directory receiving the clones (default: ./gitexp-out)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Repositories cloned concurrently (default: 10)",
    )
    parser.add_argument(
        "--per-page",
        type=int,
        default=None,
        help="Repositories per page (max 100, default: 100)",
    )
    return parser.parse_args(argv)


def build_filters(args: argparse.Namespace) -> FilterConfiguration:
    """Translate command line options into a FilterConfiguration."""
    languages = None
    if args.languages is not None:
        languages = [language.lower() for language in args.languages]

    return FilterConfiguration(
        visibility=args.visibility,
        owner_type=args.owner_type,
        only_from=args.only_from,
        languages=languages,
    )


def log_ranking(title: str, occurrences) -> None:
    if not occurrences:
        return

    logger.info("")
    logger.info(f"  {title}:")
    for i, occurrence in enumerate(occurrences, 1):
        logger.info(f"    {i:3d}. {occurrence.name:40s} ({occurrence.count:,})")


def main(argv=None):
    """Main export entry point."""
    args = parse_args(argv)

    try:
        filters = build_filters(args)
        config = load_config(
            destination_root=args.output,
            batch_size=args.batch_size,
            page_size=args.per_page,
        )

        logger.info("=" * 60)
        logger.info("GitRepoExporter - GitHub Repository Exporter")
        logger.info("=" * 60)
        logger.info(f"Destination: {config.destination_root}")
        logger.info(f"Visibility: {filters.visibility.value}")
        logger.info(f"Owner type: {filters.owner_type.value}")
        logger.info(f"Only from: {', '.join(sorted(filters.only_from or [])) or 'anyone'}")
        logger.info(f"Languages: {', '.join(sorted(filters.languages or [])) or 'any'}")
        logger.info("=" * 60)

        github = GitHubClient(config.token)
        login = github.get_authenticated_user()
        cloner = GitCloner(stall_timeout=config.stall_timeout_seconds)

        use_case = ExportRepositories(
            list_page=github.list_repositories,
            clone=cloner.clone,
            config=config,
            progress=LoggingProgressSink(quiet=config.is_ci),
            clone_url=partial(authenticated_url, login=login, token=config.token),
        )

        if args.summary:
            stats = use_case.summarize()

            logger.info("=" * 60)
            logger.info("Repository Statistics:")
            logger.info(f"  Public repositories: {stats.public_count:,}")
            logger.info(f"  Private repositories: {stats.private_count:,}")
            log_ranking("Primary languages, ordered by occurrences", stats.languages)
            log_ranking("Users, ordered by the amount of owned projects", stats.users)
            log_ranking(
                "Organizations, ordered by the amount of owned projects",
                stats.organizations,
            )
            logger.info("=" * 60)
            return 0

        result = use_case.execute(filters)
        report = result.report

        logger.info("=" * 60)
        logger.info("Export Summary:")
        logger.info(f"  Repositories found: {len(result.repositories):,}")
        logger.info(f"  Repositories selected: {len(result.selected):,}")
        logger.info(f"  Cloned: {len(report.succeeded):,}")
        logger.info(f"  Failed: {len(report.failed):,}")
        if config.destination_root.exists():
            size = directory_size(config.destination_root)
            logger.info(f"  Downloaded locally: {format_bytes(size)}")
        for outcome in report.failed:
            logger.info(f"    {outcome.repository.full_name}: {outcome.error}")
        logger.info("=" * 60)

        return 1 if report.failed else 0

    except KeyboardInterrupt:
        logger.info("\nExport interrupted by user.")
        return 130  # Standard exit code for SIGINT

    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    except Exception as e:
        logger.error(f"Export failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
