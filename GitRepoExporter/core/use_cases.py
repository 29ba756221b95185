"""
Business logic / use cases for exporting GitHub repositories.
This layer fetches the inventory, selects repositories and clones them.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import timedelta
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from core.config import DEFAULT_BATCH_SIZE, DEFAULT_PAGE_SIZE, ExportConfig
from core.entities import (
    CloneOutcome,
    CloneReport,
    ExportResult,
    FilterConfiguration,
    Repository,
    RepositoryPage,
    Statistics,
    repository_from_api,
)
from core.errors import CloneError, ConfigurationError, RemoteListError
from core.filters import filter_repositories
from core.formatting import censor
from core.progress import (
    CloneProgress,
    FetchProgress,
    NullProgressSink,
    ProgressSink,
    RunSummary,
    emit_safely,
)
from core.statistics import categorize_repositories

logger = logging.getLogger(__name__)

ListPage = Callable[[int, int], RepositoryPage]
CloneCapability = Callable[[str, Path], None]


def batched(items: Sequence, size: int) -> List[list]:
    """Split items into consecutive batches of at most `size` elements."""
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def destination_path(root: Path, repo: Repository) -> Path:
    """Local clone location: <root>/<owner>/<repo>."""
    return root / repo.owner.name / repo.name


def progress_label(repo: Repository) -> str:
    """Label of a repository in progress events; private names are censored."""
    if repo.is_private:
        return censor(repo.owner.name, repo.name)
    return repo.full_name


def validate_destination_root(root: Union[str, Path, None]) -> Path:
    """
    Check that clones can be laid out under the given root.

    Raises:
        ConfigurationError: If the root is missing or is an existing file
    """
    if root is None or str(root) == "":
        raise ConfigurationError("Destination root is required")

    path = Path(root)
    if path.exists() and not path.is_dir():
        raise ConfigurationError(f"Destination root {path} is not a directory")
    return path


class FetchRepositories:
    """
    Use case for fetching every repository visible to the authenticated account.
    Pages are requested one after another until an empty page is returned.
    """

    def __init__(self, list_page: ListPage, page_size: int = DEFAULT_PAGE_SIZE):
        """
        Initialize the use case.

        Args:
            list_page: Callable returning a RepositoryPage for (page, per_page)
            page_size: Number of repositories requested per page
        """
        if page_size < 1:
            raise ConfigurationError(f"page_size must be positive; got {page_size}")

        self.list_page = list_page
        self.page_size = page_size

    def execute(self) -> List[Repository]:
        """
        Fetch all pages, starting at page 1.

        Returns:
            Repositories in the order the remote listed them

        Raises:
            RemoteListError: If any page reports a failure
        """
        repositories: List[Repository] = []
        page = 1

        while True:
            result = self.list_page(page, self.page_size)

            if not result.ok:
                detail = result.error or f"status {result.status_code}"
                logger.error(f"Fetching page {page} failed: {detail}")
                raise RemoteListError(page, detail)

            if not result.items:
                logger.debug(f"Page {page} is empty, stopping")
                break

            repositories.extend(repository_from_api(raw) for raw in result.items)
            logger.debug(
                f"Fetched page {page} ({len(result.items)} repositories, "
                f"{len(repositories)} so far)"
            )
            page += 1

        logger.info(f"Found {len(repositories):,} repositories in {page} requests")
        return repositories


class CloneRepositories:
    """
    Use case for cloning repositories in sequential batches.

    Repositories inside a batch are cloned concurrently; the next batch
    starts only once every clone of the current one has settled. A failed
    clone is recorded and never stops the run.
    """

    def __init__(
        self,
        clone: CloneCapability,
        progress: Optional[ProgressSink] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        clone_url: Optional[Callable[[Repository], str]] = None,
    ):
        """
        Initialize the use case.

        Args:
            clone: Callable cloning a URL into a destination path
            progress: Sink receiving a CloneProgress after every batch
            batch_size: Maximum number of simultaneous clones
            clone_url: Optional hook building the URL to clone (e.g. with credentials)
        """
        if batch_size < 1:
            raise ConfigurationError(f"batch_size must be at least 1; got {batch_size}")

        self.clone = clone
        self.progress = progress or NullProgressSink()
        self.batch_size = batch_size
        self.clone_url = clone_url or (lambda repo: repo.clone_url)

    def _clone_one(self, repo: Repository, root: Path) -> CloneOutcome:
        path = destination_path(root, repo)

        try:
            self.clone(self.clone_url(repo), path)
        except Exception as e:
            logger.warning(f"Failed to clone {progress_label(repo)}: {e}")
            error = CloneError(repo.full_name, str(e))
            error.__cause__ = e
            return CloneOutcome(repository=repo, path=path, error=error)

        logger.debug(f"Cloned {progress_label(repo)} into {path}")
        return CloneOutcome(repository=repo, path=path)

    def execute(
        self,
        repositories: Sequence[Repository],
        destination_root: Union[str, Path],
    ) -> CloneReport:
        """
        Clone every repository under the destination root.

        Args:
            repositories: Repositories to clone
            destination_root: Directory receiving <owner>/<repo> clones

        Returns:
            Finalized clone report, in input order

        Raises:
            ConfigurationError: If the destination root is unusable
        """
        root = validate_destination_root(destination_root)
        batches = batched(list(repositories), self.batch_size)
        total = len(repositories)
        report = CloneReport()
        succeeded = failed = 0

        logger.info(
            f"Cloning {total:,} repositories into {root} "
            f"({len(batches)} batches of up to {self.batch_size})"
        )

        with ThreadPoolExecutor(max_workers=self.batch_size) as executor:
            for number, batch in enumerate(batches, 1):
                # One future per slot keeps outcomes in input order
                futures = [executor.submit(self._clone_one, repo, root) for repo in batch]
                wait(futures)

                for future in futures:
                    outcome = future.result()
                    report.record(outcome)
                    if outcome.succeeded:
                        succeeded += 1
                    else:
                        failed += 1

                logger.info(
                    f"Batch {number}/{len(batches)} done: "
                    f"{succeeded + failed}/{total} completed, {failed} failed"
                )
                emit_safely(
                    self.progress,
                    CloneProgress(
                        succeeded=succeeded,
                        failed=failed,
                        total=total,
                        last_item_label=progress_label(batch[-1]),
                    ),
                )

        return report.finalize()


class ExportRepositories:
    """
    Use case for a complete export run: fetch, classify, filter and clone.
    """

    def __init__(
        self,
        list_page: ListPage,
        clone: CloneCapability,
        config: ExportConfig,
        progress: Optional[ProgressSink] = None,
        clone_url: Optional[Callable[[Repository], str]] = None,
    ):
        """
        Initialize the use case.

        Args:
            list_page: List capability of the remote
            clone: Clone capability
            config: Run configuration
            progress: Sink receiving fetch, clone and summary events
            clone_url: Optional hook building the URL to clone
        """
        self.config = config
        self.progress = progress or NullProgressSink()
        self.fetch = FetchRepositories(list_page, page_size=config.page_size)
        self.cloner = CloneRepositories(
            clone,
            progress=self.progress,
            batch_size=config.batch_size,
            clone_url=clone_url,
        )

    def _fetch_and_classify(self):
        repositories = self.fetch.execute()
        statistics = categorize_repositories(repositories)

        emit_safely(
            self.progress,
            FetchProgress(
                count=len(repositories),
                public_count=statistics.public_count,
                private_count=statistics.private_count,
                org_count=len(statistics.organizations),
                user_count=len(statistics.users),
            ),
        )
        return repositories, statistics

    def summarize(self) -> Statistics:
        """
        Fetch the inventory and classify it without cloning anything.

        Returns:
            Statistics of every visible repository
        """
        _, statistics = self._fetch_and_classify()
        return statistics

    def execute(self, filters: FilterConfiguration) -> ExportResult:
        """
        Run the export.

        Args:
            filters: Selection of repositories to clone

        Returns:
            Fetched repositories, their statistics, the selection and the clone report

        Raises:
            ConfigurationError: If the destination root is unusable (before any fetch)
            RemoteListError: If the inventory could not be fetched
        """
        started = time.monotonic()
        validate_destination_root(self.config.destination_root)

        repositories, statistics = self._fetch_and_classify()
        selected = filter_repositories(repositories, filters)
        logger.info(
            f"Selected {len(selected):,} of {len(repositories):,} repositories"
        )

        report = self.cloner.execute(selected, self.config.destination_root)

        emit_safely(
            self.progress,
            RunSummary(
                total_cloned=len(report.succeeded),
                total_failed=len(report.failed),
                elapsed=timedelta(seconds=time.monotonic() - started),
            ),
        )

        return ExportResult(
            repositories=repositories,
            statistics=statistics,
            selected=selected,
            report=report,
        )
