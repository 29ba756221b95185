"""
Error taxonomy for GitRepoExporter.
Fatal errors abort the whole run; clone errors are recorded per repository.
"""

from typing import Optional


class ExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigurationError(ExporterError):
    """Raised for invalid or contradictory configuration, before any work starts."""


class RemoteListError(ExporterError):
    """Raised when a repository page could not be fetched. Fatal to the run."""

    def __init__(self, page: int, detail: Optional[str] = None):
        self.page = page
        self.detail = detail
        message = f"Unable to fetch repository page {page}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CloneError(ExporterError):
    """A single repository failed to clone. Recorded, never raised past its task."""

    def __init__(self, full_name: str, message: str):
        self.full_name = full_name
        super().__init__(f"Failed to clone {full_name}: {message}")
