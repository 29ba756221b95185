"""
Git clone support backed by GitPython.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Optional
from urllib.parse import quote, urlsplit, urlunsplit

from git import Repo

from core.entities import Repository

logger = logging.getLogger(__name__)


def authenticated_url(repo: Repository, login: str, token: str) -> str:
    """
    Build the URL to clone a repository with.

    Private repositories get the credentials embedded in the URL; public
    ones use their clone URL as is.
    """
    if not repo.is_private:
        return repo.clone_url

    parts = urlsplit(repo.clone_url)
    netloc = f"{quote(login, safe='')}:{quote(token, safe='')}@{parts.hostname}"
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def directory_size(path: Path) -> int:
    """Calculate total size of directory in bytes."""
    total = 0
    for dirpath, _, filenames in os.walk(path):
        for filename in filenames:
            try:
                total += (Path(dirpath) / filename).stat().st_size
            except OSError:
                pass
    return total


class GitCloner:
    """
    Clones repositories with `git clone`, one destination directory each.
    """

    # Transfers slower than this many bytes per second count as stalled
    LOW_SPEED_LIMIT = 1000

    def __init__(self, stall_timeout: Optional[int] = None):
        """
        Args:
            stall_timeout: Seconds a transfer may stay below LOW_SPEED_LIMIT
                before git aborts it (None for no limit)
        """
        self.stall_timeout = stall_timeout

    def _environment(self) -> Optional[dict]:
        if not self.stall_timeout:
            return None
        return {
            "GIT_HTTP_LOW_SPEED_LIMIT": str(self.LOW_SPEED_LIMIT),
            "GIT_HTTP_LOW_SPEED_TIME": str(self.stall_timeout),
        }

    def clone(self, url: str, destination: Path) -> None:
        """
        Clone a repository into `destination`, creating missing parents.

        A partial clone created by a failed attempt is removed; a directory
        that existed before the attempt is left untouched.

        Raises:
            git.GitCommandError: If git reports a failure
        """
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        existed = destination.exists()
        logger.debug(f"Cloning into {destination}")

        try:
            Repo.clone_from(url, str(destination), env=self._environment())
        except Exception:
            if not existed and destination.exists():
                shutil.rmtree(destination, ignore_errors=True)
            raise
