"""
Run configuration, built once at process start and passed into the core.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from core.errors import ConfigurationError

DEFAULT_BATCH_SIZE = 10
DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 100


@dataclass
class ExportConfig:
    """Configuration for an export run.

    Attributes:
        token: GitHub token; opaque to the core.
        destination_root: Directory receiving <owner>/<repo> clones.
        batch_size: Number of repositories cloned concurrently.
        page_size: Repositories requested per page (GitHub max is 100).
        stall_timeout_seconds: Seconds a stalled clone transfer is tolerated (None for no limit).
        is_ci: Whether the process runs on a CI service.
    """

    token: str
    destination_root: Path = field(default_factory=lambda: Path("./gitexp-out"))
    batch_size: int = DEFAULT_BATCH_SIZE
    page_size: int = DEFAULT_PAGE_SIZE
    stall_timeout_seconds: Optional[int] = None
    is_ci: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects and sizes are usable."""
        if isinstance(self.destination_root, str):
            self.destination_root = Path(self.destination_root)
        if not self.token:
            raise ConfigurationError("GitHub token is undefined")
        if self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be at least 1; got {self.batch_size}")
        if not 1 <= self.page_size <= MAX_PAGE_SIZE:
            raise ConfigurationError(
                f"page_size must be between 1 and {MAX_PAGE_SIZE}; got {self.page_size}"
            )
        if self.stall_timeout_seconds is not None and self.stall_timeout_seconds <= 0:
            raise ConfigurationError("stall_timeout_seconds must be positive")
