"""
Progress events emitted by the export pipeline and the sink they are sent to.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FetchProgress:
    """Emitted once the repository inventory has been fetched."""
    count: int
    public_count: int
    private_count: int
    org_count: int
    user_count: int


@dataclass(frozen=True)
class CloneProgress:
    """Emitted after every clone batch with running totals."""
    succeeded: int
    failed: int
    total: int
    last_item_label: str = ""

    @property
    def completed(self) -> int:
        return self.succeeded + self.failed


@dataclass(frozen=True)
class RunSummary:
    """Emitted at the end of a run."""
    total_cloned: int
    total_failed: int
    elapsed: timedelta


ProgressEvent = Union[FetchProgress, CloneProgress, RunSummary]


class ProgressSink:
    """
    Receiver of progress events. Implementations render or record events;
    they never influence the run.
    """

    def emit(self, event: ProgressEvent) -> None:
        raise NotImplementedError


class NullProgressSink(ProgressSink):
    """Sink that discards every event."""

    def emit(self, event: ProgressEvent) -> None:
        pass


def emit_safely(sink: ProgressSink, event: ProgressEvent) -> None:
    """
    Send an event to a sink. Sink failures are logged and never abort the run.
    """
    try:
        sink.emit(event)
    except Exception as e:
        logger.warning(f"Progress sink failed on {type(event).__name__}: {e}")
