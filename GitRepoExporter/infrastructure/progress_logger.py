"""
Progress sink rendering events through the logging module.
"""

import logging

from core.formatting import format_elapsed
from core.progress import (
    CloneProgress,
    FetchProgress,
    ProgressEvent,
    ProgressSink,
    RunSummary,
)

logger = logging.getLogger(__name__)


class LoggingProgressSink(ProgressSink):
    """
    Logs every progress event at INFO level.

    With `quiet` set, per-batch clone progress is logged at DEBUG instead.
    """

    def __init__(self, log: logging.Logger = logger, quiet: bool = False):
        self.log = log
        self.batch_level = logging.DEBUG if quiet else logging.INFO

    def emit(self, event: ProgressEvent) -> None:
        if isinstance(event, FetchProgress):
            self.log.info(
                f"Found {event.count:,} repositories "
                f"({event.public_count} public; {event.private_count} private; "
                f"{event.org_count} organizations; {event.user_count} users)"
            )
        elif isinstance(event, CloneProgress):
            pad = len(str(event.total))
            message = (
                f"Cloned {event.last_item_label} | "
                f"{event.succeeded:>{pad}}/{event.total} completed"
            )
            if event.failed:
                message += f", {event.failed} failed"
            self.log.log(self.batch_level, message)
        elif isinstance(event, RunSummary):
            self.log.info(
                f"Job finished in {format_elapsed(event.elapsed.total_seconds())}: "
                f"{event.total_cloned:,} cloned, {event.total_failed:,} failed"
            )
        else:
            raise TypeError(f"Unknown progress event {event!r}")
