"""Console reporting.

The pipeline never prints. It talks to a `Reporter`, and the default one
forwards to the `typedump` logger; tests pass their own.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import sys
from typing import Optional, Protocol

log = logging.getLogger("typedump")


@dataclass(frozen=True)
class RunSummary:
    items: int
    elapsed_ms: int
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __str__(self) -> str:
        return f"Processed {self.items} items in {self.elapsed_ms} ms"


class Reporter(Protocol):
    def info(self, message: str) -> None:
        ...

    def parse_error(self, message: str, hint: Optional[str] = None) -> None:
        """A parse fault the framing policy absorbed."""
        ...

    def dropped(self, line: str) -> None:
        """An input line skipped after a parse fault."""
        ...

    def summary(self, summary: RunSummary) -> None:
        ...


class LoggingReporter:
    """Reporter backed by a stdlib logger."""
    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or log

    def info(self, message: str) -> None:
        self._status(logging.INFO, message)

    def parse_error(self, message: str, hint: Optional[str] = None) -> None:
        self.logger.warning("Parse error: %s", message)
        if hint:
            self.logger.warning("\t%s", hint)

    def dropped(self, line: str) -> None:
        self.logger.warning("\tDropping %s", line)

    def summary(self, summary: RunSummary) -> None:
        if summary.ok:
            self._status(logging.INFO, "Done")
        else:
            self._status(logging.ERROR, "Error: %s", summary.error)
        self._status(logging.INFO, "%s", summary)

    def _status(self, level: int, msg: str, *args) -> None:
        # Run status lines are printed whatever the configured level.
        self.logger.log(max(level, self.logger.getEffectiveLevel()), msg, *args)


def setup_logging(level: str = "INFO", fmt: str = "%(message)s"):
    logger = logging.getLogger()
    if logger.handlers:  # don't double add when called twice in one process
        return
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    h = logging.StreamHandler(sys.stdout)
    h.setFormatter(logging.Formatter(fmt))
    logger.addHandler(h)
