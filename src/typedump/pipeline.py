"""End-to-end run: read a dump, normalize every record, write the result.

Pipeline shape:
- open input (decompress by extension) -> decoded raw records
- normalize_record -> canonical normalized records
- JsonArrayWriter -> output (compress by extension)

Records are pulled one at a time, so memory stays flat however large the
dump is, and nothing is read faster than the output can take it.
"""

from __future__ import annotations
from dataclasses import dataclass
import os
import time
from typing import Callable, Optional

from .errors import UsageError
from .normalize import normalize_record
from .reporting import LoggingReporter, Reporter, RunSummary
from .streams import JsonArrayWriter, iter_records, open_input, open_output


@dataclass(frozen=True)
class RunConfig:
    input_path: str
    output_path: str
    multiline: bool = False


def check_config(config: RunConfig) -> None:
    """Reject configurations that would destroy the input.

    Raises:
        UsageError: if input and output are the same file.
    """
    if os.path.abspath(config.input_path) == os.path.abspath(config.output_path):
        raise UsageError(f"input and output are the same file: {config.input_path!r}")


def run(
    config: RunConfig,
    reporter: Optional[Reporter] = None,
    clock: Callable[[], float] = time.perf_counter,
) -> RunSummary:
    """Process one dump and report how it went.

    Never raises: any fault ends the run and comes back as `RunSummary.error`,
    with `items` counting what was processed before.
    """
    reporter = reporter or LoggingReporter()
    start = clock()
    items = 0
    error: Optional[str] = None

    reporter.info("Processing...")
    try:
        check_config(config)
        with open_input(config.input_path) as source, JsonArrayWriter(open_output(config.output_path)) as sink:
            for raw in iter_records(source, reporter, multiline=config.multiline):
                items += 1
                sink.write(normalize_record(raw))
    except Exception as ex:
        error = str(ex) or type(ex).__name__

    summary = RunSummary(items=items, elapsed_ms=round((clock() - start) * 1000), error=error)
    reporter.summary(summary)
    return summary
