"""Command-line interface for typedump.

    typedump <input> <output> [-m|--multiline]

Input and output may end in `.gz` or `.br` to (de)compress on the fly.
Exit status is 0 when the run finished, 1 when it stopped on an error
(the output then holds what was written before), 2 for bad arguments.
"""

from __future__ import annotations
import argparse

from . import settings
from .pipeline import RunConfig, run
from .reporting import setup_logging


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="typedump", description="Preprocess tracing type dumps.")
    p.add_argument("input", help="JSON file to read (possibly compressed)")
    p.add_argument("output", help="JSON file to write (possibly compressed)")
    p.add_argument(
        "-m",
        "--multiline",
        action="store_true",
        help="use true JSON parsing, rather than assuming each element is on a separate line",
    )
    p.add_argument("--log-level", default=settings.LOG_LEVEL, help="console log level (default: %(default)s)")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    summary = run(RunConfig(input_path=args.input, output_path=args.output, multiline=args.multiline))
    return 0 if summary.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
