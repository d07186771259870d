# tests/conftest.py
import gzip
import json

import brotli
import pytest


class _DroppedLines(list):
    """List of dropped lines that is also callable as the reporter's `dropped`."""
    def __init__(self, reporter):
        super().__init__()
        self._reporter = reporter

    def __call__(self, line):
        self._reporter._record_dropped(line)


class RecordingReporter:
    """Keeps everything the pipeline reports, in order."""
    def __init__(self):
        self.lines = []
        self.parse_errors = []
        self.dropped = _DroppedLines(self)
        self.summaries = []

    def info(self, message):
        self.lines.append(message)

    def parse_error(self, message, hint=None):
        self.parse_errors.append(message)
        self.lines.append(f"Parse error: {message}")
        if hint:
            self.lines.append(f"\t{hint}")

    def _record_dropped(self, line):
        self.dropped.append(line)
        self.lines.append(f"\tDropping {line}")

    def summary(self, summary):
        self.summaries.append(summary)
        self.lines.append("Done" if summary.ok else f"Error: {summary.error}")
        self.lines.append(str(summary))


@pytest.fixture
def reporter():
    return RecordingReporter()


def _encode(path, data: bytes) -> bytes:
    if str(path).endswith(".gz"):
        return gzip.compress(data)
    if str(path).endswith(".br"):
        return brotli.compress(data)
    return data


def _decode(path, data: bytes) -> bytes:
    if str(path).endswith(".gz"):
        return gzip.decompress(data)
    if str(path).endswith(".br"):
        return brotli.decompress(data)
    return data


@pytest.fixture
def write_dump(tmp_path):
    """Write text to tmp_path/<name>, compressed according to its extension."""
    def _write(name, text):
        path = tmp_path / name
        path.write_bytes(_encode(path, text.encode("utf-8")))
        return str(path)
    return _write


@pytest.fixture
def read_output():
    """Read a written output file back as text, decompressing by extension."""
    def _read(path):
        with open(path, "rb") as fh:
            return _decode(path, fh.read()).decode("utf-8")
    return _read


@pytest.fixture
def dump_lines():
    """Render records the way the tracer does: one array element per line."""
    def _render(*records):
        return "[" + ",\n".join(json.dumps(r) for r in records) + "]\n"
    return _render
