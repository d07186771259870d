"""Reading type dumps and writing normalized ones.

Input framing:
- line mode: one JSON element per line, lines split on `,?\\r?\\n`, with a
  stray `[` / `]` from an array dump stripped off. The first bad line ends
  parsing; it and every later line is reported as dropped.
- array mode (`multiline`): the whole input is one JSON array, parsed
  incrementally with ijson. Running out of input mid-array is what a dump
  looks like when the tracer crashed, so it ends the stream cleanly.

Codec is picked by file extension on both sides: `.gz` (gzip), `.br`
(brotli), anything else is plain.
"""

from __future__ import annotations
import gzip
import io
import re
from typing import Any, BinaryIO, Iterator, Mapping

import brotli
import ijson

from . import settings
from .errors import RecordParseError, TransportError
from .records import parse_line, render_record, strip_framing
from .reporting import Reporter

RERUN_HINT = "Consider re-running with '-m'"

_LINE_END_RE = re.compile(r",?\r?\n$")


class _BrotliReader(io.RawIOBase):
    """Streaming brotli decompression over a binary file."""
    def __init__(self, raw: BinaryIO, chunk_size: int = settings.READ_CHUNK):
        self._raw = raw
        self._chunk_size = chunk_size
        self._decompressor = brotli.Decompressor()
        self._buf = b""
        self._eof = False

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        while not self._buf and not self._eof:
            chunk = self._raw.read(self._chunk_size)
            if not chunk:
                self._eof = True
                if not self._decompressor.is_finished():
                    raise TransportError("brotli stream ended before its end marker")
                break
            try:
                self._buf = self._decompressor.process(chunk)
            except brotli.error as ex:
                raise TransportError(f"cannot decompress brotli input: {ex}") from ex
        n = min(len(b), len(self._buf))
        b[:n] = self._buf[:n]
        self._buf = self._buf[n:]
        return n

    def close(self) -> None:
        if not self.closed:
            try:
                self._raw.close()
            finally:
                super().close()


class _BrotliWriter(io.RawIOBase):
    """Streaming brotli compression onto a binary file."""
    def __init__(self, raw: BinaryIO, quality: int = settings.BROTLI_QUALITY):
        self._raw = raw
        self._compressor = brotli.Compressor(quality=quality)

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        data = bytes(b)
        self._raw.write(self._compressor.process(data))
        return len(data)

    def close(self) -> None:
        if not self.closed:
            try:
                self._raw.write(self._compressor.finish())
            finally:
                self._raw.close()
                super().close()


def open_input(path: str) -> BinaryIO:
    """Open `path` for reading, decompressing by extension.

    Raises:
        TransportError: if the file cannot be opened.
    """
    try:
        if path.endswith(".gz"):
            return gzip.open(path, "rb")
        if path.endswith(".br"):
            return io.BufferedReader(_BrotliReader(open(path, "rb")))
        return open(path, "rb")
    except OSError as ex:
        raise TransportError(f"cannot open input {path!r}: {ex.strerror or ex}") from ex


def open_output(path: str) -> BinaryIO:
    """Open `path` for writing, compressing by extension.

    Raises:
        TransportError: if the file cannot be created.
    """
    try:
        if path.endswith(".gz"):
            return gzip.open(path, "wb", compresslevel=settings.GZIP_LEVEL)
        if path.endswith(".br"):
            return _BrotliWriter(open(path, "wb"))
        return open(path, "wb")
    except OSError as ex:
        raise TransportError(f"cannot open output {path!r}: {ex.strerror or ex}") from ex


def _read_lines(stream: BinaryIO) -> Iterator[str]:
    # A dump cut inside a multi-byte character decodes to U+FFFD and then
    # fails JSON parsing like any other truncated line.
    text = io.TextIOWrapper(stream, encoding="utf-8", errors="replace", newline="\n")
    try:
        for line in text:
            yield _LINE_END_RE.sub("", line)
    except (OSError, EOFError) as ex:
        raise TransportError(f"cannot read input: {ex}") from ex
    finally:
        # The caller owns the stream.
        text.detach()


def iter_line_records(stream: BinaryIO, reporter: Reporter) -> Iterator[Any]:
    """Yield one decoded element per input line.

    Blank lines (including a lone `[` or `]`) are skipped. After the first
    line that is not valid JSON, every remaining line is reported as
    dropped instead of parsed.
    """
    saw_error = False
    for line in _read_lines(stream):
        if not saw_error:
            if not strip_framing(line).strip():
                continue
            try:
                record = parse_line(line)
            except RecordParseError as ex:
                saw_error = True
                reporter.parse_error(str(ex), RERUN_HINT)
            else:
                yield record
                continue
        reporter.dropped(line)


def iter_array_records(stream: BinaryIO, reporter: Reporter) -> Iterator[Any]:
    """Yield the elements of one top-level JSON array, incrementally.

    Raises:
        RecordParseError: for malformed (not merely truncated) JSON.
        TransportError: if reading the input fails.
    """
    try:
        yield from ijson.items(stream, "item", use_float=True)
    except ijson.IncompleteJSONError as ex:
        reporter.parse_error(str(ex))
    except ijson.JSONError as ex:
        raise RecordParseError(str(ex)) from ex
    except (OSError, EOFError) as ex:
        raise TransportError(f"cannot read input: {ex}") from ex


def iter_records(stream: BinaryIO, reporter: Reporter, multiline: bool = False) -> Iterator[Any]:
    if multiline:
        return iter_array_records(stream, reporter)
    return iter_line_records(stream, reporter)


class JsonArrayWriter:
    """Writes records as one JSON array, a record at a time.

    The closing bracket is only written on a clean exit; the stream is
    closed either way.
    """
    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._first = True

    def __enter__(self) -> "JsonArrayWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.finish()
            finally:
                self.close()
            return
        try:
            self.close()
        except TransportError:
            pass  # the original exception propagates

    def write(self, record: Mapping[str, Any]) -> None:
        prefix = "[" if self._first else ",\n"
        self._first = False
        self._put(prefix + render_record(record))

    def finish(self) -> None:
        self._put("[]" if self._first else "]")

    def close(self) -> None:
        try:
            self._stream.close()
        except OSError as ex:
            raise TransportError(f"cannot write output: {ex}") from ex

    def _put(self, text: str) -> None:
        try:
            self._stream.write(text.encode("utf-8"))
        except OSError as ex:
            raise TransportError(f"cannot write output: {ex}") from ex
