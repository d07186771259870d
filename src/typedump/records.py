"""Type records as they come out of the tracer and as we write them back.

A raw record is one decoded element of a type dump, e.g.:
    {"id": 12, "symbolName": "Foo", "flags": ["Object"], "firstDeclaration": {...}}

A normalized record is a new dict with a `kind` discriminant and a fixed
field order:
    id, kind, name, aliasTypeArguments, instantiatedType, typeArguments,
    <everything else in first-seen order>, location, display

Design notes:
- Records stay plain dicts so they serialize with `json` as-is.
- Field order is part of the output contract (stable diffs), so it is
  applied by `canonicalize` rather than left to whoever built the dict.
"""

from __future__ import annotations
from dataclasses import dataclass
import json
from typing import Any, Mapping, Optional

from .errors import RecordParseError


RawTypeRecord = Mapping[str, Any]
NormalizedTypeRecord = dict[str, Any]

HEAD_FIELDS = ("id", "kind", "name", "aliasTypeArguments", "instantiatedType", "typeArguments")
TAIL_FIELDS = ("location", "display")

# First present wins.
LOCATION_FIELDS = ("destructuringPattern", "referenceLocation", "firstDeclaration")


@dataclass(frozen=True)
class Location:
    path: Any
    line: Optional[int] = None
    char: Optional[int] = None

    @classmethod
    def from_node(cls, node: Mapping[str, Any]) -> "Location":
        start = node.get("start") or {}
        return cls(path=node.get("path"), line=start.get("line"), char=start.get("character"))

    def as_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.path is not None:
            out["path"] = self.path
        if self.line is not None:
            out["line"] = self.line
        if self.char is not None:
            out["char"] = self.char
        return out


@dataclass(frozen=True)
class PreparedRecord:
    """A raw record after the unconditional preprocessing step.

    `fields` holds what survives into classification (with `name` and
    `location` already resolved); `flags` and `display` are kept aside
    because only some rules put them back.
    """
    fields: Mapping[str, Any]
    flags: frozenset
    display: Any = None
    is_destructuring: bool = False

    def get(self, key: str, default: Any = None) -> Any:
        return self.fields.get(key, default)

    def has(self, key: str) -> bool:
        return self.fields.get(key) is not None

    @property
    def name(self) -> Any:
        return self.fields.get("name")


def resolve_location(raw: RawTypeRecord) -> Optional[Location]:
    """Return the location of the first present candidate node, if any."""
    for field in LOCATION_FIELDS:
        node = raw.get(field)
        if node is not None:
            return Location.from_node(node)
    return None


def strip_framing(line: str) -> str:
    """Drop one leading `[` and one trailing `]` left over from a JSON array dump."""
    if line.startswith("["):
        line = line[1:]
    if line.endswith("]"):
        line = line[:-1]
    return line


def parse_line(line: str) -> Any:
    """Parse one line of a line-delimited dump.

    Raises:
        RecordParseError: if the line is not valid JSON.
    """
    try:
        return json.loads(strip_framing(line))
    except json.JSONDecodeError as ex:
        raise RecordParseError(str(ex)) from ex


def render_record(r: Mapping[str, Any]) -> str:
    """Render a record as compact JSON, one element of the output array."""
    return json.dumps(r, separators=(",", ":"), ensure_ascii=False)


def canonicalize(record: Mapping[str, Any]) -> NormalizedTypeRecord:
    """Return a copy of `record` with fields in the canonical output order."""
    out = {k: record[k] for k in HEAD_FIELDS if k in record}
    for k, v in record.items():
        if k not in out and k not in TAIL_FIELDS:
            out[k] = v
    for k in TAIL_FIELDS:
        if k in record:
            out[k] = record[k]
    return out
