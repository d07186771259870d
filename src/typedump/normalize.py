"""Normalization engine.

Pipeline shape, per record:
- prepare: rename `symbolName`, resolve the location, set aside `flags`
  and `display`, drop bookkeeping fields
- classify: first matching rule in `rules.RULES` builds the new record
- canonicalize: fixed field order for stable diffs

Every step builds a new dict; the raw record is never mutated. There is no
state shared between records, so `normalize_record` is safe to call from
several workers on disjoint shards of a dump.
"""

from __future__ import annotations
from typing import Any, Iterable, Iterator, Mapping

from .errors import RecordContractError
from .records import (
    LOCATION_FIELDS,
    NormalizedTypeRecord,
    PreparedRecord,
    RawTypeRecord,
    canonicalize,
    resolve_location,
)
from .rules import classify

# Fields consumed by preprocessing; never copied through as-is.
_PREPROCESSED = frozenset(("symbolName", "name", "flags", "display", "recursionId") + LOCATION_FIELDS)


def prepare(raw: RawTypeRecord) -> PreparedRecord:
    """Apply the unconditional preprocessing step.

    Raises:
        RecordContractError: if `raw` is not a mapping with an `id`.
    """
    if not isinstance(raw, Mapping) or "id" not in raw:
        raise RecordContractError(f"type record without an id: {raw!r:.200}")

    fields: dict[str, Any] = {k: v for k, v in raw.items() if k not in _PREPROCESSED}

    name = raw.get("symbolName")
    if name is not None:
        fields["name"] = name

    location = resolve_location(raw)
    if location is not None:
        fields["location"] = location.as_dict()

    flags = raw.get("flags") or ()
    return PreparedRecord(
        fields=fields,
        flags=frozenset(f for f in flags if isinstance(f, str)),
        display=raw.get("display"),
        is_destructuring=raw.get("destructuringPattern") is not None,
    )


def normalize_record(raw: RawTypeRecord) -> NormalizedTypeRecord:
    """Classify one raw record and return its normalized, ordered form.

    Raises:
        RecordContractError: if `raw` has no `id`.
    """
    return canonicalize(classify(prepare(raw)))


def normalize_records(records: Iterable[RawTypeRecord]) -> Iterator[NormalizedTypeRecord]:
    """Lazily normalize a stream of raw records, one out per one in."""
    for raw in records:
        yield normalize_record(raw)
