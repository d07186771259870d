"""Classification rules.

A rule recognizes one kind of type record and builds its normalized shape.

Rules are evaluated in table order and the first match wins. The order is
load-bearing:
- structural markers (union, tuple, conditional, ...) beat names and flags
- the flag checks beat the name checks
- `Object` is less specific than the anonymous-name checks
- `JsxElementSignature` is a guess from the display text, so it runs after
  every structural interpretation had its chance
- `Other` always matches
"""

from __future__ import annotations
from dataclasses import dataclass
import re
from typing import Any, Callable, Mapping, Optional

from .records import NormalizedTypeRecord, PreparedRecord


Predicate = Callable[[PreparedRecord], bool]
Build = Callable[[PreparedRecord], NormalizedTypeRecord]

KNOWN_SYMBOL_RE = re.compile(r"^__@([^@]+)@\d+$")
ANONYMOUS_NAMES = ("__function", "__type", "__class", "__object")
JSX_ATTRIBUTES_NAME = "__jsxAttributes"


@dataclass(frozen=True)
class Rule:
    """A single classification rule.

    `kind` is the kind this rule produces (without the `Aliased` prefix, for
    the structural rules that may add one).
    """
    kind: str
    matches: Predicate
    build: Build


def shape(
    p: PreparedRecord,
    kind: str,
    lead: Optional[Mapping[str, Any]] = None,
    override: Optional[Mapping[str, Any]] = None,
) -> NormalizedTypeRecord:
    """Build a new record: kind, then `lead`, then the prepared fields, then `override`.

    A `None` in `lead` is skipped; a `None` in `override` drops that field.
    """
    out: NormalizedTypeRecord = {"kind": kind}
    for k, v in (lead or {}).items():
        if v is not None:
            out[k] = v
    out.update(p.fields)
    for k, v in (override or {}).items():
        if v is None:
            out.pop(k, None)
        else:
            out[k] = v
    out["kind"] = kind
    return out


def aliased(p: PreparedRecord, kind: str) -> str:
    return "Aliased" + kind if p.name else kind


def first_to_upper(s: str) -> str:
    return s[:1].upper() + s[1:]


def _is_missing_branch(value: Any) -> bool:
    # Negative ids mark a missing branch.
    return isinstance(value, (int, float)) and value < 0


def _has_flag(flag: str) -> Predicate:
    return lambda p: flag in p.flags


def _has_field(field: str) -> Predicate:
    return lambda p: p.has(field)


# --- builders -------------------------------------------------------------

def _intrinsic(p: PreparedRecord) -> NormalizedTypeRecord:
    return shape(p, "Intrinsic", override={"name": p.get("intrinsicName"), "intrinsicName": None})


def _members(kind: str, field: str) -> Build:
    def build(p: PreparedRecord) -> NormalizedTypeRecord:
        members = p.get(field)
        return shape(
            p,
            aliased(p, kind),
            lead={"count": len(members) if isinstance(members, list) else None, "types": members},
            override={field: None},
        )
    return build


def _structural(kind: str, *dropped: str) -> Build:
    def build(p: PreparedRecord) -> NormalizedTypeRecord:
        return shape(p, aliased(p, kind), override={f: None for f in dropped})
    return build


def _conditional(p: PreparedRecord) -> NormalizedTypeRecord:
    return shape(
        p,
        aliased(p, "ConditionalType"),
        override={
            f: None
            for f in ("conditionalTrueType", "conditionalFalseType")
            if _is_missing_branch(p.get(f))
        },
    )


def _substitution(p: PreparedRecord) -> NormalizedTypeRecord:
    return shape(
        p,
        aliased(p, "SubstitutionType"),
        lead={"originalType": p.get("substitutionBaseType")},
        override={"substitutionBaseType": None},
    )


def _reverse_mapped(p: PreparedRecord) -> NormalizedTypeRecord:
    return shape(
        p,
        aliased(p, "ReverseMappedType"),
        lead={
            "sourceType": p.get("reverseMappedSourceType"),
            "mappedType": p.get("reverseMappedMappedType"),
            "constraintType": p.get("reverseMappedConstraintType"),
        },
        override={
            "reverseMappedSourceType": None,
            "reverseMappedMappedType": None,
            "reverseMappedConstraintType": None,
        },
    )


def _generic_type_alias(p: PreparedRecord) -> NormalizedTypeRecord:
    return shape(
        p,
        "GenericTypeAlias",
        override={
            "instantiatedType": None,
            "aliasedType": p.get("instantiatedType"),
            "aliasedTypeTypeArguments": p.get("typeArguments"),
        },
    )


def _is_generic(p: PreparedRecord) -> bool:
    return p.has("instantiatedType") and bool(p.get("typeArguments"))


def _generic(p: PreparedRecord) -> NormalizedTypeRecord:
    if p.get("instantiatedType") == p.get("id"):
        return shape(p, "GenericType", override={"instantiatedType": None})
    return shape(p, "GenericInstantiation")


def _plain(kind: str) -> Build:
    return lambda p: shape(p, kind)


def _literal(kind: str) -> Build:
    return lambda p: shape(p, kind, lead={"value": p.display})


def _is_known_symbol(p: PreparedRecord) -> bool:
    return isinstance(p.name, str) and p.name.startswith("__@")


def _known_symbol(p: PreparedRecord) -> NormalizedTypeRecord:
    m = KNOWN_SYMBOL_RE.match(p.name)
    return shape(p, "KnownSymbol", override={"name": m.group(1) if m else p.name})


def _anonymous(kind: Optional[str] = None) -> Build:
    def build(p: PreparedRecord) -> NormalizedTypeRecord:
        k = kind or "Anonymous" + first_to_upper(p.name[2:])
        return shape(
            p,
            k,
            override={"display": None if p.has("location") else p.display, "name": None},
        )
    return build


def _is_named_object(p: PreparedRecord) -> bool:
    return "Object" in p.flags and bool(p.name)


def _is_jsx_element_signature(p: PreparedRecord) -> bool:
    d = p.display
    return isinstance(d, str) and d.startswith("(props:") and d.endswith("=> Element")


def _with_display(kind: str) -> Build:
    return lambda p: shape(p, kind, override={"display": p.display})


RULES: tuple[Rule, ...] = (
    Rule("Intrinsic", _has_field("intrinsicName"), _intrinsic),
    Rule("Union", _has_field("unionTypes"), _members("Union", "unionTypes")),
    Rule("Intersection", _has_field("intersectionTypes"), _members("Intersection", "intersectionTypes")),
    Rule("IndexedAccess", _has_field("indexedAccessObjectType"), _structural("IndexedAccess")),
    Rule("IndexType", _has_field("keyofType"), _structural("IndexType")),
    Rule("Tuple", lambda p: bool(p.get("isTuple")), _structural("Tuple", "isTuple")),
    Rule("ConditionalType", _has_field("conditionalCheckType"), _conditional),
    Rule("SubstitutionType", _has_field("substitutionBaseType"), _substitution),
    Rule("ReverseMappedType", _has_field("reverseMappedSourceType"), _reverse_mapped),
    Rule("GenericTypeAlias", _has_field("aliasTypeArguments"), _generic_type_alias),
    Rule("Generic", _is_generic, _generic),
    Rule("Destructuring", lambda p: p.is_destructuring, _plain("Destructuring")),
    Rule("StringLiteral", _has_flag("StringLiteral"), _literal("StringLiteral")),
    Rule("NumberLiteral", _has_flag("NumberLiteral"), _literal("NumberLiteral")),
    Rule("BigIntLiteral", _has_flag("BigIntLiteral"), _literal("BigIntLiteral")),
    Rule("TypeParameter", _has_flag("TypeParameter"), _plain("TypeParameter")),
    Rule("Unique", _has_flag("UniqueESSymbol"), _plain("Unique")),
    Rule("KnownSymbol", _is_known_symbol, _known_symbol),
    Rule("Anonymous", lambda p: p.name in ANONYMOUS_NAMES, _anonymous()),
    Rule("JsxAttributesType", lambda p: p.name == JSX_ATTRIBUTES_NAME, _anonymous("JsxAttributesType")),
    Rule("Object", _is_named_object, _plain("Object")),
    Rule("JsxElementSignature", _is_jsx_element_signature, _with_display("JsxElementSignature")),
    Rule("Other", lambda p: True, _with_display("Other")),
)

ALIASABLE_KINDS = (
    "Union",
    "Intersection",
    "IndexedAccess",
    "IndexType",
    "Tuple",
    "ConditionalType",
    "SubstitutionType",
    "ReverseMappedType",
)

# Every kind a rule can produce.
KINDS = frozenset(
    [r.kind for r in RULES if r.kind not in ("Anonymous", "Generic")]
    + ["Aliased" + k for k in ALIASABLE_KINDS]
    + ["Anonymous" + first_to_upper(n[2:]) for n in ANONYMOUS_NAMES]
    + ["GenericType", "GenericInstantiation"]
)


def classify(p: PreparedRecord) -> NormalizedTypeRecord:
    """Return the shape built by the first rule matching `p`."""
    return match_rule(p).build(p)


def match_rule(p: PreparedRecord) -> Rule:
    """Return the first rule matching `p`. The last rule always matches."""
    for rule in RULES[:-1]:
        if rule.matches(p):
            return rule
    return RULES[-1]
