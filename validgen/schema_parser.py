"""Inspect OpenAPI schema objects.

Handles:
- scalar type + format -> TypeKind lookup
- simple / complex classification
- validation facets -> Constraint translation
- $ref resolution and allOf merging of object shapes
- nullable (3.0 flag and 3.1 type lists)
- HTML stripping for descriptions
- Large integer sanitization for defaults (>= 2^53)
"""

from __future__ import annotations

import re
from typing import Any

from .errors import ExtractionError
from .loader import resolve_ref
from .models import (
    AllowedValues,
    BoundaryMode,
    Constraint,
    Maximum,
    MaximumLength,
    Minimum,
    MinimumLength,
    Pattern,
    TypeKind,
)

# Sentinel: integers >= 2^53 are unsafe for JSON serialization
MAX_SAFE_INT = 2**53

SCALAR_TYPES = frozenset({"string", "integer", "number", "boolean"})

_VALUE_FACETS = ("pattern", "minLength", "maxLength", "minimum", "maximum", "format", "enum")

_KIND_TABLE: dict[tuple[str, str | None], TypeKind] = {
    ("string", "date-time"): TypeKind.DATETIME,
    ("string", "date"): TypeKind.DATETIME,
    ("string", "byte"): TypeKind.BYTE,
    ("integer", "int32"): TypeKind.INT32,
    ("integer", "int64"): TypeKind.INT64,
    ("number", "float"): TypeKind.FLOAT32,
    ("number", "double"): TypeKind.FLOAT64,
}

_DEFAULT_KINDS: dict[str, TypeKind] = {
    "string": TypeKind.STRING,
    "integer": TypeKind.INT32,
    "number": TypeKind.DECIMAL,
    "boolean": TypeKind.BOOLEAN,
    "object": TypeKind.OBJECT,
    "array": TypeKind.OBJECT,
}


def strip_html(text: str) -> str:
    """Strip HTML tags and collapse whitespace."""
    text = re.sub(r"<[^>]+>", "", text)
    return re.sub(r"[ \t]+", " ", text).strip()


def describe(schema: dict[str, Any]) -> str | None:
    """Cleaned description of a schema, or None when absent or blank."""
    description = schema.get("description")
    if not isinstance(description, str):
        return None
    description = strip_html(description)
    return description or None


def sanitize_default(value: Any, kind: TypeKind | None = None) -> Any:
    """Sanitize default values: replace unsafe large integers with None.

    int64 defaults keep their value while it fits in 64 bits, and decimal
    defaults are always kept. Any other integer >= 2^53 cannot round-trip
    through a JSON number and is dropped.
    """
    if not isinstance(value, int) or isinstance(value, bool) or abs(value) < MAX_SAFE_INT:
        return value
    if kind is TypeKind.DECIMAL:
        return value
    if kind is TypeKind.INT64 and -(2**63) <= value < 2**63:
        return value
    return None


def schema_type(schema: dict[str, Any]) -> str | None:
    """The declared type, ignoring a 3.1 "null" member.

    Schemas with properties but no type are treated as objects.
    """
    declared = schema.get("type")
    if isinstance(declared, list):
        members = [t for t in declared if t != "null"]
        declared = members[0] if len(members) == 1 else None
    if declared is None and "properties" in schema:
        return "object"
    return declared if isinstance(declared, str) else None


def is_nullable(schema: dict[str, Any]) -> bool:
    declared = schema.get("type")
    return schema.get("nullable") is True or (isinstance(declared, list) and "null" in declared)


def map_type_kind(type_name: str | None, format_name: str | None = None) -> TypeKind:
    """Map an OpenAPI (type, format) pair to a TypeKind."""
    t = (type_name or "").lower()
    f = format_name.lower() if isinstance(format_name, str) else None
    if (t, f) in _KIND_TABLE:
        return _KIND_TABLE[(t, f)]
    return _DEFAULT_KINDS.get(t, TypeKind.STRING)


def _has_numeric_exclusive(schema: dict[str, Any], key: str) -> bool:
    value = schema.get(key)
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_simple_schema(schema: dict[str, Any]) -> bool:
    """A scalar schema carrying at least one validation facet."""
    if schema.get("properties"):
        return False
    if schema_type(schema) not in SCALAR_TYPES:
        return False
    return (
        any(schema.get(facet) is not None for facet in _VALUE_FACETS)
        or _has_numeric_exclusive(schema, "exclusiveMinimum")
        or _has_numeric_exclusive(schema, "exclusiveMaximum")
    )


def is_plain_scalar(schema: dict[str, Any]) -> bool:
    """A scalar schema without any facet."""
    return schema_type(schema) in SCALAR_TYPES and not is_simple_schema(schema)


def object_shape(
    spec: dict[str, Any], schema: dict[str, Any], _seen: frozenset[str] = frozenset(),
) -> tuple[dict[str, Any], list[str]]:
    """Properties and required names of an object schema, merging allOf members."""
    properties: dict[str, Any] = {}
    required: list[str] = []

    for sub in schema.get("allOf") or []:
        if not isinstance(sub, dict):
            continue
        if "$ref" in sub:
            if sub["$ref"] in _seen:
                raise ExtractionError(f"Circular allOf reference {sub['$ref']!r}")
            seen = _seen | {sub["$ref"]}
            sub = resolve_ref(spec, sub["$ref"])
        else:
            seen = _seen
        sub_props, sub_required = object_shape(spec, sub, seen)
        properties.update(sub_props)
        required.extend(r for r in sub_required if r not in required)

    own = schema.get("properties") or {}
    if not isinstance(own, dict):
        raise ExtractionError("'properties' must be a mapping")
    # YAML reads keys like `on`, `off`, `yes` and `no` as booleans
    properties.update((str(key), value) for key, value in own.items())
    own_required = schema.get("required") or []
    if not isinstance(own_required, list):
        raise ExtractionError("'required' must be a list")
    required.extend(str(r) for r in own_required if str(r) not in required)
    return properties, required


def is_complex_schema(spec: dict[str, Any], schema: dict[str, Any]) -> bool:
    """An object schema (possibly via allOf) with at least one property."""
    if schema.get("allOf"):
        if schema_type(schema) not in (None, "object"):
            return False
        try:
            properties, _ = object_shape(spec, schema)
        except ExtractionError:
            # Broken allOf members still classify as complex so the
            # extractor reports the failure against this schema.
            return True
        return bool(properties)
    return schema_type(schema) == "object" and bool(schema.get("properties"))


def single_ref(schema: dict[str, Any]) -> str | None:
    """The $ref of a schema, including the `allOf: [{$ref}]` wrapper idiom."""
    if "$ref" in schema:
        return schema["$ref"]
    members = schema.get("allOf")
    if (
        isinstance(members, list) and len(members) == 1
        and isinstance(members[0], dict) and "$ref" in members[0]
        and not schema.get("properties")
    ):
        return members[0]["$ref"]
    return None


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def build_constraints(
    name: str, schema: dict[str, Any], kind: TypeKind, warnings: list[str],
) -> list[Constraint]:
    """Translate the validation facets of a scalar schema into constraints.

    Invalid regular expressions and facets that do not apply to the kind are
    dropped with a warning. Invalid facet values raise ConstraintError.
    """
    constraints: list[Constraint] = []

    def ignored(facet: str) -> None:
        warnings.append(
            f"Schema '{name}': '{facet}' does not apply to {kind.value} values; ignored"
        )

    # Textual facets apply to string and byte kinds only. Date and date-time
    # wrappers hold parsed datetimes, so pattern and length facets on them are
    # dropped with a warning.
    pattern = schema.get("pattern")
    if pattern is not None:
        if not kind.is_textual:
            ignored("pattern")
        else:
            try:
                re.compile(pattern)
            except (re.error, TypeError) as e:
                warnings.append(f"Schema '{name}': invalid pattern {pattern!r} dropped ({e})")
            else:
                constraints.append(Pattern(pattern))

    for facet, constraint_type in (("minLength", MinimumLength), ("maxLength", MaximumLength)):
        value = schema.get(facet)
        if value is None:
            continue
        if not kind.is_textual:
            ignored(facet)
            continue
        constraints.append(constraint_type(value))

    for facet, exclusive_facet, constraint_type in (
        ("minimum", "exclusiveMinimum", Minimum),
        ("maximum", "exclusiveMaximum", Maximum),
    ):
        value = schema.get(facet)
        exclusive = schema.get(exclusive_facet)
        if value is None and not _is_number(exclusive):
            continue
        if not kind.is_numeric:
            ignored(facet if value is not None else exclusive_facet)
            continue
        if value is not None:
            mode = BoundaryMode.EXCLUSIVE if exclusive is True else BoundaryMode.INCLUSIVE
            constraints.append(constraint_type(value, mode))
        if _is_number(exclusive):
            constraints.append(constraint_type(exclusive, BoundaryMode.EXCLUSIVE))

    values = schema.get("enum")
    if values is not None:
        if not isinstance(values, list):
            warnings.append(f"Schema '{name}': 'enum' must be a list; ignored")
        else:
            allowed = tuple(v for v in values if v is not None)
            if allowed:
                constraints.append(AllowedValues(allowed))

    _check_satisfiable(name, constraints, warnings)
    return constraints


def _check_satisfiable(name: str, constraints: list[Constraint], warnings: list[str]) -> None:
    """Warn about constraint sets no value can satisfy; the type is kept."""
    min_lengths = [c.length for c in constraints if isinstance(c, MinimumLength)]
    max_lengths = [c.length for c in constraints if isinstance(c, MaximumLength)]
    if min_lengths and max_lengths and max(min_lengths) > min(max_lengths):
        warnings.append(
            f"Schema '{name}': minLength {max(min_lengths)} exceeds maxLength "
            f"{min(max_lengths)}; no value can satisfy it"
        )

    lows = [c for c in constraints if isinstance(c, Minimum)]
    highs = [c for c in constraints if isinstance(c, Maximum)]
    for low in lows:
        for high in highs:
            if low.value > high.value or (
                low.value == high.value and (low.exclusive or high.exclusive)
            ):
                warnings.append(
                    f"Schema '{name}': minimum {low.value} and maximum {high.value} "
                    "leave no valid value"
                )
                return
