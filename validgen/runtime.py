"""Support code imported by generated Python modules.

Generated wrapper types raise :class:`ValidationError` from ``create`` and
carry the :func:`validated` marker.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Sequence


class ValidationError(ValueError):
    """A value (or DTO) was rejected by a validated type."""

    def __init__(self, type_name: str, value: Any, reasons: Sequence[str] = ()) -> None:
        self.type_name = type_name
        self.value = value
        self.reasons = tuple(reasons)
        message = f"Invalid {type_name}: {value!r}"
        if self.reasons:
            message += " (" + "; ".join(self.reasons) + ")"
        super().__init__(message)


def validated(cls: type | None = None, *, dto: str | None = None):
    """Mark a generated class as a validated type.

    Usable bare (``@validated``) or with the name of the boundary type it is
    built from (``@validated(dto="PetDTO")``).
    """

    def mark(target: type) -> type:
        target.__validated__ = True
        target.__dto__ = dto
        return target

    if cls is not None:
        return mark(cls)
    return mark


def is_validated_type(obj: Any) -> bool:
    """True for classes (or instances of classes) carrying the marker."""
    cls = obj if isinstance(obj, type) else type(obj)
    return getattr(cls, "__validated__", False) is True


# ---------------------------------------------------------------------------
# Helpers for generated models
# ---------------------------------------------------------------------------

def build_field(
    failures: list[str],
    name: str,
    raw: Any,
    factory: Callable[[Any], Any],
    *,
    nullable: bool,
    collection: bool = False,
) -> Any:
    """Validate one raw field value with ``factory`` (a ``try_create``).

    Failures are appended to ``failures``; the return value is only meaningful
    when none were added.
    """
    if raw is None:
        if not nullable:
            failures.append(f"{name}: value is required")
        return None

    if collection:
        if not isinstance(raw, (list, tuple)):
            failures.append(f"{name}: expected a list, got {type(raw).__name__}")
            return None
        items = []
        for index, item in enumerate(raw):
            built = factory(item)
            if built is None:
                failures.append(f"{name}[{index}]: invalid value {item!r}")
            items.append(built)
        return tuple(items)

    built = factory(raw)
    if built is None:
        failures.append(f"{name}: invalid value {raw!r}")
    return built


def unwrap(value: Any) -> Any:
    """Raw boundary value of a validated field (models become DTOs)."""
    if value is None:
        return None
    if isinstance(value, tuple):
        return [unwrap(item) for item in value]
    if hasattr(value, "to_dto"):
        return value.to_dto()
    return value.value


# ---------------------------------------------------------------------------
# Helpers for generated DTOs
# ---------------------------------------------------------------------------

def parse_datetime(value: str) -> Any:
    """Parse an ISO 8601 timestamp; unparseable text is returned unchanged."""
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return value


def from_wire(value: Any, *, dto: type | None = None, is_datetime: bool = False) -> Any:
    """Decode a JSON value into a DTO field value.

    Nothing is validated here: values of the wrong shape are kept as they are
    so the validated model can reject them.
    """
    if isinstance(value, list):
        return [from_wire(item, dto=dto, is_datetime=is_datetime) for item in value]
    if dto is not None and isinstance(value, dict):
        return dto.from_dict(value)
    if is_datetime and isinstance(value, str):
        return parse_datetime(value)
    return value


def to_wire(value: Any) -> Any:
    """Encode a DTO field value as a JSON-ready value."""
    if isinstance(value, list):
        return [to_wire(item) for item in value]
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, datetime):
        return value.isoformat()
    return value
