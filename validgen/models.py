"""Protocol-agnostic metadata model.

Everything here is created once per pipeline run, read by the refiner and the
code generators, and thrown away afterwards. All types are frozen; the refiner
produces new instances instead of mutating.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Union

from .errors import ConstraintError

Number = Union[int, float, Decimal]


class TypeKind(Enum):
    """Semantic scalar kind of a data type (not a source-language type)."""

    STRING = "string"
    INT32 = "int32"
    INT64 = "int64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    BYTE = "byte"
    OBJECT = "object"

    @property
    def is_numeric(self) -> bool:
        return self in _NUMERIC_KINDS

    @property
    def is_textual(self) -> bool:
        return self in (TypeKind.STRING, TypeKind.BYTE)


_NUMERIC_KINDS = frozenset({
    TypeKind.INT32, TypeKind.INT64, TypeKind.FLOAT32,
    TypeKind.FLOAT64, TypeKind.DECIMAL,
})


class BoundaryMode(Enum):
    INCLUSIVE = "inclusive"
    EXCLUSIVE = "exclusive"


class ModelKind(Enum):
    ENTITY = "entity"
    REQUEST = "request"
    RESPONSE = "response"
    DTO = "dto"
    EVENT = "event"


# Suffix -> kind, checked in order (case-insensitive)
_KIND_SUFFIXES: tuple[tuple[str, ModelKind], ...] = (
    ("request", ModelKind.REQUEST),
    ("command", ModelKind.REQUEST),
    ("response", ModelKind.RESPONSE),
    ("result", ModelKind.RESPONSE),
    ("dto", ModelKind.DTO),
    ("event", ModelKind.EVENT),
)


def infer_model_kind(name: str) -> ModelKind:
    """Guess the model kind from its name suffix.

    This is a naming convention only; nothing should branch on it for
    correctness.
    """
    lower = name.lower()
    for suffix, kind in _KIND_SUFFIXES:
        if lower.endswith(suffix):
            return kind
    return ModelKind.ENTITY


# ---------------------------------------------------------------------------
# Constraints
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Pattern:
    regex: str

    def __post_init__(self) -> None:
        if not isinstance(self.regex, str) or not self.regex:
            raise ConstraintError("Pattern requires a non-empty regular expression")


@dataclass(frozen=True)
class MinimumLength:
    length: int

    def __post_init__(self) -> None:
        _check_length("MinimumLength", self.length)


@dataclass(frozen=True)
class MaximumLength:
    length: int

    def __post_init__(self) -> None:
        _check_length("MaximumLength", self.length)


@dataclass(frozen=True)
class Minimum:
    value: Number
    mode: BoundaryMode = BoundaryMode.INCLUSIVE

    def __post_init__(self) -> None:
        _check_bound("Minimum", self.value)

    @property
    def exclusive(self) -> bool:
        return self.mode is BoundaryMode.EXCLUSIVE


@dataclass(frozen=True)
class Maximum:
    value: Number
    mode: BoundaryMode = BoundaryMode.INCLUSIVE

    def __post_init__(self) -> None:
        _check_bound("Maximum", self.value)

    @property
    def exclusive(self) -> bool:
        return self.mode is BoundaryMode.EXCLUSIVE


@dataclass(frozen=True)
class Required:
    pass


@dataclass(frozen=True)
class AllowedValues:
    allowed_values: tuple[Any, ...]

    def __post_init__(self) -> None:
        if not self.allowed_values:
            raise ConstraintError("AllowedValues requires at least one value")


Constraint = Union[Pattern, MinimumLength, MaximumLength, Minimum, Maximum, Required, AllowedValues]

CONSTRAINT_TYPES: tuple[type, ...] = (
    Pattern, MinimumLength, MaximumLength, Minimum, Maximum, Required, AllowedValues,
)


def _check_length(kind: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConstraintError(f"{kind} must be an integer, got {value!r}")
    if value < 0:
        raise ConstraintError(f"{kind} must be >= 0, got {value}")


def _check_bound(kind: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ConstraintError(f"{kind} must be numeric, got {value!r}")


# ---------------------------------------------------------------------------
# Types and models
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DataType:
    """A named, possibly constrained scalar type, or a by-name model reference."""

    name: str
    kind: TypeKind
    constraints: tuple[Constraint, ...] = ()
    description: str | None = None
    format: str | None = None
    default_value: Any = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ConstraintError("DataType requires a name")
        for constraint in self.constraints:
            if not isinstance(constraint, CONSTRAINT_TYPES):
                raise ConstraintError(
                    f"DataType {self.name}: unknown constraint {constraint!r}"
                )

    @property
    def is_validated(self) -> bool:
        return bool(self.constraints)

    @property
    def is_reference(self) -> bool:
        """True for an opaque by-name reference to a composite model."""
        return self.kind is TypeKind.OBJECT

    def constraint(self, constraint_type: type) -> Constraint | None:
        for constraint in self.constraints:
            if isinstance(constraint, constraint_type):
                return constraint
        return None


@dataclass(frozen=True)
class FieldMetadata:
    """One field of a composite model.

    For collection fields ``data_type`` is the element type, so
    ``collection_element_type`` is always the same object.
    """

    name: str
    data_type: DataType
    is_required: bool = False
    is_nullable: bool = True
    is_read_only: bool = False
    is_collection: bool = False
    collection_element_type: DataType | None = None
    description: str | None = None
    original_name: str = ""
    default_value: Any = None

    def __post_init__(self) -> None:
        if self.is_collection and self.collection_element_type is None:
            raise ConstraintError(
                f"Field {self.name}: collection fields need an element type"
            )
        if not self.is_collection and self.collection_element_type is not None:
            raise ConstraintError(
                f"Field {self.name}: element type given for a non-collection field"
            )
        if not self.original_name:
            object.__setattr__(self, "original_name", self.name)


@dataclass(frozen=True)
class ModelMetadata:
    """A named composite of ordered fields."""

    name: str
    fields: tuple[FieldMetadata, ...]
    kind: ModelKind = ModelKind.ENTITY
    description: str | None = None
    namespace_hint: str | None = None

    def __post_init__(self) -> None:
        if not self.fields:
            raise ConstraintError(f"Model {self.name} must declare at least one field")

    def get_field(self, name: str) -> FieldMetadata | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass(frozen=True)
class GenerationInput:
    """Immutable bundle handed to the refiner and the generators."""

    data_types: tuple[DataType, ...] = ()
    models: tuple[ModelMetadata, ...] = ()

    @classmethod
    def of(cls, data_types=(), models=()) -> GenerationInput:
        return cls(tuple(data_types), tuple(models))


@dataclass(frozen=True)
class TargetDescriptor:
    language: str
    display_name: str
    file_extension: str


@dataclass(frozen=True)
class GeneratedArtifact:
    name: str
    relative_path: str
    content: str
    target: TargetDescriptor


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

class ParameterKind(Enum):
    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"
    BODY = "body"


class OutputKind(Enum):
    SUCCESS = "success"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    REDIRECT = "redirect"
    INFORMATIONAL = "informational"


class OperationIntent(Enum):
    QUERY = "query"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    CUSTOM = "custom"


@dataclass(frozen=True)
class InputParameter:
    name: str
    data_type: DataType
    kind: ParameterKind
    is_required: bool = False
    description: str | None = None
    default_value: Any = None


@dataclass(frozen=True)
class OutputResponse:
    name: str
    kind: OutputKind
    data_type: DataType | None = None
    description: str | None = None


@dataclass(frozen=True)
class EndpointSemantics:
    intent: OperationIntent
    is_safe: bool = False
    is_idempotent: bool = False
    requires_authentication: bool = False
    is_deprecated: bool = False
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class EndpointMetadata:
    name: str
    path: str
    semantics: EndpointSemantics
    inputs: tuple[InputParameter, ...] = ()
    outputs: tuple[OutputResponse, ...] = ()
    description: str | None = None
    extensions: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class ServiceMetadata:
    name: str
    version: str
    description: str | None = None
    endpoints: tuple[EndpointMetadata, ...] = ()

    def get_endpoint(self, path: str) -> EndpointMetadata | None:
        """Look an endpoint up by canonical path."""
        for endpoint in self.endpoints:
            if endpoint.path == path:
                return endpoint
        return None

    def endpoints_for_http_path(self, http_path: str) -> list[EndpointMetadata]:
        return [
            e for e in self.endpoints
            if e.extensions.get("http-path") == http_path
        ]


@dataclass(frozen=True)
class ExtractionResult:
    data_types: tuple[DataType, ...] = ()
    models: tuple[ModelMetadata, ...] = ()
    warnings: tuple[str, ...] = ()
    endpoints: tuple[EndpointMetadata, ...] = ()
    service: ServiceMetadata | None = None

    def to_generation_input(self) -> GenerationInput:
        return GenerationInput(self.data_types, self.models)
