"""Extract the metadata model from a parsed OpenAPI document.

Named component schemas are walked in document order:
- simple schemas (constrained scalars) become DataType entries
- complex schemas (objects with properties, allOf merges) become ModelMetadata
- anything else is skipped with a warning

Failures are contained per schema and reported as warnings; the result always
holds whatever could be extracted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .endpoints import extract_service
from .errors import ConstraintError, ExtractionError
from .loader import get_schemas, ref_name, resolve_ref
from .log import get_logger
from .models import (
    DataType,
    ExtractionResult,
    FieldMetadata,
    ModelMetadata,
    TypeKind,
    infer_model_kind,
)
from .naming import to_pascal_case, unique_name
from .schema_parser import (
    build_constraints,
    describe,
    is_complex_schema,
    is_nullable,
    is_plain_scalar,
    is_simple_schema,
    map_type_kind,
    object_shape,
    sanitize_default,
    schema_type,
    single_ref,
)

logger = get_logger(__name__)


@dataclass
class _Pending:
    """Types produced while extracting one model, committed only on success."""

    data_types: list[DataType] = field(default_factory=list)
    models: list[ModelMetadata] = field(default_factory=list)


class _UnavailableModel(ExtractionError):
    """A property references a named model that failed to extract."""

    def __init__(self, name: str) -> None:
        super().__init__(f"referenced model '{name}' could not be extracted")
        self.name = name


class _Extraction:
    """State for one extraction run. Never shared between runs.

    ``unavailable`` names complex schemas known to fail; properties that
    reference them are dropped instead of pointing at a type that is never
    generated.
    """

    def __init__(self, spec: dict[str, Any], unavailable: frozenset[str] = frozenset()) -> None:
        self.spec = spec
        self.schemas = get_schemas(spec)
        self.unavailable = unavailable
        self.warnings: list[str] = []
        self.data_types: list[DataType] = []
        self.models: list[ModelMetadata] = []
        self.failed_models: set[str] = set()
        self._memo: dict[str, DataType] = {}
        self._emitted: set[str] = set()
        # Inline names must not collide with any named schema
        self._taken: set[str] = {str(name) for name in self.schemas}

    # -- named schemas -----------------------------------------------------

    def run(self) -> None:
        for name, schema in self.schemas.items():
            name = str(name)
            if not isinstance(schema, dict):
                self.warnings.append(f"Schema '{name}' is not a schema object; skipped")
                continue
            try:
                self._extract_named(name, schema)
            except (ExtractionError, ConstraintError) as e:
                self.warnings.append(f"Failed to extract schema '{name}': {e}")
            except Exception as e:
                logger.debug("Unexpected failure extracting %r", name, exc_info=True)
                self.warnings.append(
                    f"Failed to extract schema '{name}': unexpected {type(e).__name__}: {e}"
                )

    def _extract_named(self, name: str, schema: dict[str, Any]) -> None:
        if is_simple_schema(schema):
            self._emit_type(self._named_data_type(name, schema))
        elif is_complex_schema(self.spec, schema):
            # Counted as failed until the model is committed
            self.failed_models.add(name)
            pending = _Pending()
            model = self._build_model(name, schema, pending)
            pending.models.append(model)
            self._commit(pending)
            self.failed_models.discard(name)
        elif is_plain_scalar(schema):
            self.warnings.append(
                f"Schema '{name}' has no validation facets; skipped "
                "(emitted only where a model references it)"
            )
        else:
            self.warnings.append(
                f"Schema '{name}' is neither a constrained scalar nor an object "
                "with properties; skipped"
            )

    def _commit(self, pending: _Pending) -> None:
        for data_type in pending.data_types:
            self._emit_type(data_type)
        self.models.extend(pending.models)

    def _emit_type(self, data_type: DataType) -> None:
        if data_type.name not in self._emitted:
            self._emitted.add(data_type.name)
            self.data_types.append(data_type)

    def _named_data_type(self, name: str, schema: dict[str, Any]) -> DataType:
        """Memoized DataType for a named scalar schema (one object per name)."""
        if name not in self._memo:
            self._memo[name] = self._scalar_data_type(name, schema)
        return self._memo[name]

    def _scalar_data_type(self, name: str, schema: dict[str, Any]) -> DataType:
        fmt = schema.get("format") if isinstance(schema.get("format"), str) else None
        kind = map_type_kind(schema_type(schema), fmt)
        constraints = build_constraints(name, schema, kind, self.warnings)
        return DataType(
            name=name,
            kind=kind,
            constraints=tuple(constraints),
            description=describe(schema),
            format=fmt,
            default_value=sanitize_default(schema.get("default"), kind),
        )

    # -- models ------------------------------------------------------------

    def _build_model(
        self, name: str, schema: dict[str, Any], pending: _Pending,
    ) -> ModelMetadata:
        properties, required = object_shape(self.spec, schema)
        fields: list[FieldMetadata] = []

        for prop_name, prop_schema in properties.items():
            if not isinstance(prop_schema, dict):
                self.warnings.append(f"Property '{name}.{prop_name}' is not a schema; skipped")
                continue
            try:
                resolved = self._resolve_field(name, prop_name, prop_schema, pending)
            except _UnavailableModel as e:
                self.warnings.append(
                    f"Property '{name}.{prop_name}' references schema '{e.name}', "
                    "which could not be extracted; skipped"
                )
                continue
            if resolved is None:
                self.warnings.append(
                    f"Property '{name}.{prop_name}' has no extractable type "
                    "(free-form object or unsupported shape); skipped"
                )
                continue
            data_type, is_collection = resolved
            is_required = prop_name in required
            fields.append(FieldMetadata(
                name=prop_name,
                data_type=data_type,
                is_required=is_required,
                is_nullable=is_nullable(prop_schema) or not is_required,
                is_read_only=bool(prop_schema.get("readOnly")),
                is_collection=is_collection,
                collection_element_type=data_type if is_collection else None,
                description=describe(prop_schema) or data_type.description,
                original_name=prop_name,
                default_value=sanitize_default(prop_schema.get("default"), data_type.kind),
            ))

        if not fields:
            raise ExtractionError(f"model '{name}' has no extractable fields")

        return ModelMetadata(
            name=name,
            fields=tuple(fields),
            kind=infer_model_kind(name),
            description=describe(schema),
        )

    def _resolve_field(
        self, owner: str, prop_name: str, schema: dict[str, Any], pending: _Pending,
    ) -> tuple[DataType, bool] | None:
        """Resolve a property to (data type, is_collection)."""
        effective = schema
        ref = single_ref(schema)
        if ref is not None:
            target = resolve_ref(self.spec, ref)
            if schema_type(target) == "array":
                effective = target

        if schema_type(effective) == "array":
            items = effective.get("items")
            if not isinstance(items, dict) or not items:
                raise ExtractionError(f"array property '{owner}.{prop_name}' has no item schema")
            hint = str(items.get("title") or f"{owner}{to_pascal_case(prop_name)}Item")
            element = self._resolve_type(hint, items, pending)
            return (element, True) if element is not None else None

        hint = str(schema.get("title") or f"{owner}{to_pascal_case(prop_name)}")
        element = self._resolve_type(hint, schema, pending)
        return (element, False) if element is not None else None

    def _resolve_type(
        self, hint: str, schema: dict[str, Any], pending: _Pending,
    ) -> DataType | None:
        ref = single_ref(schema)
        if ref is not None:
            return self._resolve_reference(ref, pending)

        if is_simple_schema(schema) or is_plain_scalar(schema):
            data_type = self._scalar_data_type(self._inline_name(hint), schema)
            pending.data_types.append(data_type)
            return data_type

        if is_complex_schema(self.spec, schema):
            name = self._inline_name(hint)
            pending.models.append(self._build_model(name, schema, pending))
            return DataType(name, TypeKind.OBJECT, description=describe(schema))

        return None

    def _resolve_reference(self, ref: str, pending: _Pending) -> DataType | None:
        name = ref_name(ref)
        target = resolve_ref(self.spec, ref)

        if is_simple_schema(target):
            # Emitted at its own document position
            return self._named_data_type(name, target)
        if is_complex_schema(self.spec, target):
            if name in self.unavailable:
                raise _UnavailableModel(name)
            return DataType(name, TypeKind.OBJECT, description=describe(target))
        if is_plain_scalar(target):
            data_type = self._named_data_type(name, target)
            if data_type.name not in self._emitted:
                pending.data_types.append(data_type)
            return data_type
        return None

    def _inline_name(self, hint: str) -> str:
        name = unique_name(to_pascal_case(hint), self._taken)
        self._taken.add(name)
        return name


def _extract(spec: dict[str, Any]) -> _Extraction:
    """Run extraction until no further model fails.

    A model that fails makes every property referencing it unavailable, which
    can leave a referencing model without fields. Each pass starts from fresh
    state with the failures found so far; the set only grows, so this ends.
    """
    unavailable: frozenset[str] = frozenset()
    while True:
        run = _Extraction(spec, unavailable)
        run.run()
        if run.failed_models <= unavailable:
            return run
        unavailable = unavailable | run.failed_models


def extract_data_types_and_models(spec: dict[str, Any]) -> ExtractionResult:
    """Extract data types and models only (no endpoint metadata)."""
    run = _extract(spec)
    return ExtractionResult(
        data_types=tuple(run.data_types),
        models=tuple(run.models),
        warnings=tuple(run.warnings),
    )


def extract_metadata(spec: dict[str, Any], include_endpoints: bool = True) -> ExtractionResult:
    """Extract the full metadata model from a parsed OpenAPI document.

    Never raises for per-schema problems; those end up in ``warnings``.
    """
    run = _extract(spec)

    service = None
    endpoints: tuple = ()
    if include_endpoints:
        known = {dt.name: dt for dt in run.data_types}
        known.update({m.name: DataType(m.name, TypeKind.OBJECT, description=m.description)
                      for m in run.models})
        service = extract_service(spec, known, run.warnings)
        endpoints = service.endpoints

    logger.debug(
        "Extracted %d data types, %d models, %d endpoints (%d warnings)",
        len(run.data_types), len(run.models), len(endpoints), len(run.warnings),
    )
    return ExtractionResult(
        data_types=tuple(run.data_types),
        models=tuple(run.models),
        warnings=tuple(run.warnings),
        endpoints=endpoints,
        service=service,
    )
