"""Build endpoint metadata from the OpenAPI paths section.

Each (path, method) operation becomes one EndpointMetadata with a canonical
path of the form ``{path}:{intent}``. Canonical paths and names are unique
within one service.
"""

from __future__ import annotations

from typing import Any

from .errors import ConstraintError, ExtractionError
from .loader import get_paths, ref_name, resolve_ref
from .models import (
    DataType,
    EndpointMetadata,
    EndpointSemantics,
    InputParameter,
    OperationIntent,
    OutputKind,
    OutputResponse,
    ParameterKind,
    ServiceMetadata,
    TypeKind,
)
from .naming import build_operation_name, to_pascal_case, unique_name
from .schema_parser import (
    build_constraints,
    describe,
    is_complex_schema,
    map_type_kind,
    sanitize_default,
    schema_type,
    single_ref,
)

HTTP_METHODS = ("get", "put", "post", "delete", "patch", "head", "options", "trace")

_INTENTS: dict[str, OperationIntent] = {
    "get": OperationIntent.QUERY,
    "head": OperationIntent.QUERY,
    "options": OperationIntent.QUERY,
    "post": OperationIntent.CREATE,
    "put": OperationIntent.UPDATE,
    "patch": OperationIntent.UPDATE,
    "delete": OperationIntent.DELETE,
}

_SAFE_METHODS = {"get", "head", "options", "trace"}
_IDEMPOTENT_METHODS = _SAFE_METHODS | {"put", "delete"}

_PARAMETER_KINDS = {kind.value: kind for kind in ParameterKind if kind is not ParameterKind.BODY}


def classify_status(code: str) -> OutputKind:
    """Map a response status code (or 'default') to an OutputKind."""
    first = str(code)[:1]
    return {
        "1": OutputKind.INFORMATIONAL,
        "2": OutputKind.SUCCESS,
        "3": OutputKind.REDIRECT,
        "4": OutputKind.CLIENT_ERROR,
    }.get(first, OutputKind.SERVER_ERROR)


def describe_schema(
    spec: dict[str, Any],
    schema: dict[str, Any] | None,
    hint: str,
    known: dict[str, DataType],
    warnings: list[str],
    _seen: frozenset[str] = frozenset(),
) -> DataType | None:
    """DataType describing a parameter or body schema.

    References resolve to the already extracted type of that name when there
    is one. Arrays are described by their item type. A chain of references
    that loops back on itself raises ExtractionError.
    """
    if not isinstance(schema, dict) or not schema:
        return None
    ref = single_ref(schema)
    if ref is not None:
        name = ref_name(ref)
        if name in known:
            return known[name]
        if ref in _seen:
            raise ExtractionError(f"Circular reference {ref!r}")
        target = resolve_ref(spec, ref)
        if is_complex_schema(spec, target):
            return DataType(name, TypeKind.OBJECT, description=describe(target))
        return describe_schema(spec, target, name, known, warnings, _seen | {ref})

    declared = schema_type(schema)
    if declared == "array":
        return describe_schema(spec, schema.get("items"), f"{hint}Item", known, warnings, _seen)
    if declared == "object" or is_complex_schema(spec, schema):
        return DataType(to_pascal_case(hint), TypeKind.OBJECT, description=describe(schema))

    fmt = schema.get("format") if isinstance(schema.get("format"), str) else None
    kind = map_type_kind(declared, fmt)
    name = to_pascal_case(hint)
    return DataType(
        name=name,
        kind=kind,
        constraints=tuple(build_constraints(name, schema, kind, warnings)),
        description=describe(schema),
        format=fmt,
        default_value=sanitize_default(schema.get("default"), kind),
    )


def _resolve_parameter(spec: dict[str, Any], param: Any) -> dict[str, Any]:
    if isinstance(param, dict) and "$ref" in param:
        return resolve_ref(spec, param["$ref"])
    if not isinstance(param, dict):
        raise ExtractionError(f"parameter {param!r} is not an object")
    return param


def _merged_parameters(
    spec: dict[str, Any], path_item: dict[str, Any], operation: dict[str, Any],
) -> list[dict[str, Any]]:
    """Path-level parameters overridden by operation-level ones (by name + location)."""
    merged: dict[tuple[str, str], dict[str, Any]] = {}
    for raw in list(path_item.get("parameters") or []) + list(operation.get("parameters") or []):
        param = _resolve_parameter(spec, raw)
        merged[(param.get("name", ""), param.get("in", ""))] = param
    return list(merged.values())


def _build_inputs(
    spec: dict[str, Any],
    name: str,
    path_item: dict[str, Any],
    operation: dict[str, Any],
    known: dict[str, DataType],
    warnings: list[str],
) -> list[InputParameter]:
    inputs: list[InputParameter] = []
    base = to_pascal_case(name)

    for param in _merged_parameters(spec, path_item, operation):
        # YAML reads names like `on` or `no` as booleans
        param_name = param.get("name")
        param_name = str(param_name) if param_name is not None else None
        kind = _PARAMETER_KINDS.get(param.get("in", ""))
        if not param_name or kind is None:
            warnings.append(f"Endpoint '{name}': parameter {param_name!r} has no valid location; skipped")
            continue
        schema = param.get("schema") or {"type": "string"}
        data_type = describe_schema(
            spec, schema, f"{base}{to_pascal_case(param_name)}", known, warnings,
        )
        if data_type is None:
            continue
        inputs.append(InputParameter(
            name=param_name,
            data_type=data_type,
            kind=kind,
            is_required=bool(param.get("required")) or kind is ParameterKind.PATH,
            description=describe(param),
            default_value=sanitize_default(schema.get("default"), data_type.kind),
        ))

    body = operation.get("requestBody")
    if isinstance(body, dict) and "$ref" in body:
        body = resolve_ref(spec, body["$ref"])
    if isinstance(body, dict):
        content = body.get("content") or {}
        media = content.get("application/json") or next(iter(content.values()), None)
        schema = media.get("schema") if isinstance(media, dict) else None
        data_type = describe_schema(spec, schema, f"{base}Body", known, warnings)
        if data_type is not None:
            inputs.append(InputParameter(
                name="body",
                data_type=data_type,
                kind=ParameterKind.BODY,
                is_required=bool(body.get("required")),
                description=describe(body),
            ))
    return inputs


def _build_outputs(
    spec: dict[str, Any],
    name: str,
    operation: dict[str, Any],
    known: dict[str, DataType],
    warnings: list[str],
) -> list[OutputResponse]:
    outputs: list[OutputResponse] = []
    base = to_pascal_case(name)
    for code, response in (operation.get("responses") or {}).items():
        if isinstance(response, dict) and "$ref" in response:
            response = resolve_ref(spec, response["$ref"])
        if not isinstance(response, dict):
            continue
        content = response.get("content") or {}
        media = content.get("application/json") or next(iter(content.values()), None)
        schema = media.get("schema") if isinstance(media, dict) else None
        outputs.append(OutputResponse(
            name=str(code),
            kind=classify_status(str(code)),
            data_type=describe_schema(spec, schema, f"{base}{code}Response", known, warnings),
            description=describe(response),
        ))
    return outputs


def _deduplicate(endpoints: list[dict[str, Any]], key: str) -> None:
    """Ensure all values of ``key`` are unique by appending method suffix if needed."""
    seen: set[str] = set()
    for endpoint in endpoints:
        value = endpoint[key]
        if value in seen:
            separator = ":" if key == "path" else "_"
            endpoint[key] = f"{value}{separator}{endpoint['method']}"
        seen.add(endpoint[key])

    final_seen: set[str] = set()
    for endpoint in endpoints:
        endpoint[key] = unique_name(endpoint[key], final_seen)
        final_seen.add(endpoint[key])


def extract_endpoints(
    spec: dict[str, Any],
    known: dict[str, DataType] | None = None,
    warnings: list[str] | None = None,
) -> tuple[EndpointMetadata, ...]:
    """Build EndpointMetadata for every operation, in document order."""
    known = known or {}
    warnings = warnings if warnings is not None else []
    global_security = bool(spec.get("security"))
    drafts: list[dict[str, Any]] = []

    for http_path, path_item in get_paths(spec).items():
        if not isinstance(path_item, dict):
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            operation_id = operation.get("operationId")
            name = str(operation_id) if operation_id else build_operation_name(method, http_path)
            intent = _INTENTS.get(method, OperationIntent.CUSTOM)
            try:
                inputs = _build_inputs(spec, name, path_item, operation, known, warnings)
                outputs = _build_outputs(spec, name, operation, known, warnings)
            except (ExtractionError, ConstraintError) as e:
                warnings.append(f"Failed to extract endpoint '{method.upper()} {http_path}': {e}")
                continue

            security = operation.get("security")
            requires_auth = bool(security) if security is not None else global_security
            tags = operation.get("tags") or []
            drafts.append({
                "name": name,
                "path": f"{http_path}:{intent.value}",
                "method": method,
                "http_path": http_path,
                "inputs": tuple(inputs),
                "outputs": tuple(outputs),
                "description": describe(operation) or operation.get("summary") or None,
                "semantics": EndpointSemantics(
                    intent=intent,
                    is_safe=method in _SAFE_METHODS,
                    is_idempotent=method in _IDEMPOTENT_METHODS,
                    requires_authentication=requires_auth,
                    is_deprecated=bool(operation.get("deprecated")),
                    tags=tuple(str(t) for t in tags),
                ),
            })

    _deduplicate(drafts, "path")
    _deduplicate(drafts, "name")

    return tuple(
        EndpointMetadata(
            name=d["name"],
            path=d["path"],
            semantics=d["semantics"],
            inputs=d["inputs"],
            outputs=d["outputs"],
            description=d["description"],
            extensions={"http-method": d["method"].upper(), "http-path": d["http_path"]},
        )
        for d in drafts
    )


def extract_service(
    spec: dict[str, Any],
    known: dict[str, DataType] | None = None,
    warnings: list[str] | None = None,
) -> ServiceMetadata:
    """Service-level metadata (title, version) with all endpoints."""
    info = spec.get("info") or {}
    return ServiceMetadata(
        name=str(info.get("title") or "Service"),
        version=str(info.get("version") or "unknown"),
        description=describe(info),
        endpoints=extract_endpoints(spec, known, warnings),
    )
