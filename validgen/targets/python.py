"""Python target: validated wrapper classes, frozen models and dataclass DTOs."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from ..config import GenerationOptions
from ..models import (
    AllowedValues,
    Constraint,
    DataType,
    FieldMetadata,
    GenerationInput,
    Maximum,
    MaximumLength,
    Minimum,
    MinimumLength,
    ModelMetadata,
    Pattern,
    Required,
    TargetDescriptor,
    TypeKind,
)
from ..naming import PYTHON_MEMBER_NAMES, PYTHON_RESERVED_WORDS, to_pascal_case, to_snake_case
from ..refiner import NameRefiner, Refiner
from . import ExtraArtifact, Target

_TYPE_HINTS: dict[TypeKind, str] = {
    TypeKind.STRING: "str",
    TypeKind.BYTE: "str",
    TypeKind.INT32: "int",
    TypeKind.INT64: "int",
    TypeKind.FLOAT32: "float",
    TypeKind.FLOAT64: "float",
    TypeKind.DECIMAL: "Decimal",
    TypeKind.BOOLEAN: "bool",
    TypeKind.DATETIME: "datetime",
}

_NOT_BOOL = "not isinstance(value, bool)"

# Kind -> (type check on `value`, reason when it fails)
_TYPE_CHECKS: dict[TypeKind, tuple[str, str]] = {
    TypeKind.STRING: ("isinstance(value, str)", "must be a string"),
    TypeKind.BYTE: ("isinstance(value, str)", "must be a base64 string"),
    TypeKind.INT32: (
        f"isinstance(value, int) and {_NOT_BOOL} and -2147483648 <= value <= 2147483647",
        "must be a 32-bit integer",
    ),
    TypeKind.INT64: (
        f"isinstance(value, int) and {_NOT_BOOL}"
        " and -9223372036854775808 <= value <= 9223372036854775807",
        "must be a 64-bit integer",
    ),
    TypeKind.FLOAT32: (f"isinstance(value, (int, float)) and {_NOT_BOOL}", "must be a number"),
    TypeKind.FLOAT64: (f"isinstance(value, (int, float)) and {_NOT_BOOL}", "must be a number"),
    TypeKind.DECIMAL: (
        f"isinstance(value, (int, float, Decimal)) and {_NOT_BOOL}", "must be a number",
    ),
    TypeKind.BOOLEAN: ("isinstance(value, bool)", "must be a boolean"),
    TypeKind.DATETIME: ("isinstance(value, datetime)", "must be a datetime"),
}

# Names a generated module binds at top level
_MODULE_NAMES = frozenset({"Any", "Decimal", "TYPE_CHECKING", "ValidationError", "datetime", "re"})


def _literal(value: Any, kind: TypeKind | None = None) -> str:
    """Source literal for a constraint value.

    Decimal kinds compare against Decimal literals built from the written
    number, so a bound of 0.1 admits Decimal("0.1").
    """
    if isinstance(value, Decimal):
        return f"Decimal({str(value)!r})"
    if kind is TypeKind.DECIMAL and isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"Decimal({repr(value)!r})"
    return repr(value)


class PythonTarget(Target):
    descriptor = TargetDescriptor("python", "Python", "py")
    aliases = ("py",)
    comment_prefix = "#"
    templates = {
        "primitive": "python/primitive.py.j2",
        "model": "python/model.py.j2",
        "dto": "python/dto.py.j2",
        "package": "python/package.py.j2",
    }

    @property
    def refiner(self) -> Refiner:
        return NameRefiner(
            type_case=to_pascal_case,
            field_case=to_snake_case,
            type_reserved=PYTHON_RESERVED_WORDS | _MODULE_NAMES,
            field_reserved=PYTHON_RESERVED_WORDS | PYTHON_MEMBER_NAMES,
        )

    # -- module paths ------------------------------------------------------

    def module_path(self, name: str, options: GenerationOptions, dto: bool = False) -> str:
        parts = [options.namespace] if options.namespace else []
        if dto:
            parts.append("DTO")
        parts.append(name)
        return ".".join(parts)

    def import_line(self, name: str, options: GenerationOptions, dto: bool = False, alias: str | None = None) -> str:
        line = f"from {self.module_path(name, options, dto)} import {name}"
        return f"{line} as {alias}" if alias and alias != name else line

    # -- constraints -------------------------------------------------------

    def type_hint(self, data_type: DataType) -> str:
        try:
            return _TYPE_HINTS[data_type.kind]
        except KeyError:
            raise self.fail(
                f"Kind '{data_type.kind.value}' cannot be a validated primitive", data_type.name,
            ) from None

    def constraint_check(
        self, constraint: Constraint, data_type: DataType, constants: list[dict[str, str]],
    ) -> dict[str, str]:
        """Translate one constraint into a boolean expression over ``value``."""
        kind = data_type.kind

        if isinstance(constraint, Pattern) and kind.is_textual:
            const = "_PATTERN" if not constants else f"_PATTERN_{len(constants) + 1}"
            constants.append({"name": const, "value": f"re.compile({constraint.regex!r})"})
            return {
                "expr": f"{const}.search(value) is not None",
                "reason": f"must match pattern {constraint.regex}",
            }
        if isinstance(constraint, MinimumLength) and kind.is_textual:
            return {
                "expr": f"len(value) >= {constraint.length}",
                "reason": f"must be at least {constraint.length} characters",
            }
        if isinstance(constraint, MaximumLength) and kind.is_textual:
            return {
                "expr": f"len(value) <= {constraint.length}",
                "reason": f"must be at most {constraint.length} characters",
            }
        if isinstance(constraint, Minimum) and kind.is_numeric:
            op = ">" if constraint.exclusive else ">="
            return {
                "expr": f"value {op} {_literal(constraint.value, kind)}",
                "reason": f"must be {op} {constraint.value}",
            }
        if isinstance(constraint, Maximum) and kind.is_numeric:
            op = "<" if constraint.exclusive else "<="
            return {
                "expr": f"value {op} {_literal(constraint.value, kind)}",
                "reason": f"must be {op} {constraint.value}",
            }
        if isinstance(constraint, AllowedValues) and kind is not TypeKind.OBJECT:
            values = ", ".join(_literal(v, kind) for v in constraint.allowed_values)
            if len(constraint.allowed_values) == 1:
                values += ","
            return {
                "expr": f"value in ({values})",
                "reason": "must be one of " + ", ".join(str(v) for v in constraint.allowed_values),
            }
        if isinstance(constraint, Required):
            return {"expr": "value is not None", "reason": "is required"}

        raise self.fail(
            f"Cannot translate {type(constraint).__name__} for a {kind.value} value",
            data_type.name,
        )

    # -- emitters ----------------------------------------------------------

    def primitive_context(self, data_type: DataType, options: GenerationOptions) -> dict[str, Any]:
        hint = self.type_hint(data_type)
        type_check, type_reason = _TYPE_CHECKS[data_type.kind]
        constants: list[dict[str, str]] = []
        checks = [self.constraint_check(c, data_type, constants) for c in data_type.constraints]

        context = self.common_context(options, data_type.name)
        context.update(
            doc_lines=self.documentation(options, data_type.description),
            value_hint=hint,
            type_check=type_check,
            type_reason=type_reason,
            checks=checks,
            constants=constants,
            uses_re=bool(constants),
            uses_decimal=data_type.kind is TypeKind.DECIMAL
            or any("Decimal(" in c["expr"] for c in checks),
            uses_datetime=data_type.kind is TypeKind.DATETIME,
        )
        return context

    def model_context(self, model: ModelMetadata, options: GenerationOptions) -> dict[str, Any]:
        dto_alias = f"{model.name}DTO"
        dependencies: list[str] = []
        fields = []
        for f in model.fields:
            type_name = f.data_type.name
            if type_name != model.name and type_name not in dependencies:
                dependencies.append(type_name)
            hint = f"tuple[{type_name}, ...]" if f.is_collection else type_name
            if f.is_nullable:
                hint = f"{hint} | None"
            fields.append({
                "name": f.name,
                "type_name": type_name,
                "hint": hint,
                "nullable": f.is_nullable,
                "collection": f.is_collection,
                "doc_lines": self.documentation(options, f.description),
            })

        imports = [self.import_line(name, options) for name in dependencies]
        context = self.common_context(options, model.name)
        context.update(
            doc_lines=self.documentation(options, model.description),
            fields=fields,
            dto_alias=dto_alias,
            dto_import=self.import_line(model.name, options, dto=True, alias=dto_alias),
            imports=imports,
        )
        return context

    def _dto_hint(self, f: FieldMetadata) -> str:
        data_type = f.data_type
        base = data_type.name if data_type.is_reference else self.type_hint(data_type)
        return f"list[{base}]" if f.is_collection else base

    def dto_context(self, model: ModelMetadata, options: GenerationOptions) -> dict[str, Any]:
        dependencies: list[str] = []
        fields = []
        for f in model.fields:
            data_type = f.data_type
            nested = data_type.name if data_type.is_reference else None
            if nested and nested != model.name and nested not in dependencies:
                dependencies.append(nested)
            hint = self._dto_hint(f)
            fields.append({
                "name": f.name,
                "wire_name": f.original_name,
                "hint": f"{hint} | None" if options.use_nullable_markers else hint,
                "nested": nested,
                "is_datetime": data_type.kind is TypeKind.DATETIME,
                "doc_lines": self.documentation(options, f.description),
            })

        hints = " ".join(f["hint"] for f in fields)
        context = self.common_context(options, model.name)
        context.update(
            doc_lines=self.documentation(options, model.description),
            fields=fields,
            imports=[self.import_line(name, options, dto=True) for name in dependencies],
            uses_decimal="Decimal" in hints,
            uses_datetime="datetime" in hints,
        )
        return context

    def package_artifacts(
        self, generation_input: GenerationInput, options: GenerationOptions,
    ) -> list[ExtraArtifact]:
        """Package markers; only emitted when a namespace makes the output a package."""
        if not options.namespace:
            return []
        names = [dt.name for dt in generation_input.data_types]
        names += [m.name for m in generation_input.models]
        header = self.header_lines(options, "__init__")
        return [
            ("__init__", "__init__.py", self.templates["package"], {
                "header_lines": header,
                "doc_lines": self.documentation(options, f"Validated types for {options.namespace}."),
                "names": names,
            }),
            ("DTO.__init__", "DTO/__init__.py", self.templates["package"], {
                "header_lines": header,
                "doc_lines": self.documentation(options, f"Boundary types for {options.namespace}."),
                "names": [m.name for m in generation_input.models],
            }),
        ]
