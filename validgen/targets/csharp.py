"""C# target: readonly record struct primitives, sealed record models, record DTOs."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from ..config import GenerationOptions
from ..models import (
    AllowedValues,
    Constraint,
    DataType,
    FieldMetadata,
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
from ..naming import to_pascal_case, unique_name
from ..refiner import NameRefiner, Refiner
from . import Target

RUNTIME_NAMESPACE = "Validgen.Runtime"

CSHARP_RESERVED_WORDS = frozenset({
    "abstract", "as", "base", "bool", "break", "byte", "case", "catch", "char",
    "checked", "class", "const", "continue", "decimal", "default", "delegate",
    "do", "double", "else", "enum", "event", "explicit", "extern", "false",
    "finally", "fixed", "float", "for", "foreach", "goto", "if", "implicit",
    "in", "int", "interface", "internal", "is", "lock", "long", "namespace",
    "new", "null", "object", "operator", "out", "override", "params", "private",
    "protected", "public", "readonly", "ref", "return", "sbyte", "sealed",
    "short", "sizeof", "stackalloc", "static", "string", "struct", "switch",
    "this", "throw", "true", "try", "typeof", "uint", "ulong", "unchecked",
    "unsafe", "ushort", "using", "virtual", "void", "volatile", "while",
})

# Members every generated type declares
_MEMBER_NAMES = frozenset({"Value", "TryCreate", "Create", "ToDTO", "ToString"})

_CS_TYPES: dict[TypeKind, str] = {
    TypeKind.STRING: "string",
    TypeKind.BYTE: "string",
    TypeKind.INT32: "int",
    TypeKind.INT64: "long",
    TypeKind.FLOAT32: "float",
    TypeKind.FLOAT64: "double",
    TypeKind.DECIMAL: "decimal",
    TypeKind.BOOLEAN: "bool",
    TypeKind.DATETIME: "DateTime",
}

_VALUE_TYPES = frozenset(_CS_TYPES) - {TypeKind.STRING, TypeKind.BYTE}

# Locals and parameters the model template declares itself
_TEMPLATE_LOCALS = frozenset({"dto", "valid", "validated", "item", "element", "model"})

_NUMBER_SUFFIXES: dict[TypeKind, str] = {
    TypeKind.INT64: "L",
    TypeKind.FLOAT32: "f",
    TypeKind.DECIMAL: "m",
}


def verbatim_string(text: str) -> str:
    """C# verbatim string literal (@"...")."""
    return '@"' + text.replace('"', '""') + '"'


def string_literal(text: str) -> str:
    escaped = (
        text.replace("\\", "\\\\").replace('"', '\\"')
        .replace("\n", "\\n").replace("\r", "\\r").replace("\t", "\\t")
    )
    return f'"{escaped}"'


class CSharpTarget(Target):
    descriptor = TargetDescriptor("csharp", "C#", "cs")
    aliases = ("cs", "c#")
    comment_prefix = "//"
    templates = {
        "primitive": "csharp/primitive.cs.j2",
        "model": "csharp/model.cs.j2",
        "dto": "csharp/dto.cs.j2",
    }

    @property
    def refiner(self) -> Refiner:
        return NameRefiner(
            type_case=to_pascal_case,
            field_case=to_pascal_case,
            type_reserved=CSHARP_RESERVED_WORDS,
            field_reserved=CSHARP_RESERVED_WORDS | _MEMBER_NAMES,
        )

    # -- literals ----------------------------------------------------------

    def cs_type(self, data_type: DataType) -> str:
        try:
            return _CS_TYPES[data_type.kind]
        except KeyError:
            raise self.fail(
                f"Kind '{data_type.kind.value}' cannot be a validated primitive", data_type.name,
            ) from None

    def literal(self, value: Any, data_type: DataType) -> str:
        kind = data_type.kind
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, str):
            return string_literal(value)
        if isinstance(value, (int, float, Decimal)):
            if kind in (TypeKind.INT32, TypeKind.INT64) and value != int(value):
                raise self.fail(f"Bound {value} is not an integer", data_type.name)
            text = str(int(value)) if kind in (TypeKind.INT32, TypeKind.INT64) else str(value)
            return text + _NUMBER_SUFFIXES.get(kind, "")
        raise self.fail(f"Cannot express {value!r} as a C# literal", data_type.name)

    # -- constraints -------------------------------------------------------

    def constraint_member(
        self, constraint: Constraint, data_type: DataType, taken: set[str],
    ) -> dict[str, Any]:
        """A constant member declaration plus a condition over ``raw``."""
        kind = data_type.kind
        cs_type = self.cs_type(data_type)

        def member(base: str) -> str:
            name = unique_name(base, taken)
            taken.add(name)
            return name

        if isinstance(constraint, Pattern) and kind.is_textual:
            name = member("Pattern")
            return {
                "attribute": "Pattern",
                "declaration": f"private static readonly Regex {name} = "
                               f"new({verbatim_string(constraint.regex)}, RegexOptions.Compiled);",
                "condition": f"{name}.IsMatch(raw)",
            }
        if isinstance(constraint, MinimumLength) and kind.is_textual:
            name = member("MinLength")
            return {
                "attribute": "MinLength",
                "declaration": f"private const int {name} = {constraint.length};",
                "condition": f"raw.Length >= {name}",
            }
        if isinstance(constraint, MaximumLength) and kind.is_textual:
            name = member("MaxLength")
            return {
                "attribute": "MaxLength",
                "declaration": f"private const int {name} = {constraint.length};",
                "condition": f"raw.Length <= {name}",
            }
        if isinstance(constraint, (Minimum, Maximum)) and kind.is_numeric:
            is_min = isinstance(constraint, Minimum)
            name = member("Minimum" if is_min else "Maximum")
            op = (">" if is_min else "<") + ("" if constraint.exclusive else "=")
            return {
                "attribute": "Minimum" if is_min else "Maximum",
                "declaration": f"private const {cs_type} {name} = "
                               f"{self.literal(constraint.value, data_type)};",
                "condition": f"raw {op} {name}",
            }
        if isinstance(constraint, AllowedValues) and kind is not TypeKind.OBJECT:
            name = member("AllowedValues")
            values = ", ".join(self.literal(v, data_type) for v in constraint.allowed_values)
            return {
                "attribute": "AllowedValues",
                "declaration": f"private static readonly HashSet<{cs_type}> {name} = "
                               f"new() {{ {values} }};",
                "condition": f"{name}.Contains(raw)",
            }
        if isinstance(constraint, Required):
            return {"attribute": None, "declaration": None, "condition": "true"}

        raise self.fail(
            f"Cannot translate {type(constraint).__name__} for a {kind.value} value",
            data_type.name,
        )

    # -- emitters ----------------------------------------------------------

    def _usings(self, options: GenerationOptions, *extra: str) -> list[str]:
        usings = [RUNTIME_NAMESPACE, *extra]
        usings += [u for u in options.additional_imports if u not in usings]
        return usings

    def primitive_context(self, data_type: DataType, options: GenerationOptions) -> dict[str, Any]:
        cs_type = self.cs_type(data_type)
        taken = {data_type.name, "Value", "TryCreate", "Create"}
        members = [self.constraint_member(c, data_type, taken) for c in data_type.constraints]

        extra = []
        if any(isinstance(c, Pattern) for c in data_type.constraints):
            extra.append("System.Text.RegularExpressions")
        if any(isinstance(c, AllowedValues) for c in data_type.constraints):
            extra.append("System.Collections.Generic")
        if data_type.kind is TypeKind.DATETIME:
            extra.append("System")

        conditions = [m["condition"] for m in members if m["condition"] != "true"]
        context = self.common_context(options, data_type.name)
        context.update(
            usings=self._usings(options, *extra),
            doc_lines=self.documentation(options, data_type.description),
            cs_type=cs_type,
            members=[m for m in members if m["declaration"]],
            conditions=conditions,
            to_string="value" if cs_type == "string" else "value.ToString()",
        )
        return context

    def _field(self, f: FieldMetadata, options: GenerationOptions) -> dict[str, Any]:
        element = f.data_type
        is_model = element.is_reference
        element_type = element.name
        local = f.name[:1].lower() + f.name[1:]
        if local in CSHARP_RESERVED_WORDS or local in _TEMPLATE_LOCALS:
            local = f"{local}Value"

        access = f"model.{f.name}"
        if f.is_collection:
            prop_type = f"IReadOnlyList<{element_type}>"
            assign = local if f.is_nullable else f"{local}!"
            if is_model:
                project = f"item => {element_type}.ToDTO(item)"
            else:
                project = f"item => ({self.cs_type(element)}?)item.Value"
            op = "?." if f.is_nullable else "."
            to_dto = f"{access}{op}Select({project}).ToList()"
        elif is_model:
            prop_type = element_type
            assign = local if f.is_nullable else f"{local}!"
            to_dto = f"{element_type}.ToDTO({access})"
            if f.is_nullable:
                to_dto = f"{access} is null ? null : {to_dto}"
        else:
            prop_type = element_type
            assign = local if f.is_nullable else f"{local}.Value"
            to_dto = f"{access}?.Value" if f.is_nullable else f"{access}.Value"

        return {
            "name": f.name,
            "local": local,
            "element_type": element_type,
            "prop_type": f"{prop_type}?" if f.is_nullable else prop_type,
            "is_model": is_model,
            "collection": f.is_collection,
            "nullable": f.is_nullable,
            "assign": assign,
            "to_dto": to_dto,
            "doc_lines": self.documentation(options, f.description),
        }

    def model_context(self, model: ModelMetadata, options: GenerationOptions) -> dict[str, Any]:
        dto_type = f"{options.namespace}.DTO.{model.name}" if options.namespace else f"DTO.{model.name}"
        fields = [self._field(f, options) for f in model.fields]
        extra = ["System.Collections.Generic", "System.Linq"] if any(f["collection"] for f in fields) else []
        context = self.common_context(options, model.name)
        context.update(
            usings=self._usings(options, *extra),
            doc_lines=self.documentation(options, model.description),
            dto_type=dto_type,
            fields=fields,
        )
        return context

    def _dto_type(self, f: FieldMetadata, options: GenerationOptions) -> str:
        data_type = f.data_type
        if data_type.is_reference:
            base, is_value = data_type.name, False
        else:
            base, is_value = self.cs_type(data_type), data_type.kind in _VALUE_TYPES
        # Value types stay Nullable<T>; only reference types drop the marker
        if is_value or options.use_nullable_markers:
            base += "?"
        if f.is_collection:
            base = f"List<{base}>"
            if options.use_nullable_markers:
                base += "?"
        return base

    def dto_context(self, model: ModelMetadata, options: GenerationOptions) -> dict[str, Any]:
        fields = [
            {
                "name": f.name,
                "wire_name": f.original_name,
                "type": self._dto_type(f, options),
                "doc_lines": self.documentation(options, f.description),
            }
            for f in model.fields
        ]
        extra = ["System.Text.Json.Serialization"]
        if any(f.is_collection for f in model.fields):
            extra.append("System.Collections.Generic")
        if any(f.data_type.kind is TypeKind.DATETIME for f in model.fields):
            extra.append("System")
        context = self.common_context(options, model.name)
        context.update(
            usings=[*extra, *[u for u in options.additional_imports if u not in extra]],
            doc_lines=self.documentation(options, model.description),
            dto_namespace=f"{options.namespace}.DTO" if options.namespace else "DTO",
            fields=fields,
        )
        return context
