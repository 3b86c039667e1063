"""Target-specific normalization of the metadata model.

A refiner is any callable ``(GenerationInput, RefinementContext | None) ->
GenerationInput``. Refiners are pure: when nothing needs to change they
return the very object they were given, and applying one twice gives the same
result as applying it once.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Optional

from .models import DataType, FieldMetadata, GenerationInput, ModelMetadata
from .naming import safe_identifier, unique_name


@dataclass(frozen=True)
class RefinementContext:
    """What a refiner may know about the generation request."""

    language: str
    namespace: str | None = None
    options: Any = None


Refiner = Callable[[GenerationInput, Optional[RefinementContext]], GenerationInput]


def pass_through(
    generation_input: GenerationInput, context: RefinementContext | None = None,
) -> GenerationInput:
    """Identity refiner."""
    return generation_input


def compose(*refiners: Refiner) -> Refiner:
    """Apply refiners left to right."""

    def composed(
        generation_input: GenerationInput, context: RefinementContext | None = None,
    ) -> GenerationInput:
        for refiner in refiners:
            generation_input = refiner(generation_input, context)
        return generation_input

    return composed


class NameRefiner:
    """Rename types and fields with the given case functions.

    Reserved names get a trailing underscore. Fields that collide after
    renaming get a numeric suffix. ``original_name`` always keeps the wire
    name. Case functions must be idempotent.
    """

    def __init__(
        self,
        type_case: Callable[[str], str],
        field_case: Callable[[str], str],
        type_reserved: frozenset[str] = frozenset(),
        field_reserved: frozenset[str] = frozenset(),
    ) -> None:
        self._type_case = type_case
        self._field_case = field_case
        self._type_reserved = type_reserved
        self._field_reserved = field_reserved

    def type_name(self, name: str) -> str:
        return safe_identifier(self._type_case(name), self._type_reserved)

    def field_name(self, name: str) -> str:
        return safe_identifier(self._field_case(name), self._field_reserved)

    def __call__(
        self, generation_input: GenerationInput, context: RefinementContext | None = None,
    ) -> GenerationInput:
        cache: dict[int, DataType] = {}
        data_types = tuple(self._refine_type(dt, cache) for dt in generation_input.data_types)
        models = tuple(self._refine_model(m, cache) for m in generation_input.models)

        if _same(data_types, generation_input.data_types) and _same(models, generation_input.models):
            return generation_input
        return GenerationInput(data_types, models)

    def _refine_type(self, data_type: DataType, cache: dict[int, DataType]) -> DataType:
        # Shared (memoized) types stay shared after renaming
        key = id(data_type)
        if key not in cache:
            name = self.type_name(data_type.name)
            cache[key] = data_type if name == data_type.name else replace(data_type, name=name)
        return cache[key]

    def _refine_field(
        self, field_metadata: FieldMetadata, name: str, cache: dict[int, DataType],
    ) -> FieldMetadata:
        data_type = self._refine_type(field_metadata.data_type, cache)
        element = field_metadata.collection_element_type
        if element is not None:
            element = self._refine_type(element, cache)
        if (
            name == field_metadata.name
            and data_type is field_metadata.data_type
            and element is field_metadata.collection_element_type
        ):
            return field_metadata
        return replace(
            field_metadata,
            name=name,
            data_type=data_type,
            collection_element_type=element,
            original_name=field_metadata.original_name,
        )

    def _refine_model(self, model: ModelMetadata, cache: dict[int, DataType]) -> ModelMetadata:
        taken: set[str] = set()
        fields = []
        for f in model.fields:
            name = unique_name(self.field_name(f.name), taken)
            taken.add(name)
            fields.append(self._refine_field(f, name, cache))

        name = self.type_name(model.name)
        if name == model.name and _same(fields, model.fields):
            return model
        return replace(model, name=name, fields=tuple(fields))


def _same(new: tuple | list, old: tuple) -> bool:
    return len(new) == len(old) and all(a is b for a, b in zip(new, old))
