"""Injected metadata store.

Caches extracted data types and models by name so other tools (or later runs)
can reuse them. A store is only shared when the caller passes the same
instance to several runs.
"""

from __future__ import annotations

import threading
from typing import Iterable

from .models import DataType, GenerationInput, ModelMetadata


class MetadataStore:
    """Thread-safe name -> metadata map. Last writer wins."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data_types: dict[str, DataType] = {}
        self._models: dict[str, ModelMetadata] = {}

    def register_data_type(self, data_type: DataType) -> None:
        with self._lock:
            self._data_types[data_type.name] = data_type

    def register_model(self, model: ModelMetadata) -> None:
        with self._lock:
            self._models[model.name] = model

    def register_all(
        self,
        data_types: Iterable[DataType] = (),
        models: Iterable[ModelMetadata] = (),
    ) -> None:
        """Register many entries; each name is replaced as a whole."""
        data_types = list(data_types)
        models = list(models)
        with self._lock:
            for data_type in data_types:
                self._data_types[data_type.name] = data_type
            for model in models:
                self._models[model.name] = model

    def register_input(self, generation_input: GenerationInput) -> None:
        self.register_all(generation_input.data_types, generation_input.models)

    def get_data_type(self, name: str) -> DataType | None:
        with self._lock:
            return self._data_types.get(name)

    def get_model(self, name: str) -> ModelMetadata | None:
        with self._lock:
            return self._models.get(name)

    def data_type_names(self) -> list[str]:
        with self._lock:
            return sorted(self._data_types)

    def model_names(self) -> list[str]:
        with self._lock:
            return sorted(self._models)

    def snapshot(self) -> GenerationInput:
        """Everything registered, sorted by name."""
        with self._lock:
            return GenerationInput(
                tuple(self._data_types[k] for k in sorted(self._data_types)),
                tuple(self._models[k] for k in sorted(self._models)),
            )

    def clear(self) -> None:
        with self._lock:
            self._data_types.clear()
            self._models.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._data_types) + len(self._models)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._data_types or name in self._models
