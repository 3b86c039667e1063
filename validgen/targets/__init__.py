"""Target languages.

A target bundles everything language specific: the naming refiner, the
template names and the template context for each emitter. Rendering and
ordering live in :mod:`validgen.codegen`.
"""

from __future__ import annotations

from typing import Any

from ..config import GenerationOptions
from ..errors import GenerationError
from ..models import DataType, GenerationInput, ModelMetadata, TargetDescriptor
from ..refiner import Refiner, pass_through

# (artifact name, relative path, template name, template context)
ExtraArtifact = tuple[str, str, str, dict[str, Any]]


class Target:
    """Base for target languages. Subclasses fill in the emitter hooks."""

    descriptor: TargetDescriptor
    aliases: tuple[str, ...] = ()
    comment_prefix = "//"
    templates: dict[str, str] = {}

    @property
    def language(self) -> str:
        return self.descriptor.language

    @property
    def refiner(self) -> Refiner:
        return pass_through

    def fail(self, message: str, type_name: str | None = None) -> GenerationError:
        return GenerationError(message, type_name=type_name, target=self.language)

    # -- paths -------------------------------------------------------------

    def primitive_path(self, name: str) -> str:
        return f"{name}.{self.descriptor.file_extension}"

    def model_path(self, name: str) -> str:
        return f"{name}.{self.descriptor.file_extension}"

    def dto_path(self, name: str) -> str:
        return f"DTO/{name}.{self.descriptor.file_extension}"

    # -- shared context ----------------------------------------------------

    def header_lines(self, options: GenerationOptions, name: str) -> list[str]:
        """The configured file header as comment lines."""
        if not options.file_header:
            return []
        text = options.file_header.replace("{name}", name).replace("{language}", self.language)
        return [
            f"{self.comment_prefix} {line}".rstrip()
            for line in text.strip("\n").splitlines()
        ]

    def documentation(self, options: GenerationOptions, text: str | None) -> list[str]:
        """Documentation lines, empty when disabled or the text is blank."""
        if not options.include_documentation or not text or not text.strip():
            return []
        return [line.rstrip() for line in text.strip().splitlines()]

    def common_context(self, options: GenerationOptions, name: str) -> dict[str, Any]:
        return {
            "name": name,
            "header_lines": self.header_lines(options, name),
            "additional_imports": list(options.additional_imports),
            "annotations": options.include_validation_annotations,
            "namespace": options.namespace,
        }

    # -- emitter hooks -----------------------------------------------------

    def primitive_context(self, data_type: DataType, options: GenerationOptions) -> dict[str, Any]:
        raise NotImplementedError

    def model_context(self, model: ModelMetadata, options: GenerationOptions) -> dict[str, Any]:
        raise NotImplementedError

    def dto_context(self, model: ModelMetadata, options: GenerationOptions) -> dict[str, Any]:
        raise NotImplementedError

    def package_artifacts(
        self, generation_input: GenerationInput, options: GenerationOptions,
    ) -> list[ExtraArtifact]:
        """Artifacts emitted after the dtos (package markers and the like)."""
        return []
