"""Render generated artifacts from the metadata model.

Rendering is pure: nothing here touches the filesystem except the template
loader. Artifacts are written by :mod:`validgen.writer`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import jinja2

from .config import GenerationOptions
from .errors import GenerationError
from .log import get_logger
from .models import DataType, GeneratedArtifact, GenerationInput, ModelMetadata
from .registry import get_target
from .targets import Target
from .targets.csharp import string_literal

TEMPLATE_DIR = Path(__file__).parent / "templates"

logger = get_logger(__name__)


def _pydoc(text: str) -> str:
    """Make text safe inside a triple-quoted docstring."""
    text = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    return text + " " if text.endswith('"') else text


def _xmldoc(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def create_environment() -> jinja2.Environment:
    """Jinja2 environment over the bundled templates."""
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
        autoescape=False,
    )
    env.filters["pyrepr"] = repr
    env.filters["pydoc"] = _pydoc
    env.filters["xmldoc"] = _xmldoc
    env.filters["csstring"] = string_literal
    return env


class CodeGenerator:
    """Emit primitives, models and dtos for one target language."""

    def __init__(
        self,
        target: Target | str,
        options: GenerationOptions | None = None,
        environment: jinja2.Environment | None = None,
    ) -> None:
        self.target = get_target(target) if isinstance(target, str) else target
        self.options = options or GenerationOptions()
        self.environment = environment or create_environment()

    def _render(self, template_name: str, context: dict[str, Any], type_name: str) -> str:
        try:
            return self.environment.get_template(template_name).render(**context)
        except jinja2.TemplateError as e:
            raise GenerationError(
                f"Template {template_name} failed: {e}", type_name, self.target.language,
            ) from e

    def _artifact(self, name: str, relative_path: str, content: str) -> GeneratedArtifact:
        return GeneratedArtifact(
            name=name,
            relative_path=relative_path,
            content=content,
            target=self.target.descriptor,
        )

    def generate_data_type(self, data_type: DataType) -> GeneratedArtifact:
        """Validated wrapper for one primitive data type."""
        if data_type.is_reference:
            raise GenerationError(
                "Model references cannot be emitted as primitives",
                data_type.name, self.target.language,
            )
        context = self.target.primitive_context(data_type, self.options)
        content = self._render(self.target.templates["primitive"], context, data_type.name)
        return self._artifact(data_type.name, self.target.primitive_path(data_type.name), content)

    def generate_model(self, model: ModelMetadata) -> GeneratedArtifact:
        """Validated composite for one model."""
        context = self.target.model_context(model, self.options)
        content = self._render(self.target.templates["model"], context, model.name)
        return self._artifact(model.name, self.target.model_path(model.name), content)

    def generate_dto(self, model: ModelMetadata) -> GeneratedArtifact:
        """Unvalidated boundary type for one model."""
        context = self.target.dto_context(model, self.options)
        content = self._render(self.target.templates["dto"], context, model.name)
        return self._artifact(f"DTO.{model.name}", self.target.dto_path(model.name), content)

    def generate_all(self, generation_input: GenerationInput) -> list[GeneratedArtifact]:
        """Every artifact, in fixed order: primitives, models, dtos, package files.

        Raises GenerationError on the first type that cannot be emitted, and
        when two artifacts would share a path.
        """
        artifacts: list[GeneratedArtifact] = []
        artifacts.extend(self.generate_data_type(dt) for dt in generation_input.data_types)
        artifacts.extend(self.generate_model(m) for m in generation_input.models)
        artifacts.extend(self.generate_dto(m) for m in generation_input.models)
        for name, path, template, context in self.target.package_artifacts(
            generation_input, self.options,
        ):
            artifacts.append(self._artifact(name, path, self._render(template, context, name)))

        seen: dict[str, str] = {}
        for artifact in artifacts:
            key = artifact.relative_path.lower()
            if key in seen:
                raise GenerationError(
                    f"Artifacts '{seen[key]}' and '{artifact.name}' would both be written "
                    f"to {artifact.relative_path}",
                    artifact.name, self.target.language,
                )
            seen[key] = artifact.name

        logger.debug(
            "Rendered %d artifacts for %s", len(artifacts), self.target.descriptor.display_name,
        )
        return artifacts


def generate(
    generation_input: GenerationInput,
    language: str,
    options: GenerationOptions | None = None,
) -> list[GeneratedArtifact]:
    """Convenience wrapper: look the target up and emit everything."""
    return CodeGenerator(language, options).generate_all(generation_input)
