"""Generation options and config file loading."""

from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError


@dataclass(frozen=True)
class GenerationOptions:
    """Options consumed by the code generators.

    None of these change whether generated code validates correctly; they
    only shape how it is laid out.

    namespace:          dotted namespace / package of the generated code;
                        None emits top-level declarations
    output_directory:   where the writer puts artifacts
    include_documentation:          emit doc comments / docstrings
    include_validation_annotations: emit validation marker attributes
    use_nullable_markers:           mark optional raw values as nullable
    file_header:        text placed at the top of every file; ``{name}`` and
                        ``{language}`` are substituted
    additional_imports: extra imports / usings placed after the defaults
    """

    namespace: str | None = None
    output_directory: str | None = None
    include_documentation: bool = True
    include_validation_annotations: bool = True
    use_nullable_markers: bool = True
    file_header: str | None = None
    additional_imports: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.namespace is not None and not self.namespace.strip():
            object.__setattr__(self, "namespace", None)
        if isinstance(self.additional_imports, str):
            raise ConfigError("additional_imports must be a list of strings")
        object.__setattr__(self, "additional_imports", tuple(self.additional_imports))

    def with_overrides(self, **overrides: Any) -> GenerationOptions:
        """Copy with the given options replaced; None values are ignored."""
        values = {k: v for k, v in overrides.items() if v is not None}
        _check_keys(values)
        return replace(self, **values)


_BOOL_OPTIONS = {"include_documentation", "include_validation_annotations", "use_nullable_markers"}


def _option_names() -> set[str]:
    return {f.name for f in fields(GenerationOptions)}


def _check_keys(values: dict[str, Any]) -> None:
    unknown = sorted(set(values) - _option_names())
    if unknown:
        raise ConfigError(
            f"Unknown option(s): {', '.join(unknown)}. "
            f"Known options: {', '.join(sorted(_option_names()))}"
        )


def _normalize_key(key: str) -> str:
    """Accept camelCase and kebab-case keys in config files."""
    out = []
    for ch in key.replace("-", "_"):
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out).lstrip("_")


def options_from_dict(data: dict[str, Any]) -> GenerationOptions:
    """Build options from a mapping, rejecting unknown keys and bad types."""
    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")
    values = {_normalize_key(str(k)): v for k, v in data.items()}
    _check_keys(values)

    for key in _BOOL_OPTIONS & set(values):
        if not isinstance(values[key], bool):
            raise ConfigError(f"Option '{key}' must be true or false, got {values[key]!r}")
    for key in ("namespace", "output_directory", "file_header"):
        if values.get(key) is not None and not isinstance(values[key], str):
            raise ConfigError(f"Option '{key}' must be a string, got {values[key]!r}")
    imports = values.get("additional_imports")
    if imports is not None:
        if not isinstance(imports, list) or not all(isinstance(i, str) for i in imports):
            raise ConfigError("Option 'additional_imports' must be a list of strings")
        values["additional_imports"] = tuple(imports)

    return GenerationOptions(**values)


def load_options(path: str | Path, **overrides: Any) -> GenerationOptions:
    """Load options from a JSON or YAML file, then apply overrides."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e

    options = options_from_dict(data or {})
    return options.with_overrides(**overrides)
