"""Registry of target languages.

Maps language ids and aliases to target factories. The table is static and
explicit; nothing is discovered at runtime.
"""

from __future__ import annotations

from typing import Callable

from .errors import UnsupportedLanguageError
from .targets import Target
from .targets.csharp import CSharpTarget
from .targets.python import PythonTarget

TargetFactory = Callable[[], Target]

_FACTORIES: dict[str, TargetFactory] = {}
_ALIASES: dict[str, str] = {}


def register_target(factory: type[Target]) -> None:
    """Register a target class under its language id and aliases."""
    language = factory.descriptor.language
    _FACTORIES[language] = factory
    _ALIASES[language] = language
    for alias in factory.aliases:
        _ALIASES[alias.lower()] = language


def available_languages() -> list[str]:
    """Registered language ids, sorted."""
    return sorted(_FACTORIES)


def resolve_language(language: str) -> str:
    """Canonical language id for an id or alias (case-insensitive)."""
    key = (language or "").strip().lower()
    if key not in _ALIASES:
        raise UnsupportedLanguageError(language, available_languages())
    return _ALIASES[key]


def get_target(language: str) -> Target:
    """A fresh target for ``language``; raises UnsupportedLanguageError."""
    return _FACTORIES[resolve_language(language)]()


register_target(CSharpTarget)
register_target(PythonTarget)
