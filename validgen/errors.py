"""Exception hierarchy for the validgen pipeline.

Parse failures are fatal for a run, extraction problems are downgraded to
warnings by the extractor, and generation failures abort a single request.
"""

from __future__ import annotations

from dataclasses import dataclass


class ValidgenError(Exception):
    """Base class for every error raised by validgen."""


class ConfigError(ValidgenError):
    """Invalid or unreadable generation configuration."""


class SpecSourceError(ValidgenError):
    """A specification source could not be read."""


@dataclass(frozen=True)
class ParseIssue:
    """One structural problem found while parsing a specification."""

    message: str
    pointer: str = ""
    line: int | None = None
    column: int | None = None

    def location(self) -> str:
        parts = []
        if self.pointer:
            parts.append(self.pointer)
        if self.line is not None:
            parts.append(f"line {self.line}, column {self.column or 0}")
        return " @ ".join(parts)

    def __str__(self) -> str:
        loc = self.location()
        return f"{self.message} ({loc})" if loc else self.message


class SpecParseError(ValidgenError):
    """The specification is malformed; no metadata can be produced."""

    def __init__(self, message: str, issues: list[ParseIssue] | None = None, source: str = ""):
        self.issues = list(issues or [])
        self.source = source
        detail = "; ".join(str(issue) for issue in self.issues)
        super().__init__(f"{message}: {detail}" if detail else message)


class ExtractionError(ValidgenError):
    """A single schema could not be turned into metadata."""


class ConstraintError(ValidgenError, ValueError):
    """A constraint was constructed with an invalid argument."""


class GenerationError(ValidgenError):
    """Code could not be generated for a type on a given target."""

    def __init__(self, message: str, type_name: str | None = None, target: str | None = None):
        self.type_name = type_name
        self.target = target
        context = ", ".join(
            part for part in (
                f"type={type_name}" if type_name else "",
                f"target={target}" if target else "",
            ) if part
        )
        super().__init__(f"{message} [{context}]" if context else message)


class UnsupportedLanguageError(GenerationError):
    """The requested target language has no registered generator."""

    def __init__(self, language: str, available: list[str]):
        self.language = language
        self.available = list(available)
        super().__init__(
            f"Language '{language}' is not supported. "
            f"Available: {', '.join(self.available) or 'none'}",
            target=language,
        )
