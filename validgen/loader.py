"""Read and parse OpenAPI specifications.

Sources supply raw text from a file, URL, string or stream; ``parse_spec``
turns the text into a plain dict document and rejects structurally broken
input with a ``SpecParseError`` listing every problem found.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Any

import httpx
import yaml

from .errors import ExtractionError, ParseIssue, SpecParseError, SpecSourceError
from .log import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

def _text(data: bytes, source_name: str) -> str:
    """Decode UTF-8 source bytes; undecodable input is a parse failure."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise SpecParseError(
            "Cannot decode specification",
            [ParseIssue(f"Invalid UTF-8 at byte offset {e.start}: {e.reason}")],
            source=source_name,
        ) from e


@dataclass
class FileSource:
    path: Path

    @property
    def display_name(self) -> str:
        return str(self.path)

    async def read(self) -> str:
        try:
            data = await asyncio.to_thread(self.path.read_bytes)
        except OSError as e:
            raise SpecSourceError(f"Cannot read {self.path}: {e.strerror or e}") from e
        return _text(data, self.display_name)


@dataclass
class StringSource:
    content: str
    name: str = "string"

    @property
    def display_name(self) -> str:
        return self.name

    async def read(self) -> str:
        return self.content


@dataclass
class StreamSource:
    stream: IO[Any]
    name: str = "stream"

    @property
    def display_name(self) -> str:
        return self.name

    async def read(self) -> str:
        data = await asyncio.to_thread(self.stream.read)
        if isinstance(data, bytes):
            return _text(data, self.display_name)
        return data


@dataclass
class UrlSource:
    url: str
    timeout: float = DEFAULT_TIMEOUT
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)

    @property
    def display_name(self) -> str:
        return self.url

    async def read(self) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self.transport,
                follow_redirects=True,
            ) as client:
                resp = await client.get(self.url)
                resp.raise_for_status()
                return resp.text
        except httpx.HTTPStatusError as e:
            raise SpecSourceError(
                f"Fetching {self.url} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise SpecSourceError(f"Cannot fetch {self.url}: {e}") from e


SpecSource = FileSource | StringSource | StreamSource | UrlSource


def source_for(location: str | Path) -> SpecSource:
    """Pick a URL or file source for a CLI-style location string."""
    text = str(location)
    if text.startswith(("http://", "https://")):
        return UrlSource(text)
    return FileSource(Path(text))


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _decode(text: str, source_name: str) -> Any:
    """Decode JSON or YAML text, mapping syntax errors to parse issues."""
    if text.lstrip().startswith("{"):
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            issue = ParseIssue(e.msg, line=e.lineno, column=e.colno)
            raise SpecParseError(f"Invalid JSON in {source_name}", [issue], source_name) from e

    try:
        return yaml.safe_load(text)
    except yaml.MarkedYAMLError as e:
        mark = e.problem_mark
        issue = ParseIssue(
            str(e.problem or e),
            line=mark.line + 1 if mark else None,
            column=mark.column + 1 if mark else None,
        )
        raise SpecParseError(f"Invalid YAML in {source_name}", [issue], source_name) from e
    except yaml.YAMLError as e:
        raise SpecParseError(
            f"Invalid YAML in {source_name}", [ParseIssue(str(e))], source_name,
        ) from e


def _check_structure(document: Any) -> list[ParseIssue]:
    """Collect structural problems that make a document unusable."""
    if not isinstance(document, dict):
        return [ParseIssue("Specification root must be a mapping", "#")]

    issues: list[ParseIssue] = []
    version = document.get("openapi")
    if version is None:
        if "swagger" in document:
            issues.append(ParseIssue("Swagger 2.0 documents are not supported", "#/swagger"))
        else:
            issues.append(ParseIssue("Missing 'openapi' version field", "#/openapi"))
    elif not str(version).startswith("3."):
        issues.append(ParseIssue(f"Unsupported OpenAPI version '{version}'", "#/openapi"))

    info = document.get("info")
    if not isinstance(info, dict):
        issues.append(ParseIssue("Missing or invalid 'info' object", "#/info"))

    paths = document.get("paths")
    if paths is not None and not isinstance(paths, dict):
        issues.append(ParseIssue("'paths' must be a mapping", "#/paths"))

    components = document.get("components")
    if components is not None:
        if not isinstance(components, dict):
            issues.append(ParseIssue("'components' must be a mapping", "#/components"))
        else:
            schemas = components.get("schemas")
            if schemas is not None and not isinstance(schemas, dict):
                issues.append(ParseIssue("'schemas' must be a mapping", "#/components/schemas"))
            elif schemas:
                for name, schema in schemas.items():
                    if not isinstance(schema, dict):
                        issues.append(ParseIssue(
                            f"Schema '{name}' must be a mapping",
                            f"#/components/schemas/{name}",
                        ))
    return issues


def parse_spec(text: str, source_name: str = "string") -> dict[str, Any]:
    """Parse specification text into a document dict."""
    document = _decode(text, source_name)
    issues = _check_structure(document)
    if issues:
        raise SpecParseError(
            f"Failed to parse OpenAPI specification from {source_name}", issues, source_name,
        )
    logger.debug("Parsed %s (OpenAPI %s)", source_name, document["openapi"])
    return document


async def load_spec(source: SpecSource) -> dict[str, Any]:
    """Read a source and parse it."""
    text = await source.read()
    return parse_spec(text, source.display_name)


# ---------------------------------------------------------------------------
# Document access
# ---------------------------------------------------------------------------

def get_paths(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract paths from the document."""
    return spec.get("paths") or {}


def get_schemas(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract component schemas from the document, in document order."""
    return (spec.get("components") or {}).get("schemas") or {}


def ref_name(ref: str) -> str:
    """Last segment of a $ref pointer ('#/components/schemas/Pet' -> 'Pet')."""
    return _unescape(ref.rsplit("/", 1)[-1])


def resolve_ref(spec: dict[str, Any], ref: str) -> dict[str, Any]:
    """Resolve a local $ref pointer in the document."""
    if not isinstance(ref, str) or not ref.startswith("#/"):
        raise ExtractionError(f"Unsupported reference {ref!r} (only local '#/' references)")
    node: Any = spec
    for part in ref[2:].split("/"):
        key = _unescape(part)
        if not isinstance(node, dict) or key not in node:
            raise ExtractionError(f"Unresolvable reference {ref!r}")
        node = node[key]
    if not isinstance(node, dict):
        raise ExtractionError(f"Reference {ref!r} does not point to a schema")
    return node


def _unescape(part: str) -> str:
    return part.replace("~1", "/").replace("~0", "~")
