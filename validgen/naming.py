"""Identifier casing and sanitising.

PascalCase conversion preserves acronym-like tokens: a token that is entirely
uppercase ("ID", "XML") is left alone and any other token only gets its first
character capitalised. That keeps "userID" -> "UserID" and "pet_id" ->
"PetId", but it also means "XMLHttp" and "xmlHttp" refine to different names.
The output is a valid identifier, not a canonical spelling.

Operation names follow: {verb}_{resource}
  - GET collection      -> list_{plural}
  - GET collection/{id} -> get_{singular}
  - POST collection     -> create_{singular}
  - PUT collection/{id} -> update_{singular}
  - DELETE col/{id}     -> delete_{singular}
"""

from __future__ import annotations

import re

_SEPARATORS = re.compile(r"[^0-9A-Za-z]+")

# Python keywords, plus names the generated classes use for their own members
PYTHON_RESERVED_WORDS = frozenset({
    "False", "None", "True", "and", "as", "assert", "async", "await",
    "break", "class", "continue", "def", "del", "elif", "else", "except",
    "finally", "for", "from", "global", "if", "import", "in", "is",
    "lambda", "nonlocal", "not", "or", "pass", "raise", "return", "try",
    "while", "with", "yield", "match", "case", "type",
})

PYTHON_MEMBER_NAMES = frozenset({
    "create", "try_create", "is_valid", "to_dto", "from_dict", "to_dict", "value",
})

# Standard HTTP method to verb mapping
_METHOD_VERBS: dict[str, str] = {
    "get": "list",
    "post": "create",
    "put": "update",
    "delete": "delete",
    "patch": "update",
    "head": "head",
    "options": "options",
    "trace": "trace",
}


def split_words(name: str) -> list[str]:
    """Split on every non-alphanumeric separator."""
    return [part for part in _SEPARATORS.split(name) if part]


def _capitalize_token(token: str) -> str:
    if token.isupper():
        return token
    return token[0].upper() + token[1:]


def to_pascal_case(name: str) -> str:
    """Convert to PascalCase, keeping all-uppercase tokens unchanged."""
    tokens = split_words(name)
    if not tokens:
        return name
    result = "".join(_capitalize_token(token) for token in tokens)
    if result[0].isdigit():
        result = f"_{result}"
    return result


def camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def to_snake_case(name: str) -> str:
    """Convert any identifier spelling to snake_case."""
    snake = camel_to_snake(name)
    snake = _SEPARATORS.sub("_", snake)
    snake = re.sub(r"_+", "_", snake).strip("_")
    if not snake:
        return name
    if snake[0].isdigit():
        snake = f"_{snake}"
    return snake


def to_camel_case(name: str) -> str:
    """PascalCase with the first character lowered."""
    pascal = to_pascal_case(name)
    if not pascal or not pascal[0].isupper():
        return pascal
    return pascal[0].lower() + pascal[1:]


def safe_identifier(name: str, reserved: frozenset[str] | set[str]) -> str:
    """Append an underscore to names that collide with reserved words."""
    return f"{name}_" if name in reserved else name


def unique_name(candidate: str, taken: set[str]) -> str:
    """Return candidate, or candidate2, candidate3, ... if already taken."""
    if candidate not in taken:
        return candidate
    counter = 2
    while f"{candidate}{counter}" in taken:
        counter += 1
    return f"{candidate}{counter}"


# ---------------------------------------------------------------------------
# Operation names
# ---------------------------------------------------------------------------

def _singularize(word: str) -> str:
    """Return the singular form of a resource name."""
    if word.endswith("ies"):
        return word[:-3] + "y"
    if word.endswith(("sses", "xes", "ches", "shes")):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def _pluralize(word: str) -> str:
    """Return the plural form of a resource name."""
    if word.endswith("s"):
        return word
    if word.endswith("y") and word[-2:-1] not in ("a", "e", "i", "o", "u"):
        return word[:-1] + "ies"
    return word + "s"


def _sanitize_segment(segment: str) -> str:
    """Sanitize a path segment for use in an identifier."""
    return to_snake_case(segment)


def _extract_path_parts(path: str) -> list[str]:
    """Extract meaningful path segments, dropping {params} and empty parts."""
    return [p for p in path.split("/") if p and not p.startswith("{")]


def build_operation_name(method: str, path: str) -> str:
    """Build an operation name from HTTP method and path.

    Returns a name like 'list_pets' or 'get_pet'.
    """
    method_lower = method.lower()
    parts = [_sanitize_segment(p) for p in _extract_path_parts(path)]
    parts = [p for p in parts if p]
    has_id = path.rstrip("/").endswith("}")

    if method_lower == "get":
        verb = "get" if has_id else "list"
    else:
        verb = _METHOD_VERBS.get(method_lower, method_lower)

    if not parts:
        return f"{verb}_root"

    *prefix, resource = parts
    if verb == "list":
        resource = _pluralize(resource)
    elif verb in ("get", "create", "update", "delete"):
        resource = _singularize(resource)
    return "_".join([verb, *prefix, resource])
