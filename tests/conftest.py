"""Shared fixtures for the validgen test suite.

The petstore specification under spec/ is the main fixture; smaller documents
are built inline with ``make_spec``. Generated Python code is imported from a
temporary directory under a unique package name so tests never see each
other's modules.
"""

from __future__ import annotations

import importlib
import sys
import uuid
from pathlib import Path
from typing import Any

import pytest
import yaml

from validgen.codegen import CodeGenerator
from validgen.config import GenerationOptions
from validgen.extractor import extract_metadata
from validgen.registry import get_target
from validgen.refiner import RefinementContext

SPEC_DIR = Path(__file__).resolve().parent.parent / "spec"
PETSTORE_PATH = SPEC_DIR / "petstore.yaml"


def make_spec(schemas: dict[str, Any] | None = None, paths: dict[str, Any] | None = None,
              **extra: Any) -> dict[str, Any]:
    """Minimal OpenAPI 3.0 document around the given schemas and paths."""
    spec: dict[str, Any] = {
        "openapi": "3.0.3",
        "info": {"title": "Test API", "version": "1.0.0"},
        "paths": paths or {},
        "components": {"schemas": schemas or {}},
    }
    spec.update(extra)
    return spec


@pytest.fixture(scope="session")
def petstore_text() -> str:
    return PETSTORE_PATH.read_text(encoding="utf-8")


@pytest.fixture
def petstore_spec(petstore_text) -> dict[str, Any]:
    """A fresh parsed copy for each test, so tests may modify it."""
    return yaml.safe_load(petstore_text)


@pytest.fixture
def petstore_extraction(petstore_spec):
    return extract_metadata(petstore_spec)


# ---------------------------------------------------------------------------
# Generated Python code
# ---------------------------------------------------------------------------

class GeneratedPackage:
    """Generated Python modules written to disk and importable by name."""

    def __init__(self, root: Path, namespace: str) -> None:
        self.root = root
        self.namespace = namespace

    def module(self, name: str) -> Any:
        return importlib.import_module(f"{self.namespace}.{name}")

    def type(self, name: str) -> Any:
        return getattr(self.module(name), name)

    def dto(self, name: str) -> Any:
        return getattr(self.module(f"DTO.{name}"), name)


@pytest.fixture
def generated_python(tmp_path):
    """Factory: render a spec to Python, write it, return a GeneratedPackage."""
    namespaces: list[str] = []
    sys.path.insert(0, str(tmp_path))

    def build(spec: dict[str, Any], **option_overrides: Any) -> GeneratedPackage:
        namespace = f"generated_{uuid.uuid4().hex[:12]}"
        namespaces.append(namespace)
        options = GenerationOptions(namespace=namespace, **option_overrides)
        target = get_target("python")
        extraction = extract_metadata(spec, include_endpoints=False)
        refined = target.refiner(
            extraction.to_generation_input(),
            RefinementContext(language="python", namespace=namespace, options=options),
        )
        root = tmp_path / namespace
        for artifact in CodeGenerator(target, options).generate_all(refined):
            path = root / artifact.relative_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(artifact.content, encoding="utf-8")
        importlib.invalidate_caches()
        return GeneratedPackage(root, namespace)

    yield build

    sys.path.remove(str(tmp_path))
    for module_name in list(sys.modules):
        if any(module_name == ns or module_name.startswith(f"{ns}.") for ns in namespaces):
            del sys.modules[module_name]


@pytest.fixture
def spec_factory():
    return make_spec
