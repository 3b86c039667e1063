"""validgen: generate validated types from OpenAPI specifications.

Pipeline: load -> parse -> extract -> refine -> generate -> write.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .codegen import CodeGenerator, generate
from .config import GenerationOptions, load_options
from .errors import (
    ConfigError,
    ConstraintError,
    ExtractionError,
    GenerationError,
    SpecParseError,
    SpecSourceError,
    UnsupportedLanguageError,
    ValidgenError,
)
from .extractor import extract_metadata
from .loader import load_spec, parse_spec
from .pipeline import PipelineResult, generate_from_document, run_pipeline
from .refiner import NameRefiner, RefinementContext, pass_through
from .registry import available_languages, get_target
from .store import MetadataStore

__all__ = [
    "CodeGenerator",
    "ConfigError",
    "ConstraintError",
    "ExtractionError",
    "GenerationError",
    "GenerationOptions",
    "MetadataStore",
    "NameRefiner",
    "PipelineResult",
    "RefinementContext",
    "SpecParseError",
    "SpecSourceError",
    "UnsupportedLanguageError",
    "ValidgenError",
    "__version__",
    "available_languages",
    "extract_metadata",
    "generate",
    "generate_from_document",
    "get_target",
    "load_options",
    "load_spec",
    "parse_spec",
    "pass_through",
    "run_pipeline",
]
