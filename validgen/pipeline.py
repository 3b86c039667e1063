"""Pipeline driver: read, parse, extract, refine, generate, write.

Every stage except reading and writing is a pure in-memory transform. All
artifacts are rendered before anything is written, so a generation failure
leaves the output directory untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .codegen import CodeGenerator
from .config import GenerationOptions
from .extractor import extract_metadata
from .loader import SpecSource, load_spec, source_for
from .log import get_logger
from .models import ExtractionResult, GeneratedArtifact, GenerationInput
from .refiner import RefinementContext, Refiner
from .registry import get_target
from .store import MetadataStore
from .writer import ArtifactWriter

logger = get_logger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    extraction: ExtractionResult
    generation_input: GenerationInput
    artifacts: tuple[GeneratedArtifact, ...]
    written: tuple[Path, ...] = ()

    @property
    def warnings(self) -> tuple[str, ...]:
        return self.extraction.warnings


def generate_from_document(
    spec: dict[str, Any],
    language: str,
    options: GenerationOptions | None = None,
    refiner: Refiner | None = None,
    store: MetadataStore | None = None,
) -> PipelineResult:
    """Run the pure stages over an already parsed document."""
    options = options or GenerationOptions()
    target = get_target(language)

    extraction = extract_metadata(spec)
    for warning in extraction.warnings:
        logger.debug("Extraction warning: %s", warning)

    refine = refiner if refiner is not None else target.refiner
    context = RefinementContext(language=target.language, namespace=options.namespace, options=options)
    generation_input = refine(extraction.to_generation_input(), context)

    if store is not None:
        store.register_input(generation_input)

    artifacts = CodeGenerator(target, options).generate_all(generation_input)
    logger.info(
        "Generated %d artifacts (%d data types, %d models) for %s",
        len(artifacts), len(generation_input.data_types), len(generation_input.models),
        target.descriptor.display_name,
    )
    return PipelineResult(extraction, generation_input, tuple(artifacts))


async def run_pipeline(
    source: SpecSource | str | Path,
    language: str = "csharp",
    options: GenerationOptions | None = None,
    *,
    output_directory: str | Path | None = None,
    refiner: Refiner | None = None,
    store: MetadataStore | None = None,
    write: bool = True,
) -> PipelineResult:
    """Run the whole pipeline for one specification.

    ``output_directory`` falls back to ``options.output_directory``; with
    neither (or ``write=False``) nothing is written.
    """
    options = options or GenerationOptions()
    # Unknown languages fail before any I/O
    get_target(language)

    if isinstance(source, (str, Path)):
        source = source_for(source)
    logger.info("Reading %s", source.display_name)
    spec = await load_spec(source)

    result = generate_from_document(spec, language, options, refiner=refiner, store=store)

    destination = output_directory or options.output_directory
    if not write or not destination:
        return result

    written = await ArtifactWriter(destination).write_all(result.artifacts)
    logger.info("Wrote %d files to %s", len(written), destination)
    return PipelineResult(result.extraction, result.generation_input, result.artifacts, tuple(written))
