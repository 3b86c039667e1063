"""Command line interface: ``validgen generate --from petstore.yaml --language python``."""

from __future__ import annotations

import asyncio
from datetime import date
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .config import GenerationOptions, load_options
from .errors import (
    GenerationError,
    SpecParseError,
    UnsupportedLanguageError,
    ValidgenError,
)
from .extractor import extract_metadata
from .loader import load_spec, source_for
from .log import configure_logging
from .pipeline import run_pipeline
from .registry import available_languages, get_target

DEFAULT_OUTPUT = "Generated"

EXIT_OK = 0
EXIT_INPUT = 1
EXIT_LANGUAGE = 2
EXIT_GENERATION = 3

console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)


def _stamp(message: str) -> str:
    return f"[{date.today().strftime('%Y-%m-%d')}] {message}"


def _info(message: str, style: str = "green") -> None:
    console.print(_stamp(message), style=style, markup=False, highlight=False)


def _warn(message: str) -> None:
    err_console.print(f"warning: {message}", style="yellow", markup=False, highlight=False)


def _error(message: str) -> None:
    err_console.print(_stamp(message), style="red", markup=False, highlight=False)


def _report_parse_error(error: SpecParseError) -> None:
    _error(f"Cannot parse {error.source or 'specification'}:")
    for issue in error.issues:
        err_console.print(f"  - {issue}", style="red", markup=False, highlight=False)


@click.group()
@click.version_option(__version__, prog_name="validgen")
@click.pass_context
def cli(context):
    """Generate validated types from OpenAPI specifications."""
    context.ensure_object(dict)


@cli.command("generate", help="Generate validated primitives, models and DTOs.")
@click.pass_context
@click.option("--from", "-f", "source", required=True, help="Specification file or http(s) URL.")
@click.option("--to", "-t", "output", default=None, help=f"Output directory (default: {DEFAULT_OUTPUT}).")
@click.option("--namespace", "-n", default=None, help="Namespace / package of the generated code.")
@click.option("--language", "-l", default="csharp", show_default=True, help="Target language.")
@click.option("--config", "-c", "config_path", default=None,
              type=click.Path(dir_okay=False, path_type=Path),
              help="JSON or YAML file with generation options.")
@click.option("--no-docs", is_flag=True, help="Omit documentation comments.")
@click.option("--dry-run", is_flag=True, help="Render everything but write nothing.")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging.")
@click.option("--quiet", "-q", is_flag=True, help="Only log warnings and errors.")
def generate(context, source, output, namespace, language, config_path, no_docs, dry_run, verbose, quiet):
    configure_logging(verbose=verbose, quiet=quiet)

    try:
        overrides = {
            "namespace": namespace,
            "output_directory": output,
            "include_documentation": False if no_docs else None,
        }
        if config_path is not None:
            options = load_options(config_path, **overrides)
        else:
            options = GenerationOptions().with_overrides(**overrides)
        destination = options.output_directory or DEFAULT_OUTPUT

        result = asyncio.run(run_pipeline(
            source,
            language,
            options,
            output_directory=destination,
            write=not dry_run,
        ))
    except UnsupportedLanguageError as e:
        _error(str(e))
        context.exit(EXIT_LANGUAGE)
    except GenerationError as e:
        _error(f"Generation failed: {e}")
        context.exit(EXIT_GENERATION)
    except SpecParseError as e:
        _report_parse_error(e)
        context.exit(EXIT_INPUT)
    except ValidgenError as e:
        _error(str(e))
        context.exit(EXIT_INPUT)
    except OSError as e:
        _error(f"Cannot write output: {e}")
        context.exit(EXIT_GENERATION)

    for warning in result.warnings:
        _warn(warning)

    if dry_run:
        for artifact in result.artifacts:
            console.print(artifact.relative_path, markup=False, highlight=False)
        _info(f"Dry run: {len(result.artifacts)} files would be written to {destination}", "blue")
    else:
        _info(f"Generated {len(result.written)} files in {destination}")
    context.exit(EXIT_OK)


@cli.command("inspect", help="Print the metadata extracted from a specification.")
@click.pass_context
@click.option("--from", "-f", "source", required=True, help="Specification file or http(s) URL.")
def inspect_cmd(context, source):
    try:
        spec = asyncio.run(load_spec(source_for(source)))
    except SpecParseError as e:
        _report_parse_error(e)
        context.exit(EXIT_INPUT)
    except ValidgenError as e:
        _error(str(e))
        context.exit(EXIT_INPUT)

    result = extract_metadata(spec)

    types = Table(title="Data types")
    types.add_column("Name")
    types.add_column("Kind")
    types.add_column("Constraints")
    for data_type in result.data_types:
        constraints = ", ".join(type(c).__name__ for c in data_type.constraints) or "-"
        types.add_row(data_type.name, data_type.kind.value, constraints)
    console.print(types)

    models = Table(title="Models")
    models.add_column("Name")
    models.add_column("Kind")
    models.add_column("Fields")
    for model in result.models:
        fields = ", ".join(
            f"{f.name}{'[]' if f.is_collection else ''}{'' if f.is_required else '?'}"
            for f in model.fields
        )
        models.add_row(model.name, model.kind.value, fields)
    console.print(models)

    if result.endpoints:
        endpoints = Table(title="Endpoints")
        endpoints.add_column("Name")
        endpoints.add_column("Canonical path")
        endpoints.add_column("HTTP")
        for endpoint in result.endpoints:
            endpoints.add_row(
                endpoint.name,
                endpoint.path,
                f"{endpoint.extensions.get('http-method')} {endpoint.extensions.get('http-path')}",
            )
        console.print(endpoints)

    for warning in result.warnings:
        _warn(warning)
    context.exit(EXIT_OK)


@cli.command("languages", help="List the supported target languages.")
@click.pass_context
def languages_cmd(context):
    for language in available_languages():
        target = get_target(language)
        aliases = ", ".join(target.aliases)
        line = f"{language} ({target.descriptor.display_name})"
        console.print(f"{line}  aliases: {aliases}" if aliases else line, markup=False, highlight=False)
    context.exit(EXIT_OK)


def main():
    cli(prog_name="validgen")

