"""Command line interface for the schema generator."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

import rich
import rich.traceback
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TimeElapsedColumn

from . import accumulate as accumulate_module
from .classify import ScalarRegistry
from .config import load_config
from .errors import MongoSchemaError
from .generate import generate_declarations
from .io import ChunkingConfig, JSONStream
from .mongo import MongoSupplier
from .render import Declaration, RenderOptions, render_declaration, render_source

rich.traceback.install(show_locals=False)

app = typer.Typer(help="Infer Go struct declarations from schema-less MongoDB documents.")
console = Console(stderr=True)


def _resolve_path(path: Path | str) -> Path:
    """Resolve a string or path to an absolute Path."""
    resolved = Path(path).expanduser().resolve()
    if not resolved.exists():
        raise typer.BadParameter(f"Path does not exist: {resolved}")
    return resolved


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _fail(error: Exception) -> typer.Exit:
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    return typer.Exit(code=1)


def _emit(declarations: Iterable[Declaration], output: Optional[Path], package: Optional[str]) -> None:
    declarations = list(declarations)
    if package:
        text = render_source(declarations, package)
    else:
        text = "\n\n".join(str(declaration) for declaration in declarations) + "\n"

    if output is None:
        typer.echo(text, nl=False)
        return

    output = output.expanduser().resolve()
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    console.print(f"Declarations written to [green]{output}[/green]")


def _parse_scalar_types(entries: Iterable[str]) -> ScalarRegistry:
    scalars = ScalarRegistry()
    for entry in entries:
        dotted_path, separator, kind = entry.partition("=")
        if not separator:
            raise typer.BadParameter(f"Expected PATH=KIND, got {entry!r}", param_hint="--scalar-type")
        scalars.register_entrypoint(dotted_path.strip(), kind.strip())
    return scalars


@app.command()
def generate(
    config_path: Path = typer.Argument(..., help="YAML configuration naming the collections."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write declarations to this file instead of stdout."
    ),
    package: Optional[str] = typer.Option(
        None, "--package", "-p", help="Emit a complete Go source file for this package."
    ),
    keep_going: bool = typer.Option(
        False,
        "--keep-going/--fail-fast",
        help="Continue with the remaining collections when one fails.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress details."),
) -> None:
    """Sample the configured MongoDB collections and print one declaration each."""

    _configure_logging(verbose)

    try:
        config = load_config(_resolve_path(config_path))
        with MongoSupplier(config.url, config.db) as supplier, Progress(
            SpinnerColumn(), *Progress.get_default_columns(), TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            tasks: dict[str, int] = {}

            def _progress_cb(collection: str, advance: int) -> None:
                if collection not in tasks:
                    tasks[collection] = progress.add_task(collection, total=config.limit or None)
                progress.update(tasks[collection], advance=advance)

            result = generate_declarations(
                config,
                supplier,
                keep_going=keep_going,
                progress_callback=_progress_cb,
            )
    except MongoSchemaError as error:
        raise _fail(error) from error

    _emit(result.declarations, output, package)

    if not result.ok:
        for failure in result.failures:
            console.print(f"[red]Failed:[/red] {escape(str(failure))}")
        raise typer.Exit(code=1)


@app.command()
def infer(
    source: Path = typer.Argument(..., help="JSON, JSONL or Extended JSON file of documents."),
    name: str = typer.Option("Root", "--name", "-n", help="Name of the emitted declaration."),
    limit: int = typer.Option(0, "--limit", help="Maximum number of records to sample; 0 reads all."),
    comments: bool = typer.Option(
        False,
        "--comments/--no-comments",
        help="Annotate mixed types and skipped field names with comments.",
    ),
    ignore: Optional[List[str]] = typer.Option(
        None, "--ignore", "-i", help="Field name to leave out of every struct; repeatable."
    ),
    scalar_type: Optional[List[str]] = typer.Option(
        None,
        "--scalar-type",
        help="Extra scalar class as PATH=KIND, e.g. decimal.Decimal=double; repeatable.",
    ),
    format_hint: Optional[str] = typer.Option(
        None, "--format", help="Force 'json_array', 'jsonl' or 'json_object' parsing."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the declaration to this file instead of stdout."
    ),
    package: Optional[str] = typer.Option(
        None, "--package", "-p", help="Emit a complete Go source file for this package."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log progress details."),
) -> None:
    """Infer a declaration from documents stored in a local file."""

    _configure_logging(verbose)

    if limit < 0:
        raise typer.BadParameter("Limit must not be negative", param_hint="--limit")
    try:
        chunk_config = ChunkingConfig(format=format_hint, max_records=limit or None)
    except ValueError as error:
        raise typer.BadParameter(str(error), param_hint="--format") from error

    stream = JSONStream(_resolve_path(source), chunk_config)
    options = RenderOptions(ignored_fields=frozenset(ignore or ()), comments=comments)

    try:
        scalars = _parse_scalar_types(scalar_type or ())
        with Progress(
            SpinnerColumn(), *Progress.get_default_columns(), TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Inferring", total=limit or None)
            inferred = accumulate_module.accumulate(
                stream.iter_records(),
                limit=limit or None,
                scalars=scalars,
                progress_callback=lambda advance: progress.update(task, advance=advance),
            )
    except MongoSchemaError as error:
        raise _fail(error) from error

    _emit([render_declaration(name, inferred, options)], output, package)


def main() -> None:
    """Entrypoint for `python -m mongoschema` usage."""

    app()


if __name__ == "__main__":  # pragma: no cover
    main()
