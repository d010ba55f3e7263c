"""CLI entry point for codeskel."""

from __future__ import annotations

import enum
import logging
from pathlib import Path
from typing import Annotated

import typer

from codeskel.diagram import render_flowchart
from codeskel.discovery import DEFAULT_MAX_FILE_SIZE
from codeskel.incremental import ChangeReport, is_manifest
from codeskel.parsing import EXTENSION_MAP
from codeskel.pipeline import analyze_repository, state_key
from codeskel.section import format_architecture_markdown
from codeskel.store import JsonFileStateStore
from codeskel.toon import encode


class OutputFormat(str, enum.Enum):
    TOON = "toon"
    MERMAID = "mermaid"
    MARKDOWN = "markdown"


def _describe_changes(changes: ChangeReport) -> str:
    mode = "full" if changes.should_full_reanalyze else "partial"
    return (
        f"Changes: {len(changes.added)} added, {len(changes.modified)} modified, "
        f"{len(changes.deleted)} deleted ({mode} reanalysis)"
    )


app = typer.Typer(
    name="codeskel",
    help="Map a repository's structure: dependency graph, ranking and skeleton.",
    no_args_is_help=False,
)


@app.command()
def main(
    root: Annotated[
        Path,
        typer.Argument(
            help="Repository root directory.",
            exists=True,
            file_okay=False,
            resolve_path=True,
        ),
    ] = Path("."),
    max_files: Annotated[
        int | None,
        typer.Option(
            "--max-files",
            "-n",
            min=1,
            help="Maximum number of ranked files to include in output.",
        ),
    ] = None,
    language: Annotated[
        str | None,
        typer.Option(
            "--language",
            "-l",
            help="Restrict to a specific language (e.g., python).",
        ),
    ] = None,
    max_file_size: Annotated[
        int,
        typer.Option(
            "--max-file-size",
            min=1,
            help="Skip files larger than this many bytes (default: 1MB).",
        ),
    ] = DEFAULT_MAX_FILE_SIZE,
    state_dir: Annotated[
        Path | None,
        typer.Option(
            "--state-dir",
            file_okay=False,
            help="Directory holding incremental state; skips unchanged repositories.",
        ),
    ] = None,
    commit: Annotated[
        str | None,
        typer.Option("--commit", help="Commit identifier to record (default: git HEAD)."),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format."),
    ] = OutputFormat.TOON,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Log analysis details to stderr."),
    ] = False,
) -> None:
    """Analyze a repository and print the result to stdout."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s"
        )

    languages = sorted(set(EXTENSION_MAP.values()))
    if language and language not in languages:
        typer.echo(
            f"Error: unsupported language '{language}'. "
            f"Supported: {', '.join(languages)}",
            err=True,
        )
        raise typer.Exit(1)

    store = JsonFileStateStore(state_dir) if state_dir is not None else None
    result = analyze_repository(
        root,
        store=store,
        commit=commit,
        language_filter=language,
        max_file_size=max_file_size,
    )
    if result is None:
        previous = store.read(state_key(root)) if store is not None else None
        recorded = (previous.commit if previous is not None else "") or "unknown"
        typer.echo(f"{root.name} is up to date (commit {recorded}).", err=True)
        return

    for warning in result.warnings:
        typer.echo(f"Warning: {warning}", err=True)

    if all(is_manifest(p) for p in result.parsed_files):
        typer.echo("No parseable files found.", err=True)
        raise typer.Exit(1)
    if all(parsed is None for parsed in result.parsed_files.values()):
        typer.echo("No files could be parsed.", err=True)
        raise typer.Exit(1)

    if store is not None:
        typer.echo(_describe_changes(result.changes), err=True)

    if output_format == OutputFormat.MERMAID:
        output = render_flowchart(result.architecture)
    elif output_format == OutputFormat.MARKDOWN:
        output = format_architecture_markdown(result.section)
    else:
        output = encode(result, max_files=max_files)
    typer.echo(output)
