"""CLI for the ``bank_statements`` package.

Typer-based console interface. Environment variables (``BANK_STATEMENTS_*``)
are loaded from a local ``.env`` using ``python-dotenv`` before any command
runs. Business logic lives in :mod:`bank_statements.api`; this module only
maps options to a :class:`~bank_statements.config.ParserConfig`, writes the
document and turns errors into exit codes.

Exit codes: ``0`` success (possibly with some failed files), ``1`` every file
failed or the document could not be parsed, ``2`` bad arguments.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from typer.models import ArgumentInfo, OptionInfo

from .api import parse_statement_files
from .config import ParserConfig
from .errors import BatchFailed, StatementParseError
from .logging_setup import configure_logging
from .models import ParseFailure
from .output import render_json
from .pipeline import detect_pdf

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Parse Bank of America statement PDFs into canonical JSON. "
        "Loads BANK_STATEMENTS_* settings from a local .env before running."
    ),
)


# Module-level option objects keep calls out of parameter defaults (ruff B008).
PATHS_ARGUMENT: ArgumentInfo = typer.Argument(
    help="Statement PDFs and/or directories containing them (top level only).",
    show_default=False,
)
PDF_ARGUMENT: ArgumentInfo = typer.Argument(help="A single statement PDF.", show_default=False)
STRICT_OPTION: OptionInfo = typer.Option(
    "--strict", help="Treat every warning as a fatal error for its file."
)
VERBOSE_OPTION: OptionInfo = typer.Option("--verbose", "-v", help="Log at DEBUG level.")
OUTPUT_OPTION: OptionInfo = typer.Option(
    "--output", "-o", help="Write the JSON document here instead of stdout.", dir_okay=False
)
NO_MERGE_OPTION: OptionInfo = typer.Option(
    "--no-merge", help="Emit statements as parsed, without cross-file deduplication."
)


def _echo_failures(failures: Sequence[ParseFailure]) -> None:
    records = [f.model_dump(include={"filename", "error", "timestamp"}) for f in failures]
    typer.echo(json.dumps(records, indent=2), err=True)


def _config(*, strict: bool, verbose: bool) -> ParserConfig:
    # Unset flags fall through to the environment.
    return ParserConfig.from_env(strict=strict or None, verbose=verbose or None)


@app.command("parse")
def parse_cmd(
    paths: Annotated[list[Path], PATHS_ARGUMENT],
    *,
    strict: Annotated[bool, STRICT_OPTION] = False,
    verbose: Annotated[bool, VERBOSE_OPTION] = False,
    output: Annotated[Path | None, OUTPUT_OPTION] = None,
    no_merge: Annotated[bool, NO_MERGE_OPTION] = False,
) -> None:
    """Parse statement PDFs and emit one merged JSON document."""

    configure_logging(verbose=verbose)
    config = _config(strict=strict, verbose=verbose)

    def progress(current: int, total: int, filename: str) -> None:
        if config.verbose:
            typer.echo(f"[{current}/{total}] {filename}", err=True)

    try:
        document = parse_statement_files(
            paths, config=config, merge=not no_merge, on_progress=progress
        )
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(2) from exc
    except BatchFailed as exc:
        typer.echo(f"Error: {exc}", err=True)
        _echo_failures(exc.failures)
        raise typer.Exit(1) from exc

    if document.failures:
        _echo_failures(document.failures)

    rendered = render_json(document)
    if output is None:
        typer.echo(rendered)
    else:
        output.write_text(rendered + "\n", encoding="utf-8")
        typer.echo(
            f"Wrote {len(document.statements)} statement(s), "
            f"{document.summary.total_transactions} transaction(s) to {output}",
            err=True,
        )


@app.command("detect")
def detect_cmd(
    path: Annotated[Path, PDF_ARGUMENT],
    *,
    verbose: Annotated[bool, VERBOSE_OPTION] = False,
) -> None:
    """Print the statement layout detected for one PDF."""

    configure_logging(verbose=verbose)
    if not path.is_file():
        typer.echo(f"Error: No such file: {path}", err=True)
        raise typer.Exit(2)
    try:
        dialect = detect_pdf(path, _config(strict=False, verbose=verbose))
    except StatementParseError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc
    typer.echo(dialect.value)


@app.callback()
def _root() -> None:
    """Load ``.env`` from the current working directory.

    Already-set environment variables win over the file. Logging is configured
    by each command so that ``--verbose`` can select the level.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)


if __name__ == "__main__":  # pragma: no cover - exercised via the console script
    app()
