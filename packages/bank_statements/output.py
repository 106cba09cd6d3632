"""The JSON document written by the CLI."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict

from .config import DEFAULT_CONFIG, ParserConfig
from .models import BatchSummary, IntegrityEntry, ParseFailure, Statement
from .reconcile import build_integrity_report

SCHEMA_VERSION = "1.0.0"


class ParserInfo(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    name: str
    version: str


class OutputDocument(BaseModel):
    model_config = ConfigDict(strict=True, extra="forbid", frozen=True)

    schema_version: str = SCHEMA_VERSION
    parser: ParserInfo
    parsed_at: str
    statements: list[Statement]
    failures: list[ParseFailure]
    summary: BatchSummary
    integrity: list[IntegrityEntry]


def build_output_document(
    statements: list[Statement],
    failures: list[ParseFailure],
    summary: BatchSummary,
    config: ParserConfig = DEFAULT_CONFIG,
    *,
    parsed_at: datetime | None = None,
) -> OutputDocument:
    report = build_integrity_report(statements, config)
    return OutputDocument(
        parser=ParserInfo(name=config.parser_name, version=config.parser_version),
        parsed_at=(parsed_at or datetime.now(UTC)).isoformat(),
        statements=statements,
        failures=failures,
        summary=summary,
        integrity=report.entries,
    )


def render_json(document: OutputDocument, *, indent: int | None = 2) -> str:
    return document.model_dump_json(indent=indent)


__all__ = ["SCHEMA_VERSION", "OutputDocument", "ParserInfo", "build_output_document", "render_json"]
