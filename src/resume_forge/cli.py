"""CLI interface using typer + rich."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from resume_forge.config import AppConfig, load_config
from resume_forge.errors import ExportError
from resume_forge.export import (
    COVER_LETTER_FORMATS,
    RESUME_FORMATS,
    export_cover_letter,
    export_json,
    export_resume,
    write_export,
)
from resume_forge.parsers.resume_importer import ImportFileError, import_resume_file
from resume_forge.parsers.section_templates import apply_sections
from resume_forge.templates.loader import list_templates

app = typer.Typer(
    name="resume-forge",
    help="Template-driven resume and cover letter exports (PDF, DOCX, HTML, JSON).",
    no_args_is_help=True,
)
console = Console()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def _config(ctx: typer.Context) -> AppConfig:
    return ctx.obj if isinstance(ctx.obj, AppConfig) else load_config()


def _read_json(path: Path) -> Any:
    if not path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        console.print(f"[red]Could not read {path}: {e}[/red]")
        raise typer.Exit(1)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Path = typer.Option(None, "--config", "-c", help="Path to config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Export resumes and cover letters from JSON documents."""
    config = load_config(config_path)
    _setup_logging("DEBUG" if verbose else config.logging.level)
    ctx.obj = config


@app.command()
def export(
    ctx: typer.Context,
    resume: Path = typer.Argument(help="Resume JSON file"),
    fmt: str = typer.Option("pdf", "--format", "-f", help=f"One of: {', '.join(RESUME_FORMATS)}"),
    template: str = typer.Option(None, "--template", "-t", help="Template id (defaults to the resume's own)"),
    version: str = typer.Option(None, "--version", help="Version label appended to the filename"),
    output: Path = typer.Option(None, "--output", "-o", help="Output directory"),
) -> None:
    """Export a resume to PDF, DOCX, HTML or JSON."""
    config = _config(ctx)
    data = _read_json(resume)
    try:
        result = export_resume(data, fmt, version=version, template=template, config=config.export)
    except (ExportError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    path = write_export(result, output or config.export.resolved_output_dir)
    console.print(f"[green]Saved: {path}[/green]")


@app.command("cover-letter")
def cover_letter(
    ctx: typer.Context,
    letter: Path = typer.Argument(help="Cover letter JSON file"),
    resume: Path = typer.Option(None, "--resume", "-r", help="Resume JSON used for the letterhead"),
    fmt: str = typer.Option("pdf", "--format", "-f", help=f"One of: {', '.join(COVER_LETTER_FORMATS)}"),
    output: Path = typer.Option(None, "--output", "-o", help="Output directory"),
) -> None:
    """Export a cover letter to PDF, DOCX or HTML."""
    config = _config(ctx)
    data = _read_json(letter)
    sender = _read_json(resume) if resume else None
    try:
        result = export_cover_letter(data, fmt, sender=sender, config=config.export)
    except (ExportError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    path = write_export(result, output or config.export.resolved_output_dir)
    console.print(f"[green]Saved: {path}[/green]")


@app.command("import")
def import_(
    ctx: typer.Context,
    file: Path = typer.Argument(help="Resume file (.json, .txt, .md, .pdf, .docx)"),
    into: Path = typer.Option(None, "--into", help="Existing resume JSON to merge accepted sections into"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the resulting resume JSON here"),
    accept_all: bool = typer.Option(False, "--accept-all", help="Also accept optional sections"),
) -> None:
    """Import a resume file and show the detected sections."""
    config = _config(ctx)
    try:
        result = import_resume_file(file, config.importing)
    except ImportFileError as e:
        console.print(f"[red]{e.user_message}[/red]")
        logging.getLogger(__name__).debug("Import failed: %s", e)
        raise typer.Exit(1)

    if result.kind == "resume":
        info = result.resume.personal_info
        console.print(Panel(
            f"{info.full_name or 'Unnamed'}\n"
            f"Experience: {len(result.resume.experience)} | Education: {len(result.resume.education)} | "
            f"Skills: {len(result.resume.skills)}",
            title=f"Full resume: {result.source}",
        ))
        merged = result.resume
    else:
        sections = result.sections
        if accept_all:
            sections = [s.model_copy(update={"accepted": not s.is_empty()}) for s in sections]
        table = Table(title=f"Sections: {result.source}")
        table.add_column("Section")
        table.add_column("Required")
        table.add_column("Accepted")
        table.add_column("Preview", overflow="fold")
        for section in sections:
            preview = next((f.value for f in section.fields if f.value), "")
            table.add_row(
                section.title,
                "yes" if section.required else "",
                "[green]yes[/green]" if section.accepted else "[dim]no[/dim]",
                preview[:80],
            )
        console.print(table)
        base = _read_json(into) if into else None
        try:
            merged = apply_sections(base, sections)
        except ValueError as e:
            console.print(f"[red]Not a resume: {into}[/red]")
            logging.getLogger(__name__).debug("Merge failed: %s", e)
            raise typer.Exit(1)

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(export_json(merged), encoding="utf-8")
        console.print(f"[green]Resume saved: {output}[/green]")


@app.command()
def templates() -> None:
    """List available resume templates."""
    table = Table(title="Templates")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Layout")
    table.add_column("Bullets")
    table.add_column("Titles")
    table.add_column("Description")
    for tmpl in list_templates():
        table.add_row(
            tmpl.id,
            tmpl.name,
            tmpl.layout.value,
            tmpl.bullet_style.value,
            tmpl.section_style.value,
            tmpl.description,
        )
    console.print(table)


if __name__ == "__main__":
    app()
