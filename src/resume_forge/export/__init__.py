"""Export module for resume-forge: one call per format, bytes plus a filename."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from resume_forge.config import ExportConfig
from resume_forge.errors import ExportError
from resume_forge.export.json_export import export_json
from resume_forge.export.pdf_renderer import render_cover_letter_pdf, render_pdf
from resume_forge.models.cover_letter import CoverLetterDocument, coerce_cover_letter
from resume_forge.models.resume import PersonalInfo, ResumeDocument, coerce_resume
from resume_forge.templates.docx_renderer import render_cover_letter_docx, render_docx
from resume_forge.templates.loader import TemplateConfig
from resume_forge.templates.renderer import render_cover_letter_page, render_preview_page
from resume_forge.utils.text_normalizer import generate_filename, normalize_text

logger = logging.getLogger(__name__)

RESUME_FORMATS = ("pdf", "docx", "json", "html")
COVER_LETTER_FORMATS = ("pdf", "docx", "html")

MEDIA_TYPES = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "json": "application/json",
    "html": "text/html; charset=utf-8",
}

_UNSAFE_FILENAME = re.compile(r'[\\/:*?"<>|\x00-\x1f]')


@dataclass(frozen=True)
class ExportResult:
    filename: str
    content: bytes
    media_type: str


def _check_format(fmt: str, allowed: tuple[str, ...]) -> str:
    fmt = fmt.lower().lstrip(".")
    if fmt not in allowed:
        raise ValueError(f"Unsupported format {fmt!r}; expected one of {', '.join(allowed)}")
    return fmt


def export_resume(
    resume: ResumeDocument | dict[str, Any],
    fmt: str,
    version: str | None = None,
    template: TemplateConfig | str | None = None,
    config: ExportConfig | None = None,
) -> ExportResult:
    """Export a resume as ``pdf``, ``docx``, ``json`` or ``html``.

    ``template`` overrides the resume's own template id. The filename is
    ``{fullName}[-{version}].{fmt}``, with ``Resume`` for a blank name.
    """
    fmt = _check_format(fmt, RESUME_FORMATS)
    config = config or ExportConfig()
    resume = coerce_resume(resume)
    template = template or resume.template or config.default_template

    if fmt == "pdf":
        content = render_pdf(resume, template, font_path=config.pdf_font_path)
    elif fmt == "docx":
        content = render_docx(resume, template, margin_in=config.margin_in)
    elif fmt == "json":
        content = export_json(resume).encode("utf-8")
    else:
        content = render_preview_page(resume, template).encode("utf-8")

    filename = generate_filename(resume.personal_info.full_name, version, fmt)
    logger.info("Exported %s (%d bytes)", filename, len(content))
    return ExportResult(filename=filename, content=content, media_type=MEDIA_TYPES[fmt])


def export_cover_letter(
    letter: CoverLetterDocument | dict[str, Any],
    fmt: str,
    sender: PersonalInfo | ResumeDocument | dict[str, Any] | None = None,
    config: ExportConfig | None = None,
) -> ExportResult:
    """Export a cover letter as ``pdf``, ``docx`` or ``html``; named after the company."""
    fmt = _check_format(fmt, COVER_LETTER_FORMATS)
    config = config or ExportConfig()
    letter = coerce_cover_letter(letter)

    if fmt == "pdf":
        content = render_cover_letter_pdf(letter, sender, font_path=config.pdf_font_path)
    elif fmt == "docx":
        content = render_cover_letter_docx(letter, sender, margin_in=config.margin_in)
    else:
        content = render_cover_letter_page(letter, sender).encode("utf-8")

    filename = f"{normalize_text(letter.company) or 'cover-letter'}.{fmt}"
    logger.info("Exported %s (%d bytes)", filename, len(content))
    return ExportResult(filename=filename, content=content, media_type=MEDIA_TYPES[fmt])


def write_export(result: ExportResult, out_dir: str | Path) -> Path:
    """Write an export into ``out_dir`` and return the file path."""
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / _UNSAFE_FILENAME.sub("-", result.filename)
    path.write_bytes(result.content)
    return path


__all__ = [
    "COVER_LETTER_FORMATS",
    "ExportError",
    "ExportResult",
    "RESUME_FORMATS",
    "export_cover_letter",
    "export_json",
    "export_resume",
    "render_cover_letter_docx",
    "render_cover_letter_pdf",
    "render_docx",
    "render_pdf",
    "render_preview_page",
    "write_export",
]
