"""Read resume files (JSON, TXT, MD, PDF, DOCX) into a resume or review sections."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

from pydantic import ValidationError

from resume_forge.config import ImportConfig
from resume_forge.models.resume import ResumeDocument
from resume_forge.parsers.section_templates import (
    ImportedSection,
    hydrate_sections_from_json,
    hydrate_sections_from_text,
)

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".json", ".txt", ".md", ".pdf", ".docx")
PERSONAL_KEYS = ("personalInfo", "personal_info")
RESUME_LIST_KEYS = (
    "experience", "education", "skills", "projects", "certifications",
    "languages", "links", "customSections", "custom_sections",
)

_ARTIFACTS = re.compile(r"[\x00\u200b\u200c\u200d\u00ad\u2060\ufeff]")

_MESSAGES = {
    "UNSUPPORTED_TYPE": "Unsupported file type. Upload a PDF, DOCX, TXT, MD, or JSON resume.",
    "EMPTY_FILE": "We could not extract text from this file.",
    "IMAGE_PDF": (
        "This PDF looks like a scanned image. Export a digital PDF or upload TXT/JSON "
        "so we can parse the text."
    ),
    "INVALID_JSON": "JSON file is invalid. Provide structured resume data.",
    "UNREADABLE": "Unable to read file.",
}


class ImportFileError(ValueError):
    """An import failed; ``code`` identifies the reason."""

    def __init__(self, code: str, detail: str = ""):
        self.code = code
        self.detail = detail
        super().__init__(f"{code}: {detail}" if detail else code)

    @property
    def user_message(self) -> str:
        return _MESSAGES.get(self.code, _MESSAGES["UNREADABLE"])


@dataclass
class ImportResult:
    """Either a whole resume (``kind="resume"``) or sections awaiting review."""

    kind: Literal["resume", "sections"]
    source: str
    resume: ResumeDocument | None = None
    sections: list[ImportedSection] = field(default_factory=list)


def is_legacy_resume(payload: Any) -> bool:
    """True for JSON shaped like a resume: personal info plus at least one resume list."""
    if not isinstance(payload, dict):
        return False
    if not any(isinstance(payload.get(key), dict) for key in PERSONAL_KEYS):
        return False
    return any(isinstance(payload.get(key), list) for key in RESUME_LIST_KEYS)


def clean_text(text: str) -> str:
    """Strip NULs, zero-width characters and trailing whitespace."""
    text = _ARTIFACTS.sub("", text)
    lines = [line.rstrip() for line in text.replace("\r\n", "\n").split("\n")]
    return re.sub(r"\n{3,}", "\n\n", "\n".join(lines)).strip()


def _import_json(text: str, source: str) -> ImportResult:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFileError("INVALID_JSON", str(e)) from e

    if is_legacy_resume(payload):
        try:
            resume = ResumeDocument.model_validate(payload)
        except ValidationError as e:
            raise ImportFileError("INVALID_JSON", str(e)) from e
        logger.info("Imported full resume from %s", source)
        return ImportResult(kind="resume", source=source, resume=resume)

    return ImportResult(kind="sections", source=source, sections=hydrate_sections_from_json(payload))


def import_resume_text(
    text: str,
    extension: str = ".txt",
    source: str = "<text>",
    config: ImportConfig | None = None,
) -> ImportResult:
    """Import already-extracted text; ``extension`` picks JSON or free-text parsing."""
    config = config or ImportConfig()
    extension = "." + extension.lower().lstrip(".")
    cleaned = clean_text(text)
    if not cleaned:
        raise ImportFileError("IMAGE_PDF" if extension == ".pdf" else "EMPTY_FILE", source)
    if extension == ".pdf" and len(cleaned) < config.min_pdf_text_chars:
        raise ImportFileError("IMAGE_PDF", f"{source}: only {len(cleaned)} characters of text")

    if extension == ".json":
        return _import_json(cleaned, source)
    return ImportResult(kind="sections", source=source, sections=hydrate_sections_from_text(cleaned))


def read_import_file(path: str | Path) -> str:
    """Extract raw text from a supported resume file."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        raise ImportFileError("UNSUPPORTED_TYPE", suffix or path.name)
    try:
        if suffix == ".pdf":
            return _read_pdf(path)
        if suffix == ".docx":
            return _read_docx(path)
        return path.read_text(encoding="utf-8-sig")
    except ImportFileError:
        raise
    except (OSError, UnicodeDecodeError, ValueError, RuntimeError) as e:
        raise ImportFileError("UNREADABLE", f"{path.name}: {e}") from e


def _read_pdf(path: Path) -> str:
    import fitz  # pymupdf

    doc = fitz.open(str(path))
    try:
        return "\n".join(page.get_text() for page in doc)
    finally:
        doc.close()


def _read_docx(path: Path) -> str:
    from docx import Document
    from docx.opc.exceptions import PackageNotFoundError

    try:
        doc = Document(str(path))
    except PackageNotFoundError as e:
        raise ImportFileError("UNREADABLE", f"{path.name}: {e}") from e
    return "\n".join(p.text for p in doc.paragraphs if p.text.strip())


def import_resume_file(path: str | Path, config: ImportConfig | None = None) -> ImportResult:
    """Import a resume file.

    Full-resume JSON is loaded wholesale; everything else is split into
    review sections.
    """
    config = config or ImportConfig()
    path = Path(path)
    if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise ImportFileError("UNSUPPORTED_TYPE", path.suffix or path.name)
    if not path.exists():
        raise ImportFileError("UNREADABLE", f"{path} does not exist")
    size_mb = path.stat().st_size / (1024 * 1024)
    if size_mb > config.max_file_mb:
        raise ImportFileError("UNREADABLE", f"{path.name} is {size_mb:.1f} MB (limit {config.max_file_mb} MB)")

    text = read_import_file(path)
    result = import_resume_text(text, path.suffix, source=path.name, config=config)
    logger.info("Imported %s as %s", path.name, result.kind)
    return result
