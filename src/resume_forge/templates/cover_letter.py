"""Cover letter layout: one plan, rendered by the preview, PDF and DOCX backends."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from resume_forge.models.cover_letter import CoverLetterDocument, coerce_cover_letter
from resume_forge.models.resume import PersonalInfo, ResumeDocument
from resume_forge.templates.loader import FontFamily, HeaderAlign
from resume_forge.utils.text_normalizer import format_long_date, normalize_text

logger = logging.getLogger(__name__)

DEFAULT_COVER_LETTER_TEMPLATE = "formal"


@dataclass(frozen=True)
class CoverLetterStyle:
    id: str
    name: str
    font_family: FontFamily
    header_align: HeaderAlign
    body_size: float
    paragraph_spacing: float  # points after each body paragraph
    justify: bool


COVER_LETTER_STYLES = {
    "formal": CoverLetterStyle("formal", "Formal", FontFamily.TIMES, HeaderAlign.CENTER, 11, 10, True),
    "modern": CoverLetterStyle("modern", "Modern", FontFamily.HELVETICA, HeaderAlign.LEFT, 10.5, 10, False),
    "minimal": CoverLetterStyle("minimal", "Minimal", FontFamily.HELVETICA, HeaderAlign.LEFT, 10, 7, False),
}


@dataclass(frozen=True)
class CoverLetterPlan:
    style: CoverLetterStyle
    sender_name: str
    sender_contact: tuple[str, ...]
    date: str
    recipient: tuple[str, ...]
    salutation: str
    paragraphs: tuple[str, ...]
    closing: str
    signature: str


def resolve_cover_letter_style(template_id: str | None) -> CoverLetterStyle:
    key = (template_id or "").strip().lower()
    if key in COVER_LETTER_STYLES:
        return COVER_LETTER_STYLES[key]
    logger.warning("Unknown cover letter template %r, using %r", template_id, DEFAULT_COVER_LETTER_TEMPLATE)
    return COVER_LETTER_STYLES[DEFAULT_COVER_LETTER_TEMPLATE]


def _sender_info(sender: PersonalInfo | ResumeDocument | dict[str, Any] | None) -> PersonalInfo:
    if sender is None:
        return PersonalInfo()
    if isinstance(sender, ResumeDocument):
        return sender.personal_info
    if isinstance(sender, PersonalInfo):
        return sender
    if "personalInfo" in sender or "personal_info" in sender:
        return ResumeDocument.model_validate(sender).personal_info
    return PersonalInfo.model_validate(sender)


def plan_cover_letter(
    letter: CoverLetterDocument | dict[str, Any],
    sender: PersonalInfo | ResumeDocument | dict[str, Any] | None = None,
) -> CoverLetterPlan:
    """Resolve the letter's style and normalize every line.

    ``sender`` supplies the letterhead (name and contact lines), usually the
    personal info of the associated resume. Blank body paragraphs are dropped.
    """
    letter = coerce_cover_letter(letter)
    info = _sender_info(sender)
    contact = tuple(
        p for p in (normalize_text(info.email), normalize_text(info.phone), normalize_text(info.location)) if p
    )
    recipient = tuple(p for p in (normalize_text(letter.recipient_name), normalize_text(letter.company)) if p)
    paragraphs = tuple(t for t in (normalize_text(p.text) for p in letter.body_paragraphs) if t)
    return CoverLetterPlan(
        style=resolve_cover_letter_style(letter.template_id),
        sender_name=normalize_text(info.full_name),
        sender_contact=contact,
        date=format_long_date(letter.date),
        recipient=recipient,
        salutation=normalize_text(letter.salutation),
        paragraphs=paragraphs,
        closing=normalize_text(letter.closing),
        signature=normalize_text(letter.signature),
    )
