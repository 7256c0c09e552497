"""Pydantic models for cover letters."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator, model_validator

from resume_forge.models.resume import DocumentModel, Entry, Text


class BodyParagraph(DocumentModel):
    text: Text = ""

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"text": data}
        return data


class CoverLetterDocument(Entry):
    """A cover letter; linked to a resume only by ``associated_resume_id``."""

    recipient_name: Text = ""
    company: Text = ""
    date: Text = ""
    salutation: Text = ""
    body_paragraphs: tuple[BodyParagraph, ...] = ()
    closing: Text = ""
    signature: Text = ""
    associated_resume_id: str | None = None
    template_id: Text = "formal"

    @field_validator("body_paragraphs", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return () if value is None else value


def coerce_cover_letter(data: CoverLetterDocument | dict[str, Any]) -> CoverLetterDocument:
    if isinstance(data, CoverLetterDocument):
        return data
    return CoverLetterDocument.model_validate(data)
