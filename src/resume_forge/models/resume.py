"""Pydantic models for the resume document handed to the export engine."""

from __future__ import annotations

import uuid
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _coerce_list(value: Any) -> Any:
    if value is None or value == "":
        return ()
    if isinstance(value, (str, dict)):
        return (value,)
    return value


def _coerce_item(value: Any) -> Any:
    if isinstance(value, dict):
        return value.get("text") or value.get("name") or ""
    return value


Text = Annotated[str, BeforeValidator(_coerce_text)]
TextList = Annotated[tuple[Annotated[Text, BeforeValidator(_coerce_item)], ...], BeforeValidator(_coerce_list)]


def new_id() -> str:
    return uuid.uuid4().hex


class DocumentModel(BaseModel):
    """Frozen base: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Entry(DocumentModel):
    id: str = Field(default_factory=new_id)

    @field_validator("id", mode="before")
    @classmethod
    def _fill_id(cls, value: Any) -> str:
        return _coerce_text(value) or new_id()


class PersonalInfo(DocumentModel):
    full_name: Text = ""
    title: Text = ""
    summary: Text = ""
    email: Text = ""
    phone: Text = ""
    location: Text = ""
    linkedin: Text = ""
    github: Text = ""
    website: Text = ""


class ExperienceEntry(Entry):
    position: Text = ""
    company: Text = ""
    location: Text = ""
    start_date: Text = ""
    end_date: Text = ""
    current: bool = False
    bullets: TextList = ()

    @field_validator("current", mode="before")
    @classmethod
    def _coerce_current(cls, value: Any) -> bool:
        return bool(value)


class EducationEntry(Entry):
    degree: Text = ""
    school: Text = ""
    location: Text = ""
    start_date: Text = ""
    end_date: Text = ""
    gpa: Text = ""


class _NamedEntry(Entry):
    """Entries that may arrive as a bare string (``"Python"``)."""

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        return data


class SkillEntry(_NamedEntry):
    name: Text = ""
    level: Text = ""


class LanguageEntry(_NamedEntry):
    name: Text = ""
    level: Text = ""


class ProjectEntry(Entry):
    name: Text = ""
    description: Text = ""
    url: Text = ""
    technologies: TextList = ()


class CertificationEntry(Entry):
    name: Text = ""
    issuer: Text = ""
    date: Text = ""
    url: Text = ""


class LinkEntry(Entry):
    label: Text = ""
    url: Text = ""


class CustomSection(Entry):
    title: Text = ""
    content: Text = ""
    items: TextList = ()


class ResumeDocument(DocumentModel):
    """Immutable resume snapshot; list order is user-significant."""

    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    experience: tuple[ExperienceEntry, ...] = ()
    education: tuple[EducationEntry, ...] = ()
    skills: tuple[SkillEntry, ...] = ()
    projects: tuple[ProjectEntry, ...] = ()
    certifications: tuple[CertificationEntry, ...] = ()
    languages: tuple[LanguageEntry, ...] = ()
    links: tuple[LinkEntry, ...] = ()
    custom_sections: tuple[CustomSection, ...] = ()
    template: Text = "classic"
    last_modified: str | None = None

    @field_validator(
        "experience", "education", "skills", "projects", "certifications",
        "languages", "links", "custom_sections",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return () if value is None else value

    @field_validator("personal_info", mode="before")
    @classmethod
    def _none_to_blank(cls, value: Any) -> Any:
        return {} if value is None else value


def coerce_resume(data: ResumeDocument | dict[str, Any]) -> ResumeDocument:
    """Return an immutable snapshot of ``data`` for rendering."""
    if isinstance(data, ResumeDocument):
        return data
    return ResumeDocument.model_validate(data)
