"""Data models for resumes and cover letters."""

from resume_forge.models.cover_letter import BodyParagraph, CoverLetterDocument
from resume_forge.models.resume import (
    CertificationEntry,
    CustomSection,
    EducationEntry,
    ExperienceEntry,
    LanguageEntry,
    LinkEntry,
    PersonalInfo,
    ProjectEntry,
    ResumeDocument,
    SkillEntry,
)

__all__ = [
    "BodyParagraph",
    "CertificationEntry",
    "CoverLetterDocument",
    "CustomSection",
    "EducationEntry",
    "ExperienceEntry",
    "LanguageEntry",
    "LinkEntry",
    "PersonalInfo",
    "ProjectEntry",
    "ResumeDocument",
    "SkillEntry",
]
