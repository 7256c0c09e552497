"""Fixed import sections and the heuristics that fill them.

Imported text is mapped onto five review sections (summary, experience,
education, skills, projects). Required sections come back pre-accepted;
the user reviews them before ``apply_sections`` merges them into a resume.
"""

from __future__ import annotations

import logging
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel

from resume_forge.models.resume import (
    EducationEntry,
    ExperienceEntry,
    ProjectEntry,
    ResumeDocument,
    SkillEntry,
    coerce_resume,
)
from resume_forge.utils.text_normalizer import PRESENT_LABEL, normalize_text

logger = logging.getLogger(__name__)


class FieldType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    LIST = "list"


class SectionField(BaseModel):
    id: str
    label: str
    type: FieldType = FieldType.TEXT
    placeholder: str = ""
    value: str = ""


class SectionTemplate(BaseModel):
    id: str
    title: str
    required: bool
    fields: list[SectionField]


class ImportedSection(BaseModel):
    id: str
    title: str
    required: bool
    accepted: bool
    fields: list[SectionField]

    def value(self, field_id: str) -> str:
        for f in self.fields:
            if f.id == field_id:
                return f.value
        return ""

    def is_empty(self) -> bool:
        return not any(f.value for f in self.fields)


SECTION_TEMPLATES: tuple[SectionTemplate, ...] = (
    SectionTemplate(id="summary", title="Professional Summary", required=True, fields=[
        SectionField(id="headline", label="Headline",
                     placeholder="Product leader focused on growth and experimentation"),
        SectionField(id="overview", label="Overview", type=FieldType.TEXTAREA,
                     placeholder="3-4 sentences that describe your focus, scope, and impact."),
    ]),
    SectionTemplate(id="experience", title="Most Recent Role", required=True, fields=[
        SectionField(id="role", label="Role", placeholder="Senior Product Manager"),
        SectionField(id="company", label="Company", placeholder="Northwind"),
        SectionField(id="timeline", label="Dates", placeholder="2019 - Present"),
        SectionField(id="impact", label="Impact summary", type=FieldType.TEXTAREA,
                     placeholder="Summarize scope, org size, and measurable wins."),
    ]),
    SectionTemplate(id="education", title="Education", required=False, fields=[
        SectionField(id="school", label="School", placeholder="University of Example"),
        SectionField(id="degree", label="Degree / Program", placeholder="B.S. Computer Science"),
        SectionField(id="graduation", label="Graduation", placeholder="2021"),
    ]),
    SectionTemplate(id="skills", title="Skills & Keywords", required=True, fields=[
        SectionField(id="skillsList", label="Core skills", type=FieldType.LIST,
                     placeholder="Enter one skill per line or separate with commas"),
        SectionField(id="tools", label="Tools & Platforms", type=FieldType.LIST,
                     placeholder="Figma, Jira, SQL, Mixpanel"),
    ]),
    SectionTemplate(id="projects", title="Highlighted Project", required=False, fields=[
        SectionField(id="project", label="Project summary", type=FieldType.TEXTAREA,
                     placeholder="Outline the challenge, approach, and impact."),
    ]),
)

# Core skills shown before the remainder spills into "Tools & Platforms"
CORE_SKILL_LIMIT = 8

_YEAR_2000S = re.compile(r"20\d{2}")
_YEAR = re.compile(r"(19|20)\d{2}")
_LIST_MARKER = re.compile(r"^\s*[-•*]\s*", re.MULTILINE)
_DATE_SPLIT = re.compile(r"\s*[-–—]\s*|\s+to\s+", re.IGNORECASE)
_ITEM_SPLIT = re.compile(r"[,\n]")


# ---------------------------------------------------------------------------
# Hydration
# ---------------------------------------------------------------------------

def _materialize(template: SectionTemplate, values: dict[str, Any]) -> ImportedSection:
    return ImportedSection(
        id=template.id,
        title=template.title,
        required=template.required,
        accepted=template.required,
        fields=[
            f.model_copy(update={"value": _derive_value(f, values.get(f.id))})
            for f in template.fields
        ],
    )


def _derive_value(field: SectionField, candidate: Any) -> str:
    if candidate is None:
        return ""
    if isinstance(candidate, str):
        return candidate.strip()
    if isinstance(candidate, (list, tuple)):
        items = [str(item if item is not None else "").strip() for item in candidate]
        items = [item for item in items if item]
        return "\n".join(items) if field.type is FieldType.LIST else ", ".join(items)
    if isinstance(candidate, dict):
        if candidate.get(field.id):
            return _derive_value(field, candidate[field.id])
        if "value" in candidate:
            return _derive_value(field, candidate["value"])
    return str(candidate).strip()


def hydrate_sections_from_text(text: str) -> list[ImportedSection]:
    """Split free resume text into the fixed review sections."""
    normalized = text.replace("\r\n", "\n").strip()
    sections = [_materialize(t, _EXTRACTORS[t.id](normalized)) for t in SECTION_TEMPLATES]
    logger.debug("Hydrated %d/%d sections from text",
                 sum(not s.is_empty() for s in sections), len(sections))
    return sections


def hydrate_sections_from_json(payload: Any) -> list[ImportedSection]:
    """Map a JSON payload keyed by section id onto the review sections.

    Legacy resume payloads (``personalInfo``, ``experience`` lists...) are
    reduced to their first entries first.
    """
    normalized = _normalize_legacy_payload(payload)
    return [_materialize(t, _map_json_value(normalized.get(t.id), t)) for t in SECTION_TEMPLATES]


def _is_legacy(payload: dict[str, Any]) -> bool:
    """Resume-shaped payloads carry personal info or lists of entry objects.

    Section-keyed payloads (``{"projects": ["..."]}``) hold strings instead.
    """
    if "personalInfo" in payload or "personal_info" in payload:
        return True
    for key in ("experience", "education", "skills", "projects"):
        value = payload.get(key)
        if isinstance(value, list) and any(isinstance(item, dict) for item in value):
            return True
    return False


def _timeline(start: Any, end: Any, current: Any) -> str:
    start = normalize_text(start)
    end = PRESENT_LABEL if current else normalize_text(end)
    if not start and not end:
        return ""
    return f"{start} - {end}"


def _normalize_legacy_payload(payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        return {}
    if not _is_legacy(payload):
        return payload

    normalized: dict[str, Any] = {}
    info = payload.get("personalInfo") or payload.get("personal_info")
    if isinstance(info, dict):
        normalized["summary"] = {
            "headline": info.get("fullName") or info.get("full_name") or "",
            "overview": info.get("summary") or "",
        }

    experience = payload.get("experience")
    if isinstance(experience, list) and experience and isinstance(experience[0], dict):
        exp = experience[0]
        bullets = exp.get("bullets")
        normalized["experience"] = {
            "role": exp.get("position") or "",
            "company": exp.get("company") or "",
            "timeline": _timeline(exp.get("startDate"), exp.get("endDate"), exp.get("current")),
            "impact": "\n".join(str(b) for b in bullets) if isinstance(bullets, list) else "",
        }

    education = payload.get("education")
    if isinstance(education, list) and education and isinstance(education[0], dict):
        edu = education[0]
        normalized["education"] = {
            "school": edu.get("school") or "",
            "degree": edu.get("degree") or "",
            "graduation": edu.get("endDate") or "",
        }

    skills = payload.get("skills")
    if isinstance(skills, list):
        names = [s if isinstance(s, str) else (s or {}).get("name") for s in skills]
        names = [n for n in names if n]
        normalized["skills"] = {
            "skillsList": names[:CORE_SKILL_LIMIT],
            "tools": names[CORE_SKILL_LIMIT:],
        }

    projects = payload.get("projects")
    if isinstance(projects, list) and projects and isinstance(projects[0], dict):
        project = projects[0]
        normalized["projects"] = {"project": project.get("description") or project.get("name") or ""}

    return normalized


def _map_json_value(source: Any, template: SectionTemplate) -> dict[str, Any]:
    if source is None:
        return {}
    if isinstance(source, str):
        if len(template.fields) == 1:
            return {template.fields[0].id: source}
        if template.id == "summary":
            return {"overview": source}
        return {}
    if isinstance(source, list):
        if not source:
            return {}
        first = source[0]
        if isinstance(first, str):
            list_fields = [f for f in template.fields if f.type is FieldType.LIST]
            if len(template.fields) == 1 or list_fields:
                target = (list_fields or template.fields)[0]
                return {target.id: "\n".join(str(s) for s in source)}
            return {template.fields[0].id: first}
        return first if isinstance(first, dict) else {}
    if isinstance(source, dict):
        return source
    return {}


# ---------------------------------------------------------------------------
# Text extractors
# ---------------------------------------------------------------------------

def extract_block(text: str, labels: list[str]) -> str:
    """Return the text following the first matching section label.

    The block ends at the next ``Label:`` line, the next paragraph that
    starts with a capitalized line, or the end of the text.
    """
    for label in labels:
        pattern = re.compile(
            rf"{re.escape(label)}\s*(?:\n|:)([\s\S]*?)"
            r"(?=\n[A-Z][A-Za-z\s]{2,}:|\n{2,}[A-Z][^\n]+\n|$)",
            re.IGNORECASE,
        )
        match = pattern.search(text)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return ""


def _lines(block: str) -> list[str]:
    return [line.strip() for line in block.split("\n") if line.strip()]


def _extract_summary(text: str) -> dict[str, Any]:
    block = extract_block(text, ["professional summary", "summary"])
    if not block:
        paragraphs = [chunk.strip() for chunk in text.split("\n\n") if chunk.strip()]
        if not paragraphs:
            return {}
        first, rest = paragraphs[0], paragraphs[1:]
        return {
            "headline": first.split("\n")[0][:120],
            "overview": " ".join(rest)[:600] or first,
        }
    lines = _lines(block)
    return {
        "headline": lines[0] if lines else "",
        "overview": " ".join(lines[1:])[:600] or block,
    }


def _extract_experience(text: str) -> dict[str, Any]:
    block = extract_block(text, ["experience", "work history", "employment"])
    lines = _lines(block)
    if not lines:
        return {}
    first = lines[0]
    if " at " in first:
        parts = [chunk.strip() for chunk in first.split(" at ")]
        role, company = parts[0], parts[1]
    else:
        role, company = first, lines[1] if len(lines) > 1 else ""
    timeline = next((line for line in lines if _YEAR_2000S.search(line)), "")
    impact = [line for line in lines if line not in (first, company, timeline)]
    return {"role": role, "company": company, "timeline": timeline, "impact": "\n".join(impact)}


def _extract_education(text: str) -> dict[str, Any]:
    lines = _lines(extract_block(text, ["education", "academics"]))
    if not lines:
        return {}
    return {
        "school": lines[0],
        "degree": lines[1] if len(lines) > 1 else "",
        "graduation": next((line for line in lines if _YEAR.search(line)), ""),
    }


def _extract_skills(text: str) -> dict[str, Any]:
    block = extract_block(text, ["skills", "skills & tools", "expertise"])
    if not block:
        return {}
    tokens = [t.strip() for t in _ITEM_SPLIT.split(_LIST_MARKER.sub("", block)) if t.strip()]
    midpoint = min(len(tokens), CORE_SKILL_LIMIT)
    return {"skillsList": tokens[:midpoint], "tools": tokens[midpoint:]}


def _extract_projects(text: str) -> dict[str, Any]:
    return {"project": extract_block(text, ["projects", "case studies"])}


_EXTRACTORS = {
    "summary": _extract_summary,
    "experience": _extract_experience,
    "education": _extract_education,
    "skills": _extract_skills,
    "projects": _extract_projects,
}


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------

def _split_timeline(timeline: str) -> tuple[str, str, bool]:
    parts = [p for p in _DATE_SPLIT.split(normalize_text(timeline), maxsplit=1) if p]
    start = parts[0] if parts else ""
    end = parts[1] if len(parts) > 1 else ""
    if end.lower() in ("present", "current", "now"):
        return start, "", True
    return start, end, False


def _split_items(value: str) -> list[str]:
    return [normalize_text(item) for item in _ITEM_SPLIT.split(value) if normalize_text(item)]


def apply_sections(
    resume: ResumeDocument | dict[str, Any] | None,
    sections: list[ImportedSection],
) -> ResumeDocument:
    """Merge accepted, non-empty sections into a new resume snapshot.

    Summary text replaces the current summary; experience, education and
    project entries are prepended; skills are appended without duplicates.
    """
    resume = coerce_resume(resume or {})
    info = resume.personal_info
    update: dict[str, Any] = {}

    for section in sections:
        if not section.accepted or section.is_empty():
            continue
        if section.id == "summary":
            headline = normalize_text(section.value("headline"))
            overview = normalize_text(section.value("overview")) or headline
            info_update = {"summary": overview}
            if headline and not info.title and headline != overview:
                info_update["title"] = headline
            info = info.model_copy(update=info_update)
            update["personal_info"] = info
        elif section.id == "experience":
            start, end, current = _split_timeline(section.value("timeline"))
            entry = ExperienceEntry(
                position=normalize_text(section.value("role")),
                company=normalize_text(section.value("company")),
                start_date=start,
                end_date=end,
                current=current,
                bullets=tuple(_lines(section.value("impact"))),
            )
            update["experience"] = (entry, *resume.experience)
        elif section.id == "education":
            entry = EducationEntry(
                school=normalize_text(section.value("school")),
                degree=normalize_text(section.value("degree")),
                end_date=normalize_text(section.value("graduation")),
            )
            update["education"] = (entry, *resume.education)
        elif section.id == "skills":
            known = {s.name.lower() for s in resume.skills}
            added = []
            for name in _split_items(section.value("skillsList")) + _split_items(section.value("tools")):
                if name.lower() not in known:
                    known.add(name.lower())
                    added.append(SkillEntry(name=name))
            update["skills"] = (*resume.skills, *added)
        elif section.id == "projects":
            lines = _lines(section.value("project"))
            name = lines[0][:80] if len(lines) > 1 else ""
            description = " ".join(lines[1:]) if len(lines) > 1 else " ".join(lines)
            update["projects"] = (ProjectEntry(name=name, description=description), *resume.projects)
        else:
            logger.warning("Ignoring unknown import section %r", section.id)

    logger.debug("Applied sections %s", sorted(update))
    return resume.model_copy(update=update)
