"""Layout planning shared by the preview, PDF and DOCX renderers.

``plan_layout`` turns a resume + template into an ordered stream of abstract
blocks grouped into sections and columns. Renderers only translate blocks
into their own primitives, so section order, omission of empty sections and
entry spacing are decided exactly once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Iterator, Union

from resume_forge.models.resume import ResumeDocument, coerce_resume
from resume_forge.templates.loader import (
    BulletStyle,
    HeaderAlign,
    LayoutVariant,
    SectionStyle,
    TemplateConfig,
    resolve_template,
)
from resume_forge.utils.text_normalizer import (
    ensure_url,
    format_date_range,
    format_location,
    normalize_text,
    profile_url,
)

logger = logging.getLogger(__name__)

LIST_SEPARATOR = "  •  "
CONTACT_SEPARATOR = "  |  "
PLACEHOLDER_NAME = "Your Name"


class Column(str, Enum):
    MAIN = "main"
    ASIDE = "aside"


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Link:
    text: str
    url: str


@dataclass(frozen=True)
class HeaderBlock:
    kind: ClassVar[str] = "header"
    name: str
    title: str
    contact: tuple[str, ...]
    links: tuple[Link, ...]
    align: HeaderAlign


@dataclass(frozen=True)
class HeadingBlock:
    kind: ClassVar[str] = "heading"
    section_id: str
    title: str
    style: SectionStyle


@dataclass(frozen=True)
class EntryBlock:
    """Title line (with right-aligned date) plus an optional meta line."""

    kind: ClassVar[str] = "entry"
    title: str
    date: str = ""
    meta: str = ""
    link: Link | None = None


@dataclass(frozen=True)
class TextBlock:
    kind: ClassVar[str] = "text"
    text: str
    muted: bool = False


@dataclass(frozen=True)
class BulletBlock:
    kind: ClassVar[str] = "bullet"
    text: str
    style: BulletStyle


@dataclass(frozen=True)
class InlineListBlock:
    kind: ClassVar[str] = "inline_list"
    items: tuple[str, ...]
    separator: str = LIST_SEPARATOR

    @property
    def text(self) -> str:
        return self.separator.join(self.items)


@dataclass(frozen=True)
class LinkBlock:
    kind: ClassVar[str] = "link"
    label: str
    link: Link


@dataclass(frozen=True)
class GapBlock:
    """Spacing between two entries of the same section. Never trails the last."""

    kind: ClassVar[str] = "gap"


Block = Union[HeaderBlock, HeadingBlock, EntryBlock, TextBlock, BulletBlock, InlineListBlock, LinkBlock, GapBlock]


@dataclass(frozen=True)
class Section:
    id: str
    heading: HeadingBlock
    body: tuple[Block, ...]
    column: Column

    @property
    def title(self) -> str:
        return self.heading.title

    @property
    def blocks(self) -> tuple[Block, ...]:
        return (self.heading, *self.body)


@dataclass(frozen=True)
class ColumnPlan:
    column: Column
    sections: tuple[Section, ...]
    header: HeaderBlock | None = None


@dataclass(frozen=True)
class LayoutPlan:
    template: TemplateConfig
    header: HeaderBlock
    sections: tuple[Section, ...]

    @property
    def variant(self) -> LayoutVariant:
        return self.template.layout

    @property
    def header_in_aside(self) -> bool:
        return self.variant is LayoutVariant.SIDEBAR

    def columns(self) -> list[ColumnPlan]:
        """Columns in reading order; multi-column variants always get both."""
        order = READING_ORDER[self.variant]
        result = []
        for column in order:
            header = self.header if (self.header_in_aside and column is Column.ASIDE) else None
            result.append(ColumnPlan(
                column=column,
                sections=tuple(s for s in self.sections if s.column is column),
                header=header,
            ))
        return result

    def headings(self) -> list[str]:
        """Section titles in reading order."""
        return [s.title for s in self.sections]

    def blocks(self) -> Iterator[Block]:
        """Every block, header first, in reading order."""
        yield self.header
        for section in self.sections:
            yield from section.blocks


# ---------------------------------------------------------------------------
# Decision tables
# ---------------------------------------------------------------------------

SECTION_ORDER = (
    "summary",
    "experience",
    "education",
    "skills",
    "projects",
    "certifications",
    "languages",
    "links",
    "custom",
)

SECTION_TITLES = {
    "summary": "Professional Summary",
    "experience": "Professional Experience",
    "education": "Education",
    "skills": "Skills",
    "projects": "Projects",
    "certifications": "Certifications",
    "languages": "Languages",
    "links": "Links",
}

_ASIDE_SECTIONS = {
    LayoutVariant.SINGLE_COLUMN: frozenset(),
    LayoutVariant.TWO_COLUMN: frozenset({"skills", "certifications", "languages", "links"}),
    LayoutVariant.SIDEBAR: frozenset({"summary", "skills", "languages", "links"}),
}

READING_ORDER = {
    LayoutVariant.SINGLE_COLUMN: (Column.MAIN,),
    LayoutVariant.TWO_COLUMN: (Column.MAIN, Column.ASIDE),
    LayoutVariant.SIDEBAR: (Column.ASIDE, Column.MAIN),
}


def split_entries(body: tuple[Block, ...]) -> list[tuple[tuple[Block, ...], bool]]:
    """Split a section body on gaps into ``(blocks, spaced)`` pairs.

    ``spaced`` is true for every group followed by a gap, so the last group
    of a section is never spaced.
    """
    groups: list[tuple[tuple[Block, ...], bool]] = []
    current: list[Block] = []
    for block in body:
        if isinstance(block, GapBlock):
            groups.append((tuple(current), True))
            current = []
        else:
            current.append(block)
    if current:
        groups.append((tuple(current), False))
    return groups


def column_for(section_id: str, variant: LayoutVariant) -> Column:
    return Column.ASIDE if section_id in _ASIDE_SECTIONS[variant] else Column.MAIN


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------

def plan_layout(
    resume: ResumeDocument | dict[str, Any],
    template: TemplateConfig | str | None = None,
) -> LayoutPlan:
    """Build the block stream for ``resume``.

    ``template`` overrides ``resume.template`` when given. Empty sections are
    left out entirely; entries keep their input order.
    """
    resume = coerce_resume(resume)
    if not isinstance(template, TemplateConfig):
        template = resolve_template(template or resume.template)

    header = _build_header(resume, template)

    by_column: dict[Column, list[Section]] = {Column.MAIN: [], Column.ASIDE: []}
    for section_id in SECTION_ORDER:
        column = column_for(section_id, template.layout)
        if section_id == "custom":
            by_column[column].extend(_custom_sections(resume, template, column))
            continue
        body = _SECTION_BUILDERS[section_id](resume, template)
        if not body:
            continue
        by_column[column].append(Section(
            id=section_id,
            heading=_heading(section_id, SECTION_TITLES[section_id], template),
            body=tuple(body),
            column=column,
        ))

    ordered: list[Section] = []
    for column in READING_ORDER[template.layout]:
        ordered.extend(by_column[column])

    logger.debug(
        "Planned %s layout with %d sections for template %r",
        template.layout.value, len(ordered), template.id,
    )
    return LayoutPlan(template=template, header=header, sections=tuple(ordered))


def _heading(section_id: str, title: str, template: TemplateConfig) -> HeadingBlock:
    title = normalize_text(title)
    return HeadingBlock(
        section_id=section_id,
        title=title.upper() if template.uppercase_headings else title,
        style=template.section_style,
    )


def _build_header(resume: ResumeDocument, template: TemplateConfig) -> HeaderBlock:
    info = resume.personal_info
    contact = tuple(p for p in (normalize_text(info.email), normalize_text(info.phone),
                                normalize_text(info.location)) if p)
    links = []
    for kind in ("linkedin", "github"):
        url = profile_url(kind, getattr(info, kind))
        if url:
            links.append(Link(text=url, url=url))
    website = ensure_url(info.website)
    if website:
        links.append(Link(text=normalize_text(info.website), url=website))
    return HeaderBlock(
        name=normalize_text(info.full_name) or PLACEHOLDER_NAME,
        title=normalize_text(info.title),
        contact=contact,
        links=tuple(links),
        align=template.header_align,
    )


def _entry_date(start: str, end: str, current: bool) -> str:
    if not (normalize_text(start) or normalize_text(end) or current):
        return ""
    return format_date_range(start, end, current)


def _with_gaps(groups: list[list[Block]]) -> list[Block]:
    """Flatten per-entry block groups, inserting a gap only between entries."""
    blocks: list[Block] = []
    for index, group in enumerate(groups):
        blocks.extend(group)
        if index < len(groups) - 1:
            blocks.append(GapBlock())
    return blocks


def _summary(resume: ResumeDocument, template: TemplateConfig) -> list[Block]:
    text = normalize_text(resume.personal_info.summary)
    return [TextBlock(text)] if text else []


def _experience(resume: ResumeDocument, template: TemplateConfig) -> list[Block]:
    groups = []
    for exp in resume.experience:
        bullets = [normalize_text(b) for b in exp.bullets]
        bullets = [b for b in bullets if b]
        fields = (exp.position, exp.company, exp.location, exp.start_date, exp.end_date)
        if not any(normalize_text(f) for f in fields) and not bullets:
            continue
        group: list[Block] = [EntryBlock(
            title=normalize_text(exp.position),
            date=_entry_date(exp.start_date, exp.end_date, exp.current),
            meta=format_location(exp.company, exp.location),
        )]
        group.extend(BulletBlock(b, template.bullet_style) for b in bullets)
        groups.append(group)
    return _with_gaps(groups)


def _education(resume: ResumeDocument, template: TemplateConfig) -> list[Block]:
    groups = []
    for edu in resume.education:
        if not any(normalize_text(f) for f in (edu.degree, edu.school, edu.location,
                                                edu.start_date, edu.end_date, edu.gpa)):
            continue
        meta = format_location(edu.school, edu.location)
        gpa = normalize_text(edu.gpa)
        if gpa:
            meta = f"{meta} | GPA: {gpa}" if meta else f"GPA: {gpa}"
        groups.append([EntryBlock(
            title=normalize_text(edu.degree),
            date=_entry_date(edu.start_date, edu.end_date, False),
            meta=meta,
        )])
    return _with_gaps(groups)


def _named_items(entries) -> tuple[str, ...]:
    items = []
    for entry in entries:
        name = normalize_text(entry.name)
        if not name:
            continue
        level = normalize_text(entry.level)
        items.append(f"{name} ({level})" if level else name)
    return tuple(items)


def _skills(resume: ResumeDocument, template: TemplateConfig) -> list[Block]:
    items = _named_items(resume.skills)
    return [InlineListBlock(items)] if items else []


def _languages(resume: ResumeDocument, template: TemplateConfig) -> list[Block]:
    items = _named_items(resume.languages)
    return [InlineListBlock(items)] if items else []


def _projects(resume: ResumeDocument, template: TemplateConfig) -> list[Block]:
    groups = []
    for project in resume.projects:
        name = normalize_text(project.name)
        description = normalize_text(project.description)
        technologies = [t for t in (normalize_text(x) for x in project.technologies) if t]
        url = normalize_text(project.url)
        if not (name or description or technologies or url):
            continue
        link = Link(text=url, url=ensure_url(url)) if url else None
        group: list[Block] = [EntryBlock(title=name, link=link)]
        if description:
            group.append(TextBlock(description))
        if technologies:
            group.append(TextBlock("Technologies: " + ", ".join(technologies), muted=True))
        groups.append(group)
    return _with_gaps(groups)


def _certifications(resume: ResumeDocument, template: TemplateConfig) -> list[Block]:
    groups = []
    for cert in resume.certifications:
        name = normalize_text(cert.name)
        url = normalize_text(cert.url)
        if not (name or normalize_text(cert.issuer) or normalize_text(cert.date) or url):
            continue
        groups.append([EntryBlock(
            title=name,
            date=normalize_text(cert.date),
            meta=normalize_text(cert.issuer),
            link=Link(text=url, url=ensure_url(url)) if url else None,
        )])
    return _with_gaps(groups)


def _links(resume: ResumeDocument, template: TemplateConfig) -> list[Block]:
    blocks: list[Block] = []
    for entry in resume.links:
        url = normalize_text(entry.url)
        if not url:
            continue
        blocks.append(LinkBlock(label=normalize_text(entry.label), link=Link(text=url, url=ensure_url(url))))
    return blocks


def _custom_sections(resume: ResumeDocument, template: TemplateConfig, column: Column) -> list[Section]:
    sections = []
    for custom in resume.custom_sections:
        body: list[Block] = []
        content = normalize_text(custom.content)
        if content:
            body.append(TextBlock(content))
        body.extend(
            BulletBlock(text, template.bullet_style)
            for text in (normalize_text(i) for i in custom.items) if text
        )
        if not body:
            continue
        sections.append(Section(
            id=f"custom-{custom.id}",
            heading=_heading("custom", custom.title or "Additional", template),
            body=tuple(body),
            column=column,
        ))
    return sections


_SECTION_BUILDERS: dict[str, Callable[[ResumeDocument, TemplateConfig], list[Block]]] = {
    "summary": _summary,
    "experience": _experience,
    "education": _education,
    "skills": _skills,
    "projects": _projects,
    "certifications": _certifications,
    "languages": _languages,
    "links": _links,
}
