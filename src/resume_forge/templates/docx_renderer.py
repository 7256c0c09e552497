"""DOCX output renderer (python-docx).

Multi-column templates are linearized in the layout plan's reading order:
ATS parsers read Word tables and text boxes poorly, so the document is a
single flow of ``Heading 2`` section titles and ``Normal`` / ``List Bullet``
paragraphs.
"""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Any

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH, WD_TAB_ALIGNMENT
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt, RGBColor

from resume_forge.errors import ExportError
from resume_forge.models.cover_letter import CoverLetterDocument
from resume_forge.models.resume import PersonalInfo, ResumeDocument
from resume_forge.templates.cover_letter import plan_cover_letter
from resume_forge.templates.layout import (
    CONTACT_SEPARATOR,
    BulletBlock,
    EntryBlock,
    GapBlock,
    HeaderBlock,
    InlineListBlock,
    LayoutPlan,
    LinkBlock,
    Section,
    TextBlock,
    plan_layout,
)
from resume_forge.templates.loader import (
    BulletStyle,
    FontFamily,
    HeaderAlign,
    SectionStyle,
    TemplateConfig,
    hex_to_rgb,
)

logger = logging.getLogger(__name__)

PAGE_WIDTH_IN = 8.5
PAGE_HEIGHT_IN = 11.0
ENTRY_GAP_PT = 8
SECTION_GAP_PT = 12

FONT_NAMES = {
    FontFamily.HELVETICA: "Arial",
    FontFamily.TIMES: "Times New Roman",
}

_ALIGNMENT = {
    HeaderAlign.LEFT: WD_ALIGN_PARAGRAPH.LEFT,
    HeaderAlign.CENTER: WD_ALIGN_PARAGRAPH.CENTER,
}


def _rgb(value: str) -> RGBColor:
    return RGBColor(*hex_to_rgb(value))


def _add_run(paragraph, text: str, *, bold: bool = False, italic: bool = False,
             size: float | None = None, color: str | None = None):
    run = paragraph.add_run(text)
    run.bold = bold or None
    run.italic = italic or None
    if size:
        run.font.size = Pt(size)
    if color:
        run.font.color.rgb = _rgb(color)
    return run


def add_hyperlink(paragraph, text: str, url: str, color: str | None = None):
    """Append an external hyperlink run to ``paragraph``."""
    r_id = paragraph.part.relate_to(url, RT.HYPERLINK, is_external=True)
    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("r:id"), r_id)

    run = OxmlElement("w:r")
    rpr = OxmlElement("w:rPr")
    style = OxmlElement("w:rStyle")
    style.set(qn("w:val"), "Hyperlink")
    rpr.append(style)
    if color:
        color_el = OxmlElement("w:color")
        color_el.set(qn("w:val"), color.lstrip("#"))
        rpr.append(color_el)
    underline = OxmlElement("w:u")
    underline.set(qn("w:val"), "single")
    rpr.append(underline)
    run.append(rpr)

    text_el = OxmlElement("w:t")
    text_el.text = text
    text_el.set(qn("xml:space"), "preserve")
    run.append(text_el)
    hyperlink.append(run)
    paragraph._p.append(hyperlink)
    return hyperlink


def _set_borders(paragraph, **edges: tuple[int, str]) -> None:
    """Replace the paragraph borders; ``edges`` maps side -> (size, color)."""
    ppr = paragraph._p.get_or_add_pPr()
    existing = ppr.find(qn("w:pBdr"))
    if existing is not None:
        ppr.remove(existing)
    borders = OxmlElement("w:pBdr")
    for side in ("top", "left", "bottom", "right"):
        if side not in edges:
            continue
        size, color = edges[side]
        edge = OxmlElement(f"w:{side}")
        edge.set(qn("w:val"), "single")
        edge.set(qn("w:sz"), str(size))
        edge.set(qn("w:space"), "4")
        edge.set(qn("w:color"), color.lstrip("#"))
        borders.append(edge)
    ppr.append(borders)


def _tight(paragraph, space_before: float = 0, space_after: float = 0):
    fmt = paragraph.paragraph_format
    fmt.space_before = Pt(space_before)
    fmt.space_after = Pt(space_after)
    return paragraph


def _setup_document(doc, font_family: FontFamily, body_size: float, text_color: str, margin_in: float) -> None:
    normal = doc.styles["Normal"]
    normal.font.name = FONT_NAMES[font_family]
    normal.font.size = Pt(body_size)
    normal.font.color.rgb = _rgb(text_color)
    for section in doc.sections:
        section.page_width = Inches(PAGE_WIDTH_IN)
        section.page_height = Inches(PAGE_HEIGHT_IN)
        section.top_margin = section.bottom_margin = Inches(margin_in)
        section.left_margin = section.right_margin = Inches(margin_in)


def _set_core_properties(doc, author: str, subject: str) -> None:
    props = doc.core_properties
    props.title = f"{author} - {subject}" if author else subject
    props.author = author
    props.subject = subject
    props.keywords = subject


def _save(doc) -> bytes:
    buf = BytesIO()
    doc.save(buf)
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Resume
# ---------------------------------------------------------------------------

class _ResumeWriter:
    def __init__(self, doc, template: TemplateConfig, margin_in: float):
        self.doc = doc
        self.t = template
        self.content_width = Inches(PAGE_WIDTH_IN - 2 * margin_in)

    def header(self, header: HeaderBlock) -> None:
        doc, t = self.doc, self.t
        align = _ALIGNMENT[header.align]

        p = _tight(doc.add_paragraph())
        p.alignment = align
        _add_run(p, header.name, bold=True, size=t.name_size, color=t.text_dark)

        if header.title:
            p = _tight(doc.add_paragraph(), space_after=2)
            p.alignment = align
            _add_run(p, header.title, bold=True, size=t.body_size + 1, color=t.accent)

        if header.contact:
            p = _tight(doc.add_paragraph())
            p.alignment = align
            _add_run(p, CONTACT_SEPARATOR.join(header.contact), size=t.small_size, color=t.muted)

        if header.links:
            p = _tight(doc.add_paragraph())
            p.alignment = align
            for index, link in enumerate(header.links):
                if index:
                    _add_run(p, CONTACT_SEPARATOR, size=t.small_size, color=t.muted)
                add_hyperlink(p, link.text, link.url, t.accent)

    def section(self, section: Section) -> None:
        heading = self.doc.add_heading(section.title, level=2)
        self._style_heading(heading, section.heading.style)
        pending = 0.0
        for block in section.body:
            if isinstance(block, GapBlock):
                pending += ENTRY_GAP_PT
                continue
            first = self._block(block)
            if first is not None and pending:
                first.paragraph_format.space_before = Pt(pending)
                pending = 0.0

    def _style_heading(self, heading, style: SectionStyle) -> None:
        t = self.t
        _tight(heading, space_before=SECTION_GAP_PT, space_after=4)
        heading.paragraph_format.keep_with_next = True
        color = t.text_dark if style is SectionStyle.NONE else t.accent
        for run in heading.runs:
            run.font.color.rgb = _rgb(color)
            run.font.size = Pt(t.heading_size)
            run.font.name = FONT_NAMES[t.font_family]
            run.bold = True
        if style is SectionStyle.UNDERLINE:
            _set_borders(heading, bottom=(6, t.border))
        elif style is SectionStyle.BOX:
            edge = (6, t.border)
            _set_borders(heading, top=edge, left=edge, bottom=edge, right=edge)
        elif style is SectionStyle.COLORBAR:
            _set_borders(heading, left=(24, t.accent))

    def _block(self, block):
        """Write one block; returns its first paragraph."""
        doc, t = self.doc, self.t
        if isinstance(block, EntryBlock):
            return self._entry(block)
        if isinstance(block, BulletBlock):
            return self._bullet(block)
        if isinstance(block, TextBlock):
            p = _tight(doc.add_paragraph(), space_before=2)
            if block.muted:
                _add_run(p, block.text, italic=True, size=t.small_size, color=t.muted)
            else:
                _add_run(p, block.text)
            return p
        if isinstance(block, InlineListBlock):
            p = _tight(doc.add_paragraph(), space_before=2)
            _add_run(p, block.text)
            return p
        if isinstance(block, LinkBlock):
            p = _tight(doc.add_paragraph(), space_before=1)
            if block.label:
                _add_run(p, f"{block.label}: ", bold=True, color=t.text_dark)
            add_hyperlink(p, block.link.text, block.link.url, t.accent)
            return p
        logger.debug("Skipping unsupported block %r", block)
        return None

    def _entry(self, block: EntryBlock):
        doc, t = self.doc, self.t
        first = p = _tight(doc.add_paragraph())
        p.paragraph_format.keep_with_next = True
        p.paragraph_format.tab_stops.add_tab_stop(self.content_width, WD_TAB_ALIGNMENT.RIGHT)
        _add_run(p, block.title, bold=True, color=t.text_dark)
        date = block.date.strip()
        if date:
            _add_run(p, f"\t{date}", size=t.small_size, color=t.muted)
        if block.link:
            p = _tight(doc.add_paragraph())
            p.paragraph_format.keep_with_next = True
            add_hyperlink(p, block.link.text, block.link.url, t.accent)
        if block.meta:
            p = _tight(doc.add_paragraph())
            _add_run(p, block.meta, italic=True, size=t.small_size, color=t.muted)
        return first

    def _bullet(self, block: BulletBlock):
        doc, t = self.doc, self.t
        if block.style is BulletStyle.DOT:
            p = _tight(doc.add_paragraph(style="List Bullet"), space_before=1)
            _add_run(p, block.text)
            return p
        p = _tight(doc.add_paragraph(), space_before=1)
        fmt = p.paragraph_format
        fmt.left_indent = Pt(14)
        fmt.first_line_indent = Pt(-10)
        _add_run(p, f"{t.bullet_marker}  ", color=t.accent)
        _add_run(p, block.text)
        return p


def _write_resume(doc, plan: LayoutPlan, margin_in: float) -> None:
    writer = _ResumeWriter(doc, plan.template, margin_in)
    writer.header(plan.header)
    for section in plan.sections:
        writer.section(section)


def render_docx(
    resume: ResumeDocument | dict[str, Any],
    template: TemplateConfig | str | None = None,
    margin_in: float = 1.0,
) -> bytes:
    """Render the resume to DOCX bytes."""
    plan = plan_layout(resume, template)
    t = plan.template
    try:
        doc = Document()
        _setup_document(doc, t.font_family, t.body_size, t.text, margin_in)
        _set_core_properties(doc, plan.header.name, "Resume")
        _write_resume(doc, plan, margin_in)
        logger.debug("Wrote %d sections to DOCX (template %r)", len(plan.sections), t.id)
        return _save(doc)
    except (KeyError, ValueError, OSError) as e:
        logger.exception("DOCX rendering failed for template %r", t.id)
        raise ExportError("docx", str(e)) from e


# ---------------------------------------------------------------------------
# Cover letter
# ---------------------------------------------------------------------------

def render_cover_letter_docx(
    letter: CoverLetterDocument | dict[str, Any],
    sender: PersonalInfo | ResumeDocument | dict[str, Any] | None = None,
    margin_in: float = 1.0,
) -> bytes:
    """Render a cover letter to DOCX bytes."""
    plan = plan_cover_letter(letter, sender)
    style = plan.style
    align = _ALIGNMENT[style.header_align]
    try:
        doc = Document()
        _setup_document(doc, style.font_family, style.body_size, "#222222", margin_in)
        _set_core_properties(doc, plan.sender_name, "Cover Letter")

        if plan.sender_name:
            p = _tight(doc.add_paragraph())
            p.alignment = align
            _add_run(p, plan.sender_name, bold=True, size=16)
        for contact in plan.sender_contact:
            p = _tight(doc.add_paragraph())
            p.alignment = align
            _add_run(p, contact, size=9, color="#555555")

        if plan.date:
            _tight(doc.add_paragraph(plan.date), space_before=18, space_after=12)
        for index, recipient in enumerate(plan.recipient):
            last = index == len(plan.recipient) - 1
            _tight(doc.add_paragraph(recipient), space_after=12 if last else 0)
        if plan.salutation:
            _tight(doc.add_paragraph(plan.salutation), space_after=style.paragraph_spacing)

        for paragraph in plan.paragraphs:
            p = _tight(doc.add_paragraph(paragraph), space_after=style.paragraph_spacing)
            if style.justify:
                p.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY

        if plan.closing:
            _tight(doc.add_paragraph(plan.closing), space_before=4)
        if plan.signature:
            p = _tight(doc.add_paragraph(), space_before=style.body_size * 2.5)
            _add_run(p, plan.signature, bold=True)
        return _save(doc)
    except (KeyError, ValueError, OSError) as e:
        logger.exception("Cover letter DOCX rendering failed")
        raise ExportError("docx", str(e)) from e
