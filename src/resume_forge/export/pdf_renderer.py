"""Vector PDF backend (fpdf2).

Everything is drawn as real text so the output stays selectable and
ATS-readable. Each column of the layout plan is first composed into units
(a bullet with all its wrapped lines, a single paragraph line, a heading...),
paginated on its own, and the pages are then drawn in reading order.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

from fpdf import FPDF
from fpdf.enums import XPos, YPos
from fpdf.errors import FPDFException

from resume_forge.errors import ExportError
from resume_forge.models.cover_letter import CoverLetterDocument
from resume_forge.models.resume import PersonalInfo, ResumeDocument
from resume_forge.templates.cover_letter import plan_cover_letter
from resume_forge.templates.layout import (
    CONTACT_SEPARATOR,
    BulletBlock,
    Column,
    EntryBlock,
    GapBlock,
    HeaderBlock,
    HeadingBlock,
    InlineListBlock,
    LayoutPlan,
    LinkBlock,
    TextBlock,
    plan_layout,
)
from resume_forge.templates.loader import (
    BulletStyle,
    FontFamily,
    HeaderAlign,
    LayoutVariant,
    SectionStyle,
    TemplateConfig,
    hex_to_rgb,
)

logger = logging.getLogger(__name__)

# US Letter, in points
PAGE_WIDTH = 612.0
PAGE_HEIGHT = 792.0
MARGIN_LEFT = 50.0
MARGIN_RIGHT = 50.0
MARGIN_TOP = 50.0
MARGIN_BOTTOM = 60.0

COLUMN_GAP = 20.0
SECTION_GAP = 12.0
ENTRY_GAP = 8.0
LINE_SPACING = 1.3
BULLET_INDENT = 14.0

UNICODE_FONT = "ResumeUnicode"

# (regular, bold) pairs; the first regular face found wins
_UNICODE_FONT_PATHS = [
    # Linux (apt install fonts-dejavu-core)
    ("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
     "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"),
    # Linux (apt install fonts-liberation)
    ("/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
     "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf"),
    # macOS
    ("/System/Library/Fonts/Supplemental/Arial Unicode.ttf", None),
    # Windows
    ("C:/Windows/Fonts/arial.ttf", "C:/Windows/Fonts/arialbd.ttf"),
]

# Core PDF fonts only cover latin-1
_LATIN1_REPLACEMENTS = {
    "\u2013": "-",
    "\u2014": "-",
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2022": "\u00b7",
    "\u203a": ">",
    "\u2026": "...",
    "\u00a0": " ",
}

_TOKENS = re.compile(r"\S+\s*")


def _find_unicode_font() -> tuple[str, str | None] | None:
    """Search for a Unicode-capable TTF font on the system."""
    for regular, bold in _UNICODE_FONT_PATHS:
        if Path(regular).exists():
            return regular, bold if bold and Path(bold).exists() else None
    return None


def _baseline(top: float, size: float, line_height: float) -> float:
    return top + (line_height - size) / 2 + size * 0.8


class ResumePDF(FPDF):
    """FPDF with font setup, latin-1 fallback and measuring helpers."""

    def __init__(
        self,
        font_family: FontFamily = FontFamily.HELVETICA,
        font_path: str | Path | None = None,
        discover_fonts: bool = True,
    ) -> None:
        super().__init__(orientation="P", unit="pt", format="letter")
        self.set_margins(MARGIN_LEFT, MARGIN_TOP, MARGIN_RIGHT)
        self.set_auto_page_break(False)
        self.base_font = font_family.value
        self.is_unicode = False
        self._setup_unicode_font(font_path, discover_fonts)

    def _setup_unicode_font(self, font_path: str | Path | None, discover: bool) -> None:
        if font_path:
            faces = (str(font_path), None)
        elif discover:
            faces = _find_unicode_font()
        else:
            faces = None
        if not faces:
            return
        regular, bold = faces
        try:
            self.add_font(UNICODE_FONT, "", regular)
            self.add_font(UNICODE_FONT, "B", bold or regular)
            self.add_font(UNICODE_FONT, "I", regular)
            self.add_font(UNICODE_FONT, "BI", bold or regular)
        except Exception:
            logger.warning("Failed to load font %s, using core font %s", regular, self.base_font)
            return
        logger.debug("Using Unicode font %s", regular)
        self.base_font = UNICODE_FONT
        self.is_unicode = True

    def safe(self, text: str) -> str:
        """Make ``text`` encodable by the active font."""
        if self.is_unicode:
            return text
        for char, replacement in _LATIN1_REPLACEMENTS.items():
            text = text.replace(char, replacement)
        return text.encode("latin-1", errors="replace").decode("latin-1")

    def use(self, style: str, size: float, color: str) -> None:
        self.set_font(self.base_font, style, size)
        self.set_text_color(*hex_to_rgb(color))

    def width_of(self, text: str, style: str, size: float) -> float:
        self.set_font(self.base_font, style, size)
        return self.get_string_width(text)

    def wrap(self, text: str, width: float, style: str, size: float) -> list[str]:
        """Greedy word wrap; words wider than ``width`` are split by character."""
        self.set_font(self.base_font, style, size)
        lines: list[str] = []
        current = ""
        for token in _TOKENS.findall(text):
            candidate = current + token
            if self.get_string_width(candidate.rstrip()) <= width:
                current = candidate
                continue
            if current:
                lines.append(current.rstrip())
                current = ""
            while self.get_string_width(token.rstrip()) > width and len(token.rstrip()) > 1:
                cut = len(token)
                while cut > 1 and self.get_string_width(token[:cut]) > width:
                    cut -= 1
                lines.append(token[:cut])
                token = token[cut:]
            current = token
        if current.strip():
            lines.append(current.rstrip())
        return lines

    def draw_text(
        self,
        x: float,
        top: float,
        text: str,
        style: str,
        size: float,
        color: str,
        line_height: float,
        url: str | None = None,
    ) -> None:
        if not text:
            return
        self.use(style, size, color)
        self.text(x, _baseline(top, size, line_height), text)
        if url:
            self.link(x, top, self.get_string_width(text), line_height, url)

    def set_metadata(self, author: str, subject: str) -> None:
        self.set_title(f"{author} - {subject}" if author else subject)
        self.set_author(author)
        self.set_subject(subject)
        self.set_creator("resume-forge")


Draw = Callable[[float, float], None]


@dataclass
class _Unit:
    """Smallest piece of a column that is never split across pages."""

    height: float
    draws: list[Draw] = field(default_factory=list)
    space_before: float = 0.0
    keep_with_next: bool = False

    def draw(self, x: float, top: float) -> None:
        for draw in self.draws:
            draw(x, top)


def _chain_height(units: list[_Unit], index: int) -> float:
    """Height of ``units[index]`` plus every unit it must stay with."""
    height = units[index].height
    while units[index].keep_with_next and index + 1 < len(units):
        index += 1
        height += units[index].space_before + units[index].height
    return height


def paginate(units: list[_Unit], first_top: float, bottom: float = PAGE_HEIGHT - MARGIN_BOTTOM,
             top: float = MARGIN_TOP) -> list[list[tuple[_Unit, float]]]:
    """Place units on pages; returns ``(unit, y)`` pairs per page.

    Spacing before a unit is dropped at the top of a page. A unit taller
    than a whole page is placed anyway.
    """
    pages: list[list[tuple[_Unit, float]]] = [[]]
    y = first_top
    for index, unit in enumerate(units):
        if pages[-1] and y + unit.space_before + _chain_height(units, index) > bottom:
            pages.append([])
            y = top
        if pages[-1]:
            y += unit.space_before
        pages[-1].append((unit, y))
        y += unit.height
    return pages


def column_geometry(variant: LayoutVariant) -> dict[Column, tuple[float, float]]:
    """``{column: (x, width)}`` for each column of the variant."""
    content = PAGE_WIDTH - MARGIN_LEFT - MARGIN_RIGHT
    if variant is LayoutVariant.TWO_COLUMN:
        main_w = round(content * 0.64)
        return {
            Column.MAIN: (MARGIN_LEFT, main_w),
            Column.ASIDE: (MARGIN_LEFT + main_w + COLUMN_GAP, content - main_w - COLUMN_GAP),
        }
    if variant is LayoutVariant.SIDEBAR:
        aside_w = round(content * 0.32)
        return {
            Column.ASIDE: (MARGIN_LEFT, aside_w),
            Column.MAIN: (MARGIN_LEFT + aside_w + COLUMN_GAP, content - aside_w - COLUMN_GAP),
        }
    return {Column.MAIN: (MARGIN_LEFT, content)}


class _Composer:
    """Turns layout blocks into units for one template."""

    def __init__(self, pdf: ResumePDF, template: TemplateConfig):
        self.pdf = pdf
        self.t = template

    def _offset(self, width: float, line_width: float, align: HeaderAlign) -> float:
        return max(0.0, (width - line_width) / 2) if align is HeaderAlign.CENTER else 0.0

    def _pack(self, parts: list[str], width: float, size: float) -> list[list[str]]:
        sep_w = self.pdf.width_of(CONTACT_SEPARATOR, "", size)
        lines: list[list[str]] = []
        current: list[str] = []
        used = 0.0
        for part in parts:
            part_w = self.pdf.width_of(part, "", size)
            if current and used + sep_w + part_w > width:
                lines.append(current)
                current, used = [], 0.0
            used += (sep_w if current else 0.0) + part_w
            current.append(part)
        if current:
            lines.append(current)
        return lines

    def header(self, header: HeaderBlock, width: float, rule: bool) -> _Unit:
        pdf, t = self.pdf, self.t
        draws: list[Draw] = []
        y = 0.0

        def line(text: str, dy: float, style: str, size: float, color: str, lh: float) -> Draw:
            offset = self._offset(width, pdf.width_of(text, style, size), header.align)
            return lambda x, top: pdf.draw_text(x + offset, top + dy, text, style, size, color, lh)

        name_lh = t.name_size * 1.2
        for text in pdf.wrap(pdf.safe(header.name), width, "B", t.name_size):
            draws.append(line(text, y, "B", t.name_size, t.text_dark, name_lh))
            y += name_lh

        title_size = t.body_size + 1
        title_lh = title_size * LINE_SPACING
        for text in pdf.wrap(pdf.safe(header.title), width, "B", title_size):
            draws.append(line(text, y, "B", title_size, t.accent, title_lh))
            y += title_lh

        small = t.small_size
        small_lh = small * LINE_SPACING
        sep = pdf.safe(CONTACT_SEPARATOR)
        y += 2
        for parts in self._pack([pdf.safe(p) for p in header.contact], width, small):
            draws.append(line(sep.join(parts), y, "", small, t.muted, small_lh))
            y += small_lh

        links = [(pdf.safe(link.text), link.url) for link in header.links]
        for parts in self._pack([text for text, _ in links], width, small):
            line_links = [(text, url) for text, url in links if text in parts]
            line_w = pdf.width_of(sep.join(parts), "", small)
            draws.append(self._link_line(line_links, width, line_w, y, small_lh, header.align))
            y += small_lh

        if rule:
            rule_y = y + 6

            def draw_rule(x: float, top: float) -> None:
                pdf.set_draw_color(*hex_to_rgb(t.border))
                pdf.set_line_width(0.75)
                pdf.line(x, top + rule_y, x + width, top + rule_y)

            draws.append(draw_rule)
            y = rule_y + 10
        return _Unit(height=y, draws=draws)

    def _link_line(self, links: list[tuple[str, str]], width: float, line_w: float, dy: float,
                   lh: float, align: HeaderAlign) -> Draw:
        pdf, t = self.pdf, self.t
        size = t.small_size
        sep = pdf.safe(CONTACT_SEPARATOR)
        offset = self._offset(width, line_w, align)

        def draw(x: float, top: float) -> None:
            cursor = x + offset
            for index, (text, url) in enumerate(links):
                if index:
                    pdf.draw_text(cursor, top + dy, sep, "", size, t.muted, lh)
                    cursor += pdf.width_of(sep, "", size)
                pdf.draw_text(cursor, top + dy, text, "", size, t.accent, lh, url=url)
                cursor += pdf.width_of(text, "", size)

        return draw

    def heading(self, heading: HeadingBlock, width: float, space_before: float) -> _Unit:
        pdf, t = self.pdf, self.t
        size = t.heading_size
        lh = size * LINE_SPACING
        text = pdf.safe(heading.title)
        style = heading.style
        framed = style in (SectionStyle.UNDERLINE, SectionStyle.BOX)
        box_h = lh + (4 if framed else 0)
        text_x = {SectionStyle.COLORBAR: 8.0, SectionStyle.BOX: 5.0}.get(style, 0.0)
        text_dy = 2.0 if style is SectionStyle.BOX else 0.0
        color = t.text_dark if style is SectionStyle.NONE else t.accent

        def draw(x: float, top: float) -> None:
            if style is SectionStyle.COLORBAR:
                pdf.set_fill_color(*hex_to_rgb(t.accent))
                pdf.rect(x, top + 1, 3, lh - 2, style="F")
            elif style is SectionStyle.BOX:
                pdf.set_draw_color(*hex_to_rgb(t.border))
                pdf.set_line_width(0.75)
                pdf.rect(x, top, width, box_h, style="D")
            pdf.draw_text(x + text_x, top + text_dy, text, "B", size, color, lh)
            if style is SectionStyle.UNDERLINE:
                pdf.set_draw_color(*hex_to_rgb(t.border))
                pdf.set_line_width(0.75)
                pdf.line(x, top + lh + 1.5, x + width, top + lh + 1.5)

        return _Unit(height=box_h + 4, draws=[draw], space_before=space_before, keep_with_next=True)

    def entry(self, block: EntryBlock, width: float, keep_with_next: bool) -> list[_Unit]:
        pdf, t = self.pdf, self.t
        size, small = t.body_size, t.small_size
        lh, small_lh = size * LINE_SPACING, small * LINE_SPACING
        date = pdf.safe(block.date.strip())
        date_w = pdf.width_of(date, "", small) if date else 0.0
        title_w = width - date_w - (8 if date else 0)
        title_lines = pdf.wrap(pdf.safe(block.title), title_w, "B", size)
        if date and not title_lines:
            title_lines = [""]

        draws: list[Draw] = []
        y = 0.0
        for index, text in enumerate(title_lines):
            dy = y
            draws.append(lambda x, top, text=text, dy=dy: pdf.draw_text(x, top + dy, text, "B", size, t.text_dark, lh))
            if index == 0 and date:
                draws.append(lambda x, top, dy=dy: pdf.draw_text(
                    x + width - date_w, top + dy, date, "", small, t.muted, lh))
            y += lh

        if block.link:
            url = block.link.url
            for text in pdf.wrap(pdf.safe(block.link.text), width, "", small):
                dy = y
                draws.append(lambda x, top, text=text, dy=dy: pdf.draw_text(
                    x, top + dy, text, "", small, t.accent, small_lh, url=url))
                y += small_lh

        for text in pdf.wrap(pdf.safe(block.meta), width, "I", small):
            dy = y
            draws.append(lambda x, top, text=text, dy=dy: pdf.draw_text(x, top + dy, text, "I", small, t.muted, small_lh))
            y += small_lh

        if not draws:
            return []
        return [_Unit(height=y + 2, draws=draws, keep_with_next=keep_with_next)]

    def text_lines(self, text: str, width: float, muted: bool = False) -> list[_Unit]:
        pdf, t = self.pdf, self.t
        style = "I" if muted else ""
        size = t.small_size if muted else t.body_size
        color = t.muted if muted else t.text
        lh = size * LINE_SPACING
        units = []
        for text_line in pdf.wrap(pdf.safe(text), width, style, size):
            draw = (lambda x, top, s=text_line: pdf.draw_text(x, top, s, style, size, color, lh))
            units.append(_Unit(height=lh, draws=[draw]))
        if units:
            units[0].space_before = 2.0
        return units

    def bullet(self, block: BulletBlock, width: float) -> list[_Unit]:
        pdf, t = self.pdf, self.t
        size = t.body_size
        lh = size * LINE_SPACING
        lines = pdf.wrap(pdf.safe(block.text), width - BULLET_INDENT, "", size)
        if not lines:
            return []

        def draw(x: float, top: float) -> None:
            self._marker(block.style, x + 4, top + lh / 2, size)
            for index, text in enumerate(lines):
                pdf.draw_text(x + BULLET_INDENT, top + index * lh, text, "", size, t.text, lh)

        return [_Unit(height=len(lines) * lh + 1, draws=[draw], space_before=1.0)]

    def _marker(self, style: BulletStyle, x: float, cy: float, size: float) -> None:
        pdf = self.pdf
        pdf.set_fill_color(*hex_to_rgb(self.t.accent))
        if style is BulletStyle.DOT:
            r = size * 0.16
            pdf.ellipse(x, cy - r, 2 * r, 2 * r, style="F")
        elif style is BulletStyle.ARROW:
            h = size * 0.45
            pdf.polygon([(x, cy - h / 2), (x + h * 0.8, cy), (x, cy + h / 2)], style="F")
        else:
            pdf.rect(x, cy - 0.6, size * 0.45, 1.2, style="F")

    def link(self, block: LinkBlock, width: float) -> list[_Unit]:
        pdf, t = self.pdf, self.t
        size = t.body_size
        lh = size * LINE_SPACING
        label = f"{pdf.safe(block.label)}: " if block.label else ""
        label_w = pdf.width_of(label, "B", size)
        url_text = pdf.safe(block.link.text)
        url = block.link.url
        inline = label_w + pdf.width_of(url_text, "", size) <= width
        url_x = label_w if inline else 0.0
        url_lines = pdf.wrap(url_text, width - url_x, "", size)
        first_dy = 0.0 if inline or not label else lh

        def draw(x: float, top: float) -> None:
            pdf.draw_text(x, top, label, "B", size, t.text_dark, lh)
            for index, text in enumerate(url_lines):
                pdf.draw_text(x + url_x, top + first_dy + index * lh, text, "", size, t.accent, lh, url=url)

        return [_Unit(height=first_dy + len(url_lines) * lh, draws=[draw], space_before=1.0)]

    def section_units(self, blocks: tuple, width: float) -> list[_Unit]:
        units: list[_Unit] = []
        pending = 0.0
        for index, block in enumerate(blocks):
            if isinstance(block, GapBlock):
                pending += ENTRY_GAP
                continue
            if isinstance(block, EntryBlock):
                has_body = index + 1 < len(blocks) and not isinstance(blocks[index + 1], GapBlock)
                new = self.entry(block, width, keep_with_next=has_body)
            elif isinstance(block, BulletBlock):
                new = self.bullet(block, width)
            elif isinstance(block, TextBlock):
                new = self.text_lines(block.text, width, block.muted)
            elif isinstance(block, InlineListBlock):
                new = self.text_lines(block.text, width)
            elif isinstance(block, LinkBlock):
                new = self.link(block, width)
            else:
                logger.debug("Skipping unsupported block %r", block)
                continue
            if new:
                new[0].space_before += pending
                pending = 0.0
            units.extend(new)
        return units


def _draw_resume(pdf: ResumePDF, plan: LayoutPlan) -> None:
    template = plan.template
    composer = _Composer(pdf, template)
    geometry = column_geometry(plan.variant)

    header_unit = None
    first_top = MARGIN_TOP
    if not plan.header_in_aside:
        header_unit = composer.header(plan.header, PAGE_WIDTH - MARGIN_LEFT - MARGIN_RIGHT, rule=True)
        first_top += header_unit.height

    column_pages = []
    for column in plan.columns():
        x, width = geometry[column.column]
        units: list[_Unit] = []
        if column.header:
            units.append(composer.header(column.header, width, rule=False))
        for section in column.sections:
            gap = SECTION_GAP if units else 0.0
            units.append(composer.heading(section.heading, width, gap))
            units.extend(composer.section_units(section.body, width))
        column_pages.append((x, paginate(units, first_top)))

    page_count = max(len(pages) for _, pages in column_pages)
    logger.debug("Drawing %d page(s) for %s layout", page_count, plan.variant.value)
    for page in range(page_count):
        pdf.add_page()
        if page == 0 and header_unit is not None:
            header_unit.draw(MARGIN_LEFT, MARGIN_TOP)
        if plan.variant is LayoutVariant.SIDEBAR:
            x, width = geometry[Column.ASIDE]
            divider = x + width + COLUMN_GAP / 2
            pdf.set_draw_color(*hex_to_rgb(template.border))
            pdf.set_line_width(0.5)
            pdf.line(divider, MARGIN_TOP, divider, PAGE_HEIGHT - MARGIN_BOTTOM)
        for x, pages in column_pages:
            if page < len(pages):
                for unit, y in pages[page]:
                    unit.draw(x, y)


def render_pdf(
    resume: ResumeDocument | dict[str, Any],
    template: TemplateConfig | str | None = None,
    *,
    font_path: str | Path | None = None,
    discover_fonts: bool = True,
) -> bytes:
    """Render the resume to PDF bytes (US Letter, selectable text)."""
    plan = plan_layout(resume, template)
    try:
        pdf = ResumePDF(plan.template.font_family, font_path, discover_fonts)
        pdf.set_metadata(plan.header.name, "Resume")
        _draw_resume(pdf, plan)
        return bytes(pdf.output())
    except (FPDFException, OSError) as e:
        logger.exception("PDF rendering failed for template %r", plan.template.id)
        raise ExportError("pdf", str(e)) from e


def render_cover_letter_pdf(
    letter: CoverLetterDocument | dict[str, Any],
    sender: PersonalInfo | ResumeDocument | dict[str, Any] | None = None,
    *,
    font_path: str | Path | None = None,
    discover_fonts: bool = True,
) -> bytes:
    """Render a cover letter to PDF bytes; body paragraphs flow across pages."""
    plan = plan_cover_letter(letter, sender)
    style = plan.style
    size = style.body_size
    lh = size * 1.45
    align = "C" if style.header_align is HeaderAlign.CENTER else "L"
    line = {"new_x": XPos.LMARGIN, "new_y": YPos.NEXT}
    try:
        pdf = ResumePDF(style.font_family, font_path, discover_fonts)
        pdf.set_metadata(plan.sender_name, "Cover Letter")
        pdf.set_margins(72, 72, 72)
        pdf.set_auto_page_break(True, margin=72)
        pdf.add_page()

        if plan.sender_name:
            pdf.use("B", 16, "#222222")
            pdf.multi_cell(0, 20, pdf.safe(plan.sender_name), align=align, **line)
        for contact in plan.sender_contact:
            pdf.use("", 9, "#555555")
            pdf.multi_cell(0, 12, pdf.safe(contact), align=align, **line)
        pdf.ln(18)

        pdf.use("", size, "#222222")
        if plan.date:
            pdf.multi_cell(0, lh, pdf.safe(plan.date), **line)
            pdf.ln(lh)
        for recipient in plan.recipient:
            pdf.multi_cell(0, lh, pdf.safe(recipient), **line)
        if plan.recipient:
            pdf.ln(lh)
        if plan.salutation:
            pdf.multi_cell(0, lh, pdf.safe(plan.salutation), **line)
            pdf.ln(style.paragraph_spacing)

        for paragraph in plan.paragraphs:
            pdf.multi_cell(0, lh, pdf.safe(paragraph), align="J" if style.justify else "L", **line)
            pdf.ln(style.paragraph_spacing)

        if plan.closing:
            pdf.ln(4)
            pdf.multi_cell(0, lh, pdf.safe(plan.closing), **line)
        if plan.signature:
            pdf.ln(size * 2.5)
            pdf.use("B", size, "#222222")
            pdf.multi_cell(0, lh, pdf.safe(plan.signature), **line)
        return bytes(pdf.output())
    except (FPDFException, OSError) as e:
        logger.exception("Cover letter PDF rendering failed")
        raise ExportError("pdf", str(e)) from e
