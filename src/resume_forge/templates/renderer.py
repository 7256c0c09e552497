"""HTML preview backend: renders the layout plan through Jinja2 templates."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateError, select_autoescape
from markupsafe import Markup

from resume_forge.errors import ExportError
from resume_forge.models.cover_letter import CoverLetterDocument
from resume_forge.models.resume import PersonalInfo, ResumeDocument
from resume_forge.templates.cover_letter import CoverLetterPlan, plan_cover_letter
from resume_forge.templates.layout import CONTACT_SEPARATOR, LayoutPlan, plan_layout, split_entries
from resume_forge.templates.loader import BULLET_MARKERS, FontFamily, TemplateConfig

logger = logging.getLogger(__name__)

HTML_TEMPLATES_DIR = Path(__file__).parent / "html"

FONT_STACKS = {
    FontFamily.HELVETICA: '"Helvetica Neue", Helvetica, Arial, sans-serif',
    FontFamily.TIMES: '"Times New Roman", Times, Georgia, serif',
}


@lru_cache(maxsize=1)
def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(HTML_TEMPLATES_DIR)),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.globals["split_entries"] = split_entries
    return env


def _render(name: str, **context: Any) -> str:
    try:
        return _environment().get_template(name).render(**context)
    except TemplateError as e:
        logger.exception("Failed to render %s", name)
        raise ExportError("html", str(e)) from e


def _resume_css(template: TemplateConfig, container_id: str) -> str:
    return _render(
        "resume.css",
        t=template,
        container_id=container_id,
        font_stack=FONT_STACKS[template.font_family],
    )


def render_plan(plan: LayoutPlan, container_id: str = "resume-preview", include_styles: bool = True) -> str:
    body = _render(
        "resume.html",
        plan=plan,
        container_id=container_id,
        markers=BULLET_MARKERS,
        contact_separator=CONTACT_SEPARATOR,
    )
    if not include_styles:
        return body
    css = _resume_css(plan.template, container_id)
    return f"<style>\n{css}\n</style>\n{body}"


def render_preview(
    resume: ResumeDocument | dict[str, Any],
    template: TemplateConfig | str | None = None,
    container_id: str = "resume-preview",
    include_styles: bool = True,
) -> str:
    """Render the resume as an HTML fragment for embedding in a page.

    All styles are scoped to ``#container_id`` so several previews can share a
    page. The fragment uses the same block stream as the PDF and DOCX
    renderers, so the set and order of section headings always match.
    """
    plan = plan_layout(resume, template)
    return render_plan(plan, container_id=container_id, include_styles=include_styles)


def render_preview_page(
    resume: ResumeDocument | dict[str, Any],
    template: TemplateConfig | str | None = None,
    title: str | None = None,
) -> str:
    """Render a standalone HTML document (for the ``html`` export format)."""
    container_id = "resume-preview"
    plan = plan_layout(resume, template)
    body = render_plan(plan, container_id=container_id, include_styles=False)
    css = _resume_css(plan.template, container_id)
    return _render(
        "page.html",
        title=title or plan.header.name,
        css=Markup(css),
        body=Markup(body),
    )


def _cover_letter_fragment(plan: CoverLetterPlan, container_id: str) -> tuple[str, str]:
    body = _render("cover_letter.html", plan=plan, container_id=container_id)
    css = _render(
        "cover_letter.css",
        style=plan.style,
        container_id=container_id,
        font_stack=FONT_STACKS[plan.style.font_family],
    )
    return css, body


def render_cover_letter_preview(
    letter: CoverLetterDocument | dict[str, Any],
    sender: PersonalInfo | ResumeDocument | dict[str, Any] | None = None,
    container_id: str = "cover-letter-preview",
) -> str:
    plan = plan_cover_letter(letter, sender)
    css, body = _cover_letter_fragment(plan, container_id)
    return f"<style>\n{css}\n</style>\n{body}"


def render_cover_letter_page(
    letter: CoverLetterDocument | dict[str, Any],
    sender: PersonalInfo | ResumeDocument | dict[str, Any] | None = None,
) -> str:
    plan = plan_cover_letter(letter, sender)
    css, body = _cover_letter_fragment(plan, "cover-letter-preview")
    title = " - ".join(p for p in ("Cover Letter", plan.recipient[-1] if plan.recipient else "") if p)
    return _render("page.html", title=title, css=Markup(css), body=Markup(body))


def save_html(html_content: str, output_path: str | Path) -> Path:
    """Save HTML content to file."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html_content, encoding="utf-8")
    return path
