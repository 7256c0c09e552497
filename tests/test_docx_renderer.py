"""Tests for the python-docx backend."""

from __future__ import annotations

from io import BytesIO

import pytest
from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.shared import Inches

from resume_forge.errors import ExportError
from resume_forge.templates import docx_renderer
from resume_forge.templates.docx_renderer import render_cover_letter_docx, render_docx
from resume_forge.templates.layout import plan_layout
from resume_forge.templates.loader import list_templates


def _open(data: bytes):
    return Document(BytesIO(data))


def _headings(doc) -> list[str]:
    return [p.text for p in doc.paragraphs if p.style.name == "Heading 2"]


class TestRenderDocx:
    def test_headings_use_heading_2(self, sample_resume):
        doc = _open(render_docx(sample_resume))
        assert _headings(doc) == plan_layout(sample_resume).headings()

    def test_empty_skills_has_no_heading(self, resume_data):
        resume_data["skills"] = []
        doc = _open(render_docx(resume_data))
        assert "SKILLS" not in _headings(doc)
        assert "EDUCATION" in _headings(doc)

    def test_sidebar_linearized_in_reading_order(self, sample_resume):
        doc = _open(render_docx(sample_resume, "technical"))
        texts = [p.text for p in doc.paragraphs]
        assert texts[0] == "Jane Doe"
        assert _headings(doc) == plan_layout(sample_resume, "technical").headings()
        assert not doc.tables

    def test_dot_bullets_use_list_style(self, sample_resume):
        doc = _open(render_docx(sample_resume, "classic"))
        bullets = [p.text for p in doc.paragraphs if p.style.name == "List Bullet"]
        assert "Cut p99 latency by 40% across the payments API." in bullets

    def test_arrow_bullets_use_marker(self, sample_resume):
        doc = _open(render_docx(sample_resume, "modern"))
        assert any(p.text.startswith("›  Led the migration") for p in doc.paragraphs)

    def test_entry_date_after_tab(self, sample_resume):
        doc = _open(render_docx(sample_resume))
        entry = next(p for p in doc.paragraphs if p.text.startswith("Senior Software Engineer\t"))
        assert entry.text.endswith("2021 – Present")

    def test_hyperlinks(self, sample_resume):
        doc = _open(render_docx(sample_resume))
        targets = {rel.target_ref for rel in doc.part.rels.values() if rel.reltype == RT.HYPERLINK}
        assert "https://linkedin.com/in/janedoe" in targets
        assert "https://github.com/janedoe/ledgerlite" in targets

    def test_margins(self, sample_resume):
        section = _open(render_docx(sample_resume, margin_in=0.75)).sections[0]
        assert section.left_margin == Inches(0.75)
        assert section.top_margin == Inches(0.75)

    def test_core_properties(self, sample_resume):
        props = _open(render_docx(sample_resume)).core_properties
        assert props.author == "Jane Doe"
        assert props.title == "Jane Doe - Resume"

    @pytest.mark.parametrize("template", [t.id for t in list_templates()])
    def test_all_templates(self, sample_resume, template):
        doc = _open(render_docx(sample_resume, template))
        assert len(_headings(doc)) == 9

    def test_box_style_sets_paragraph_borders(self, sample_resume):
        doc = _open(render_docx(sample_resume, "professional"))
        heading = next(p for p in doc.paragraphs if p.style.name == "Heading 2")
        borders = heading._p.pPr.find(
            "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}pBdr"
        )
        assert borders is not None
        assert len(borders) == 4

    def test_failure_wrapped(self, sample_resume, monkeypatch):
        def boom(doc, *args):
            raise KeyError("no style")

        monkeypatch.setattr(docx_renderer, "_setup_document", boom)
        with pytest.raises(ExportError) as exc_info:
            render_docx(sample_resume)
        assert isinstance(exc_info.value.__cause__, KeyError)


class TestCoverLetterDocx:
    def test_content(self, sample_letter, sample_resume):
        doc = _open(render_cover_letter_docx(sample_letter, sample_resume))
        texts = [p.text for p in doc.paragraphs]
        assert texts[0] == "Jane Doe"
        assert "May 1, 2024" in texts
        assert "Dear Hiring Manager," in texts
        assert texts[-1] == "Jane Doe"
        body = [t for t in texts if t.startswith(("I am excited", "My work"))]
        assert len(body) == 2

    def test_blank_paragraphs_dropped(self, sample_letter):
        doc = _open(render_cover_letter_docx(sample_letter))
        assert all(p.text.strip() for p in doc.paragraphs)
