"""Tests for the fpdf2 PDF backend."""

from __future__ import annotations

import pytest

from resume_forge.errors import ExportError
from resume_forge.export.pdf_renderer import (
    MARGIN_TOP,
    PAGE_HEIGHT,
    ResumePDF,
    _Unit,
    column_geometry,
    paginate,
    render_cover_letter_pdf,
    render_pdf,
)
from resume_forge.templates.layout import Column, plan_layout
from resume_forge.templates.loader import FontFamily, LayoutVariant, list_templates


def test_render_pdf_valid_pdf_magic(sample_resume):
    result = render_pdf(sample_resume, discover_fonts=False)
    assert isinstance(result, bytes)
    assert result[:4] == b"%PDF"


def test_text_is_extractable(sample_resume, pdf_text):
    text, _ = pdf_text(render_pdf(sample_resume, discover_fonts=False))
    assert "Jane Doe" in text
    for heading in plan_layout(sample_resume).headings():
        assert heading in text


def test_headings_in_reading_order(sample_resume, pdf_text):
    text, _ = pdf_text(render_pdf(sample_resume, "classic", discover_fonts=False))
    positions = [text.index(h) for h in plan_layout(sample_resume, "classic").headings()]
    assert positions == sorted(positions)


@pytest.mark.parametrize("template", [t.id for t in list_templates()])
def test_all_templates_render(sample_resume, pdf_text, template):
    text, _ = pdf_text(render_pdf(sample_resume, template, discover_fonts=False))
    assert "PROFESSIONAL EXPERIENCE" in text or "Professional Experience" in text


def test_long_resume_paginates(long_resume, pdf_text):
    text, pages = pdf_text(render_pdf(long_resume, discover_fonts=False))
    assert pages > 1
    assert "Engineer 24" in text


def test_long_sidebar_resume_paginates(long_resume, pdf_text):
    _, pages = pdf_text(render_pdf(long_resume, "technical", discover_fonts=False))
    assert pages > 1


def test_empty_resume_renders_header_only(pdf_text):
    text, pages = pdf_text(render_pdf({}, discover_fonts=False))
    assert pages == 1
    assert "Your Name" in text


def test_unicode_transliterated_for_core_fonts(pdf_text):
    resume = {"personalInfo": {"fullName": "Zoë “Z” O’Neil"}, "experience": [{"position": "Dev", "startDate": "2020", "current": True}]}
    text, _ = pdf_text(render_pdf(resume, discover_fonts=False))
    assert "Zoë \"Z\" O'Neil" in text
    assert "2020 - Present" in text


def test_links_are_annotations(sample_resume):
    import fitz

    doc = fitz.open(stream=render_pdf(sample_resume, discover_fonts=False), filetype="pdf")
    uris = {link.get("uri") for page in doc for link in page.get_links()}
    doc.close()
    assert "https://linkedin.com/in/janedoe" in uris
    assert "https://janedoe.dev/blog" in uris


def test_metadata(sample_resume):
    import fitz

    doc = fitz.open(stream=render_pdf(sample_resume, discover_fonts=False), filetype="pdf")
    meta = doc.metadata
    doc.close()
    assert meta["author"] == "Jane Doe"
    assert meta["title"] == "Jane Doe - Resume"


def test_missing_font_path_falls_back(sample_resume, tmp_path, caplog):
    result = render_pdf(sample_resume, font_path=tmp_path / "missing.ttf", discover_fonts=False)
    assert result[:4] == b"%PDF"
    assert "missing.ttf" in caplog.text


def test_backend_failure_wrapped(sample_resume, monkeypatch):
    from fpdf.errors import FPDFException

    def boom(self, *args, **kwargs):
        raise FPDFException("boom")

    monkeypatch.setattr(ResumePDF, "add_page", boom)
    with pytest.raises(ExportError) as exc_info:
        render_pdf(sample_resume, discover_fonts=False)
    assert isinstance(exc_info.value.__cause__, FPDFException)
    assert exc_info.value.fmt == "pdf"


class TestPagination:
    def test_units_flow_to_next_page(self):
        units = [_Unit(height=300) for _ in range(4)]
        pages = paginate(units, MARGIN_TOP)
        assert [len(p) for p in pages] == [2, 2]
        assert pages[1][0][1] == MARGIN_TOP

    def test_heading_moves_with_first_body_unit(self):
        bottom = PAGE_HEIGHT - 60
        filler = _Unit(height=bottom - MARGIN_TOP - 20)
        heading = _Unit(height=15, keep_with_next=True)
        body = _Unit(height=14)
        pages = paginate([filler, heading, body], MARGIN_TOP)
        assert pages[0] == [(filler, MARGIN_TOP)]
        assert [u for u, _ in pages[1]] == [heading, body]

    def test_space_dropped_at_page_top(self):
        units = [_Unit(height=600), _Unit(height=100, space_before=50)]
        pages = paginate(units, MARGIN_TOP)
        assert pages[1][0][1] == MARGIN_TOP

    def test_oversized_unit_still_placed(self):
        pages = paginate([_Unit(height=2000)], MARGIN_TOP)
        assert len(pages) == 1


def test_column_geometry_sidebar_order():
    geometry = column_geometry(LayoutVariant.SIDEBAR)
    assert geometry[Column.ASIDE][0] < geometry[Column.MAIN][0]
    assert set(column_geometry(LayoutVariant.SINGLE_COLUMN)) == {Column.MAIN}


def test_wrap_keeps_words_within_width():
    pdf = ResumePDF(FontFamily.HELVETICA, discover_fonts=False)
    lines = pdf.wrap("the quick brown fox jumps over the lazy dog " * 5, 120, "", 10)
    assert len(lines) > 1
    assert all(pdf.width_of(line, "", 10) <= 120 for line in lines)


def test_wrap_splits_long_words():
    pdf = ResumePDF(FontFamily.HELVETICA, discover_fonts=False)
    lines = pdf.wrap("x" * 200, 50, "", 10)
    assert "".join(lines) == "x" * 200
    assert all(pdf.width_of(line, "", 10) <= 50 for line in lines)


class TestCoverLetterPdf:
    def test_renders_text(self, sample_letter, sample_resume, pdf_text):
        text, _ = pdf_text(render_cover_letter_pdf(sample_letter, sample_resume, discover_fonts=False))
        assert "Dear Hiring Manager," in text
        assert "May 1, 2024" in text
        assert "Initech" in text
        assert "jane@example.com" in text

    def test_without_sender(self, sample_letter):
        assert render_cover_letter_pdf(sample_letter, discover_fonts=False)[:4] == b"%PDF"


def test_empty_skills_has_no_heading(resume_data, pdf_text):
    resume_data["skills"] = []
    text, _ = pdf_text(render_pdf(resume_data, discover_fonts=False))
    assert "SKILLS" not in text
    assert "EDUCATION" in text
