"""Tests for the shared layout planner."""

import pytest

from resume_forge.templates.layout import (
    Column,
    EntryBlock,
    GapBlock,
    InlineListBlock,
    LinkBlock,
    TextBlock,
    plan_layout,
    split_entries,
)
from resume_forge.templates.loader import LayoutVariant, list_templates


def _section(plan, section_id):
    return next(s for s in plan.sections if s.id == section_id)


class TestSectionOrder:
    def test_single_column_priority(self, sample_resume):
        plan = plan_layout(sample_resume, "classic")
        assert [s.id for s in plan.sections] == [
            "summary", "experience", "education", "skills", "projects",
            "certifications", "languages", "links", "custom-vol",
        ]

    def test_headings_follow_template_case(self, sample_resume):
        assert plan_layout(sample_resume, "classic").headings()[0] == "PROFESSIONAL SUMMARY"
        assert plan_layout(sample_resume, "minimal").headings()[0] == "Professional Summary"

    def test_empty_sections_omitted(self, resume_data):
        resume_data["skills"] = []
        resume_data["projects"] = [{"name": "", "description": "", "technologies": []}]
        plan = plan_layout(resume_data, "classic")
        ids = [s.id for s in plan.sections]
        assert "skills" not in ids
        assert "projects" not in ids

    def test_empty_resume_renders_header_only(self):
        plan = plan_layout({}, "classic")
        assert plan.sections == ()
        assert plan.header.name == "Your Name"

    def test_template_argument_overrides_resume(self, sample_resume):
        assert plan_layout(sample_resume, "modern").template.id == "modern"
        assert plan_layout(sample_resume).template.id == "classic"


class TestColumns:
    def test_two_column_partition(self, sample_resume):
        plan = plan_layout(sample_resume, "modern")
        columns = {c.column: [s.id for s in c.sections] for c in plan.columns()}
        assert columns[Column.MAIN] == ["summary", "experience", "education", "projects", "custom-vol"]
        assert columns[Column.ASIDE] == ["skills", "certifications", "languages", "links"]
        assert [c.column for c in plan.columns()] == [Column.MAIN, Column.ASIDE]
        assert not plan.header_in_aside

    def test_sidebar_reads_aside_first(self, sample_resume):
        plan = plan_layout(sample_resume, "technical")
        assert plan.variant is LayoutVariant.SIDEBAR
        columns = plan.columns()
        assert [c.column for c in columns] == [Column.ASIDE, Column.MAIN]
        assert columns[0].header is plan.header
        assert [s.id for s in columns[0].sections] == ["summary", "skills", "languages", "links"]
        assert plan.headings()[0] == "PROFESSIONAL SUMMARY"
        assert plan.sections[4].id == "experience"

    def test_multi_column_keeps_empty_column(self):
        plan = plan_layout({"experience": [{"position": "Dev"}]}, "modern")
        columns = plan.columns()
        assert len(columns) == 2
        assert columns[1].sections == ()


class TestEntries:
    def test_gap_only_between_entries(self, sample_resume):
        body = _section(plan_layout(sample_resume), "experience").body
        assert sum(isinstance(b, GapBlock) for b in body) == 1
        assert not isinstance(body[-1], GapBlock)

    def test_single_entry_has_no_gap(self, sample_resume):
        body = _section(plan_layout(sample_resume), "education").body
        assert not any(isinstance(b, GapBlock) for b in body)

    def test_experience_entry(self, sample_resume):
        entry = _section(plan_layout(sample_resume), "experience").body[0]
        assert isinstance(entry, EntryBlock)
        assert entry.title == "Senior Software Engineer"
        assert entry.date == "2021 – Present"
        assert entry.meta == "Acme Corp, Remote"

    def test_education_gpa(self, sample_resume):
        entry = _section(plan_layout(sample_resume), "education").body[0]
        assert entry.meta == "Oregon State University, Corvallis, OR | GPA: 3.8"

    def test_undated_entry_has_no_date(self):
        plan = plan_layout({"experience": [{"position": "Volunteer"}], "education": [{"school": "MIT", "endDate": "2016"}]})
        assert _section(plan, "experience").body[0].date == ""
        assert _section(plan, "education").body[0].date == " – 2016"

    def test_summary_normalized(self, sample_resume):
        block = _section(plan_layout(sample_resume), "summary").body[0]
        assert isinstance(block, TextBlock)
        assert block.text == "Backend engineer with 8 years of experience building payment systems."

    def test_skills_inline(self, sample_resume):
        block = _section(plan_layout(sample_resume), "skills").body[0]
        assert isinstance(block, InlineListBlock)
        assert block.items == ("Python (Expert)", "PostgreSQL", "Kubernetes")

    def test_project_link_and_technologies(self, sample_resume):
        body = _section(plan_layout(sample_resume), "projects").body
        assert body[0].link.url == "https://github.com/janedoe/ledgerlite"
        assert body[-1] == TextBlock("Technologies: Python, SQLite", muted=True)

    def test_links_section(self, sample_resume):
        block = _section(plan_layout(sample_resume), "links").body[0]
        assert isinstance(block, LinkBlock)
        assert block.label == "Blog"


class TestHeader:
    def test_profile_links_expanded(self, sample_resume):
        urls = [link.url for link in plan_layout(sample_resume).header.links]
        assert urls == ["https://linkedin.com/in/janedoe", "https://github.com/janedoe", "https://janedoe.dev"]

    def test_contact_parts(self, sample_resume):
        assert plan_layout(sample_resume).header.contact == ("jane@example.com", "+1 555 0100", "Portland, OR")


def test_split_entries_marks_all_but_last():
    groups = split_entries((TextBlock("a"), GapBlock(), TextBlock("b"), GapBlock(), TextBlock("c")))
    assert [spaced for _, spaced in groups] == [True, True, False]


def test_blocks_stream_in_reading_order(sample_resume):
    plan = plan_layout(sample_resume, "technical")
    blocks = list(plan.blocks())
    assert blocks[0] is plan.header
    assert [b.title for b in blocks if b.kind == "heading"] == plan.headings()
    assert len(blocks) == 1 + sum(len(s.blocks) for s in plan.sections)


@pytest.mark.parametrize("template", [t.id for t in list_templates()])
def test_every_template_plans(sample_resume, template):
    plan = plan_layout(sample_resume, template)
    assert len(plan.headings()) == 9
