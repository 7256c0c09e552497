"""Shared test fixtures."""

from __future__ import annotations

from typing import Any

import pytest

from resume_forge.models.cover_letter import CoverLetterDocument
from resume_forge.models.resume import ResumeDocument


@pytest.fixture
def resume_data() -> dict[str, Any]:
    return {
        "personalInfo": {
            "fullName": "Jane Doe",
            "title": "Senior Software Engineer",
            "summary": "Backend engineer with 8 years of experience\nbuilding   payment systems.",
            "email": "jane@example.com",
            "phone": "+1 555 0100",
            "location": "Portland, OR",
            "linkedin": "janedoe",
            "github": "https://github.com/janedoe",
            "website": "janedoe.dev",
        },
        "experience": [
            {
                "id": "exp-1",
                "position": "Senior Software Engineer",
                "company": "Acme Corp",
                "location": "Remote",
                "startDate": "2021",
                "endDate": "",
                "current": True,
                "bullets": [
                    "Led the migration of the billing platform to event sourcing.",
                    "Cut p99 latency by 40% across the payments API.",
                ],
            },
            {
                "id": "exp-2",
                "position": "Software Engineer",
                "company": "Globex",
                "location": "Seattle, WA",
                "startDate": "2016",
                "endDate": "2021",
                "bullets": ["Built the internal feature flag service."],
            },
        ],
        "education": [
            {
                "id": "edu-1",
                "degree": "B.S. Computer Science",
                "school": "Oregon State University",
                "location": "Corvallis, OR",
                "startDate": "2012",
                "endDate": "2016",
                "gpa": "3.8",
            }
        ],
        "skills": [{"name": "Python", "level": "Expert"}, {"name": "PostgreSQL"}, "Kubernetes"],
        "projects": [
            {
                "name": "ledgerlite",
                "description": "Double-entry accounting library.",
                "url": "github.com/janedoe/ledgerlite",
                "technologies": ["Python", "SQLite"],
            }
        ],
        "certifications": [
            {"name": "AWS Solutions Architect", "issuer": "Amazon", "date": "2022", "url": ""}
        ],
        "languages": [{"name": "English", "level": "Native"}, {"name": "Spanish", "level": "B2"}],
        "links": [{"label": "Blog", "url": "https://janedoe.dev/blog"}],
        "customSections": [
            {"id": "vol", "title": "Volunteering", "content": "", "items": ["Code for Portland mentor"]}
        ],
        "template": "classic",
    }


@pytest.fixture
def sample_resume(resume_data) -> ResumeDocument:
    return ResumeDocument.model_validate(resume_data)


@pytest.fixture
def long_resume(resume_data) -> ResumeDocument:
    """Enough experience entries to overflow a single page."""
    data = dict(resume_data)
    data["experience"] = [
        {
            "position": f"Engineer {i}",
            "company": f"Company {i}",
            "startDate": str(2000 + i),
            "endDate": str(2001 + i),
            "bullets": [
                f"Delivered project number {i}.{j} on schedule and under budget with a small team."
                for j in range(4)
            ],
        }
        for i in range(25)
    ]
    return ResumeDocument.model_validate(data)


@pytest.fixture
def letter_data() -> dict[str, Any]:
    return {
        "id": "cl-1",
        "recipientName": "Hiring Manager",
        "company": "Initech",
        "date": "2024-05-01",
        "salutation": "Dear Hiring Manager,",
        "bodyParagraphs": [
            {"text": "I am excited to apply for the Staff Engineer role at Initech."},
            "My work on payment platforms maps directly to your roadmap.",
            {"text": "   "},
        ],
        "closing": "Sincerely,",
        "signature": "Jane Doe",
        "associatedResumeId": None,
        "templateId": "formal",
    }


@pytest.fixture
def sample_letter(letter_data) -> CoverLetterDocument:
    return CoverLetterDocument.model_validate(letter_data)


@pytest.fixture
def pdf_text():
    """Extract all text from PDF bytes."""
    import fitz  # pymupdf

    def _extract(data: bytes) -> tuple[str, int]:
        doc = fitz.open(stream=data, filetype="pdf")
        try:
            return "\n".join(page.get_text() for page in doc), doc.page_count
        finally:
            doc.close()

    return _extract


@pytest.fixture
def resume_text() -> str:
    """Plain-text resume with labelled sections, as pasted or read from a .txt file."""
    return """Jane Doe
Backend engineer

Summary:
Platform engineer
Builds payment systems at scale.

Experience:
Staff Engineer at Acme
2019 - Present
Led platform team of 12.

Education:
Oregon State University
B.S. Computer Science
2016

Skills:
Python, Go, SQL
"""
