"""Tests for cover letter planning."""

import logging

from resume_forge.templates.cover_letter import COVER_LETTER_STYLES, plan_cover_letter
from resume_forge.templates.loader import FontFamily


class TestPlanCoverLetter:
    def test_fields(self, sample_letter, sample_resume):
        plan = plan_cover_letter(sample_letter, sample_resume)
        assert plan.sender_name == "Jane Doe"
        assert plan.sender_contact == ("jane@example.com", "+1 555 0100", "Portland, OR")
        assert plan.date == "May 1, 2024"
        assert plan.recipient == ("Hiring Manager", "Initech")
        assert plan.closing == "Sincerely,"

    def test_blank_paragraphs_dropped(self, sample_letter):
        plan = plan_cover_letter(sample_letter)
        assert len(plan.paragraphs) == 2
        assert plan.paragraphs[1].startswith("My work")

    def test_no_sender(self, sample_letter):
        plan = plan_cover_letter(sample_letter)
        assert plan.sender_name == ""
        assert plan.sender_contact == ()

    def test_sender_from_dict(self, letter_data, resume_data):
        assert plan_cover_letter(letter_data, resume_data).sender_name == "Jane Doe"
        assert plan_cover_letter(letter_data, {"fullName": "Sam"}).sender_name == "Sam"

    def test_free_form_date_kept(self, letter_data):
        letter_data["date"] = "Spring 2024"
        assert plan_cover_letter(letter_data).date == "Spring 2024"

    def test_style(self, letter_data):
        letter_data["templateId"] = "Modern"
        plan = plan_cover_letter(letter_data)
        assert plan.style == COVER_LETTER_STYLES["modern"]
        assert plan.style.font_family is FontFamily.HELVETICA

    def test_unknown_style_falls_back(self, letter_data, caplog):
        letter_data["templateId"] = "neon"
        with caplog.at_level(logging.WARNING):
            plan = plan_cover_letter(letter_data)
        assert plan.style.id == "formal"
        assert "neon" in caplog.text
