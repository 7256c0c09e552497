"""Tests for the template registry."""

import logging

import pytest
from pydantic import ValidationError

from resume_forge.templates.loader import (
    BulletStyle,
    LayoutVariant,
    SectionStyle,
    TemplateConfig,
    hex_to_rgb,
    list_templates,
    resolve_template,
)


class TestResolveTemplate:
    def test_known_template(self):
        config = resolve_template("modern")
        assert config.id == "modern"
        assert config.layout is LayoutVariant.TWO_COLUMN

    def test_case_insensitive(self):
        assert resolve_template("  Technical ").id == "technical"

    def test_unknown_falls_back_to_classic(self, caplog):
        with caplog.at_level(logging.WARNING, logger="resume_forge.templates.loader"):
            config = resolve_template("does-not-exist")
        assert config.id == "classic"
        assert "does-not-exist" in caplog.text

    @pytest.mark.parametrize("value", [None, ""])
    def test_blank_falls_back_to_classic(self, value):
        assert resolve_template(value).id == "classic"

    def test_cached_and_identical(self):
        assert resolve_template("classic") is resolve_template("classic")


class TestCatalog:
    def test_shipped_templates(self):
        ids = [t.id for t in list_templates()]
        assert ids == sorted(["classic", "modern", "professional", "minimal", "executive", "technical"])

    def test_catalog_covers_every_option(self):
        templates = list_templates()
        assert {t.layout for t in templates} == set(LayoutVariant)
        assert {t.bullet_style for t in templates} == set(BulletStyle)
        assert {t.section_style for t in templates} == set(SectionStyle)

    def test_sparse_entry_uses_defaults(self):
        technical = resolve_template("technical")
        assert technical.layout is LayoutVariant.SIDEBAR
        assert technical.body_size == TemplateConfig().body_size


class TestTemplateConfig:
    def test_unknown_enum_value_dropped(self, caplog):
        with caplog.at_level(logging.WARNING):
            config = TemplateConfig(id="x", layout="three-column", bullet_style="star")
        assert config.layout is LayoutVariant.SINGLE_COLUMN
        assert config.bullet_style is BulletStyle.DOT
        assert "three-column" in caplog.text

    def test_color_normalized(self):
        assert TemplateConfig(accent="1a2b3c").accent == "#1A2B3C"

    def test_bad_color_rejected(self):
        with pytest.raises(ValidationError):
            TemplateConfig(accent="#12")

    def test_bullet_marker(self):
        assert TemplateConfig(bullet_style="arrow").bullet_marker == "›"

    def test_frozen(self):
        with pytest.raises(ValidationError):
            TemplateConfig().accent = "#000000"


def test_hex_to_rgb():
    assert hex_to_rgb("#1A2B3C") == (26, 43, 60)
