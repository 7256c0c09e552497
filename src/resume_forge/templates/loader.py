"""Template registry: typed layout/styling configs loaded from YAML."""

from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "catalog"
DEFAULT_TEMPLATE = "classic"


class LayoutVariant(str, Enum):
    SINGLE_COLUMN = "single-column"
    TWO_COLUMN = "two-column"
    SIDEBAR = "sidebar"


class HeaderAlign(str, Enum):
    LEFT = "left"
    CENTER = "center"


class BulletStyle(str, Enum):
    DOT = "dot"
    ARROW = "arrow"
    DASH = "dash"


class SectionStyle(str, Enum):
    UNDERLINE = "underline"
    COLORBAR = "colorbar"
    BOX = "box"
    NONE = "none"


class FontFamily(str, Enum):
    HELVETICA = "helvetica"
    TIMES = "times"


BULLET_MARKERS = {
    BulletStyle.DOT: "•",
    BulletStyle.ARROW: "›",
    BulletStyle.DASH: "–",
}

_ENUM_FIELDS = {
    "layout": LayoutVariant,
    "header_align": HeaderAlign,
    "bullet_style": BulletStyle,
    "section_style": SectionStyle,
    "font_family": FontFamily,
}


class TemplateConfig(BaseModel):
    """One registry entry. Every field has a default."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = DEFAULT_TEMPLATE
    name: str = "Classic"
    description: str = ""
    category: str = "Professional"

    layout: LayoutVariant = LayoutVariant.SINGLE_COLUMN
    header_align: HeaderAlign = HeaderAlign.CENTER
    bullet_style: BulletStyle = BulletStyle.DOT
    section_style: SectionStyle = SectionStyle.UNDERLINE
    uppercase_headings: bool = True

    accent: str = "#003399"
    text: str = "#333333"
    text_dark: str = "#000000"
    muted: str = "#555555"
    border: str = "#CCCCCC"

    font_family: FontFamily = FontFamily.TIMES
    name_size: float = 20
    heading_size: float = 11
    body_size: float = 10
    small_size: float = 9

    @model_validator(mode="before")
    @classmethod
    def _drop_unknown_options(cls, data: Any) -> Any:
        """Unknown enum values fall back to the field default."""
        if not isinstance(data, dict):
            return data
        cleaned = dict(data)
        for key, enum_cls in _ENUM_FIELDS.items():
            value = cleaned.get(key)
            if value is None:
                continue
            if value not in {e.value for e in enum_cls} and not isinstance(value, enum_cls):
                logger.warning("Template %r: unknown %s %r, using default", data.get("id"), key, value)
                del cleaned[key]
        return cleaned

    @field_validator("accent", "text", "text_dark", "muted", "border")
    @classmethod
    def _check_color(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith("#"):
            value = f"#{value}"
        if len(value) != 7:
            raise ValueError(f"Expected #RRGGBB color, got {value!r}")
        int(value[1:], 16)
        return value.upper()

    @property
    def bullet_marker(self) -> str:
        return BULLET_MARKERS[self.bullet_style]


def hex_to_rgb(value: str) -> tuple[int, int, int]:
    """``#1A2B3C`` → ``(26, 43, 60)``."""
    value = value.lstrip("#")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


@lru_cache(maxsize=1)
def _load_catalog() -> Mapping[str, TemplateConfig]:
    catalog: dict[str, TemplateConfig] = {}
    for path in sorted(TEMPLATES_DIR.glob("*.yaml")):
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        data.setdefault("id", path.stem)
        catalog[data["id"]] = TemplateConfig(**data)
    if DEFAULT_TEMPLATE not in catalog:
        catalog[DEFAULT_TEMPLATE] = TemplateConfig()
    logger.debug("Loaded %d templates from %s", len(catalog), TEMPLATES_DIR)
    return MappingProxyType(catalog)


def resolve_template(template_id: str | None) -> TemplateConfig:
    """Look up a template; unknown ids fall back to ``classic`` with a warning."""
    catalog = _load_catalog()
    key = (template_id or "").strip().lower()
    if key in catalog:
        return catalog[key]
    logger.warning("Unknown template %r, falling back to %r", template_id, DEFAULT_TEMPLATE)
    return catalog[DEFAULT_TEMPLATE]


def list_templates() -> list[TemplateConfig]:
    """All registry entries, sorted by id."""
    return [cfg for _, cfg in sorted(_load_catalog().items())]
