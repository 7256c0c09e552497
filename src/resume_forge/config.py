"""Application configuration loaded from config.yaml."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

CONFIG_ENV_VAR = "RESUME_FORGE_CONFIG"


@dataclass(frozen=True)
class ExportConfig:
    default_template: str = "classic"
    margin_in: float = 1.0
    pdf_font_path: str | None = None
    output_dir: str = "./output"

    @property
    def resolved_output_dir(self) -> Path:
        return Path(self.output_dir).expanduser()


@dataclass(frozen=True)
class ImportConfig:
    # Extracted PDF text shorter than this is treated as a scanned image.
    min_pdf_text_chars: int = 30
    max_file_mb: float = 10.0


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "WARNING"


@dataclass(frozen=True)
class AppConfig:
    export: ExportConfig = field(default_factory=ExportConfig)
    importing: ImportConfig = field(default_factory=ImportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load config from YAML file, falling back to defaults."""
    if path is None:
        candidates = [
            Path.cwd() / "config.yaml",
            Path(__file__).resolve().parent.parent.parent / "config.yaml",
        ]
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            candidates.insert(0, Path(env_path).expanduser())
        for c in candidates:
            if c.exists():
                path = c
                break

    raw: dict = {}
    if path is not None:
        p = Path(path)
        if p.exists():
            raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}

    return AppConfig(
        export=ExportConfig(**raw.get("export", {})),
        importing=ImportConfig(**raw.get("import", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
    )
