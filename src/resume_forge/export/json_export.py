"""Full-resume JSON export (camelCase, pretty-printed)."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from resume_forge.models.resume import ResumeDocument, coerce_resume


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def resume_to_dict(resume: ResumeDocument | dict[str, Any], stamp: bool = True) -> dict[str, Any]:
    """Serialize with wire (camelCase) keys; ``stamp`` refreshes ``lastModified``."""
    resume = coerce_resume(resume)
    if stamp:
        resume = resume.model_copy(update={"last_modified": _now_iso()})
    return resume.model_dump(mode="json", by_alias=True)


def export_json(resume: ResumeDocument | dict[str, Any], stamp: bool = True) -> str:
    """Pretty-print the whole resume; loading it back yields the same resume."""
    return json.dumps(resume_to_dict(resume, stamp=stamp), indent=2, ensure_ascii=False) + "\n"


def load_json(text: str) -> ResumeDocument:
    return ResumeDocument.model_validate(json.loads(text))
