"""Exceptions surfaced to callers of the export engine."""

from __future__ import annotations


class ExportError(RuntimeError):
    """A backend failed while producing an export file.

    The underlying library exception is kept as ``__cause__``.
    """

    def __init__(self, fmt: str, message: str):
        super().__init__(f"{fmt.upper()} export failed: {message}")
        self.fmt = fmt
