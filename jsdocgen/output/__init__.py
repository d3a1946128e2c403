"""Output subsystem: applies edits to source files."""

from jsdocgen.output.writer import EditWriter, apply_edits

__all__ = [
    "EditWriter",
    "apply_edits",
]
