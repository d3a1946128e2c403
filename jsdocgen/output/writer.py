"""EditWriter: applies JSDoc insertion edits to files on disk."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from jsdocgen.drafter.models import BatchResult, FileEdits, TextEdit

logger = logging.getLogger(__name__)


def apply_edits(text: str, edits: Iterable[TextEdit]) -> str:
    """Return *text* with every insertion applied.

    Edits are applied from the highest offset down so earlier offsets stay
    valid; edits sharing an offset keep their given order.
    """
    ordered = sorted(enumerate(edits), key=lambda pair: (pair[1].offset, pair[0]), reverse=True)
    for _, edit in ordered:
        if edit.offset > len(text):
            raise ValueError(f"edit offset {edit.offset} past end of text ({len(text)})")
        text = text[:edit.offset] + edit.new_text + text[edit.offset:]
    return text


class EditWriter:
    """Writes FileEdits back to their source files.

    Supports a dry-run mode that reports the would-be writes without
    touching the disk.
    """

    def write(self, file_edits: FileEdits, *, dry_run: bool = False) -> Path | None:
        """Apply one file's edits in place.

        Returns the path written (or that would be written), or None when
        there was nothing to do.
        """
        if not file_edits.edits:
            return None
        if file_edits.path is None:
            raise ValueError("cannot write edits for an in-memory document")
        dest = file_edits.path

        if dry_run:
            logger.debug("dry-run: would insert %d comments into %s", len(file_edits.edits), dest)
            return dest

        original = dest.read_text(encoding="utf-8")
        updated = apply_edits(original, file_edits.edits)
        try:
            dest.write_text(updated, encoding="utf-8")
        except OSError as e:
            logger.error("failed to write %s: %s", dest, e)
            raise
        logger.info("wrote %s (%d comments)", dest, len(file_edits.edits))
        return dest

    def write_batch(self, result: BatchResult, *, dry_run: bool = False) -> list[Path]:
        """Write every file of a batch. Returns written paths in batch order."""
        written = []
        for file_edits in result.files:
            path = self.write(file_edits, dry_run=dry_run)
            if path is not None:
                written.append(path)
        return written
