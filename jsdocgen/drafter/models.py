"""Pydantic models for the drafter subsystem."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

SUMMARY = "description"


class TagRecord(BaseModel):
    """One line of a JSDoc block.

    ``type`` holds the already rendered type text (``?string``,
    ``...number``) without braces. The leading summary is a record whose
    tag is ``description``.
    """

    model_config = ConfigDict(frozen=True)

    tag: str = Field(min_length=1)
    type: str | None = None
    name: str | None = None
    description: str | None = None

    @property
    def is_summary(self) -> bool:
        return self.tag == SUMMARY


class TextEdit(BaseModel):
    """Insertion of a rendered comment in front of a declaration."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=0)
    character: int = Field(ge=0)
    offset: int = Field(ge=0)
    new_text: str
    name: str | None = None
    kind: str = ""
    degraded: bool = False


class FileEdits(BaseModel):
    """Edits for one document, in source order."""

    path: Path | None = None
    edits: list[TextEdit] = Field(default_factory=list)


class BatchResult(BaseModel):
    """Outcome of a folder or workspace run.

    When ``cancelled`` is set, ``files`` holds the edits computed before the
    stop signal; they are still valid.
    """

    files: list[FileEdits] = Field(default_factory=list)
    processed: int = 0
    total: int = 0
    cancelled: bool = False

    @property
    def edit_count(self) -> int:
        return sum(len(f.edits) for f in self.files)
