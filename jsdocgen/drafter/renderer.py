"""Comment renderer: lays out TagRecords as an aligned JSDoc body."""

from __future__ import annotations

from datetime import datetime

from jsdocgen.config.models import RenderConfiguration
from jsdocgen.drafter.models import TagRecord


def render(
    tags: tuple[TagRecord, ...] | list[TagRecord],
    config: RenderConfiguration,
    now: datetime | None = None,
) -> str:
    """Render *tags* as comment body lines, without delimiters.

    Layout: summary lines, then the ``@author``/``@date`` metadata lines,
    a blank line, and the aligned tag block. The type, name and description
    columns each start one space past the widest content before them, or at
    their configured minimum column when that is larger.

    Identical tags, configuration and *now* always yield identical text.
    """
    summary = [t for t in tags if t.is_summary]
    block = [t for t in tags if not t.is_summary]

    head: list[str] = []
    for tag in summary:
        head.extend((tag.description or "").splitlines() or [""])
    head.extend(_metadata(config, now))

    lines = list(head)
    if block:
        if lines:
            lines.append("")
        lines.extend(_align(block, config))
    return "\n".join(line.rstrip() for line in lines)


def wrap_comment(body: str, indent: str = "", *, own_line: bool = True) -> str:
    """Wrap a rendered body in ``/** ... */`` for insertion before a declaration.

    The result starts at the declaration's column and ends with a newline plus
    *indent*, so the declaration keeps its original indentation. When the
    declaration does not start its line (``own_line=False``) the comment opens
    with a line break first, moving comment and declaration onto lines of
    their own at *indent*.
    """
    lines = ["/**"]
    for line in body.split("\n"):
        lines.append(f"{indent} * {line}".rstrip())
    lines.append(f"{indent} */")
    text = "\n".join(lines) + "\n" + indent
    if not own_line:
        text = "\n" + indent + text
    return text


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _metadata(config: RenderConfiguration, now: datetime | None) -> list[str]:
    lines = []
    if config.author:
        lines.append(f"@author {config.author}")
    if config.include_date or config.include_time:
        now = now or datetime.now()
        parts = []
        if config.include_date:
            parts.append(f"{now.month}/{now.day}/{now.year}")
        if config.include_time:
            hour = now.hour % 12 or 12
            meridiem = "AM" if now.hour < 12 else "PM"
            parts.append(f"{hour}:{now.minute:02d}:{now.second:02d} {meridiem}")
        lines.append("@date " + " - ".join(parts))
    return lines


def _align(block: list[TagRecord], config: RenderConfiguration) -> list[str]:
    heads = [f"@{t.tag}" for t in block]
    types = [f"{{{t.type}}}" if t.type is not None else None for t in block]

    value_col = max(max(len(h) for h in heads) + 1, config.tag_value_column_start)
    typed_names = [len(ty) for ty, t in zip(types, block) if ty is not None and t.name]
    name_col = value_col + (max(typed_names) + 1 if typed_names else 0)
    name_col = max(name_col, config.tag_name_column_start)

    prefixes: list[str] = []
    for head, type_text, tag in zip(heads, types, block):
        text = head
        if type_text is not None or tag.name:
            text = text.ljust(value_col)
        if type_text is not None:
            text += type_text
        if tag.name:
            # every bound name shares one column, typed or not
            text = text.ljust(name_col) + tag.name
        prefixes.append(text)

    described = [
        len(p) for p, t, ty in zip(prefixes, block, types)
        if t.description and (ty is not None or t.name)
    ]
    desc_col = max((max(described) + 1) if described else 0, config.tag_description_column_start)

    lines = []
    for prefix, type_text, tag in zip(prefixes, types, block):
        if not tag.description:
            lines.append(prefix)
        elif type_text is None and not tag.name:
            lines.append(prefix.ljust(value_col) + tag.description)
        else:
            lines.append(prefix.ljust(desc_col) + tag.description)
    return lines
