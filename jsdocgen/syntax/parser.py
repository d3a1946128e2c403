"""Tree-sitter parsing of JavaScript and TypeScript documents."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

# The TSX grammar is a superset of JavaScript + JSX, so every non-TS file uses it.
GRAMMAR_BY_SUFFIX: dict[str, str] = {
    ".ts": "typescript",
    ".mts": "typescript",
    ".cts": "typescript",
    ".tsx": "tsx",
    ".js": "tsx",
    ".jsx": "tsx",
    ".mjs": "tsx",
    ".cjs": "tsx",
}


@lru_cache(maxsize=None)
def _language(grammar: str) -> Language:
    if grammar == "typescript":
        return Language(tree_sitter_typescript.language_typescript())
    if grammar == "tsx":
        return Language(tree_sitter_typescript.language_tsx())
    raise ValueError(f"Unsupported grammar: {grammar!r}")


def is_supported(path: Path) -> bool:
    """Whether *path* is a JS/TS source file (declaration files excluded)."""
    if path.name.endswith(".d.ts"):
        return False
    return path.suffix.lower() in GRAMMAR_BY_SUFFIX


def grammar_for(path: Path) -> str:
    try:
        return GRAMMAR_BY_SUFFIX[path.suffix.lower()]
    except KeyError:
        raise ValueError(f"Unsupported file type: {path}") from None


class SourceDocument:
    """A parsed source file: the read-only syntax view handed to the engine."""

    def __init__(
        self,
        text: str,
        path: Path | None = None,
        grammar: str | None = None,
    ) -> None:
        self.path = path
        self.text = text
        self.grammar = grammar or (grammar_for(path) if path else "typescript")
        self.source = text.encode("utf-8")
        self.tree = Parser(_language(self.grammar)).parse(self.source)
        self._line_starts = _line_starts(self.source)

    @classmethod
    def from_path(cls, path: Path) -> SourceDocument:
        return cls(path.read_text(encoding="utf-8"), path=path)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def text_of(self, node: Node) -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8")

    def starts_line(self, byte_offset: int) -> bool:
        """True when only whitespace precedes *byte_offset* on its line."""
        line = self.source.rfind(b"\n", 0, byte_offset) + 1
        return not self.source[line:byte_offset].strip()

    def indent_at(self, byte_offset: int) -> str:
        """Indent for a comment placed above the node at *byte_offset*.

        This is the line's leading whitespace. When code precedes the node on
        its line, spaces are added out to the node's character column.
        """
        line = self.source.rfind(b"\n", 0, byte_offset) + 1
        end = line
        while end < byte_offset and self.source[end:end + 1] in (b" ", b"\t"):
            end += 1
        leading = self.source[line:end].decode("utf-8")
        return leading + " " * len(self.source[end:byte_offset].decode("utf-8"))

    def character_column(self, line: int, byte_column: int) -> int:
        """Convert a tree-sitter byte column to a character column."""
        start = self._line_starts[line]
        return len(self.source[start:start + byte_column].decode("utf-8", errors="replace"))

    def byte_column(self, line: int, character: int) -> int:
        start = self._line_starts[line]
        end = self._line_starts[line + 1] if line + 1 < len(self._line_starts) else len(self.source)
        return len(self.source[start:end].decode("utf-8")[:character].encode("utf-8"))

    def node_at(self, line: int, character: int) -> Node:
        """Smallest node covering a (0-based) line/character position."""
        if line >= len(self._line_starts):
            line = len(self._line_starts) - 1
        point = (line, self.byte_column(line, character))
        return self.root.descendant_for_point_range(point, point)


def _line_starts(source: bytes) -> list[int]:
    starts = [0]
    index = source.find(b"\n")
    while index != -1:
        starts.append(index + 1)
        index = source.find(b"\n", index + 1)
    return starts
