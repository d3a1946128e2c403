"""Workspace crawler: enumerates JavaScript/TypeScript sources on disk."""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Iterable
from pathlib import Path

from jsdocgen.syntax.parser import is_supported

logger = logging.getLogger(__name__)


def _matches_any(path: Path, patterns: Iterable[str]) -> bool:
    """Check whether any component of *path* matches one of *patterns*."""
    return any(fnmatch.fnmatch(part, pattern) for part in path.parts for pattern in patterns)


class WorkspaceCrawler:
    """Lists the documentable source files below one or more roots."""

    def __init__(self, ignore_patterns: Iterable[str] = ()) -> None:
        self.ignore_patterns = tuple(ignore_patterns)

    def crawl(self, root: Path) -> list[Path]:
        """Supported files under *root*, sorted by path.

        A file *root* is returned on its own when supported. Paths with any
        component matching an ignore pattern are skipped, as are ``.d.ts``
        declaration files.
        """
        root = root.resolve()
        if root.is_file():
            return [root] if is_supported(root) else []
        if not root.is_dir():
            raise FileNotFoundError(f"No such file or directory: {root}")

        found: list[Path] = []
        for p in sorted(root.rglob("*")):
            if _matches_any(p.relative_to(root), self.ignore_patterns):
                continue
            if p.is_file() and is_supported(p):
                found.append(p)
        logger.debug("crawled %s: %d source files", root, len(found))
        return found

    def crawl_all(self, roots: Iterable[Path]) -> list[Path]:
        """Union of :meth:`crawl` over every root, de-duplicated and sorted."""
        seen: set[Path] = set()
        for root in roots:
            seen.update(self.crawl(root))
        return sorted(seen)
