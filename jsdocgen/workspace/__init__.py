"""Workspace traversal: source enumeration, cancellation and progress."""

from jsdocgen.workspace.crawler import WorkspaceCrawler
from jsdocgen.workspace.traversal import CancellationToken, Progress, walk

__all__ = [
    "CancellationToken",
    "Progress",
    "WorkspaceCrawler",
    "walk",
]
