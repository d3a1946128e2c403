"""Error taxonomy for JSDoc generation."""

from __future__ import annotations


class JsdocError(Exception):
    """Base class for all jsdocgen errors."""


class NotDocumentable(JsdocError):
    """The node is not a declaration that can receive a JSDoc comment."""

    def __init__(self, node_type: str, reason: str = "unsupported node") -> None:
        self.node_type = node_type
        self.reason = reason
        super().__init__(f"{node_type}: {reason}")


class AlreadyDocumented(JsdocError):
    """The declaration is already preceded by a JSDoc comment."""

    def __init__(self, name: str | None) -> None:
        self.name = name
        super().__init__(f"{name or '<anonymous>'} already has a JSDoc comment")


class GenerationServiceFailure(JsdocError):
    """The description service failed; callers fall back to the placeholder."""

    def __init__(self, target: str, cause: Exception) -> None:
        self.target = target
        super().__init__(f"description generation failed for {target}: {cause}")
        self.__cause__ = cause


class CancellationRequested(JsdocError):
    """Cooperative stop. Work computed before the signal remains valid."""
