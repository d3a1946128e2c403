"""Traversal driver: yields documentable declarations across documents."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from jsdocgen.config.models import RenderConfiguration
from jsdocgen.errors import AlreadyDocumented, CancellationRequested, NotDocumentable
from jsdocgen.syntax.classifier import DeclarationClassifier, iter_candidates
from jsdocgen.syntax.models import DeclarationRecord
from jsdocgen.syntax.parser import SourceDocument

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative stop signal, safe to set from a signal handler or thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancellationRequested("operation cancelled")


@dataclass(frozen=True)
class Progress:
    """Emitted after each document: ``index`` of ``total`` documents are done."""

    index: int
    total: int
    path: Path | None


def walk(
    documents: Sequence[SourceDocument | Path],
    config: RenderConfiguration,
    token: CancellationToken | None = None,
    on_progress: Callable[[Progress], None] | None = None,
) -> Iterator[tuple[SourceDocument, DeclarationRecord]]:
    """Yield ``(document, record)`` for every documentable declaration.

    Documents are visited in the given order and declarations in source
    order. Paths are parsed lazily; unreadable files are logged and skipped.
    Cancellation is checked before each document and each declaration.
    """
    total = len(documents)
    for index, item in enumerate(documents, start=1):
        if token is not None and token.cancelled:
            logger.info("cancelled after %d of %d documents", index - 1, total)
            return
        document = _load(item)
        if document is not None:
            classifier = DeclarationClassifier(document, config)
            for node in iter_candidates(document.root):
                if token is not None and token.cancelled:
                    logger.info("cancelled in %s", document.path or "<buffer>")
                    return
                try:
                    record = classifier.classify(node)
                except (NotDocumentable, AlreadyDocumented) as e:
                    logger.debug("skipping %s at line %d: %s", node.type, node.start_point[0] + 1, e)
                    continue
                yield document, record
        if on_progress is not None:
            on_progress(Progress(index, total, document.path if document else _path_of(item)))


def _load(item: SourceDocument | Path) -> SourceDocument | None:
    if isinstance(item, SourceDocument):
        return item
    try:
        return SourceDocument.from_path(item)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("skipping unreadable file %s: %s", item, e)
        return None


def _path_of(item: SourceDocument | Path) -> Path | None:
    return item.path if isinstance(item, SourceDocument) else item
