"""JSDoc engine: coordinates classify, infer, plan and render into edits."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path

from tree_sitter import Node

from jsdocgen.config.models import RenderConfiguration
from jsdocgen.drafter.describer import DescriptionGenerator
from jsdocgen.drafter.models import BatchResult, FileEdits, TextEdit
from jsdocgen.drafter.planner import fill_descriptions, plan
from jsdocgen.drafter.renderer import render, wrap_comment
from jsdocgen.syntax.classifier import DeclarationClassifier, locate
from jsdocgen.syntax.inference import TypeInferencer
from jsdocgen.syntax.models import DeclarationRecord
from jsdocgen.syntax.parser import SourceDocument
from jsdocgen.workspace.crawler import WorkspaceCrawler
from jsdocgen.workspace.traversal import CancellationToken, Progress, walk

logger = logging.getLogger(__name__)


class JsdocEngine:
    """Produces JSDoc insertion edits; it never touches the files itself.

    Pipeline per declaration:
        node → classify → infer → plan → (describe) → render → TextEdit

    One engine serves one invocation: the configuration snapshot is read at
    construction and never changes afterwards.
    """

    def __init__(
        self,
        config: RenderConfiguration,
        describer: DescriptionGenerator | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.describer = describer
        self.clock = clock or datetime.now

    # -- single declaration ------------------------------------------------

    async def document_node(
        self,
        document: SourceDocument,
        node: Node,
        token: CancellationToken | None = None,
    ) -> TextEdit:
        """Build the edit documenting *node*.

        Raises NotDocumentable or AlreadyDocumented when *node* is not a
        valid target, and CancellationRequested when *token* is already set.
        """
        if token is not None:
            token.raise_if_cancelled()
        record = DeclarationClassifier(document, self.config).classify(node)
        return await self._build(document, record, TypeInferencer(document), token)

    async def document_at(
        self,
        document: SourceDocument,
        line: int,
        character: int,
        token: CancellationToken | None = None,
    ) -> TextEdit:
        """Build the edit for the declaration at a 0-based cursor position."""
        if token is not None:
            token.raise_if_cancelled()
        classifier = DeclarationClassifier(document, self.config)
        record = locate(classifier, line, character)
        return await self._build(document, record, classifier.types, token)

    # -- batches -----------------------------------------------------------

    async def generate_file(
        self,
        document: SourceDocument,
        token: CancellationToken | None = None,
    ) -> FileEdits:
        """Edits for every undocumented declaration of one document."""
        result = await self.generate_documents([document], token)
        return result.files[0] if result.files else FileEdits(path=document.path)

    async def generate_documents(
        self,
        documents: Sequence[SourceDocument | Path],
        token: CancellationToken | None = None,
        on_progress: Callable[[Progress], None] | None = None,
    ) -> BatchResult:
        """Edits for every undocumented declaration across *documents*.

        A failure on one declaration is logged and skipped. On cancellation the
        edits computed so far are returned with ``cancelled`` set.
        """
        result = BatchResult(total=len(documents))

        def progress(update: Progress) -> None:
            result.processed = update.index
            if on_progress is not None:
                on_progress(update)

        current: FileEdits | None = None
        current_document: SourceDocument | None = None
        inferencer: TypeInferencer | None = None

        for document, record in walk(documents, self.config, token, progress):
            if document is not current_document:
                current_document = document
                inferencer = TypeInferencer(document)
                current = FileEdits(path=document.path)
                result.files.append(current)
            try:
                edit = await self._build(document, record, inferencer, token)
            except (ValueError, TypeError, RecursionError) as e:
                logger.warning(
                    "failed to document %s in %s: %s",
                    record.display_name,
                    document.path or "<buffer>",
                    e,
                )
                continue
            current.edits.append(edit)

        result.files = [f for f in result.files if f.edits]
        result.cancelled = token is not None and token.cancelled
        logger.info(
            "generated %d comments in %d of %d documents%s",
            result.edit_count,
            result.processed,
            result.total,
            " (cancelled)" if result.cancelled else "",
        )
        return result

    async def generate_folder(
        self,
        folder: Path,
        token: CancellationToken | None = None,
        on_progress: Callable[[Progress], None] | None = None,
    ) -> BatchResult:
        paths = WorkspaceCrawler(self.config.ignore_patterns).crawl(folder)
        return await self.generate_documents(paths, token, on_progress)

    async def generate_workspace(
        self,
        roots: Sequence[Path],
        token: CancellationToken | None = None,
        on_progress: Callable[[Progress], None] | None = None,
    ) -> BatchResult:
        paths = WorkspaceCrawler(self.config.ignore_patterns).crawl_all(roots)
        return await self.generate_documents(paths, token, on_progress)

    # -- internals ---------------------------------------------------------

    async def _build(
        self,
        document: SourceDocument,
        record: DeclarationRecord,
        inferencer: TypeInferencer,
        token: CancellationToken | None,
    ) -> TextEdit:
        record = inferencer.complete(record)
        tags = plan(record, self.config)
        tags = await fill_descriptions(tags, record, self.describer, self.config, token)
        body = render(tags, self.config, now=self.clock())
        span = record.span
        return TextEdit(
            line=span.start_line,
            character=document.character_column(span.start_line, span.start_column),
            offset=len(document.source[:span.start_byte].decode("utf-8")),
            new_text=wrap_comment(body, record.indent, own_line=record.own_line),
            name=record.name,
            kind=record.kind.value,
            degraded=record.degraded,
        )
