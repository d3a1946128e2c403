"""Tests for the JSDoc engine: single declarations and batches."""

import logging
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from jsdocgen.config.models import RenderConfiguration
from jsdocgen.drafter.describer import DescriptionGenerator
from jsdocgen.drafter.engine import JsdocEngine
from jsdocgen.errors import AlreadyDocumented, CancellationRequested, NotDocumentable
from jsdocgen.llm.models import LLMError
from jsdocgen.output.writer import apply_edits
from jsdocgen.syntax.classifier import iter_candidates
from jsdocgen.workspace.traversal import CancellationToken


# ---------------------------------------------------------------------------
# Single declarations
# ---------------------------------------------------------------------------


class TestDocumentNode:
    @pytest.mark.asyncio
    async def test_arrow_function_variable(self, engine, parse):
        document = parse("const greet = () => {};\n")
        node = next(iter_candidates(document.root))
        edit = await engine.document_node(document, node)
        assert edit.new_text == "/**\n * Description placeholder\n *\n * @returns {void}\n */\n"
        assert (edit.line, edit.character, edit.offset) == (0, 0, 0)
        assert edit.name == "greet"
        assert edit.kind == "function_variable"

    @pytest.mark.asyncio
    async def test_constructor_in_class(self, engine, sample_document, sample_text):
        result = await engine.generate_file(sample_document)
        ctor = next(e for e in result.edits if e.kind == "constructor")
        assert ctor.new_text == (
            "/**\n"
            "   * Creates an instance of Widget.\n"
            "   *\n"
            "   * @constructor\n"
            "   * @param       {string}  name\n"
            "   * @param       {?number} [size]\n"
            "   */\n"
            "  "
        )
        assert (ctor.line, ctor.character) == (9, 2)
        assert ctor.offset == sample_text.index("constructor(")

    @pytest.mark.asyncio
    async def test_already_documented_raises(self, engine, parse):
        document = parse("/** Hi. */\nfunction f() {}\n")
        node = next(iter_candidates(document.root))
        with pytest.raises(AlreadyDocumented):
            await engine.document_node(document, node)

    @pytest.mark.asyncio
    async def test_not_documentable_raises(self, engine, parse):
        document = parse("console.log(1);\n")
        with pytest.raises(NotDocumentable):
            await engine.document_node(document, document.root.named_children[0])

    @pytest.mark.asyncio
    async def test_cancelled_token_raises(self, engine, parse):
        document = parse("function f() {}\n")
        token = CancellationToken()
        token.cancel()
        with pytest.raises(CancellationRequested):
            await engine.document_node(document, next(iter_candidates(document.root)), token)

    @pytest.mark.asyncio
    async def test_offsets_count_characters(self, engine, parse):
        text = "const s = 'é';\n/* é */ function f() {}\n"
        document = parse(text)
        node = list(iter_candidates(document.root))[1]
        edit = await engine.document_node(document, node)
        assert edit.offset == text.index("function")
        assert (edit.line, edit.character) == (1, 8)

    @pytest.mark.asyncio
    async def test_class_label_aligned_with_template_name(self, engine, parse):
        document = parse("class Widget<T extends Base> {}\n")
        edit = await engine.document_node(document, next(iter_candidates(document.root)))
        lines = edit.new_text.split("\n")
        class_line = next(line for line in lines if "@class" in line)
        template_line = next(line for line in lines if "@template" in line)
        assert class_line.index("Widget") == template_line.index("T")
        assert template_line == " * @template {Base} T"

    @pytest.mark.asyncio
    async def test_members_sharing_a_line_are_split(self, engine, parse):
        text = "class A { m() {} n() {} }\n"
        result = await engine.generate_file(parse(text))
        output = apply_edits(text, result.edits)
        assert "{ /**" not in output
        assert "} /**" not in output
        assert "\n           * Description placeholder\n" in output
        assert "\n          m() {} \n" in output
        assert output.endswith("\n                 n() {} }\n")

    @pytest.mark.asyncio
    async def test_date_uses_clock(self, fixed_clock, parse):
        config = RenderConfiguration(include_date=True, include_time=True)
        engine = JsdocEngine(config, clock=fixed_clock)
        document = parse("function f() {}\n")
        edit = await engine.document_node(document, next(iter_candidates(document.root)))
        assert " * @date 3/5/2024 - 2:07:09 PM\n" in edit.new_text

    @pytest.mark.asyncio
    async def test_degraded_inference_flagged(self, engine, parse):
        document = parse("const data = fetchIt();\n")
        edit = await engine.document_node(document, next(iter_candidates(document.root)))
        assert edit.degraded
        assert " * @type {any}\n" in edit.new_text

    @pytest.mark.asyncio
    async def test_forced_parentheses(self, fixed_clock, parse):
        config = RenderConfiguration(include_parenthesis_for_multiple_types=False)
        engine = JsdocEngine(config, clock=fixed_clock)
        document = parse("function f(...args: (string | number)[]) {}\n")
        edit = await engine.document_node(document, next(iter_candidates(document.root)))
        assert "@param   {...(string | number)} args" in edit.new_text


class TestDocumentAt:
    @pytest.mark.asyncio
    async def test_cursor_inside_method(self, engine, sample_document):
        edit = await engine.document_at(sample_document, 14, 4)
        assert edit.name == "area"
        assert edit.kind == "method"
        assert (edit.line, edit.character) == (13, 2)
        assert edit.new_text.startswith("/**\n   * Description placeholder\n")
        assert edit.new_text.endswith("   * @returns {number}\n   */\n  ")

    @pytest.mark.asyncio
    async def test_cursor_above_declaration(self, engine, parse):
        document = parse("\n\nfunction f() {}\n")
        edit = await engine.document_at(document, 0, 0)
        assert edit.name == "f"
        assert edit.line == 2

    @pytest.mark.asyncio
    async def test_cursor_on_documented_declaration(self, engine, sample_document):
        with pytest.raises(AlreadyDocumented):
            await engine.document_at(sample_document, 19, 20)


# ---------------------------------------------------------------------------
# Description generation
# ---------------------------------------------------------------------------


class TestGeneratedDescriptions:
    @pytest.mark.asyncio
    async def test_generated_summary(self, config, fixed_clock, describer, parse):
        engine = JsdocEngine(config, describer, clock=fixed_clock)
        document = parse("function greet() {}\n")
        edit = await engine.document_node(document, next(iter_candidates(document.root)))
        assert edit.new_text.startswith("/**\n * Greets the current user.\n *\n")

    @pytest.mark.asyncio
    async def test_service_failure_falls_back_to_placeholder(
        self, config, fixed_clock, mock_llm_provider, parse, caplog
    ):
        mock_llm_provider.generate = AsyncMock(
            side_effect=LLMError("openai", "generate", RuntimeError("boom"))
        )
        describer = DescriptionGenerator(mock_llm_provider, config.generative)
        engine = JsdocEngine(config, describer, clock=fixed_clock)
        document = parse("function greet() {}\n")
        with caplog.at_level(logging.WARNING):
            edit = await engine.document_node(document, next(iter_candidates(document.root)))
        assert edit.new_text == "/**\n * Description placeholder\n *\n * @returns {void}\n */\n"
        assert "boom" in caplog.text


# ---------------------------------------------------------------------------
# Batches
# ---------------------------------------------------------------------------


class TestGenerateDocuments:
    @pytest.mark.asyncio
    async def test_sample_file_in_source_order(self, engine, sample_document):
        file_edits = await engine.generate_file(sample_document)
        assert [e.name for e in file_edits.edits] == [
            "Shape", "area", "Widget", "label", "constructor", "area", "greet", "Color",
        ]
        offsets = [e.offset for e in file_edits.edits]
        assert offsets == sorted(offsets)
        assert file_edits.path == Path("widget.ts")

    @pytest.mark.asyncio
    async def test_applied_sample_is_fully_documented(
        self, engine, sample_document, sample_text, parse
    ):
        file_edits = await engine.generate_file(sample_document)
        updated = apply_edits(sample_text, file_edits.edits)
        again = await engine.generate_file(parse(updated, "widget.ts"))
        assert again.edits == []

    @pytest.mark.asyncio
    async def test_documented_file_has_no_edits(self, engine, parse):
        result = await engine.generate_documents([parse("/** Hi. */\nfunction f() {}\n")])
        assert result.files == []
        assert result.processed == 1
        assert not result.cancelled

    @pytest.mark.asyncio
    async def test_cancellation_keeps_completed_documents(self, engine, parse):
        documents = [parse(f"function f{i}() {{}}\n", f"f{i}.ts") for i in range(5)]
        token = CancellationToken()
        seen = []

        def on_progress(update):
            seen.append(update.index)
            if update.index == 2:
                token.cancel()

        result = await engine.generate_documents(documents, token, on_progress)
        assert result.cancelled
        assert result.processed == 2
        assert result.total == 5
        assert [f.path.name for f in result.files] == ["f0.ts", "f1.ts"]
        assert seen == [1, 2]

    @pytest.mark.asyncio
    async def test_progress_reported_per_document(self, engine, parse):
        documents = [parse("function a() {}\n", "a.ts"), parse("let x;\n", "b.ts")]
        updates = []
        await engine.generate_documents(documents, on_progress=updates.append)
        assert [(u.index, u.total, u.path.name) for u in updates] == [(1, 2, "a.ts"), (2, 2, "b.ts")]

    @pytest.mark.asyncio
    async def test_failing_declaration_is_skipped(self, engine, parse, monkeypatch):
        document = parse("function a() {}\nfunction b() {}\n")
        original = engine._build

        async def flaky(doc, record, inferencer, token):
            if record.name == "a":
                raise ValueError("bad record")
            return await original(doc, record, inferencer, token)

        monkeypatch.setattr(engine, "_build", flaky)
        result = await engine.generate_documents([document])
        assert [e.name for e in result.files[0].edits] == ["b"]


class TestGenerateFolder:
    @pytest.mark.asyncio
    async def test_folder(self, engine, tmp_path):
        (tmp_path / "a.ts").write_text("function a() {}\n")
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "b.js").write_text("function b() {}\n")
        (tmp_path / "node_modules").mkdir()
        (tmp_path / "node_modules" / "c.ts").write_text("function c() {}\n")
        (tmp_path / "types.d.ts").write_text("declare function d(): void;\n")
        (tmp_path / "notes.md").write_text("# notes\n")

        result = await engine.generate_folder(tmp_path)
        root = tmp_path.resolve()
        assert [f.path.relative_to(root).as_posix() for f in result.files] == ["a.ts", "sub/b.js"]
        assert result.total == 2

    @pytest.mark.asyncio
    async def test_unreadable_file_skipped(self, engine, tmp_path):
        (tmp_path / "bad.ts").write_bytes(b"\xff\xfe\xfa")
        (tmp_path / "good.ts").write_text("function good() {}\n")
        result = await engine.generate_folder(tmp_path)
        assert [f.path.name for f in result.files] == ["good.ts"]
        assert result.processed == 2

    @pytest.mark.asyncio
    async def test_workspace_roots_deduplicated(self, engine, tmp_path):
        (tmp_path / "one").mkdir()
        (tmp_path / "one" / "a.ts").write_text("function a() {}\n")
        (tmp_path / "two").mkdir()
        (tmp_path / "two" / "b.ts").write_text("function b() {}\n")
        result = await engine.generate_workspace([tmp_path, tmp_path / "one", tmp_path / "two"])
        assert result.total == 2
        assert [f.path.name for f in result.files] == ["a.ts", "b.ts"]
