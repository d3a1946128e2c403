"""Tests for workspace crawling and traversal."""

from pathlib import Path

import pytest

from jsdocgen.syntax.parser import is_supported
from jsdocgen.workspace.crawler import WorkspaceCrawler, _matches_any
from jsdocgen.workspace.traversal import CancellationToken, Progress, walk


def _touch(root: Path, *names: str) -> None:
    for name in names:
        path = root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("function f() {}\n")


# ---------------------------------------------------------------------------
# _matches_any / is_supported
# ---------------------------------------------------------------------------


class TestMatching:
    def test_matches_component(self):
        assert _matches_any(Path("a/node_modules/b.ts"), ["node_modules"])

    def test_glob_pattern(self):
        assert _matches_any(Path("src/app.spec.ts"), ["*.spec.ts"])

    def test_no_match(self):
        assert not _matches_any(Path("src/output.ts"), ["out"])

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("a.ts", True),
            ("a.tsx", True),
            ("a.js", True),
            ("a.jsx", True),
            ("a.mjs", True),
            ("a.cts", True),
            ("a.d.ts", False),
            ("a.json", False),
            ("README.md", False),
        ],
    )
    def test_supported_suffixes(self, name, expected):
        assert is_supported(Path(name)) is expected


# ---------------------------------------------------------------------------
# WorkspaceCrawler
# ---------------------------------------------------------------------------


class TestWorkspaceCrawler:
    def test_sorted_and_filtered(self, tmp_path):
        _touch(tmp_path, "z.ts", "a/b.js", "a/c.tsx", "node_modules/x.ts", "dist/y.js", "t.d.ts")
        (tmp_path / "notes.txt").write_text("hi")
        root = tmp_path.resolve()
        found = WorkspaceCrawler(["node_modules", "dist"]).crawl(tmp_path)
        assert [p.relative_to(root).as_posix() for p in found] == ["a/b.js", "a/c.tsx", "z.ts"]

    def test_no_patterns_includes_everything_supported(self, tmp_path):
        _touch(tmp_path, "node_modules/x.ts")
        assert len(WorkspaceCrawler().crawl(tmp_path)) == 1

    def test_file_root(self, tmp_path):
        _touch(tmp_path, "one.ts")
        assert WorkspaceCrawler().crawl(tmp_path / "one.ts") == [(tmp_path / "one.ts").resolve()]

    def test_unsupported_file_root(self, tmp_path):
        (tmp_path / "one.md").write_text("# hi")
        assert WorkspaceCrawler().crawl(tmp_path / "one.md") == []

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            WorkspaceCrawler().crawl(tmp_path / "missing")

    def test_crawl_all_deduplicates(self, tmp_path):
        _touch(tmp_path, "a/one.ts", "b/two.ts")
        found = WorkspaceCrawler().crawl_all([tmp_path / "b", tmp_path, tmp_path / "a"])
        assert [p.name for p in found] == ["one.ts", "two.ts"]


# ---------------------------------------------------------------------------
# walk
# ---------------------------------------------------------------------------


class TestWalk:
    def test_yields_documentable_records(self, parse, config):
        document = parse("/** Done. */\nfunction a() {}\nfunction b() {}\nlet x = 1, y = 2;\n")
        assert [r.name for _, r in walk([document], config)] == ["b"]

    def test_paths_loaded_lazily(self, tmp_path, config):
        _touch(tmp_path, "a.ts")
        pairs = list(walk([tmp_path / "a.ts"], config))
        assert pairs[0][0].path == tmp_path / "a.ts"
        assert pairs[0][1].name == "f"

    def test_missing_path_skipped_with_progress(self, tmp_path, config):
        updates: list[Progress] = []
        pairs = list(walk([tmp_path / "gone.ts"], config, on_progress=updates.append))
        assert pairs == []
        assert updates == [Progress(1, 1, tmp_path / "gone.ts")]

    def test_cancel_between_declarations(self, parse, config):
        document = parse("function a() {}\nfunction b() {}\n")
        token = CancellationToken()
        names = []
        for _, record in walk([document], config, token):
            names.append(record.name)
            token.cancel()
        assert names == ["a"]

    def test_token(self):
        token = CancellationToken()
        assert not token.cancelled
        token.raise_if_cancelled()
        token.cancel()
        assert token.cancelled
