"""CLI entry point for jsdocgen."""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml
from rich import print as rprint
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import Progress as ProgressBar
from rich.syntax import Syntax
from rich.table import Table

from jsdocgen.config import RenderConfiguration, load_config
from jsdocgen.config.loader import DEFAULT_CONFIG_TEMPLATE
from jsdocgen.drafter import BatchResult, DescriptionGenerator, FileEdits, JsdocEngine
from jsdocgen.errors import AlreadyDocumented, CancellationRequested, NotDocumentable
from jsdocgen.llm import create_llm_provider
from jsdocgen.output import EditWriter, apply_edits
from jsdocgen.syntax import SourceDocument, is_supported
from jsdocgen.workspace import CancellationToken, Progress

app = typer.Typer(
    name="jsdocgen",
    help="Generate JSDoc comments for JavaScript and TypeScript declarations.",
)

config_app = typer.Typer(help="Manage jsdocgen configuration.")
app.add_typer(config_app, name="config")

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}

# Global state
_config: RenderConfiguration | None = None


def _get_config() -> RenderConfiguration:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to jsdocgen.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    logging.basicConfig(
        level=_LOG_LEVELS[_config.log_level],
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def _make_engine(cfg: RenderConfiguration, generate: bool) -> JsdocEngine:
    describer = None
    if generate:
        try:
            llm = create_llm_provider(cfg.generative)
        except ValueError as e:
            rprint(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)
        describer = DescriptionGenerator(llm, cfg.generative, cfg.description_placeholder)
    return JsdocEngine(cfg, describer)


def _run_cancellable(
    factory: Callable[[CancellationToken], Coroutine[Any, Any, BatchResult]],
) -> BatchResult:
    """Run a batch; the first Ctrl-C cancels it cooperatively."""
    token = CancellationToken()

    def _on_sigint(signum, frame) -> None:
        rprint("[yellow]Cancelling...[/yellow]")
        token.cancel()

    previous = signal.signal(signal.SIGINT, _on_sigint)
    try:
        return asyncio.run(factory(token))
    finally:
        signal.signal(signal.SIGINT, previous)


def _load_document(file: Path) -> SourceDocument:
    if not file.is_file():
        rprint(f"[red]Error:[/red] No such file: {file}")
        raise typer.Exit(1)
    if not is_supported(file):
        rprint(f"[red]Error:[/red] Unsupported file type: {file}")
        raise typer.Exit(1)
    return SourceDocument.from_path(file)


def _preview(document: SourceDocument, file_edits: FileEdits) -> None:
    lexer = "typescript" if document.grammar == "typescript" else "tsx"
    rprint(Syntax(apply_edits(document.text, file_edits.edits), lexer, theme="monokai"))


def _display_batch(result: BatchResult, written: list[Path], dry_run: bool) -> None:
    table = Table(title=f"JSDoc comments ({result.edit_count})")
    table.add_column("File", style="cyan")
    table.add_column("Comments", justify="right")
    table.add_column("Degraded", justify="right", style="yellow")
    for file_edits in result.files:
        degraded = sum(1 for e in file_edits.edits if e.degraded)
        table.add_row(str(file_edits.path), str(len(file_edits.edits)), str(degraded) if degraded else "")
    rprint(table)

    status = "cancelled" if result.cancelled else "complete"
    rprint(Panel(
        f"[dim]Documents:[/dim]    {result.processed} of {result.total}\n"
        f"[dim]Comments:[/dim]     {result.edit_count}\n"
        f"[dim]Files:[/dim]        {len(written)}" + (" (dry run)" if dry_run else ""),
        title=f"Generation {status}",
        border_style="yellow" if result.cancelled else "green",
    ))


def _finish_batch(result: BatchResult, dry_run: bool) -> None:
    try:
        written = EditWriter().write_batch(result, dry_run=dry_run)
    except OSError as e:
        rprint(f"[red]Write failed:[/red] {e}")
        raise typer.Exit(1)
    _display_batch(result, written, dry_run)


# ---------------------------------------------------------------------------
# Generation commands
# ---------------------------------------------------------------------------


@app.command()
def node(
    file: Path = typer.Argument(..., help="Source file"),
    line: Annotated[int, typer.Option("--line", "-l", min=1, help="1-based cursor line")] = 1,
    column: Annotated[int, typer.Option("--column", help="1-based cursor column", min=1)] = 1,
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without writing"),
    generate: bool = typer.Option(False, "--generate", "-g", help="Write descriptions with the LLM"),
) -> None:
    """Document the declaration at (or below) a cursor position."""
    cfg = _get_config()
    document = _load_document(file)
    engine = _make_engine(cfg, generate)
    try:
        edit = asyncio.run(engine.document_at(document, line - 1, column - 1))
    except AlreadyDocumented as e:
        rprint(f"[yellow]{e}[/yellow]")
        raise typer.Exit(0)
    except (NotDocumentable, CancellationRequested) as e:
        rprint(f"[red]Error:[/red] Unable to generate JSDoc: {e}")
        raise typer.Exit(1)

    file_edits = FileEdits(path=document.path, edits=[edit])
    if dry_run:
        _preview(document, file_edits)
        return
    dest = EditWriter().write(file_edits)
    rprint(f"[green]Documented[/green] {edit.name or '<anonymous>'} ({edit.kind}) in {dest}")


@app.command("file")
def file_command(
    file: Path = typer.Argument(..., help="Source file"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without writing"),
    generate: bool = typer.Option(False, "--generate", "-g", help="Write descriptions with the LLM"),
) -> None:
    """Document every undocumented declaration of one file."""
    cfg = _get_config()
    document = _load_document(file)
    engine = _make_engine(cfg, generate)
    result = _run_cancellable(lambda token: engine.generate_documents([document], token))
    if dry_run and result.files:
        _preview(document, result.files[0])
    _finish_batch(result, dry_run)


@app.command()
def folder(
    path: Path = typer.Argument(Path("."), help="Folder to document recursively"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without writing"),
    generate: bool = typer.Option(False, "--generate", "-g", help="Write descriptions with the LLM"),
) -> None:
    """Document every supported file below a folder."""
    if not path.is_dir():
        rprint(f"[red]Error:[/red] Not a folder: {path}")
        raise typer.Exit(1)
    _run_batch([path], dry_run, generate)


@app.command()
def workspace(
    roots: Annotated[
        list[Path] | None, typer.Argument(help="Workspace folders (default: current directory)")
    ] = None,
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without writing"),
    generate: bool = typer.Option(False, "--generate", "-g", help="Write descriptions with the LLM"),
) -> None:
    """Document every supported file of all workspace folders."""
    roots = roots or [Path(".")]
    missing = [r for r in roots if not r.exists()]
    if missing:
        rprint(f"[red]Error:[/red] No such folder: {missing[0]}")
        raise typer.Exit(1)
    _run_batch(roots, dry_run, generate)


def _run_batch(roots: list[Path], dry_run: bool, generate: bool) -> None:
    cfg = _get_config()
    engine = _make_engine(cfg, generate)
    with ProgressBar(transient=True) as bar:
        task = bar.add_task("Generating JSDoc", total=None)

        def on_progress(update: Progress) -> None:
            bar.update(task, completed=update.index, total=update.total,
                       description=f"{update.path.name if update.path else ''}")

        result = _run_cancellable(
            lambda token: engine.generate_workspace(roots, token, on_progress)
        )
    _finish_batch(result, dry_run)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    dumped = cfg.model_dump(mode="json")
    if dumped["generative"].get("api_key"):
        dumped["generative"]["api_key"] = "***"
    rprint(Syntax(yaml.dump(dumped, default_flow_style=False, sort_keys=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default jsdocgen.yaml in current directory."""
    target = Path("jsdocgen.yaml")
    if target.exists() and not force:
        rprint("[yellow]jsdocgen.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")