"""CLI entry point for ctxgen."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from ctxgen.config import CtxgenConfig, load_config
from ctxgen.config.loader import DEFAULT_CONFIG_TEMPLATE
from ctxgen.document.compiler import CompileReport, DocumentCompiler, compile_all
from ctxgen.document.loader import load_documents
from ctxgen.document.models import FilterSpec, TreeViewConfig
from ctxgen.errors import CtxgenError
from ctxgen.fetchers import FetchContext, create_fetcher_registry
from ctxgen.finder import FileMatcher
from ctxgen.lib.cancel import CancelToken
from ctxgen.lib.git import GitClient, RepositoryCache
from ctxgen.lib.http import HttpClient
from ctxgen.lib.variables import VariableResolver
from ctxgen.modifiers import default_modifier_registry

app = typer.Typer(
    name="ctxgen",
    help="Compile code, pages, diffs and notes into context documents for LLMs.",
)

config_app = typer.Typer(help="Manage ctxgen configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: CtxgenConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def _configure_logging(level: str, fmt: str) -> None:
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JsonLogFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s - %(message)s", "%H:%M:%S")
        )
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(_LOG_LEVELS.get(level, logging.INFO))
    # Per-request chatter from the HTTP stack drowns out our own output.
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(max(root.level, logging.WARNING))


def _get_config() -> CtxgenConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to ctxgen.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    _configure_logging(_config.log_level, _config.log_format)


# ---------------------------------------------------------------------------
# compile
# ---------------------------------------------------------------------------


def _display_reports(reports: list[CompileReport]) -> None:
    table = Table(title=f"Documents ({len(reports)})")
    table.add_column("Document", style="bold")
    table.add_column("Output")
    table.add_column("Status")
    table.add_column("Errors", justify="right")

    styles = {"ok": "green", "partial": "yellow", "skipped": "dim", "failed": "red", "cancelled": "red"}
    for report in reports:
        output = report.result.output_path if report.result else report.document.output_path
        errors = len(report.result.errors) if report.result else 1
        status = report.status
        table.add_row(
            escape(report.document.description),
            escape(str(output)),
            f"[{styles[status]}]{status}[/{styles[status]}]",
            str(errors),
        )
    rprint(table)

    for report in reports:
        if report.error is not None:
            rprint(f"[red]{escape(report.document.description)}:[/red] {escape(str(report.error))}")
        elif report.result is not None:
            for error in report.result.errors:
                rprint(f"[yellow]{escape(report.document.description)}:[/yellow] {escape(str(error))}")


@app.command("compile")
def compile_documents(
    documents_file: Annotated[
        str | None, typer.Argument(help="Documents file (default: compiler.documents_file)")
    ] = None,
    base_path: Annotated[
        str | None, typer.Option("--base-path", "-b", help="Root for source and output paths")
    ] = None,
    workers: Annotated[
        int | None, typer.Option("--workers", "-w", min=1, help="Documents compiled in parallel")
    ] = None,
) -> None:
    """Compile every document in the documents file."""
    cfg = _get_config()
    base = Path(base_path or cfg.compiler.base_path).resolve()
    target = Path(documents_file or cfg.compiler.documents_file)
    if not target.is_absolute() and not target.exists():
        target = base / target

    try:
        documents = load_documents(target)
    except CtxgenError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    if not documents:
        rprint(f"[yellow]No documents defined in {escape(str(target))}.[/yellow]")
        raise typer.Exit(0)

    cancel = CancelToken()
    repositories = RepositoryCache()
    context = FetchContext(
        base_path=base,
        cancel=cancel,
        repositories=repositories,
        variables=VariableResolver(cfg.variables),
    )
    rprint(f"[bold]Compiling[/bold] {len(documents)} document(s) from {escape(str(target))}...")

    with HttpClient(cfg.http) as http_client, create_fetcher_registry(
        context,
        http_client=http_client,
        git_client=GitClient(cfg.git, repositories),
    ) as registry:
        compiler = DocumentCompiler(registry, default_modifier_registry(), context)
        try:
            reports = compile_all(documents, compiler, workers or cfg.compiler.max_workers)
        except KeyboardInterrupt:
            # compile_all has already fired the context token.
            rprint("[red]Interrupted.[/red]")
            raise typer.Exit(130)

    _display_reports(reports)
    if any(not report.ok for report in reports):
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# tree
# ---------------------------------------------------------------------------


@app.command()
def tree(
    path: Annotated[str, typer.Argument(help="Directory to render")],
    max_depth: Annotated[int, typer.Option("--max-depth", "-d", min=0, help="0 = unlimited")] = 0,
    dirs_only: Annotated[bool, typer.Option("--dirs-only", help="Omit files")] = False,
) -> None:
    """Print the directory tree under PATH."""
    root = Path(path)
    if not root.is_dir():
        rprint(f"[red]Error:[/red] not a directory: {escape(path)}")
        raise typer.Exit(1)
    view = TreeViewConfig(max_depth=max_depth, include_files=not dirs_only)
    try:
        result = FileMatcher().find(FilterSpec(ignore_unreadable_dirs=True), [root], base_path=root, tree_view=view)
    except CtxgenError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    typer.echo(result.tree_view, nl=False)


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default ctxgen.yaml in current directory."""
    target = Path("ctxgen.yaml")
    if target.exists() and not force:
        rprint("[yellow]ctxgen.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")
