"""CLI entry point for sitegate."""

from __future__ import annotations

import json
import time
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from sitegate.config import SitegateConfig, load_config
from sitegate.config.loader import DEFAULT_CONFIG_TEMPLATE
from sitegate.documents import SourceTree, discover
from sitegate.errors import SourceTreeError
from sitegate.formatter import Formatter
from sitegate.gate import GateReport, MergeGate
from sitegate.log import configure_logging
from sitegate.watch import FormatWatcher

app = typer.Typer(
    name="sitegate",
    help="Format static-site documents and run the merge checks.",
)

config_app = typer.Typer(help="Manage sitegate configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: SitegateConfig | None = None


class ScanFormat(str, Enum):
    table = "table"
    json = "json"


def _get_config() -> SitegateConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to sitegate.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    configure_logging(_config.log_level, _config.log_format)


def _discover_or_exit(root: str, cfg: SitegateConfig) -> SourceTree:
    try:
        return discover(root, cfg.source)
    except SourceTreeError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def scan(
    root: Annotated[str, typer.Argument(help="Site root directory")] = ".",
    format: Annotated[
        ScanFormat, typer.Option("--format", "-f", help="Output format")
    ] = ScanFormat.table,
) -> None:
    """List the documents sitegate would format and check."""
    cfg = _get_config()
    tree = _discover_or_exit(root, cfg)

    if format is ScanFormat.json:
        data = {
            "root": str(tree.root),
            "entry": tree.entry,
            "documents": [{"path": d.path, "format": d.format.value} for d in tree.documents],
            "failures": [{"path": f.path, "error": f.error} for f in tree.failures],
        }
        typer.echo(json.dumps(data, indent=2))
        return

    table = Table(title=f"Documents ({len(tree.documents)})")
    table.add_column("Path", style="cyan")
    table.add_column("Format", style="green")
    table.add_column("Size", justify="right")
    for doc in tree.documents:
        marker = " [bold](entry)[/bold]" if doc.path == tree.entry else ""
        table.add_row(f"{doc.path}{marker}", doc.format.value, f"{len(doc.content)} chars")
    for failure in tree.failures:
        table.add_row(failure.path, "[red]unreadable[/red]", "-")
    rprint(table)


@app.command("format")
def format_cmd(
    root: Annotated[str, typer.Argument(help="Site root directory")] = ".",
    check: Annotated[
        bool, typer.Option("--check", help="Don't write; exit 1 if any file would change")
    ] = False,
    diff: Annotated[bool, typer.Option("--diff", help="Show unified diffs")] = False,
) -> None:
    """Rewrite documents into canonical style."""
    cfg = _get_config()
    tree = _discover_or_exit(root, cfg)
    report = Formatter(cfg.formatter).format_tree(tree, check=check, diff=diff)

    for path in report.changed:
        verb = "would reformat" if check else "reformatted"
        rprint(f"[yellow]{verb}[/yellow] {path}")
        if diff and path in report.diffs:
            rprint(Syntax(report.diffs[path], "diff", theme="ansi_dark"))
    for failure in report.failed:
        rprint(f"[red]error:[/red] {escape(failure.error)}")

    summary = (
        f"{len(report.changed)} {'would change' if check else 'changed'}, "
        f"{len(report.unchanged)} unchanged, {len(report.failed)} failed"
    )
    rprint(f"\n[bold]{summary}[/bold]")

    if report.failed or (check and report.changed):
        raise typer.Exit(1)


def _print_gate_ci(report: GateReport) -> None:
    for result in report.results:
        if result.skipped:
            typer.echo(f"SKIP {result.name}")
        elif result.passed:
            typer.echo(f"PASS {result.name}")
            for warn in result.warnings:
                typer.echo(f"WARN {result.name}: {warn}")
        else:
            for err in result.errors:
                typer.echo(f"FAIL {result.name}: {err}")
    typer.echo("OK - merge gate passed" if report.passed else "merge gate failed")


def _print_gate_table(report: GateReport) -> None:
    table = Table(title="Merge Checks")
    table.add_column("Check", style="cyan")
    table.add_column("Status", justify="center")
    table.add_column("Errors", justify="right", style="red")
    table.add_column("Warnings", justify="right", style="yellow")
    for r in report.results:
        if r.skipped:
            status = "[dim]skipped[/dim]"
        elif r.passed:
            status = "[green]PASS[/green]"
        else:
            status = "[red]FAIL[/red]"
        table.add_row(r.name, status, str(len(r.errors)), str(len(r.warnings)))
    rprint(table)

    for r in report.results:
        if r.errors or r.warnings:
            rprint(f"\n[bold]{r.name}[/bold]")
            for err in r.errors:
                rprint(f"  [red]error:[/red] {escape(err)}")
            for warn in r.warnings:
                rprint(f"  [yellow]warn:[/yellow] {escape(warn)}")

    if report.passed:
        rprint("\n[green]Merge gate passed.[/green]")
    else:
        rprint(f"\n[red]Merge gate failed ({len(report.failed)} check(s)).[/red]")


@app.command()
def check(
    root: Annotated[str, typer.Argument(help="Site root directory")] = ".",
    ci: Annotated[bool, typer.Option("--ci", help="Machine-readable output")] = False,
) -> None:
    """Run the merge checks a change must pass before merging."""
    cfg = _get_config()
    tree = _discover_or_exit(root, cfg)
    report = MergeGate(cfg).run(tree)

    if ci:
        _print_gate_ci(report)
    else:
        _print_gate_table(report)

    if not report.passed:
        raise typer.Exit(code=1)


@app.command()
def watch(
    root: Annotated[str, typer.Argument(help="Site root directory")] = ".",
) -> None:
    """Reformat documents as they are saved (Ctrl-C to stop)."""
    cfg = _get_config()
    tree = _discover_or_exit(root, cfg)

    def _report(outcome: str, path: str) -> None:
        if outcome == "formatted":
            rprint(f"[green]formatted[/green] {path}")
        elif outcome == "failed":
            rprint(f"[red]could not format[/red] {path}")

    watcher = FormatWatcher(tree.root, cfg, callback=_report)
    rprint(f"[bold]Watching[/bold] {tree.root} ({len(tree.documents)} documents)")
    watcher.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        watcher.stop()


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default sitegate.yaml in current directory."""
    target = Path("sitegate.yaml")
    if target.exists() and not force:
        rprint("[yellow]sitegate.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(Panel(f"[green]Created[/green] {target}", border_style="green"))


if __name__ == "__main__":
    app()
