"""CLI entry point for nbpublish."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich import print as rprint
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from nbpublish.config import NbPublishConfig, load_config
from nbpublish.config.loader import DEFAULT_CONFIG_TEMPLATE
from nbpublish.converter import (
    ConversionError,
    Document,
    NotebookConverter,
    OutputFormat,
    ensure_output_dirs,
)
from nbpublish.log import configure_logging
from nbpublish.output import PublishError
from nbpublish.pipeline import BuildPipeline, BuildReport, BuildState

app = typer.Typer(
    name="nbpublish",
    help="Convert notebooks to scripts and executed markdown, then publish the markdown.",
)

config_app = typer.Typer(help="Manage nbpublish configuration.")
app.add_typer(config_app, name="config")

# Global state, filled by the callback; config is loaded on first use
_config: NbPublishConfig | None = None
_config_path: str | None = None
_verbose: bool = False


def _get_config() -> NbPublishConfig:
    global _config
    if _config is None:
        try:
            _config = load_config(_config_path)
        except ValueError as e:
            rprint(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)
        configure_logging("debug" if _verbose else _config.log_level, _config.log_format)
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to nbpublish.yaml")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging")
    ] = False,
) -> None:
    """Global options."""
    global _config, _config_path, _verbose
    _config = None
    _config_path = config
    _verbose = verbose


def _artifact_cell(result) -> str:
    if result is None:
        return "-"
    return escape(result.artifact.name)


def _display_report(report: BuildReport) -> None:
    table = Table(title=f"Notebooks ({len(report.documents)})")
    table.add_column("Notebook", style="cyan")
    table.add_column("Script", style="green")
    table.add_column("Markdown", style="green")
    table.add_column("Status", justify="center")
    for r in report.documents:
        status = "[green]OK[/green]" if r.ok else "[red]FAIL[/red]"
        table.add_row(
            escape(r.document.name),
            _artifact_cell(r.script),
            _artifact_cell(r.markdown),
            status,
        )
    rprint(table)

    for r in report.failed:
        if r.error is not None:
            rprint(f"\n[red]Error:[/red] {escape(str(r.error))}")

    border = "green" if report.state is BuildState.DONE else "red"
    published = escape(str(report.published)) if report.published else "not published"
    rprint(Panel(
        f"[dim]State:[/dim]      {report.state.value}\n"
        f"[dim]Converted:[/dim]  {len(report.succeeded)}\n"
        f"[dim]Failed:[/dim]     {len(report.failed)}\n"
        f"[dim]Published:[/dim]  {published}\n"
        f"[dim]Duration:[/dim]   {report.duration:.1f}s",
        title="Build Complete",
        border_style=border,
    ))


@app.command()
def build(
    continue_on_error: Annotated[
        bool,
        typer.Option("--continue-on-error", help="Keep converting after a failed notebook"),
    ] = False,
    no_publish: Annotated[
        bool, typer.Option("--no-publish", help="Convert only, skip publishing")
    ] = False,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Show the commands without running them")
    ] = False,
) -> None:
    """Convert every notebook and publish the markdown tree."""
    cfg = _get_config()
    updates: dict = {}
    if continue_on_error:
        updates["on_error"] = "continue"
    if no_publish:
        updates["publish"] = False
    if updates:
        cfg = cfg.model_copy(update={"build": cfg.build.model_copy(update=updates)})

    pipeline = BuildPipeline(cfg)

    if dry_run:
        try:
            jobs = pipeline.plan()
        except FileNotFoundError as e:
            rprint(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)
        rprint("[yellow](dry run — nothing executed)[/yellow]\n")
        for job in jobs:
            rprint(escape(" ".join(job.command)))
        if cfg.build.publish:
            rprint(
                f"\n[dim]publish[/dim] {escape(cfg.paths.markdown_dir)} -> "
                f"{escape(cfg.paths.publish_dir)}"
            )
        return

    rprint(f"[bold]Building[/bold] notebooks in {escape(cfg.paths.source_dir)}...")
    try:
        report = pipeline.run()
    except (FileNotFoundError, ValueError) as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    except PublishError as e:
        rprint(f"[red]Publish failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    _display_report(report)
    if report.state is BuildState.FAILED:
        raise typer.Exit(1)


@app.command()
def convert(
    notebook: str = typer.Argument(..., help="Path to the notebook to convert"),
    to: Annotated[
        str, typer.Option("--to", "-t", help="Output: script, markdown or both")
    ] = "both",
) -> None:
    """Convert a single notebook into the configured output directories."""
    cfg = _get_config()
    if to not in ("script", "markdown", "both"):
        rprint(f"[red]Error:[/red] unknown output '{escape(to)}'")
        raise typer.Exit(1)

    path = Path(notebook)
    if not path.is_file():
        rprint(f"[red]Error:[/red] notebook not found: {escape(notebook)}")
        raise typer.Exit(1)

    ensure_output_dirs(cfg.paths)
    converter = NotebookConverter(cfg.nbconvert)
    doc = Document(name=path.name, path=path)

    targets = []
    if to in ("script", "both"):
        targets.append((OutputFormat.SCRIPT, cfg.paths.script_dir))
    if to in ("markdown", "both"):
        targets.append((OutputFormat.MARKDOWN, cfg.paths.markdown_dir))

    for fmt, out_dir in targets:
        try:
            result = converter.run(converter.job(doc, fmt, out_dir))
        except ConversionError as e:
            rprint(f"[red]Error:[/red] {escape(str(e))}")
            raise typer.Exit(1)
        rprint(
            f"[green]Wrote[/green] {escape(str(result.artifact))} "
            f"[dim]({result.duration:.1f}s)[/dim]"
        )


@app.command("list")
def list_notebooks() -> None:
    """List the notebooks a build would convert."""
    cfg = _get_config()
    try:
        docs = BuildPipeline(cfg).documents()
    except FileNotFoundError as e:
        rprint(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    if not docs:
        rprint(f"[yellow]No notebooks found in {escape(cfg.paths.source_dir)}.[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Notebooks ({len(docs)})")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    for doc in docs:
        table.add_row(escape(doc.name), f"{doc.path.stat().st_size} B")
    rprint(table)


@app.command()
def publish() -> None:
    """Publish the existing markdown directory without converting."""
    cfg = _get_config()
    try:
        dest = BuildPipeline(cfg).publish()
    except PublishError as e:
        rprint(f"[red]Publish failed:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    rprint(f"[green]Published[/green] {escape(cfg.paths.markdown_dir)} -> {escape(str(dest))}")


@config_app.command("show")
def config_show() -> None:
    """Show current resolved configuration."""
    cfg = _get_config()
    rprint(Syntax(yaml.dump(cfg.model_dump(), default_flow_style=False), "yaml"))


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Create default nbpublish.yaml in current directory."""
    target = Path("nbpublish.yaml")
    if target.exists() and not force:
        rprint("[yellow]nbpublish.yaml already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    target.write_text(DEFAULT_CONFIG_TEMPLATE)
    rprint(f"[green]Created[/green] {target}")


if __name__ == "__main__":
    app()
