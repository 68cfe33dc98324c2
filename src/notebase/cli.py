"""Command line interface for notebase."""

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from notebase.capabilities import ObsidianPluginCapabilities
from notebase.config import NotebaseConfig
from notebase.definition import load_query_file
from notebase.errors import NotebaseError
from notebase.export import EXPORT_FORMATS, ExportFormatter, format_value
from notebase.models import QueryOptions, ResultSet
from notebase.pipeline import QueryPipeline
from notebase.reference import CATEGORIES, functions_by_category
from notebase.store import FileSystemDocumentStore
from notebase.utils import setup_logging

console = Console()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        import notebase

        typer.echo(f"notebase version: {notebase.__version__}")
        raise typer.Exit()


app = typer.Typer(name="notebase", help="Query notes with filters, formulas and views.")


@app.callback()
def app_callback(
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Log level (defaults to NOTEBASE_LOG_LEVEL or INFO)"
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
) -> None:
    """notebase - query engine for markdown notes."""
    config = NotebaseConfig()
    setup_logging(log_level or config.log_level)


def _run_query(
    vault: Path, base: Path, view: Optional[str], options: Optional[QueryOptions]
) -> ResultSet:
    config = NotebaseConfig()
    query = load_query_file(base)
    store = FileSystemDocumentStore(vault, extensions=config.content_extensions)
    pipeline = QueryPipeline(store, config)
    return asyncio.run(pipeline.run(query, view, options))


def _columns(result: ResultSet) -> list[str]:
    if result.view and result.view.columns:
        return list(result.view.columns)
    return ExportFormatter.resolve_columns(result)


@app.command()
def query(
    vault: Path = typer.Argument(..., help="Vault directory"),
    base: Path = typer.Argument(..., help="Query definition (YAML)"),
    view: Optional[str] = typer.Option(None, "--view", help="View name"),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Show at most N rows"),
    page: Optional[int] = typer.Option(None, "--page", min=1, help="Page number"),
    page_size: Optional[int] = typer.Option(None, "--page-size", min=1, help="Rows per page"),
) -> None:
    """Run a query and print the results as a table."""
    try:
        options = QueryOptions(page=page, page_size=page_size)
        result = _run_query(vault, base, view, options)
    except (NotebaseError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    documents = result.documents[:limit] if limit else result.documents
    columns = _columns(result)

    table = Table(title=result.view.name if result.view else "All documents")
    table.add_column("Path", style="cyan")
    for column in columns:
        table.add_column(column)

    for document in documents:
        table.add_row(
            document.path, *[format_value(document.properties.get(c)) for c in columns]
        )

    console.print(table)
    summary = f"{len(documents)} of {result.total} matching documents"
    if result.skipped:
        summary += f" ({result.skipped} skipped)"
    console.print(summary)


@app.command()
def export(
    vault: Path = typer.Argument(..., help="Vault directory"),
    base: Path = typer.Argument(..., help="Query definition (YAML)"),
    format: str = typer.Option("csv", "--format", "-f", help="csv, json or markdown"),
    view: Optional[str] = typer.Option(None, "--view", help="View name"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to a file"),
) -> None:
    """Run a query and export the results."""
    if format.lower() not in EXPORT_FORMATS:
        console.print(
            f"[red]Error: Unsupported export format: {format} "
            f"(supported: {', '.join(EXPORT_FORMATS)})[/red]"
        )
        raise typer.Exit(1)

    try:
        result = _run_query(vault, base, view, None)
        text = ExportFormatter.export(result, format, _columns(result) or None)
    except (NotebaseError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if output:
        output.write_text(text + "\n", encoding="utf-8")
        console.print(f"Exported {len(result)} documents to {output}")
    else:
        typer.echo(text)


@app.command()
def functions() -> None:
    """List the functions available in expressions."""
    table = Table(title="Expression functions")
    table.add_column("Category", style="magenta")
    table.add_column("Syntax", style="cyan")
    table.add_column("Description")

    for category in CATEGORIES:
        for function in functions_by_category(category):
            table.add_row(category, function.syntax, function.description)

    console.print(table)


@app.command()
def capabilities(
    vault: Path = typer.Argument(..., help="Vault directory"),
    plugins: list[str] = typer.Argument(..., help="Plugin ids to check"),
    config_dir: str = typer.Option(".obsidian", "--config-dir", help="Vault config folder"),
) -> None:
    """Show whether companion plugins are installed and enabled in a vault."""
    if not vault.is_dir():
        console.print(f"[red]Error: Vault directory not found: {vault}[/red]")
        raise typer.Exit(1)

    provider = ObsidianPluginCapabilities(vault, config_dir=config_dir)
    table = Table(title="Plugins")
    table.add_column("Plugin", style="cyan")
    table.add_column("Installed")
    table.add_column("Enabled")
    table.add_column("Version")

    for plugin in plugins:
        status = provider.status(plugin)
        table.add_row(
            status.name,
            "[green]yes[/green]" if status.installed else "no",
            "[green]yes[/green]" if status.enabled else "no",
            status.version or "",
        )

    console.print(table)


def main() -> Any:  # pragma: no cover
    return app()


if __name__ == "__main__":  # pragma: no cover
    main()
