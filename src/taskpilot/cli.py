"""Command-line interface using Typer."""

from __future__ import annotations

import logging
from datetime import date
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .commands.classifier import describe_command, parse_command
from .commands.extractor import extract_fragments
from .commands.models import CommandType

app = typer.Typer(
    name="taskpilot",
    help="Natural-language commands and automation rules for kanban boards",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
error_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, rich_tracebacks=True)],
    )


@app.callback()
def main(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose output"),
    ] = False,
):
    """Natural-language commands and automation rules for kanban boards.

    Examples:
        taskpilot parse "create task: Fix login bug, high priority, due tomorrow"
        taskpilot serve --port 8000
    """
    _setup_logging(verbose)


@app.command("parse")
def parse(
    text: Annotated[str, typer.Argument(help="Command text to interpret")],
    today: Annotated[
        str | None,
        typer.Option("--today", help="Reference date for relative dates (YYYY-MM-DD)"),
    ] = None,
    min_confidence: Annotated[
        float | None,
        typer.Option("--min-confidence", help="Confidence below which a command is unknown"),
    ] = None,
):
    """Show how a command would be understood, without executing it."""
    try:
        ref_day = date.fromisoformat(today) if today else None
    except ValueError:
        error_console.print(f"[red]Error:[/red] invalid --today value {today!r}")
        raise typer.Exit(2) from None

    cmd = parse_command(text, ref_day, min_confidence)
    fragments = extract_fragments(text, ref_day)

    style = "red" if cmd.type is CommandType.UNKNOWN else "green"
    console.print(f"[{style}]{describe_command(cmd)}[/{style}]")

    table = Table(title="Parsed command", show_header=True, header_style="bold")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("type", cmd.type.value)
    table.add_row("confidence", f"{cmd.confidence:.2f}")
    table.add_row("task_ref", cmd.task_ref or "")
    for name, value in vars(cmd.params).items():
        if value:
            table.add_row(name, ", ".join(value) if isinstance(value, list) else str(value))
    console.print(table)

    found = {k: v for k, v in vars(fragments).items() if v}
    if found:
        frag_table = Table(title="Fragments", show_header=True, header_style="bold")
        frag_table.add_column("Fragment", style="magenta")
        frag_table.add_column("Value")
        for name, value in found.items():
            frag_table.add_row(name, ", ".join(value) if isinstance(value, list) else str(value))
        console.print(frag_table)

    if cmd.type is CommandType.UNKNOWN:
        raise typer.Exit(1)


@app.command("serve")
def serve(
    host: Annotated[str | None, typer.Option("--host", help="Bind address")] = None,
    port: Annotated[int | None, typer.Option("--port", "-p", help="Port")] = None,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes")] = False,
):
    """Run the API server."""
    import uvicorn

    from .web.config import get_config

    config = get_config()
    uvicorn.run(
        "taskpilot.web.app:create_app",
        factory=True,
        host=host or config.host,
        port=port or config.port,
        reload=reload,
        log_config=None,
    )


if __name__ == "__main__":
    app()
