"""
CLI helpers: connection setup and output formatting.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from linkspine.core.settings import get_settings
from linkspine.ops.context import OperationContext
from linkspine.ops.result import OperationResult
from linkspine.ops.sqlite_conn import SqliteConnection

console = Console()
err_console = Console(stderr=True)


def get_connection(database: str | None = None) -> SqliteConnection:
    """Open the link store. Defaults to the configured database path."""
    return SqliteConnection(database or get_settings().resolved_database_path)


def make_context(
    database: str | None = None,
    *,
    dry_run: bool = False,
) -> tuple[OperationContext, SqliteConnection]:
    """``OperationContext`` + connection pair for one CLI command."""
    conn = get_connection(database)
    ctx = OperationContext.from_settings(conn, get_settings(), caller="cli", dry_run=dry_run)
    return ctx, conn


def _to_dict(obj: Any) -> Any:
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    return obj


def fail(result: OperationResult) -> None:
    """Print the error of a failed result and exit with code 1."""
    err = result.error
    msg = err.message if err else "Unknown error"
    code = err.code if err else "ERROR"
    err_console.print(f"[bold red]Error[/bold red] ({code}): {msg}")
    raise typer.Exit(code=1)


def print_json(data: Any) -> None:
    console.print_json(json.dumps(_to_dict(data), default=str))


def print_warnings(result: OperationResult) -> None:
    for warning in result.warnings:
        err_console.print(f"[yellow]Warning[/yellow]: {warning}")


def output_result(
    result: OperationResult,
    *,
    as_json: bool = False,
    title: str = "",
) -> None:
    """Render an ``OperationResult``; failures exit with code 1."""
    if not result.success:
        fail(result)

    data = result.data
    if as_json:
        print_json(data)
        return
    print_warnings(result)
    if isinstance(data, list):
        if not data:
            console.print("[dim]No items.[/dim]")
            return
        print_table(data, title=title)
    else:
        print_dict(_to_dict(data), title=title)


def print_table(items: list, *, title: str = "", columns: list[str] | None = None) -> None:
    """Render dataclasses/dicts as a Rich table."""
    rows = [_to_dict(item) for item in items]
    columns = columns or list(rows[0])
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for col in columns:
        table.add_column(col, overflow="fold")
    for row in rows:
        table.add_row(*("" if row.get(col) is None else str(row.get(col)) for col in columns))
    console.print(table)


def print_dict(data: dict[str, Any], *, title: str = "") -> None:
    if title:
        console.print(f"[bold]{title}[/bold]")
    for k, v in data.items():
        console.print(f"  [cyan]{k}[/cyan]: {v}")
