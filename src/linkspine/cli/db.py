"""
CLI: ``linkspine db`` - link store management.
"""

from __future__ import annotations

import typer

from linkspine.cli.utils import make_context, output_result

app = typer.Typer(no_args_is_help=True)


@app.command()
def init(
    database: str | None = typer.Option(None, "--database", "-d", help="Database path"),
    kind: list[str] = typer.Option(["partlists"], "--kind", "-k", help="Link kinds to register"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changes"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Create the link store tables and register link kinds."""
    from linkspine.ops.database import initialize_database
    from linkspine.ops.requests import DatabaseInitRequest

    ctx, conn = make_context(database, dry_run=dry_run)
    try:
        result = initialize_database(ctx, DatabaseInitRequest(kinds=tuple(kind)))
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Database Init")
