"""
CLI: ``linkspine links`` - read, write, import and export typed links.
"""

from __future__ import annotations

from pathlib import Path

import typer

from linkspine.cli.utils import (
    console,
    err_console,
    fail,
    make_context,
    output_result,
    print_json,
    print_table,
    print_warnings,
)

app = typer.Typer(no_args_is_help=True)

_KIND = typer.Option("partlists", "--kind", "-k", help="Link kind code")
_DATABASE = typer.Option(None, "--database", "-d", help="Database path")


def _parse_link(value: str) -> dict[str, str | None]:
    """``ID[:QTY[:POS]]`` → posted row."""
    parts = value.split(":")
    if len(parts) > 3 or not parts[0]:
        raise typer.BadParameter(f"Expected ID[:QTY[:POS]], got {value!r}")
    padded = parts + [None] * (3 - len(parts))
    return {"id": padded[0], "qty": padded[1] or None, "position": padded[2] or None}


@app.command()
def show(
    source_id: int = typer.Argument(..., help="Product owning the links"),
    kind: str = _KIND,
    sort: str = typer.Option("position", "--sort", "-s", help="position | order"),
    include_disabled: bool | None = typer.Option(None, "--include-disabled/--exclude-disabled"),
    include_all: bool | None = typer.Option(None, "--include-all/--saleable-only"),
    include_invisible: bool | None = typer.Option(None, "--include-invisible/--visible-only"),
    database: str | None = _DATABASE,
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show the resolved linked products of a product."""
    from linkspine.ops.links import get_links
    from linkspine.ops.requests import GetLinksRequest

    ctx, conn = make_context(database)
    try:
        result = get_links(
            ctx,
            GetLinksRequest(
                source_id=source_id,
                kind=kind,
                mode=sort,
                qty_context="display",
                include_disabled=include_disabled,
                include_all=include_all,
                include_invisible=include_invisible,
            ),
        )
    finally:
        conn.close()

    if not result.success:
        fail(result)
    if json_out:
        print_json(result.data)
        return

    print_warnings(result)
    link_set = result.data
    if not link_set.items:
        console.print("[dim]No linked products.[/dim]")
        return
    print_table(
        link_set.items,
        title=f"{link_set.kind} of product {source_id}",
        columns=["position", "id", "sku", "name", "qty", "amount"],
    )
    if link_set.can_add_to_cart:
        console.print("[green]At least one part can be added to cart.[/green]")


@app.command("qty-map")
def qty_map(
    source_id: int = typer.Argument(..., help="Product owning the links"),
    kind: str = _KIND,
    database: str | None = _DATABASE,
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Show the raw linked id → qty map (missing qty reads as 0)."""
    from linkspine.ops.links import get_qty_map
    from linkspine.ops.requests import QtyMapRequest

    ctx, conn = make_context(database)
    try:
        result = get_qty_map(ctx, QtyMapRequest(source_id=source_id, kind=kind))
    finally:
        conn.close()

    if not result.success:
        fail(result)
    if json_out:
        print_json({str(k): v for k, v in result.data.items()})
        return
    rows = [{"linked_id": k, "qty": v} for k, v in result.data.items()]
    if not rows:
        console.print("[dim]No links.[/dim]")
        return
    print_table(rows, title="Quantities")


@app.command("set")
def set_links(
    source_id: int = typer.Argument(..., help="Product owning the links"),
    link: list[str] = typer.Option([], "--link", "-l", help="ID:QTY:POS, repeatable"),
    clear: bool = typer.Option(False, "--clear", help="Remove every link of the kind"),
    kind: str = _KIND,
    database: str | None = _DATABASE,
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changes"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Replace the links of one kind, as the admin form does."""
    from linkspine.ops.links import save_links
    from linkspine.ops.requests import SaveLinksRequest

    if not link and not clear:
        raise typer.BadParameter("Pass at least one --link, or --clear")
    rows = [_parse_link(value) for value in link]

    ctx, conn = make_context(database, dry_run=dry_run)
    try:
        result = save_links(ctx, SaveLinksRequest(source_id=source_id, links=rows, kind=kind))
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Links saved")


@app.command()
def export(
    kind: str = _KIND,
    output: Path | None = typer.Option(None, "--output", "-o", help="Write CSV here instead of stdout"),
    database: str | None = _DATABASE,
) -> None:
    """Export ``sku,_<kind>_`` CSV rows."""
    from linkspine.domain.catalog.models import get_link_kind
    from linkspine.links.codec import export_csv_text
    from linkspine.ops.links import export_links
    from linkspine.ops.requests import ExportLinksRequest

    ctx, conn = make_context(database)
    try:
        result = export_links(ctx, ExportLinksRequest(kind=kind))
    finally:
        conn.close()
    if not result.success:
        fail(result)

    csv_text = export_csv_text(result.data.rows, get_link_kind(result.data.kind))
    if output is not None:
        output.write_text(csv_text, encoding="utf-8")
        err_console.print(f"Wrote {len(result.data.rows)} rows to {output}")
    else:
        typer.echo(csv_text, nl=False)


@app.command("import")
def import_(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV with sku and _<kind>_ columns"),
    kind: str = _KIND,
    database: str | None = _DATABASE,
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changes"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Import links from CSV; rows with unknown skus are skipped and reported."""
    from linkspine.core.errors import LinkSpineError
    from linkspine.domain.catalog.models import get_link_kind
    from linkspine.links.codec import read_import_csv
    from linkspine.ops.links import import_links
    from linkspine.ops.requests import ImportLinksRequest
    from linkspine.ops.result import OperationResult

    try:
        with file.open(encoding="utf-8", newline="") as fh:
            rows = read_import_csv(fh, get_link_kind(kind))
    except LinkSpineError as exc:
        fail(OperationResult.from_exception(exc))

    ctx, conn = make_context(database, dry_run=dry_run)
    try:
        result = import_links(ctx, ImportLinksRequest(rows=rows, kind=kind))
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Import")


@app.command()
def duplicate(
    source_id: int = typer.Argument(..., help="Product to copy links from"),
    new_source_id: int = typer.Argument(..., help="Duplicated product"),
    kind: str = _KIND,
    database: str | None = _DATABASE,
    dry_run: bool = typer.Option(False, "--dry-run", help="Preview without changes"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Copy links of one kind onto a duplicated product."""
    from linkspine.ops.links import duplicate_links
    from linkspine.ops.requests import DuplicateLinksRequest

    ctx, conn = make_context(database, dry_run=dry_run)
    try:
        result = duplicate_links(
            ctx,
            DuplicateLinksRequest(source_id=source_id, new_source_id=new_source_id, kind=kind),
        )
    finally:
        conn.close()
    output_result(result, as_json=json_out, title="Duplicate")
