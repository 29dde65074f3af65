"""
Root Typer application for the ``linkspine`` CLI.

Sub-commands import the ops layer lazily inside each command, so
``linkspine --help`` stays fast.
"""

from __future__ import annotations

import typer
from typer import Typer

from linkspine import __version__

app = Typer(
    name="linkspine",
    help="linkspine - typed product links resolved in declared order.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"linkspine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at the configured level instead of warnings only."),
) -> None:
    """linkspine CLI - manage and inspect typed product links."""
    from linkspine.core.logging import configure_logging
    from linkspine.core.settings import get_settings

    settings = get_settings()
    configure_logging(
        level=settings.log_level if verbose else "WARNING",
        json_format=settings.log_format == "json",
    )


from linkspine.cli.db import app as db_app  # noqa: E402
from linkspine.cli.links import app as links_app  # noqa: E402
from linkspine.cli.serve import serve  # noqa: E402

app.add_typer(db_app, name="db", help="Link store management.")
app.add_typer(links_app, name="links", help="Read and write typed links.")
app.command("serve")(serve)
