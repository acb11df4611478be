"""inspect command: show the identifiers parsed from a request URL."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from reviewbridge_core.errors import InvalidReference
from reviewbridge_core.refs import parse_reference

console = Console()


@click.command("inspect")
@click.argument("url")
@click.option(
    "--platform",
    type=click.Choice(["github", "gitlab", "azure"]),
    default=None,
    help="Hosting platform. Detected from the URL when omitted.",
)
def inspect_cmd(url: str, platform: str | None):
    """Parse a pull/merge request URL and print its identifiers."""
    try:
        ref = parse_reference(url, platform)
    except InvalidReference as e:
        raise click.ClickException(str(e))

    table = Table(show_header=False)
    table.add_column("Field", style="bold cyan")
    table.add_column("Value")
    table.add_row("Platform", ref.platform.value)
    table.add_row("Host", ref.host)
    if ref.organization:
        table.add_row("Organization", ref.organization)
        table.add_row("Project", ref.project or "")
    else:
        table.add_row("Owner", ref.owner)
    table.add_row("Repository", ref.repo)
    if ref.platform.value == "gitlab":
        table.add_row("Project path", ref.project_path)
    table.add_row("Number", str(ref.number))
    console.print(table)
