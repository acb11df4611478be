"""review command: analyze a pull/merge request and post the accepted findings."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from reviewbridge_core.config import API_KEY_ENV_VARS, TOKEN_ENV_VARS
from reviewbridge_core.errors import ReviewBridgeError
from reviewbridge_core.models import AnalysisResult, ReviewCycle
from reviewbridge_core.refs import parse_reference
from reviewbridge_core.reviewer import commit_selection, start_cycle, submit_cycle
from reviewbridge_core.selection import ReviewSelection

console = Console()

_SEVERITY_COLOR = {"CRITICAL": "red", "WARNING": "yellow", "INFO": "blue"}
_DECISION_COLOR = {"APPROVE": "green", "COMMENT": "yellow", "REQUEST_CHANGES": "red"}


def print_analysis(cycle: ReviewCycle) -> None:
    """Print the engine's findings, numbered from 1 for selection prompts."""
    details, result = cycle.details, cycle.result
    decision_color = _DECISION_COLOR.get(result.decision, "white")
    console.print(f"\n[bold]{escape(details.title)}[/bold]  by {escape(details.author)}")
    console.print(f"[dim]{details.url}[/dim]\n")
    console.print(f"Decision: [{decision_color}]{result.decision}[/{decision_color}]")
    console.print(f"{escape(result.summary)}\n")

    if not result.comments:
        console.print("[green]No findings.[/green]")
        return

    table = Table(show_header=True, header_style="bold cyan", show_lines=True)
    table.add_column("#", justify="right", width=3)
    table.add_column("File", max_width=40)
    table.add_column("Severity", width=10)
    table.add_column("Comment")
    for i, c in enumerate(result.comments, 1):
        color = _SEVERITY_COLOR.get(c.severity, "white")
        comment = escape(c.comment)
        if c.line_content:
            comment = f"[dim]{escape(c.line_content.strip())}[/dim]\n{comment}"
        table.add_row(str(i), escape(c.filename), f"[{color}]{c.severity}[/{color}]", comment)
    console.print(table)


def _finding_index(part: str, count: int) -> int:
    """Turn a 1-based finding number into an index; raises BadParameter on bad input."""
    if not (part.isascii() and part.isdigit()) or not 1 <= int(part) <= count:
        raise click.BadParameter(f"{part!r} is not a finding number between 1 and {count}.")
    return int(part) - 1


def _parse_drop_list(answer: str, count: int) -> list[int]:
    """Turn "1, 3" into zero-based indices."""
    return [_finding_index(part, count) for part in answer.replace(" ", "").split(",") if part]


def edit_selection(selection: ReviewSelection) -> None:
    """Interactively drop findings, reword kept ones and edit the summary."""
    if len(selection):
        answer = click.prompt(
            "Findings to drop (e.g. 1,3; 'all' to drop every finding; blank keeps all)",
            default="",
            show_default=False,
        ).strip()
        if answer.lower() == "all":
            selection.toggle_all()
        else:
            for index in set(_parse_drop_list(answer, len(selection))):
                selection.toggle(index)

        while selection.selected_count:
            answer = click.prompt("Finding to edit (blank to finish)", default="", show_default=False).strip()
            if not answer:
                break
            index = _finding_index(answer, len(selection))
            edited = click.edit(selection.comment(index))
            if edited is not None:
                selection.edit_comment(index, edited.strip())

    if click.confirm("Edit the summary?", default=False):
        edited = click.edit(selection.summary)
        if edited is not None:
            selection.edit_summary(edited.strip())


def _print_posted(result: AnalysisResult, warnings: list[str]) -> None:
    for warning in warnings:
        console.print(f"[yellow]{warning}[/yellow]")
    console.print(f"\n[green]Review posted: {result.decision}. {len(result.comments)} finding(s).[/green]")


@click.command("review")
@click.argument("url")
@click.option(
    "--platform",
    type=click.Choice(["github", "gitlab", "azure"]),
    default=None,
    help="Hosting platform. Detected from the URL when omitted.",
)
@click.option(
    "--model",
    type=click.Choice(["gemini", "anthropic", "openai"]),
    default=None,
    help="Analysis engine. Overrides config file.",
)
@click.option("--token", default=None, help="Platform access token. Defaults to the platform's env variable.")
@click.option("--yes", "-y", is_flag=True, help="Post every finding without prompting.")
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the findings without posting them.",
)
@click.pass_context
def review_cmd(
    ctx,
    url: str,
    platform: str | None,
    model: str | None,
    token: str | None,
    yes: bool,
    shadow: bool,
):
    """Review the pull/merge request at URL.

    Fetches the changed files, asks the analysis engine for a critique, lets
    you drop findings or edit the summary, and posts the result as a native
    review.

    \b
    Environment variables:
      GITHUB_TOKEN / GITLAB_TOKEN / AZURE_DEVOPS_TOKEN   platform access token
      GEMINI_API_KEY / ANTHROPIC_API_KEY / OPENAI_API_KEY  engine API key
    """
    from reviewbridge_cli.auth import resolve_token

    config = dict(ctx.obj["config"])
    if model is not None:
        config["model"] = model

    try:
        ref = parse_reference(url, platform)
    except ReviewBridgeError as e:
        raise click.UsageError(str(e))

    platform_token = resolve_token(ref.platform.value, token)
    if not platform_token:
        raise click.UsageError(
            f"No {ref.platform.value} token found. Pass --token or set {TOKEN_ENV_VARS[ref.platform.value]}."
        )
    analysis_key = config.get(f"{config['model']}_api_key")
    if not analysis_key:
        env_var = API_KEY_ENV_VARS.get(config["model"], "the provider's API key variable")
        raise click.UsageError(f"{env_var} environment variable is not set.")

    try:
        cycle = start_cycle(url, platform_token, analysis_key, config, platform=ref.platform)
    except ReviewBridgeError as e:
        raise click.ClickException(str(e))

    print_analysis(cycle)

    if shadow:
        console.print(f"[bold]Shadow review complete. {len(cycle.result.comments)} finding(s) would be posted.[/bold]")
        return

    selection = ReviewSelection(cycle.result)
    if not yes:
        edit_selection(selection)
        if len(selection) and not selection.selected_count:
            # Every finding dropped; default to not posting.
            question = f"All {len(selection)} finding(s) were dropped. Post the summary alone as {cycle.result.decision}?"
            default = False
        else:
            question = f"Post review as {cycle.result.decision} with {selection.selected_count} finding(s)?"
            default = True
        if not click.confirm(question, default=default):
            selection.discard()
            console.print("[yellow]Review discarded.[/yellow]")
            return

    final = commit_selection(selection)
    try:
        report = submit_cycle(ref, platform_token, final, config)
    except ReviewBridgeError as e:
        raise click.ClickException(f"Failed to submit review: {e}")
    _print_posted(final, report.warnings)
