"""CLI entry point for reviewbridge.

Commands:
  review   analyze a pull/merge request and post the accepted findings
  inspect  show how a request URL is parsed, without any network access
"""

from __future__ import annotations

import importlib.metadata
import logging

import click

from reviewbridge_cli.commands.inspect import inspect_cmd
from reviewbridge_cli.commands.review import review_cmd


@click.group()
@click.version_option(
    version=importlib.metadata.version("reviewbridge"),
    prog_name="reviewbridge",
)
@click.option(
    "--config",
    "config_path",
    default=".reviewbridge.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REVIEWBRIDGE_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log API calls and parsing details.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """AI-assisted pull request reviews for GitHub, GitLab and Azure DevOps."""
    from reviewbridge_core.config import load_config

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path)


main.add_command(review_cmd)
main.add_command(inspect_cmd)
