"""Main CLI entry point for repo-acp.

Defines the CLI group and registers all subcommands.

Commands:
    check   - Run one authorization check against a store snapshot
    config  - Configuration management (path, init, show, validate)
    policy  - Policy documents (validate, path, id)

Subcommand help:
    repo-acp COMMAND -h         Show help for a specific command
"""

from __future__ import annotations

__all__ = ["cli"]

import sys

import click

from repo_acp import __version__

from .commands.check import check
from .commands.config import config
from .commands.policy import policy


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Examples:
  repo-acp policy validate policies/*.xml
  repo-acp policy path info:repo/policies/AdminRolePolicy

  # Check with explicit roles against an empty store
  repo-acp check /objects/book --user alice --role reader --action read

  # Check a removal (descendants included) with roles read from the store
  repo-acp check /objects/book --store snapshot.json \\
    --user alice --action remove

Exit codes (check):
  0  Permitted       3  Denied       1  Invalid input       2  Usage error
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """repo-acp: Hierarchical attribute-based access control for a resource repository."""
    if version:
        click.echo(f"repo-acp {__version__}")
        sys.exit(0)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(check)
cli.add_command(config)
cli.add_command(policy)


def main() -> None:
    """CLI entry point."""
    cli()
