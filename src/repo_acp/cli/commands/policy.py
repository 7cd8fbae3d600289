"""Policy command group for repo-acp CLI.

Provides policy document subcommands.
"""

from __future__ import annotations

__all__ = ["policy"]

import sys
from pathlib import Path

import click

from repo_acp.exceptions import PolicyLoadError
from repo_acp.pdp.policy import PolicySet, parse_policy_document
from repo_acp.prp.policy_util import id_for_path, is_policy_id, path_for_id
from repo_acp.utils.file_helpers import compute_file_checksum

from ..styling import style_dim, style_error, style_label, style_success


@click.group()
def policy() -> None:
    """Policy document commands."""
    pass


@policy.command("validate")
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
def policy_validate(paths: tuple[Path, ...]) -> None:
    """Validate one or more XACML policy documents.

    Each document must be well-formed, declare a Policy or PolicySet root
    with an ID, and only use supported match functions and combining
    algorithms.

    Exit codes:
        0: Every document is valid
        1: At least one document is invalid
    """
    failed = 0
    for path in paths:
        try:
            document = parse_policy_document(path.read_bytes(), source=str(path))
        except (OSError, PolicyLoadError) as e:
            click.echo(style_error(f"{path}: {e}"), err=True)
            failed += 1
            continue

        kind = "PolicySet" if isinstance(document, PolicySet) else "Policy"
        click.echo(style_success(f"{kind} valid: {path}"))
        click.echo(f"  {style_label('ID')} {document.policy_id}")
        if is_policy_id(document.policy_id):
            click.echo(f"  {style_label('Store path')} {path_for_id(document.policy_id)}")
        else:
            click.echo(style_dim("  (ID is not installable by the bootstrapper)"))
        click.echo(f"  {style_label('Combining')} {document.combining_algorithm}")
        click.echo(f"  {style_label('Checksum')} {compute_file_checksum(path)}")

    if failed:
        click.echo(style_dim(f"{failed} of {len(paths)} documents invalid"), err=True)
        sys.exit(1)


@policy.command("path")
@click.argument("policy_id")
def policy_path_cmd(policy_id: str) -> None:
    """Show the store path where a policy ID is installed."""
    try:
        click.echo(path_for_id(policy_id))
    except ValueError as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)


@policy.command("id")
@click.argument("store_path")
def policy_id_cmd(store_path: str) -> None:
    """Show the policy ID for a store path."""
    try:
        click.echo(id_for_path(store_path))
    except ValueError as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)
