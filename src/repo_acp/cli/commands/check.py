"""Check command for repo-acp CLI.

Runs one authorization check against a store snapshot with the default
(or configured) policies installed.
"""

from __future__ import annotations

__all__ = ["check"]

import sys
from pathlib import Path

import click

from repo_acp.app import create_delegate, create_initializer
from repo_acp.config import AppConfig
from repo_acp.exceptions import CriticalSecurityFailure
from repo_acp.pep.roles import PropertyRolesProvider
from repo_acp.store.memory import InMemoryStore
from repo_acp.utils.file_helpers import load_json_object

from ..styling import style_decision, style_dim, style_error, style_label

# Exit code for a completed check that was denied (click uses 2 for usage errors)
EXIT_DENIED = 3

# Principal used to install the default policies
BOOTSTRAP_PRINCIPAL = "repo-acp-bootstrap"


def _load_config(config_path: Path | None, policies: Path | None, root_policy: Path | None) -> AppConfig:
    config = AppConfig.load_from_file(config_path) if config_path else AppConfig()
    overrides: dict[str, object] = {}
    if policies is not None:
        overrides["policies_dir"] = str(policies)
    if root_policy is not None:
        overrides["root_policy_file"] = str(root_policy)
    return config.model_copy(update=overrides) if overrides else config


def _load_store(snapshot_path: Path | None, workspace_name: str) -> InMemoryStore:
    if snapshot_path is None:
        return InMemoryStore(workspace_name=workspace_name)
    snapshot = load_json_object(snapshot_path, file_type="store snapshot")
    return InMemoryStore.from_snapshot(snapshot, workspace_name=workspace_name)


@click.command()
@click.argument("path")
@click.option("--user", "-u", required=True, help="Principal performing the operation")
@click.option(
    "--action",
    "-a",
    "actions",
    multiple=True,
    required=True,
    help="Requested action (repeatable, e.g. -a read -a remove)",
)
@click.option(
    "--role",
    "-r",
    "roles",
    multiple=True,
    help="Effective role (repeatable). Omit to read authz:roles from the store",
)
@click.option(
    "--store",
    "store_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON store snapshot (default: empty store)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Configuration file (default: built-in defaults)",
)
@click.option(
    "--policies",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory of policies to bootstrap",
)
@click.option(
    "--root-policy",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Root policy document linked to the store root",
)
@click.option("--remote-addr", help="Originating IP address of the request")
@click.option("--no-bootstrap", is_flag=True, help="Use policies already in the snapshot")
@click.option("--verbose", "-V", is_flag=True, help="Dump requests and PDP results to stderr")
def check(
    path: str,
    user: str,
    actions: tuple[str, ...],
    roles: tuple[str, ...],
    store_path: Path | None,
    config_path: Path | None,
    policies: Path | None,
    root_policy: Path | None,
    remote_addr: str | None,
    no_bootstrap: bool,
    verbose: bool,
) -> None:
    """Decide whether USER may perform ACTIONs on PATH.

    Prints PERMIT or DENY. A check is permitted only if every resource and
    action evaluated (descendants included for "remove") is permitted.

    Exit codes:
        0: Permitted
        3: Denied
        1: Invalid input
        11-16: Authorization could not be set up (see error)
    """
    try:
        config = _load_config(config_path, policies, root_policy)
        if verbose:
            config.logging.verbose_diagnostics = True

        store = _load_store(store_path, config.workspace_name)
        if not no_bootstrap:
            installed = create_initializer(config).init(store.session(user_principal=BOOTSTRAP_PRINCIPAL))
            if verbose:
                click.echo(style_dim(f"Installed {len(installed)} policies"), err=True)

        delegate = create_delegate(config, roles_provider=PropertyRolesProvider())
        session = store.session(user_principal=user, remote_addr=remote_addr)
        if roles:
            permitted = delegate.roles_have_permission(session, path, actions, roles)
        else:
            permitted = delegate.has_permission(session, path, actions)
    except CriticalSecurityFailure as e:
        click.echo(style_error(f"{e.failure_type}: {e}"), err=True)
        sys.exit(e.exit_code)
    except ValueError as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)

    decision = "PERMIT" if permitted else "DENY"
    click.echo(f"{style_label('Decision')} {style_decision(decision)}")
    if not permitted:
        sys.exit(EXIT_DENIED)
