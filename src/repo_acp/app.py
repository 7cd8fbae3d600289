"""Composition root: wire configuration into a ready authorization delegate.

Usage:
    config = AppConfig.load_from_file(config_path)
    create_initializer(config).init(admin_session)
    delegate = create_delegate(config, roles_provider=PropertyRolesProvider())
    delegate.has_permission(session, "/objects/book", ["read"])
"""

from __future__ import annotations

__all__ = [
    "configure_logging",
    "create_delegate",
    "create_initializer",
]

from pathlib import Path

from repo_acp.bootstrap.initializer import (
    DEFAULT_POLICIES_DIR,
    DEFAULT_ROOT_POLICY_FILE,
    WorkspaceInitializer,
)
from repo_acp.config import AppConfig, LoggingConfig
from repo_acp.exceptions import ConfigurationError
from repo_acp.pdp.factory import PDPFactory
from repo_acp.pep.delegate import AuthorizationDelegate
from repo_acp.pep.roles import AccessRolesProvider
from repo_acp.pips.query import SparqlResourceAttributeFinderModule
from repo_acp.pips.resources import DescendantResourceFinder
from repo_acp.prp.cache import PolicyCache
from repo_acp.prp.policy_finder import HierarchicalPolicyFinder
from repo_acp.telemetry.audit.decision_logger import DecisionEventLogger, create_decision_logger
from repo_acp.telemetry.system.system_logger import (
    configure_system_logger_file,
    get_system_logger,
    set_verbose_diagnostics,
)


def configure_logging(config: LoggingConfig) -> DecisionEventLogger:
    """Apply logging settings and return the decision logger to use.

    Raises:
        ConfigurationError: If the log directory cannot be created.
    """
    set_verbose_diagnostics(config.diagnostics_enabled)

    system_log_path = config.system_log_path
    if system_log_path is not None:
        configure_system_logger_file(system_log_path)

    decisions_log_path = config.decisions_log_path
    try:
        logger = create_decision_logger(decisions_log_path) if decisions_log_path else None
    except OSError as e:
        raise ConfigurationError(f"Cannot set up decision log: {e}") from e
    return DecisionEventLogger(system_logger=get_system_logger(), logger=logger)


def create_initializer(config: AppConfig) -> WorkspaceInitializer:
    """Build the policy bootstrapper for the configured (or packaged) policies.

    Raises:
        ConfigurationError: If the policy directory or root policy is unusable.
    """
    policies_dir = Path(config.policies_dir).expanduser() if config.policies_dir else DEFAULT_POLICIES_DIR
    root_policy = Path(config.root_policy_file).expanduser() if config.root_policy_file else DEFAULT_ROOT_POLICY_FILE
    try:
        return WorkspaceInitializer(policies_dir, root_policy)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def create_delegate(
    config: AppConfig,
    roles_provider: AccessRolesProvider | None = None,
) -> AuthorizationDelegate:
    """Build and initialize the authorization delegate.

    Raises:
        ConfigurationError: If logging cannot be set up.
        PDPInitializationError: If no PDP can be built.
    """
    cache = PolicyCache(config.policy_cache.max_entries) if config.policy_cache.enabled else None
    factory = PDPFactory(HierarchicalPolicyFinder(cache), DescendantResourceFinder())
    delegate = AuthorizationDelegate(
        factory,
        roles_provider=roles_provider,
        query_module=SparqlResourceAttributeFinderModule(config.query_attributes),
        decision_logger=configure_logging(config.logging),
    )
    delegate.init()
    return delegate
