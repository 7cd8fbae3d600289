"""Custom exceptions for repo-acp.

This module contains all custom exceptions used throughout the package.
Exceptions are organized into two categories:

Recoverable Errors (caught at the finder boundary, never reach the caller):
    - RepoAcpError: Base for per-request errors
    - StoreAccessError: Resource store unreachable or faulting
    - PathNotFoundError: No node at a path (callers fall back, not fail)
    - PolicyLoadError: Policy document malformed or of unknown type

Critical Failures (startup must abort):
    - CriticalSecurityFailure: Base for unrecoverable failures
    - PDPInitializationError: No Policy Decision Point could be built
    - PolicyEnforcementFailure: Decisions requested from an unusable delegate
    - ConfigurationError: Configuration invalid or incomplete
    - BootstrapError: Default policies could not be installed

Usage:
    from repo_acp.exceptions import StoreAccessError, PDPInitializationError
"""

from __future__ import annotations

__all__ = [
    "BootstrapError",
    "ConfigurationError",
    "CriticalSecurityFailure",
    "PDPInitializationError",
    "PathNotFoundError",
    "PolicyEnforcementFailure",
    "PolicyLoadError",
    "RepoAcpError",
    "StoreAccessError",
]


# =============================================================================
# Recoverable Errors (converted to NotApplicable / processing-error results)
# =============================================================================


class RepoAcpError(Exception):
    """Base class for recoverable, per-request errors."""


class StoreAccessError(RepoAcpError):
    """The resource store could not be reached or faulted mid-operation.

    Raised by store sessions for infrastructure failures (session closed,
    backend unavailable, property retrieval faulting). Never raised for a
    missing node - see PathNotFoundError.

    Attributes:
        path: Store path being accessed when the failure occurred, if known.
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class PathNotFoundError(RepoAcpError):
    """No node exists at the requested path.

    This is not a failure: callers fall back to the nearest ancestor or the
    root node.
    """

    def __init__(self, path: str) -> None:
        super().__init__(f"No node at path: {path}")
        self.path = path


class PolicyLoadError(RepoAcpError):
    """A policy document could not be parsed or classified.

    Raised when:
    - The document is not well-formed XML
    - The root element is neither Policy nor PolicySet
    - The declared policy ID is missing

    Attributes:
        source: Where the document came from (store path, file, or policy ID).
    """

    def __init__(self, message: str, *, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


# =============================================================================
# Critical Failures (startup aborts - authorization cannot be trusted)
# =============================================================================


class CriticalSecurityFailure(Exception):
    """Base exception for failures that must stop the process.

    These exceptions signal that access decisions cannot be made reliably.
    They should not be caught and converted into a permit or deny - the
    embedding application must refuse to serve requests instead.

    Subclasses define specific failure types with distinct exit codes:
    - PolicyEnforcementFailure (exit 11): Delegate cannot evaluate
    - PDPInitializationError (exit 12): PDP factory produced nothing
    - BootstrapError (exit 13): Default policies not installed
    - ConfigurationError (exit 16): Invalid configuration

    Attributes:
        exit_code: Process exit code.
        failure_type: Category string for logging.
    """

    exit_code: int = 1
    failure_type: str = "unknown"


class PolicyEnforcementFailure(CriticalSecurityFailure):
    """The authorization delegate cannot evaluate requests reliably.

    Raised when a decision is requested before the delegate was initialized
    or without a roles provider. The PDP also raises it for unexpected
    evaluation faults; the delegate logs those and denies.

    Exit code 11 indicates policy enforcement failure.
    """

    exit_code = 11
    failure_type = "policy_failure"


class PDPInitializationError(CriticalSecurityFailure):
    """The PDP factory could not produce a Policy Decision Point.

    Startup must abort rather than silently permitting every request.

    Exit code 12 indicates PDP initialization failure.
    """

    exit_code = 12
    failure_type = "pdp_initialization_failure"


class BootstrapError(CriticalSecurityFailure):
    """Default policies could not be installed into the store.

    Without a root policy the hierarchical policy walk has no guaranteed
    terminus, so the store is not safe to serve.

    Exit code 13 indicates bootstrap failure.
    """

    exit_code = 13
    failure_type = "bootstrap_failure"


class ConfigurationError(CriticalSecurityFailure):
    """Configuration is invalid or incomplete.

    Raised when:
    - Config file does not exist
    - Config file contains invalid JSON
    - Config file fails Pydantic validation

    Exit code 16 indicates configuration failure.
    """

    exit_code = 16
    failure_type = "configuration_failure"
