"""Authorization delegate - the entry point for access checks.

Per check:  Idle -> ContextBuilt -> Evaluated -> Decided

1. ContextBuilt: build an EvaluationRequest from the session, path,
   actions and effective roles, with the finder chain in fixed order
   (environment clock, structured queries, property graph last)
2. Evaluated: hand the request to the PDP, which returns one result per
   (resource, action) pair
3. Decided: Permit if and only if every result is Permit

The aggregation is fail-closed: any Deny, Indeterminate or NotApplicable
result, an empty result list, or a PDP failure denies the whole request.
Callers only ever see True/False; why a request was denied is in the logs.
"""

from __future__ import annotations

__all__ = [
    "AuthorizationDelegate",
    "aggregate_decisions",
]

import time
from collections.abc import Iterable, Sequence

from repo_acp.constants import EVERYONE_PRINCIPAL
from repo_acp.context.builder import EvaluationRequestBuilder
from repo_acp.context.request import EvaluationRequest
from repo_acp.exceptions import (
    CriticalSecurityFailure,
    PDPInitializationError,
    PolicyEnforcementFailure,
    StoreAccessError,
)
from repo_acp.pdp.decision import Decision
from repo_acp.pdp.factory import PDPFactory
from repo_acp.pdp.protocol import PolicyDecisionPointProtocol
from repo_acp.pdp.result import DecisionResult
from repo_acp.pep.roles import AccessRolesProvider
from repo_acp.pips.base import AttributeFinderModule
from repo_acp.pips.environment import CurrentEnvironmentModule
from repo_acp.pips.query import SparqlResourceAttributeFinderModule
from repo_acp.pips.triple import TripleAttributeFinderModule
from repo_acp.store.protocol import StoreSession
from repo_acp.telemetry.audit.decision_logger import DecisionEventLogger
from repo_acp.telemetry.system.system_logger import get_system_logger

_system_logger = get_system_logger()


def aggregate_decisions(results: Sequence[DecisionResult]) -> tuple[bool, str]:
    """Combine per-result decisions into one outcome.

    Args:
        results: Results returned by the PDP.

    Returns:
        (permitted, reason): permitted is True only when there is at least
        one result and every result is Permit.
    """
    if not results:
        return False, "no_results"
    for result in results:
        if result.decision is not Decision.PERMIT:
            return False, f"{result.decision.value}:{result.action or '*'}@{result.resource_id or '/'}"
    return True, "all_permit"


class AuthorizationDelegate:
    """Decides access checks against the hierarchical policies.

    Thread-safety:
    - One instance serves concurrent checks; per-check state lives on the
      call stack and the store session is supplied by the caller
    """

    def __init__(
        self,
        pdp_factory: PDPFactory,
        *,
        roles_provider: AccessRolesProvider | None = None,
        environment_module: AttributeFinderModule | None = None,
        query_module: AttributeFinderModule | None = None,
        triple_module: AttributeFinderModule | None = None,
        decision_logger: DecisionEventLogger | None = None,
    ) -> None:
        """Initialize the delegate; call init() before the first check.

        Args:
            pdp_factory: Builds the PDP in init().
            roles_provider: Effective-role source for has_permission().
            environment_module: Clock attribute finder.
            query_module: Structured-query attribute finder.
            triple_module: Property-graph attribute finder.
            decision_logger: Decision and diagnostics logger.
        """
        self._pdp_factory = pdp_factory
        self._pdp: PolicyDecisionPointProtocol | None = None
        self._roles_provider = roles_provider
        self._finder_modules: tuple[AttributeFinderModule, ...] = (
            environment_module or CurrentEnvironmentModule(),
            query_module or SparqlResourceAttributeFinderModule(),
            triple_module or TripleAttributeFinderModule(),
        )
        self._decision_logger = decision_logger or DecisionEventLogger(system_logger=_system_logger)

    def init(self) -> None:
        """Build the PDP.

        Raises:
            PDPInitializationError: If the factory fails or produces no PDP.
        """
        try:
            pdp = self._pdp_factory.make_pdp()
        except CriticalSecurityFailure:
            raise
        except Exception as e:
            raise PDPInitializationError(f"PDP factory failed: {type(e).__name__}: {e}") from e
        if pdp is None:
            raise PDPInitializationError("There is no PDP wired by the factory")
        self._pdp = pdp

    @property
    def is_initialized(self) -> bool:
        return self._pdp is not None

    @property
    def finder_modules(self) -> tuple[AttributeFinderModule, ...]:
        return self._finder_modules

    def build_request(
        self,
        session: StoreSession,
        path: str,
        actions: Iterable[str],
        roles: Iterable[str] | None,
    ) -> EvaluationRequest:
        """Build the evaluation request for one check.

        Raises:
            ValueError: If the session carries no user principal.
        """
        builder = EvaluationRequestBuilder()
        for module in self._finder_modules:
            builder.add_finder_module(module)
        builder.add_subject(session.user_principal, roles)  # type: ignore[arg-type]
        builder.add_resource_id(path)
        builder.add_workspace(session.workspace_name)
        builder.add_actions(actions)
        if session.remote_addr is not None:
            builder.add_original_request_ip(session.remote_addr)
        return builder.build(session)

    def roles_have_permission(
        self,
        session: StoreSession,
        path: str,
        actions: Iterable[str],
        roles: Iterable[str] | None,
    ) -> bool:
        """Decide whether the given roles may perform every action on path.

        Args:
            session: Store session of the caller (identity, workspace, address).
            path: Resource path, possibly property-qualified.
            actions: Requested actions.
            roles: Effective roles of the session's user at path.

        Returns:
            True only if every PDP result is Permit.

        Raises:
            PolicyEnforcementFailure: If init() has not built a PDP.
        """
        pdp = self._pdp
        if pdp is None:
            raise PolicyEnforcementFailure("Authorization delegate used before init()")

        request = self.build_request(session, path, list(actions), roles)
        self._decision_logger.log_request(request)

        start = time.perf_counter()
        try:
            results = pdp.evaluate(request)
        except Exception as e:
            _system_logger.error(
                {
                    "event": "pdp_evaluation_failed",
                    "message": f"PDP failed on {path}: {e}",
                    "error_type": type(e).__name__,
                    "resource_id": path,
                }
            )
            results = []
        eval_ms = (time.perf_counter() - start) * 1000

        self._decision_logger.log_results(results)
        permitted, reason = aggregate_decisions(results)
        self._decision_logger.log(permitted, request, results, reason, eval_ms)
        return permitted

    def has_permission(self, session: StoreSession, path: str, actions: Iterable[str]) -> bool:
        """Decide a check using roles from the roles provider.

        The user's roles at path are merged with the roles granted to
        EVERYONE. A user with no roles at all is denied without evaluation.

        Raises:
            PolicyEnforcementFailure: If init() has not run or no roles
                provider is configured.
        """
        if self._roles_provider is None:
            raise PolicyEnforcementFailure("No roles provider configured")
        if self._pdp is None:
            raise PolicyEnforcementFailure("Authorization delegate used before init()")

        try:
            assigned = self._roles_provider.roles_for_path(path, session)
        except StoreAccessError as e:
            _system_logger.warning(
                {
                    "event": "roles_lookup_failed",
                    "message": f"Cannot resolve roles at {path}: {e}",
                    "resource_id": path,
                }
            )
            return False

        roles: set[str] = set(assigned.get(EVERYONE_PRINCIPAL, ()))
        if session.user_principal is not None:
            roles.update(assigned.get(session.user_principal, ()))
        if not roles:
            _system_logger.debug(
                {
                    "event": "no_effective_roles",
                    "message": f"{session.user_principal} has no roles at {path}",
                    "resource_id": path,
                }
            )
            return False

        return self.roles_have_permission(session, path, actions, sorted(roles))
