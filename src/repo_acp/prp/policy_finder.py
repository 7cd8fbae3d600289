"""Hierarchical policy finder - the Policy Retrieval Point.

Policies are assigned to store nodes through the authz:policy property,
whose value is the store path (or policy ID) of the policy node. The
policy governing a resource is the one assigned to the nearest node on
the way from the resource up to the root:

    /objects/book/{ns}title    property path, trimmed to a real node
    /objects/book              no authz:policy
    /objects                   authz:policy = /policies/CollectionPolicy  <- governs
    /                          authz:policy = /policies/GlobalRolesPolicySet

The root always carries a policy in a bootstrapped store, so the walk
always terminates with a policy.

Failure handling (a lookup never raises into the PDP):
- Store unreachable, or a policy node missing -> NotApplicable
- Policy document malformed or unsupported  -> Indeterminate (processing error)
"""

from __future__ import annotations

__all__ = ["HierarchicalPolicyFinder"]

import logging

from repo_acp.constants import POLICY_PROPERTY
from repo_acp.context.request import EvaluationRequest
from repo_acp.context.status import Status
from repo_acp.exceptions import PathNotFoundError, PolicyLoadError, StoreAccessError
from repo_acp.pdp.matcher import MatchOutcome, match_target
from repo_acp.pdp.policy import Policy, PolicySet, PolicyType, parse_policy_document
from repo_acp.pdp.result import PolicyFinderResult
from repo_acp.prp.cache import PolicyCache, content_checksum
from repo_acp.prp.policy_util import is_policy_id, path_for_id
from repo_acp.store.lookup import get_first_real_node
from repo_acp.store.paths import normalize_resource_id
from repo_acp.store.protocol import StoreNode, StoreSession
from repo_acp.telemetry.system.system_logger import get_system_logger

_system_logger = get_system_logger()


class HierarchicalPolicyFinder:
    """Finds the policy governing a request by walking up the resource tree.

    Stateless apart from the optional cache; one instance serves every
    check, and the store session arrives with each call.
    """

    def __init__(self, cache: PolicyCache | None = None) -> None:
        """Initialize the finder.

        Args:
            cache: Parsed-policy cache; None parses on every lookup.
        """
        self._cache = cache

    def find_policy(self, request: EvaluationRequest) -> PolicyFinderResult:
        """Return the policy governing the request's resource.

        Args:
            request: The request being evaluated (supplies resource id and session).

        Returns:
            The matched policy; NotApplicable when no policy applies or its
            target does not match; Indeterminate when the policy cannot be
            loaded or its target cannot be evaluated.
        """
        resource_id = normalize_resource_id(request.resource_id)
        session = request.session
        if session is None:
            _system_logger.warning(
                {
                    "event": "policy_lookup_no_session",
                    "message": f"No store session to find policy for {resource_id}",
                    "resource_id": resource_id,
                }
            )
            return PolicyFinderResult.not_applicable()

        try:
            node = get_first_real_node(resource_id, session)
            policy_path = self._find_assigned_policy_path(node)
            if policy_path is None:
                _system_logger.warning(
                    {
                        "event": "no_policy_assigned",
                        "message": f"No policy assigned on the path to {resource_id}; is the root bootstrapped?",
                        "resource_id": resource_id,
                    }
                )
                return PolicyFinderResult.not_applicable()
            policy = self._load_policy(session, policy_path)
        except (StoreAccessError, PathNotFoundError) as e:
            _system_logger.warning(
                {
                    "event": "policy_lookup_failed",
                    "message": f"Cannot find policy for {resource_id}: {e}",
                    "resource_id": resource_id,
                    "error_type": type(e).__name__,
                }
            )
            return PolicyFinderResult.not_applicable()
        except PolicyLoadError as e:
            _system_logger.error(
                {
                    "event": "policy_load_failed",
                    "message": f"Cannot load policy for {resource_id}: {e}",
                    "resource_id": resource_id,
                    "source": e.source,
                }
            )
            return PolicyFinderResult.indeterminate(Status.processing_error(str(e)))

        if _system_logger.isEnabledFor(logging.DEBUG):
            _system_logger.debug(
                {
                    "event": "policy_found",
                    "message": f"Policy {policy.policy_id} governs {resource_id}",
                    "resource_id": resource_id,
                    "policy_id": policy.policy_id,
                }
            )

        target = match_target(policy.target, request)
        if target.outcome is MatchOutcome.NO_MATCH:
            return PolicyFinderResult.not_applicable()
        if target.outcome is MatchOutcome.INDETERMINATE:
            return PolicyFinderResult.indeterminate(
                target.status or Status.processing_error("Target match indeterminate")
            )
        return PolicyFinderResult(policy=policy)

    def find_policy_by_id(
        self,
        policy_id: str,
        policy_type: PolicyType | None = None,
        session: StoreSession | None = None,
    ) -> PolicyFinderResult:
        """Return the policy stored under a policy ID.

        Used by the PDP to resolve policy references; safe to call while
        another policy is being evaluated.

        Args:
            policy_id: Policy ID (info:repo/<path>).
            policy_type: Expected type; a document of another type is NotApplicable.
            session: Store session of the current check.

        Returns:
            The policy, NotApplicable, or Indeterminate for a malformed document.
        """
        if not is_policy_id(policy_id):
            _system_logger.warning(
                {
                    "event": "invalid_policy_id",
                    "message": f"Rejected policy reference without the policy prefix: {policy_id}",
                    "policy_id": policy_id,
                }
            )
            return PolicyFinderResult.not_applicable()
        if session is None:
            return PolicyFinderResult.not_applicable()

        try:
            policy = self._load_policy(session, path_for_id(policy_id))
        except (StoreAccessError, PathNotFoundError) as e:
            _system_logger.warning(
                {
                    "event": "policy_reference_failed",
                    "message": f"Cannot resolve policy reference {policy_id}: {e}",
                    "policy_id": policy_id,
                    "error_type": type(e).__name__,
                }
            )
            return PolicyFinderResult.not_applicable()
        except PolicyLoadError as e:
            _system_logger.error(
                {
                    "event": "policy_load_failed",
                    "message": f"Cannot load referenced policy {policy_id}: {e}",
                    "policy_id": policy_id,
                    "source": e.source,
                }
            )
            return PolicyFinderResult.indeterminate(Status.processing_error(str(e)))

        if policy_type is not None and policy.policy_type != policy_type:
            return PolicyFinderResult.not_applicable()
        return PolicyFinderResult(policy=policy)

    @staticmethod
    def _find_assigned_policy_path(node: StoreNode) -> str | None:
        """Walk from node to the root; return the first assigned policy path."""
        current: StoreNode | None = node
        while current is not None:
            if current.has_property(POLICY_PROPERTY):
                value = str(current.get_property(POLICY_PROPERTY))
                return path_for_id(value) if is_policy_id(value) else value
            current = current.parent
        return None

    def _load_policy(self, session: StoreSession, path: str) -> Policy | PolicySet:
        """Read and parse the policy document at path.

        Raises:
            PathNotFoundError: If no node exists at path.
            StoreAccessError: If the store cannot be reached.
            PolicyLoadError: If the node holds no content or the document is invalid.
        """
        content = session.get_node(path).content
        if content is None:
            raise PolicyLoadError("Policy node has no content", source=path)

        if self._cache is None:
            return parse_policy_document(content, source=path)

        checksum = content_checksum(content)
        cached = self._cache.get(path, checksum)
        if cached is not None:
            return cached
        policy = parse_policy_document(content, source=path)
        self._cache.put(path, checksum, policy)
        return policy
