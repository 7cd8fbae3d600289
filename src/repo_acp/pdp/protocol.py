"""Protocol definitions for the pluggable Policy Decision Point.

The rule engine is an external collaborator: anything with an
evaluate(request) -> list[DecisionResult] method can stand in for the
reference PolicyDecisionPoint, without inheriting from our code
(structural subtyping).

The PDP in turn consumes two backends supplied by this package, also
described here as protocols so the engine never imports them:
- PolicyFinderProtocol: governing policy for a request, policies by ID
- ResourceFinderProtocol: child and descendant resources for scoped requests

Example adapter:

    class RemotePDP:
        def evaluate(self, request: EvaluationRequest) -> list[DecisionResult]:
            reply = self._client.decide(request.to_dict())
            return [DecisionResult(decision=Decision(r["decision"])) for r in reply]
"""

from __future__ import annotations

__all__ = [
    "PolicyDecisionPointProtocol",
    "PolicyFinderProtocol",
    "ResourceFinderProtocol",
]

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from repo_acp.context.request import EvaluationRequest
    from repo_acp.pdp.policy import PolicyType
    from repo_acp.pdp.result import DecisionResult, PolicyFinderResult
    from repo_acp.pips.resources import ResourceFinderResult
    from repo_acp.store.protocol import StoreSession


@runtime_checkable
class PolicyDecisionPointProtocol(Protocol):
    """Protocol for pluggable decision engines.

    Thread-safety:
    - evaluate() must be safe for concurrent calls once the PDP is built
    """

    def evaluate(self, request: "EvaluationRequest") -> list["DecisionResult"]:
        """Evaluate a request.

        Args:
            request: Request built by EvaluationRequestBuilder.

        Returns:
            One DecisionResult per evaluated (resource, action) pair.

        Raises:
            PolicyEnforcementFailure: On unexpected evaluation errors.
        """
        ...


@runtime_checkable
class PolicyFinderProtocol(Protocol):
    def find_policy(self, request: "EvaluationRequest") -> "PolicyFinderResult":
        """Return the policy governing the request's resource.

        A returned policy has already matched the request on its target;
        the PDP does not match it again.
        """
        ...

    def find_policy_by_id(
        self,
        policy_id: str,
        policy_type: "PolicyType | None" = None,
        session: "StoreSession | None" = None,
    ) -> "PolicyFinderResult":
        """Return the policy stored under a policy ID.

        Must be reentrant: the PDP calls it while evaluating another policy.
        """
        ...


@runtime_checkable
class ResourceFinderProtocol(Protocol):
    def find_child_resources(self, parent_id: str, session: "StoreSession | None") -> "ResourceFinderResult":
        ...

    def find_descendant_resources(self, parent_id: str, session: "StoreSession | None") -> "ResourceFinderResult":
        ...
