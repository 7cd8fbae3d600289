"""Reference policy decision point.

Evaluates an EvaluationRequest against the policies found by the policy
finder and returns one DecisionResult per (resource, action) pair.

Evaluation flow:
1. Resources: the requested resource, plus every descendant when the
   request carries the Descendants scope (multiple-resource requests)
2. Actions: one evaluation per action-id attribute
3. For each pair: ask the policy finder for the governing policy
   (NotApplicable / Indeterminate are returned as-is)
4. Evaluate the policy tree: targets first (except the top-level
   target, already matched by the finder), then rules or children,
   combined by the element's combining algorithm
5. Policy references inside a PolicySet are resolved lazily through
   the policy finder's by-ID lookup

Combining algorithms (simplified XACML semantics, no extended
Indeterminate values):
- deny-overrides:     Deny > Indeterminate > Permit > NotApplicable
- permit-overrides:   Permit > Indeterminate > Deny > NotApplicable
- first-applicable:   first result that is not NotApplicable
- deny-unless-permit: Permit if any Permit, else Deny
- permit-unless-deny: Deny if any Deny, else Permit

Known limitations:
- Rule conditions, obligations and advice are not supported (rejected
  by the parser)
- Reference chains deeper than MAX_REFERENCE_DEPTH are Indeterminate
"""

from __future__ import annotations

__all__ = [
    "MAX_REFERENCE_DEPTH",
    "PolicyDecisionPoint",
]

from collections.abc import Callable, Iterator
from dataclasses import dataclass

from repo_acp.constants import ATTRIBUTEID_ACTION_ID, ROOT_PATH, SCOPE_DESCENDANTS
from repo_acp.context.attributes import Attribute
from repo_acp.context.request import EvaluationRequest
from repo_acp.context.status import Status
from repo_acp.exceptions import PolicyEnforcementFailure
from repo_acp.pdp.decision import Decision
from repo_acp.pdp.matcher import MatchOutcome, match_target
from repo_acp.pdp.policy import Policy, PolicyReference, PolicySet, Rule, Target
from repo_acp.pdp.protocol import PolicyFinderProtocol, ResourceFinderProtocol
from repo_acp.pdp.result import DecisionResult

# Nested PolicySet references followed before giving up (guards reference cycles)
MAX_REFERENCE_DEPTH = 16


@dataclass(frozen=True, slots=True)
class _Outcome:
    """Decision of one policy element, with the policy that produced it."""

    decision: Decision
    status: Status | None = None
    policy_id: str | None = None


_NOT_APPLICABLE = _Outcome(Decision.NOT_APPLICABLE)

# Lazily evaluated children, so short-circuiting algorithms skip the rest
_Thunks = Iterator[Callable[[], _Outcome]]


def _combine(algorithm: str, thunks: _Thunks) -> _Outcome:
    if algorithm == "first-applicable":
        for thunk in thunks:
            outcome = thunk()
            if outcome.decision is not Decision.NOT_APPLICABLE:
                return outcome
        return _NOT_APPLICABLE

    if algorithm in ("deny-overrides", "permit-overrides"):
        winner = Decision.DENY if algorithm == "deny-overrides" else Decision.PERMIT
        first_indeterminate: _Outcome | None = None
        first_other: _Outcome | None = None
        for thunk in thunks:
            outcome = thunk()
            if outcome.decision is winner:
                return outcome
            if outcome.decision is Decision.INDETERMINATE:
                first_indeterminate = first_indeterminate or outcome
            elif outcome.decision is not Decision.NOT_APPLICABLE:
                first_other = first_other or outcome
        return first_indeterminate or first_other or _NOT_APPLICABLE

    if algorithm in ("deny-unless-permit", "permit-unless-deny"):
        winner = Decision.PERMIT if algorithm == "deny-unless-permit" else Decision.DENY
        for thunk in thunks:
            outcome = thunk()
            if outcome.decision is winner:
                return outcome
        loser = Decision.DENY if winner is Decision.PERMIT else Decision.PERMIT
        return _Outcome(loser)

    return _Outcome(Decision.INDETERMINATE, Status.processing_error(f"Unknown combining algorithm {algorithm}"))


class PolicyDecisionPoint:
    """Policy evaluation engine.

    Stateless after construction; safe for concurrent evaluate() calls as
    long as the finders are.
    """

    def __init__(
        self,
        policy_finder: PolicyFinderProtocol,
        resource_finder: ResourceFinderProtocol | None = None,
    ) -> None:
        """Initialize the PDP.

        Args:
            policy_finder: Resolves governing policies and policy references.
            resource_finder: Enumerates descendants for Descendants-scoped
                requests. Without one, scoped requests cover the requested
                resource only.
        """
        self._policy_finder = policy_finder
        self._resource_finder = resource_finder

    def evaluate(self, request: EvaluationRequest) -> list[DecisionResult]:
        """Evaluate a request for every (resource, action) pair.

        Args:
            request: The request to evaluate.

        Returns:
            One DecisionResult per pair, plus an Indeterminate result for
            each resource whose descendants could not be enumerated.

        Raises:
            PolicyEnforcementFailure: If evaluation fails unexpectedly.
        """
        try:
            return self._evaluate(request)
        except PolicyEnforcementFailure:
            raise
        except Exception as e:
            raise PolicyEnforcementFailure(
                f"Policy evaluation failed unexpectedly: {type(e).__name__}: {e}"
            ) from e

    def _evaluate(self, request: EvaluationRequest) -> list[DecisionResult]:
        results: list[DecisionResult] = []
        resource_id = request.resource_id or ROOT_PATH
        resource_ids = [resource_id]

        if request.scope == SCOPE_DESCENDANTS and self._resource_finder is not None:
            found = self._resource_finder.find_descendant_resources(resource_id, request.session)
            for failed_id, status in found.failures.items():
                results.append(
                    DecisionResult(decision=Decision.INDETERMINATE, status=status, resource_id=failed_id)
                )
            resource_ids.extend(sorted(found.resources - {resource_id}))

        actions = [a for a in request.action_attributes if a.attribute_id == ATTRIBUTEID_ACTION_ID]

        for rid in resource_ids:
            scoped = request if rid == resource_id else request.for_resource(rid)
            if not actions:
                results.append(self._evaluate_single(scoped, rid, None))
                continue
            for action in actions:
                results.append(self._evaluate_single(scoped.for_action(action), rid, action))
        return results

    def _evaluate_single(
        self,
        request: EvaluationRequest,
        resource_id: str,
        action: Attribute | None,
    ) -> DecisionResult:
        action_name = str(action.value) if action is not None else None
        found = self._policy_finder.find_policy(request)

        if found.status is not None:
            outcome = _Outcome(Decision.INDETERMINATE, found.status)
        elif found.policy is None:
            outcome = _NOT_APPLICABLE
        else:
            outcome = self._evaluate_element(found.policy, request, depth=0, target_matched=True)

        return DecisionResult(
            decision=outcome.decision,
            status=outcome.status,
            resource_id=resource_id,
            action=action_name,
            policy_id=outcome.policy_id,
        )

    def _evaluate_element(
        self,
        element: Policy | PolicySet | PolicyReference,
        request: EvaluationRequest,
        depth: int,
        target_matched: bool = False,
    ) -> _Outcome:
        if isinstance(element, PolicyReference):
            return self._evaluate_reference(element, request, depth)

        # The policy finder matches the target of the policy it returns
        if not target_matched:
            target = self._match(element.target, request)
            if target is not None:
                return target

        if isinstance(element, Policy):
            outcome = _combine(
                element.combining_algorithm,
                (lambda rule=rule: self._evaluate_rule(rule, request) for rule in element.rules),
            )
        else:
            outcome = _combine(
                element.combining_algorithm,
                (
                    lambda child=child: self._evaluate_element(child, request, depth)
                    for child in element.children
                ),
            )

        if outcome.decision in (Decision.PERMIT, Decision.DENY) and outcome.policy_id is None:
            return _Outcome(outcome.decision, outcome.status, element.policy_id)
        return outcome

    def _evaluate_reference(self, reference: PolicyReference, request: EvaluationRequest, depth: int) -> _Outcome:
        if depth >= MAX_REFERENCE_DEPTH:
            return _Outcome(
                Decision.INDETERMINATE,
                Status.processing_error(f"Policy reference depth exceeded at {reference.reference_id}"),
            )
        found = self._policy_finder.find_policy_by_id(reference.reference_id, reference.policy_type, request.session)
        if found.status is not None:
            return _Outcome(Decision.INDETERMINATE, found.status)
        if found.policy is None:
            return _NOT_APPLICABLE
        return self._evaluate_element(found.policy, request, depth + 1)

    def _evaluate_rule(self, rule: Rule, request: EvaluationRequest) -> _Outcome:
        target = self._match(rule.target, request)
        if target is not None:
            return target
        return _Outcome(Decision(rule.effect))

    @staticmethod
    def _match(target: Target, request: EvaluationRequest) -> _Outcome | None:
        """None when the target matches, otherwise the outcome to return."""
        result = match_target(target, request)
        if result.outcome is MatchOutcome.MATCH:
            return None
        if result.outcome is MatchOutcome.NO_MATCH:
            return _NOT_APPLICABLE
        return _Outcome(Decision.INDETERMINATE, result.status)
