"""Unit tests for the reference PolicyDecisionPoint and PDPFactory.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.

Tests cover:
- Combining algorithms over rules and policy set children
- Policy references and reference depth
- One result per (resource, action), descendants for remove
- Failure handling (finder errors, unexpected exceptions)
"""

from __future__ import annotations

import pytest

from repo_acp.context import EvaluationRequestBuilder
from repo_acp.context.status import Status
from repo_acp.exceptions import PDPInitializationError, PolicyEnforcementFailure
from repo_acp.pdp import (
    Decision,
    PDPFactory,
    Policy,
    PolicyDecisionPoint,
    PolicyFinderResult,
    PolicyReference,
    PolicySet,
    Rule,
    parse_policy_document,
)
from repo_acp.pdp.engine import MAX_REFERENCE_DEPTH
from repo_acp.pips import DescendantResourceFinder
from repo_acp.pips.resources import ResourceFinderResult
from repo_acp.prp import HierarchicalPolicyFinder
from repo_acp.store.memory import InMemoryStore

from conftest import (
    ACTION_CATEGORY,
    ACTION_ID,
    DENY_ALL,
    PERMIT_ALL,
    assign_policy,
    install_policy,
    match_xml,
    policy_xml,
    rule_xml,
    target_xml,
)


class _StaticPolicyFinder:
    """Policy finder returning one fixed root policy and resolving references from a dict."""

    def __init__(self, root: PolicyFinderResult, by_id: dict[str, Policy | PolicySet] | None = None) -> None:
        self.root = root
        self.by_id = by_id or {}
        self.lookups: list[str] = []

    def find_policy(self, request):
        self.lookups.append(request.resource_id)
        return self.root

    def find_policy_by_id(self, policy_id, policy_type=None, session=None):
        policy = self.by_id.get(policy_id)
        if policy is None or (policy_type is not None and policy.policy_type != policy_type):
            return PolicyFinderResult.not_applicable()
        return PolicyFinderResult(policy=policy)


def _rule(effect: str, action: str | None = None) -> Rule:
    """Rule with the given effect, optionally limited to one action."""
    xml = policy_xml(
        "info:repo/tmp",
        rule_xml(
            f"{effect}-{action}",
            effect,
            target_xml([match_xml(action, ACTION_ID, ACTION_CATEGORY)]) if action else "",
        ),
    )
    return parse_policy_document(xml).rules[0]  # type: ignore[union-attr]


def _policy(policy_id: str, algorithm: str, *rules: Rule) -> Policy:
    return Policy(policy_id=policy_id, combining_algorithm=algorithm, rules=rules)


def _request(actions: list[str], session=None, resource_id: str = "/objects/book"):
    return (
        EvaluationRequestBuilder()
        .add_subject("alice", ["reader"])
        .add_resource_id(resource_id)
        .add_actions(actions)
        .build(session)
    )


def _decide(policy: Policy | PolicySet, actions: list[str], by_id=None) -> list[Decision]:
    pdp = PolicyDecisionPoint(_StaticPolicyFinder(PolicyFinderResult(policy=policy), by_id))
    return [r.decision for r in pdp.evaluate(_request(actions))]


# =============================================================================
# Combining algorithms
# =============================================================================


class TestCombiningAlgorithms:
    """Tests for rule and policy combining."""

    @pytest.mark.parametrize(
        ("algorithm", "effects", "expected"),
        [
            ("deny-overrides", ["Permit", "Deny"], Decision.DENY),
            ("deny-overrides", ["Permit"], Decision.PERMIT),
            ("permit-overrides", ["Deny", "Permit"], Decision.PERMIT),
            ("permit-overrides", ["Deny"], Decision.DENY),
            ("first-applicable", ["Deny", "Permit"], Decision.DENY),
            ("first-applicable", ["Permit", "Deny"], Decision.PERMIT),
            ("deny-unless-permit", [], Decision.DENY),
            ("permit-unless-deny", [], Decision.PERMIT),
            ("deny-overrides", [], Decision.NOT_APPLICABLE),
            ("first-applicable", [], Decision.NOT_APPLICABLE),
        ],
    )
    def test_rule_combining(self, algorithm: str, effects: list[str], expected: Decision) -> None:
        # Arrange
        policy = _policy("info:repo/p", algorithm, *(_rule(e) for e in effects))

        # Act & Assert
        assert _decide(policy, ["read"]) == [expected]

    def test_rule_targets_select_by_action(self) -> None:
        """Only rules whose target matches the action apply."""
        # Arrange
        policy = _policy("info:repo/p", "deny-overrides", _rule("Permit", "read"), _rule("Deny", "remove"))

        # Act & Assert
        assert _decide(policy, ["read", "remove", "add_node"]) == [
            Decision.PERMIT,
            Decision.DENY,
            Decision.NOT_APPLICABLE,
        ]

    def test_policy_id_of_deciding_policy_recorded(self) -> None:
        # Arrange
        policy_set = PolicySet(
            policy_id="info:repo/set",
            combining_algorithm="first-applicable",
            children=(
                _policy("info:repo/readers", "deny-overrides", _rule("Permit", "read")),
                _policy("info:repo/fallback", "deny-overrides", _rule("Deny")),
            ),
        )
        pdp = PolicyDecisionPoint(_StaticPolicyFinder(PolicyFinderResult(policy=policy_set)))

        # Act
        results = pdp.evaluate(_request(["read", "remove"]))

        # Assert
        assert [(r.action, r.decision, r.policy_id) for r in results] == [
            ("read", Decision.PERMIT, "info:repo/readers"),
            ("remove", Decision.DENY, "info:repo/fallback"),
        ]


# =============================================================================
# References
# =============================================================================


class TestPolicyReferences:
    """Tests for lazily resolved policy references."""

    def test_reference_resolved_through_finder(self) -> None:
        # Arrange
        referenced = _policy("info:repo/policies/A", "deny-overrides", _rule("Permit"))
        root = PolicySet(
            policy_id="info:repo/root",
            combining_algorithm="first-applicable",
            children=(PolicyReference(reference_id="info:repo/policies/A", policy_type="Policy"),),
        )

        # Act & Assert
        assert _decide(root, ["read"], {"info:repo/policies/A": referenced}) == [Decision.PERMIT]

    def test_unresolved_reference_is_not_applicable(self) -> None:
        # Arrange
        root = PolicySet(
            policy_id="info:repo/root",
            combining_algorithm="first-applicable",
            children=(PolicyReference(reference_id="info:repo/policies/Missing", policy_type="Policy"),),
        )

        # Act & Assert
        assert _decide(root, ["read"]) == [Decision.NOT_APPLICABLE]

    def test_reference_cycle_is_indeterminate(self) -> None:
        """A set that references itself stops at the depth limit."""
        # Arrange
        loop = PolicySet(
            policy_id="info:repo/loop",
            combining_algorithm="first-applicable",
            children=(PolicyReference(reference_id="info:repo/loop", policy_type="PolicySet"),),
        )

        # Act
        pdp = PolicyDecisionPoint(_StaticPolicyFinder(PolicyFinderResult(policy=loop), {"info:repo/loop": loop}))
        results = pdp.evaluate(_request(["read"]))

        # Assert
        assert results[0].decision is Decision.INDETERMINATE
        assert results[0].status is not None
        assert "depth" in (results[0].status.message or "")
        assert MAX_REFERENCE_DEPTH > 0


# =============================================================================
# Requests
# =============================================================================


class TestEvaluate:
    """Tests for result shape and failure handling."""

    def test_one_result_per_action(self) -> None:
        # Arrange
        policy = _policy("info:repo/p", "deny-overrides", _rule("Permit"))
        pdp = PolicyDecisionPoint(_StaticPolicyFinder(PolicyFinderResult(policy=policy)))

        # Act
        results = pdp.evaluate(_request(["read", "set_property"]))

        # Assert
        assert [(r.resource_id, r.action) for r in results] == [
            ("/objects/book", "read"),
            ("/objects/book", "set_property"),
        ]

    def test_no_actions_evaluates_once(self) -> None:
        # Arrange
        policy = _policy("info:repo/p", "deny-overrides", _rule("Permit"))
        pdp = PolicyDecisionPoint(_StaticPolicyFinder(PolicyFinderResult(policy=policy)))

        # Act
        results = pdp.evaluate(_request([]))

        # Assert
        assert len(results) == 1
        assert results[0].action is None

    def test_finder_indeterminate_passed_through(self) -> None:
        # Arrange
        status = Status.processing_error("bad policy")
        pdp = PolicyDecisionPoint(_StaticPolicyFinder(PolicyFinderResult.indeterminate(status)))

        # Act
        results = pdp.evaluate(_request(["read"]))

        # Assert
        assert results[0].decision is Decision.INDETERMINATE
        assert results[0].status == status

    def test_finder_not_applicable_passed_through(self) -> None:
        # Arrange
        pdp = PolicyDecisionPoint(_StaticPolicyFinder(PolicyFinderResult.not_applicable()))

        # Act & Assert
        assert pdp.evaluate(_request(["read"]))[0].decision is Decision.NOT_APPLICABLE

    def test_top_level_target_trusted_from_finder(self) -> None:
        """The finder already matched the returned policy's target; the PDP does not redo it."""
        # Arrange
        read_only_target = target_xml([match_xml("read", ACTION_ID, ACTION_CATEGORY)])
        policy = parse_policy_document(
            policy_xml("info:repo/policies/Readers", rule_xml("permit", "Permit"), target=read_only_target)
        )
        pdp = PolicyDecisionPoint(_StaticPolicyFinder(PolicyFinderResult(policy=policy)))

        # Act
        results = pdp.evaluate(_request(["remove"]))

        # Assert
        assert [r.decision for r in results] == [Decision.PERMIT]

    def test_referenced_policy_target_still_matched(self) -> None:
        # Arrange
        read_only_target = target_xml([match_xml("read", ACTION_ID, ACTION_CATEGORY)])
        referenced = parse_policy_document(
            policy_xml("info:repo/policies/Readers", rule_xml("permit", "Permit"), target=read_only_target)
        )
        root = PolicySet(
            policy_id="info:repo/root",
            combining_algorithm="first-applicable",
            children=(PolicyReference(reference_id="info:repo/policies/Readers", policy_type="Policy"),),
        )

        # Act & Assert
        assert _decide(root, ["read", "set_property"], {"info:repo/policies/Readers": referenced}) == [
            Decision.PERMIT,
            Decision.NOT_APPLICABLE,
        ]

    def test_unexpected_exception_becomes_enforcement_failure(self) -> None:
        # Arrange
        class _Broken(_StaticPolicyFinder):
            def find_policy(self, request):
                raise RuntimeError("boom")

        pdp = PolicyDecisionPoint(_Broken(PolicyFinderResult.not_applicable()))

        # Act & Assert
        with pytest.raises(PolicyEnforcementFailure, match="boom"):
            pdp.evaluate(_request(["read"]))


class TestDescendantScope:
    """Tests for remove requests covering the whole subtree."""

    @pytest.fixture
    def governed_store(self, store: InMemoryStore) -> InMemoryStore:
        """PermitAll at the root, DenyAll on /objects/book/chapter1."""
        install_policy(store, "/policies/PermitAll", PERMIT_ALL)
        install_policy(store, "/policies/DenyAll", DENY_ALL)
        assign_policy(store, "/", "/policies/PermitAll")
        assign_policy(store, "/objects/book/chapter1", "/policies/DenyAll")
        return store

    def test_remove_evaluates_every_descendant(self, governed_store: InMemoryStore) -> None:
        # Arrange
        session = governed_store.session(user_principal="alice")
        pdp = PolicyDecisionPoint(HierarchicalPolicyFinder(), DescendantResourceFinder())

        # Act
        results = pdp.evaluate(_request(["remove"], session))

        # Assert
        decisions = {r.resource_id: r.decision for r in results}
        assert decisions == {
            "/objects/book": Decision.PERMIT,
            "/objects/book/chapter1": Decision.DENY,
            "/objects/book/chapter1/page1": Decision.DENY,
            "/objects/book/cover": Decision.PERMIT,
        }

    def test_read_evaluates_only_the_resource(self, governed_store: InMemoryStore) -> None:
        # Arrange
        session = governed_store.session(user_principal="alice")
        pdp = PolicyDecisionPoint(HierarchicalPolicyFinder(), DescendantResourceFinder())

        # Act
        results = pdp.evaluate(_request(["read"], session))

        # Assert
        assert [r.resource_id for r in results] == ["/objects/book"]

    def test_enumeration_failure_adds_indeterminate(self) -> None:
        # Arrange
        class _FailingResources:
            def find_descendant_resources(self, parent_id, session):
                return ResourceFinderResult(failures={parent_id: Status.processing_error("down")})

        policy = _policy("info:repo/p", "deny-overrides", _rule("Permit"))
        pdp = PolicyDecisionPoint(_StaticPolicyFinder(PolicyFinderResult(policy=policy)), _FailingResources())

        # Act
        results = pdp.evaluate(_request(["remove"]))

        # Assert
        assert [r.decision for r in results] == [Decision.INDETERMINATE, Decision.PERMIT]


class TestPDPFactory:
    def test_makes_pdp(self) -> None:
        # Act
        pdp = PDPFactory(HierarchicalPolicyFinder(), DescendantResourceFinder()).make_pdp()

        # Assert
        assert isinstance(pdp, PolicyDecisionPoint)

    def test_requires_policy_finder(self) -> None:
        # Act & Assert
        with pytest.raises(PDPInitializationError):
            PDPFactory(None).make_pdp()
