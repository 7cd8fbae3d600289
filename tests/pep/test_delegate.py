"""Unit tests for the AuthorizationDelegate, aggregation and role providers.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.

Tests cover:
- aggregate_decisions (fail-closed all-permit rule)
- Delegate lifecycle (init, use before init, factory failures)
- roles_have_permission against the packaged default policies
- has_permission with store-assigned roles
- Role providers (roles.py)
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from repo_acp.constants import ATTRIBUTEID_ENVIRONMENT_ORIGINAL_IP_ADDRESS, ROLES_PROPERTY
from repo_acp.exceptions import PDPInitializationError, PolicyEnforcementFailure, StoreAccessError
from repo_acp.pdp import Decision, DecisionResult, PDPFactory
from repo_acp.pep import AuthorizationDelegate, PropertyRolesProvider, StaticRolesProvider, aggregate_decisions
from repo_acp.pips import CurrentEnvironmentModule, SparqlResourceAttributeFinderModule, TripleAttributeFinderModule
from repo_acp.pips.resources import DescendantResourceFinder
from repo_acp.prp import HierarchicalPolicyFinder
from repo_acp.store.memory import InMemoryStore


def _result(decision: Decision, action: str = "read") -> DecisionResult:
    return DecisionResult(decision=decision, resource_id="/a", action=action)


def _delegate(**kwargs) -> AuthorizationDelegate:
    delegate = AuthorizationDelegate(PDPFactory(HierarchicalPolicyFinder(), DescendantResourceFinder()), **kwargs)
    delegate.init()
    return delegate


# =============================================================================
# Aggregation
# =============================================================================


class TestAggregateDecisions:
    """Tests for the all-permit rule."""

    def test_all_permit_is_permitted(self) -> None:
        # Act
        permitted, reason = aggregate_decisions([_result(Decision.PERMIT), _result(Decision.PERMIT, "remove")])

        # Assert
        assert permitted is True
        assert reason == "all_permit"

    @pytest.mark.parametrize("other", [Decision.DENY, Decision.INDETERMINATE, Decision.NOT_APPLICABLE])
    def test_any_non_permit_denies(self, other: Decision) -> None:
        """Permit plus any other decision is denied."""
        # Act
        permitted, reason = aggregate_decisions([_result(Decision.PERMIT), _result(other, "remove")])

        # Assert
        assert permitted is False
        assert reason.startswith(other.value)

    def test_empty_results_deny(self) -> None:
        # Act & Assert
        assert aggregate_decisions([]) == (False, "no_results")


# =============================================================================
# Lifecycle
# =============================================================================


class TestDelegateLifecycle:
    """Tests for init() and use before init."""

    def test_use_before_init_raises(self, bootstrapped_store: InMemoryStore) -> None:
        # Arrange
        delegate = AuthorizationDelegate(PDPFactory(HierarchicalPolicyFinder()))
        session = bootstrapped_store.session(user_principal="alice")

        # Act & Assert
        assert not delegate.is_initialized
        with pytest.raises(PolicyEnforcementFailure):
            delegate.roles_have_permission(session, "/objects", ["read"], ["reader"])

    def test_init_without_policy_finder_fails(self) -> None:
        # Arrange
        delegate = AuthorizationDelegate(PDPFactory(None))

        # Act & Assert
        with pytest.raises(PDPInitializationError):
            delegate.init()

    def test_factory_returning_none_fails(self) -> None:
        # Arrange
        factory = MagicMock()
        factory.make_pdp.return_value = None

        # Act & Assert
        with pytest.raises(PDPInitializationError, match="no PDP"):
            AuthorizationDelegate(factory).init()

    def test_factory_exception_wrapped(self) -> None:
        # Arrange
        factory = MagicMock()
        factory.make_pdp.side_effect = RuntimeError("wiring broken")

        # Act & Assert
        with pytest.raises(PDPInitializationError, match="wiring broken"):
            AuthorizationDelegate(factory).init()

    def test_default_finder_chain_order(self) -> None:
        """Environment first, structured queries next, property graph last."""
        # Act
        modules = _delegate().finder_modules

        # Assert
        assert [type(m) for m in modules] == [
            CurrentEnvironmentModule,
            SparqlResourceAttributeFinderModule,
            TripleAttributeFinderModule,
        ]


# =============================================================================
# Decisions against the default policies
# =============================================================================


class TestRolesHavePermission:
    """Tests for checks with explicit roles."""

    @pytest.mark.parametrize(
        ("roles", "actions", "expected"),
        [
            (["reader"], ["read"], True),
            (["reader"], ["set_property"], False),
            (["reader"], ["read", "set_property"], False),
            (["writer"], ["read", "add_node", "set_property"], True),
            (["writer"], ["remove"], True),
            (["admin"], ["remove", "read"], True),
            (["admin"], ["change_permissions"], True),
            (["writer"], ["change_permissions"], False),
            ([], ["read"], False),
            (["unknown"], ["read"], False),
        ],
    )
    def test_default_policies(
        self, bootstrapped_store: InMemoryStore, roles: list[str], actions: list[str], expected: bool
    ) -> None:
        # Arrange
        session = bootstrapped_store.session(user_principal="alice")

        # Act & Assert
        assert _delegate().roles_have_permission(session, "/objects/book", actions, roles) is expected

    def test_property_path(self, bootstrapped_store: InMemoryStore) -> None:
        # Arrange
        session = bootstrapped_store.session(user_principal="alice")

        # Act & Assert
        assert _delegate().roles_have_permission(session, "/objects/book/{dc}title", ["read"], ["reader"])

    def test_remove_denied_when_a_descendant_is_denied(self, bootstrapped_store: InMemoryStore) -> None:
        """A writer may remove /objects/book only if every descendant permits it."""
        # Arrange
        bootstrapped_store.put_binary(
            "/policies/ReadOnly",
            b'<Policy xmlns="urn:oasis:names:tc:xacml:3.0:core:schema:wd-17" PolicyId="info:repo/policies/ReadOnly" '
            b'RuleCombiningAlgId="urn:oasis:names:tc:xacml:1.0:rule-combining-algorithm:deny-overrides">'
            b'<Rule RuleId="deny" Effect="Deny"/></Policy>',
            mime_type="application/xml",
        )
        bootstrapped_store.set_property("/objects/book/chapter1/page1", "authz:policy", "/policies/ReadOnly")
        session = bootstrapped_store.session(user_principal="alice")
        delegate = _delegate()

        # Act & Assert
        assert delegate.roles_have_permission(session, "/objects/book/chapter1", ["read"], ["writer"])
        assert not delegate.roles_have_permission(session, "/objects/book", ["remove"], ["writer"])

    def test_unbootstrapped_store_denies(self, store: InMemoryStore) -> None:
        """Without a root policy every check is NotApplicable, which denies."""
        # Arrange
        session = store.session(user_principal="alice")

        # Act & Assert
        assert not _delegate().roles_have_permission(session, "/objects", ["read"], ["admin"])

    def test_pdp_exception_denies(self, bootstrapped_store: InMemoryStore) -> None:
        """A PDP that raises is logged and the check is denied."""
        # Arrange
        factory = MagicMock()
        factory.make_pdp.return_value.evaluate.side_effect = PolicyEnforcementFailure("boom")
        delegate = AuthorizationDelegate(factory)
        delegate.init()
        session = bootstrapped_store.session(user_principal="alice")

        # Act & Assert
        assert delegate.roles_have_permission(session, "/objects", ["read"], ["admin"]) is False

    def test_request_carries_original_ip(self, bootstrapped_store: InMemoryStore) -> None:
        # Arrange
        session = bootstrapped_store.session(user_principal="alice", remote_addr="10.0.0.7")

        # Act
        request = _delegate().build_request(session, "/objects", ["read"], ["reader"])

        # Assert
        assert [(a.attribute_id, a.value) for a in request.environment_attributes] == [
            (ATTRIBUTEID_ENVIRONMENT_ORIGINAL_IP_ADDRESS, "10.0.0.7")
        ]
        assert request.workspace == "default"
        assert request.session is session

    def test_decision_logged_once_per_check(self, bootstrapped_store: InMemoryStore) -> None:
        # Arrange
        decision_logger = MagicMock()
        delegate = _delegate(decision_logger=decision_logger)
        session = bootstrapped_store.session(user_principal="alice")

        # Act
        delegate.roles_have_permission(session, "/objects", ["read"], ["reader"])

        # Assert
        decision_logger.log.assert_called_once()
        permitted, request, results, reason, _ = decision_logger.log.call_args.args
        assert permitted is True
        assert request.resource_id == "/objects"
        assert [r.decision for r in results] == [Decision.PERMIT]
        assert reason == "all_permit"


class TestHasPermission:
    """Tests for checks with roles from a provider."""

    @pytest.fixture
    def roles_store(self, bootstrapped_store: InMemoryStore) -> InMemoryStore:
        bootstrapped_store.set_property("/", ROLES_PROPERTY, ["EVERYONE=reader", "alice=writer"])
        bootstrapped_store.set_property("/objects/book", ROLES_PROPERTY, ["bob=admin"])
        return bootstrapped_store

    def test_user_roles_apply(self, roles_store: InMemoryStore) -> None:
        # Arrange
        delegate = _delegate(roles_provider=PropertyRolesProvider())
        session = roles_store.session(user_principal="alice")

        # Act & Assert
        assert delegate.has_permission(session, "/objects", ["set_property"])

    def test_everyone_roles_merged(self, roles_store: InMemoryStore) -> None:
        """A user with no own assignment still gets EVERYONE's roles."""
        # Arrange
        delegate = _delegate(roles_provider=PropertyRolesProvider())
        session = roles_store.session(user_principal="carol")

        # Act & Assert
        assert delegate.has_permission(session, "/objects", ["read"])
        assert not delegate.has_permission(session, "/objects", ["remove"])

    def test_nearest_assignment_replaces_inherited(self, roles_store: InMemoryStore) -> None:
        """Below /objects/book only bob=admin applies; alice has no roles there."""
        # Arrange
        delegate = _delegate(roles_provider=PropertyRolesProvider())

        # Act & Assert
        assert not delegate.has_permission(roles_store.session(user_principal="alice"), "/objects/book", ["read"])
        assert delegate.has_permission(roles_store.session(user_principal="bob"), "/objects/book", ["remove"])

    def test_roles_lookup_failure_denies(self, roles_store: InMemoryStore) -> None:
        # Arrange
        provider = MagicMock()
        provider.roles_for_path.side_effect = StoreAccessError("down")
        delegate = _delegate(roles_provider=provider)

        # Act & Assert
        assert not delegate.has_permission(roles_store.session(user_principal="alice"), "/objects", ["read"])

    def test_requires_roles_provider(self, roles_store: InMemoryStore) -> None:
        # Act & Assert
        with pytest.raises(PolicyEnforcementFailure):
            _delegate().has_permission(roles_store.session(user_principal="alice"), "/objects", ["read"])


# =============================================================================
# Role providers
# =============================================================================


class TestRolesProviders:
    def test_static_provider(self, session) -> None:
        # Arrange
        provider = StaticRolesProvider({"alice": ("reader", "writer")})

        # Act & Assert
        assert provider.roles_for_path("/anything", session) == {"alice": ["reader", "writer"]}

    def test_property_provider_parses_entries(self, store: InMemoryStore) -> None:
        """Malformed entries are skipped and duplicate roles collapsed."""
        # Arrange
        store.set_property("/objects", ROLES_PROPERTY, ["alice=reader", "alice=reader", "bad", "=x", "bob = writer"])

        # Act
        roles = PropertyRolesProvider().roles_for_path("/objects/book/{dc}title", store.session())

        # Assert
        assert roles == {"alice": ["reader"], "bob": ["writer"]}

    def test_property_provider_without_assignment(self, store: InMemoryStore) -> None:
        # Act & Assert
        assert PropertyRolesProvider().roles_for_path("/objects", store.session()) == {}
