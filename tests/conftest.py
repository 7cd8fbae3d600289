"""Shared fixtures: in-memory stores, sessions and policy documents."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timezone

import pytest

from repo_acp.bootstrap import WorkspaceInitializer
from repo_acp.constants import POLICY_ASSIGNABLE_MIXIN, POLICY_MIME_TYPE, POLICY_PROPERTY
from repo_acp.store.memory import InMemoryStore, MemorySession
from repo_acp.telemetry.system.system_logger import set_verbose_diagnostics

FIXED_TIME = datetime(2024, 5, 17, 9, 30, 15, tzinfo=timezone.utc)

XACML_NS = "urn:oasis:names:tc:xacml:3.0:core:schema:wd-17"
STRING_TYPE = "http://www.w3.org/2001/XMLSchema#string"
ROLE_ID = "urn:repo:xacml:2.0:subject:role"
ACTION_ID = "urn:oasis:names:tc:xacml:1.0:action:action-id"
SUBJECT_CATEGORY = "urn:oasis:names:tc:xacml:1.0:subject-category:access-subject"
ACTION_CATEGORY = "urn:oasis:names:tc:xacml:3.0:attribute-category:action"
RESOURCE_CATEGORY = "urn:oasis:names:tc:xacml:3.0:attribute-category:resource"


def match_xml(
    value: str,
    attribute_id: str,
    category: str,
    *,
    function: str = "string-equal",
    data_type: str = STRING_TYPE,
    must_be_present: bool = False,
) -> str:
    """Render one XACML 3.0 Match element."""
    return (
        f'<Match MatchId="urn:oasis:names:tc:xacml:1.0:function:{function}">'
        f'<AttributeValue DataType="{data_type}">{value}</AttributeValue>'
        f'<AttributeDesignator Category="{category}" AttributeId="{attribute_id}" '
        f'DataType="{data_type}" MustBePresent="{str(must_be_present).lower()}"/>'
        f"</Match>"
    )


def target_xml(*any_of: list[str]) -> str:
    """Render a Target: each argument is one AnyOf holding one AllOf per match."""
    if not any_of:
        return "<Target/>"
    body = "".join(
        "<AnyOf>" + "".join(f"<AllOf>{m}</AllOf>" for m in matches) + "</AnyOf>" for matches in any_of
    )
    return f"<Target>{body}</Target>"


def rule_xml(rule_id: str, effect: str, target: str = "") -> str:
    return f'<Rule RuleId="{rule_id}" Effect="{effect}">{target}</Rule>'


def policy_xml(
    policy_id: str,
    rules: str,
    *,
    algorithm: str = "deny-overrides",
    target: str = "<Target/>",
) -> bytes:
    """Render a Policy document."""
    return (
        f'<Policy xmlns="{XACML_NS}" PolicyId="{policy_id}" '
        f'RuleCombiningAlgId="urn:oasis:names:tc:xacml:1.0:rule-combining-algorithm:{algorithm}">'
        f"{target}{rules}</Policy>"
    ).encode("utf-8")


def policy_set_xml(
    policy_set_id: str,
    children: str,
    *,
    algorithm: str = "first-applicable",
    target: str = "<Target/>",
) -> bytes:
    """Render a PolicySet document."""
    return (
        f'<PolicySet xmlns="{XACML_NS}" PolicySetId="{policy_set_id}" '
        f'PolicyCombiningAlgId="urn:oasis:names:tc:xacml:1.0:policy-combining-algorithm:{algorithm}">'
        f"{target}{children}</PolicySet>"
    ).encode("utf-8")


def install_policy(store: InMemoryStore, path: str, content: bytes) -> None:
    """Store a policy document as a binary node."""
    store.put_binary(path, content, mime_type=POLICY_MIME_TYPE)


def assign_policy(store: InMemoryStore, node_path: str, policy_path: str) -> None:
    """Point node_path's authz:policy at policy_path."""
    store.put_node(node_path)
    store.add_mixin(node_path, POLICY_ASSIGNABLE_MIXIN)
    store.set_property(node_path, POLICY_PROPERTY, policy_path)


PERMIT_ALL = policy_xml("info:repo/policies/PermitAll", rule_xml("permit", "Permit"))
DENY_ALL = policy_xml("info:repo/policies/DenyAll", rule_xml("deny", "Deny"))


@pytest.fixture(autouse=True)
def _reset_verbose_diagnostics() -> Iterator[None]:
    """Keep the shared system logger at INFO between tests."""
    yield
    set_verbose_diagnostics(False)


@pytest.fixture
def store() -> InMemoryStore:
    """Store with a small content tree and no policies.

    /objects
    /objects/book                 dc:title, dc:subject (two values)
    /objects/book/chapter1
    /objects/book/chapter1/page1
    /objects/book/cover           binary (content child is internal)
    /jcr:system
    """
    return InMemoryStore.from_snapshot(
        {
            "/objects/book": {
                "properties": {"dc:title": "A Book", "dc:subject": ["history", "maps"], "pages": 120},
            },
            "/objects/book/chapter1/page1": {},
            "/objects/book/cover": {"content": "png bytes", "mime_type": "image/png"},
            "/jcr:system": {"type": "mode:system"},
        }
    )


@pytest.fixture
def session(store: InMemoryStore) -> MemorySession:
    return store.session(user_principal="alice", remote_addr="10.0.0.7")


@pytest.fixture
def bootstrapped_store(store: InMemoryStore) -> InMemoryStore:
    """The content tree with the packaged default policies installed."""
    WorkspaceInitializer().init(store.session(user_principal="bootstrap"))
    return store
