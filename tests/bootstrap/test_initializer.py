"""Unit tests for WorkspaceInitializer.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from repo_acp.bootstrap import DEFAULT_POLICIES_DIR, DEFAULT_ROOT_POLICY_FILE, WorkspaceInitializer
from repo_acp.constants import POLICY_ASSIGNABLE_MIXIN, POLICY_PROPERTY
from repo_acp.exceptions import BootstrapError
from repo_acp.store.memory import InMemoryStore

from conftest import PERMIT_ALL, policy_xml, rule_xml


@pytest.fixture
def policies_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "policies"
    directory.mkdir()
    (directory / "PermitAll.xml").write_bytes(PERMIT_ALL)
    return directory


class TestWorkspaceInitializer:
    """Tests for installing default policies and linking the root."""

    def test_installs_packaged_policies(self) -> None:
        # Arrange
        store = InMemoryStore()

        # Act
        installed = WorkspaceInitializer().init(store.session(user_principal="bootstrap"))

        # Assert
        assert sorted(installed) == [
            "/policies/AdminRolePolicy",
            "/policies/GlobalRolesPolicySet",
            "/policies/ReaderRolePolicy",
            "/policies/WriterRolePolicy",
        ]
        assert store.session().get_node("/policies/AdminRolePolicy").content

    def test_links_root_to_root_policy(self) -> None:
        # Arrange
        store = InMemoryStore()

        # Act
        WorkspaceInitializer().init(store.session())

        # Assert
        root = store.session().get_root_node()
        assert POLICY_ASSIGNABLE_MIXIN in root.mixins
        assert root.get_property(POLICY_PROPERTY) == "/policies/GlobalRolesPolicySet"

    def test_rerun_is_idempotent(self) -> None:
        # Arrange
        store = InMemoryStore()
        initializer = WorkspaceInitializer()
        initializer.init(store.session())

        # Act
        installed = initializer.init(store.session())

        # Assert
        assert len(installed) == 4
        assert len([p for p in store.all_paths() if p.startswith("/policies/") and "jcr:" not in p]) == 4

    def test_custom_policies(self, policies_dir: Path) -> None:
        # Arrange
        store = InMemoryStore()

        # Act
        installed = WorkspaceInitializer(policies_dir, policies_dir / "PermitAll.xml").init(store.session())

        # Assert
        assert installed == ["/policies/PermitAll"]
        assert store.session().get_root_node().get_property(POLICY_PROPERTY) == "/policies/PermitAll"

    def test_root_policy_must_be_installed(self, policies_dir: Path, tmp_path: Path) -> None:
        """A root policy file outside the installed set cannot be linked."""
        # Arrange
        outside = tmp_path / "Other.xml"
        outside.write_bytes(policy_xml("info:repo/policies/Other", rule_xml("r", "Permit")))

        # Act & Assert
        with pytest.raises(BootstrapError, match="root mixin or policy"):
            WorkspaceInitializer(policies_dir, outside).init(InMemoryStore().session())

    def test_invalid_policy_document(self, policies_dir: Path) -> None:
        # Arrange
        (policies_dir / "Broken.xml").write_bytes(b"<Policy")

        # Act & Assert
        with pytest.raises(BootstrapError, match="default root policies"):
            WorkspaceInitializer(policies_dir, policies_dir / "PermitAll.xml").init(InMemoryStore().session())

    def test_policy_id_without_prefix(self, policies_dir: Path) -> None:
        """Policy IDs must map to store paths."""
        # Arrange
        (policies_dir / "Foreign.xml").write_bytes(policy_xml("urn:other:policy", rule_xml("r", "Permit")))

        # Act & Assert
        with pytest.raises(BootstrapError):
            WorkspaceInitializer(policies_dir, policies_dir / "PermitAll.xml").init(InMemoryStore().session())

    def test_closed_session(self) -> None:
        # Arrange
        session = InMemoryStore().session()
        session.close()

        # Act & Assert
        with pytest.raises(BootstrapError):
            WorkspaceInitializer().init(session)

    @pytest.mark.parametrize(
        ("policies", "root"),
        [
            (None, DEFAULT_ROOT_POLICY_FILE),
            (DEFAULT_POLICIES_DIR, None),
            (Path("/does/not/exist"), DEFAULT_ROOT_POLICY_FILE),
            (DEFAULT_POLICIES_DIR, Path("/does/not/exist.xml")),
        ],
    )
    def test_constructor_validates_inputs(self, policies: Path | None, root: Path | None) -> None:
        # Act & Assert
        with pytest.raises(ValueError):
            WorkspaceInitializer(policies, root)

    def test_empty_directory_rejected(self, tmp_path: Path) -> None:
        # Act & Assert
        with pytest.raises(ValueError, match="empty"):
            WorkspaceInitializer(tmp_path, DEFAULT_ROOT_POLICY_FILE)
