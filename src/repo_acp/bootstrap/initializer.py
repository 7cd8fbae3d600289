"""WorkspaceInitializer - install default policies and link the root policy.

The hierarchical policy finder relies on the root node always carrying a
policy. init() establishes that:

1. Each *.xml file in the policies directory is stored as a binary node at
   the path derived from its declared policy ID
   (info:repo/policies/X -> /policies/X)
2. The root node gets the assignable mixin and an authz:policy property
   pointing at the root policy's node

Re-running init() replaces policy content in place and re-links the root,
so it is safe to call on every startup.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_POLICIES_DIR",
    "DEFAULT_ROOT_POLICY_FILE",
    "WorkspaceInitializer",
]

from pathlib import Path

from repo_acp.constants import POLICY_ASSIGNABLE_MIXIN, POLICY_MIME_TYPE, POLICY_PROPERTY
from repo_acp.exceptions import BootstrapError, PathNotFoundError, PolicyLoadError, StoreAccessError
from repo_acp.pdp.policy import get_policy_id
from repo_acp.prp.policy_util import path_for_id
from repo_acp.store.protocol import WritableStoreSession
from repo_acp.telemetry.system.system_logger import get_system_logger

_system_logger = get_system_logger()

DEFAULT_POLICIES_DIR = Path(__file__).parent / "policies"
DEFAULT_ROOT_POLICY_FILE = DEFAULT_POLICIES_DIR / "GlobalRolesPolicySet.xml"

# Errors that mean the store could not be bootstrapped
_BOOTSTRAP_ERRORS = (OSError, ValueError, PolicyLoadError, StoreAccessError, PathNotFoundError)


class WorkspaceInitializer:
    """Loads default policies into a store and assigns the root policy.

    Args:
        policies_dir: Directory of policy documents (*.xml).
        root_policy_file: Policy document to assign to the root node.

    Raises:
        ValueError: If the directory is missing or holds no policy
            documents, or the root policy file does not exist.
    """

    def __init__(
        self,
        policies_dir: Path | None = DEFAULT_POLICIES_DIR,
        root_policy_file: Path | None = DEFAULT_ROOT_POLICY_FILE,
    ) -> None:
        if policies_dir is None:
            raise ValueError("Initial policies directory is None")
        if not policies_dir.is_dir() or not self._policy_files(policies_dir):
            raise ValueError(f"Initial policies directory does not exist or is empty: {policies_dir}")
        if root_policy_file is None or not root_policy_file.is_file():
            raise ValueError(f"Initial root policy file is None or does not exist: {root_policy_file}")
        self._policies_dir = policies_dir
        self._root_policy_file = root_policy_file

    def init(self, session: WritableStoreSession) -> list[str]:
        """Install the default policies and link the root to the root policy.

        Args:
            session: Writable store session.

        Returns:
            Store paths of the installed policies.

        Raises:
            BootstrapError: If a policy cannot be read or stored, or the root
                cannot be linked.
        """
        installed = self._load_initial_policies(session)
        self._link_root_to_policy(session)
        return installed

    @staticmethod
    def _policy_files(directory: Path) -> list[Path]:
        return sorted(p for p in directory.glob("*.xml") if p.is_file())

    def _load_initial_policies(self, session: WritableStoreSession) -> list[str]:
        installed: list[str] = []
        try:
            for policy_file in self._policy_files(self._policies_dir):
                content = policy_file.read_bytes()
                policy_path = path_for_id(get_policy_id(content, source=str(policy_file)))
                node = session.create_binary(policy_path, content, POLICY_MIME_TYPE, policy_file.name)
                installed.append(node.path)
                _system_logger.info(
                    {
                        "event": "policy_installed",
                        "message": f"Added initial policy {policy_file.name} at {node.path}",
                        "file": str(policy_file),
                        "path": node.path,
                    }
                )
            session.save()
        except _BOOTSTRAP_ERRORS as e:
            raise BootstrapError(f"Cannot create default root policies: {e}") from e
        return installed

    def _link_root_to_policy(self, session: WritableStoreSession) -> None:
        try:
            root = session.get_root_node()
            session.add_mixin(root.path, POLICY_ASSIGNABLE_MIXIN)
            content = self._root_policy_file.read_bytes()
            policy_path = path_for_id(get_policy_id(content, source=str(self._root_policy_file)))
            # The root policy must already be in the store
            session.get_node(policy_path)
            session.set_property(root.path, POLICY_PROPERTY, policy_path)
            session.save()
        except _BOOTSTRAP_ERRORS as e:
            raise BootstrapError(f"Cannot configure root mixin or policy: {e}") from e
        _system_logger.info(
            {
                "event": "root_policy_linked",
                "message": f"Root policy set to {policy_path}",
                "path": policy_path,
            }
        )
