"""Bootstrap of the default policies into a store.

Structure:
    initializer.py  - WorkspaceInitializer
    policies/       - Default policy documents shipped with the package
"""

from repo_acp.bootstrap.initializer import (
    DEFAULT_POLICIES_DIR,
    DEFAULT_ROOT_POLICY_FILE,
    WorkspaceInitializer,
)

__all__ = [
    "DEFAULT_POLICIES_DIR",
    "DEFAULT_ROOT_POLICY_FILE",
    "WorkspaceInitializer",
]
