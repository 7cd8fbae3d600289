"""Role resolution for the authorization delegate.

Computing a principal's effective roles at a path is outside the decision
core: the delegate only consumes a provider's answer. Two providers ship:

- StaticRolesProvider: the same principal -> roles mapping everywhere
- PropertyRolesProvider: "principal=role" entries in the authz:roles
  property of the nearest node (from the path upward) that has one
"""

from __future__ import annotations

__all__ = [
    "AccessRolesProvider",
    "PropertyRolesProvider",
    "StaticRolesProvider",
]

from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable

from repo_acp.constants import ROLES_PROPERTY
from repo_acp.store.lookup import get_first_real_node
from repo_acp.store.protocol import StoreNode, StoreSession


@runtime_checkable
class AccessRolesProvider(Protocol):
    def roles_for_path(self, path: str, session: StoreSession) -> dict[str, list[str]]:
        """Return the roles assigned at path, keyed by principal name.

        Raises:
            StoreAccessError: If the store cannot be reached.
        """
        ...


class StaticRolesProvider:
    """Roles that do not depend on the path."""

    def __init__(self, roles: Mapping[str, Iterable[str]]) -> None:
        self._roles = {principal: list(names) for principal, names in roles.items()}

    def roles_for_path(self, path: str, session: StoreSession) -> dict[str, list[str]]:
        return {principal: list(names) for principal, names in self._roles.items()}


class PropertyRolesProvider:
    """Roles read from the nearest authz:roles assignment above a path.

    Assignments do not merge: a node carrying authz:roles replaces every
    assignment made further up the tree.
    """

    def __init__(self, property_name: str = ROLES_PROPERTY) -> None:
        self._property_name = property_name

    def roles_for_path(self, path: str, session: StoreSession) -> dict[str, list[str]]:
        node: StoreNode | None = get_first_real_node(path, session)
        while node is not None:
            if node.has_property(self._property_name):
                return _parse_assignments(node.get_property(self._property_name))
            node = node.parent
        return {}


def _parse_assignments(value: object) -> dict[str, list[str]]:
    entries = value if isinstance(value, (list, tuple)) else [value]
    roles: dict[str, list[str]] = {}
    for entry in entries:
        principal, sep, role = str(entry).partition("=")
        if not sep or not principal.strip() or not role.strip():
            continue
        names = roles.setdefault(principal.strip(), [])
        if role.strip() not in names:
            names.append(role.strip())
    return roles
