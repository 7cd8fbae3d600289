"""Protocol definitions for the hierarchical resource store.

The store itself (CRUD, transactions, node types) is an external
collaborator. This module only fixes the surface repo-acp consumes, so any
backend can be adapted without inheriting from our code (structural
subtyping), the same way PDP engines plug in via PolicyDecisionPointProtocol.

Example adapter:

    class JcrSession:
        def get_node(self, path: str) -> StoreNode:
            try:
                return JcrNode(self._session.getNode(path))
            except PathNotFoundException:
                raise PathNotFoundError(path)
"""

from __future__ import annotations

__all__ = [
    "StoreNode",
    "StoreSession",
    "WritableStoreSession",
    "Triple",
]

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, NamedTuple, Protocol, runtime_checkable


class Triple(NamedTuple):
    """One statement of a node's property graph (subject, predicate, object)."""

    subject: str
    predicate: str
    object: Any


@runtime_checkable
class StoreNode(Protocol):
    """A node of the resource hierarchy.

    Thread-safety:
    - Nodes belong to the session that produced them and are not shared
      across concurrent checks.
    """

    @property
    def path(self) -> str:
        """Absolute path of the node ("/" for the root)."""
        ...

    @property
    def name(self) -> str:
        """Last path segment ("" for the root)."""
        ...

    @property
    def parent(self) -> "StoreNode | None":
        """Parent node, None at the root.

        Raises:
            StoreAccessError: If the store cannot be reached.
        """
        ...

    @property
    def node_type(self) -> str:
        """Primary node type name."""
        ...

    @property
    def mixins(self) -> frozenset[str]:
        """Mixin type names applied to the node."""
        ...

    def children(self) -> Iterable["StoreNode"]:
        """Iterate direct child nodes.

        Raises:
            StoreAccessError: If the store cannot be reached.
        """
        ...

    def has_property(self, name: str) -> bool:
        ...

    def get_property(self, name: str) -> Any:
        """Return a property value.

        Raises:
            KeyError: If the property is absent.
            StoreAccessError: If the store cannot be reached.
        """
        ...

    def properties_as_graph(self) -> Sequence[Triple]:
        """Return the node's properties as graph statements about its path.

        Multi-valued properties yield one triple per value.

        Raises:
            StoreAccessError: If the store cannot be reached.
        """
        ...

    @property
    def content(self) -> bytes | None:
        """Binary content of the node, None when it holds none."""
        ...


@runtime_checkable
class StoreSession(Protocol):
    """A read/lookup session into the store, scoped to one authorization check.

    Sessions carry request-scoped identity (user principal, remote address)
    and must never be shared across concurrent checks.
    """

    @property
    def workspace_name(self) -> str:
        ...

    @property
    def user_principal(self) -> str | None:
        """Name of the authenticated user this session acts for."""
        ...

    @property
    def remote_addr(self) -> str | None:
        """Address the originating request came from."""
        ...

    def get_node(self, path: str) -> StoreNode:
        """Return the node at path.

        Raises:
            PathNotFoundError: If no node exists at path.
            StoreAccessError: If the store cannot be reached.
        """
        ...

    def get_root_node(self) -> StoreNode:
        """Return the root node.

        Raises:
            StoreAccessError: If the store cannot be reached.
        """
        ...

    def node_exists(self, path: str) -> bool:
        ...

    def query(self, query: str, bindings: Mapping[str, str]) -> list[dict[str, Any]]:
        """Run a structured query against the store's graph.

        Args:
            query: Query text understood by the store.
            bindings: Variable bindings (e.g. {"resource": "/a/b"}).

        Returns:
            Rows as dicts keyed by variable name, in result order.

        Raises:
            StoreAccessError: If the query cannot be executed.
        """
        ...


@runtime_checkable
class WritableStoreSession(StoreSession, Protocol):
    """Store session with the write operations policy bootstrap needs."""

    def create_binary(self, path: str, content: bytes, mime_type: str, filename: str | None = None) -> StoreNode:
        """Create or replace a binary node at path, creating missing parents.

        Raises:
            StoreAccessError: If the store cannot be written.
        """
        ...

    def set_property(self, path: str, name: str, value: Any) -> None:
        """Set a property on the node at path.

        Raises:
            PathNotFoundError: If no node exists at path.
            StoreAccessError: If the store cannot be written.
        """
        ...

    def add_mixin(self, path: str, mixin: str) -> None:
        ...

    def save(self) -> None:
        """Persist pending changes made through this session."""
        ...
