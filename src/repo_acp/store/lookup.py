"""Tagged node lookups.

Store sessions signal "no such node" and "store unreachable" with different
exceptions. lookup_node() folds both into a NodeLookup so callers branch on
a value instead of exception plumbing:

- FOUND: node is present
- NOT_FOUND: continue with a fallback (parent, root, empty bag)
- FAILURE: infrastructure problem, surface as a processing error
"""

from __future__ import annotations

__all__ = [
    "LookupOutcome",
    "NodeLookup",
    "get_first_real_node",
    "lookup_node",
]

from dataclasses import dataclass
from enum import Enum

from repo_acp.exceptions import PathNotFoundError, StoreAccessError
from repo_acp.store.paths import iter_candidate_node_paths, normalize_resource_id
from repo_acp.store.protocol import StoreNode, StoreSession


class LookupOutcome(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILURE = "failure"


@dataclass(frozen=True, slots=True)
class NodeLookup:
    """Result of looking up one path.

    Attributes:
        outcome: Which of the three cases occurred.
        path: The path that was looked up.
        node: The node, when FOUND.
        reason: Failure detail, when FAILURE.
    """

    outcome: LookupOutcome
    path: str
    node: StoreNode | None = None
    reason: str | None = None

    @property
    def found(self) -> bool:
        return self.outcome is LookupOutcome.FOUND

    @property
    def failed(self) -> bool:
        return self.outcome is LookupOutcome.FAILURE


def lookup_node(session: StoreSession | None, path: str) -> NodeLookup:
    """Look up a node without raising.

    Args:
        session: Store session for the current check (None counts as a failure).
        path: Absolute node path.

    Returns:
        NodeLookup tagged FOUND, NOT_FOUND or FAILURE.
    """
    if session is None:
        return NodeLookup(LookupOutcome.FAILURE, path, reason="No store session available")
    try:
        return NodeLookup(LookupOutcome.FOUND, path, node=session.get_node(path))
    except PathNotFoundError:
        return NodeLookup(LookupOutcome.NOT_FOUND, path)
    except StoreAccessError as e:
        return NodeLookup(LookupOutcome.FAILURE, path, reason=str(e))


def get_first_real_node(path: str | None, session: StoreSession) -> StoreNode:
    """Find the nearest existing node for a possibly property-qualified path.

    Tries the path itself, then trims trailing property pseudo-segments one
    at a time. Falls back to the root node when no candidate exists, so this
    never fails for a reachable store.

    Args:
        path: Node or property path; empty means the root.
        session: Store session for the current check.

    Returns:
        The nearest existing node.

    Raises:
        StoreAccessError: If the store cannot be reached.
    """
    for candidate in iter_candidate_node_paths(normalize_resource_id(path)):
        lookup = lookup_node(session, candidate)
        if lookup.found:
            return lookup.node  # type: ignore[return-value]
        if lookup.failed:
            raise StoreAccessError(f"Cannot reach store: {lookup.reason}", path=candidate)
    return session.get_root_node()
