"""Descendant resource finder.

Enumerates the resources below a parent resource for requests scoped to
Descendants (the PDP then evaluates each of them). Internal nodes are
never reported and never descended into:

- jcr:system and the jcr:content child that holds a binary's bytes
- any node whose name carries a reserved prefix (jcr:, mode:, rep:)
"""

from __future__ import annotations

__all__ = [
    "DescendantResourceFinder",
    "ResourceFinderResult",
    "is_system_node",
]

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from repo_acp.constants import SYSTEM_NAME_PREFIXES, SYSTEM_NODE_NAMES
from repo_acp.context.status import Status
from repo_acp.exceptions import StoreAccessError
from repo_acp.store.lookup import lookup_node
from repo_acp.store.paths import normalize_resource_id
from repo_acp.telemetry.system.system_logger import get_system_logger

if TYPE_CHECKING:
    from repo_acp.store.protocol import StoreNode, StoreSession

_system_logger = get_system_logger()


@dataclass(frozen=True, slots=True)
class ResourceFinderResult:
    """Resources found under a parent, and the parents that could not be read.

    Attributes:
        resources: Paths of the resources found.
        failures: Parent id -> processing-error status, for failed lookups.
    """

    resources: frozenset[str] = frozenset()
    failures: Mapping[str, Status] = field(default_factory=dict)

    @property
    def failed(self) -> bool:
        return bool(self.failures)


def is_system_node(name: str) -> bool:
    """Whether a node name marks an internal, store-managed node."""
    return name in SYSTEM_NODE_NAMES or name.startswith(SYSTEM_NAME_PREFIXES)


class DescendantResourceFinder:
    """Finds child and descendant resources of a parent resource."""

    def is_child_supported(self) -> bool:
        return True

    def is_descendant_supported(self) -> bool:
        return True

    def find_child_resources(self, parent_id: str, session: StoreSession | None) -> ResourceFinderResult:
        """Return the immediate children of parent_id."""
        return self._find(parent_id, session, recursive=False)

    def find_descendant_resources(self, parent_id: str, session: StoreSession | None) -> ResourceFinderResult:
        """Return every descendant of parent_id, depth-first."""
        return self._find(parent_id, session, recursive=True)

    def _find(self, parent_id: str, session: StoreSession | None, *, recursive: bool) -> ResourceFinderResult:
        parent_id = normalize_resource_id(parent_id)
        lookup = lookup_node(session, parent_id)
        if lookup.failed:
            return self._failure(parent_id, lookup.reason or "Store unavailable")
        if not lookup.found:
            return ResourceFinderResult()

        found: list[str] = []
        stack: list[StoreNode] = [lookup.node]  # type: ignore[list-item]
        try:
            while stack:
                node = stack.pop()
                for child in node.children():
                    if is_system_node(child.name):
                        continue
                    found.append(child.path)
                    if recursive:
                        stack.append(child)
        except StoreAccessError as e:
            return self._failure(parent_id, str(e))
        return ResourceFinderResult(resources=frozenset(found))

    @staticmethod
    def _failure(parent_id: str, reason: str) -> ResourceFinderResult:
        _system_logger.warning(
            {
                "event": "resource_enumeration_failed",
                "message": f"Cannot enumerate resources under {parent_id}: {reason}",
                "parent_id": parent_id,
            }
        )
        return ResourceFinderResult(failures={parent_id: Status.processing_error(reason)})
