"""Resource store interface.

The hierarchical store is an external collaborator; this package defines
the protocol repo-acp consumes plus helpers that work against any adapter.

Structure:
    protocol.py  - StoreSession / StoreNode / WritableStoreSession protocols
    paths.py     - Pure path helpers (parent, property segments)
    lookup.py    - Tagged lookups (found / not found / failure), nearest real node
    memory.py    - In-memory implementation (tests, CLI)
"""

from repo_acp.store.lookup import LookupOutcome, NodeLookup, get_first_real_node, lookup_node
from repo_acp.store.memory import InMemoryStore, MemoryNode, MemorySession
from repo_acp.store.paths import (
    has_property_segment,
    iter_candidate_node_paths,
    join_path,
    normalize_resource_id,
    parent_path,
)
from repo_acp.store.protocol import StoreNode, StoreSession, Triple, WritableStoreSession

__all__ = [
    # Protocols
    "StoreNode",
    "StoreSession",
    "Triple",
    "WritableStoreSession",
    # Lookups
    "LookupOutcome",
    "NodeLookup",
    "get_first_real_node",
    "lookup_node",
    # Paths
    "has_property_segment",
    "iter_candidate_node_paths",
    "join_path",
    "normalize_resource_id",
    "parent_path",
    # In-memory store
    "InMemoryStore",
    "MemoryNode",
    "MemorySession",
]
