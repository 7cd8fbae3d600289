"""In-memory resource store.

A dict-backed implementation of the store protocols, used by the test
suite and the `repo-acp check` command. It is not a persistence layer:
state lives only as long as the InMemoryStore object.

Structure:
    InMemoryStore   - the tree (path -> node record), thread-safe
    MemorySession   - per-check view carrying identity and workspace
    MemoryNode      - lightweight handle to one path within a session

Queries accept a single triple pattern:

    SELECT ?value WHERE { ?resource <predicate> ?value }

where each term is a ?variable, an <iri/path>, or a "literal". Bindings
passed to query() fill variables before matching.
"""

from __future__ import annotations

__all__ = [
    "InMemoryStore",
    "MemoryNode",
    "MemorySession",
]

import re
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from repo_acp.constants import CONTENT_NODE_NAME, ROOT_PATH
from repo_acp.exceptions import PathNotFoundError, StoreAccessError
from repo_acp.store.paths import join_path, parent_path
from repo_acp.store.protocol import Triple

NODE_TYPE_FOLDER = "nt:folder"
NODE_TYPE_FILE = "nt:file"
NODE_TYPE_RESOURCE = "nt:resource"
NODE_TYPE_ROOT = "mode:root"

# Predicates every node reports in its graph
PRIMARY_TYPE_PREDICATE = "jcr:primaryType"
MIXIN_TYPES_PREDICATE = "jcr:mixinTypes"

_QUERY_PATTERN = re.compile(
    r"^\s*SELECT\s+\?(?P<select>\w+)\s+WHERE\s*\{\s*"
    r"(?P<subject>\S+)\s+(?P<predicate>\S+)\s+(?P<object>\S+)\s*\.?\s*\}\s*$",
    re.IGNORECASE | re.DOTALL,
)


@dataclass
class _NodeRecord:
    node_type: str
    mixins: set[str] = field(default_factory=set)
    properties: dict[str, Any] = field(default_factory=dict)
    content: bytes | None = None


class InMemoryStore:
    """Thread-safe in-memory tree of nodes keyed by path.

    The root node always exists and cannot be removed.
    """

    def __init__(self, workspace_name: str = "default") -> None:
        self.workspace_name = workspace_name
        self._lock = threading.RLock()
        self._nodes: dict[str, _NodeRecord] = {ROOT_PATH: _NodeRecord(node_type=NODE_TYPE_ROOT)}

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, Any], workspace_name: str = "default") -> InMemoryStore:
        """Build a store from a snapshot mapping.

        Snapshot format (all keys optional except the path):

            {
                "/objects/book": {
                    "type": "nt:folder",
                    "mixins": ["authz:xacmlAssignable"],
                    "properties": {"dc:title": "A Book", "dc:subject": ["x", "y"]},
                    "content": "text stored as a binary"
                }
            }

        Missing ancestors are created as folders. Entries with "content"
        become binaries with a content child node.

        Args:
            snapshot: Mapping of path to node description.
            workspace_name: Workspace name reported by sessions.

        Returns:
            A populated InMemoryStore.
        """
        store = cls(workspace_name=workspace_name)
        # Parents first so explicit types are not overwritten by auto-created folders
        for path in sorted(snapshot, key=lambda p: p.count("/")):
            entry = snapshot[path] or {}
            content = entry.get("content")
            if content is not None:
                data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
                store.put_binary(path, data, mime_type=entry.get("mime_type", "application/octet-stream"))
            else:
                store.put_node(path, node_type=entry.get("type", NODE_TYPE_FOLDER))
            for mixin in entry.get("mixins", ()):
                store.add_mixin(path, mixin)
            for name, value in entry.get("properties", {}).items():
                store.set_property(path, name, value)
        return store

    def session(self, user_principal: str | None = None, remote_addr: str | None = None) -> MemorySession:
        """Open a session for one authorization check."""
        return MemorySession(self, user_principal=user_principal, remote_addr=remote_addr)

    # -------------------------------------------------------------------------
    # Tree mutation
    # -------------------------------------------------------------------------

    def put_node(self, path: str, node_type: str = NODE_TYPE_FOLDER) -> None:
        """Create a node (and any missing ancestors); keeps an existing node."""
        with self._lock:
            self._ensure_parents(path)
            self._nodes.setdefault(path, _NodeRecord(node_type=node_type))

    def put_binary(self, path: str, content: bytes, mime_type: str, filename: str | None = None) -> None:
        """Create or replace a binary node with a content child."""
        with self._lock:
            self._ensure_parents(path)
            record = self._nodes.setdefault(path, _NodeRecord(node_type=NODE_TYPE_FILE))
            record.node_type = NODE_TYPE_FILE
            if filename is not None:
                record.properties["ebucore:filename"] = filename
            content_path = join_path(path, CONTENT_NODE_NAME)
            self._nodes[content_path] = _NodeRecord(
                node_type=NODE_TYPE_RESOURCE,
                properties={"jcr:mimeType": mime_type},
                content=bytes(content),
            )

    def set_property(self, path: str, name: str, value: Any) -> None:
        with self._lock:
            self._record(path).properties[name] = list(value) if isinstance(value, (list, tuple)) else value

    def remove_property(self, path: str, name: str) -> None:
        with self._lock:
            self._record(path).properties.pop(name, None)

    def add_mixin(self, path: str, mixin: str) -> None:
        with self._lock:
            self._record(path).mixins.add(mixin)

    def remove_node(self, path: str) -> None:
        """Remove a node and its whole subtree."""
        if path == ROOT_PATH:
            raise ValueError("The root node cannot be removed")
        with self._lock:
            prefix = path.rstrip("/") + "/"
            for existing in [p for p in self._nodes if p == path or p.startswith(prefix)]:
                del self._nodes[existing]

    # -------------------------------------------------------------------------
    # Reads (used by MemorySession / MemoryNode)
    # -------------------------------------------------------------------------

    def exists(self, path: str) -> bool:
        with self._lock:
            return path in self._nodes

    def child_paths(self, path: str) -> list[str]:
        with self._lock:
            return sorted(p for p in self._nodes if p != ROOT_PATH and parent_path(p) == path)

    def all_paths(self) -> list[str]:
        with self._lock:
            return sorted(self._nodes)

    def _record(self, path: str) -> _NodeRecord:
        try:
            return self._nodes[path]
        except KeyError:
            raise PathNotFoundError(path) from None

    def _ensure_parents(self, path: str) -> None:
        parent = parent_path(path)
        while parent not in self._nodes:
            self._ensure_parents(parent)
            self._nodes[parent] = _NodeRecord(node_type=NODE_TYPE_FOLDER)


class MemorySession:
    """A session onto an InMemoryStore for one authorization check.

    Closing the session makes every later operation raise StoreAccessError,
    mirroring a store session that has been logged out.
    """

    def __init__(
        self,
        store: InMemoryStore,
        *,
        user_principal: str | None = None,
        remote_addr: str | None = None,
    ) -> None:
        self._store = store
        self._user_principal = user_principal
        self._remote_addr = remote_addr
        self._live = True

    @property
    def store(self) -> InMemoryStore:
        return self._store

    @property
    def workspace_name(self) -> str:
        return self._store.workspace_name

    @property
    def user_principal(self) -> str | None:
        return self._user_principal

    @property
    def remote_addr(self) -> str | None:
        return self._remote_addr

    @property
    def is_live(self) -> bool:
        return self._live

    def close(self) -> None:
        self._live = False

    def get_node(self, path: str) -> MemoryNode:
        self._check_live()
        if not self._store.exists(path):
            raise PathNotFoundError(path)
        return MemoryNode(self, path)

    def get_root_node(self) -> MemoryNode:
        self._check_live()
        return MemoryNode(self, ROOT_PATH)

    def node_exists(self, path: str) -> bool:
        self._check_live()
        return self._store.exists(path)

    def query(self, query: str, bindings: Mapping[str, str]) -> list[dict[str, Any]]:
        self._check_live()
        match = _QUERY_PATTERN.match(query)
        if match is None:
            raise StoreAccessError(f"Unsupported query: {query!r}")

        select = match.group("select")
        terms = {
            position: _parse_term(match.group(position), bindings)
            for position in ("subject", "predicate", "object")
        }
        rows: list[dict[str, Any]] = []
        for path in self._store.all_paths():
            for triple in MemoryNode(self, path).properties_as_graph():
                row = _match_triple(triple, terms)
                if row is not None and select in row:
                    rows.append(row)
        return rows

    # Writes (WritableStoreSession) - applied immediately, save() is a no-op

    def create_binary(self, path: str, content: bytes, mime_type: str, filename: str | None = None) -> MemoryNode:
        self._check_live()
        self._store.put_binary(path, content, mime_type, filename)
        return MemoryNode(self, path)

    def set_property(self, path: str, name: str, value: Any) -> None:
        self._check_live()
        self._store.set_property(path, name, value)

    def add_mixin(self, path: str, mixin: str) -> None:
        self._check_live()
        self._store.add_mixin(path, mixin)

    def save(self) -> None:
        self._check_live()

    def _check_live(self) -> None:
        if not self._live:
            raise StoreAccessError("Session is closed")

    def _record(self, path: str) -> _NodeRecord:
        self._check_live()
        try:
            return self._store._record(path)
        except PathNotFoundError as e:
            # Node vanished under a live handle - treat as a store fault
            raise StoreAccessError(f"Node no longer exists: {path}", path=path) from e


class MemoryNode:
    """Handle to one node of an InMemoryStore, bound to a session."""

    def __init__(self, session: MemorySession, path: str) -> None:
        self._session = session
        self._path = path

    def __repr__(self) -> str:
        return f"MemoryNode({self._path!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, MemoryNode) and other._path == self._path

    def __hash__(self) -> int:
        return hash(self._path)

    @property
    def path(self) -> str:
        return self._path

    @property
    def name(self) -> str:
        if self._path == ROOT_PATH:
            return ""
        return self._path.rsplit("/", 1)[-1]

    @property
    def parent(self) -> MemoryNode | None:
        if self._path == ROOT_PATH:
            return None
        return self._session.get_node(parent_path(self._path))

    @property
    def node_type(self) -> str:
        return self._session._record(self._path).node_type

    @property
    def mixins(self) -> frozenset[str]:
        return frozenset(self._session._record(self._path).mixins)

    def children(self) -> Iterator[MemoryNode]:
        self._session._check_live()
        for child in self._session.store.child_paths(self._path):
            yield MemoryNode(self._session, child)

    def has_property(self, name: str) -> bool:
        return name in self._session._record(self._path).properties

    def get_property(self, name: str) -> Any:
        return self._session._record(self._path).properties[name]

    def properties_as_graph(self) -> list[Triple]:
        record = self._session._record(self._path)
        triples = [Triple(self._path, PRIMARY_TYPE_PREDICATE, record.node_type)]
        triples.extend(Triple(self._path, MIXIN_TYPES_PREDICATE, mixin) for mixin in sorted(record.mixins))
        for name, value in record.properties.items():
            values = value if isinstance(value, list) else [value]
            triples.extend(Triple(self._path, name, v) for v in values)
        return triples

    @property
    def content(self) -> bytes | None:
        record = self._session._record(self._path)
        if record.content is not None:
            return record.content
        content_path = join_path(self._path, CONTENT_NODE_NAME)
        if self._session.store.exists(content_path):
            return self._session._record(content_path).content
        return None


def _parse_term(term: str, bindings: Mapping[str, str]) -> tuple[str, Any]:
    """Parse a query term into ("var", name) or ("const", value)."""
    if term.startswith("?"):
        name = term[1:]
        if name in bindings:
            return ("const", bindings[name])
        return ("var", name)
    if term.startswith("<") and term.endswith(">"):
        return ("const", term[1:-1])
    if len(term) >= 2 and term[0] == term[-1] == '"':
        return ("const", term[1:-1])
    raise StoreAccessError(f"Unsupported query term: {term!r}")


def _match_triple(triple: Triple, terms: dict[str, tuple[str, Any]]) -> dict[str, Any] | None:
    row: dict[str, Any] = {}
    for position, (kind, value) in terms.items():
        actual = getattr(triple, position)
        if kind == "const":
            if str(actual) != str(value):
                return None
        elif value in row and row[value] != actual:
            return None
        else:
            row[value] = actual
    return row
