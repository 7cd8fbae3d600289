"""Unit tests for store path helpers, tagged lookups and the in-memory store.

Tests use the AAA pattern (Arrange-Act-Assert) for clarity.
"""

from __future__ import annotations

import pytest

from repo_acp.exceptions import PathNotFoundError, StoreAccessError
from repo_acp.store import (
    InMemoryStore,
    LookupOutcome,
    MemorySession,
    get_first_real_node,
    has_property_segment,
    iter_candidate_node_paths,
    join_path,
    lookup_node,
    normalize_resource_id,
    parent_path,
)


# =============================================================================
# Paths
# =============================================================================


class TestPaths:
    """Tests for pure path helpers."""

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/a/{ns}b/{ns}c", "/a/{ns}b"),
            ("/{ns}onlyprop", "/"),
            ("/a", "/"),
            ("/a/b/", "/a"),
            ("/", "/"),
            ("/{http://purl.org/dc/elements/1.1/}title", "/"),
            ("/a/{http://x/}b/{http://y/}c", "/a/{http://x/}b"),
        ],
    )
    def test_parent_path(self, path: str, expected: str) -> None:
        """parent_path trims exactly one segment, never past the root."""
        # Act & Assert
        assert parent_path(path) == expected

    def test_candidate_paths_trim_property_segments(self) -> None:
        """Candidates drop trailing property segments one at a time."""
        # Act
        candidates = list(iter_candidate_node_paths("/a/{ns}b/{ns}c"))

        # Assert
        assert candidates == ["/a/{ns}b/{ns}c", "/a/{ns}b", "/a"]

    def test_candidate_paths_for_top_level_property(self) -> None:
        """Trimming a top-level property segment leaves the root."""
        # Act & Assert
        assert list(iter_candidate_node_paths("/{ns}onlyprop")) == ["/{ns}onlyprop", "/"]

    def test_candidate_paths_ignore_slashes_in_namespaces(self) -> None:
        """Slashes inside {namespace} groups are part of the property name."""
        # Act
        candidates = list(iter_candidate_node_paths("/a/{http://x/}b/{http://y/ns/}c"))

        # Assert
        assert candidates == ["/a/{http://x/}b/{http://y/ns/}c", "/a/{http://x/}b", "/a"]

    def test_candidate_paths_for_plain_node(self) -> None:
        # Act & Assert
        assert list(iter_candidate_node_paths("/a/b")) == ["/a/b"]

    @pytest.mark.parametrize(("resource_id", "expected"), [(None, "/"), ("", "/"), ("/x", "/x")])
    def test_normalize_resource_id(self, resource_id: str | None, expected: str) -> None:
        """Missing or empty resource ids mean the root."""
        # Act & Assert
        assert normalize_resource_id(resource_id) == expected

    def test_join_and_property_detection(self) -> None:
        # Act & Assert
        assert join_path("/", "a") == "/a"
        assert join_path("/a", "b") == "/a/b"
        assert has_property_segment("/a/{ns}b")
        assert not has_property_segment("/a/b")


# =============================================================================
# Lookups
# =============================================================================


class TestLookup:
    """Tests for the found / not found / failure tagging."""

    def test_found(self, session: MemorySession) -> None:
        # Act
        lookup = lookup_node(session, "/objects/book")

        # Assert
        assert lookup.found
        assert lookup.node is not None
        assert lookup.node.path == "/objects/book"

    def test_not_found_is_not_failure(self, session: MemorySession) -> None:
        """A missing node is NOT_FOUND, which callers treat as a fallback case."""
        # Act
        lookup = lookup_node(session, "/nope")

        # Assert
        assert lookup.outcome is LookupOutcome.NOT_FOUND
        assert not lookup.failed

    def test_closed_session_is_failure(self, session: MemorySession) -> None:
        """An unreachable store is a FAILURE carrying the reason."""
        # Arrange
        session.close()

        # Act
        lookup = lookup_node(session, "/objects/book")

        # Assert
        assert lookup.failed
        assert lookup.reason

    def test_no_session_is_failure(self) -> None:
        # Act & Assert
        assert lookup_node(None, "/a").failed


class TestGetFirstRealNode:
    """Tests for nearest-node resolution with root fallback."""

    def test_property_path_resolves_to_holding_node(self, session: MemorySession) -> None:
        """Trailing property segments are trimmed to the node that exists."""
        # Act
        node = get_first_real_node("/objects/book/{dc}title", session)

        # Assert
        assert node.path == "/objects/book"

    def test_missing_path_falls_back_to_root(self, session: MemorySession) -> None:
        """No existing candidate falls back to the root node."""
        # Act
        node = get_first_real_node("/missing/{ns}p", session)

        # Assert
        assert node.path == "/"

    @pytest.mark.parametrize("path", [None, ""])
    def test_empty_path_is_root(self, session: MemorySession, path: str | None) -> None:
        # Act & Assert
        assert get_first_real_node(path, session).path == "/"

    def test_store_failure_raises(self, session: MemorySession) -> None:
        """A store failure is not masked by the root fallback."""
        # Arrange
        session.close()

        # Act & Assert
        with pytest.raises(StoreAccessError):
            get_first_real_node("/objects/book", session)


# =============================================================================
# In-memory store
# =============================================================================


class TestInMemoryStore:
    """Tests for the in-memory store used by tests and the CLI."""

    def test_snapshot_creates_missing_ancestors(self, store: InMemoryStore) -> None:
        # Act & Assert
        assert store.exists("/objects")
        assert store.exists("/objects/book/chapter1")

    def test_binary_gets_content_child(self, session: MemorySession) -> None:
        """Binaries keep their bytes in an internal content child node."""
        # Act
        node = session.get_node("/objects/book/cover")

        # Assert
        assert node.content == b"png bytes"
        assert [child.name for child in node.children()] == ["jcr:content"]

    def test_properties_as_graph(self, session: MemorySession) -> None:
        """Multi-valued properties yield one triple per value."""
        # Act
        triples = session.get_node("/objects/book").properties_as_graph()

        # Assert
        subjects = [t.object for t in triples if t.predicate == "dc:subject"]
        assert subjects == ["history", "maps"]
        assert all(t.subject == "/objects/book" for t in triples)

    def test_parent_chain_reaches_root(self, session: MemorySession) -> None:
        # Arrange
        node = session.get_node("/objects/book/chapter1")

        # Act
        chain = []
        current = node
        while current is not None:
            chain.append(current.path)
            current = current.parent

        # Assert
        assert chain == ["/objects/book/chapter1", "/objects/book", "/objects", "/"]

    def test_missing_node_raises_path_not_found(self, session: MemorySession) -> None:
        # Act & Assert
        with pytest.raises(PathNotFoundError):
            session.get_node("/nope")

    def test_closed_session_raises_store_access_error(self, session: MemorySession) -> None:
        # Arrange
        session.close()

        # Act & Assert
        with pytest.raises(StoreAccessError):
            session.get_root_node()

    def test_remove_node_removes_subtree(self, store: InMemoryStore) -> None:
        # Act
        store.remove_node("/objects/book")

        # Assert
        assert not store.exists("/objects/book/chapter1/page1")
        assert store.exists("/objects")

    def test_root_cannot_be_removed(self, store: InMemoryStore) -> None:
        # Act & Assert
        with pytest.raises(ValueError):
            store.remove_node("/")

    def test_query_with_bound_resource(self, session: MemorySession) -> None:
        """A single-pattern query returns one row per matching triple."""
        # Act
        rows = session.query("SELECT ?s WHERE { ?resource <dc:subject> ?s }", {"resource": "/objects/book"})

        # Assert
        assert [row["s"] for row in rows] == ["history", "maps"]

    def test_unsupported_query_is_store_error(self, session: MemorySession) -> None:
        # Act & Assert
        with pytest.raises(StoreAccessError):
            session.query("DESCRIBE <x>", {})
