"""Path helpers for store paths.

Paths are "/"-separated. A segment introduced by PROPERTY_SEGMENT_MARKER
("/{") addresses a property rather than a node, e.g. "/a/{ns}b".
These helpers are pure string operations; they never touch a store.
"""

from __future__ import annotations

__all__ = [
    "has_property_segment",
    "iter_candidate_node_paths",
    "join_path",
    "normalize_resource_id",
    "parent_path",
]

from collections.abc import Iterator

from repo_acp.constants import PATH_SEPARATOR, PROPERTY_SEGMENT_MARKER, ROOT_PATH


def normalize_resource_id(resource_id: str | None) -> str:
    """Treat a missing or empty resource id as the root path."""
    return resource_id or ROOT_PATH


def has_property_segment(path: str) -> bool:
    return PROPERTY_SEGMENT_MARKER in path


def _separator_indexes(path: str) -> list[int]:
    """Indexes of the "/" separators outside {namespace} groups.

    Expanded property names carry namespace URIs, as in
    "/a/{http://purl.org/dc/elements/1.1/}title"; their slashes are part
    of the name.
    """
    indexes: list[int] = []
    depth = 0
    for index, char in enumerate(path):
        if char == "{":
            depth += 1
        elif char == "}":
            depth = max(depth - 1, 0)
        elif char == PATH_SEPARATOR and depth == 0:
            indexes.append(index)
    return indexes


def parent_path(path: str) -> str:
    """Trim the final segment of a path.

    The trimmed segment may be a node or a property pseudo-segment.
    Trimming a top-level segment yields the root.

    Examples:
        >>> parent_path("/a/{ns}b/{ns}c")
        '/a/{ns}b'
        >>> parent_path("/{ns}onlyprop")
        '/'
        >>> parent_path("/a/{http://x/}p")
        '/a'
    """
    trimmed = path.rstrip(PATH_SEPARATOR)
    separators = _separator_indexes(trimmed)
    if not separators or separators[-1] <= 0:
        return ROOT_PATH
    return trimmed[: separators[-1]]


def iter_candidate_node_paths(path: str) -> Iterator[str]:
    """Yield the path, then each prefix left after trimming a trailing property segment.

    Trimming a top-level property segment yields the root.

    Examples:
        >>> list(iter_candidate_node_paths("/a/{ns}b/{ns}c"))
        ['/a/{ns}b/{ns}c', '/a/{ns}b', '/a']
        >>> list(iter_candidate_node_paths("/{http://x/}p"))
        ['/{http://x/}p', '/']
    """
    candidate = path
    while candidate:
        yield candidate
        markers = [i for i in _separator_indexes(candidate) if candidate.startswith(PROPERTY_SEGMENT_MARKER, i)]
        if not markers:
            return
        candidate = candidate[: markers[-1]] or ROOT_PATH


def join_path(parent: str, name: str) -> str:
    if parent == ROOT_PATH:
        return f"{ROOT_PATH}{name}"
    return f"{parent}{PATH_SEPARATOR}{name}"
