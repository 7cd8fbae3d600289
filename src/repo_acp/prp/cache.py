"""Parsed-policy cache.

Keyed by policy store path. Each entry remembers the SHA-256 checksum of
the document it was parsed from, so a lookup with different content is a
miss and the stale entry is replaced: edits to a policy node take effect
on the next check without explicit invalidation.
"""

from __future__ import annotations

__all__ = [
    "PolicyCache",
    "content_checksum",
]

import hashlib
import threading
from collections import OrderedDict

from repo_acp.pdp.policy import Policy, PolicySet


def content_checksum(content: bytes) -> str:
    return f"sha256:{hashlib.sha256(content).hexdigest()}"


class PolicyCache:
    """Thread-safe LRU cache of parsed policies.

    Args:
        max_entries: Entries kept before the least recently used is evicted.
    """

    def __init__(self, max_entries: int = 256) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._entries: OrderedDict[str, tuple[str, Policy | PolicySet]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, path: str, checksum: str) -> Policy | PolicySet | None:
        """Return the cached policy for path if it was parsed from the same content."""
        with self._lock:
            entry = self._entries.get(path)
            if entry is None or entry[0] != checksum:
                self.misses += 1
                return None
            self._entries.move_to_end(path)
            self.hits += 1
            return entry[1]

    def put(self, path: str, checksum: str, policy: Policy | PolicySet) -> None:
        with self._lock:
            self._entries[path] = (checksum, policy)
            self._entries.move_to_end(path)
            while len(self._entries) > self._max_entries:
                self._entries.popitem(last=False)

    def invalidate(self, path: str | None = None) -> None:
        """Drop one entry, or every entry when path is None."""
        with self._lock:
            if path is None:
                self._entries.clear()
            else:
                self._entries.pop(path, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
