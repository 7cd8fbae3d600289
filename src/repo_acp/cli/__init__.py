"""Command-line interface for repo-acp.

Provides commands for validating policy documents, mapping policy IDs to
store paths, and running one-off authorization checks against a store
snapshot.
"""

from .main import cli, main

__all__ = ["cli", "main"]
