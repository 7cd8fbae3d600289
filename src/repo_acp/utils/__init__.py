"""Shared utilities (file helpers, logging infrastructure)."""

__all__: list[str] = []
