"""CLI output styling utilities.

Provides consistent styling helpers for CLI output:
- Cyan bold for section headers and labels
- Green for success messages (with checkmark)
- Red for error messages (with cross)
- Dim for neutral/empty state messages
"""

from __future__ import annotations

__all__ = [
    "style_decision",
    "style_dim",
    "style_error",
    "style_header",
    "style_label",
    "style_success",
]

import click


def style_header(title: str) -> str:
    """Style a section header with dashes.

    Args:
        title: The header title text.

    Returns:
        Styled string in format "--- Title ---" with cyan bold.

    Example:
        >>> click.echo(style_header("Results"))
        --- Results ---
    """
    return click.style(f"--- {title} ---", fg="cyan", bold=True)


def style_label(label: str) -> str:
    """Style a label (colon appended) in cyan bold."""
    return click.style(f"{label}:", fg="cyan", bold=True)


def style_success(message: str) -> str:
    """Style a success message with checkmark.

    Example:
        >>> click.echo(style_success("Policy valid"))
        ✓ Policy valid
    """
    return click.style(f"✓ {message}", fg="green")


def style_error(message: str) -> str:
    """Style an error message with cross mark.

    Example:
        >>> click.echo(style_error("File not found"), err=True)
        ✗ File not found
    """
    return click.style(f"✗ {message}", fg="red")


def style_dim(message: str) -> str:
    return click.style(message, dim=True)


def style_decision(decision: str) -> str:
    """Color a decision value: Permit green, Deny red, anything else yellow."""
    colors = {"Permit": "green", "PERMIT": "green", "Deny": "red", "DENY": "red"}
    return click.style(decision, fg=colors.get(decision, "yellow"), bold=True)
