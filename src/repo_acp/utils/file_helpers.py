"""File helpers shared by config loading, the CLI and bootstrap."""

from __future__ import annotations

__all__ = [
    "compute_file_checksum",
    "get_app_dir",
    "load_json_object",
    "load_validated_json",
    "require_file_exists",
]

import hashlib
import json
from pathlib import Path
from typing import Any, TypeVar

import click
from pydantic import BaseModel, ValidationError

from repo_acp.constants import APP_NAME

T = TypeVar("T", bound=BaseModel)


def get_app_dir() -> Path:
    """Return the OS-appropriate config directory for repo-acp."""
    return Path(click.get_app_dir(APP_NAME))


def compute_file_checksum(file_path: Path) -> str:
    """Compute SHA256 checksum of file content.

    Args:
        file_path: Path to the file.

    Returns:
        str: Checksum in format "sha256:<hex_digest>".

    Raises:
        FileNotFoundError: If file doesn't exist.
        OSError: If file cannot be read.
    """
    with open(file_path, "rb") as f:
        content = f.read()
    digest = hashlib.sha256(content).hexdigest()
    return f"sha256:{digest}"


def require_file_exists(file_path: Path, file_type: str = "file") -> None:
    """Raise FileNotFoundError with a readable message if file doesn't exist.

    Args:
        file_path: Path to check.
        file_type: Description for error message (e.g., "configuration", "snapshot").

    Raises:
        FileNotFoundError: If file doesn't exist.
    """
    if file_path.exists():
        return
    raise FileNotFoundError(f"{file_type.capitalize()} file not found at {file_path}.")


def load_json_object(file_path: Path, file_type: str = "file") -> dict[str, Any]:
    """Read a JSON file whose top level must be an object.

    Raises:
        ValueError: If the file cannot be read, is not JSON, or is not an object.
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {file_type} file {file_path}: {e}") from e
    except OSError as e:
        raise ValueError(f"Could not read {file_type} file {file_path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{file_type.capitalize()} file {file_path} must contain a JSON object")
    return data


def load_validated_json(
    file_path: Path,
    model_class: type[T],
    file_type: str = "file",
    recovery_hint: str | None = None,
) -> T:
    """Load JSON file and validate against Pydantic model.

    Args:
        file_path: Path to JSON file.
        model_class: Pydantic model class to validate against.
        file_type: Description for error messages (e.g., "config").
        recovery_hint: Optional hint appended to validation errors.

    Returns:
        Validated Pydantic model instance.

    Raises:
        ValueError: If JSON is invalid or validation fails.
    """
    data = load_json_object(file_path, file_type)
    try:
        return model_class.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")
        hint = f"\n\n{recovery_hint}" if recovery_hint else ""
        raise ValueError(
            f"Invalid {file_type} configuration in {file_path}:\n" + "\n".join(errors) + hint
        ) from e
