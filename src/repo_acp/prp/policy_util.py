"""Policy ID <-> store path mapping and small request helpers.

A policy ID is POLICY_URI_PREFIX followed by the absolute store path of
the policy node:

    info:repo/policies/GlobalRolesPolicySet  <->  /policies/GlobalRolesPolicySet

path_for_id() and id_for_path() are exact inverses.
"""

from __future__ import annotations

__all__ = [
    "get_actions",
    "id_for_path",
    "is_policy_id",
    "path_for_id",
]

from typing import TYPE_CHECKING

from repo_acp.constants import ATTRIBUTEID_ACTION_ID, PATH_SEPARATOR, POLICY_URI_PREFIX
from repo_acp.context.attributes import AttributeCategory

if TYPE_CHECKING:
    from repo_acp.context.request import EvaluationRequest


def is_policy_id(policy_id: str) -> bool:
    """Whether the ID carries the policy scheme prefix followed by a path."""
    return policy_id.startswith(POLICY_URI_PREFIX + PATH_SEPARATOR)


def path_for_id(policy_id: str) -> str:
    """Return the store path for a policy ID.

    Raises:
        ValueError: If the ID does not carry the policy prefix.
    """
    if not is_policy_id(policy_id):
        raise ValueError(f"Policy ID must start with {POLICY_URI_PREFIX}{PATH_SEPARATOR}: {policy_id}")
    return policy_id[len(POLICY_URI_PREFIX) :]


def id_for_path(path: str) -> str:
    """Return the policy ID for a store path.

    Raises:
        ValueError: If the path is not absolute.
    """
    if not path.startswith(PATH_SEPARATOR):
        raise ValueError(f"Policy path must be absolute: {path}")
    return POLICY_URI_PREFIX + path


def get_actions(request: EvaluationRequest) -> set[str]:
    """Return the action ids of a request; empty if they cannot be resolved."""
    result = request.get_attribute(AttributeCategory.ACTION, ATTRIBUTEID_ACTION_ID)
    if result.indeterminate:
        return set()
    return {str(value) for value in result.bag.values}
