"""Decision enum for policy evaluation outcomes.

These values define the possible outcomes of evaluating one requested
action, used by the PDP to communicate decisions to the delegate.
"""

from __future__ import annotations

__all__ = ["Decision"]

from enum import Enum


class Decision(str, Enum):
    """Policy decision outcome for a single result.

    Inherits from str for easy serialization and comparison.

    Attributes:
        PERMIT: The policy allows the action.
        DENY: The policy forbids the action.
        INDETERMINATE: Evaluation could not complete (see attached status).
        NOT_APPLICABLE: No policy applied to the request.
    """

    PERMIT = "Permit"
    DENY = "Deny"
    INDETERMINATE = "Indeterminate"
    NOT_APPLICABLE = "NotApplicable"
