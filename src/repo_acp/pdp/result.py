"""Result types exchanged between the PDP, the policy finder and the delegate."""

from __future__ import annotations

__all__ = [
    "DecisionResult",
    "PolicyFinderResult",
]

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict

from repo_acp.context.status import Status
from repo_acp.pdp.decision import Decision

if TYPE_CHECKING:
    from repo_acp.pdp.policy import Policy, PolicySet


class DecisionResult(BaseModel):
    """Decision for one requested action.

    Attributes:
        decision: Permit, Deny, Indeterminate or NotApplicable.
        status: Diagnostic status (None when evaluation was clean).
        resource_id: Resource the decision applies to.
        action: Action the decision applies to, if known.
        policy_id: ID of the policy that produced the decision, if any.
    """

    decision: Decision
    status: Status | None = None
    resource_id: str | None = None
    action: str | None = None
    policy_id: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_permit(self) -> bool:
        return self.decision is Decision.PERMIT


class PolicyFinderResult:
    """Outcome of a policy lookup.

    Exactly one of three shapes:
    - a matched policy (policy is set)
    - not applicable (nothing set)
    - indeterminate (status is set, carrying the failure)
    """

    __slots__ = ("policy", "status")

    def __init__(self, policy: "Policy | PolicySet | None" = None, status: Status | None = None) -> None:
        self.policy = policy
        self.status = status

    @classmethod
    def not_applicable(cls) -> PolicyFinderResult:
        return cls()

    @classmethod
    def indeterminate(cls, status: Status) -> PolicyFinderResult:
        return cls(status=status)

    @property
    def is_not_applicable(self) -> bool:
        return self.policy is None and self.status is None

    @property
    def is_indeterminate(self) -> bool:
        return self.status is not None

    def __repr__(self) -> str:
        if self.policy is not None:
            return f"PolicyFinderResult(policy={self.policy.policy_id!r})"
        if self.status is not None:
            return f"PolicyFinderResult(status={self.status.code.value!r})"
        return "PolicyFinderResult(not_applicable)"

    def to_dict(self) -> dict[str, Any]:
        if self.policy is not None:
            return {"policy_id": self.policy.policy_id}
        if self.status is not None:
            return {"status": self.status.model_dump(mode="json")}
        return {"not_applicable": True}
