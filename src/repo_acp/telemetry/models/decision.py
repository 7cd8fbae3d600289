"""Pydantic models for decision audit events.

The 'time' field is Optional[str] = None: events are created without a
timestamp and ISO8601Formatter adds it at serialization time.
"""

from __future__ import annotations

__all__ = [
    "DecisionEvent",
    "ResultLog",
]

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict


class ResultLog(BaseModel):
    """Summary of one per-action PDP result."""

    decision: str
    action: Optional[str] = None
    policy_id: Optional[str] = None
    status_code: Optional[str] = None
    status_message: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class DecisionEvent(BaseModel):
    """One authorization check, as written to decisions.jsonl.

    Attributes:
        decision: Aggregated outcome returned to the caller.
        subject_id: Principal the check was made for.
        roles: Effective roles used for evaluation.
        resource_id: Requested resource path.
        workspace: Workspace name.
        actions: Requested actions.
        results: Per-action results returned by the PDP.
        final_reason: Why the aggregate came out as it did.
        policy_eval_ms: Time spent in the PDP.
    """

    time: Optional[str] = None
    event: Literal["authorization_decision"] = "authorization_decision"

    decision: Literal["PERMIT", "DENY"]
    subject_id: Optional[str] = None
    roles: list[str] = []
    resource_id: str
    workspace: Optional[str] = None
    actions: list[str] = []
    results: list[ResultLog] = []
    final_reason: str
    policy_eval_ms: float

    model_config = ConfigDict(extra="forbid")
