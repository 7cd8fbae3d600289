"""Pydantic models for telemetry events."""

from repo_acp.telemetry.models.decision import DecisionEvent, ResultLog

__all__ = [
    "DecisionEvent",
    "ResultLog",
]
