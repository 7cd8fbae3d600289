"""Decision logging for authorization checks.

One event per check goes to <log_dir>/audit/decisions.jsonl when a file
logger is configured. At DEBUG, the system logger also receives full dumps
of each request and each PDP result.

Logging is observational: a failure to write an event is reported to the
system logger and never changes the decision already computed.
"""

from __future__ import annotations

__all__ = [
    "create_decision_logger",
    "DecisionEventLogger",
]

import logging
from collections.abc import Sequence
from pathlib import Path

from repo_acp.context.request import EvaluationRequest
from repo_acp.pdp.result import DecisionResult
from repo_acp.telemetry.models.decision import DecisionEvent, ResultLog
from repo_acp.utils.logging.logger_setup import setup_jsonl_logger
from repo_acp.utils.logging.logging_helpers import serialize_audit_event


def create_decision_logger(log_path: Path) -> logging.Logger:
    """Create logger for decision events.

    Args:
        log_path: Path to decisions.jsonl file.

    Returns:
        Configured logger instance.
    """
    return setup_jsonl_logger("repo-acp.audit.decisions", log_path, log_level=logging.INFO)


class DecisionEventLogger:
    """Logs authorization decisions and verbose diagnostics."""

    def __init__(
        self,
        *,
        system_logger: logging.Logger,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize decision event logger.

        Args:
            system_logger: System logger for diagnostics and write failures.
            logger: Logger for decision events (decisions.jsonl). None keeps
                decisions in the system logger at DEBUG only.
        """
        self._logger = logger
        self._system_logger = system_logger

    @property
    def verbose(self) -> bool:
        """Whether request/result dumps are wanted."""
        return self._system_logger.isEnabledFor(logging.DEBUG)

    def log_request(self, request: EvaluationRequest) -> None:
        """Dump the request handed to the PDP (DEBUG only)."""
        if self.verbose:
            self._system_logger.debug(
                {
                    "event": "evaluation_request",
                    "message": f"Evaluating {request.action_ids} on {request.resource_id or '/'}",
                    "request": request.to_dict(),
                }
            )

    def log_results(self, results: Sequence[DecisionResult]) -> None:
        """Dump each PDP result (DEBUG only)."""
        if not self.verbose:
            return
        for result in results:
            self._system_logger.debug(
                {
                    "event": "evaluation_result",
                    "message": f"{result.action}: {result.decision.value}",
                    "result": result.model_dump(mode="json", exclude_none=True),
                }
            )

    def log(
        self,
        permitted: bool,
        request: EvaluationRequest,
        results: Sequence[DecisionResult],
        final_reason: str,
        policy_eval_ms: float,
    ) -> None:
        """Log one aggregated decision.

        Args:
            permitted: Aggregated outcome returned to the caller.
            request: The evaluated request.
            results: Per-action results from the PDP.
            final_reason: Why the aggregate came out as it did.
            policy_eval_ms: Time spent in the PDP.
        """
        event = DecisionEvent(
            decision="PERMIT" if permitted else "DENY",
            subject_id=request.subject_id,
            roles=list(request.roles),
            resource_id=request.resource_id or "/",
            workspace=request.workspace,
            actions=list(request.action_ids),
            results=[
                ResultLog(
                    decision=r.decision.value,
                    action=r.action,
                    policy_id=r.policy_id,
                    status_code=r.status.code.value if r.status else None,
                    status_message=r.status.message if r.status else None,
                )
                for r in results
            ],
            final_reason=final_reason,
            policy_eval_ms=round(policy_eval_ms, 2),
        )
        event_data = serialize_audit_event(event)

        if self._logger is None:
            self._system_logger.debug(event_data)
            return

        try:
            self._logger.info(event_data)
        except Exception as e:
            self._system_logger.error(
                {
                    "event": "decision_log_failed",
                    "message": f"Failed to write decision event: {e}",
                    "error_type": type(e).__name__,
                    "decision": event_data["decision"],
                }
            )
