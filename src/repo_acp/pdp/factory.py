"""PDPFactory - builds the Policy Decision Point once at startup."""

from __future__ import annotations

__all__ = ["PDPFactory"]

from repo_acp.exceptions import PDPInitializationError
from repo_acp.pdp.engine import PolicyDecisionPoint
from repo_acp.pdp.protocol import (
    PolicyDecisionPointProtocol,
    PolicyFinderProtocol,
    ResourceFinderProtocol,
)
from repo_acp.telemetry.system.system_logger import get_system_logger

_system_logger = get_system_logger()


class PDPFactory:
    """Wires the policy finder and descendant finder into a PDP.

    Args:
        policy_finder: Policy retrieval backend (required).
        resource_finder: Descendant enumeration backend for scoped requests.
    """

    def __init__(
        self,
        policy_finder: PolicyFinderProtocol | None,
        resource_finder: ResourceFinderProtocol | None = None,
    ) -> None:
        self._policy_finder = policy_finder
        self._resource_finder = resource_finder

    def make_pdp(self) -> PolicyDecisionPointProtocol:
        """Build the PDP.

        Raises:
            PDPInitializationError: If no policy finder was supplied.
        """
        if self._policy_finder is None:
            raise PDPInitializationError("Cannot build a PDP without a policy finder")
        pdp = PolicyDecisionPoint(self._policy_finder, self._resource_finder)
        _system_logger.info(
            {
                "event": "pdp_initialized",
                "message": "Policy Decision Point (PDP) initialized",
                "policy_finder": type(self._policy_finder).__name__,
                "resource_finder": type(self._resource_finder).__name__ if self._resource_finder else None,
            }
        )
        return pdp
