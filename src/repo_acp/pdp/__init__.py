"""Policy Decision Point (PDP) - policy evaluation.

This module evaluates policies against an EvaluationRequest to produce
per-action decisions:

- context/: Builds the evaluation request
- prp/: Finds the governing policy (hierarchical walk, by-ID lookup)
- pdp/ (this module): Evaluates policies against the request
- pep/: Aggregates decisions into a single permit/deny

Structure:
    decision.py       - Decision enum (Permit/Deny/Indeterminate/NotApplicable)
    result.py         - DecisionResult, PolicyFinderResult
    policy.py         - Policy models and XML document parser
    matcher.py        - Target matching (three-valued)
    engine.py         - PolicyDecisionPoint (reference engine)
    protocol.py       - Protocols for pluggable engines and finders
    factory.py        - PDPFactory
"""

from repo_acp.pdp.decision import Decision
from repo_acp.pdp.result import DecisionResult, PolicyFinderResult
from repo_acp.pdp.policy import (
    POLICY_SET_TYPE,
    POLICY_TYPE,
    Policy,
    PolicyReference,
    PolicySet,
    PolicyType,
    Rule,
    Target,
    get_policy_id,
    parse_policy_document,
)
from repo_acp.pdp.engine import PolicyDecisionPoint
from repo_acp.pdp.protocol import (
    PolicyDecisionPointProtocol,
    PolicyFinderProtocol,
    ResourceFinderProtocol,
)
from repo_acp.pdp.factory import PDPFactory

__all__ = [
    # Decision
    "Decision",
    "DecisionResult",
    "PolicyFinderResult",
    # Policy models
    "POLICY_SET_TYPE",
    "POLICY_TYPE",
    "Policy",
    "PolicyReference",
    "PolicySet",
    "PolicyType",
    "Rule",
    "Target",
    "get_policy_id",
    "parse_policy_document",
    # Engine
    "PDPFactory",
    "PolicyDecisionPoint",
    "PolicyDecisionPointProtocol",
    "PolicyFinderProtocol",
    "ResourceFinderProtocol",
]
