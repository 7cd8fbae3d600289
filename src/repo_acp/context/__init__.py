"""Evaluation request building for ABAC policy evaluation.

Following the XACML model:

- context/ (this module): Builds evaluation requests from primitive inputs
- pdp/: Policy Decision Point - evaluates policies
- pep/: Authorization delegate - aggregates decisions

Structure:
    status.py       - Status / StatusCode attached to results
    attributes.py   - Attribute, AttributeBag, EvaluationResult
    request.py      - EvaluationRequest (frozen)
    builder.py      - EvaluationRequestBuilder
"""

from repo_acp.context.status import Status, StatusCode
from repo_acp.context.attributes import (
    Attribute,
    AttributeBag,
    AttributeCategory,
    AttributeValue,
    EvaluationResult,
    coerce_value,
)
from repo_acp.context.request import EvaluationRequest
from repo_acp.context.builder import EvaluationRequestBuilder

__all__ = [
    # Status
    "Status",
    "StatusCode",
    # Attributes
    "Attribute",
    "AttributeBag",
    "AttributeCategory",
    "AttributeValue",
    "EvaluationResult",
    "coerce_value",
    # Request
    "EvaluationRequest",
    "EvaluationRequestBuilder",
]
