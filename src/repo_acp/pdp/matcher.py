"""Target matching against an evaluation request.

Targets use three-valued logic, like the rest of XACML:

    Target  = AnyOf AND AnyOf AND ...    (empty target matches)
    AnyOf   = AllOf OR AllOf OR ...
    AllOf   = Match AND Match AND ...
    Match   = function(policy value, v) for any v in the designated bag

A Match whose attribute lookup fails, or whose bag is empty while the
designator requires a value, is Indeterminate. Indeterminate beats
no-match inside an OR only when nothing matched, and loses to no-match
inside an AND.
"""

from __future__ import annotations

__all__ = [
    "MatchOutcome",
    "TargetMatch",
    "evaluate_match",
    "match_target",
]

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, Callable

from repo_acp.context.attributes import AttributeValue
from repo_acp.context.status import Status, StatusCode
from repo_acp.pdp.policy import AllOf, AnyOf, Match, Target

if TYPE_CHECKING:
    from repo_acp.context.request import EvaluationRequest


class MatchOutcome(str, Enum):
    MATCH = "match"
    NO_MATCH = "no_match"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True, slots=True)
class TargetMatch:
    """Result of matching a target, with the failure status when indeterminate."""

    outcome: MatchOutcome
    status: Status | None = None

    @property
    def matched(self) -> bool:
        return self.outcome is MatchOutcome.MATCH


_MATCH = TargetMatch(MatchOutcome.MATCH)
_NO_MATCH = TargetMatch(MatchOutcome.NO_MATCH)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern)


def _match_equal(expected: AttributeValue, value: AttributeValue) -> bool:
    return expected == value


def _match_equal_ignore_case(expected: AttributeValue, value: AttributeValue) -> bool:
    return str(expected).casefold() == str(value).casefold()


def _match_starts_with(prefix: AttributeValue, value: AttributeValue) -> bool:
    return str(value).startswith(str(prefix))


def _match_regexp(pattern: AttributeValue, value: AttributeValue) -> bool:
    return _compile(str(pattern)).search(str(value)) is not None


_FUNCTIONS: dict[str, Callable[[AttributeValue, AttributeValue], bool]] = {
    "string-equal": _match_equal,
    "anyURI-equal": _match_equal,
    "integer-equal": _match_equal,
    "boolean-equal": _match_equal,
    "string-equal-ignore-case": _match_equal_ignore_case,
    "string-starts-with": _match_starts_with,
    "anyURI-starts-with": _match_starts_with,
    "string-regexp-match": _match_regexp,
    "anyURI-regexp-match": _match_regexp,
}


def evaluate_match(match: Match, request: EvaluationRequest) -> TargetMatch:
    """Evaluate one Match element.

    Args:
        match: The match from the policy.
        request: Request supplying the designated attribute.

    Returns:
        MATCH if the function holds for any value in the bag, NO_MATCH if
        it holds for none, INDETERMINATE if the bag could not be resolved.
    """
    result = request.get_attribute(match.category, match.attribute_id, match.data_type, match.issuer)
    if result.indeterminate:
        return TargetMatch(MatchOutcome.INDETERMINATE, result.status)

    if result.bag.is_empty and match.must_be_present:
        return TargetMatch(
            MatchOutcome.INDETERMINATE,
            Status(code=StatusCode.MISSING_ATTRIBUTE, message=f"Missing attribute {match.attribute_id}"),
        )

    function = _FUNCTIONS.get(match.function)
    if function is None:
        return TargetMatch(
            MatchOutcome.INDETERMINATE, Status.processing_error(f"Unknown match function {match.function}")
        )

    try:
        if any(function(match.value, value) for value in result.bag.values):
            return _MATCH
    except re.error as e:
        return TargetMatch(MatchOutcome.INDETERMINATE, Status.processing_error(f"Invalid pattern: {e}"))
    return _NO_MATCH


def _match_all_of(all_of: AllOf, request: EvaluationRequest) -> TargetMatch:
    indeterminate: TargetMatch | None = None
    for match in all_of.matches:
        result = evaluate_match(match, request)
        if result.outcome is MatchOutcome.NO_MATCH:
            return _NO_MATCH
        if result.outcome is MatchOutcome.INDETERMINATE and indeterminate is None:
            indeterminate = result
    return indeterminate or _MATCH


def _match_any_of(any_of: AnyOf, request: EvaluationRequest) -> TargetMatch:
    indeterminate: TargetMatch | None = None
    for all_of in any_of.all_of:
        result = _match_all_of(all_of, request)
        if result.matched:
            return _MATCH
        if result.outcome is MatchOutcome.INDETERMINATE and indeterminate is None:
            indeterminate = result
    return indeterminate or _NO_MATCH


def match_target(target: Target, request: EvaluationRequest) -> TargetMatch:
    """Match a policy, policy set or rule target against a request."""
    indeterminate: TargetMatch | None = None
    for any_of in target.any_of:
        result = _match_any_of(any_of, request)
        if result.outcome is MatchOutcome.NO_MATCH:
            return _NO_MATCH
        if result.outcome is MatchOutcome.INDETERMINATE and indeterminate is None:
            indeterminate = result
    return indeterminate or _MATCH
