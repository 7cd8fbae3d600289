"""Policy models and the policy document parser.

Policies are stored in the resource store as XML documents. The parser
reads the subset of the XACML policy language the reference PDP evaluates
and freezes it into Pydantic models:

    PolicySet
    ├── policy_id:            info:repo/<store path>
    ├── combining_algorithm:  first-applicable, deny-overrides, ...
    ├── target:               Target (AnyOf AND, AllOf OR, Match AND)
    └── children:             Policy | PolicySet | PolicyReference
    Policy
    ├── policy_id
    ├── combining_algorithm
    ├── target
    └── rules:                Rule (effect + optional target)

Both XACML 3.0 (AnyOf/AllOf/Match with AttributeDesignator) and the
category-specific XACML 2.0 target elements (Subjects/Subject/SubjectMatch
with SubjectAttributeDesignator, etc.) are accepted. Namespaces are ignored.

Rejected at parse time (PolicyLoadError):
- Malformed XML, or a root element that is neither Policy nor PolicySet
- Missing policy id, rule effect or combining algorithm
- Conditions, attribute selectors, unknown match functions and combining
  algorithms (an unknown construct must never be silently skipped)
"""

from __future__ import annotations

__all__ = [
    "AllOf",
    "AnyOf",
    "CombiningAlgorithm",
    "Match",
    "POLICY_SET_TYPE",
    "POLICY_TYPE",
    "Policy",
    "PolicyReference",
    "PolicySet",
    "PolicyType",
    "Rule",
    "SUPPORTED_MATCH_FUNCTIONS",
    "Target",
    "get_policy_id",
    "parse_policy_document",
]

import xml.etree.ElementTree as ET
from typing import Literal, Union, get_args

from pydantic import BaseModel, ConfigDict, Field

from repo_acp.constants import XSD_STRING
from repo_acp.context.attributes import AttributeCategory, AttributeValue, coerce_value
from repo_acp.exceptions import PolicyLoadError

PolicyType = Literal["Policy", "PolicySet"]
POLICY_TYPE: PolicyType = "Policy"
POLICY_SET_TYPE: PolicyType = "PolicySet"

CombiningAlgorithm = Literal[
    "deny-overrides",
    "permit-overrides",
    "first-applicable",
    "deny-unless-permit",
    "permit-unless-deny",
]
_COMBINING_ALGORITHMS: tuple[str, ...] = get_args(CombiningAlgorithm)

# Match functions by their short name (the part after "function:")
SUPPORTED_MATCH_FUNCTIONS: frozenset[str] = frozenset(
    {
        "string-equal",
        "string-equal-ignore-case",
        "string-starts-with",
        "string-regexp-match",
        "anyURI-equal",
        "anyURI-starts-with",
        "anyURI-regexp-match",
        "integer-equal",
        "boolean-equal",
    }
)

# Target element names, XACML 3.0 first, then the 2.0 per-category forms
_ANY_OF_TAGS = frozenset({"AnyOf", "Subjects", "Resources", "Actions", "Environments"})
_ALL_OF_TAGS = frozenset({"AllOf", "Subject", "Resource", "Action", "Environment"})
_MATCH_TAGS = frozenset({"Match", "SubjectMatch", "ResourceMatch", "ActionMatch", "EnvironmentMatch"})
_DESIGNATOR_CATEGORIES: dict[str, AttributeCategory] = {
    "SubjectAttributeDesignator": AttributeCategory.SUBJECT,
    "ResourceAttributeDesignator": AttributeCategory.RESOURCE,
    "ActionAttributeDesignator": AttributeCategory.ACTION,
    "EnvironmentAttributeDesignator": AttributeCategory.ENVIRONMENT,
}
_REFERENCE_TAGS: dict[str, PolicyType] = {
    "PolicyIdReference": POLICY_TYPE,
    "PolicySetIdReference": POLICY_SET_TYPE,
}


# =============================================================================
# Models
# =============================================================================


class Match(BaseModel):
    """Compare a literal value against the bag of a designated attribute.

    Attributes:
        function: Short match function name (e.g. "string-equal").
        value: Literal value from the policy.
        data_type: Data type URI of the value and of the designator.
        category: Designator category.
        attribute_id: Designator attribute id.
        issuer: Required issuer of the attribute, if any.
        must_be_present: An empty bag is indeterminate instead of no-match.
    """

    function: str
    value: AttributeValue
    data_type: str = XSD_STRING
    category: AttributeCategory
    attribute_id: str
    issuer: str | None = None
    must_be_present: bool = False

    model_config = ConfigDict(frozen=True)


class AllOf(BaseModel):
    """Conjunction of matches."""

    matches: tuple[Match, ...]

    model_config = ConfigDict(frozen=True)


class AnyOf(BaseModel):
    """Disjunction of AllOf groups."""

    all_of: tuple[AllOf, ...]

    model_config = ConfigDict(frozen=True)


class Target(BaseModel):
    """Applicability test; an empty target matches every request."""

    any_of: tuple[AnyOf, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        return not self.any_of


class Rule(BaseModel):
    rule_id: str
    effect: Literal["Permit", "Deny"]
    target: Target = Field(default_factory=Target)
    description: str | None = None

    model_config = ConfigDict(frozen=True)


class PolicyReference(BaseModel):
    """Reference to another policy, resolved through the policy finder."""

    reference_id: str
    policy_type: PolicyType

    model_config = ConfigDict(frozen=True)


class Policy(BaseModel):
    policy_id: str
    combining_algorithm: CombiningAlgorithm
    target: Target = Field(default_factory=Target)
    rules: tuple[Rule, ...] = ()
    description: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def policy_type(self) -> PolicyType:
        return POLICY_TYPE


class PolicySet(BaseModel):
    policy_id: str
    combining_algorithm: CombiningAlgorithm
    target: Target = Field(default_factory=Target)
    children: tuple[Union[Policy, "PolicySet", PolicyReference], ...] = ()
    description: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def policy_type(self) -> PolicyType:
        return POLICY_SET_TYPE


PolicySet.model_rebuild()


# =============================================================================
# Parsing
# =============================================================================


def _local_name(tag: str) -> str:
    """Strip the namespace from an element tag."""
    return tag.rsplit("}", 1)[-1]


def _parse_xml(content: bytes | str, source: str | None) -> ET.Element:
    try:
        return ET.fromstring(content)
    except ET.ParseError as e:
        raise PolicyLoadError(f"Malformed policy document: {e}", source=source) from e


def get_policy_id(content: bytes | str, source: str | None = None) -> str:
    """Return the declared ID of a policy document.

    Args:
        content: XML policy document.
        source: Where the document came from (for error messages).

    Returns:
        The PolicyId or PolicySetId attribute of the root element.

    Raises:
        PolicyLoadError: If the document is malformed, of an unknown type,
            or declares no ID.
    """
    root = _parse_xml(content, source)
    name = _local_name(root.tag)
    if name == POLICY_TYPE:
        policy_id = root.get("PolicyId")
    elif name == POLICY_SET_TYPE:
        policy_id = root.get("PolicySetId")
    else:
        raise PolicyLoadError(f"Unknown policy document type: {name}", source=source)
    if not policy_id:
        raise PolicyLoadError("Cannot find policy ID", source=source)
    return policy_id


def parse_policy_document(content: bytes | str, source: str | None = None) -> Policy | PolicySet:
    """Parse and classify a policy document.

    Args:
        content: XML policy document.
        source: Where the document came from (for error messages).

    Returns:
        Policy or PolicySet, by root element name.

    Raises:
        PolicyLoadError: If the document cannot be parsed or uses a construct
            the evaluator does not support.
    """
    root = _parse_xml(content, source)
    name = _local_name(root.tag)
    if name == POLICY_TYPE:
        return _parse_policy(root, source)
    if name == POLICY_SET_TYPE:
        return _parse_policy_set(root, source)
    raise PolicyLoadError(f"Unknown policy document type: {name}", source=source)


def _parse_policy(element: ET.Element, source: str | None) -> Policy:
    policy_id = _required(element, "PolicyId", source)
    rules: list[Rule] = []
    for child in element:
        if _local_name(child.tag) == "Rule":
            rules.append(_parse_rule(child, source))
    return Policy(
        policy_id=policy_id,
        combining_algorithm=_combining_algorithm(_required(element, "RuleCombiningAlgId", source), source),
        target=_parse_target(_find_child(element, "Target"), source),
        rules=tuple(rules),
        description=_description(element),
    )


def _parse_policy_set(element: ET.Element, source: str | None) -> PolicySet:
    policy_id = _required(element, "PolicySetId", source)
    children: list[Policy | PolicySet | PolicyReference] = []
    for child in element:
        name = _local_name(child.tag)
        if name == POLICY_TYPE:
            children.append(_parse_policy(child, source))
        elif name == POLICY_SET_TYPE:
            children.append(_parse_policy_set(child, source))
        elif name in _REFERENCE_TAGS:
            reference_id = (child.text or "").strip()
            if not reference_id:
                raise PolicyLoadError(f"Empty {name} in {policy_id}", source=source)
            children.append(PolicyReference(reference_id=reference_id, policy_type=_REFERENCE_TAGS[name]))
    return PolicySet(
        policy_id=policy_id,
        combining_algorithm=_combining_algorithm(_required(element, "PolicyCombiningAlgId", source), source),
        target=_parse_target(_find_child(element, "Target"), source),
        children=tuple(children),
        description=_description(element),
    )


def _parse_rule(element: ET.Element, source: str | None) -> Rule:
    rule_id = _required(element, "RuleId", source)
    effect = element.get("Effect")
    if effect not in ("Permit", "Deny"):
        raise PolicyLoadError(f"Rule {rule_id} has invalid effect: {effect!r}", source=source)
    if _find_child(element, "Condition") is not None:
        raise PolicyLoadError(f"Rule {rule_id}: conditions are not supported", source=source)
    return Rule(
        rule_id=rule_id,
        effect=effect,
        target=_parse_target(_find_child(element, "Target"), source),
        description=_description(element),
    )


def _parse_target(element: ET.Element | None, source: str | None) -> Target:
    if element is None:
        return Target()
    any_of: list[AnyOf] = []
    for any_el in element:
        if _local_name(any_el.tag) not in _ANY_OF_TAGS:
            continue
        all_of: list[AllOf] = []
        for all_el in any_el:
            if _local_name(all_el.tag) not in _ALL_OF_TAGS:
                continue
            matches = [
                _parse_match(match_el, source) for match_el in all_el if _local_name(match_el.tag) in _MATCH_TAGS
            ]
            all_of.append(AllOf(matches=tuple(matches)))
        any_of.append(AnyOf(all_of=tuple(all_of)))
    return Target(any_of=tuple(any_of))


def _parse_match(element: ET.Element, source: str | None) -> Match:
    match_id = _required(element, "MatchId", source)
    function = match_id.rsplit("function:", 1)[-1]
    if function not in SUPPORTED_MATCH_FUNCTIONS:
        raise PolicyLoadError(f"Unsupported match function: {match_id}", source=source)

    value_el = _find_child(element, "AttributeValue")
    if value_el is None:
        raise PolicyLoadError(f"Match {match_id} has no AttributeValue", source=source)
    data_type = value_el.get("DataType", XSD_STRING)

    designator: ET.Element | None = None
    category: AttributeCategory | None = None
    for child in element:
        name = _local_name(child.tag)
        if name == "AttributeSelector":
            raise PolicyLoadError("Attribute selectors are not supported", source=source)
        if name == "AttributeDesignator":
            designator = child
            category = _category_from_uri(_required(child, "Category", source), source)
        elif name in _DESIGNATOR_CATEGORIES:
            designator = child
            category = _DESIGNATOR_CATEGORIES[name]
    if designator is None or category is None:
        raise PolicyLoadError(f"Match {match_id} has no attribute designator", source=source)

    raw_value = (value_el.text or "").strip()
    value = coerce_value(raw_value, data_type)
    if value is None:
        raise PolicyLoadError(f"Value {raw_value!r} is not a valid {data_type}", source=source)

    return Match(
        function=function,
        value=value,
        data_type=designator.get("DataType", data_type),
        category=category,
        attribute_id=_required(designator, "AttributeId", source),
        issuer=designator.get("Issuer"),
        must_be_present=designator.get("MustBePresent", "false").lower() == "true",
    )


def _category_from_uri(uri: str, source: str | None) -> AttributeCategory:
    lowered = uri.lower()
    for category in AttributeCategory:
        if category.value in lowered:
            return category
    raise PolicyLoadError(f"Unknown attribute category: {uri}", source=source)


def _combining_algorithm(algorithm_id: str, source: str | None) -> CombiningAlgorithm:
    name = algorithm_id.rsplit(":", 1)[-1].removeprefix("ordered-")
    if name not in _COMBINING_ALGORITHMS:
        raise PolicyLoadError(f"Unsupported combining algorithm: {algorithm_id}", source=source)
    return name  # type: ignore[return-value]


def _find_child(element: ET.Element, name: str) -> ET.Element | None:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _required(element: ET.Element, attribute: str, source: str | None) -> str:
    value = element.get(attribute)
    if not value:
        raise PolicyLoadError(f"{_local_name(element.tag)} is missing {attribute}", source=source)
    return value


def _description(element: ET.Element) -> str | None:
    desc = _find_child(element, "Description")
    if desc is None or not desc.text:
        return None
    return desc.text.strip()
