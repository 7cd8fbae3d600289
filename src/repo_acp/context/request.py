"""EvaluationRequest - the frozen request handed to the PDP.

Follows the standard ABAC model, one attribute list per category:
- Subject: WHO (principal id, effective roles)
- Resource: ON WHAT (resource id, workspace, optional scope)
- Action: WHAT operation(s)
- Environment: CONTEXT (originating IP; clock values come from finders)

Attributes absent from these lists are resolved on demand through the
request's ordered attribute finder modules.
"""

from __future__ import annotations

__all__ = ["EvaluationRequest"]

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from repo_acp.constants import (
    ATTRIBUTEID_ACTION_ID,
    ATTRIBUTEID_RESOURCE_ID,
    ATTRIBUTEID_RESOURCE_SCOPE,
    ATTRIBUTEID_RESOURCE_WORKSPACE,
    ATTRIBUTEID_SUBJECT_ID,
    ATTRIBUTEID_SUBJECT_ROLE,
    XSD_STRING,
)
from repo_acp.context.attributes import Attribute, AttributeBag, AttributeCategory, EvaluationResult

if TYPE_CHECKING:
    from repo_acp.pips.base import AttributeFinderModule
    from repo_acp.store.protocol import StoreSession


@dataclass(frozen=True, slots=True)
class EvaluationRequest:
    """Immutable request for one authorization check.

    Attributes:
        subject_attributes: Subject id and role attributes.
        resource_attributes: Resource id, workspace and scope attributes.
        action_attributes: One attribute per requested action.
        environment_attributes: Originating IP and other request facts.
        finder_modules: Attribute finder chain, in priority order.
        session: Store session for this check (None for detached requests).
        evaluation_time: When the request was built (UTC); clock attributes
            resolve to this instant so repeated lookups agree.
    """

    subject_attributes: tuple[Attribute, ...]
    resource_attributes: tuple[Attribute, ...]
    action_attributes: tuple[Attribute, ...]
    environment_attributes: tuple[Attribute, ...]
    finder_modules: tuple["AttributeFinderModule", ...]
    session: "StoreSession | None"
    evaluation_time: datetime

    def attributes(self, category: AttributeCategory) -> tuple[Attribute, ...]:
        """Literal attributes of one category."""
        if category is AttributeCategory.SUBJECT:
            return self.subject_attributes
        if category is AttributeCategory.RESOURCE:
            return self.resource_attributes
        if category is AttributeCategory.ACTION:
            return self.action_attributes
        return self.environment_attributes

    @property
    def resource_id(self) -> str:
        """Raw resource id, "" when none was added."""
        return self._first_value(self.resource_attributes, ATTRIBUTEID_RESOURCE_ID) or ""

    @property
    def workspace(self) -> str | None:
        return self._first_value(self.resource_attributes, ATTRIBUTEID_RESOURCE_WORKSPACE)

    @property
    def scope(self) -> str | None:
        """Scope attribute value, None meaning Immediate."""
        return self._first_value(self.resource_attributes, ATTRIBUTEID_RESOURCE_SCOPE)

    @property
    def subject_id(self) -> str | None:
        return self._first_value(self.subject_attributes, ATTRIBUTEID_SUBJECT_ID)

    @property
    def roles(self) -> tuple[str, ...]:
        return tuple(
            str(a.value) for a in self.subject_attributes if a.attribute_id == ATTRIBUTEID_SUBJECT_ROLE
        )

    @property
    def action_ids(self) -> tuple[str, ...]:
        return tuple(str(a.value) for a in self.action_attributes if a.attribute_id == ATTRIBUTEID_ACTION_ID)

    def get_attribute(
        self,
        category: AttributeCategory,
        attribute_id: str,
        data_type: str = XSD_STRING,
        issuer: str | None = None,
    ) -> EvaluationResult:
        """Resolve an attribute: literal values first, then the finder chain.

        Args:
            category: Designator category.
            attribute_id: Attribute identifier URI.
            data_type: Requested XML Schema data type URI.
            issuer: Optional required issuer.

        Returns:
            EvaluationResult with a bag (possibly empty) or an error status.
        """
        values = tuple(
            a.value
            for a in self.attributes(category)
            if a.attribute_id == attribute_id
            and a.data_type == data_type
            and (issuer is None or a.issuer == issuer)
        )
        if values:
            return EvaluationResult.of(AttributeBag(data_type=data_type, values=values))

        # Imported here: pips modules import this module for type hints
        from repo_acp.pips.base import AttributeFinder

        finder = AttributeFinder(self.finder_modules)
        return finder.find_attribute(data_type, attribute_id, category, self, self.session, issuer)

    def for_action(self, action_attribute: Attribute) -> EvaluationRequest:
        """Copy of this request restricted to a single action attribute."""
        others = tuple(a for a in self.action_attributes if a.attribute_id != ATTRIBUTEID_ACTION_ID)
        return dataclasses.replace(self, action_attributes=(action_attribute, *others))

    def for_resource(self, resource_id: str) -> EvaluationRequest:
        """Copy of this request addressing another resource (scope dropped)."""
        others = tuple(
            a
            for a in self.resource_attributes
            if a.attribute_id not in (ATTRIBUTEID_RESOURCE_ID, ATTRIBUTEID_RESOURCE_SCOPE)
        )
        resource = Attribute(attribute_id=ATTRIBUTEID_RESOURCE_ID, value=resource_id)
        return dataclasses.replace(self, resource_attributes=(resource, *others))

    def to_dict(self) -> dict[str, Any]:
        """Serializable dump for diagnostic logging (session excluded)."""

        def _dump(attrs: tuple[Attribute, ...]) -> list[dict[str, Any]]:
            return [a.model_dump(mode="json", exclude_none=True) for a in attrs]

        return {
            "subject": _dump(self.subject_attributes),
            "resource": _dump(self.resource_attributes),
            "action": _dump(self.action_attributes),
            "environment": _dump(self.environment_attributes),
            "finder_modules": [type(m).__name__ for m in self.finder_modules],
            "evaluation_time": self.evaluation_time.isoformat(),
        }

    @staticmethod
    def _first_value(attrs: tuple[Attribute, ...], attribute_id: str) -> str | None:
        for attr in attrs:
            if attr.attribute_id == attribute_id:
                return str(attr.value)
        return None
