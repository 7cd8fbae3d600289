"""Environment clock attributes: current time, date and dateTime.

Values come from the request's evaluation time, so every lookup made
while evaluating one request sees the same instant.
"""

from __future__ import annotations

__all__ = ["CurrentEnvironmentModule"]

from typing import TYPE_CHECKING

from repo_acp.constants import (
    ATTRIBUTEID_CURRENT_DATE,
    ATTRIBUTEID_CURRENT_DATETIME,
    ATTRIBUTEID_CURRENT_TIME,
    XSD_DATE,
    XSD_DATETIME,
    XSD_TIME,
)
from repo_acp.context.attributes import AttributeBag, AttributeCategory, EvaluationResult

if TYPE_CHECKING:
    from repo_acp.context.request import EvaluationRequest
    from repo_acp.store.protocol import StoreSession

_DESIGNATOR_TYPES = frozenset({AttributeCategory.ENVIRONMENT})
_SUPPORTED_IDS = frozenset({ATTRIBUTEID_CURRENT_TIME, ATTRIBUTEID_CURRENT_DATE, ATTRIBUTEID_CURRENT_DATETIME})


class CurrentEnvironmentModule:
    def is_designator_supported(self) -> bool:
        return True

    def is_selector_supported(self) -> bool:
        return False

    @property
    def supported_designator_types(self) -> frozenset[AttributeCategory]:
        return _DESIGNATOR_TYPES

    @property
    def supported_ids(self) -> frozenset[str] | None:
        return _SUPPORTED_IDS

    def find_attribute(
        self,
        attribute_type: str,
        attribute_id: str,
        category: AttributeCategory,
        request: EvaluationRequest,
        session: StoreSession | None,
        issuer: str | None = None,
    ) -> EvaluationResult:
        """Return the clock value for attribute_id; empty for a mismatched data type."""
        if category not in _DESIGNATOR_TYPES:
            return EvaluationResult.empty(attribute_type)

        now = request.evaluation_time
        if attribute_id == ATTRIBUTEID_CURRENT_TIME and attribute_type == XSD_TIME:
            value = now.timetz()
        elif attribute_id == ATTRIBUTEID_CURRENT_DATE and attribute_type == XSD_DATE:
            value = now.date()
        elif attribute_id == ATTRIBUTEID_CURRENT_DATETIME and attribute_type == XSD_DATETIME:
            value = now
        else:
            return EvaluationResult.empty(attribute_type)
        return EvaluationResult.of(AttributeBag(data_type=attribute_type, values=(value,)))
