"""Attribute models - the values a request is made of.

An Attribute is one (id, data type, value) fact about the subject, resource,
action or environment of a request. Lookups of an attribute by designator
return a bag of values (possibly empty) or a non-OK status.
"""

from __future__ import annotations

__all__ = [
    "Attribute",
    "AttributeBag",
    "AttributeCategory",
    "AttributeValue",
    "EvaluationResult",
    "coerce_value",
]

from datetime import date, datetime, time
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from repo_acp.constants import (
    XSD_ANY_URI,
    XSD_BOOLEAN,
    XSD_DATE,
    XSD_DATETIME,
    XSD_DOUBLE,
    XSD_INTEGER,
    XSD_STRING,
    XSD_TIME,
)
from repo_acp.context.status import Status

# Python types a single attribute value may take
AttributeValue = bool | int | float | datetime | date | time | str


class AttributeCategory(str, Enum):
    """Designator category of an attribute.

    The PDP asks finder modules for attributes of one category at a time;
    modules declare which categories they answer.
    """

    SUBJECT = "subject"
    RESOURCE = "resource"
    ACTION = "action"
    ENVIRONMENT = "environment"


class Attribute(BaseModel):
    """A single request attribute.

    Attributes:
        attribute_id: Attribute identifier URI.
        value: The attribute value.
        data_type: XML Schema data type URI of the value.
        issuer: Optional issuer of the attribute.
    """

    attribute_id: str
    value: AttributeValue
    data_type: str = XSD_STRING
    issuer: str | None = None

    model_config = ConfigDict(frozen=True)


class AttributeBag(BaseModel):
    """Bag of values returned for one designator lookup.

    An empty bag is a valid answer ("no such values"), distinct from a
    lookup failure, which is reported through EvaluationResult.status.
    """

    data_type: str = XSD_STRING
    values: tuple[AttributeValue, ...] = ()

    model_config = ConfigDict(frozen=True)

    @classmethod
    def empty(cls, data_type: str = XSD_STRING) -> AttributeBag:
        return cls(data_type=data_type)

    @property
    def is_empty(self) -> bool:
        return not self.values

    def __len__(self) -> int:
        return len(self.values)

    def __contains__(self, item: object) -> bool:
        return item in self.values


class EvaluationResult(BaseModel):
    """Outcome of an attribute lookup: a bag, or a failure status."""

    bag: AttributeBag = Field(default_factory=AttributeBag)
    status: Status | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def of(cls, bag: AttributeBag) -> EvaluationResult:
        return cls(bag=bag)

    @classmethod
    def empty(cls, data_type: str = XSD_STRING) -> EvaluationResult:
        return cls(bag=AttributeBag.empty(data_type))

    @classmethod
    def error(cls, status: Status, data_type: str = XSD_STRING) -> EvaluationResult:
        return cls(bag=AttributeBag.empty(data_type), status=status)

    @property
    def indeterminate(self) -> bool:
        """True when the lookup failed rather than returning a bag."""
        return self.status is not None and not self.status.is_ok


def coerce_value(value: Any, data_type: str) -> AttributeValue | None:
    """Represent a stored value as the requested data type.

    Args:
        value: Raw value from the store (any scalar).
        data_type: Requested XML Schema data type URI.

    Returns:
        The value converted to the data type's Python type, or None when
        the value cannot be represented as that type.
    """
    try:
        if data_type in (XSD_STRING, XSD_ANY_URI):
            if isinstance(value, bool):
                return "true" if value else "false"
            if isinstance(value, (datetime, date, time)):
                return value.isoformat()
            return str(value)
        if data_type == XSD_BOOLEAN:
            if isinstance(value, bool):
                return value
            text = str(value).strip().lower()
            if text in ("true", "1"):
                return True
            if text in ("false", "0"):
                return False
            return None
        if data_type == XSD_INTEGER:
            if isinstance(value, bool):
                return None
            if isinstance(value, float) and not value.is_integer():
                return None
            return int(value)
        if data_type == XSD_DOUBLE:
            if isinstance(value, bool):
                return None
            return float(value)
        if data_type == XSD_DATETIME:
            return value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
        if data_type == XSD_DATE:
            if isinstance(value, datetime):
                return value.date()
            return value if isinstance(value, date) else date.fromisoformat(str(value))
        if data_type == XSD_TIME:
            if isinstance(value, datetime):
                return value.timetz()
            return value if isinstance(value, time) else time.fromisoformat(str(value))
    except (TypeError, ValueError):
        return None
    # Unknown data type - only pass strings through unchanged
    return value if isinstance(value, str) else None
