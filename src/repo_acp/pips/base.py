"""Attribute finder capability set and the ordered finder chain.

Every attribute source (environment clock, structured queries, the
property graph) implements AttributeFinderModule structurally; no base
class is required. The PDP never talks to modules directly: it asks the
request, which asks the AttributeFinder chain built from the request's
modules.

Chain order is priority order. The first module returning a non-empty bag,
or a processing error, answers the lookup; an exhausted chain yields an
empty bag.
"""

from __future__ import annotations

__all__ = [
    "AttributeFinder",
    "AttributeFinderModule",
]

from collections.abc import Iterable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from repo_acp.context.attributes import AttributeCategory, EvaluationResult

if TYPE_CHECKING:
    from repo_acp.context.request import EvaluationRequest
    from repo_acp.store.protocol import StoreSession


@runtime_checkable
class AttributeFinderModule(Protocol):
    """Capability set of a pluggable attribute source.

    Thread-safety:
    - Modules are shared across concurrent checks and must hold no
      per-request state; the store session arrives as a parameter.
    """

    def is_designator_supported(self) -> bool:
        """Whether the module answers designator (category + id) lookups."""
        ...

    def is_selector_supported(self) -> bool:
        """Whether the module answers selector (path expression) lookups."""
        ...

    @property
    def supported_designator_types(self) -> frozenset[AttributeCategory]:
        ...

    @property
    def supported_ids(self) -> frozenset[str] | None:
        """Attribute ids the module can resolve, None meaning any id."""
        ...

    def find_attribute(
        self,
        attribute_type: str,
        attribute_id: str,
        category: AttributeCategory,
        request: "EvaluationRequest",
        session: "StoreSession | None",
        issuer: str | None = None,
    ) -> EvaluationResult:
        """Resolve the values of one attribute.

        Args:
            attribute_type: Requested XML Schema data type URI.
            attribute_id: Attribute identifier URI.
            category: Designator category being resolved.
            request: The request under evaluation.
            session: Store session for this check (may be None).
            issuer: Optional required issuer.

        Returns:
            EvaluationResult holding a (possibly empty) bag, or a
            processing-error status for infrastructure failures.
        """
        ...


class AttributeFinder:
    """Ordered chain of attribute finder modules."""

    def __init__(self, modules: Iterable[AttributeFinderModule] = ()) -> None:
        self._modules = tuple(modules)

    @property
    def modules(self) -> tuple[AttributeFinderModule, ...]:
        return self._modules

    def find_attribute(
        self,
        attribute_type: str,
        attribute_id: str,
        category: AttributeCategory,
        request: "EvaluationRequest",
        session: "StoreSession | None",
        issuer: str | None = None,
    ) -> EvaluationResult:
        """Ask each capable module in order until one answers.

        Returns:
            First non-empty bag, first processing error, or an empty bag.
        """
        for module in self._modules:
            if not module.is_designator_supported():
                continue
            if category not in module.supported_designator_types:
                continue
            supported_ids = module.supported_ids
            if supported_ids is not None and attribute_id not in supported_ids:
                continue

            result = module.find_attribute(attribute_type, attribute_id, category, request, session, issuer)
            if result.indeterminate or not result.bag.is_empty:
                return result

        return EvaluationResult.empty(attribute_type)
