"""Generic property-graph attribute finder.

Answers any resource attribute by reading the property graph of the
requested resource and returning the objects of every statement whose
predicate equals the attribute id. It matches any predicate, so it runs
last in the finder chain.

Target resolution:
- Property paths (/a/{ns}b) resolve to the node holding the property (/a)
- set_property and add_node address something that may not exist yet,
  so the parent of the resource id is used instead (/a/{ns}b/{ns}c ->
  /a/{ns}b, /{ns}onlyprop -> /)
"""

from __future__ import annotations

__all__ = [
    "TripleAttributeFinderModule",
    "resolve_target_path",
]

from collections.abc import Iterable
from typing import TYPE_CHECKING

from repo_acp.constants import PARENT_TARGET_ACTIONS
from repo_acp.context.attributes import AttributeBag, AttributeCategory, EvaluationResult, coerce_value
from repo_acp.context.status import Status
from repo_acp.exceptions import StoreAccessError
from repo_acp.store.lookup import lookup_node
from repo_acp.store.paths import iter_candidate_node_paths, normalize_resource_id, parent_path
from repo_acp.store.protocol import StoreNode
from repo_acp.telemetry.system.system_logger import get_system_logger

if TYPE_CHECKING:
    from repo_acp.context.request import EvaluationRequest
    from repo_acp.store.protocol import StoreSession

_system_logger = get_system_logger()

_DESIGNATOR_TYPES = frozenset({AttributeCategory.RESOURCE})


def resolve_target_path(resource_id: str | None, actions: Iterable[str]) -> str:
    """Return the path whose attributes answer a lookup for resource_id.

    Args:
        resource_id: Raw resource id of the request ("" means the root).
        actions: Requested action names.

    Returns:
        The resource id, or its parent for actions that create their target.
    """
    path = normalize_resource_id(resource_id)
    if any(action in PARENT_TARGET_ACTIONS for action in actions):
        return parent_path(path)
    return path


def find_resource_node(session: StoreSession, path: str) -> StoreNode | None:
    """Return the node holding path, trimming property segments; None if absent.

    Raises:
        StoreAccessError: If the store cannot be reached.
    """
    for candidate in iter_candidate_node_paths(path):
        lookup = lookup_node(session, candidate)
        if lookup.found:
            return lookup.node
        if lookup.failed:
            raise StoreAccessError(f"Cannot reach store: {lookup.reason}", path=candidate)
    return None


class TripleAttributeFinderModule:
    """Resolves resource attributes from the store's property graph.

    Attributes carry no issuer in the store, so a lookup that requires an
    issuer always yields an empty bag.
    """

    def is_designator_supported(self) -> bool:
        return True

    def is_selector_supported(self) -> bool:
        return False

    @property
    def supported_designator_types(self) -> frozenset[AttributeCategory]:
        return _DESIGNATOR_TYPES

    @property
    def supported_ids(self) -> frozenset[str] | None:
        return None

    def find_attribute(
        self,
        attribute_type: str,
        attribute_id: str,
        category: AttributeCategory,
        request: EvaluationRequest,
        session: StoreSession | None,
        issuer: str | None = None,
    ) -> EvaluationResult:
        """Return the values of predicate attribute_id on the request's resource.

        Returns:
            A bag of the matching values converted to attribute_type (values
            that cannot be represented are skipped); an empty bag when the
            resource or the predicate is absent; a processing error when the
            store cannot be reached.
        """
        if category not in _DESIGNATOR_TYPES or issuer is not None:
            return EvaluationResult.empty(attribute_type)
        if session is None:
            return EvaluationResult.error(Status.processing_error("No store session available"), attribute_type)

        path = resolve_target_path(request.resource_id, request.action_ids)
        try:
            node = find_resource_node(session, path)
            if node is None:
                return EvaluationResult.empty(attribute_type)
            triples = node.properties_as_graph()
        except StoreAccessError as e:
            _system_logger.warning(
                {
                    "event": "attribute_lookup_failed",
                    "message": f"Cannot read properties of {path}: {e}",
                    "path": path,
                    "attribute_id": attribute_id,
                }
            )
            return EvaluationResult.error(Status.processing_error(str(e)), attribute_type)

        values = []
        for triple in triples:
            if triple.predicate != attribute_id:
                continue
            value = coerce_value(triple.object, attribute_type)
            if value is not None:
                values.append(value)
        return EvaluationResult.of(AttributeBag(data_type=attribute_type, values=tuple(values)))
