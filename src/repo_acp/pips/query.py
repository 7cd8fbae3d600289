"""Structured-query attribute finder.

Maps attribute ids to queries run against the store's graph. The query
sees the resolved resource path bound to ?resource:

    queries = {
        "urn:repo:attr:collection": "SELECT ?c WHERE { ?resource <repo:memberOf> ?c }",
    }

Only the configured ids are answered, so this module sits before the
generic property finder in the chain.
"""

from __future__ import annotations

__all__ = ["SparqlResourceAttributeFinderModule"]

from collections.abc import Mapping
from typing import TYPE_CHECKING

from repo_acp.context.attributes import AttributeBag, AttributeCategory, EvaluationResult, coerce_value
from repo_acp.context.status import Status
from repo_acp.exceptions import StoreAccessError
from repo_acp.pips.triple import resolve_target_path
from repo_acp.telemetry.system.system_logger import get_system_logger

if TYPE_CHECKING:
    from repo_acp.context.request import EvaluationRequest
    from repo_acp.store.protocol import StoreSession

_system_logger = get_system_logger()

_DESIGNATOR_TYPES = frozenset({AttributeCategory.RESOURCE})

# Variable the resolved resource path is bound to
RESOURCE_BINDING = "resource"


class SparqlResourceAttributeFinderModule:
    """Resolves configured resource attributes with store queries.

    Args:
        queries: Mapping of attribute id to query text.
    """

    def __init__(self, queries: Mapping[str, str] | None = None) -> None:
        self._queries = dict(queries or {})

    def is_designator_supported(self) -> bool:
        return True

    def is_selector_supported(self) -> bool:
        return False

    @property
    def supported_designator_types(self) -> frozenset[AttributeCategory]:
        return _DESIGNATOR_TYPES

    @property
    def supported_ids(self) -> frozenset[str] | None:
        return frozenset(self._queries)

    def find_attribute(
        self,
        attribute_type: str,
        attribute_id: str,
        category: AttributeCategory,
        request: EvaluationRequest,
        session: StoreSession | None,
        issuer: str | None = None,
    ) -> EvaluationResult:
        """Run the query mapped to attribute_id; the first column of each row is a value."""
        query = self._queries.get(attribute_id)
        if category not in _DESIGNATOR_TYPES or query is None:
            return EvaluationResult.empty(attribute_type)
        if session is None:
            return EvaluationResult.error(Status.processing_error("No store session available"), attribute_type)

        path = resolve_target_path(request.resource_id, request.action_ids)
        try:
            rows = session.query(query, {RESOURCE_BINDING: path})
        except StoreAccessError as e:
            _system_logger.warning(
                {
                    "event": "attribute_query_failed",
                    "message": f"Query for {attribute_id} on {path} failed: {e}",
                    "path": path,
                    "attribute_id": attribute_id,
                }
            )
            return EvaluationResult.error(Status.processing_error(str(e)), attribute_type)

        values = []
        for row in rows:
            if not row:
                continue
            value = coerce_value(next(iter(row.values())), attribute_type)
            if value is not None and value not in values:
                values.append(value)
        return EvaluationResult.of(AttributeBag(data_type=attribute_type, values=tuple(values)))
