"""EvaluationRequestBuilder - assemble a request from primitive inputs.

The builder accumulates the four attribute lists one fact at a time and
freezes them into an EvaluationRequest. It passes values through
unmodified: resource paths keep their property pseudo-segments, and the
empty resource id is left for the policy finder to treat as the root.

Usage:
    request = (
        EvaluationRequestBuilder()
        .add_subject("alice", ["reader"])
        .add_resource_id("/obj/ds/prop1")
        .add_workspace("default")
        .add_actions(["read"])
        .build(session)
    )
"""

from __future__ import annotations

__all__ = ["EvaluationRequestBuilder"]

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from repo_acp.constants import (
    ACTION_REMOVE,
    ATTRIBUTEID_ACTION_ID,
    ATTRIBUTEID_ENVIRONMENT_ORIGINAL_IP_ADDRESS,
    ATTRIBUTEID_RESOURCE_ID,
    ATTRIBUTEID_RESOURCE_SCOPE,
    ATTRIBUTEID_RESOURCE_WORKSPACE,
    ATTRIBUTEID_SUBJECT_ID,
    ATTRIBUTEID_SUBJECT_ROLE,
    SCOPE_DESCENDANTS,
)
from repo_acp.context.attributes import Attribute
from repo_acp.context.request import EvaluationRequest
from repo_acp.telemetry.system.system_logger import get_system_logger

if TYPE_CHECKING:
    from repo_acp.pips.base import AttributeFinderModule
    from repo_acp.store.protocol import StoreSession

_system_logger = get_system_logger()


class EvaluationRequestBuilder:
    """Incrementally builds an EvaluationRequest.

    Every add_* method returns the builder for chaining. A builder belongs
    to one authorization check and is not shared between threads.
    """

    def __init__(self) -> None:
        self._subject: list[Attribute] = []
        self._resource: list[Attribute] = []
        self._action: list[Attribute] = []
        self._environment: list[Attribute] = []
        self._modules: list[AttributeFinderModule] = []
        self._scope_added = False

    def add_subject(self, principal_id: str, roles: Iterable[str] | None) -> EvaluationRequestBuilder:
        """Add the subject id and one role attribute per role.

        Args:
            principal_id: Name of the requesting principal.
            roles: Effective roles (None or empty adds no role attributes).

        Raises:
            ValueError: If principal_id is None.
        """
        if principal_id is None:
            raise ValueError("principal_id must not be None")
        self._subject.append(Attribute(attribute_id=ATTRIBUTEID_SUBJECT_ID, value=principal_id))
        for role in roles or ():
            self._subject.append(Attribute(attribute_id=ATTRIBUTEID_SUBJECT_ROLE, value=role))
        return self

    def add_resource_id(self, resource_id: str) -> EvaluationRequestBuilder:
        """Add the raw resource path, property pseudo-segments included."""
        self._resource.append(Attribute(attribute_id=ATTRIBUTEID_RESOURCE_ID, value=resource_id))
        return self

    def add_workspace(self, workspace_name: str) -> EvaluationRequestBuilder:
        self._resource.append(Attribute(attribute_id=ATTRIBUTEID_RESOURCE_WORKSPACE, value=workspace_name))
        return self

    def add_actions(self, actions: Iterable[str]) -> EvaluationRequestBuilder:
        """Add one action attribute per action.

        A "remove" action also adds the Descendants scope attribute, at most
        once per builder.
        """
        for action in actions:
            self._action.append(Attribute(attribute_id=ATTRIBUTEID_ACTION_ID, value=action))
            if action == ACTION_REMOVE and not self._scope_added:
                self._resource.append(Attribute(attribute_id=ATTRIBUTEID_RESOURCE_SCOPE, value=SCOPE_DESCENDANTS))
                self._scope_added = True
        return self

    def add_original_request_ip(self, address: str) -> EvaluationRequestBuilder:
        self._environment.append(
            Attribute(attribute_id=ATTRIBUTEID_ENVIRONMENT_ORIGINAL_IP_ADDRESS, value=address)
        )
        return self

    def add_finder_module(self, module: AttributeFinderModule) -> EvaluationRequestBuilder:
        """Append an attribute finder module; modules are consulted in order."""
        self._modules.append(module)
        return self

    def build(
        self,
        session: StoreSession | None = None,
        evaluation_time: datetime | None = None,
    ) -> EvaluationRequest:
        """Freeze the collected attributes into an EvaluationRequest.

        Args:
            session: Store session the finder modules resolve against.
            evaluation_time: Instant clock attributes resolve to (now, UTC,
                when omitted).

        Returns:
            The immutable request.
        """
        request = EvaluationRequest(
            subject_attributes=tuple(self._subject),
            resource_attributes=tuple(self._resource),
            action_attributes=tuple(self._action),
            environment_attributes=tuple(self._environment),
            finder_modules=tuple(self._modules),
            session=session,
            evaluation_time=evaluation_time or datetime.now(timezone.utc),
        )
        if _system_logger.isEnabledFor(logging.DEBUG):
            _system_logger.debug(
                {
                    "event": "request_built",
                    "message": f"Built evaluation request for {request.resource_id or '/'}",
                    "request": request.to_dict(),
                }
            )
        return request
