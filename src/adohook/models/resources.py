"""Typed ``resource`` shapes, keyed by event type.

An Event's ``resource`` is kept untyped on the envelope. Handlers look the
event type up in ``RESOURCE_MODELS`` to get the concrete model.
"""

from __future__ import annotations

import uuid
from typing import Any

from pydantic import Field, ValidationError

from adohook.errors.exceptions import ResourcePayloadMismatch
from adohook.models.events import AdoDateTime, Link, WireModel


class ProjectFragment(WireModel):
    id: uuid.UUID
    name: str | None = None
    description: str | None = None
    url: str | None = None
    state: str | None = None
    revision: int | None = None
    visibility: str | None = None
    last_update_time: AdoDateTime | None = None


class DefinitionFragment(WireModel):
    id: int
    name: str
    # API URL to query for more information about this pipeline definition
    url: str | None = None
    uri: str | None = None
    # Folder path of the pipeline definition
    path: str | None = None
    type_: str | None = Field(None, alias="type")
    queue_status: str | None = None
    revision: int | None = None
    project: ProjectFragment | None = None


class Build(WireModel):
    """Resource of a ``build.complete`` event. More fields exist on the wire."""

    id: int
    # API URL for further information about the run itself
    url: str
    # e.g. "20221202.1"
    build_number: str
    # e.g. "completed"
    status: str
    # e.g. "succeeded"
    result: str
    queue_time: AdoDateTime
    start_time: AdoDateTime
    finish_time: AdoDateTime
    # e.g. "manual", "batchedCI"
    reason: str
    tags: list[str] = Field(default_factory=list)
    template_parameters: dict[str, Any] = Field(default_factory=dict)
    links: dict[str, Link] = Field(..., alias="_links")
    definition: DefinitionFragment | None = None

    @property
    def web_url(self) -> str | None:
        link = self.links.get("web")
        return link.href if link else None


BUILD_COMPLETE = "build.complete"

RESOURCE_MODELS: dict[str, type[WireModel]] = {
    BUILD_COMPLETE: Build,
}


def decode_resource(event_type: str, resource: Any) -> WireModel | None:
    """Decode ``resource`` into the model registered for ``event_type``.

    Returns None for event types without a registered shape.

    Raises:
        ResourcePayloadMismatch: the payload does not fit the registered shape.
    """
    model = RESOURCE_MODELS.get(event_type)
    if model is None:
        return None
    try:
        return model.model_validate(resource)
    except ValidationError as exc:
        raise ResourcePayloadMismatch(
            event_type,
            details=exc.errors(include_url=False, include_context=False),
        ) from exc
