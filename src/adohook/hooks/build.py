"""Handler for ``build.complete`` events."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from adohook.credentials import AccessToken
from adohook.errors.exceptions import MissingResource
from adohook.models.events import Event
from adohook.models.resources import BUILD_COMPLETE, Build, decode_resource

logger = logging.getLogger(__name__)

# Downstream business logic, e.g. filing a bug or re-queuing the run.
BuildAction = Callable[[AccessToken, Build], Awaitable[None]]


class BuildCompleteHandler:
    """Decodes a verified ``build.complete`` event and runs the build actions."""

    event_type: str = BUILD_COMPLETE

    def __init__(self, actions: list[BuildAction] | None = None) -> None:
        self._actions: list[BuildAction] = list(actions or [])

    def add_action(self, action: BuildAction) -> None:
        self._actions.append(action)

    def decode(self, event: Event) -> Build:
        """Extract the typed build from ``event``.

        Raises:
            MissingResource: the event has no resource.
            ResourcePayloadMismatch: the resource is not a build.
        """
        if event.resource is None:
            raise MissingResource(event.event_type)
        return decode_resource(BUILD_COMPLETE, event.resource)

    async def __call__(self, token: AccessToken, event: Event) -> Build:
        build = self.decode(event)
        logger.info(
            "Build %s (%s) finished: status=%s result=%s reason=%s",
            build.build_number,
            build.id,
            build.status,
            build.result,
            build.reason,
        )

        # TODO: for scheduled production pipelines, file or update an ADO bug
        # and request a retry of the run; both plug in as build actions.
        for action in self._actions:
            await action(token, build)
        return build
