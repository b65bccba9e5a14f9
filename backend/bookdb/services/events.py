"""Fire-and-forget publishing of auth events to the real-time notification hub."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from bookdb.models.enums import AuthEvent

logger = logging.getLogger(__name__)


class EventPublisher(Protocol):
    def publish(self, event: str, payload: dict[str, Any]) -> None: ...


def publish_event(publisher: EventPublisher | None, event: AuthEvent, payload: dict[str, Any]) -> None:
    """Publish an event; a missing publisher and a failing one are both no-ops."""
    if publisher is None:
        return
    try:
        publisher.publish(event.value, payload)
    except Exception:  # noqa: BLE001
        logger.warning("Event publish failed: %s", event.value, exc_info=True)
