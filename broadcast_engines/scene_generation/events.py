"""Lifecycle events emitted by the scene generation engine.

Listeners are plain callables registered on an engine instance; there is no
process-wide bus, so an engine driven from a test or a script has no hidden
subscribers.
"""
from __future__ import annotations

import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, Iterable, List, Literal
from uuid import uuid4

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SCENE_CREATED = "sceneCreated"
GENERATION_COMPLETE = "generationComplete"
SCENES_DELETED = "scenesDeleted"

SceneEventType = Literal["sceneCreated", "generationComplete", "scenesDeleted"]


class SceneEvent(BaseModel):
    event_id: str = Field(default_factory=lambda: str(uuid4()))
    event_type: SceneEventType
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    payload: Dict[str, Any] = Field(default_factory=dict)


SceneEventListener = Callable[[SceneEvent], None]


def dispatch(listeners: Iterable[SceneEventListener], event: SceneEvent) -> None:
    for listener in list(listeners):
        try:
            listener(event)
        except Exception as exc:
            logger.warning("scene event listener failed on %s: %s", event.event_type, exc)


class SceneEventLog:
    """Listener that keeps the most recent events for inspection."""

    def __init__(self, max_events: int = 200):
        self._events: Deque[SceneEvent] = deque(maxlen=max_events)

    def __call__(self, event: SceneEvent) -> None:
        self._events.append(event)

    def recent(self, limit: int = 50) -> List[SceneEvent]:
        if limit <= 0:
            return []
        return list(self._events)[-limit:]

    def of_type(self, event_type: str) -> List[SceneEvent]:
        return [event for event in self._events if event.event_type == event_type]
