"""Scene listing cache fed by a state-sync collaborator."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from broadcast_engines.connectors.obs.impl import ObsControlClient

logger = logging.getLogger(__name__)


class SceneStateSource(Protocol):
    def get_state(self) -> Dict[str, Any]:
        ...

    def is_initialized(self) -> bool:
        ...


class InMemorySceneState:
    def __init__(self, scenes: Optional[List[Dict[str, Any]]] = None):
        self._state: Dict[str, Any] = {}
        self._initialized = False
        if scenes is not None:
            self.set_scenes(scenes)

    def get_state(self) -> Dict[str, Any]:
        return dict(self._state)

    def is_initialized(self) -> bool:
        return self._initialized

    def set_scenes(self, scenes: List[Dict[str, Any]]) -> None:
        self._state["scenes"] = [dict(scene) for scene in scenes]
        self._initialized = True

    async def refresh(self, client: ObsControlClient) -> List[Dict[str, Any]]:
        response = await client.call("GetSceneList")
        scenes = response.get("scenes", [])
        self.set_scenes(scenes)
        logger.info("scene cache refreshed: %d scenes", len(scenes))
        return self._state["scenes"]

    def reset(self) -> None:
        self._state = {}
        self._initialized = False


_default_state: Optional[InMemorySceneState] = None


def get_scene_state() -> InMemorySceneState:
    global _default_state
    if _default_state is None:
        _default_state = InMemorySceneState()
    return _default_state
