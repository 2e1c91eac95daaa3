"""Operator scene management: create, duplicate, rename, delete and order scenes.

Scene listings come from the state cache; item listings are always fetched
live. Remote errors reach the caller unchanged and nothing is retried.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from broadcast_engines.connectors.obs.impl import ObsControlClient
from broadcast_engines.scene_manager.models import SceneItem
from broadcast_engines.scene_manager.state import SceneStateSource

logger = logging.getLogger(__name__)

REORDER_NOTE = (
    "Scene order is managed client-side; the remote control protocol has no scene reorder request"
)


class SceneValidationError(ValueError):
    pass


class SceneStateUnavailable(RuntimeError):
    pass


def _require(value: Optional[str], message: str) -> None:
    if not value:
        raise SceneValidationError(message)


class SceneCRUDManager:
    def __init__(self, client: ObsControlClient, state_source: Optional[SceneStateSource]):
        self.client = client
        self.state_source = state_source

    def get_scenes(self) -> List[Dict[str, Any]]:
        if self.state_source is None or not self.state_source.is_initialized():
            raise SceneStateUnavailable("Scene state cache is not available")
        return list(self.state_source.get_state().get("scenes") or [])

    async def get_scene(self, scene_name: str) -> Optional[Dict[str, Any]]:
        scene = next((s for s in self.get_scenes() if s.get("sceneName") == scene_name), None)
        if scene is None:
            return None
        response = await self.client.call("GetSceneItemList", {"sceneName": scene_name})
        return {**scene, "items": response.get("sceneItems", [])}

    async def create_scene(self, scene_name: str) -> Dict[str, Any]:
        _require(scene_name, "Scene name is required")
        await self.client.call("CreateScene", {"sceneName": scene_name})
        logger.info("created scene %s", scene_name)
        return {"name": scene_name, "items": []}

    async def duplicate_scene(self, source_name: str, new_name: str) -> Dict[str, Any]:
        """Copy a scene item-for-item.

        CreateSceneItem always lands at stack index 0, so items are recreated
        from the last listed to the first; the copy then lists in the same
        order as the source.
        """
        if not source_name or not new_name:
            raise SceneValidationError("Source name and new name are required")
        if source_name == new_name:
            raise SceneValidationError("Source and destination scene names must be different")

        await self.client.call("CreateScene", {"sceneName": new_name})
        response = await self.client.call("GetSceneItemList", {"sceneName": source_name})
        items = [SceneItem.model_validate(raw) for raw in response.get("sceneItems", [])]

        for item in reversed(items):
            await self.client.call(
                "CreateSceneItem",
                {
                    "sceneName": new_name,
                    "sourceName": item.source_name,
                    "sceneItemEnabled": item.enabled,
                },
            )

        logger.info("duplicated scene %s -> %s (%d items)", source_name, new_name, len(items))
        return {"name": new_name, "copiedFrom": source_name, "itemCount": len(items)}

    async def rename_scene(self, old_name: str, new_name: str) -> Dict[str, Any]:
        if not old_name or not new_name:
            raise SceneValidationError("Old name and new name are required")
        if old_name == new_name:
            raise SceneValidationError("Old and new scene names must be different")

        await self.client.call("SetSceneName", {"sceneName": old_name, "newSceneName": new_name})
        logger.info("renamed scene %s -> %s", old_name, new_name)
        return {"oldName": old_name, "newName": new_name}

    async def delete_scene(self, scene_name: str) -> Dict[str, Any]:
        _require(scene_name, "Scene name is required")
        await self.client.call("RemoveScene", {"sceneName": scene_name})
        logger.info("deleted scene %s", scene_name)
        return {"deleted": scene_name}

    async def reorder_scenes(self, scene_order: Sequence[str]) -> Dict[str, Any]:
        """Validate an order against the cache and hand it back; no remote mutation."""
        if not isinstance(scene_order, (list, tuple)):
            raise SceneValidationError("Scene order must be an array")

        known = {scene.get("sceneName") for scene in self.get_scenes()}
        unknown = [name for name in scene_order if name not in known]
        if unknown:
            raise SceneValidationError(f"Scene order contains unknown scenes: {', '.join(map(str, unknown))}")

        logger.info("validated scene order: %d scenes", len(scene_order))
        return {"order": list(scene_order), "note": REORDER_NOTE}
