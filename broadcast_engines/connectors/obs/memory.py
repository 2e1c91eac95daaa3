"""In-process control surface implementing the subset of remote requests the engines use."""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from broadcast_engines.connectors.obs.impl import (
    RESOURCE_NOT_FOUND,
    SCENE_ALREADY_EXISTS,
    ObsCallError,
)

UNKNOWN_REQUEST_TYPE = 204


@dataclass
class _SceneItem:
    scene_item_id: int
    source_name: str
    enabled: bool = True
    transform: Dict[str, Any] = field(default_factory=dict)

    def to_wire(self, index: int) -> Dict[str, Any]:
        return {
            "sceneItemId": self.scene_item_id,
            "sourceName": self.source_name,
            "sceneItemEnabled": self.enabled,
            "sceneItemIndex": index,
            "sceneItemTransform": dict(self.transform),
        }


@dataclass
class _Failure:
    error: ObsCallError
    when: Dict[str, Any]

    def matches(self, params: Dict[str, Any]) -> bool:
        return all(params.get(key) == value for key, value in self.when.items())


class InMemoryObsControl:
    """Keeps scenes, inputs and item stacks in memory.

    Item stacks are stored top-first: index 0 is the top, and CreateSceneItem
    inserts at 0, matching the ObsControlClient contract.
    """

    def __init__(self, scenes: Optional[List[str]] = None, inputs: Optional[Dict[str, str]] = None):
        self.scenes: Dict[str, List[_SceneItem]] = {}
        self.inputs: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self._failures: Dict[str, List[_Failure]] = {}
        self._next_item_id = 1
        for name in scenes or []:
            self.scenes[name] = []
        for name, kind in (inputs or {}).items():
            self.inputs[name] = {"inputKind": kind, "inputSettings": {}}

    # --- test hooks ---

    def fail_on(
        self,
        method: str,
        error: Optional[ObsCallError] = None,
        when: Optional[Dict[str, Any]] = None,
    ) -> None:
        failure = _Failure(error or ObsCallError(f"{method} failed"), dict(when or {}))
        self._failures.setdefault(method, []).append(failure)

    def clear_failures(self) -> None:
        self._failures.clear()

    def calls_to(self, method: str) -> List[Dict[str, Any]]:
        return [params for name, params in self.calls if name == method]

    def items_of(self, scene_name: str) -> List[str]:
        return [item.source_name for item in self._scene(scene_name)]

    # --- request dispatch ---

    async def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        params = copy.deepcopy(params or {})
        self.calls.append((method, params))
        for failure in self._failures.get(method, []):
            if failure.matches(params):
                raise failure.error
        handler = getattr(self, f"_handle_{method}", None)
        if handler is None:
            raise ObsCallError(f"Unknown request type: {method}", code=UNKNOWN_REQUEST_TYPE)
        return handler(params)

    def _scene(self, name: Optional[str]) -> List[_SceneItem]:
        if name not in self.scenes:
            raise ObsCallError(f"No source was found by the name of `{name}`.", code=RESOURCE_NOT_FOUND)
        return self.scenes[name]

    def _item(self, scene_name: str, scene_item_id: int) -> _SceneItem:
        for item in self._scene(scene_name):
            if item.scene_item_id == scene_item_id:
                return item
        raise ObsCallError(
            f"No scene items were found in scene `{scene_name}` with the ID `{scene_item_id}`.",
            code=RESOURCE_NOT_FOUND,
        )

    def _handle_GetSceneList(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "scenes": [
                {"sceneName": name, "sceneIndex": index}
                for index, name in enumerate(self.scenes)
            ]
        }

    def _handle_CreateScene(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("sceneName")
        if name in self.scenes:
            raise ObsCallError(
                f"A source already exists by that scene name: {name}", code=SCENE_ALREADY_EXISTS
            )
        self.scenes[name] = []
        return {}

    def _handle_RemoveScene(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("sceneName")
        self._scene(name)
        del self.scenes[name]
        return {}

    def _handle_SetSceneName(self, params: Dict[str, Any]) -> Dict[str, Any]:
        old, new = params.get("sceneName"), params.get("newSceneName")
        self._scene(old)
        if new in self.scenes:
            raise ObsCallError(f"A source already exists by that new scene name: {new}", code=SCENE_ALREADY_EXISTS)
        # Rebuild to keep the listing position of the renamed scene.
        self.scenes = {(new if name == old else name): items for name, items in self.scenes.items()}
        return {}

    def _handle_GetInputSettings(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("inputName")
        if name not in self.inputs:
            raise ObsCallError(f"No source was found by the name of `{name}`.", code=RESOURCE_NOT_FOUND)
        record = self.inputs[name]
        return {"inputSettings": dict(record["inputSettings"]), "inputKind": record["inputKind"]}

    def _handle_CreateInput(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("inputName")
        if name in self.inputs or name in self.scenes:
            raise ObsCallError(f"A source already exists by that input name: {name}", code=SCENE_ALREADY_EXISTS)
        self.inputs[name] = {
            "inputKind": params.get("inputKind"),
            "inputSettings": dict(params.get("inputSettings") or {}),
        }
        result: Dict[str, Any] = {}
        if params.get("sceneName"):
            result = self._handle_CreateSceneItem({"sceneName": params["sceneName"], "sourceName": name})
        return result

    def _handle_GetSceneItemList(self, params: Dict[str, Any]) -> Dict[str, Any]:
        items = self._scene(params.get("sceneName"))
        return {"sceneItems": [item.to_wire(index) for index, item in enumerate(items)]}

    def _handle_CreateSceneItem(self, params: Dict[str, Any]) -> Dict[str, Any]:
        items = self._scene(params.get("sceneName"))
        source = params.get("sourceName")
        if source not in self.inputs and source not in self.scenes:
            raise ObsCallError(f"No source was found by the name of `{source}`.", code=RESOURCE_NOT_FOUND)
        item = _SceneItem(
            scene_item_id=self._next_item_id,
            source_name=source,
            enabled=params.get("sceneItemEnabled", True),
        )
        self._next_item_id += 1
        items.insert(0, item)
        return {"sceneItemId": item.scene_item_id}

    def _handle_RemoveSceneItem(self, params: Dict[str, Any]) -> Dict[str, Any]:
        scene_name = params.get("sceneName")
        item = self._item(scene_name, params.get("sceneItemId"))
        self.scenes[scene_name].remove(item)
        return {}

    def _handle_SetSceneItemTransform(self, params: Dict[str, Any]) -> Dict[str, Any]:
        item = self._item(params.get("sceneName"), params.get("sceneItemId"))
        item.transform.update(params.get("sceneItemTransform") or {})
        return {}

    def _handle_SetSceneItemIndex(self, params: Dict[str, Any]) -> Dict[str, Any]:
        scene_name = params.get("sceneName")
        item = self._item(scene_name, params.get("sceneItemId"))
        items = self.scenes[scene_name]
        index = max(0, min(int(params.get("sceneItemIndex", 0)), len(items) - 1))
        items.remove(item)
        items.insert(index, item)
        return {}
