from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class SceneItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    scene_item_id: int = Field(alias="sceneItemId")
    source_name: str = Field(alias="sourceName")
    enabled: bool = Field(default=True, alias="sceneItemEnabled")
    stack_index: int = Field(default=0, alias="sceneItemIndex")
    transform: Dict[str, Any] = Field(default_factory=dict, alias="sceneItemTransform")


class CreateSceneRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scene_name: str = Field(default="", alias="sceneName")


class SceneNameChangeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    new_name: str = Field(default="", alias="newName")


class ReorderScenesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    scene_order: List[str] = Field(alias="sceneOrder")
