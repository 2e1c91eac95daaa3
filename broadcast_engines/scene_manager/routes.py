"""Scene CRUD HTTP routes.

Endpoints:
- GET /obs/scenes: cached scene listing
- POST /obs/scenes/sync: refresh the cache from the remote side
- GET /obs/scenes/{scene_name}: scene with live items
- POST /obs/scenes: create an empty scene
- POST /obs/scenes/{scene_name}/duplicate: copy a scene and its items
- PUT /obs/scenes/reorder: validate a presentation order
- PUT /obs/scenes/{scene_name}: rename
- DELETE /obs/scenes/{scene_name}: remove
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from broadcast_engines.common.error_envelope import (
    error_response,
    obs_call_error,
    state_unavailable_error,
)
from broadcast_engines.connectors.obs.impl import ObsCallError, ObsControlClient, get_control_client
from broadcast_engines.scene_manager.models import (
    CreateSceneRequest,
    ReorderScenesRequest,
    SceneNameChangeRequest,
)
from broadcast_engines.scene_manager.service import (
    SceneCRUDManager,
    SceneStateUnavailable,
    SceneValidationError,
)
from broadcast_engines.scene_manager.state import InMemorySceneState, get_scene_state

router = APIRouter(prefix="/obs/scenes", tags=["obs_scenes"])

RESOURCE_KIND = "scene"


def get_scene_manager(
    client: ObsControlClient = Depends(get_control_client),
    state: InMemorySceneState = Depends(get_scene_state),
) -> SceneCRUDManager:
    return SceneCRUDManager(client, state)


def _validation_error(exc: SceneValidationError):
    error_response(
        code="scene.validation_error",
        message=str(exc),
        status_code=400,
        resource_kind=RESOURCE_KIND,
    )


@router.get("")
def list_scenes(manager: SceneCRUDManager = Depends(get_scene_manager)):
    try:
        return {"scenes": manager.get_scenes()}
    except SceneStateUnavailable as e:
        state_unavailable_error(str(e))


@router.post("/sync")
async def sync_scenes(
    client: ObsControlClient = Depends(get_control_client),
    state: InMemorySceneState = Depends(get_scene_state),
):
    try:
        scenes = await state.refresh(client)
    except ObsCallError as e:
        obs_call_error(e, RESOURCE_KIND)
    return {"scenes": scenes}


@router.get("/{scene_name}")
async def get_scene(scene_name: str, manager: SceneCRUDManager = Depends(get_scene_manager)):
    try:
        scene = await manager.get_scene(scene_name)
    except SceneStateUnavailable as e:
        state_unavailable_error(str(e))
    except ObsCallError as e:
        obs_call_error(e, RESOURCE_KIND)
    if scene is None:
        error_response(
            code="scene.not_found",
            message=f"Scene not found: {scene_name}",
            status_code=404,
            resource_kind=RESOURCE_KIND,
            details={"scene_name": scene_name},
        )
    return scene


@router.post("")
async def create_scene(req: CreateSceneRequest, manager: SceneCRUDManager = Depends(get_scene_manager)):
    try:
        details = await manager.create_scene(req.scene_name)
    except SceneValidationError as e:
        _validation_error(e)
    except ObsCallError as e:
        obs_call_error(e, RESOURCE_KIND)
    return {"success": True, "scene": req.scene_name, "details": details}


@router.post("/{scene_name}/duplicate")
async def duplicate_scene(
    scene_name: str,
    req: SceneNameChangeRequest,
    manager: SceneCRUDManager = Depends(get_scene_manager),
):
    try:
        result = await manager.duplicate_scene(scene_name, req.new_name)
    except SceneValidationError as e:
        _validation_error(e)
    except ObsCallError as e:
        obs_call_error(e, RESOURCE_KIND)
    return {"success": True, "scene": req.new_name, **result}


@router.put("/reorder")
async def reorder_scenes(req: ReorderScenesRequest, manager: SceneCRUDManager = Depends(get_scene_manager)):
    try:
        result = await manager.reorder_scenes(req.scene_order)
    except SceneValidationError as e:
        _validation_error(e)
    except SceneStateUnavailable as e:
        state_unavailable_error(str(e))
    return {"success": True, **result}


@router.put("/{scene_name}")
async def rename_scene(
    scene_name: str,
    req: SceneNameChangeRequest,
    manager: SceneCRUDManager = Depends(get_scene_manager),
):
    try:
        result = await manager.rename_scene(scene_name, req.new_name)
    except SceneValidationError as e:
        _validation_error(e)
    except ObsCallError as e:
        obs_call_error(e, RESOURCE_KIND)
    return {"success": True, **result}


@router.delete("/{scene_name}")
async def delete_scene(scene_name: str, manager: SceneCRUDManager = Depends(get_scene_manager)):
    try:
        result = await manager.delete_scene(scene_name)
    except SceneValidationError as e:
        _validation_error(e)
    except ObsCallError as e:
        obs_call_error(e, RESOURCE_KIND)
    return {"success": True, **result}
