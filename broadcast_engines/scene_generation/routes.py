from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query

from broadcast_engines.common.error_envelope import error_response
from broadcast_engines.scene_generation.events import SceneEvent, SceneEventLog, SceneEventType
from broadcast_engines.scene_generation.models import (
    DeletionReport,
    GenerateScenesRequest,
    GenerationReport,
    ScenePreview,
)
from broadcast_engines.scene_generation.service import (
    SceneGenerationEngine,
    get_scene_event_log,
    get_scene_generation_service,
)

router = APIRouter(prefix="/obs/scene-generation", tags=["obs_scene_generation"])

RESOURCE_KIND = "scene_generation"


def _bad_request(exc: ValueError):
    error_response(
        code="scene_generation.invalid_request",
        message=str(exc),
        status_code=400,
        resource_kind=RESOURCE_KIND,
    )


@router.get("/preview", response_model=ScenePreview)
def preview_scenes(
    types: Optional[List[str]] = Query(None),
    engine: SceneGenerationEngine = Depends(get_scene_generation_service),
):
    try:
        return engine.preview_scenes(types)
    except ValueError as e:
        _bad_request(e)


@router.post("/generate", response_model=GenerationReport)
async def generate_scenes(
    req: Optional[GenerateScenesRequest] = Body(None),
    engine: SceneGenerationEngine = Depends(get_scene_generation_service),
):
    req = req or GenerateScenesRequest()
    try:
        return await engine.generate_all_scenes(req.config, types=req.types)
    except ValueError as e:
        _bad_request(e)


@router.get("/generated")
def list_generated_scenes(engine: SceneGenerationEngine = Depends(get_scene_generation_service)):
    return {"scenes": engine.get_generated_scenes()}


@router.delete("/generated", response_model=DeletionReport)
async def delete_generated_scenes(engine: SceneGenerationEngine = Depends(get_scene_generation_service)):
    return await engine.delete_generated_scenes()


@router.get("/events", response_model=List[SceneEvent])
def list_events(
    limit: int = Query(50, ge=1, le=200),
    event_type: Optional[SceneEventType] = Query(None),
    event_log: SceneEventLog = Depends(get_scene_event_log),
):
    if event_type is not None:
        return event_log.of_type(event_type)[-limit:]
    return event_log.recent(limit)
