"""FastAPI application for the scene generation and scene management engines."""
from __future__ import annotations

from fastapi import FastAPI

from broadcast_engines.scene_generation.routes import router as scene_generation_router
from broadcast_engines.scene_manager.routes import router as scene_manager_router


def create_app() -> FastAPI:
    app = FastAPI(title="Broadcast Scene Engines", version="0.1.0")
    app.include_router(scene_generation_router)
    app.include_router(scene_manager_router)
    return app


app = create_app()
