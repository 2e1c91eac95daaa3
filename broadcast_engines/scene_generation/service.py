from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from broadcast_engines.config import runtime_config
from broadcast_engines.config.show_config import load_show_config
from broadcast_engines.connectors.obs.impl import (
    SCENE_ALREADY_EXISTS,
    ObsCallError,
    ObsControlClient,
    get_control_client,
)
from broadcast_engines.scene_generation import naming
from broadcast_engines.scene_generation.combinations import combinations
from broadcast_engines.scene_generation.events import (
    GENERATION_COMPLETE,
    SCENE_CREATED,
    SCENES_DELETED,
    SceneEvent,
    SceneEventListener,
    SceneEventLog,
    dispatch,
)
from broadcast_engines.scene_generation.models import (
    ALL_FAMILIES,
    Camera,
    DeletionFailure,
    DeletionReport,
    GenerationReport,
    GenerationResult,
    GraphicsOverlay,
    PreviewTotals,
    SceneType,
    ScenePreview,
    ShowConfig,
)
from broadcast_engines.scene_generation.presets import TRANSFORM_PRESETS, TransformPreset

logger = logging.getLogger(__name__)

CAMERA_INPUT_KIND = "ffmpeg_source"
BROWSER_INPUT_KIND = "browser_source"
QUAD_CARDINALITY_ERROR = "Quad scene requires exactly 4 cameras"
NO_GRAPHICS_URL_ERROR = "No graphics URL configured"

Placement = Tuple[Camera, str]


def _error_message(exc: BaseException) -> str:
    return getattr(exc, "message", None) or str(exc)


def _query_value(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def camera_input_settings(camera: Camera) -> Dict[str, object]:
    return {
        "input": camera.srt_url,
        "is_local_file": False,
        "buffering_mb": 2,
        "reconnect_delay_sec": 5,
        "restart_on_activate": False,
        "hw_decode": True,
    }


def browser_input_settings(url: str) -> Dict[str, object]:
    return {
        "url": url,
        "width": 1920,
        "height": 1080,
        "fps": 30,
        "css": "",
        "shutdown": False,
        "restart_when_active": False,
    }


class SceneGenerationEngine:
    """Creates every layout scene for a camera roster, create-if-absent only.

    Runs are strictly sequential: one remote call in flight at a time, phases
    in a fixed order, and each candidate scene isolated so a failure is
    recorded and the run moves on.
    """

    def __init__(
        self,
        client: Optional[ObsControlClient] = None,
        config: Optional[ShowConfig] = None,
        listeners: Optional[Iterable[SceneEventListener]] = None,
    ):
        self.client = client or get_control_client()
        self.cameras: List[Camera] = []
        self.graphics_overlay: Optional[GraphicsOverlay] = None
        # Insertion-ordered set of scene names this instance created.
        self._generated: Dict[str, None] = {}
        self._listeners: List[SceneEventListener] = list(listeners or [])
        if config is not None:
            self.apply_show_config(config)

    # --- configuration ---

    def update_config(
        self,
        cameras: Sequence[Camera],
        graphics_overlay: Optional[GraphicsOverlay] = None,
    ) -> None:
        self.cameras = list(cameras)
        self.graphics_overlay = graphics_overlay

    def apply_show_config(self, config: ShowConfig) -> None:
        self.update_config(config.cameras, config.graphics_overlay)

    def build_graphics_url(self) -> Optional[str]:
        return self._graphics_url_for(self.graphics_overlay)

    @staticmethod
    def _graphics_url_for(overlay: Optional[GraphicsOverlay]) -> Optional[str]:
        if overlay is None or not overlay.url:
            return None
        parts = urlsplit(overlay.url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Graphics overlay URL must be absolute: {overlay.url}")
        pairs = parse_qsl(parts.query, keep_blank_values=True)
        for key, value in overlay.query_params.items():
            # Replace the first occurrence in place and drop the rest; append new keys.
            positions = [index for index, (existing, _) in enumerate(pairs) if existing == key]
            if positions:
                pairs[positions[0]] = (key, _query_value(value))
                pairs = [pair for index, pair in enumerate(pairs) if index not in positions[1:]]
            else:
                pairs.append((key, _query_value(value)))
        path = parts.path or "/"
        return urlunsplit((parts.scheme, parts.netloc, path, urlencode(pairs), parts.fragment))

    # --- events ---

    def subscribe(self, listener: SceneEventListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: SceneEventListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event_type: str, payload: dict) -> None:
        dispatch(self._listeners, SceneEvent(event_type=event_type, payload=payload))

    # --- remote primitives ---

    async def scene_exists(self, scene_name: str) -> bool:
        try:
            response = await self.client.call("GetSceneList")
        except Exception as exc:
            # Treat a failed probe as "absent" so the create attempt still happens.
            logger.error(f"Error checking scene existence: {exc}")
            return False
        return any(scene.get("sceneName") == scene_name for scene in response.get("scenes", []))

    async def _create_scene(self, scene_name: str) -> bool:
        """False when the remote reports the scene already exists."""
        try:
            await self.client.call("CreateScene", {"sceneName": scene_name})
        except ObsCallError as exc:
            if exc.code == SCENE_ALREADY_EXISTS:
                return False
            raise
        return True

    async def _ensure_input(self, input_name: str, input_kind: str, settings: Dict[str, object]) -> bool:
        """Probe then create a global input; True if this call created it."""
        try:
            await self.client.call("GetInputSettings", {"inputName": input_name})
            return False
        except ObsCallError:
            logger.debug("input %s not found, creating", input_name)

        try:
            await self.client.call(
                "CreateInput",
                {
                    "sceneName": None,
                    "inputName": input_name,
                    "inputKind": input_kind,
                    "inputSettings": settings,
                },
            )
        except ObsCallError as exc:
            if exc.code == SCENE_ALREADY_EXISTS:
                return False
            raise
        return True

    async def create_camera_input(self, camera: Camera) -> str:
        input_name = naming.camera_input_name(camera)
        await self._ensure_input(input_name, CAMERA_INPUT_KIND, camera_input_settings(camera))
        return input_name

    async def add_source_to_scene(self, scene_name: str, source_name: str, transform: TransformPreset) -> int:
        response = await self.client.call(
            "CreateSceneItem",
            {"sceneName": scene_name, "sourceName": source_name, "sceneItemEnabled": True},
        )
        scene_item_id = response["sceneItemId"]
        await self.client.call(
            "SetSceneItemTransform",
            {
                "sceneName": scene_name,
                "sceneItemId": scene_item_id,
                "sceneItemTransform": transform.to_wire(),
            },
        )
        return scene_item_id

    async def add_graphics_overlay(self, scene_name: str, graphics_url: Optional[str]) -> Optional[int]:
        """Fullscreen overlay pinned to stack index 0. Failures leave the scene without it."""
        if not graphics_url:
            return None
        try:
            await self._ensure_input(
                naming.GRAPHICS_OVERLAY_INPUT, BROWSER_INPUT_KIND, browser_input_settings(graphics_url)
            )
            scene_item_id = await self.add_source_to_scene(
                scene_name, naming.GRAPHICS_OVERLAY_INPUT, TRANSFORM_PRESETS["fullscreen"]
            )
            await self.client.call(
                "SetSceneItemIndex",
                {"sceneName": scene_name, "sceneItemId": scene_item_id, "sceneItemIndex": 0},
            )
            return scene_item_id
        except Exception as exc:
            logger.warning(f"Error adding graphics overlay to {scene_name}: {_error_message(exc)}")
            return None

    # --- one candidate scene ---

    def _record_created(self, scene_name: str, scene_type: SceneType, camera_ids: List[str]) -> GenerationResult:
        self._generated[scene_name] = None
        logger.info("created scene %s (%s)", scene_name, scene_type)
        self._emit(SCENE_CREATED, {"scene": scene_name, "type": scene_type, "cameras": camera_ids})
        return GenerationResult(scene=scene_name, status="created", type=scene_type, cameras=camera_ids)

    async def _create_layout_scene(
        self,
        scene_name: str,
        scene_type: SceneType,
        placements: Sequence[Placement],
        graphics_url: Optional[str],
    ) -> GenerationResult:
        camera_ids = [camera.id for camera, _ in placements]
        if await self.scene_exists(scene_name):
            return GenerationResult(
                scene=scene_name, status="skipped", type=scene_type, reason="exists", cameras=camera_ids
            )

        try:
            if not await self._create_scene(scene_name):
                return GenerationResult(
                    scene=scene_name, status="skipped", type=scene_type, reason="exists", cameras=camera_ids
                )
            for camera, preset_key in placements:
                await self.add_source_to_scene(
                    scene_name, naming.camera_input_name(camera), TRANSFORM_PRESETS[preset_key]
                )
            await self.add_graphics_overlay(scene_name, graphics_url)
        except Exception as exc:
            # The half-built scene stays; it will be skipped as existing next run.
            logger.warning(f"Failed to build scene {scene_name}: {_error_message(exc)}")
            return GenerationResult(
                scene=scene_name, status="failed", type=scene_type, error=_error_message(exc), cameras=camera_ids
            )

        return self._record_created(scene_name, scene_type, camera_ids)

    async def create_static_scene(self, scene_name: str, graphics_url: Optional[str]) -> GenerationResult:
        return await self._create_layout_scene(scene_name, "static", [], graphics_url)

    async def create_single_camera_scene(self, camera: Camera, graphics_url: Optional[str]) -> GenerationResult:
        return await self._create_layout_scene(
            naming.single_scene_name(camera), "single", [(camera, "fullscreen")], graphics_url
        )

    async def create_replay_scene(self, camera: Camera, graphics_url: Optional[str]) -> GenerationResult:
        return await self._create_layout_scene(
            naming.replay_scene_name(camera), "replay", [(camera, "fullscreen")], graphics_url
        )

    async def create_dual_meet_scene(
        self,
        featured: Camera,
        other: Camera,
        position: naming.DualPosition,
        graphics_url: Optional[str],
    ) -> GenerationResult:
        if position == "Left":
            placements = [(featured, "dualLeft"), (other, "dualRight")]
        else:
            placements = [(other, "dualLeft"), (featured, "dualRight")]
        return await self._create_layout_scene(
            naming.dual_meet_scene_name(featured, position), "dual-meet", placements, graphics_url
        )

    async def create_dual_camera_scene(self, cam1: Camera, cam2: Camera, graphics_url: Optional[str]) -> GenerationResult:
        return await self._create_layout_scene(
            naming.dual_scene_name(cam1, cam2),
            "dual",
            [(cam1, "dualLeft"), (cam2, "dualRight")],
            graphics_url,
        )

    async def create_triple_camera_scene(
        self, cam1: Camera, cam2: Camera, cam3: Camera, graphics_url: Optional[str]
    ) -> GenerationResult:
        return await self._create_layout_scene(
            naming.triple_scene_name(cam1, cam2, cam3),
            "triple",
            [(cam1, "tripleMain"), (cam2, "tripleTopRight"), (cam3, "tripleBottomRight")],
            graphics_url,
        )

    async def create_quad_camera_scene(self, cameras: Sequence[Camera], graphics_url: Optional[str]) -> GenerationResult:
        if len(cameras) != 4:
            return GenerationResult(
                scene=None,
                status="failed",
                type="quad",
                error=QUAD_CARDINALITY_ERROR,
                cameras=[camera.id for camera in cameras],
            )
        top_left, top_right, bottom_left, bottom_right = cameras
        return await self._create_layout_scene(
            naming.quad_scene_name(cameras),
            "quad",
            [
                (top_left, "quadTopLeft"),
                (top_right, "quadTopRight"),
                (bottom_left, "quadBottomLeft"),
                (bottom_right, "quadBottomRight"),
            ],
            graphics_url,
        )

    async def create_graphics_fullscreen_scene(self, graphics_url: Optional[str]) -> GenerationResult:
        scene_name = naming.GRAPHICS_SCENE
        if await self.scene_exists(scene_name):
            return GenerationResult(scene=scene_name, status="skipped", type="graphics", reason="exists")
        if not graphics_url:
            return GenerationResult(scene=scene_name, status="failed", type="graphics", error=NO_GRAPHICS_URL_ERROR)

        try:
            if not await self._create_scene(scene_name):
                return GenerationResult(scene=scene_name, status="skipped", type="graphics", reason="exists")
            await self._ensure_input(
                naming.GRAPHICS_FULLSCREEN_INPUT, BROWSER_INPUT_KIND, browser_input_settings(graphics_url)
            )
            await self.add_source_to_scene(
                scene_name, naming.GRAPHICS_FULLSCREEN_INPUT, TRANSFORM_PRESETS["fullscreen"]
            )
        except Exception as exc:
            logger.warning(f"Failed to build scene {scene_name}: {_error_message(exc)}")
            return GenerationResult(scene=scene_name, status="failed", type="graphics", error=_error_message(exc))

        return self._record_created(scene_name, "graphics", [])

    # --- whole runs ---

    @staticmethod
    def _resolve_families(types: Optional[Iterable[str]]) -> List[str]:
        if types is None:
            return list(ALL_FAMILIES)
        families = list(types)
        unknown = [family for family in families if family not in ALL_FAMILIES]
        if unknown:
            raise ValueError(f"Unknown scene types: {', '.join(unknown)}")
        return families

    def preview_scenes(self, types: Optional[Iterable[str]] = None) -> ScenePreview:
        """Names a generation run would attempt, without touching the remote side."""
        families = self._resolve_families(types)
        cameras = self.cameras
        preview = ScenePreview()

        if "single" in families:
            preview.single = [naming.single_scene_name(camera) for camera in cameras]
        if "dual" in families:
            preview.dual = naming.dual_scene_names(cameras)
        if "triple" in families:
            preview.triple = naming.triple_scene_names(cameras)
        if "quad" in families:
            preview.quad = naming.quad_scene_names(cameras)
        if "static" in families:
            preview.static = list(naming.STATIC_SCENES)
        if "graphics" in families:
            preview.graphics = [naming.GRAPHICS_SCENE]
        if "replay" in families:
            preview.replay = [naming.replay_scene_name(camera) for camera in cameras]

        counts = {family: len(getattr(preview, family)) for family in ALL_FAMILIES}
        preview.totals = PreviewTotals(**counts, total=sum(counts.values()))
        return preview

    async def generate_all_scenes(
        self,
        config: Optional[ShowConfig] = None,
        types: Optional[Iterable[str]] = None,
    ) -> GenerationReport:
        # Validate a new config before it replaces the current one.
        families = self._resolve_families(types)
        if config is not None:
            graphics_url = self._graphics_url_for(config.graphics_overlay)
            self.apply_show_config(config)
        else:
            graphics_url = self.build_graphics_url()
        cameras = list(self.cameras)
        report = GenerationReport()
        logger.info("generating scenes for %d cameras (%s)", len(cameras), ", ".join(families))

        for camera in cameras:
            try:
                await self.create_camera_input(camera)
            except Exception as exc:
                logger.warning(f"Failed to create input for {camera.name}: {_error_message(exc)}")

        if "static" in families:
            for scene_name in naming.STATIC_SCENES:
                report.add(await self.create_static_scene(scene_name, graphics_url))

        if "single" in families:
            for camera in cameras:
                report.add(await self.create_single_camera_scene(camera, graphics_url))

        if "dual" in families:
            if len(cameras) == 2:
                for featured, other, position in naming.dual_meet_candidates(cameras):
                    report.add(await self.create_dual_meet_scene(featured, other, position, graphics_url))
            elif len(cameras) >= 3:
                for cam1, cam2 in combinations(cameras, 2):
                    report.add(await self.create_dual_camera_scene(cam1, cam2, graphics_url))

        if "triple" in families and len(cameras) >= 3:
            for cam1, cam2, cam3 in combinations(cameras, 3):
                report.add(await self.create_triple_camera_scene(cam1, cam2, cam3, graphics_url))

        if "quad" in families and len(cameras) >= 4:
            # All candidates share one name: the first wins, the rest skip as existing.
            for combo in combinations(cameras, 4):
                report.add(await self.create_quad_camera_scene(combo, graphics_url))

        if "replay" in families:
            for camera in cameras:
                report.add(await self.create_replay_scene(camera, graphics_url))

        if "graphics" in families:
            report.add(await self.create_graphics_fullscreen_scene(graphics_url))

        report.finalize()
        logger.info(
            "scene generation complete: created=%d skipped=%d failed=%d",
            report.summary.created,
            report.summary.skipped,
            report.summary.failed,
        )
        self._emit(GENERATION_COMPLETE, report.model_dump())
        return report

    async def delete_generated_scenes(self) -> DeletionReport:
        report = DeletionReport()
        for scene_name in list(self._generated):
            try:
                await self.client.call("RemoveScene", {"sceneName": scene_name})
                report.deleted.append(scene_name)
            except Exception as exc:
                report.failed.append(DeletionFailure(scene=scene_name, error=_error_message(exc)))

        self._generated.clear()
        if report.failed:
            logger.warning("could not remove %d generated scenes", len(report.failed))
        self._emit(SCENES_DELETED, report.model_dump())
        return report

    def get_generated_scenes(self) -> List[str]:
        return list(self._generated)


_default_service: Optional[SceneGenerationEngine] = None
_default_event_log: Optional[SceneEventLog] = None


def get_scene_event_log() -> SceneEventLog:
    global _default_event_log
    if _default_event_log is None:
        _default_event_log = SceneEventLog()
    return _default_event_log


def get_scene_generation_service() -> SceneGenerationEngine:
    global _default_service
    if _default_service is None:
        config_path = runtime_config.get_show_config_path()
        config = load_show_config(config_path) if config_path else None
        _default_service = SceneGenerationEngine(config=config, listeners=[get_scene_event_log()])
    return _default_service
