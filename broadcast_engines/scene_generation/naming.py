"""Scene and input names, matching the broadcast template conventions.

Names are the only identity a scene has on the remote side, so every
function here must stay deterministic for a given roster.
"""
from __future__ import annotations

from typing import List, Literal, Sequence, Tuple

from broadcast_engines.scene_generation.combinations import combinations
from broadcast_engines.scene_generation.models import Camera

DualPosition = Literal["Left", "Right"]

STATIC_SCENES: Tuple[str, ...] = ("Stream Starting Soon", "End Stream")
QUAD_SCENE = "Quad View"
GRAPHICS_SCENE = "Web-graphics-only-no-video"

GRAPHICS_OVERLAY_INPUT = "Graphics Overlay"
GRAPHICS_FULLSCREEN_INPUT = "Web Graphics Source"

DUAL_POSITIONS: Tuple[DualPosition, ...] = ("Left", "Right")


def camera_input_name(camera: Camera) -> str:
    return f"SRT - {camera.name}"


def single_scene_name(camera: Camera) -> str:
    return f"Full Screen - {camera.name}"


def replay_scene_name(camera: Camera) -> str:
    return f"Replay - {camera.name}"


def dual_meet_scene_name(featured: Camera, position: DualPosition) -> str:
    return f"Dual View - {featured.name} - {position}"


def dual_scene_name(cam1: Camera, cam2: Camera) -> str:
    return f"Dual View - {cam1.name} & {cam2.name}"


def triple_scene_name(cam1: Camera, cam2: Camera, cam3: Camera) -> str:
    return f"Triple View - {cam1.name} {cam2.name} {cam3.name}"


def quad_scene_name(cameras: Sequence[Camera]) -> str:
    # Every 4-combination shares this name, so at most one quad scene exists.
    return QUAD_SCENE


def dual_meet_candidates(cameras: Sequence[Camera]) -> List[Tuple[Camera, Camera, DualPosition]]:
    """(featured, other, position) for the 2-camera directional expansion."""
    cam_a, cam_b = cameras
    return [
        (featured, other, position)
        for featured, other in ((cam_a, cam_b), (cam_b, cam_a))
        for position in DUAL_POSITIONS
    ]


def dual_scene_names(cameras: Sequence[Camera]) -> List[str]:
    if len(cameras) == 2:
        return [dual_meet_scene_name(featured, position) for featured, _, position in dual_meet_candidates(cameras)]
    if len(cameras) >= 3:
        return [dual_scene_name(cam1, cam2) for cam1, cam2 in combinations(cameras, 2)]
    return []


def triple_scene_names(cameras: Sequence[Camera]) -> List[str]:
    if len(cameras) < 3:
        return []
    return [triple_scene_name(*combo) for combo in combinations(cameras, 3)]


def quad_scene_names(cameras: Sequence[Camera]) -> List[str]:
    """Distinct quad names a run can create: one, however many 4-combinations exist."""
    if len(cameras) < 4:
        return []
    return [QUAD_SCENE]
