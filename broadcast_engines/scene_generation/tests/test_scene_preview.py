import asyncio

import pytest

from broadcast_engines.connectors.obs.memory import InMemoryObsControl
from broadcast_engines.scene_generation.models import Camera, GraphicsOverlay, ShowConfig
from broadcast_engines.scene_generation.service import SceneGenerationEngine


def _roster(n):
    return [Camera(id=f"cam-{i}", name=f"Camera {i}", srt_url=f"srt://localhost:{9000 + i}") for i in range(1, n + 1)]


def _engine(n, obs=None):
    config = ShowConfig(
        show_name="Preview Check",
        cameras=_roster(n),
        graphics_overlay=GraphicsOverlay(url="http://localhost:5173/graphics"),
    )
    return SceneGenerationEngine(client=obs or InMemoryObsControl(), config=config)


def test_preview_for_three_cameras():
    preview = _engine(3).preview_scenes()

    assert preview.single == ["Full Screen - Camera 1", "Full Screen - Camera 2", "Full Screen - Camera 3"]
    assert preview.dual == [
        "Dual View - Camera 1 & Camera 2",
        "Dual View - Camera 1 & Camera 3",
        "Dual View - Camera 2 & Camera 3",
    ]
    assert preview.triple == ["Triple View - Camera 1 Camera 2 Camera 3"]
    assert preview.quad == []
    assert preview.static == ["Stream Starting Soon", "End Stream"]
    assert preview.graphics == ["Web-graphics-only-no-video"]
    assert preview.replay == ["Replay - Camera 1", "Replay - Camera 2", "Replay - Camera 3"]
    assert preview.totals.total == 3 + 3 + 1 + 0 + 2 + 1 + 3


def test_preview_lists_single_quad_name_for_large_rosters():
    preview = _engine(6).preview_scenes()

    assert preview.quad == ["Quad View"]
    assert preview.totals.quad == 1


def test_preview_makes_no_remote_calls():
    obs = InMemoryObsControl()
    _engine(4, obs=obs).preview_scenes()

    assert obs.calls == []


def test_preview_with_empty_roster():
    preview = _engine(0).preview_scenes()

    assert preview.static == ["Stream Starting Soon", "End Stream"]
    assert preview.graphics == ["Web-graphics-only-no-video"]
    assert preview.totals.total == 3


def test_preview_type_filter():
    preview = _engine(4).preview_scenes(types=["quad", "replay"])

    assert preview.single == []
    assert preview.static == []
    assert preview.quad == ["Quad View"]
    assert preview.totals.total == 1 + 4


def test_preview_rejects_unknown_type():
    with pytest.raises(ValueError):
        _engine(2).preview_scenes(types=["picture-in-picture"])


@pytest.mark.parametrize("n", range(1, 7))
def test_preview_matches_fresh_generation(n):
    engine = _engine(n)
    preview = engine.preview_scenes()
    report = asyncio.run(engine.generate_all_scenes())

    assert report.summary.failed == 0
    assert preview.totals.total == report.summary.created
    assert sorted(preview.all_names()) == sorted(r.scene for r in report.created)
