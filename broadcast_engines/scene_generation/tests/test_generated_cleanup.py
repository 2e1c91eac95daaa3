import asyncio

from broadcast_engines.connectors.obs.impl import ObsCallError
from broadcast_engines.connectors.obs.memory import InMemoryObsControl
from broadcast_engines.scene_generation.events import SceneEventLog
from broadcast_engines.scene_generation.models import Camera, ShowConfig
from broadcast_engines.scene_generation.service import SceneGenerationEngine


def _engine(obs, log=None):
    config = ShowConfig(cameras=[Camera(id="cam-1", name="Main", srt_url="srt://localhost:9001")])
    return SceneGenerationEngine(client=obs, config=config, listeners=[log] if log else None)


def test_generated_registry_tracks_created_scenes_only():
    obs = InMemoryObsControl(scenes=["End Stream"])
    engine = _engine(obs)
    asyncio.run(engine.generate_all_scenes())

    assert engine.get_generated_scenes() == ["Stream Starting Soon", "Full Screen - Main", "Replay - Main"]


def test_delete_removes_generated_scenes_and_keeps_others():
    obs = InMemoryObsControl(scenes=["Interview"])
    engine = _engine(obs)
    asyncio.run(engine.generate_all_scenes())

    report = asyncio.run(engine.delete_generated_scenes())

    assert report.deleted == ["Stream Starting Soon", "End Stream", "Full Screen - Main", "Replay - Main"]
    assert report.failed == []
    assert list(obs.scenes) == ["Interview"]
    assert engine.get_generated_scenes() == []
    # Inputs are shared and stay behind.
    assert "SRT - Main" in obs.inputs


def test_delete_continues_past_failures_and_clears_registry():
    obs = InMemoryObsControl()
    engine = _engine(obs)
    asyncio.run(engine.generate_all_scenes())
    obs.fail_on("RemoveScene", ObsCallError("scene is live"), when={"sceneName": "Full Screen - Main"})

    report = asyncio.run(engine.delete_generated_scenes())

    assert report.deleted == ["Stream Starting Soon", "End Stream", "Replay - Main"]
    assert [(f.scene, f.error) for f in report.failed] == [("Full Screen - Main", "scene is live")]
    assert engine.get_generated_scenes() == []
    assert "Full Screen - Main" in obs.scenes


def test_delete_with_nothing_generated():
    obs = InMemoryObsControl()
    report = asyncio.run(_engine(obs).delete_generated_scenes())

    assert report.deleted == []
    assert report.failed == []
    assert obs.calls == []


def test_delete_emits_scenes_deleted_event():
    obs = InMemoryObsControl()
    log = SceneEventLog()
    engine = _engine(obs, log)
    asyncio.run(engine.generate_all_scenes())
    asyncio.run(engine.delete_generated_scenes())

    events = log.of_type("scenesDeleted")
    assert len(events) == 1
    assert events[0].payload["deleted"] == ["Stream Starting Soon", "End Stream", "Full Screen - Main", "Replay - Main"]
    assert log.recent(1) == events
