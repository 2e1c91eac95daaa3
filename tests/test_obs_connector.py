import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from broadcast_engines.connectors.obs import impl
from broadcast_engines.connectors.obs.impl import (
    McpObsClient,
    ObsCallError,
    decode_tool_result,
    get_control_client,
    set_control_client,
)
from broadcast_engines.connectors.obs.memory import InMemoryObsControl


def _text(text):
    return SimpleNamespace(type="text", text=text)


def _result(content=None, structured=None, is_error=False):
    return SimpleNamespace(content=content or [], structuredContent=structured, isError=is_error)


def _patched_bridge(call_result):
    mock_session = AsyncMock()
    mock_session.call_tool.return_value = call_result
    mock_session.list_tools.return_value = SimpleNamespace(
        tools=[SimpleNamespace(name="GetSceneList"), SimpleNamespace(name="CreateScene")]
    )

    stdio = MagicMock()
    stdio.return_value.__aenter__ = AsyncMock(return_value=("read-stream", "write-stream"))
    stdio.return_value.__aexit__ = AsyncMock(return_value=False)

    session_cls = MagicMock()
    session_cls.return_value.__aenter__ = AsyncMock(return_value=mock_session)
    session_cls.return_value.__aexit__ = AsyncMock(return_value=False)
    return stdio, session_cls, mock_session


def test_mcp_client_call():
    asyncio.run(_async_test_mcp_client_call())


async def _async_test_mcp_client_call():
    stdio, session_cls, mock_session = _patched_bridge(_result(structured={"scenes": [{"sceneName": "Main"}]}))

    with patch("broadcast_engines.connectors.obs.impl.stdio_client", stdio), \
         patch("broadcast_engines.connectors.obs.impl.ClientSession", session_cls):
        client = McpObsClient(command="npx", args=["-y", "obs-mcp@latest"], env={"OBS_WEBSOCKET_PASSWORD": "pw"})
        response = await client.call("GetSceneList")

    params = stdio.call_args.args[0]
    assert params.command == "npx"
    assert params.args == ["-y", "obs-mcp@latest"]
    assert params.env["OBS_WEBSOCKET_PASSWORD"] == "pw"
    session_cls.assert_called_with("read-stream", "write-stream")
    mock_session.initialize.assert_awaited_once()
    mock_session.call_tool.assert_called_with("GetSceneList", {})
    assert response == {"scenes": [{"sceneName": "Main"}]}


def test_mcp_client_error_result():
    stdio, session_cls, _ = _patched_bridge(
        _result(content=[_text("Request failed with code 601: source already exists")], is_error=True)
    )

    with patch("broadcast_engines.connectors.obs.impl.stdio_client", stdio), \
         patch("broadcast_engines.connectors.obs.impl.ClientSession", session_cls):
        with pytest.raises(ObsCallError) as exc_info:
            asyncio.run(McpObsClient(command="npx").call("CreateScene", {"sceneName": "Main"}))

    assert exc_info.value.code == 601
    assert "already exists" in exc_info.value.message


def test_mcp_client_list_methods():
    stdio, session_cls, _ = _patched_bridge(_result())

    with patch("broadcast_engines.connectors.obs.impl.stdio_client", stdio), \
         patch("broadcast_engines.connectors.obs.impl.ClientSession", session_cls):
        methods = asyncio.run(McpObsClient(command="obs-bridge").list_methods())

    assert methods == ["GetSceneList", "CreateScene"]


class TestDecodeToolResult:
    def test_structured_content_wins(self):
        result = _result(content=[_text('{"ignored": true}')], structured={"sceneItemId": 7})
        assert decode_tool_result("CreateSceneItem", result) == {"sceneItemId": 7}

    def test_first_json_object_text_block(self):
        result = _result(content=[_text("ok"), _text('["not", "a", "dict"]'), _text('{"sceneItemId": 3}')])
        assert decode_tool_result("CreateSceneItem", result) == {"sceneItemId": 3}

    def test_plain_text_gives_empty_response(self):
        assert decode_tool_result("RemoveScene", _result(content=[_text("Scene removed")])) == {}

    def test_error_with_json_code(self):
        result = _result(content=[_text('{"code": 600, "comment": "No source was found"}')], is_error=True)
        with pytest.raises(ObsCallError) as exc_info:
            decode_tool_result("RemoveScene", result)
        assert exc_info.value.code == 600

    def test_error_code_from_text(self):
        result = _result(content=[_text("Request failed (code: 601) resource already exists")], is_error=True)
        with pytest.raises(ObsCallError) as exc_info:
            decode_tool_result("CreateScene", result)
        assert exc_info.value.code == 601

    def test_numbers_in_names_are_not_codes(self):
        result = _result(content=[_text("Scene Barcode 601 Cam could not be created")], is_error=True)
        with pytest.raises(ObsCallError) as exc_info:
            decode_tool_result("CreateScene", result)
        assert exc_info.value.code is None

        result = _result(content=[_text("Request failed with code 6012")], is_error=True)
        with pytest.raises(ObsCallError) as exc_info:
            decode_tool_result("CreateScene", result)
        assert exc_info.value.code is None

    def test_error_without_code(self):
        with pytest.raises(ObsCallError) as exc_info:
            decode_tool_result("SetSceneName", _result(is_error=True))
        assert exc_info.value.code is None
        assert exc_info.value.message == "SetSceneName failed"


class TestControlClientSelection:
    def setup_method(self):
        set_control_client(None)

    def teardown_method(self):
        set_control_client(None)

    def test_memory_backend(self, monkeypatch):
        monkeypatch.setenv("OBS_CONTROL_BACKEND", "memory")
        client = get_control_client()
        assert isinstance(client, InMemoryObsControl)
        assert get_control_client() is client

    def test_mcp_backend(self, monkeypatch):
        monkeypatch.setenv("OBS_CONTROL_BACKEND", "MCP")
        monkeypatch.setenv("OBS_MCP_COMMAND", "obs-bridge")
        monkeypatch.setenv("OBS_MCP_ARGS", "--host 127.0.0.1 --port '4455'")
        client = get_control_client()
        assert isinstance(client, McpObsClient)
        assert client.command == "obs-bridge"
        assert client.args == ["--host", "127.0.0.1", "--port", "4455"]

    def test_mcp_defaults(self, monkeypatch):
        monkeypatch.setenv("OBS_CONTROL_BACKEND", "mcp")
        monkeypatch.delenv("OBS_MCP_COMMAND", raising=False)
        monkeypatch.delenv("OBS_MCP_ARGS", raising=False)
        client = get_control_client()
        assert client.command == "npx"
        assert client.args == ["-y", "obs-mcp@latest"]

    def test_unknown_backend(self, monkeypatch):
        monkeypatch.setenv("OBS_CONTROL_BACKEND", "websocket")
        with pytest.raises(ValueError):
            get_control_client()
        assert impl._default_client is None


class TestInMemoryObsControl:
    def test_create_scene_item_goes_on_top(self):
        obs = InMemoryObsControl(scenes=["Main"], inputs={"Cam": "ffmpeg_source", "Logo": "image_source"})
        asyncio.run(obs.call("CreateSceneItem", {"sceneName": "Main", "sourceName": "Cam"}))
        asyncio.run(obs.call("CreateSceneItem", {"sceneName": "Main", "sourceName": "Logo"}))

        items = asyncio.run(obs.call("GetSceneItemList", {"sceneName": "Main"}))["sceneItems"]
        assert [(i["sourceName"], i["sceneItemIndex"]) for i in items] == [("Logo", 0), ("Cam", 1)]

    def test_move_item_to_top(self):
        obs = InMemoryObsControl(scenes=["Main"], inputs={"Cam": "ffmpeg_source", "Logo": "image_source"})
        cam = asyncio.run(obs.call("CreateSceneItem", {"sceneName": "Main", "sourceName": "Cam"}))
        asyncio.run(obs.call("CreateSceneItem", {"sceneName": "Main", "sourceName": "Logo"}))
        asyncio.run(obs.call("SetSceneItemIndex", {"sceneName": "Main", "sceneItemId": cam["sceneItemId"], "sceneItemIndex": 0}))

        assert obs.items_of("Main") == ["Cam", "Logo"]

    def test_scenes_can_nest(self):
        obs = InMemoryObsControl(scenes=["Main", "Lower Third"])
        asyncio.run(obs.call("CreateSceneItem", {"sceneName": "Main", "sourceName": "Lower Third"}))
        assert obs.items_of("Main") == ["Lower Third"]

    def test_error_codes(self):
        obs = InMemoryObsControl(scenes=["Main"])
        with pytest.raises(ObsCallError) as exists:
            asyncio.run(obs.call("CreateScene", {"sceneName": "Main"}))
        with pytest.raises(ObsCallError) as missing:
            asyncio.run(obs.call("RemoveScene", {"sceneName": "Other"}))
        with pytest.raises(ObsCallError) as unknown:
            asyncio.run(obs.call("StartStream"))
        assert (exists.value.code, missing.value.code, unknown.value.code) == (601, 600, 204)

    def test_transform_updates_merge(self):
        obs = InMemoryObsControl(scenes=["Main"], inputs={"Cam": "ffmpeg_source"})
        item = asyncio.run(obs.call("CreateSceneItem", {"sceneName": "Main", "sourceName": "Cam"}))
        for transform in ({"positionX": 960}, {"positionY": 540}):
            asyncio.run(obs.call(
                "SetSceneItemTransform",
                {"sceneName": "Main", "sceneItemId": item["sceneItemId"], "sceneItemTransform": transform},
            ))
        listed = asyncio.run(obs.call("GetSceneItemList", {"sceneName": "Main"}))["sceneItems"][0]
        assert listed["sceneItemTransform"] == {"positionX": 960, "positionY": 540}

    def test_scripted_failures(self):
        obs = InMemoryObsControl(scenes=["Main"])
        obs.fail_on("RemoveScene", when={"sceneName": "Main"})
        with pytest.raises(ObsCallError, match="RemoveScene failed"):
            asyncio.run(obs.call("RemoveScene", {"sceneName": "Main"}))
        obs.clear_failures()
        asyncio.run(obs.call("RemoveScene", {"sceneName": "Main"}))
        assert obs.scenes == {}
        assert len(obs.calls_to("RemoveScene")) == 2
