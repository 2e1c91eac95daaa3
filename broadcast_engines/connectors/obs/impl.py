from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, List, Optional, Protocol

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client

from broadcast_engines.config import runtime_config

logger = logging.getLogger(__name__)

# Remote request status codes the engines branch on.
SCENE_ALREADY_EXISTS = 601
RESOURCE_NOT_FOUND = 600

_CODE_PATTERN = re.compile(r"\bcode\b\W{0,3}(\d{3})\b", re.IGNORECASE)


class ObsCallError(Exception):
    """A rejected remote request. `code` is the remote status code when known."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code


class ObsControlClient(Protocol):
    """Request/response channel to the production tool.

    Stacking contract: CreateSceneItem always places the new item at stack
    index 0 (the top) and shifts existing items down by one. GetSceneItemList
    returns items ordered by ascending stack index. Anything that rebuilds a
    stack (duplication, overlay placement) relies on these two rules.
    """

    async def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        ...


def _extract_code(text: str) -> Optional[int]:
    try:
        body = json.loads(text)
    except (TypeError, ValueError):
        body = None
    if isinstance(body, dict) and isinstance(body.get("code"), int):
        return body["code"]
    match = _CODE_PATTERN.search(text or "")
    return int(match.group(1)) if match else None


def _text_blocks(result: Any) -> List[str]:
    return [
        block.text
        for block in (getattr(result, "content", None) or [])
        if getattr(block, "type", None) == "text"
    ]


def decode_tool_result(method: str, result: Any) -> Dict[str, Any]:
    """Turn an MCP CallToolResult into the remote response dict or raise ObsCallError."""
    texts = _text_blocks(result)
    if getattr(result, "isError", False):
        message = " ".join(texts) or f"{method} failed"
        raise ObsCallError(message, code=_extract_code(message))

    structured = getattr(result, "structuredContent", None)
    if isinstance(structured, dict):
        return structured

    for text in texts:
        try:
            body = json.loads(text)
        except ValueError:
            continue
        if isinstance(body, dict):
            return body
    return {}


class McpObsClient:
    """
    Talks to the production tool through an MCP stdio bridge.
    Stateless: every call spawns the bridge, initializes a session, runs one tool, closes.
    """

    def __init__(self, command: str, args: Optional[List[str]] = None, env: Optional[Dict[str, str]] = None):
        self.command = command
        self.args = args or []
        # PATH has to survive for npx-style launchers.
        self.full_env = os.environ.copy()
        if env:
            self.full_env.update(env)

    def _server_params(self) -> StdioServerParameters:
        return StdioServerParameters(command=self.command, args=self.args, env=self.full_env)

    async def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        async with stdio_client(self._server_params()) as (read, write):
            async with ClientSession(read, write) as session:
                await session.initialize()
                logger.debug("obs call %s %s", method, params)
                result = await session.call_tool(method, params or {})
        return decode_tool_result(method, result)

    async def list_methods(self) -> List[str]:
        async with stdio_client(self._server_params()) as (read, write):
            async with ClientSession(read, write) as session:
                await session.initialize()
                listing = await session.list_tools()
        return [tool.name for tool in listing.tools]


_default_client: Optional[ObsControlClient] = None


def get_control_client() -> ObsControlClient:
    global _default_client
    if _default_client is None:
        backend = runtime_config.get_control_backend()
        if backend == runtime_config.CONTROL_BACKEND_MEMORY:
            from broadcast_engines.connectors.obs.memory import InMemoryObsControl

            _default_client = InMemoryObsControl()
        else:
            _default_client = McpObsClient(
                command=runtime_config.get_mcp_command(),
                args=runtime_config.get_mcp_args(),
            )
        logger.info("obs control backend: %s", backend)
    return _default_client


def set_control_client(client: Optional[ObsControlClient]) -> None:
    global _default_client
    _default_client = client
