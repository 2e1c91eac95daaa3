"""Runtime configuration helpers for the broadcast engines."""
from __future__ import annotations

import os
import shlex
from typing import List, Optional

CONTROL_BACKEND_MCP = "mcp"
CONTROL_BACKEND_MEMORY = "memory"
_CONTROL_BACKENDS = frozenset({CONTROL_BACKEND_MCP, CONTROL_BACKEND_MEMORY})

DEFAULT_MCP_COMMAND = "npx"
DEFAULT_MCP_ARGS = "-y obs-mcp@latest"


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def get_control_backend() -> str:
    """Which control client to build: the MCP bridge or the in-memory surface."""
    backend = (_get_env("OBS_CONTROL_BACKEND") or CONTROL_BACKEND_MCP).strip().lower()
    if backend not in _CONTROL_BACKENDS:
        raise ValueError(
            f"OBS_CONTROL_BACKEND must be one of {sorted(_CONTROL_BACKENDS)}, got '{backend}'"
        )
    return backend


def get_mcp_command() -> str:
    return _get_env("OBS_MCP_COMMAND") or DEFAULT_MCP_COMMAND


def get_mcp_args() -> List[str]:
    return shlex.split(_get_env("OBS_MCP_ARGS") or DEFAULT_MCP_ARGS)


def get_show_config_path() -> Optional[str]:
    return _get_env("SHOW_CONFIG_PATH")


def get_log_level() -> str:
    return (_get_env("LOG_LEVEL") or "INFO").upper()
