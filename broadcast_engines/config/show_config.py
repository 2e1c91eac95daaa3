"""Show configuration files (camera roster + graphics overlay)."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from broadcast_engines.scene_generation.models import ShowConfig

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


def parse_show_config(data: Dict[str, Any]) -> ShowConfig:
    return ShowConfig.model_validate(data or {})


def load_show_config(path: Union[str, Path]) -> ShowConfig:
    """Read a YAML or JSON show config. Unknown top-level keys are ignored."""
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Show config not found: {config_path}")

    text = config_path.read_text(encoding="utf-8")
    if config_path.suffix.lower() in _YAML_SUFFIXES:
        data = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"Show config must be a mapping: {config_path}")

    config = parse_show_config(data)
    logger.info(
        "loaded show config %s: %s with %d cameras",
        config_path,
        config.show_name or "Unnamed",
        len(config.cameras),
    )
    return config
