"""Named item geometries for the 1920x1080 program canvas."""
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field

CANVAS_WIDTH = 1920
CANVAS_HEIGHT = 1080
BOUNDS_SCALE_INNER = "OBS_BOUNDS_SCALE_INNER"


class TransformPreset(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    position_x: float = Field(alias="positionX")
    position_y: float = Field(alias="positionY")
    scale_x: float = Field(alias="scaleX")
    scale_y: float = Field(alias="scaleY")
    width: int
    height: int
    bounds_type: str = Field(default=BOUNDS_SCALE_INNER, alias="boundsType")
    bounds_width: int = Field(alias="boundsWidth")
    bounds_height: int = Field(alias="boundsHeight")

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


def _preset(x: int, y: int, scale_x: float, scale_y: float, width: int, height: int) -> TransformPreset:
    return TransformPreset(
        position_x=x,
        position_y=y,
        scale_x=scale_x,
        scale_y=scale_y,
        width=width,
        height=height,
        bounds_width=width,
        bounds_height=height,
    )


TRANSFORM_PRESETS: Mapping[str, TransformPreset] = MappingProxyType(
    {
        "fullscreen": _preset(0, 0, 1, 1, CANVAS_WIDTH, CANVAS_HEIGHT),
        "dualLeft": _preset(0, 0, 0.5, 1, 960, 1080),
        "dualRight": _preset(960, 0, 0.5, 1, 960, 1080),
        "quadTopLeft": _preset(0, 0, 0.5, 0.5, 960, 540),
        "quadTopRight": _preset(960, 0, 0.5, 0.5, 960, 540),
        "quadBottomLeft": _preset(0, 540, 0.5, 0.5, 960, 540),
        "quadBottomRight": _preset(960, 540, 0.5, 0.5, 960, 540),
        "tripleMain": _preset(0, 0, 0.6667, 1, 1280, 1080),
        "tripleTopRight": _preset(1280, 0, 0.3333, 0.5, 640, 540),
        "tripleBottomRight": _preset(1280, 540, 0.3333, 0.5, 640, 540),
    }
)


def get_preset(key: str) -> TransformPreset:
    try:
        return TRANSFORM_PRESETS[key]
    except KeyError:
        raise KeyError(f"Unknown transform preset: {key}") from None
