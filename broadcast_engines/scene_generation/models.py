from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

SceneType = Literal["single", "dual", "dual-meet", "triple", "quad", "static", "graphics", "replay"]
SceneFamily = Literal["single", "dual", "triple", "quad", "static", "graphics", "replay"]
GenerationStatus = Literal["created", "skipped", "failed"]

ALL_FAMILIES: List[str] = ["single", "dual", "triple", "quad", "static", "graphics", "replay"]


class Camera(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    name: str
    srt_url: str = Field(default="", alias="srtUrl")
    srt_port: Optional[int] = Field(default=None, alias="srtPort")
    expected_apparatus: List[str] = Field(default_factory=list, alias="expectedApparatus")


class GraphicsOverlay(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: Optional[str] = None
    query_params: Dict[str, Any] = Field(default_factory=dict, alias="queryParams")


class ShowConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    show_name: Optional[str] = Field(default=None, alias="showName")
    cameras: List[Camera] = Field(default_factory=list)
    graphics_overlay: Optional[GraphicsOverlay] = Field(default=None, alias="graphicsOverlay")


class GenerationResult(BaseModel):
    scene: Optional[str]  # None only when a quad candidate has the wrong camera count
    status: GenerationStatus
    type: Optional[SceneType] = None
    reason: Optional[str] = None
    error: Optional[str] = None
    cameras: List[str] = Field(default_factory=list)


class GenerationSummary(BaseModel):
    created: int = 0
    skipped: int = 0
    failed: int = 0
    total: int = 0


class GenerationReport(BaseModel):
    created: List[GenerationResult] = Field(default_factory=list)
    skipped: List[GenerationResult] = Field(default_factory=list)
    failed: List[GenerationResult] = Field(default_factory=list)
    summary: GenerationSummary = Field(default_factory=GenerationSummary)

    def add(self, result: GenerationResult) -> None:
        if result.status == "created":
            self.created.append(result)
        elif result.status == "skipped":
            self.skipped.append(result)
        else:
            self.failed.append(result)

    def finalize(self) -> "GenerationReport":
        self.summary = GenerationSummary(
            created=len(self.created),
            skipped=len(self.skipped),
            failed=len(self.failed),
            total=len(self.created) + len(self.skipped) + len(self.failed),
        )
        return self


class PreviewTotals(BaseModel):
    single: int = 0
    dual: int = 0
    triple: int = 0
    quad: int = 0
    static: int = 0
    graphics: int = 0
    replay: int = 0
    total: int = 0


class ScenePreview(BaseModel):
    single: List[str] = Field(default_factory=list)
    dual: List[str] = Field(default_factory=list)
    triple: List[str] = Field(default_factory=list)
    quad: List[str] = Field(default_factory=list)
    static: List[str] = Field(default_factory=list)
    graphics: List[str] = Field(default_factory=list)
    replay: List[str] = Field(default_factory=list)
    totals: PreviewTotals = Field(default_factory=PreviewTotals)

    def all_names(self) -> List[str]:
        return [name for family in ALL_FAMILIES for name in getattr(self, family)]


class DeletionFailure(BaseModel):
    scene: str
    error: str


class DeletionReport(BaseModel):
    deleted: List[str] = Field(default_factory=list)
    failed: List[DeletionFailure] = Field(default_factory=list)


class GenerateScenesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    config: Optional[ShowConfig] = None
    types: Optional[List[SceneFamily]] = None
