"""Thumbnail request/response schemas."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from creator_toolkit.features.jobs.models import ToolResult
from creator_toolkit.features.prompts import VisualStyle


class ThumbnailRequest(BaseModel):
    prompt: str = Field(min_length=1)
    num_outputs: int = Field(default=4, ge=1, le=4)
    aspect_ratio: Literal["1:1", "16:9", "9:16", "4:3", "3:4", "3:2", "2:3"] = "16:9"
    style: Optional[VisualStyle] = None
    output_format: Literal["webp", "jpg", "png"] = "webp"
    guidance_scale: float = Field(default=3.0, ge=0, le=10)
    seed: Optional[int] = None


class Thumbnail(BaseModel):
    id: str
    url: str
    variation_index: int
    batch_id: str
    prediction_id: str


class ThumbnailResult(ToolResult):
    batch_id: Optional[str] = None
    thumbnails: list[Thumbnail] = Field(default_factory=list)
    credits_used: int = 0
    remaining_credits: Optional[int] = None
    generation_time_ms: int = 0
    warnings: list[str] = Field(default_factory=list)
