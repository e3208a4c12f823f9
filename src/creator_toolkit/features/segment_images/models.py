"""Segment image request/response schemas."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from creator_toolkit.features.jobs.models import ToolResult
from creator_toolkit.features.prompts import VisualStyle

AspectRatio = Literal["16:9", "9:16", "1:1", "4:3", "4:5"]
Quality = Literal["draft", "standard", "premium"]


class Segment(BaseModel):
    id: str
    image_prompt: str = ""
    duration: Optional[float] = None


class StyleSettings(BaseModel):
    visual_style: VisualStyle = "realistic"
    aspect_ratio: AspectRatio = "16:9"
    quality: Quality = "standard"


class SegmentImagesRequest(BaseModel):
    segments: list[Segment] = Field(min_length=1)
    style_settings: StyleSettings = Field(default_factory=StyleSettings)
    batch_id: Optional[str] = None


class RegenerateImageRequest(BaseModel):
    segment: Segment
    style_settings: StyleSettings = Field(default_factory=StyleSettings)


class GeneratedImage(BaseModel):
    segment_id: str
    image_url: str
    prompt: str
    prediction_id: str
    generation_time_ms: int
    attempts: int = 1


class FailedSegment(BaseModel):
    segment_id: str
    error: str
    prompt: str
    error_kind: Optional[str] = None


class SegmentImagesResult(ToolResult):
    batch_id: Optional[str] = None
    generated_images: list[GeneratedImage] = Field(default_factory=list)
    failed_segments: list[FailedSegment] = Field(default_factory=list)
    partial_failure: bool = False
    credits_used: int = 0
    remaining_credits: Optional[int] = None
    total_generation_time_ms: int = 0
    warnings: list[str] = Field(default_factory=list)
