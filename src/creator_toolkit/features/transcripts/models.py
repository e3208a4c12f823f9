"""Transcript request/response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from creator_toolkit.features.jobs.models import ToolResult


class TranscriptRequest(BaseModel):
    audio_url: str = Field(pattern=r"^https?://")
    language_code: Optional[str] = None
    speaker_labels: bool = False


class TranscriptResult(ToolResult):
    transcript_id: Optional[str] = None
    text: Optional[str] = None
    words: list[dict[str, Any]] = Field(default_factory=list)
    language_code: Optional[str] = None
    audio_duration: Optional[float] = None
    credits_used: int = 0
    warnings: list[str] = Field(default_factory=list)
