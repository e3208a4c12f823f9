"""Stored asset models."""

from pydantic import BaseModel, Field


class StoredAsset(BaseModel):
    """A blob relocated into the application's own storage."""

    bucket: str
    path: str
    url: str
    content_type: str
    size: int
    source_url: str | None = None


class SweepResult(BaseModel):
    deleted: int = 0
    errors: int = 0


class SweepRequest(BaseModel):
    bucket: str
    prefix: str
    name_prefix: str | None = None
    max_age_hours: float = Field(default=24.0, gt=0)
