"""Job domain models and Pydantic schemas."""

import os
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from creator_toolkit.features.assets.models import StoredAsset


class JobStatus(str, Enum):
    """Lifecycle status of a vendor job."""

    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


TERMINAL_STATUSES = frozenset({JobStatus.SUCCEEDED, JobStatus.FAILED, JobStatus.CANCELED})
ACTIVE_STATUSES = frozenset({JobStatus.STARTING, JobStatus.PROCESSING})


class FailureCategory(str, Enum):
    """Closed classification of vendor-reported failures."""

    CONTENT_POLICY = "content_policy"
    RATE_LIMITED = "rate_limited"
    INVALID_INPUT = "invalid_input"
    UNKNOWN = "unknown"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_batch_id() -> str:
    """Time-seeded random token grouping the jobs of one user action."""
    return f"{int(time.time() * 1000)}_{os.urandom(4).hex()}"


class JobSnapshot(BaseModel):
    """Vendor-neutral view of a vendor job at one point in time."""

    vendor: str
    id: str
    status: JobStatus
    vendor_status: str = ""
    output: Any = None
    error: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def output_urls(self) -> list[str]:
        """Collect every http(s) URL in the output, in order."""
        urls: list[str] = []

        def _walk(value: Any) -> None:
            if isinstance(value, str):
                if value.startswith(("http://", "https://")):
                    urls.append(value)
            elif isinstance(value, list):
                for item in value:
                    _walk(item)
            elif isinstance(value, dict):
                for item in value.values():
                    _walk(item)

        _walk(self.output)
        return urls


class JobRecord(BaseModel):
    """Persisted row describing one vendor job."""

    id: str
    user_id: str
    tool_id: str
    service_id: str
    model_version: str = ""
    status: JobStatus = JobStatus.STARTING
    batch_id: Optional[str] = None
    input_data: dict[str, Any] = Field(default_factory=dict)
    output_data: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    updated_at: datetime = Field(default_factory=utcnow)


class PollPolicy(BaseModel):
    """Fixed-interval polling budget, in seconds."""

    poll_interval: float = Field(gt=0)
    max_wait: float = Field(gt=0)


IMAGE_POLICY = PollPolicy(poll_interval=3.0, max_wait=300.0)
VIDEO_POLICY = PollPolicy(poll_interval=5.0, max_wait=600.0)
AUDIO_POLICY = PollPolicy(poll_interval=2.0, max_wait=180.0)


class JobRequest(BaseModel):
    """Everything ``run_job`` needs to submit, track, and store one job."""

    user_id: str
    tool_id: str
    vendor: str = "replicate"
    model: str
    input: dict[str, Any]
    batch_id: str = Field(default_factory=new_batch_id)
    identifier: str = "output"
    bucket: str = "images"
    relocate_outputs: bool = True
    upsert: bool = False


class JobOutcome(BaseModel):
    """Result of one submit → poll → relocate → persist run."""

    record: JobRecord
    snapshot: JobSnapshot
    assets: list[StoredAsset] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.record.status == JobStatus.SUCCEEDED

    @property
    def error(self) -> Optional[str]:
        return self.record.error


# --- Response schemas ---


class ToolResult(BaseModel):
    """Envelope returned by every tool action."""

    success: bool
    error: Optional[str] = None
    error_kind: Optional[str] = None


class CancelResponse(BaseModel):
    message: str
    job_id: str
    status: JobStatus
