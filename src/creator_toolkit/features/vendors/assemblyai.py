"""AssemblyAI transcripts API client."""

from typing import Any, Optional

import requests
from pydantic import BaseModel, ConfigDict, ValidationError

from creator_toolkit.features.jobs.models import JobSnapshot, JobStatus
from creator_toolkit.platform.errors import SubmissionError, VendorRequestError
from creator_toolkit.platform.logging_config import get_logger

logger = get_logger(__name__)

ASSEMBLYAI_API_URL = "https://api.assemblyai.com/v2"

_STATUS_MAP = {
    "queued": JobStatus.STARTING,
    "processing": JobStatus.PROCESSING,
    "completed": JobStatus.SUCCEEDED,
    "error": JobStatus.FAILED,
}

# Fields surfaced as the job output; the rest stays in ``raw``.
_OUTPUT_FIELDS = ("text", "words", "utterances", "language_code", "audio_duration", "confidence")


class AssemblyAITranscript(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    status: str
    text: Optional[str] = None
    words: Optional[list[dict[str, Any]]] = None
    utterances: Optional[list[dict[str, Any]]] = None
    language_code: Optional[str] = None
    audio_duration: Optional[float] = None
    confidence: Optional[float] = None
    error: Optional[str] = None


def to_snapshot(transcript: AssemblyAITranscript) -> JobSnapshot:
    status = _STATUS_MAP.get(transcript.status, JobStatus.PROCESSING)
    output = None
    if status == JobStatus.SUCCEEDED:
        output = {field: getattr(transcript, field) for field in _OUTPUT_FIELDS}
    return JobSnapshot(
        vendor="assemblyai",
        id=transcript.id,
        status=status,
        vendor_status=transcript.status,
        output=output,
        error=transcript.error,
        raw=transcript.model_dump(mode="json"),
    )


class AssemblyAIClient:
    """VendorClient implementation for AssemblyAI.

    The transcripts API has no cancel endpoint; ``model`` selects the
    ``speech_model`` and ``payload`` is sent as the transcript request body.
    """

    vendor = "assemblyai"

    def __init__(
        self,
        api_key: str,
        session: requests.Session | None = None,
        base_url: str = ASSEMBLYAI_API_URL,
        timeout: float = 60.0,
    ):
        self._session = session or requests.Session()
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = {"authorization": api_key, "content-type": "application/json"}

    def _parse(self, response: requests.Response) -> JobSnapshot:
        try:
            return to_snapshot(AssemblyAITranscript.model_validate(response.json()))
        except (ValueError, ValidationError) as e:
            raise VendorRequestError(f"Unexpected AssemblyAI response: {e}") from e

    def submit(self, model: str, payload: dict) -> JobSnapshot:
        body = dict(payload)
        if model:
            body.setdefault("speech_model", model)
        try:
            response = self._session.post(
                f"{self._base_url}/transcript",
                json=body,
                headers=self._headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise SubmissionError("assemblyai", 0, str(e)) from e

        if not response.ok:
            logger.warning("assemblyai_submit_rejected", status_code=response.status_code)
            raise SubmissionError("assemblyai", response.status_code, response.text)

        snapshot = self._parse(response)
        logger.info("assemblyai_submitted", job_id=snapshot.id)
        return snapshot

    def fetch(self, job_id: str) -> JobSnapshot:
        try:
            response = self._session.get(
                f"{self._base_url}/transcript/{job_id}",
                headers=self._headers,
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise VendorRequestError(f"AssemblyAI request failed: {e}") from e
        if not response.ok:
            raise VendorRequestError(
                f"AssemblyAI request failed: HTTP {response.status_code} - {response.text}"
            )
        return self._parse(response)

    def cancel(self, job_id: str) -> JobSnapshot:
        raise VendorRequestError("AssemblyAI transcripts cannot be canceled")
