"""Replicate predictions API client.

Thin wrapper over ``POST /v1/predictions``, ``GET /v1/predictions/{id}`` and
``POST /v1/predictions/{id}/cancel``. Every response is validated into a
``ReplicatePrediction`` and normalized into a vendor-neutral ``JobSnapshot``.
"""

from datetime import datetime
from typing import Any, Optional

import requests
from pydantic import BaseModel, ConfigDict, ValidationError

from creator_toolkit.features.jobs.models import JobSnapshot, JobStatus
from creator_toolkit.platform.errors import SubmissionError, VendorRequestError
from creator_toolkit.platform.logging_config import get_logger

logger = get_logger(__name__)

REPLICATE_API_URL = "https://api.replicate.com/v1"

_STATUS_MAP = {
    "starting": JobStatus.STARTING,
    "processing": JobStatus.PROCESSING,
    "succeeded": JobStatus.SUCCEEDED,
    "failed": JobStatus.FAILED,
    "canceled": JobStatus.CANCELED,
    "aborted": JobStatus.CANCELED,
}


class ReplicatePrediction(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    status: str
    version: Optional[str] = None
    model: Optional[str] = None
    output: Any = None
    error: Any = None
    logs: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


def to_snapshot(prediction: ReplicatePrediction) -> JobSnapshot:
    """Normalize a prediction. Unknown statuses count as still processing."""
    error = prediction.error
    if error is not None and not isinstance(error, str):
        error = str(error)
    return JobSnapshot(
        vendor="replicate",
        id=prediction.id,
        status=_STATUS_MAP.get(prediction.status, JobStatus.PROCESSING),
        vendor_status=prediction.status,
        output=prediction.output,
        error=error,
        created_at=prediction.created_at,
        started_at=prediction.started_at,
        completed_at=prediction.completed_at,
        raw=prediction.model_dump(mode="json"),
    )


class ReplicateClient:
    """VendorClient implementation for Replicate."""

    vendor = "replicate"

    def __init__(
        self,
        api_token: str,
        session: requests.Session | None = None,
        base_url: str = REPLICATE_API_URL,
        timeout: float = 60.0,
    ):
        self._session = session or requests.Session()
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    def _parse(self, response: requests.Response) -> JobSnapshot:
        try:
            return to_snapshot(ReplicatePrediction.model_validate(response.json()))
        except (ValueError, ValidationError) as e:
            raise VendorRequestError(f"Unexpected Replicate response: {e}") from e

    def submit(self, model: str, payload: dict) -> JobSnapshot:
        """Create a prediction.

        ``owner/name`` targets the model's latest version; anything else is
        treated as a version id.
        """
        if "/" in model:
            url = f"{self._base_url}/models/{model}/predictions"
            body = {"input": payload}
        else:
            url = f"{self._base_url}/predictions"
            body = {"version": model, "input": payload}

        try:
            response = self._session.post(
                url, json=body, headers=self._headers, timeout=self._timeout
            )
        except requests.RequestException as e:
            raise SubmissionError("replicate", 0, str(e)) from e

        if not response.ok:
            logger.warning(
                "replicate_submit_rejected", model=model, status_code=response.status_code
            )
            raise SubmissionError("replicate", response.status_code, response.text)

        snapshot = self._parse(response)
        logger.info("replicate_submitted", model=model, job_id=snapshot.id)
        return snapshot

    def fetch(self, job_id: str) -> JobSnapshot:
        return self._request("GET", f"{self._base_url}/predictions/{job_id}")

    def cancel(self, job_id: str) -> JobSnapshot:
        return self._request("POST", f"{self._base_url}/predictions/{job_id}/cancel")

    def _request(self, method: str, url: str) -> JobSnapshot:
        try:
            response = self._session.request(
                method, url, headers=self._headers, timeout=self._timeout
            )
        except requests.RequestException as e:
            raise VendorRequestError(f"Replicate request failed: {e}") from e
        if not response.ok:
            raise VendorRequestError(
                f"Replicate request failed: HTTP {response.status_code} - {response.text}"
            )
        return self._parse(response)
