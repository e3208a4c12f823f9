"""Error taxonomy shared by the pipeline and the tool actions.

Every ``ToolError`` is converted into a ``{success: false, error}`` result at
the tool boundary. ``kind`` is the stable machine-readable tag carried in
that result.
"""


class ToolError(Exception):
    """Base class for failures surfaced to callers as structured results."""

    kind = "tool_error"


class AuthError(ToolError):
    """No session, or the session lacks the required role."""

    kind = "auth"


class InvalidRequestError(ToolError):
    """Malformed tool input."""

    kind = "invalid_request"


class InsufficientCreditsError(ToolError):
    """The balance cannot cover the estimated cost of a request."""

    kind = "insufficient_credits"

    def __init__(self, needed: int, available: int):
        super().__init__(f"Insufficient credits. Need {needed}, have {available}")
        self.needed = needed
        self.available = available


class SubmissionError(ToolError):
    """A vendor rejected a job submission (non-2xx). Never retried."""

    kind = "submission"

    def __init__(self, vendor: str, status_code: int, body: str):
        super().__init__(f"{vendor} submission failed: HTTP {status_code} - {body}")
        self.vendor = vendor
        self.status_code = status_code
        self.body = body


class VendorRequestError(ToolError):
    """A status, cancel, or other follow-up vendor call failed."""

    kind = "vendor_request"


class PollTimeoutError(ToolError):
    """A job did not reach a terminal status within its wall-clock budget."""

    kind = "timeout"

    def __init__(self, job_id: str, max_wait: float, last_status: str | None = None):
        super().__init__(
            f"Job {job_id} did not complete within {max_wait:g}s"
            + (f" (last status: {last_status})" if last_status else "")
        )
        self.job_id = job_id
        self.max_wait = max_wait
        self.last_status = last_status


class VendorFailureError(ToolError):
    """A vendor reported a terminal failure the caller chose not to absorb."""

    kind = "vendor_failure"

    def __init__(self, message: str, job_id: str | None = None, category: str | None = None):
        super().__init__(message)
        self.job_id = job_id
        self.category = category


class RelocationError(ToolError):
    """Downloading a vendor artifact or writing it to storage failed."""

    kind = "relocation"


class JobFinalizedError(ToolError):
    """An update targeted a job row that already reached a terminal status."""

    kind = "job_finalized"


class ObjectStorageError(Exception):
    """Raised by object storage adapters when a write, list, or delete fails."""
