"""I/O abstraction protocols for the creator toolkit.

Defines Protocol classes for external dependencies so pipeline logic can be
tested without real infrastructure. Production code uses the TinyDB/local or
Supabase adapters; tests pass fakes.
"""

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from creator_toolkit.features.jobs.models import JobSnapshot


class JobStoragePort(Protocol):
    """Job row persistence (audit trail and history views)."""

    def create_job(self, record: dict) -> dict: ...

    def update_job(self, job_id: str, fields: dict) -> dict:
        """Apply ``fields`` to a non-terminal row and return the merged row.

        Raises JobFinalizedError when the row is already terminal.
        """
        ...

    def get_job(self, job_id: str) -> dict | None: ...

    def list_jobs(
        self,
        user_id: str,
        tool_id: str | None = None,
        active: bool | None = None,
    ) -> list[dict]: ...

    def list_batch(self, batch_id: str) -> list[dict]: ...

    def fail_stale_jobs(
        self,
        user_id: str,
        older_than: timedelta,
        now: datetime | None = None,
    ) -> int: ...


class CreditLedgerPort(Protocol):
    """Per-user credit balance with an atomic decrement."""

    def get_balance(self, user_id: str) -> dict: ...

    def deduct(
        self,
        user_id: str,
        amount: int,
        operation: str,
        metadata: dict | None = None,
    ) -> dict:
        """Atomically decrement the balance.

        Returns ``{"success": bool, "remaining": int | None, "error": str | None}``.
        Never clamps: an amount above the available balance fails.
        """
        ...

    def renew_expired(self, now: datetime | None = None) -> int: ...


class ObjectStoragePort(Protocol):
    """Blob storage addressed by bucket and path."""

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str,
        upsert: bool = False,
    ) -> str:
        """Write a blob and return its public URL."""
        ...

    def remove(self, bucket: str, paths: list[str]) -> None: ...

    def list(self, bucket: str, prefix: str) -> list[dict]:
        """List blobs directly under ``prefix`` as ``{"name", "created_at"}`` dicts."""
        ...

    def public_url(self, bucket: str, path: str) -> str: ...

    def path_from_url(self, bucket: str, url: str) -> str | None: ...

    def owns(self, bucket: str, url: str) -> bool: ...


class VendorClient(Protocol):
    """A vendor job API: create, get, cancel."""

    vendor: str

    def submit(self, model: str, payload: dict) -> "JobSnapshot": ...

    def fetch(self, job_id: str) -> "JobSnapshot": ...

    def cancel(self, job_id: str) -> "JobSnapshot": ...
