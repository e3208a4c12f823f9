"""Supabase adapter implementations for the creator toolkit ports.

Uses the supabase-py client with the service-role key. Each adapter maps to a
Protocol:
  - SupabaseJobsAdapter    → JobStoragePort   (``ai_predictions`` table)
  - SupabaseCreditsAdapter → CreditLedgerPort (``user_credits`` + RPCs)
  - SupabaseObjectStorage  → ObjectStoragePort (Storage buckets)

The balance decrement runs inside the ``deduct_user_credits`` database
function so it stays atomic across processes.
"""

from datetime import datetime, timedelta, timezone
from urllib.parse import urlparse

from postgrest.exceptions import APIError
from supabase import Client, create_client

from creator_toolkit.features.jobs.models import ACTIVE_STATUSES, JobStatus
from creator_toolkit.features.jobs.storage import STALE_JOB_MESSAGE
from creator_toolkit.platform.errors import JobFinalizedError, ObjectStorageError
from creator_toolkit.platform.logging_config import get_logger

logger = get_logger(__name__)

_ACTIVE_VALUES = [s.value for s in ACTIVE_STATUSES]


def create_supabase_client(url: str, service_role_key: str) -> Client:
    """Create a service-role Supabase client."""
    if not url or not service_role_key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")
    return create_client(url, service_role_key)


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------


def _to_row(record: dict) -> dict:
    row = dict(record)
    row["prediction_id"] = row.pop("id")
    if "error" in row:
        row["logs"] = row.pop("error")
    return row


def _from_row(row: dict) -> dict:
    record = dict(row)
    record["id"] = record.pop("prediction_id")
    record["error"] = record.pop("logs", None)
    return record


class SupabaseJobsAdapter:
    """JobStoragePort implementation backed by the ``ai_predictions`` table."""

    TABLE = "ai_predictions"

    def __init__(self, client: Client):
        self._client = client

    def _table(self):
        return self._client.table(self.TABLE)

    def create_job(self, record: dict) -> dict:
        row = _to_row({**record, "updated_at": datetime.now(timezone.utc).isoformat()})
        response = self._table().insert(row).execute()
        return _from_row(response.data[0]) if response.data else _from_row(row)

    def update_job(self, job_id: str, fields: dict) -> dict:
        changes = _to_row(
            {"id": job_id, **fields, "updated_at": datetime.now(timezone.utc).isoformat()}
        )
        changes.pop("prediction_id")
        # Conditional on a non-terminal status so terminal rows stay immutable.
        response = (
            self._table()
            .update(changes)
            .eq("prediction_id", job_id)
            .in_("status", _ACTIVE_VALUES)
            .execute()
        )
        if response.data:
            return _from_row(response.data[0])

        current = self.get_job(job_id)
        if current is None:
            raise KeyError(f"Job {job_id} not found")
        raise JobFinalizedError(
            f"Job {job_id} is already {current['status']} and cannot be modified"
        )

    def get_job(self, job_id: str) -> dict | None:
        response = (
            self._table().select("*").eq("prediction_id", job_id).limit(1).execute()
        )
        return _from_row(response.data[0]) if response.data else None

    def list_jobs(
        self,
        user_id: str,
        tool_id: str | None = None,
        active: bool | None = None,
    ) -> list[dict]:
        query = self._table().select("*").eq("user_id", user_id)
        if tool_id:
            query = query.eq("tool_id", tool_id)
        if active is True:
            query = query.in_("status", _ACTIVE_VALUES)
        elif active is False:
            query = query.not_.in_("status", _ACTIVE_VALUES)
        response = query.order("created_at", desc=True).execute()
        return [_from_row(row) for row in response.data or []]

    def list_batch(self, batch_id: str) -> list[dict]:
        response = (
            self._table().select("*").eq("batch_id", batch_id).order("created_at").execute()
        )
        return [_from_row(row) for row in response.data or []]

    def fail_stale_jobs(
        self,
        user_id: str,
        older_than: timedelta,
        now: datetime | None = None,
    ) -> int:
        now = now or datetime.now(timezone.utc)
        cutoff = now - older_than
        response = (
            self._table()
            .update({
                "status": JobStatus.FAILED.value,
                "logs": STALE_JOB_MESSAGE,
                "completed_at": now.isoformat(),
                "updated_at": now.isoformat(),
            })
            .eq("user_id", user_id)
            .in_("status", _ACTIVE_VALUES)
            .lt("created_at", cutoff.isoformat())
            .execute()
        )
        return len(response.data or [])


# ---------------------------------------------------------------------------
# Credits
# ---------------------------------------------------------------------------


class SupabaseCreditsAdapter:
    """CreditLedgerPort implementation backed by ``user_credits`` and RPCs."""

    def __init__(self, client: Client, monthly_credits: int = 600):
        self._client = client
        self._monthly_credits = monthly_credits

    def get_balance(self, user_id: str) -> dict:
        response = (
            self._client.table("user_credits")
            .select("*")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if response.data:
            return response.data[0]

        logger.info("credits_topup_new_user", user_id=user_id)
        self._topup(user_id)
        response = (
            self._client.table("user_credits")
            .select("*")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        return response.data[0]

    def deduct(
        self,
        user_id: str,
        amount: int,
        operation: str,
        metadata: dict | None = None,
    ) -> dict:
        if amount <= 0:
            raise ValueError("amount must be positive")
        try:
            response = self._client.rpc(
                "deduct_user_credits",
                {
                    "p_user_id": user_id,
                    "p_amount": amount,
                    "p_operation": operation,
                    "p_metadata": metadata or {},
                },
            ).execute()
        except APIError as e:
            logger.error("credits_rpc_failed", user_id=user_id, error=e.message)
            return {"success": False, "remaining": None, "error": e.message}

        data = response.data or {}
        if isinstance(data, list):
            data = data[0] if data else {}
        return {
            "success": bool(data.get("success")),
            "remaining": data.get("available_credits"),
            "error": data.get("error"),
        }

    def renew_expired(self, now: datetime | None = None) -> int:
        now = now or datetime.now(timezone.utc)
        response = (
            self._client.table("user_credits")
            .select("user_id")
            .lt("period_end", now.isoformat())
            .execute()
        )
        rows = response.data or []
        for row in rows:
            self._topup(row["user_id"])
        return len(rows)

    def _topup(self, user_id: str) -> None:
        self._client.rpc(
            "topup_user_credits",
            {"p_user_id": user_id, "p_target_credits": self._monthly_credits},
        ).execute()


# ---------------------------------------------------------------------------
# Object storage
# ---------------------------------------------------------------------------


class SupabaseObjectStorage:
    """ObjectStoragePort implementation backed by Supabase Storage."""

    def __init__(self, client: Client, supabase_url: str):
        self._client = client
        self._host = urlparse(supabase_url).netloc

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str,
        upsert: bool = False,
    ) -> str:
        try:
            self._client.storage.from_(bucket).upload(
                path=path,
                file=data,
                file_options={
                    "content-type": content_type,
                    "upsert": "true" if upsert else "false",
                },
            )
        except Exception as e:
            raise ObjectStorageError(f"Upload to {bucket}/{path} failed: {e}") from e
        return self.public_url(bucket, path)

    def remove(self, bucket: str, paths: list[str]) -> None:
        try:
            self._client.storage.from_(bucket).remove(paths)
        except Exception as e:
            raise ObjectStorageError(f"Delete from {bucket} failed: {e}") from e

    def list(self, bucket: str, prefix: str) -> list[dict]:
        try:
            entries = self._client.storage.from_(bucket).list(prefix)
        except Exception as e:
            raise ObjectStorageError(f"List of {bucket}/{prefix} failed: {e}") from e
        # Folders come back without an id
        return [
            {"name": entry["name"], "created_at": entry.get("created_at")}
            for entry in entries or []
            if entry.get("id")
        ]

    def public_url(self, bucket: str, path: str) -> str:
        return self._client.storage.from_(bucket).get_public_url(path).rstrip("?")

    def path_from_url(self, bucket: str, url: str) -> str | None:
        parsed = urlparse(url)
        if parsed.netloc != self._host:
            return None
        marker = f"/storage/v1/object/public/{bucket}/"
        if not parsed.path.startswith(marker):
            return None
        return parsed.path[len(marker):] or None

    def owns(self, bucket: str, url: str) -> bool:
        return self.path_from_url(bucket, url) is not None
