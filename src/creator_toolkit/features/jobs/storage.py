"""TinyDB storage operations for job rows."""

from datetime import datetime, timedelta, timezone

from tinydb import Query, TinyDB

from creator_toolkit.features.jobs.models import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    JobStatus,
)
from creator_toolkit.platform.errors import JobFinalizedError
from creator_toolkit.platform.tinydb_store import db_lock as _db_lock
from creator_toolkit.platform.tinydb_store import open_db as _db

STALE_JOB_MESSAGE = "Marked as failed due to timeout"

_ACTIVE_VALUES = [s.value for s in ACTIVE_STATUSES]
_TERMINAL_VALUES = [s.value for s in TERMINAL_STATUSES]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Job CRUD
# ---------------------------------------------------------------------------


def create_job(record: dict, db: TinyDB | None = None) -> dict:
    """Insert a new job row and return it.

    Raises:
        ValueError: If a row with the same id already exists.
    """
    with _db_lock:
        table = _db(db).table("jobs")
        Job = Query()
        if table.search(Job.id == record["id"]):
            raise ValueError(f"Job {record['id']} already exists")
        row = {**record, "updated_at": _now_iso()}
        table.insert(row)
        return row


def update_job(job_id: str, fields: dict, db: TinyDB | None = None) -> dict:
    """Partially update a non-terminal job row and return the merged row.

    Raises:
        KeyError: If the job does not exist.
        JobFinalizedError: If the job already reached a terminal status.
    """
    with _db_lock:
        table = _db(db).table("jobs")
        Job = Query()
        results = table.search(Job.id == job_id)
        if not results:
            raise KeyError(f"Job {job_id} not found")
        current = results[0]
        if current.get("status") in _TERMINAL_VALUES:
            raise JobFinalizedError(
                f"Job {job_id} is already {current['status']} and cannot be modified"
            )
        changes = {**fields, "updated_at": _now_iso()}
        table.update(changes, Job.id == job_id)
        return {**current, **changes}


def get_job(job_id: str, db: TinyDB | None = None) -> dict | None:
    """Retrieve a single job by id."""
    with _db_lock:
        Job = Query()
        results = _db(db).table("jobs").search(Job.id == job_id)
        return results[0] if results else None


def list_jobs(
    user_id: str,
    tool_id: str | None = None,
    active: bool | None = None,
    db: TinyDB | None = None,
) -> list[dict]:
    """Return a user's jobs, newest first.

    ``active=True`` keeps starting/processing rows, ``active=False`` keeps
    terminal rows, ``None`` keeps both.
    """
    with _db_lock:
        Job = Query()
        cond = Job.user_id == user_id
        if tool_id:
            cond = cond & (Job.tool_id == tool_id)
        if active is True:
            cond = cond & Job.status.one_of(_ACTIVE_VALUES)
        elif active is False:
            cond = cond & Job.status.one_of(_TERMINAL_VALUES)
        results = _db(db).table("jobs").search(cond)
        results.sort(key=lambda j: j.get("created_at", ""), reverse=True)
        return results


def list_batch(batch_id: str, db: TinyDB | None = None) -> list[dict]:
    """Return every job of one batch, oldest first."""
    with _db_lock:
        Job = Query()
        results = _db(db).table("jobs").search(Job.batch_id == batch_id)
        results.sort(key=lambda j: j.get("created_at", ""))
        return results


def fail_stale_jobs(
    user_id: str,
    older_than: timedelta,
    now: datetime | None = None,
    db: TinyDB | None = None,
) -> int:
    """Mark a user's active jobs created before ``now - older_than`` as failed.

    Returns the number of rows changed.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - older_than

    def _is_stale(created_at: str) -> bool:
        try:
            return datetime.fromisoformat(created_at) < cutoff
        except (TypeError, ValueError):
            return False

    with _db_lock:
        Job = Query()
        cond = (
            (Job.user_id == user_id)
            & Job.status.one_of(_ACTIVE_VALUES)
            & Job.created_at.test(_is_stale)
        )
        changed = _db(db).table("jobs").update(
            {
                "status": JobStatus.FAILED.value,
                "error": STALE_JOB_MESSAGE,
                "completed_at": now.isoformat(),
                "updated_at": now.isoformat(),
            },
            cond,
        )
        return len(changed)
