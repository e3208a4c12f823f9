"""TinyDB adapter wrapping jobs/storage free functions behind JobStoragePort."""

from datetime import datetime, timedelta

from tinydb import TinyDB

from creator_toolkit.features.jobs import storage as job_storage


class TinyDBJobsAdapter:
    """Wraps creator_toolkit.features.jobs.storage behind JobStoragePort Protocol."""

    def __init__(self, db: TinyDB | None = None):
        self._db = db

    def create_job(self, record: dict) -> dict:
        return job_storage.create_job(record, db=self._db)

    def update_job(self, job_id: str, fields: dict) -> dict:
        return job_storage.update_job(job_id, fields, db=self._db)

    def get_job(self, job_id: str) -> dict | None:
        return job_storage.get_job(job_id, db=self._db)

    def list_jobs(
        self,
        user_id: str,
        tool_id: str | None = None,
        active: bool | None = None,
    ) -> list[dict]:
        return job_storage.list_jobs(user_id, tool_id=tool_id, active=active, db=self._db)

    def list_batch(self, batch_id: str) -> list[dict]:
        return job_storage.list_batch(batch_id, db=self._db)

    def fail_stale_jobs(
        self,
        user_id: str,
        older_than: timedelta,
        now: datetime | None = None,
    ) -> int:
        return job_storage.fail_stale_jobs(user_id, older_than, now=now, db=self._db)
