"""Shared fixtures: temp TinyDB, local object storage, a scripted vendor."""

import itertools
import os
import tempfile
from unittest.mock import MagicMock

import pytest
import requests
from tinydb import TinyDB

from creator_toolkit.features.jobs.models import JobSnapshot, JobStatus
from creator_toolkit.platform.config import Settings
from creator_toolkit.platform.context import ToolContext
from creator_toolkit.platform.local_object_storage import LocalObjectStorage
from creator_toolkit.platform.tinydb_credits_adapter import TinyDBCreditsAdapter
from creator_toolkit.platform.tinydb_jobs_adapter import TinyDBJobsAdapter

PUBLIC_BASE = "http://testserver/media"


class FakeVendor:
    """VendorClient double whose jobs follow a scripted list of snapshots.

    ``plan(payload)`` returns the snapshots successive fetches see; the last
    one repeats forever.
    """

    def __init__(self, vendor: str = "replicate"):
        self.vendor = vendor
        self.plan = lambda payload: [self.succeeded("https://vendor.test/out.png")]
        self.submit_error: Exception | None = None
        self.submissions: list[tuple[str, dict]] = []
        self.canceled: list[str] = []
        self.fetch_count = 0
        self._ids = itertools.count(1)
        self._jobs: dict[str, list[JobSnapshot]] = {}

    @staticmethod
    def processing() -> JobSnapshot:
        return JobSnapshot(vendor="", id="", status=JobStatus.PROCESSING, vendor_status="processing")

    @staticmethod
    def succeeded(*urls: str) -> JobSnapshot:
        output = list(urls) if len(urls) > 1 else (urls[0] if urls else None)
        return JobSnapshot(
            vendor="", id="", status=JobStatus.SUCCEEDED, vendor_status="succeeded", output=output
        )

    @staticmethod
    def failed(error: str) -> JobSnapshot:
        return JobSnapshot(
            vendor="", id="", status=JobStatus.FAILED, vendor_status="failed", error=error
        )

    def submit(self, model: str, payload: dict) -> JobSnapshot:
        if self.submit_error is not None:
            raise self.submit_error
        job_id = f"{self.vendor}-job-{next(self._ids)}"
        self.submissions.append((model, payload))
        self._jobs[job_id] = list(self.plan(payload))
        return JobSnapshot(
            vendor=self.vendor, id=job_id, status=JobStatus.STARTING, vendor_status="starting"
        )

    def fetch(self, job_id: str) -> JobSnapshot:
        self.fetch_count += 1
        steps = self._jobs[job_id]
        step = steps.pop(0) if len(steps) > 1 else steps[0]
        return step.model_copy(update={"id": job_id, "vendor": self.vendor})

    def cancel(self, job_id: str) -> JobSnapshot:
        self.canceled.append(job_id)
        return JobSnapshot(
            vendor=self.vendor, id=job_id, status=JobStatus.CANCELED, vendor_status="canceled"
        )


@pytest.fixture
def tmp_db():
    """Create a temporary TinyDB database for testing."""
    fd, path = tempfile.mkstemp(suffix=".json")
    os.close(fd)
    db = TinyDB(path)
    yield db
    db.close()
    os.unlink(path)


@pytest.fixture
def objects(tmp_path):
    return LocalObjectStorage(tmp_path / "media", PUBLIC_BASE)


@pytest.fixture
def fake_vendor():
    return FakeVendor()


@pytest.fixture
def vendor_factory():
    """Build extra scripted vendors, e.g. ``vendor_factory("assemblyai")``."""
    return FakeVendor


@pytest.fixture
def download_session():
    """requests.Session double serving a small PNG for every GET."""
    response = MagicMock()
    response.ok = True
    response.status_code = 200
    response.headers = {"Content-Type": "image/png"}
    response.content = b"\x89PNG fake image bytes"
    session = MagicMock(spec=requests.Session)
    session.get.return_value = response
    return session


@pytest.fixture
def settings():
    return Settings(
        env="test",
        public_media_url=PUBLIC_BASE,
        image_model="black-forest-labs/flux-kontext-pro",
        http_timeout=5.0,
    )


@pytest.fixture
def tool_ctx(tmp_db, objects, fake_vendor, download_session, settings):
    """ToolContext wired to TinyDB, local storage, and the scripted vendor."""
    return ToolContext(
        jobs=TinyDBJobsAdapter(tmp_db),
        credits=TinyDBCreditsAdapter(tmp_db, monthly_credits=600),
        objects=objects,
        vendors={"replicate": fake_vendor},
        session=download_session,
        settings=settings,
    )
