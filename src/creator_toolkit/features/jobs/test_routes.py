"""Unit tests for jobs route handlers."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from creator_toolkit.api import app
from creator_toolkit.features.auth.dependencies import get_current_user
from creator_toolkit.features.jobs.models import JobRecord, utcnow
from creator_toolkit.platform.storage_factory import get_tool_context

client = TestClient(app)

FAKE_USER = {"sub": "user_a", "aud": "authenticated", "app_metadata": {}}


@pytest.fixture(autouse=True)
def _overrides(tool_ctx):
    app.dependency_overrides[get_current_user] = lambda: FAKE_USER
    app.dependency_overrides[get_tool_context] = lambda: tool_ctx
    yield
    app.dependency_overrides.clear()


def _seed(ctx, job_id, user_id="user_a", age=timedelta(0), status=None):
    ctx.jobs.create_job(
        JobRecord(
            id=job_id,
            user_id=user_id,
            tool_id="thumbnail-machine",
            service_id="replicate",
            created_at=utcnow() - age,
        ).model_dump(mode="json")
    )
    if status:
        ctx.jobs.update_job(job_id, {"status": status})


class TestListJobs:
    def test_active_fails_stale_rows_first(self, tool_ctx):
        _seed(tool_ctx, "fresh")
        _seed(tool_ctx, "stale", age=timedelta(minutes=10))

        response = client.get("/jobs", params={"status": "active"})

        assert response.status_code == 200
        assert [j["id"] for j in response.json()] == ["fresh"]
        assert tool_ctx.jobs.get_job("stale")["error"] == "Marked as failed due to timeout"

    def test_history_lists_terminal_rows(self, tool_ctx):
        _seed(tool_ctx, "done", status="succeeded")
        _seed(tool_ctx, "running")

        response = client.get("/jobs", params={"status": "history"})

        assert [j["id"] for j in response.json()] == ["done"]

    def test_unknown_status_is_400(self):
        assert client.get("/jobs", params={"status": "weird"}).status_code == 400

    def test_only_own_jobs_listed(self, tool_ctx):
        _seed(tool_ctx, "mine")
        _seed(tool_ctx, "theirs", user_id="user_b")

        assert [j["id"] for j in client.get("/jobs").json()] == ["mine"]


class TestGetJob:
    def test_returns_own_job(self, tool_ctx):
        _seed(tool_ctx, "p1")

        response = client.get("/jobs/p1")

        assert response.status_code == 200
        assert response.json()["status"] == "starting"

    def test_other_users_job_is_404(self, tool_ctx):
        _seed(tool_ctx, "p1", user_id="user_b")

        assert client.get("/jobs/p1").status_code == 404


class TestCancelJob:
    def test_cancels_vendor_job_and_row(self, tool_ctx, fake_vendor):
        _seed(tool_ctx, "p1")

        response = client.post("/jobs/p1/cancel")

        assert response.status_code == 200
        assert response.json()["status"] == "canceled"
        assert fake_vendor.canceled == ["p1"]
        assert tool_ctx.jobs.get_job("p1")["status"] == "canceled"

    def test_terminal_job_is_409(self, tool_ctx, fake_vendor):
        _seed(tool_ctx, "p1", status="succeeded")

        assert client.post("/jobs/p1/cancel").status_code == 409
        assert fake_vendor.canceled == []

    def test_missing_job_is_404(self):
        assert client.post("/jobs/nope/cancel").status_code == 404
