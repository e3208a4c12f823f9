"""Scenario tests for the run_job pipeline."""

import asyncio
from pathlib import Path

import pytest

from creator_toolkit.features.jobs.logic import NO_OUTPUT_MESSAGE, failure_result, run_job
from creator_toolkit.features.jobs.models import JobRequest, JobStatus, PollPolicy, ToolResult
from creator_toolkit.platform.errors import (
    InsufficientCreditsError,
    PollTimeoutError,
    RelocationError,
    SubmissionError,
    VendorRequestError,
)

FAST = PollPolicy(poll_interval=0.01, max_wait=2)


def _request(**overrides) -> JobRequest:
    fields = {
        "user_id": "user_a",
        "tool_id": "test-tool",
        "model": "black-forest-labs/flux-kontext-pro",
        "input": {"prompt": "a lighthouse at dusk"},
        "batch_id": "batch_1",
        "identifier": "img",
    }
    fields.update(overrides)
    return JobRequest(**fields)


def _run(ctx, request=None, **kwargs):
    return asyncio.run(run_job(ctx, request or _request(), policy=kwargs.pop("policy", FAST), **kwargs))


def _available(ctx) -> int:
    return ctx.credits.get_balance("user_a")["available_credits"]


class TestRunJobSuccess:
    def test_relocates_output_and_finalizes_row(self, tool_ctx, fake_vendor, tmp_path):
        fake_vendor.plan = lambda payload: [
            fake_vendor.processing(),
            fake_vendor.succeeded("https://replicate.delivery/x/out.png"),
        ]

        outcome = _run(tool_ctx)

        assert outcome.succeeded
        asset = outcome.assets[0]
        assert asset.path == "user_a/test-tool/batch_1/img.png"
        assert asset.url == "http://testserver/media/images/user_a/test-tool/batch_1/img.png"
        assert tool_ctx.objects.owns("images", asset.url)
        assert "replicate.delivery" not in asset.url
        assert Path(tmp_path, "media", "images", asset.path).read_bytes().startswith(b"\x89PNG")

        row = tool_ctx.jobs.get_job(outcome.record.id)
        assert row["status"] == "succeeded"
        assert row["started_at"] is not None
        assert row["completed_at"] is not None
        assert row["output_data"]["assets"][0]["url"] == asset.url
        assert row["output_data"]["source_urls"] == ["https://replicate.delivery/x/out.png"]

    def test_multiple_outputs_get_numbered_identifiers(self, tool_ctx, fake_vendor):
        fake_vendor.plan = lambda payload: [
            fake_vendor.succeeded("https://vendor.test/a.png", "https://vendor.test/b.png")
        ]

        outcome = _run(tool_ctx)

        assert [a.path.rsplit("/", 1)[-1] for a in outcome.assets] == ["img_1.png", "img_2.png"]

    def test_without_relocation_keeps_raw_output(self, tool_ctx, fake_vendor, download_session):
        fake_vendor.plan = lambda payload: [fake_vendor.succeeded("https://vendor.test/a.png")]

        outcome = _run(tool_ctx, _request(relocate_outputs=False))

        assert outcome.succeeded
        assert outcome.assets == []
        download_session.get.assert_not_called()
        assert tool_ctx.jobs.get_job(outcome.record.id)["output_data"] == {
            "output": "https://vendor.test/a.png"
        }

    def test_deducts_cost_once_after_submission(self, tool_ctx):
        outcome = _run(tool_ctx, cost=4)

        assert outcome.succeeded
        assert outcome.warnings == []
        assert _available(tool_ctx) == 596


class TestRunJobFailures:
    def test_submission_error_writes_no_row_and_charges_nothing(self, tool_ctx, fake_vendor):
        fake_vendor.submit_error = SubmissionError("replicate", 422, '{"detail": "bad input"}')

        with pytest.raises(SubmissionError) as exc_info:
            _run(tool_ctx, cost=4)

        assert exc_info.value.status_code == 422
        assert tool_ctx.jobs.list_jobs("user_a") == []
        assert _available(tool_ctx) == 600

    def test_insufficient_credits_stops_before_submission(self, tool_ctx, fake_vendor):
        with pytest.raises(InsufficientCreditsError) as exc_info:
            _run(tool_ctx, cost=601)

        assert str(exc_info.value) == "Insufficient credits. Need 601, have 600"
        assert fake_vendor.submissions == []

    def test_vendor_failure_is_returned_not_raised(self, tool_ctx, fake_vendor):
        fake_vendor.plan = lambda payload: [fake_vendor.failed("Prediction failed: CUDA error")]

        outcome = _run(tool_ctx)

        assert not outcome.succeeded
        assert outcome.snapshot.status == JobStatus.FAILED
        row = tool_ctx.jobs.get_job(outcome.record.id)
        assert row["status"] == "failed"
        assert row["error"] == "Prediction failed: CUDA error"
        assert row.get("output_data") is None

    def test_timeout_marks_row_failed_and_raises(self, tool_ctx, fake_vendor):
        fake_vendor.plan = lambda payload: [fake_vendor.processing()]

        with pytest.raises(PollTimeoutError):
            _run(tool_ctx, policy=PollPolicy(poll_interval=0.01, max_wait=0.05))

        [row] = tool_ctx.jobs.list_jobs("user_a")
        assert row["status"] == "failed"
        assert "did not complete" in row["error"]

    def test_status_fetch_error_marks_row_failed_and_raises(self, tool_ctx, fake_vendor):
        def broken_fetch(job_id):
            raise VendorRequestError("replicate status request failed: HTTP 502")

        fake_vendor.fetch = broken_fetch

        with pytest.raises(VendorRequestError):
            _run(tool_ctx, cost=2)

        [row] = tool_ctx.jobs.list_jobs("user_a")
        assert row["status"] == "failed"
        assert "HTTP 502" in row["error"]
        assert row["completed_at"] is not None
        assert _available(tool_ctx) == 598

    def test_relocation_failure_marks_row_failed_without_refund(self, tool_ctx, download_session):
        download_session.get.return_value.ok = False
        download_session.get.return_value.status_code = 404

        with pytest.raises(RelocationError):
            _run(tool_ctx, cost=2)

        [row] = tool_ctx.jobs.list_jobs("user_a")
        assert row["status"] == "failed"
        assert "HTTP 404" in row["error"]
        assert _available(tool_ctx) == 598

    def test_success_without_urls_fails_the_row(self, tool_ctx, fake_vendor):
        fake_vendor.plan = lambda payload: [fake_vendor.succeeded()]

        outcome = _run(tool_ctx)

        assert not outcome.succeeded
        assert outcome.error == NO_OUTPUT_MESSAGE

    def test_row_finalized_elsewhere_is_not_overwritten(self, tool_ctx, fake_vendor):
        fake_vendor.plan = lambda payload: [
            fake_vendor.processing(),
            fake_vendor.succeeded("https://vendor.test/a.png"),
        ]
        original_fetch = fake_vendor.fetch

        def fetch_then_cancel(job_id):
            if fake_vendor.fetch_count == 1:
                tool_ctx.jobs.update_job(job_id, {"status": "canceled", "error": "Canceled by user"})
            return original_fetch(job_id)

        fake_vendor.fetch = fetch_then_cancel

        outcome = _run(tool_ctx)

        assert outcome.record.status == JobStatus.CANCELED
        assert not outcome.succeeded
        assert tool_ctx.jobs.get_job(outcome.record.id)["status"] == "canceled"


class TestFailureResult:
    def test_converts_tool_error_to_envelope(self):
        result = failure_result(ToolResult, InsufficientCreditsError(needed=8, available=3))

        assert result.success is False
        assert result.error == "Insufficient credits. Need 8, have 3"
        assert result.error_kind == "insufficient_credits"
