"""Unit tests for the Replicate client."""

from unittest.mock import MagicMock

import pytest
import requests

from creator_toolkit.features.jobs.models import JobStatus
from creator_toolkit.features.vendors.replicate import ReplicateClient
from creator_toolkit.platform.errors import SubmissionError, VendorRequestError

PREDICTION = {
    "id": "pred_123",
    "version": "abc",
    "status": "starting",
    "input": {"prompt": "cat"},
    "output": None,
    "error": None,
    "created_at": "2026-03-01T12:00:00.000Z",
    "urls": {"get": "https://api.replicate.com/v1/predictions/pred_123"},
}


def _response(status_code=201, body=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = body if body is not None else PREDICTION
    response.text = text
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return ReplicateClient("r8_token", session=session, base_url="https://api.test/v1", timeout=7)


class TestSubmit:
    def test_model_name_uses_models_endpoint(self, client, session):
        session.post.return_value = _response()

        snapshot = client.submit("black-forest-labs/flux-kontext-pro", {"prompt": "cat"})

        url = session.post.call_args.args[0]
        assert url == "https://api.test/v1/models/black-forest-labs/flux-kontext-pro/predictions"
        assert session.post.call_args.kwargs["json"] == {"input": {"prompt": "cat"}}
        assert session.post.call_args.kwargs["headers"]["Authorization"] == "Bearer r8_token"
        assert session.post.call_args.kwargs["timeout"] == 7
        assert snapshot.id == "pred_123"
        assert snapshot.status == JobStatus.STARTING
        assert snapshot.vendor == "replicate"

    def test_version_id_uses_predictions_endpoint(self, client, session):
        session.post.return_value = _response()

        client.submit("be1f9d9a43c1", {"prompt": "cat"})

        assert session.post.call_args.args[0] == "https://api.test/v1/predictions"
        assert session.post.call_args.kwargs["json"] == {
            "version": "be1f9d9a43c1",
            "input": {"prompt": "cat"},
        }

    def test_non_2xx_raises_submission_error_once(self, client, session):
        session.post.return_value = _response(422, text='{"detail": "invalid aspect_ratio"}')

        with pytest.raises(SubmissionError) as exc_info:
            client.submit("owner/model", {})

        assert exc_info.value.status_code == 422
        assert "invalid aspect_ratio" in exc_info.value.body
        session.post.assert_called_once()

    def test_network_error_raises_submission_error(self, client, session):
        session.post.side_effect = requests.Timeout("slow")

        with pytest.raises(SubmissionError):
            client.submit("owner/model", {})


class TestFetch:
    @pytest.mark.parametrize(
        "vendor_status, expected",
        [
            ("starting", JobStatus.STARTING),
            ("processing", JobStatus.PROCESSING),
            ("succeeded", JobStatus.SUCCEEDED),
            ("failed", JobStatus.FAILED),
            ("canceled", JobStatus.CANCELED),
            ("aborted", JobStatus.CANCELED),
            ("warming_up", JobStatus.PROCESSING),
        ],
    )
    def test_status_normalization(self, client, session, vendor_status, expected):
        session.request.return_value = _response(200, {**PREDICTION, "status": vendor_status})

        snapshot = client.fetch("pred_123")

        assert snapshot.status == expected
        assert snapshot.vendor_status == vendor_status

    def test_output_and_error_are_carried(self, client, session):
        session.request.return_value = _response(
            200,
            {**PREDICTION, "status": "succeeded", "output": ["https://replicate.delivery/a.png"]},
        )

        snapshot = client.fetch("pred_123")

        session.request.assert_called_once()
        assert session.request.call_args.args[:2] == ("GET", "https://api.test/v1/predictions/pred_123")
        assert snapshot.output_urls() == ["https://replicate.delivery/a.png"]

    def test_non_2xx_raises_vendor_request_error(self, client, session):
        session.request.return_value = _response(500, text="boom")

        with pytest.raises(VendorRequestError):
            client.fetch("pred_123")

    def test_malformed_body_raises_vendor_request_error(self, client, session):
        session.request.return_value = _response(200, {"unexpected": True})

        with pytest.raises(VendorRequestError):
            client.fetch("pred_123")


class TestCancel:
    def test_posts_to_cancel_endpoint(self, client, session):
        session.request.return_value = _response(200, {**PREDICTION, "status": "canceled"})

        snapshot = client.cancel("pred_123")

        assert session.request.call_args.args[:2] == (
            "POST",
            "https://api.test/v1/predictions/pred_123/cancel",
        )
        assert snapshot.status == JobStatus.CANCELED
