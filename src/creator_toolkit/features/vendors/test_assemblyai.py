"""Unit tests for the AssemblyAI client."""

from unittest.mock import MagicMock

import pytest
import requests

from creator_toolkit.features.jobs.models import JobStatus
from creator_toolkit.features.vendors.assemblyai import AssemblyAIClient
from creator_toolkit.platform.errors import SubmissionError, VendorRequestError


def _response(status_code=200, body=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = body or {}
    response.text = text
    return response


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(session):
    return AssemblyAIClient("aai_key", session=session, base_url="https://aai.test/v2")


class TestAssemblyAIClient:
    def test_submit_posts_transcript_request(self, client, session):
        session.post.return_value = _response(200, {"id": "tr_1", "status": "queued"})

        snapshot = client.submit("best", {"audio_url": "https://cdn.test/a.mp3"})

        assert session.post.call_args.args[0] == "https://aai.test/v2/transcript"
        assert session.post.call_args.kwargs["json"] == {
            "audio_url": "https://cdn.test/a.mp3",
            "speech_model": "best",
        }
        assert session.post.call_args.kwargs["headers"]["authorization"] == "aai_key"
        assert snapshot.status == JobStatus.STARTING
        assert snapshot.vendor == "assemblyai"

    def test_submit_rejected(self, client, session):
        session.post.return_value = _response(400, text="audio_url is required")

        with pytest.raises(SubmissionError) as exc_info:
            client.submit("best", {})

        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize(
        "vendor_status, expected",
        [
            ("queued", JobStatus.STARTING),
            ("processing", JobStatus.PROCESSING),
            ("completed", JobStatus.SUCCEEDED),
            ("error", JobStatus.FAILED),
        ],
    )
    def test_status_normalization(self, client, session, vendor_status, expected):
        session.get.return_value = _response(200, {"id": "tr_1", "status": vendor_status})

        assert client.fetch("tr_1").status == expected

    def test_completed_transcript_exposes_text(self, client, session):
        session.get.return_value = _response(
            200,
            {
                "id": "tr_1",
                "status": "completed",
                "text": "Hello world",
                "words": [{"text": "Hello", "start": 0, "end": 400}],
                "language_code": "en_us",
                "audio_duration": 1.5,
            },
        )

        snapshot = client.fetch("tr_1")

        assert snapshot.output["text"] == "Hello world"
        assert snapshot.output["words"][0]["text"] == "Hello"
        assert snapshot.output_urls() == []

    def test_error_status_carries_message(self, client, session):
        session.get.return_value = _response(
            200, {"id": "tr_1", "status": "error", "error": "Download error, unable to download"}
        )

        snapshot = client.fetch("tr_1")

        assert snapshot.status == JobStatus.FAILED
        assert snapshot.error == "Download error, unable to download"

    def test_cancel_is_unsupported(self, client):
        with pytest.raises(VendorRequestError):
            client.cancel("tr_1")
