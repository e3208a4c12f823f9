"""Unit tests for the Supabase adapters, against a mocked client."""

from unittest.mock import MagicMock

import pytest
from postgrest.exceptions import APIError

from creator_toolkit.platform.errors import JobFinalizedError, ObjectStorageError
from creator_toolkit.platform.supabase_adapter import (
    SupabaseCreditsAdapter,
    SupabaseJobsAdapter,
    SupabaseObjectStorage,
    create_supabase_client,
)

SUPABASE_URL = "https://proj.supabase.co"


def _response(data):
    return MagicMock(data=data)


@pytest.fixture
def client():
    return MagicMock()


class TestCreateClient:
    def test_missing_config_raises(self):
        with pytest.raises(RuntimeError):
            create_supabase_client("", "key")


class TestSupabaseJobsAdapter:
    def test_create_maps_id_and_error_columns(self, client):
        table = client.table.return_value
        table.insert.return_value.execute.return_value = _response([])

        SupabaseJobsAdapter(client).create_job({"id": "p1", "status": "starting", "error": None})

        row = table.insert.call_args[0][0]
        assert row["prediction_id"] == "p1"
        assert "logs" in row and "error" not in row
        client.table.assert_called_with("ai_predictions")

    def test_update_returns_merged_row(self, client):
        table = client.table.return_value
        table.update.return_value.eq.return_value.in_.return_value.execute.return_value = (
            _response([{"prediction_id": "p1", "status": "processing", "logs": None}])
        )

        row = SupabaseJobsAdapter(client).update_job("p1", {"status": "processing"})

        assert row["id"] == "p1"
        assert row["status"] == "processing"

    def test_update_on_terminal_row_raises(self, client):
        table = client.table.return_value
        table.update.return_value.eq.return_value.in_.return_value.execute.return_value = (
            _response([])
        )
        table.select.return_value.eq.return_value.limit.return_value.execute.return_value = (
            _response([{"prediction_id": "p1", "status": "succeeded", "logs": None}])
        )

        with pytest.raises(JobFinalizedError):
            SupabaseJobsAdapter(client).update_job("p1", {"status": "failed"})

    def test_update_on_missing_row_raises_key_error(self, client):
        table = client.table.return_value
        table.update.return_value.eq.return_value.in_.return_value.execute.return_value = (
            _response([])
        )
        table.select.return_value.eq.return_value.limit.return_value.execute.return_value = (
            _response([])
        )

        with pytest.raises(KeyError):
            SupabaseJobsAdapter(client).update_job("p1", {"status": "failed"})


class TestSupabaseCreditsAdapter:
    def test_deduct_maps_rpc_result(self, client):
        client.rpc.return_value.execute.return_value = _response(
            {"success": True, "available_credits": 590}
        )

        result = SupabaseCreditsAdapter(client).deduct("user_a", 10, "thumbnail")

        assert result == {"success": True, "remaining": 590, "error": None}
        name, params = client.rpc.call_args[0]
        assert name == "deduct_user_credits"
        assert params["p_amount"] == 10

    def test_deduct_rpc_error_is_reported_not_raised(self, client):
        client.rpc.return_value.execute.side_effect = APIError(
            {"message": "function missing", "code": "42883", "hint": None, "details": None}
        )

        result = SupabaseCreditsAdapter(client).deduct("user_a", 10, "thumbnail")

        assert result["success"] is False
        assert result["error"] == "function missing"

    def test_deduct_rejects_non_positive(self, client):
        with pytest.raises(ValueError):
            SupabaseCreditsAdapter(client).deduct("user_a", 0, "thumbnail")

    def test_renew_tops_up_each_expired_row(self, client):
        table = client.table.return_value
        table.select.return_value.lt.return_value.execute.return_value = _response(
            [{"user_id": "a"}, {"user_id": "b"}]
        )

        renewed = SupabaseCreditsAdapter(client, monthly_credits=600).renew_expired()

        assert renewed == 2
        assert client.rpc.call_count == 2
        client.rpc.assert_called_with(
            "topup_user_credits", {"p_user_id": "b", "p_target_credits": 600}
        )


class TestSupabaseObjectStorage:
    def test_path_from_url(self, client):
        storage = SupabaseObjectStorage(client, SUPABASE_URL)

        url = f"{SUPABASE_URL}/storage/v1/object/public/images/u/t/b/x.png"

        assert storage.path_from_url("images", url) == "u/t/b/x.png"
        assert storage.path_from_url("other", url) is None
        assert storage.path_from_url("images", "https://vendor.test/x.png") is None

    def test_upload_failure_raises_storage_error(self, client):
        client.storage.from_.return_value.upload.side_effect = Exception("Duplicate")

        with pytest.raises(ObjectStorageError, match="Duplicate"):
            SupabaseObjectStorage(client, SUPABASE_URL).upload("images", "a.png", b"x", "image/png")

    def test_list_skips_folders(self, client):
        client.storage.from_.return_value.list.return_value = [
            {"name": "folder", "id": None},
            {"name": "a.png", "id": "1", "created_at": "2026-01-01T00:00:00Z"},
        ]

        entries = SupabaseObjectStorage(client, SUPABASE_URL).list("images", "u")

        assert entries == [{"name": "a.png", "created_at": "2026-01-01T00:00:00Z"}]
