"""Unit tests for the DynamoDB cooldown store."""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from streamwarden.governance.cooldowns import DynamoDBCooldownStore


NOW = datetime(2026, 1, 25, 8, 0, tzinfo=timezone.utc)
NOW_EPOCH = int(NOW.timestamp())
KEY = "rule:cooldown:rule1:notify:u1"


def client_error(code="ProvisionedThroughputExceededException"):
    return ClientError({"Error": {"Code": code, "Message": "failed"}}, "GetItem")


class TestDynamoDBCooldownStore:
    """Test DynamoDB cooldown store."""

    @pytest.fixture
    def mock_dynamodb_table(self):
        """Create mock DynamoDB table."""
        return MagicMock()

    @pytest.fixture
    def cooldown_store(self, mock_dynamodb_table):
        """Create cooldown store with mocked table and a fixed clock."""
        with patch("boto3.resource") as mock_resource:
            mock_resource.return_value.Table.return_value = mock_dynamodb_table
            store = DynamoDBCooldownStore(
                table_name="test-cooldowns",
                clock=lambda: NOW,
            )
            store.table = mock_dynamodb_table
            return store

    def test_table_name_required(self, monkeypatch):
        """Test that a missing table name is rejected."""
        monkeypatch.delenv("STREAMWARDEN_COOLDOWN_TABLE", raising=False)
        with pytest.raises(ValueError):
            DynamoDBCooldownStore()

    def test_table_name_from_env(self, monkeypatch):
        """Test that the table name falls back to the environment."""
        monkeypatch.setenv("STREAMWARDEN_COOLDOWN_TABLE", "env-cooldowns")
        with patch("boto3.resource") as mock_resource:
            store = DynamoDBCooldownStore()

        assert store.table_name == "env-cooldowns"
        mock_resource.return_value.Table.assert_called_once_with("env-cooldowns")

    def test_no_item_is_inactive(self, cooldown_store, mock_dynamodb_table):
        """Test that a key never started has no cooldown."""
        mock_dynamodb_table.get_item.return_value = {}

        assert cooldown_store.is_active(KEY) is False
        mock_dynamodb_table.get_item.assert_called_once_with(
            Key={"pk": f"PK#COOLDOWN#{KEY}", "sk": "SK#COOLDOWN"}
        )

    def test_open_window_is_active(self, cooldown_store, mock_dynamodb_table):
        """Test that an unexpired item is an active cooldown."""
        mock_dynamodb_table.get_item.return_value = {
            "Item": {"expires_at": Decimal(NOW_EPOCH + 60)}
        }

        assert cooldown_store.is_active(KEY) is True

    def test_expired_item_not_yet_deleted_is_inactive(self, cooldown_store, mock_dynamodb_table):
        """Test that reads ignore items DynamoDB TTL has not removed yet."""
        mock_dynamodb_table.get_item.return_value = {
            "Item": {"expires_at": Decimal(NOW_EPOCH)}
        }

        assert cooldown_store.is_active(KEY) is False

    def test_read_error_is_raised(self, cooldown_store, mock_dynamodb_table):
        """Test that a failing read is not mistaken for no cooldown."""
        mock_dynamodb_table.get_item.side_effect = client_error()

        with pytest.raises(ClientError):
            cooldown_store.is_active(KEY)

    def test_start_writes_window_with_ttl(self, cooldown_store, mock_dynamodb_table):
        """Test the stored cooldown item."""
        cooldown_store.start(KEY, 15)

        item = mock_dynamodb_table.put_item.call_args[1]["Item"]
        assert item["pk"] == f"PK#COOLDOWN#{KEY}"
        assert item["sk"] == "SK#COOLDOWN"
        assert item["cooldown_key"] == KEY
        assert item["minutes"] == 15
        assert item["started_at"] == NOW.isoformat()
        assert item["expires_at"] == NOW_EPOCH + 15 * 60
        assert item["ttl_timestamp"] == item["expires_at"]

    @pytest.mark.parametrize("minutes", [0, -5])
    def test_start_rejects_non_positive_minutes(self, cooldown_store, mock_dynamodb_table, minutes):
        """Test that empty windows are not written."""
        with pytest.raises(ValueError):
            cooldown_store.start(KEY, minutes)
        mock_dynamodb_table.put_item.assert_not_called()

    def test_start_error_is_raised(self, cooldown_store, mock_dynamodb_table):
        """Test that write failures propagate."""
        mock_dynamodb_table.put_item.side_effect = client_error()

        with pytest.raises(ClientError):
            cooldown_store.start(KEY, 5)
