"""
Unit tests for the Redis Streams publisher.
"""

import json
import pytest
from unittest.mock import AsyncMock, MagicMock

from field_alerts.adapters.publishers.redis_stream_publisher import RedisStreamPublisher
from field_alerts.core.ports.exceptions import PublishError


@pytest.fixture
def mock_redis_client():
    client = MagicMock()
    client.xadd = AsyncMock(return_value="1710072000000-0")
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def publisher(mock_redis_client):
    return RedisStreamPublisher(mock_redis_client, max_len=500)


class TestRedisStreamPublisher:
    """Test cases for RedisStreamPublisher."""

    @pytest.mark.asyncio
    async def test_publish_adds_stream_entry(self, publisher, mock_redis_client):
        payload = {"notificationType": "email", "templateName": "Drought"}
        properties = {"correlation_id": "corr-123", "alert_type": "DroughtCondition", "trace_parent": None}

        await publisher.publish("notifications-queue", payload, properties)

        mock_redis_client.xadd.assert_awaited_once()
        args = mock_redis_client.xadd.await_args
        stream, entry = args.args
        assert stream == "notifications-queue"
        assert json.loads(entry["payload"]) == payload
        assert entry["content_type"] == "application/json"
        assert entry["correlation_id"] == "corr-123"
        assert entry["alert_type"] == "DroughtCondition"
        assert "trace_parent" not in entry
        assert args.kwargs == {"maxlen": 500, "approximate": True}

    @pytest.mark.asyncio
    async def test_publish_without_properties(self, publisher, mock_redis_client):
        await publisher.publish("alert-required-queue", {"subject": "Alert"})

        _, entry = mock_redis_client.xadd.await_args.args
        assert set(entry) == {"payload", "content_type"}

    @pytest.mark.asyncio
    async def test_publish_failure_raises_publish_error(self, publisher, mock_redis_client):
        error = ConnectionError("connection refused")
        mock_redis_client.xadd.side_effect = error

        with pytest.raises(PublishError) as exc_info:
            await publisher.publish("notifications-queue", {"a": 1})

        assert exc_info.value.transport == "redis_streams"
        assert exc_info.value.destination == "notifications-queue"
        assert exc_info.value.source_error is error

    @pytest.mark.asyncio
    async def test_close(self, publisher, mock_redis_client):
        await publisher.close()
        mock_redis_client.aclose.assert_awaited_once()
