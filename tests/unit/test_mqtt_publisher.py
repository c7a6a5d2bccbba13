"""
Unit tests for the MQTT publisher.
"""

import asyncio
import json
import time
import pytest
from unittest.mock import MagicMock, patch

from field_alerts.adapters.publishers import mqtt_publisher
from field_alerts.adapters.publishers.mqtt_publisher import MqttPublisher
from field_alerts.core.ports.exceptions import PublishError


def publish_info(rc=0, published=True):
    info = MagicMock()
    info.rc = rc
    info.mid = 7
    info.wait_for_publish.return_value = None
    info.is_published.return_value = published
    return info


@pytest.fixture
def mock_mqtt_client():
    client = MagicMock()
    client.publish.return_value = publish_info()
    return client


@pytest.fixture
def publisher(mock_mqtt_client):
    return MqttPublisher(topic_prefix="farms/", client=mock_mqtt_client, publish_timeout=1.0)


class TestMqttPublisher:
    """Test cases for MqttPublisher."""

    def test_topic_for(self, publisher):
        assert publisher.topic_for("notifications-queue") == "farms/notifications-queue"
        assert MqttPublisher(client=MagicMock()).topic_for("notifications-queue") == "notifications-queue"

    @pytest.mark.asyncio
    async def test_publish_sends_payload_with_properties(self, publisher, mock_mqtt_client):
        payload = {"templateName": "HeatStress"}
        properties = {"correlation_id": "corr-123", "priority": "HIGH", "trace_parent": None}

        await publisher.publish("notifications-queue", payload, properties)

        mock_mqtt_client.publish.assert_called_once()
        args = mock_mqtt_client.publish.call_args
        topic, body = args.args
        assert topic == "farms/notifications-queue"
        assert json.loads(body) == payload
        assert args.kwargs["qos"] == 1

        mqtt_properties = args.kwargs["properties"]
        assert ("correlation_id", "corr-123") in mqtt_properties.UserProperty
        assert ("priority", "HIGH") in mqtt_properties.UserProperty
        assert all(key != "trace_parent" for key, _ in mqtt_properties.UserProperty)
        assert mqtt_properties.CorrelationData == b"corr-123"

    @pytest.mark.asyncio
    async def test_waits_for_acknowledgement(self, publisher, mock_mqtt_client):
        info = publish_info()
        mock_mqtt_client.publish.return_value = info

        await publisher.publish("notifications-queue", {})

        info.wait_for_publish.assert_called_once_with(1.0)

    @pytest.mark.asyncio
    async def test_error_return_code_raises_publish_error(self, publisher, mock_mqtt_client):
        mock_mqtt_client.publish.return_value = publish_info(rc=4)

        with pytest.raises(PublishError) as exc_info:
            await publisher.publish("notifications-queue", {})

        assert exc_info.value.transport == "mqtt"
        assert exc_info.value.destination == "notifications-queue"

    @pytest.mark.asyncio
    async def test_unacknowledged_publish_raises_publish_error(self, publisher, mock_mqtt_client):
        mock_mqtt_client.publish.return_value = publish_info(published=False)

        with pytest.raises(PublishError) as exc_info:
            await publisher.publish("alert-required-queue", {})

        assert isinstance(exc_info.value.source_error, TimeoutError)

    @pytest.mark.asyncio
    async def test_close_stops_loop(self, publisher, mock_mqtt_client):
        await publisher.close()

        mock_mqtt_client.loop_stop.assert_called_once()
        mock_mqtt_client.disconnect.assert_called_once()


class TestMqttConnection:
    """Test cases for lazy broker connection."""

    @pytest.fixture
    def client_factory(self):
        created = []

        def factory(*args, **kwargs):
            client = MagicMock()
            # Slow handshake so concurrent publishers overlap while connecting
            client.connect.side_effect = lambda *a, **kw: time.sleep(0.05)
            client.publish.return_value = publish_info()
            created.append(client)
            return client

        with patch.object(mqtt_publisher.mqtt, "Client", side_effect=factory):
            yield created

    @pytest.mark.asyncio
    async def test_concurrent_first_publishes_share_one_client(self, client_factory):
        publisher = MqttPublisher(topic_prefix="farms")

        await asyncio.gather(*(publisher.publish("notifications-queue", {"n": i}) for i in range(3)))

        assert len(client_factory) == 1
        client = client_factory[0]
        client.connect.assert_called_once()
        client.loop_start.assert_called_once()
        assert client.publish.call_count == 3

    @pytest.mark.asyncio
    async def test_disconnect_keeps_client_for_reconnect(self, client_factory):
        publisher = MqttPublisher()
        await publisher.publish("notifications-queue", {})

        publisher._on_disconnect(client_factory[0], None, None, 7)
        await publisher.publish("notifications-queue", {})

        assert len(client_factory) == 1
        client_factory[0].loop_stop.assert_not_called()

    @pytest.mark.asyncio
    async def test_username_without_password(self, client_factory):
        publisher = MqttPublisher(username="sensor-gateway")

        await publisher.publish("notifications-queue", {})

        client_factory[0].username_pw_set.assert_called_once_with("sensor-gateway", None)
