"""
Unit tests for the transport enum and the publisher registry.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from field_alerts.core.ports.exceptions import UnknownTransportError
from field_alerts.core.ports.message_publisher import MessagePublisher, PublisherRegistry, Transport


class TestTransport:
    """Test cases for Transport name resolution."""

    @pytest.mark.parametrize("name,transport", [
        ("redis_streams", Transport.REDIS_STREAMS),
        ("REDIS_STREAMS", Transport.REDIS_STREAMS),
        (" mqtt ", Transport.MQTT),
        ("Mqtt", Transport.MQTT),
    ])
    def test_from_name(self, name, transport):
        assert Transport.from_name(name) == transport

    @pytest.mark.parametrize("name", ["rabbitmq", "", None])
    def test_unknown_name(self, name):
        with pytest.raises(UnknownTransportError) as exc_info:
            Transport.from_name(name)
        assert "redis_streams" in exc_info.value.supported_transports


class TestPublisherRegistry:
    """Test cases for PublisherRegistry."""

    def test_get_registered_publisher(self, mock_publisher):
        registry = PublisherRegistry({Transport.REDIS_STREAMS: mock_publisher})
        assert registry.get(Transport.REDIS_STREAMS) is mock_publisher
        assert registry.transports == [Transport.REDIS_STREAMS]

    def test_get_unregistered_transport(self, mock_publisher):
        registry = PublisherRegistry({Transport.REDIS_STREAMS: mock_publisher})
        with pytest.raises(UnknownTransportError) as exc_info:
            registry.get(Transport.MQTT)
        assert exc_info.value.transport_name == "mqtt"

    def test_rejects_non_transport_keys(self, mock_publisher):
        """Test that free-form names are refused at construction."""
        with pytest.raises(UnknownTransportError):
            PublisherRegistry({"ServiceBus": mock_publisher})

    @pytest.mark.asyncio
    async def test_close_closes_every_publisher(self):
        first = MagicMock(spec=MessagePublisher)
        first.close = AsyncMock()
        second = MagicMock(spec=MessagePublisher)
        second.close = AsyncMock()

        await PublisherRegistry({Transport.REDIS_STREAMS: first, Transport.MQTT: second}).close()

        first.close.assert_awaited_once()
        second.close.assert_awaited_once()
