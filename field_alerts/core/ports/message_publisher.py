"""
Message Publisher Port - transport-agnostic alert publishing.
Callers pick a transport by its Transport key and never branch on the broker technology.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .exceptions import UnknownTransportError


# Destinations used by the alert handlers
NOTIFICATIONS_QUEUE = "notifications-queue"
ALERT_REQUIRED_QUEUE = "alert-required-queue"


class Transport(str, Enum):
    """Closed set of supported broker transports."""
    REDIS_STREAMS = "redis_streams"
    MQTT = "mqtt"

    @classmethod
    def from_name(cls, name: str) -> "Transport":
        """Resolve a transport from its configured name (case-insensitive)."""
        normalized = (name or "").strip().lower()
        for transport in cls:
            if transport.value == normalized:
                return transport
        raise UnknownTransportError(name, [t.value for t in cls])


class MessagePublisher(ABC):
    """Abstract base class for broker publisher implementations."""

    @abstractmethod
    async def publish(
        self,
        destination: str,
        payload: Dict[str, Any],
        properties: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Publish a JSON-serialisable payload.

        Args:
            destination: Queue, stream or topic name
            payload: Message body
            properties: Transport-level message properties (correlation, routing)

        Raises:
            PublishError: If the broker does not accept the message
        """
        pass

    async def close(self) -> None:
        """Release broker connections. Default is a no-op."""
        return None


class PublisherRegistry:
    """Registry mapping each Transport to the publisher that serves it."""

    def __init__(self, publishers: Mapping[Transport, MessagePublisher]):
        self._publishers: Dict[Transport, MessagePublisher] = {}
        for transport, publisher in publishers.items():
            if not isinstance(transport, Transport):
                raise UnknownTransportError(str(transport), [t.value for t in Transport])
            self._publishers[transport] = publisher

    def get(self, transport: Transport) -> MessagePublisher:
        """Return the publisher registered for a transport."""
        try:
            return self._publishers[transport]
        except KeyError:
            raise UnknownTransportError(
                str(getattr(transport, "value", transport)),
                [t.value for t in self._publishers]
            )

    @property
    def transports(self) -> list:
        return list(self._publishers)

    async def close(self) -> None:
        for publisher in self._publishers.values():
            await publisher.close()
