"""
Redis Streams publisher.
Each destination is a stream; each message is one XADD entry.
"""

import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis

from ...core.ports.exceptions import PublishError
from ...core.ports.message_publisher import MessagePublisher, Transport


DEFAULT_MAX_LEN = 10000


class RedisStreamPublisher(MessagePublisher):
    """
    Publishes alert payloads to Redis Streams.

    Entry fields: ``payload`` (JSON), ``content_type`` and one field per
    message property. Streams are trimmed approximately to ``max_len``.
    """

    def __init__(self, client: redis.Redis, max_len: int = DEFAULT_MAX_LEN):
        self._client = client
        self._max_len = max_len
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_settings(
        cls,
        host: str,
        port: int,
        password: Optional[str] = None,
        db: int = 0,
        max_len: int = DEFAULT_MAX_LEN
    ) -> "RedisStreamPublisher":
        client = redis.Redis(
            host=host,
            port=port,
            password=password,
            db=db,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5
        )
        return cls(client, max_len=max_len)

    async def publish(
        self,
        destination: str,
        payload: Dict[str, Any],
        properties: Optional[Dict[str, Any]] = None
    ) -> None:
        entry = {
            "payload": json.dumps(payload, default=str),
            "content_type": "application/json"
        }
        for key, value in (properties or {}).items():
            if value is not None:
                entry[key] = str(value)

        try:
            entry_id = await self._client.xadd(
                destination,
                entry,
                maxlen=self._max_len,
                approximate=True
            )
        except Exception as e:
            self.logger.warning("[REDIS] Publish to %s failed: %s", destination, e)
            raise PublishError(Transport.REDIS_STREAMS.value, destination, e)

        self.logger.debug("[REDIS] Published entry %s to %s", entry_id, destination)

    async def close(self) -> None:
        await self._client.aclose()
