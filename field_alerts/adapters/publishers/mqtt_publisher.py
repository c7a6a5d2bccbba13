"""
MQTT publisher.
Destinations map to topics; message properties travel as MQTT v5 user properties.
"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt
from paho.mqtt.packettypes import PacketTypes
from paho.mqtt.properties import Properties

from ...core.ports.exceptions import PublishError
from ...core.ports.message_publisher import MessagePublisher, Transport


class MqttPublisher(MessagePublisher):
    """
    Publishes alert payloads to an MQTT broker with QoS 1.

    The paho network loop runs in its own thread; publish() waits for the
    broker acknowledgement off the event loop.
    """

    def __init__(
        self,
        broker_host: str = "localhost",
        broker_port: int = 1883,
        username: Optional[str] = None,
        password: Optional[str] = None,
        topic_prefix: Optional[str] = None,
        client_id: str = "field-alerts",
        qos: int = 1,
        publish_timeout: float = 10.0,
        client: Optional[mqtt.Client] = None
    ):
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.username = username
        self.password = password
        self.topic_prefix = topic_prefix.strip("/") if topic_prefix else None
        self.client_id = f"{client_id}-{int(time.time())}"
        self.qos = qos
        self.publish_timeout = publish_timeout
        self.logger = logging.getLogger(__name__)

        self._client = client
        self._connected = client is not None
        self._connect_lock = asyncio.Lock()

    def connect(self) -> None:
        """
        Connect to the broker and start the network loop.

        Called once per publisher; paho's loop reconnects on its own after a drop.
        """
        if self._connected:
            return
        if self._client is not None:
            self._client.loop_stop()

        self._client = mqtt.Client(
            client_id=self.client_id,
            protocol=mqtt.MQTTv5,
            callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        )
        self._client.on_disconnect = self._on_disconnect
        if self.username:
            self._client.username_pw_set(self.username, self.password)

        self.logger.info("[MQTT] Connecting to %s:%d", self.broker_host, self.broker_port)
        self._client.connect(self.broker_host, self.broker_port, keepalive=60)
        self._client.loop_start()
        self._connected = True

    def topic_for(self, destination: str) -> str:
        if self.topic_prefix:
            return f"{self.topic_prefix}/{destination}"
        return destination

    def _build_properties(self, properties: Optional[Dict[str, Any]]) -> Properties:
        publish_properties = Properties(PacketTypes.PUBLISH)
        publish_properties.ContentType = "application/json"
        user_properties = [
            (str(key), str(value)) for key, value in (properties or {}).items() if value is not None
        ]
        if user_properties:
            publish_properties.UserProperty = user_properties
        if properties and properties.get("correlation_id"):
            publish_properties.CorrelationData = str(properties["correlation_id"]).encode("utf-8")
        return publish_properties

    async def publish(
        self,
        destination: str,
        payload: Dict[str, Any],
        properties: Optional[Dict[str, Any]] = None
    ) -> None:
        topic = self.topic_for(destination)
        try:
            await self._ensure_connected()

            info = self._client.publish(
                topic,
                json.dumps(payload, default=str),
                qos=self.qos,
                properties=self._build_properties(properties)
            )
            if info.rc != mqtt.MQTT_ERR_SUCCESS:
                raise RuntimeError(f"publish returned rc={info.rc}")
            await asyncio.to_thread(info.wait_for_publish, self.publish_timeout)
            if not info.is_published():
                raise TimeoutError(f"no acknowledgement within {self.publish_timeout}s")
        except Exception as e:
            self.logger.warning("[MQTT] Publish to %s failed: %s", topic, e)
            raise PublishError(Transport.MQTT.value, destination, e)

        self.logger.debug("[MQTT] Published message %s to %s", info.mid, topic)

    async def _ensure_connected(self) -> None:
        if self._connected:
            return
        async with self._connect_lock:
            if not self._connected:
                await asyncio.to_thread(self.connect)

    async def close(self) -> None:
        if self._client and self._connected:
            try:
                self._client.loop_stop()
                self._client.disconnect()
            except Exception as e:
                self.logger.warning("[MQTT] Disconnect error: %s", e)
        self._connected = False

    def _on_disconnect(self, client, userdata, flags, rc, properties=None):
        self.logger.warning("[MQTT] Disconnected (rc=%s), network loop will reconnect", rc)
