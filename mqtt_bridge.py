"""MQTT bridge implementation."""

import asyncio
import logging

import paho.mqtt.client as mqtt
from paho.mqtt.packettypes import PacketTypes
from paho.mqtt.properties import Properties

from constants import (
    MQTT_QOS,
    MQTT_RECONNECT_MAX_DELAY,
    MQTT_RECONNECT_MIN_DELAY,
    MQTT_RETAIN,
    PUBLISH_ACK_TIMEOUT,
    SWITCH_ACTION_TOPIC_FILTER,
)
from exceptions import PublishFailure
from models import InboundEvent, MqttSettings

logger = logging.getLogger(__name__)


class MqttBridge:
    """Bridge between MQTT and asyncio event loop."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        event_queue: "asyncio.Queue[InboundEvent]",
        settings: MqttSettings,
    ):
        self.loop = loop
        self.event_queue = event_queue
        self.settings = settings
        self._closing = False
        self._connected = asyncio.Event()
        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=settings.client_id,
            protocol=mqtt.MQTTv5,
        )
        self.client.reconnect_delay_set(
            min_delay=MQTT_RECONNECT_MIN_DELAY, max_delay=MQTT_RECONNECT_MAX_DELAY
        )

        self.client.on_connect = self._on_connect
        self.client.on_connect_fail = self._on_connect_fail
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

    def connect(self):
        """
        Start connecting to the MQTT broker in the paho network thread.
        The first connection is retried like any reconnect; see wait_connected().
        """
        props = Properties(PacketTypes.CONNECT)
        props.SessionExpiryInterval = self.settings.session_expiry
        self.client.connect_async(
            self.settings.host,
            self.settings.port,
            keepalive=self.settings.keepalive,
            clean_start=mqtt.MQTT_CLEAN_START_FIRST_ONLY,
            properties=props,
        )
        self.client.loop_start()
        logger.info(f"Connecting to MQTT broker at {self.settings.host}:{self.settings.port}")

    async def wait_connected(self):
        """Wait until the broker has accepted the connection."""
        await self._connected.wait()

    def close(self):
        """Close MQTT connection."""
        self._closing = True
        try:
            self.client.loop_stop()
        finally:
            self.client.disconnect()

    async def publish(self, topic: str, payload: bytes, qos: int = MQTT_QOS, retain: bool = MQTT_RETAIN):
        """Publish a message and wait for the broker to acknowledge it."""
        info = self.client.publish(topic, payload=payload, qos=qos, retain=retain)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise PublishFailure(f"Publish to {topic} failed: {mqtt.error_string(info.rc)}")
        logger.debug(f"Published to {topic}: {payload!r}")

        if qos == 0:
            return
        deadline = self.loop.time() + PUBLISH_ACK_TIMEOUT
        try:
            while not info.is_published():
                if self.loop.time() >= deadline:
                    raise PublishFailure(
                        f"No acknowledgement for publish to {topic} within {PUBLISH_ACK_TIMEOUT}s"
                    )
                await asyncio.sleep(0.05)
        except (RuntimeError, ValueError) as e:
            raise PublishFailure(f"Publish to {topic} failed: {e}") from e

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        """Handle MQTT connection."""
        if reason_code == 0:
            logger.info("Connected to MQTT broker successfully")
            self.loop.call_soon_threadsafe(self._connected.set)
        else:
            logger.warning(f"Connected to MQTT broker with code {reason_code}")
        # subscribing here restores the subscription after every reconnect
        client.subscribe(SWITCH_ACTION_TOPIC_FILTER, qos=MQTT_QOS)
        logger.info(f"Subscribed to: {SWITCH_ACTION_TOPIC_FILTER}")

    def _on_connect_fail(self, client, userdata):
        logger.warning("Error whilst attempting connection to MQTT broker, retrying")

    def _on_disconnect(self, client, userdata, disconnect_flags, reason_code, properties):
        if self._closing:
            logger.info("Disconnected from MQTT broker")
            return
        self.loop.call_soon_threadsafe(self._connected.clear)
        reason = getattr(properties, "ReasonString", None) if properties else None
        if reason:
            logger.warning(f"Server requested disconnect: {reason}")
        else:
            logger.warning(f"Disconnected from MQTT broker; reason code: {reason_code}")

    def _on_message(self, client, userdata, msg):
        """Handle incoming MQTT message."""
        if self._closing:
            logger.debug(f"Dropping message on {msg.topic}: bridge closing")
            return
        try:
            event = InboundEvent(topic=msg.topic, payload=bytes(msg.payload or b""))
            # push into asyncio loop safely from MQTT thread; never wait here,
            # this thread also reads the PUBACKs the dispatcher is waiting for
            self.loop.call_soon_threadsafe(self._enqueue, event)
        except Exception as e:
            logger.error(f"Error handling MQTT message: {e}", exc_info=True)

    def _enqueue(self, event: InboundEvent):
        """Queue an event for the dispatcher, dropping it if the queue is full."""
        try:
            self.event_queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                f"Event queue full ({self.event_queue.maxsize}), dropping message on {event.topic}"
            )
