"""Main switch2light bridge application."""

import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

import yaml

from constants import (
    DEFAULT_CONFIG_EXAMPLE_FILE,
    DEFAULT_CONFIG_FILE,
    EVENT_QUEUE_SIZE,
    MQTT_DEFAULT_CLIENT_ID,
    MQTT_DEFAULT_KEEPALIVE,
    MQTT_DEFAULT_SESSION_EXPIRY,
)
from dispatcher import Dispatcher, MappingTable
from exceptions import ConfigError, DispatcherError
from models import AppConfig, InboundEvent, LightMapping, MqttSettings
from mqtt_bridge import MqttBridge

logger = logging.getLogger(__name__)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _parse_mappings(raw: Any) -> List[LightMapping]:
    """Validate the 'mappings' section."""
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ConfigError("'mappings' must be a list")

    mappings: List[LightMapping] = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ConfigError(f"mappings[{i}] must be a mapping")
        for key in ("switch_id", "light_id"):
            if key not in entry:
                raise ConfigError(f"Missing 'mappings[{i}].{key}' in configuration")
            if not isinstance(entry[key], str) or not entry[key]:
                raise ConfigError(f"'mappings[{i}].{key}' must be a non-empty string")
        brightness = entry.get("brightness")
        if brightness is not None and not _is_int(brightness):
            raise ConfigError(f"'mappings[{i}].brightness' must be an integer")
        mappings.append(
            LightMapping(
                switch_id=entry["switch_id"],
                light_id=entry["light_id"],
                brightness=brightness,
            )
        )
    return mappings


def load_config(path: str = DEFAULT_CONFIG_FILE) -> AppConfig:
    """Load and validate configuration file."""
    if not os.path.exists(path):
        raise ConfigError(
            f"Configuration file '{path}' not found. "
            f"Please copy '{DEFAULT_CONFIG_EXAMPLE_FILE}' to '{path}' "
            f"and update with your settings."
        )

    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in '{path}': {e}")

    if not config:
        raise ConfigError(f"'{path}' is empty")
    if not isinstance(config, dict):
        raise ConfigError(f"'{path}' must contain a mapping at the top level")

    # Validate required sections
    if "mqtt" not in config:
        raise ConfigError("Missing 'mqtt' section in configuration")

    # Validate required keys
    mqtt_config: Dict[str, Any] = config.get("mqtt") or {}
    if "host" not in mqtt_config:
        raise ConfigError("Missing 'mqtt.host' in configuration")
    if "port" not in mqtt_config:
        raise ConfigError("Missing 'mqtt.port' in configuration")
    for key in ("port", "keepalive", "session_expiry"):
        if key in mqtt_config and not _is_int(mqtt_config[key]):
            raise ConfigError(f"'mqtt.{key}' must be an integer")

    settings = MqttSettings(
        host=str(mqtt_config["host"]),
        port=mqtt_config["port"],
        client_id=str(mqtt_config.get("client_id", MQTT_DEFAULT_CLIENT_ID)),
        keepalive=mqtt_config.get("keepalive", MQTT_DEFAULT_KEEPALIVE),
        session_expiry=mqtt_config.get("session_expiry", MQTT_DEFAULT_SESSION_EXPIRY),
    )

    log_level = str((config.get("logging") or {}).get("level", "INFO")).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ConfigError(f"Unknown 'logging.level' in configuration: {log_level}")

    return AppConfig(
        mqtt=settings,
        mappings=_parse_mappings(config.get("mappings")),
        log_level=log_level,
    )


class Switch2Light:
    """Main bridge application."""

    def __init__(self, config: AppConfig):
        self.loop = asyncio.get_running_loop()
        self.event_queue: asyncio.Queue[InboundEvent] = asyncio.Queue(maxsize=EVENT_QUEUE_SIZE)

        self.mqtt = MqttBridge(self.loop, self.event_queue, config.mqtt)
        self.dispatcher = Dispatcher(MappingTable(config.mappings), self.event_queue, self.mqtt)

        self.running = True
        self._task: Optional[asyncio.Task] = None

    async def start(self):
        """Start the bridge. Returns when the dispatcher stops."""
        self.mqtt.connect()
        # paho keeps retrying until the broker accepts us or we are cancelled
        await self.mqtt.wait_connected()
        logger.info("Service started.")

        self._task = asyncio.create_task(self.dispatcher.run(), name="dispatcher")
        # Raises DispatcherError on a fatal failure
        await self._task

    async def stop(self):
        """Stop the bridge."""
        if not self.running:
            return
        self.running = False

        # Stop the dispatcher first so failures from here on are expected
        self.dispatcher.request_stop()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except DispatcherError as e:
                logger.debug(f"Dispatcher error during shutdown: {e}")

        # Then close resources
        try:
            self.mqtt.close()
        except Exception as e:
            logger.debug(f"Error closing MQTT connection: {e}")
