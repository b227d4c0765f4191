"""Data models and dataclasses."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from constants import (
    MQTT_DEFAULT_CLIENT_ID,
    MQTT_DEFAULT_KEEPALIVE,
    MQTT_DEFAULT_SESSION_EXPIRY,
)


class Action(str, Enum):
    """Switch gestures the dispatcher acts on."""
    SINGLE = "single"


@dataclass(frozen=True)
class LightMapping:
    """Binding of one switch to the light it controls."""
    switch_id: str
    light_id: str
    brightness: Optional[int] = None  # None means leave brightness alone


@dataclass(frozen=True)
class InboundEvent:
    """Message received from MQTT."""
    topic: str
    payload: bytes


@dataclass(frozen=True)
class OutboundCommand:
    """Command for a light."""
    state: str  # "ON" | "OFF"
    brightness: Optional[int] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"state": self.state}
        if self.brightness is not None:
            payload["brightness"] = self.brightness
        return payload


@dataclass
class MqttSettings:
    """Broker connection settings."""
    host: str
    port: int
    client_id: str = MQTT_DEFAULT_CLIENT_ID
    keepalive: int = MQTT_DEFAULT_KEEPALIVE
    session_expiry: int = MQTT_DEFAULT_SESSION_EXPIRY


@dataclass
class AppConfig:
    """Validated configuration file contents."""
    mqtt: MqttSettings
    mappings: List[LightMapping] = field(default_factory=list)
    log_level: str = "INFO"
