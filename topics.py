"""Topic utilities for MQTT."""

from constants import (
    LIGHT_COMMAND_TOPIC_PREFIX,
    SWITCH_TOPIC_PREFIX,
    SWITCH_TOPIC_SUFFIX,
)
from exceptions import NoMatch


def parse_switch_action_topic(topic: str) -> str:
    """
    Extract the switch id from "zigbee2mqtt/<switch_id>/action".
    Raises NoMatch for any other shape.
    """
    parts = topic.split("/")
    if len(parts) != 3:
        raise NoMatch(topic)
    prefix, switch_id, suffix = parts
    if prefix != SWITCH_TOPIC_PREFIX or suffix != SWITCH_TOPIC_SUFFIX or not switch_id:
        raise NoMatch(topic)
    return switch_id


def light_command_topic(light_id: str) -> str:
    """Get MQTT topic for light commands."""
    return f"{LIGHT_COMMAND_TOPIC_PREFIX}/{light_id}/command"
