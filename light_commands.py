"""Helper functions for building light commands."""

import json
from typing import Optional

from constants import LIGHT_STATE_OFF, LIGHT_STATE_ON
from exceptions import SerializationFailure
from models import OutboundCommand


def build_command(next_state: bool, brightness: Optional[int] = None) -> OutboundCommand:
    """
    Command that moves a light to next_state.
    Brightness is only sent when switching on; OFF never carries it.
    """
    if next_state:
        return OutboundCommand(state=LIGHT_STATE_ON, brightness=brightness)
    return OutboundCommand(state=LIGHT_STATE_OFF)


def serialize_command(cmd: OutboundCommand) -> bytes:
    """Encode a command as the JSON wire payload."""
    try:
        return json.dumps(cmd.to_payload()).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationFailure(f"Cannot encode light command {cmd!r}: {e}") from e
