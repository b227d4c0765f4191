"""Exceptions raised by the switch2light bridge."""


class Switch2LightError(Exception):
    """Base class for bridge errors."""


class ConfigError(Switch2LightError):
    """Configuration file is missing or invalid."""


class NoMatch(Switch2LightError):
    """Topic is not a switch action topic."""

    def __init__(self, topic: str):
        super().__init__(f"Not a switch action topic: {topic}")
        self.topic = topic


class NotFound(Switch2LightError):
    """Switch has no configured light."""

    def __init__(self, switch_id: str):
        super().__init__(f"No light mapped to switch: {switch_id}")
        self.switch_id = switch_id


class UnknownAction(Switch2LightError):
    """Switch reported a gesture the bridge does not handle."""

    def __init__(self, switch_id: str, action: str):
        super().__init__(f"Unknown action '{action}' from switch {switch_id}")
        self.switch_id = switch_id
        self.action = action


class SerializationFailure(Switch2LightError):
    """Light command could not be encoded."""


class PublishFailure(Switch2LightError):
    """Light command could not be delivered to the broker."""


class DispatcherError(Switch2LightError):
    """Unrecoverable failure while dispatching switch events."""
