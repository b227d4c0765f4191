"""Constants for switch2light bridge."""

# Default configuration paths
DEFAULT_CONFIG_FILE = "switch2light.yaml"
DEFAULT_CONFIG_EXAMPLE_FILE = "switch2light.yaml.example"

# MQTT Topics
SWITCH_TOPIC_PREFIX = "zigbee2mqtt"
SWITCH_TOPIC_SUFFIX = "action"
SWITCH_ACTION_TOPIC_FILTER = f"{SWITCH_TOPIC_PREFIX}/+/{SWITCH_TOPIC_SUFFIX}"
LIGHT_COMMAND_TOPIC_PREFIX = "hmd/light/MQTT-Lightwave-RF"

# Light command payloads
LIGHT_STATE_ON = "ON"
LIGHT_STATE_OFF = "OFF"

# MQTT settings
MQTT_QOS = 1
MQTT_RETAIN = False
MQTT_DEFAULT_CLIENT_ID = "GoLights"
MQTT_DEFAULT_KEEPALIVE = 20
MQTT_DEFAULT_SESSION_EXPIRY = 60
MQTT_RECONNECT_MIN_DELAY = 1
MQTT_RECONNECT_MAX_DELAY = 60

# Inbound event buffering
EVENT_QUEUE_SIZE = 100

# Timeouts (seconds)
PUBLISH_ACK_TIMEOUT = 15.0
