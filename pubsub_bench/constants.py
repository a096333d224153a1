# =============================================================================
# pubsub-bench -- Defaults and Wire Constants
# =============================================================================
#
# CLI defaults match the legacy mqtt-benchmark subscriber tool.
# =============================================================================

# -- CLI defaults --------------------------------------------------------------

DEFAULT_BROKER = "tcp://localhost:1883"
DEFAULT_TOPIC = "/test"
DEFAULT_QOS = 1
DEFAULT_COUNT = 100
DEFAULT_CLIENTS = 10
DEFAULT_FORMAT = "text"
DEFAULT_CLIENT_PREFIX = "mqtt-benchmark"

BROKER_ENV_VAR = "PUBSUB_BENCH_BROKER"

OUTPUT_FORMATS = ("text", "json")
QOS_LEVELS = (0, 1, 2)

# -- Measurement ---------------------------------------------------------------

PROGRESS_INTERVAL = 100  # arrivals between progress reports
NANOS_PER_MILLI = 1_000_000

# -- Broker schemes ------------------------------------------------------------

MQTT_SCHEMES = frozenset({"tcp", "mqtt"})
MQTT_TLS_SCHEMES = frozenset({"ssl", "tls", "mqtts"})
WS_SCHEMES = frozenset({"ws"})
WS_TLS_SCHEMES = frozenset({"wss"})

MQTT_DEFAULT_PORT = 1883
MQTT_TLS_DEFAULT_PORT = 8883
MQTT_KEEPALIVE = 60  # seconds

# -- Reconnection (seconds) ----------------------------------------------------

RECONNECT_MIN_DELAY = 1.0
RECONNECT_MAX_DELAY = 30.0
RECONNECT_FACTOR = 1.5
CONNECTION_TIMEOUT = 10.0

# -- Wire prefixes -------------------------------------------------------------

PREFIX_COMPRESSED = b"C:"
PREFIX_MSGPACK = b"M:"
PREFIX_SYSTEM = "WSE"
PREFIX_SNAPSHOT = "S"
PREFIX_UPDATE = "U"

MAX_MESSAGE_SIZE = 1_048_576  # 1 MB

# -- Payload keys --------------------------------------------------------------

KEY_GENERATED_AT = "GeneratedAt"
KEY_CLIENT_ID = "ClientId"
KEY_MESSAGE_ID = "MessageId"
