# =============================================================================
# pubsub-bench -- Transport Interface
# =============================================================================
#
# A transport owns one broker connection for one worker: connect,
# authenticate, subscribe, reconnect, and hand every inbound frame to the
# worker together with its arrival time.
# =============================================================================

from __future__ import annotations

import ssl
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Protocol
from urllib.parse import urlsplit

from .constants import (
    MQTT_DEFAULT_PORT,
    MQTT_SCHEMES,
    MQTT_TLS_DEFAULT_PORT,
    MQTT_TLS_SCHEMES,
    WS_SCHEMES,
    WS_TLS_SCHEMES,
)
from .errors import ConfigurationError
from .types import QoS

if TYPE_CHECKING:
    from .observer import RunObserver

# on_message(raw_frame, received_at_ns)
MessageCallback = Callable[[bytes | str, int], None]


class Transport(Protocol):
    """Capability a worker consumes to receive frames from the broker.

    ``connect_and_subscribe`` returns once the first connect/subscribe
    attempt has completed (successfully or not).  Failures are reported
    to the observer and never raised; delivery keeps flowing to
    ``on_message`` in the background, across reconnects, until ``close``.
    """

    async def connect_and_subscribe(self, on_message: MessageCallback) -> None: ...

    async def close(self) -> None: ...


@dataclass(frozen=True, slots=True)
class BrokerAddress:
    """Parsed broker endpoint, e.g. ``tcp://localhost:1883``."""

    scheme: str
    host: str
    port: int | None
    path: str = ""

    @property
    def is_mqtt(self) -> bool:
        return self.scheme in MQTT_SCHEMES or self.scheme in MQTT_TLS_SCHEMES

    @property
    def is_websocket(self) -> bool:
        return self.scheme in WS_SCHEMES or self.scheme in WS_TLS_SCHEMES

    @property
    def uses_tls(self) -> bool:
        return self.scheme in MQTT_TLS_SCHEMES or self.scheme in WS_TLS_SCHEMES

    @property
    def url(self) -> str:
        netloc = self.host if self.port is None else f"{self.host}:{self.port}"
        return f"{self.scheme}://{netloc}{self.path}"


def parse_broker_url(url: str) -> BrokerAddress:
    """Parse ``scheme://host[:port][/path]`` into a :class:`BrokerAddress`.

    Raises:
        ConfigurationError: Unknown scheme, missing host or bad port.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    known = MQTT_SCHEMES | MQTT_TLS_SCHEMES | WS_SCHEMES | WS_TLS_SCHEMES
    if scheme not in known:
        raise ConfigurationError(
            f"Unsupported broker scheme {parts.scheme!r} in {url!r}; "
            f"expected one of {', '.join(sorted(known))}"
        )
    try:
        port = parts.port
    except ValueError as e:
        raise ConfigurationError(f"Invalid broker port in {url!r}") from e
    if not parts.hostname:
        raise ConfigurationError(f"Missing broker host in {url!r}")

    if port is None and scheme in MQTT_SCHEMES:
        port = MQTT_DEFAULT_PORT
    elif port is None and scheme in MQTT_TLS_SCHEMES:
        port = MQTT_TLS_DEFAULT_PORT

    path = parts.path
    if parts.query:
        path = f"{path}?{parts.query}"
    return BrokerAddress(scheme=scheme, host=parts.hostname, port=port, path=path)


@dataclass(frozen=True)
class ConnectionOptions:
    """Immutable connection parameters shared by every worker of a run.

    Attributes:
        broker: Parsed broker endpoint.
        topic: Topic to subscribe to.
        qos: Subscription QoS (MQTT only).
        client_prefix: Client id prefix; each worker's id is
            ``Subscriber-<prefix>-<worker id>``.
        username: Broker username (used only together with a password).
        password: Broker password.
        tls_context: Client TLS context, ``None`` for plain connections.
    """

    broker: BrokerAddress
    topic: str
    qos: QoS = QoS.AT_LEAST_ONCE
    client_prefix: str = "mqtt-benchmark"
    username: str = ""
    password: str = ""
    tls_context: ssl.SSLContext | None = None

    @property
    def has_credentials(self) -> bool:
        return bool(self.username) and bool(self.password)

    def client_id(self, worker_id: int) -> str:
        return f"Subscriber-{self.client_prefix}-{worker_id}"


def create_transport(
    worker_id: int,
    options: ConnectionOptions,
    observer: RunObserver,
) -> Transport:
    """Build the transport matching the broker scheme."""
    if options.broker.is_websocket:
        from .ws_transport import WebSocketTransport

        return WebSocketTransport(worker_id, options, observer)

    from .mqtt_transport import MQTTTransport

    return MQTTTransport(worker_id, options, observer)
