# =============================================================================
# pubsub-bench -- MQTT Transport
# =============================================================================
#
# paho-mqtt subscriber.  paho runs its network loop on its own thread;
# every callback is marshalled onto the asyncio loop that called
# ``connect_and_subscribe`` so workers and observers only ever run there.
# Arrival time is stamped on the network thread, before the hop.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, Any, Callable

import paho.mqtt.client as mqtt
from paho.mqtt.client import CallbackAPIVersion

from .constants import MQTT_KEEPALIVE, RECONNECT_MAX_DELAY, RECONNECT_MIN_DELAY
from .errors import TransportError

if TYPE_CHECKING:
    from .observer import RunObserver
    from .transport import ConnectionOptions, MessageCallback

log = logging.getLogger("pubsub_bench.transport.mqtt")


class MQTTTransport:
    """Clean-session MQTT subscriber with automatic reconnect.

    The subscription is (re)issued from ``on_connect`` so it survives
    reconnects of a clean session.

    Args:
        worker_id: Owning worker, used in observer events.
        options: Broker, topic, QoS, credentials and TLS context.
        observer: Receives connect / subscribe / connection-lost events.
        client_factory: Builds the paho client; tests inject a fake.
    """

    def __init__(
        self,
        worker_id: int,
        options: ConnectionOptions,
        observer: RunObserver,
        *,
        client_factory: Callable[..., mqtt.Client] | None = None,
    ) -> None:
        self._worker_id = worker_id
        self._options = options
        self._observer = observer
        self._client_factory = client_factory or mqtt.Client

        self._client: mqtt.Client | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._on_message: MessageCallback | None = None
        self._subscribe_attempted: asyncio.Event | None = None
        self._closed = False

    # -- Lifecycle ------------------------------------------------------------

    async def connect_and_subscribe(self, on_message: MessageCallback) -> None:
        self._loop = asyncio.get_running_loop()
        self._on_message = on_message
        self._subscribe_attempted = asyncio.Event()

        client = self._build_client()
        self._client = client
        broker = self._options.broker
        try:
            client.connect_async(broker.host, broker.port, keepalive=MQTT_KEEPALIVE)
            client.loop_start()
        except (OSError, ValueError) as e:
            self._observer.on_connect_error(self._worker_id, e)
            return

        await self._subscribe_attempted.wait()

    async def close(self) -> None:
        if self._closed or self._client is None:
            return
        self._closed = True
        client = self._client
        client.disconnect()
        # loop_stop joins the network thread
        await asyncio.to_thread(client.loop_stop)
        log.debug("CLIENT %d MQTT transport closed", self._worker_id)

    def _build_client(self) -> mqtt.Client:
        opts = self._options
        client = self._client_factory(
            callback_api_version=CallbackAPIVersion.VERSION2,
            client_id=opts.client_id(self._worker_id),
            clean_session=True,
        )
        client.reconnect_delay_set(
            min_delay=int(RECONNECT_MIN_DELAY), max_delay=int(RECONNECT_MAX_DELAY)
        )
        if opts.has_credentials:
            client.username_pw_set(opts.username, opts.password)
        if opts.tls_context is not None:
            client.tls_set_context(opts.tls_context)

        client.on_connect = self._handle_connect
        client.on_connect_fail = self._handle_connect_fail
        client.on_disconnect = self._handle_disconnect
        client.on_subscribe = self._handle_subscribe
        client.on_message = self._handle_message
        return client

    # -- paho callbacks (network thread) --------------------------------------

    def _handle_connect(
        self, client: mqtt.Client, userdata: Any, flags: Any, reason_code: Any, properties: Any
    ) -> None:
        if reason_code.is_failure:
            self._dispatch(self._report_connect_error, TransportError(str(reason_code)))
            return

        self._dispatch(self._observer.on_connected, self._worker_id, self._options.broker.url)
        result, _mid = client.subscribe(self._options.topic, qos=int(self._options.qos))
        if result != mqtt.MQTT_ERR_SUCCESS:
            self._dispatch(
                self._report_subscribe_error, TransportError(mqtt.error_string(result))
            )

    def _handle_connect_fail(self, client: mqtt.Client, userdata: Any) -> None:
        self._dispatch(
            self._report_connect_error,
            TransportError(f"unable to reach {self._options.broker.url}"),
        )

    def _handle_disconnect(
        self, client: mqtt.Client, userdata: Any, flags: Any, reason_code: Any, properties: Any
    ) -> None:
        if self._closed:
            return
        self._dispatch(self._observer.on_connection_lost, self._worker_id, str(reason_code))

    def _handle_subscribe(
        self, client: mqtt.Client, userdata: Any, mid: int, reason_codes: list[Any], properties: Any
    ) -> None:
        failures = [rc for rc in reason_codes if rc.is_failure]
        if failures:
            self._dispatch(
                self._report_subscribe_error,
                TransportError(", ".join(str(rc) for rc in failures)),
            )
        else:
            self._dispatch(self._mark_subscribe_attempted)

    def _handle_message(self, client: mqtt.Client, userdata: Any, message: mqtt.MQTTMessage) -> None:
        received_at = time.time_ns()
        if self._on_message is not None:
            self._dispatch(self._on_message, message.payload, received_at)

    # -- Loop-side helpers ----------------------------------------------------

    def _dispatch(self, fn: Callable[..., Any], *args: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(fn, *args)

    def _report_connect_error(self, error: TransportError) -> None:
        self._observer.on_connect_error(self._worker_id, error)
        self._mark_subscribe_attempted()

    def _report_subscribe_error(self, error: TransportError) -> None:
        self._observer.on_subscribe_error(self._worker_id, error)
        self._mark_subscribe_attempted()

    def _mark_subscribe_attempted(self) -> None:
        if self._subscribe_attempted is not None:
            self._subscribe_attempted.set()
