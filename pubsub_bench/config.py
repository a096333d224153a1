# =============================================================================
# pubsub-bench -- Run Configuration
# =============================================================================

from __future__ import annotations

import os
import ssl
from dataclasses import dataclass, field

from .constants import (
    BROKER_ENV_VAR,
    DEFAULT_BROKER,
    DEFAULT_CLIENT_PREFIX,
    DEFAULT_CLIENTS,
    DEFAULT_COUNT,
    DEFAULT_FORMAT,
    DEFAULT_QOS,
    DEFAULT_TOPIC,
    QOS_LEVELS,
)
from .errors import ConfigurationError
from .transport import ConnectionOptions, parse_broker_url
from .types import OutputFormat, QoS


def default_broker() -> str:
    return os.environ.get(BROKER_ENV_VAR, DEFAULT_BROKER)


@dataclass
class BenchConfig:
    """Benchmark run configuration.

    Attributes:
        broker: Broker endpoint as ``scheme://host:port``.
        topic: Topic every worker subscribes to.
        username: Broker username (empty if auth disabled).
        password: Broker password (empty if auth disabled).
        qos: Subscription QoS, 0..2.
        count: Messages each worker must receive, > 0.
        clients: Number of concurrent workers, > 0.
        format: ``"text"`` or ``"json"`` report.
        quiet: Suppress informational log lines while running.
        verbose: Enable debug logging.
        client_prefix: Client id prefix (suffixed with ``-<worker id>``).
        client_cert: Client certificate path (PEM).
        client_key: Client private key path (PEM).
        timeout: Optional per-message deadline in seconds; a worker that
            waits longer fails instead of stalling the run.
    """

    broker: str = field(default_factory=default_broker)
    topic: str = DEFAULT_TOPIC
    username: str = ""
    password: str = ""
    qos: int = DEFAULT_QOS
    count: int = DEFAULT_COUNT
    clients: int = DEFAULT_CLIENTS
    format: str = DEFAULT_FORMAT
    quiet: bool = False
    verbose: bool = False
    client_prefix: str = DEFAULT_CLIENT_PREFIX
    client_cert: str = ""
    client_key: str = ""
    timeout: float | None = None

    _tls_context: ssl.SSLContext | None = field(default=None, init=False, repr=False)
    _tls_loaded: bool = field(default=False, init=False, repr=False)

    @property
    def output_format(self) -> OutputFormat:
        return OutputFormat(self.format)

    def validate(self) -> None:
        """Check every option; raise on the first problem.

        Raises:
            ConfigurationError: Invalid counts, QoS, format, broker URL or
                an incomplete certificate / key pair.
        """
        if self.clients < 1:
            raise ConfigurationError(
                f"Invalid arguments: number of clients should be > 0, given: {self.clients}"
            )
        if self.count < 1:
            raise ConfigurationError(
                f"Invalid arguments: messages count should be > 0, given: {self.count}"
            )
        if self.qos not in QOS_LEVELS:
            raise ConfigurationError(f"Invalid arguments: qos must be 0, 1 or 2, given: {self.qos}")
        if self.format not in {f.value for f in OutputFormat}:
            raise ConfigurationError(f"Invalid arguments: unknown output format {self.format!r}")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(
                f"Invalid arguments: timeout should be > 0, given: {self.timeout}"
            )
        if self.client_cert and not self.client_key:
            raise ConfigurationError("Invalid arguments: private clientKey path missing")
        if self.client_key and not self.client_cert:
            raise ConfigurationError("Invalid arguments: certificate path missing")
        parse_broker_url(self.broker)

    def tls_context(self) -> ssl.SSLContext | None:
        """Client TLS context, loaded once and shared by every worker.

        With a client certificate the context skips server verification,
        as the legacy tool did.  A TLS broker scheme without a certificate
        gets a default verifying context.
        """
        if not self._tls_loaded:
            self._tls_context = self._load_tls_context()
            self._tls_loaded = True
        return self._tls_context

    def _load_tls_context(self) -> ssl.SSLContext | None:
        if self.client_cert and self.client_key:
            ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
            try:
                ctx.load_cert_chain(self.client_cert, self.client_key)
            except (OSError, ssl.SSLError) as e:
                raise ConfigurationError(f"Error reading certificate files: {e}") from e
            return ctx
        if parse_broker_url(self.broker).uses_tls:
            return ssl.create_default_context()
        return None

    def connection_options(self) -> ConnectionOptions:
        return ConnectionOptions(
            broker=parse_broker_url(self.broker),
            topic=self.topic,
            qos=QoS(self.qos),
            client_prefix=self.client_prefix,
            username=self.username,
            password=self.password,
            tls_context=self.tls_context(),
        )
