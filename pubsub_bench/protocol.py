# =============================================================================
# pubsub-bench -- Payload Codec
# =============================================================================
#
# Turns one inbound frame into a Payload.  Accepted frames:
#
#   Text:   bare JSON payload, or a WSE envelope (``{"t": ..., "p": {...}}``)
#           with an optional category prefix (WSE{, S{, U{)
#   Binary: C: (zlib), M: (msgpack), plain UTF-8 JSON, raw msgpack
#
# Payload keys are matched case-insensitively, like the Go publisher's
# JSON decoder does.
# =============================================================================

from __future__ import annotations

import zlib
from typing import Any

import msgpack
import orjson

from .constants import (
    KEY_CLIENT_ID,
    KEY_GENERATED_AT,
    KEY_MESSAGE_ID,
    MAX_MESSAGE_SIZE,
    PREFIX_COMPRESSED,
    PREFIX_MSGPACK,
    PREFIX_SNAPSHOT,
    PREFIX_SYSTEM,
    PREFIX_UPDATE,
)
from .errors import PayloadDecodeError
from .types import Payload

_ENVELOPE_TYPE_KEYS = ("t", "type")
_ENVELOPE_PAYLOAD_KEYS = ("p", "payload")


class PayloadCodec:
    """Decode benchmark payloads from raw transport frames.

    Raises :class:`PayloadDecodeError` for anything that is not a
    well-formed payload; callers log and drop such frames.
    """

    def __init__(self, max_size: int = MAX_MESSAGE_SIZE) -> None:
        self._max_size = max_size

    def decode(self, data: bytes | bytearray | str) -> Payload:
        if isinstance(data, str):
            return self._to_payload(self._load_text(data))
        return self._to_payload(self._load_binary(bytes(data)))

    # -- Frame decoding ----------------------------------------------------------

    def _load_text(self, data: str) -> Any:
        if len(data) > self._max_size:
            raise PayloadDecodeError(f"frame exceeds max size ({len(data)} chars)")
        try:
            return orjson.loads(_strip_prefix(data))
        except orjson.JSONDecodeError as e:
            raise PayloadDecodeError(f"invalid JSON: {e}") from e

    def _load_binary(self, data: bytes) -> Any:
        if len(data) > self._max_size:
            raise PayloadDecodeError(f"frame exceeds max size ({len(data)} bytes)")

        if data[:2] == PREFIX_COMPRESSED:
            try:
                text = zlib.decompress(data[2:]).decode("utf-8")
            except (zlib.error, UnicodeDecodeError) as e:
                raise PayloadDecodeError(f"corrupt compressed frame: {e}") from e
            return self._load_text(text)

        if data[:2] == PREFIX_MSGPACK:
            return _unpack(data[2:])

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            # Raw msgpack (no M: prefix)
            return _unpack(data)
        return self._load_text(text)

    # -- Payload extraction ------------------------------------------------------

    def _to_payload(self, parsed: Any) -> Payload:
        if not isinstance(parsed, dict):
            raise PayloadDecodeError(
                f"expected a JSON object, got {type(parsed).__name__}"
            )

        body = _unwrap_envelope(parsed)
        fields = {str(k).lower(): v for k, v in body.items()}

        generated_at = fields.get(KEY_GENERATED_AT.lower())
        # Missing or null timestamp is an error, not a zero-latency arrival
        if generated_at is None:
            raise PayloadDecodeError(f"missing {KEY_GENERATED_AT}")

        return Payload(
            generated_at=_as_int(KEY_GENERATED_AT, generated_at),
            client_id=_as_int(KEY_CLIENT_ID, fields.get(KEY_CLIENT_ID.lower(), 0)),
            message_id=_as_int(KEY_MESSAGE_ID, fields.get(KEY_MESSAGE_ID.lower(), 0)),
        )


def _strip_prefix(data: str) -> str:
    if data.startswith(PREFIX_SYSTEM + "{"):
        return data[len(PREFIX_SYSTEM):]
    if data.startswith((PREFIX_SNAPSHOT + "{", PREFIX_UPDATE + "{")):
        return data[1:]
    return data


def _unpack(data: bytes) -> Any:
    try:
        return msgpack.unpackb(data, raw=False)
    except (msgpack.UnpackException, ValueError, TypeError) as e:
        raise PayloadDecodeError(f"invalid msgpack frame: {e}") from e


def _unwrap_envelope(parsed: dict[str, Any]) -> dict[str, Any]:
    """Return the inner payload of a WSE event envelope, or ``parsed`` itself."""
    if not any(k in parsed for k in _ENVELOPE_TYPE_KEYS):
        return parsed
    for key in _ENVELOPE_PAYLOAD_KEYS:
        inner = parsed.get(key)
        if isinstance(inner, dict):
            return inner
    raise PayloadDecodeError("event envelope without an object payload")


def _as_int(name: str, value: Any) -> int:
    # bool is an int subclass but never a valid timestamp or id
    if isinstance(value, bool) or not isinstance(value, int):
        raise PayloadDecodeError(f"{name} must be an integer, got {value!r}")
    return value
