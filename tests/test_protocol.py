"""Tests for PayloadCodec frame decoding."""

import zlib

import msgpack
import orjson
import pytest

from pubsub_bench.errors import PayloadDecodeError
from pubsub_bench.protocol import PayloadCodec
from pubsub_bench.types import Payload

TS = 1_700_000_000_123_456_789
BODY = {"GeneratedAt": TS, "ClientId": 7, "MessageId": 42}
EXPECTED = Payload(generated_at=TS, client_id=7, message_id=42)


@pytest.fixture
def codec():
    return PayloadCodec()


class TestPlainFrames:
    def test_json_bytes(self, codec):
        assert codec.decode(orjson.dumps(BODY)) == EXPECTED

    def test_json_text(self, codec):
        assert codec.decode(orjson.dumps(BODY).decode()) == EXPECTED

    def test_bytearray(self, codec):
        assert codec.decode(bytearray(orjson.dumps(BODY))) == EXPECTED

    def test_keys_case_insensitive(self, codec):
        frame = orjson.dumps({"generatedat": TS, "CLIENTID": 7, "messageId": 42})
        assert codec.decode(frame) == EXPECTED

    def test_optional_ids_default_to_zero(self, codec):
        payload = codec.decode(orjson.dumps({"GeneratedAt": TS}))
        assert payload.client_id == 0
        assert payload.message_id == 0

    def test_extra_keys_ignored(self, codec):
        frame = orjson.dumps({**BODY, "Padding": "x" * 64})
        assert codec.decode(frame) == EXPECTED


class TestWrappedFrames:
    def test_envelope_short_keys(self, codec):
        frame = orjson.dumps({"t": "bench", "p": BODY, "id": "abc"})
        assert codec.decode(frame) == EXPECTED

    def test_envelope_long_keys(self, codec):
        frame = orjson.dumps({"type": "bench", "payload": BODY})
        assert codec.decode(frame) == EXPECTED

    @pytest.mark.parametrize("prefix", ["WSE", "S", "U"])
    def test_category_prefix(self, codec, prefix):
        frame = prefix + orjson.dumps({"t": "bench", "p": BODY}).decode()
        assert codec.decode(frame) == EXPECTED

    def test_compressed(self, codec):
        frame = b"C:" + zlib.compress(orjson.dumps(BODY))
        assert codec.decode(frame) == EXPECTED

    def test_compressed_with_prefix(self, codec):
        inner = b"U" + orjson.dumps({"t": "bench", "p": BODY})
        assert codec.decode(b"C:" + zlib.compress(inner)) == EXPECTED

    def test_msgpack_prefixed(self, codec):
        frame = b"M:" + msgpack.packb({"t": "bench", "p": BODY})
        assert codec.decode(frame) == EXPECTED

    def test_msgpack_raw(self, codec):
        assert codec.decode(msgpack.packb(BODY)) == EXPECTED


class TestRejected:
    def test_invalid_json(self, codec):
        with pytest.raises(PayloadDecodeError, match="invalid JSON"):
            codec.decode(b"{not json")

    def test_not_an_object(self, codec):
        with pytest.raises(PayloadDecodeError, match="expected a JSON object"):
            codec.decode(b"[1, 2, 3]")

    def test_missing_generated_at(self, codec):
        with pytest.raises(PayloadDecodeError, match="missing GeneratedAt"):
            codec.decode(orjson.dumps({"ClientId": 1}))

    def test_null_generated_at(self, codec):
        with pytest.raises(PayloadDecodeError, match="missing GeneratedAt"):
            codec.decode(orjson.dumps({"GeneratedAt": None, "ClientId": 1}))

    def test_float_timestamp(self, codec):
        with pytest.raises(PayloadDecodeError, match="must be an integer"):
            codec.decode(orjson.dumps({"GeneratedAt": 1.5}))

    def test_string_id(self, codec):
        with pytest.raises(PayloadDecodeError):
            codec.decode(orjson.dumps({"GeneratedAt": TS, "ClientId": "7"}))

    def test_bool_rejected(self, codec):
        with pytest.raises(PayloadDecodeError):
            codec.decode(orjson.dumps({"GeneratedAt": True}))

    def test_envelope_without_payload(self, codec):
        with pytest.raises(PayloadDecodeError, match="envelope"):
            codec.decode(orjson.dumps({"t": "bench", "p": "not an object"}))

    def test_corrupt_compressed(self, codec):
        with pytest.raises(PayloadDecodeError, match="corrupt compressed"):
            codec.decode(b"C:definitely not zlib")

    def test_corrupt_msgpack(self, codec):
        with pytest.raises(PayloadDecodeError, match="invalid msgpack"):
            codec.decode(b"M:\xc1")

    def test_oversized_frame(self):
        codec = PayloadCodec(max_size=16)
        with pytest.raises(PayloadDecodeError, match="max size"):
            codec.decode(orjson.dumps(BODY))
