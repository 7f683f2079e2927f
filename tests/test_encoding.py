import struct

import pytest

from earnout_tee.attestation import Attestation
from earnout_tee.encoding import ATTESTATION_LENGTH, decode, encode
from earnout_tee.errors import EncodingError


def _attestation(**overrides):
    fields = dict(
        kpi_value=-123456,
        computation_hash=bytes(range(32)),
        timestamp=1_760_000_000_123,
        tee_public_key=bytes(range(32, 64)),
        signature=bytes(range(64, 128)),
    )
    fields.update(overrides)
    return Attestation(**fields)


def test_length_is_144():
    assert ATTESTATION_LENGTH == 144
    assert len(encode(_attestation())) == 144


def test_field_offsets():
    att = _attestation()
    data = encode(att)
    assert data[0:32] == att.computation_hash
    assert struct.unpack(">q", data[32:40])[0] == att.kpi_value
    assert struct.unpack(">Q", data[40:48])[0] == att.timestamp
    assert data[48:80] == att.tee_public_key
    assert data[80:144] == att.signature


@pytest.mark.parametrize("att", [
    _attestation(),
    _attestation(kpi_value=2 ** 63 - 1, timestamp=0),
    _attestation(kpi_value=-(2 ** 63), timestamp=2 ** 63 - 1),
])
def test_round_trip(att):
    assert decode(encode(att)) == att


def test_decode_accepts_byte_value_list():
    att = _attestation()
    assert decode(list(encode(att))) == att


@pytest.mark.parametrize("length", [0, 143, 145])
def test_decode_wrong_length(length):
    with pytest.raises(EncodingError) as exc:
        decode(b"\x00" * length)
    assert exc.value.http_status == 400


def test_decode_rejects_non_byte_values():
    with pytest.raises(EncodingError):
        decode([256] + [0] * 143)
    with pytest.raises(EncodingError):
        decode("00" * 144)


def test_decode_rejects_timestamp_beyond_int64():
    data = bytearray(encode(_attestation()))
    data[40:48] = struct.pack(">Q", 2 ** 63)
    with pytest.raises(EncodingError):
        decode(bytes(data))


@pytest.mark.parametrize("overrides", [
    {"kpi_value": 2 ** 63},
    {"timestamp": -1},
    {"computation_hash": b"\x00" * 31},
    {"tee_public_key": b"\x00" * 33},
    {"signature": b"\x00" * 63},
])
def test_encode_out_of_range_is_internal_error(overrides):
    with pytest.raises(EncodingError) as exc:
        encode(_attestation(**overrides))
    assert exc.value.http_status == 500
