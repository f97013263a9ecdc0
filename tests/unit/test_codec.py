from __future__ import annotations

import json

import pytest
from cryptography.fernet import Fernet

from state.codec import DecodeError, SnapshotCodec
from state.models import SNAPSHOT_VERSION, InstanceSnapshot


def test_encode_is_deterministic_json():
    codec = SnapshotCodec()
    data = codec.encode(InstanceSnapshot(owner="o", value=111))

    assert data == b'{"kind":"guarded_instance","owner":"o","value":111,"version":1}'
    assert codec.encode(InstanceSnapshot(owner="o", value=111)) == data


def test_decode_returns_equal_model():
    codec = SnapshotCodec()
    src = InstanceSnapshot(owner="o", value=-4)
    assert codec.decode(codec.encode(src)) == src


def test_decode_accepts_bytearray():
    codec = SnapshotCodec()
    data = bytearray(codec.encode(InstanceSnapshot(owner="o", value=1)))
    assert codec.decode(data).value == 1


def test_decode_rejects_non_bytes():
    with pytest.raises(DecodeError):
        SnapshotCodec().decode("not bytes")  # type: ignore[arg-type]


@pytest.mark.parametrize("version", [SNAPSHOT_VERSION + 1, True, 1.0, "1", None])
def test_decode_rejects_other_version(version):
    raw = {"version": version, "kind": "guarded_instance", "owner": "o", "value": 1}
    with pytest.raises(DecodeError, match="version"):
        SnapshotCodec().decode(json.dumps(raw).encode("utf-8"))


@pytest.mark.parametrize(
    "raw",
    [
        {"version": 1, "kind": "something_else", "owner": "o", "value": 1},
        {"version": 1, "kind": "guarded_instance", "owner": "o", "value": "1"},
        {"version": 1, "kind": "guarded_instance", "owner": "", "value": 1},
        {"version": 1, "kind": "guarded_instance", "owner": "o"},
        {"version": 1, "kind": "guarded_instance", "owner": "o", "value": 1, "extra": True},
    ],
)
def test_decode_rejects_schema_mismatch(raw):
    with pytest.raises(DecodeError):
        SnapshotCodec().decode(json.dumps(raw).encode("utf-8"))


def test_decode_error_is_a_value_error():
    with pytest.raises(ValueError):
        SnapshotCodec().decode(b"{")


def test_fernet_codec_encrypts():
    key = Fernet.generate_key()
    codec = SnapshotCodec(fernet_key=key.decode("ascii"))
    assert codec.encrypted

    data = codec.encode(InstanceSnapshot(owner="o", value=2))
    assert not data.startswith(b"{")
    assert codec.decode(data).value == 2


def test_fernet_codec_rejects_plaintext():
    codec = SnapshotCodec(fernet_key=Fernet.generate_key())
    plain = SnapshotCodec().encode(InstanceSnapshot(owner="o", value=2))
    with pytest.raises(DecodeError, match="Fernet"):
        codec.decode(plain)


def test_from_env(monkeypatch):
    monkeypatch.delenv("SINGLETON_FERNET_KEY", raising=False)
    assert not SnapshotCodec.from_env().encrypted

    monkeypatch.setenv("SINGLETON_FERNET_KEY", Fernet.generate_key().decode("ascii"))
    assert SnapshotCodec.from_env().encrypted
