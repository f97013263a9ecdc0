from __future__ import annotations

import json
from uuid import uuid4

from cryptography.fernet import Fernet

from registry.singleton import guarded_registry
from state.codec import SnapshotCodec
from state.file_store import FileSnapshotStore


class _MemoryStore:
    def __init__(self) -> None:
        self.data = None
        self.saves = 0

    def save(self, data: bytes) -> None:
        self.saves += 1
        self.data = data

    def load(self):
        return self.data


def test_run_once_scenario(tmp_path):
    from demo import handler

    reg = guarded_registry(f"test-{uuid4().hex}")
    store = FileSnapshotStore(tmp_path / "singleton.bin")

    out = handler.run_once(registry=reg, store=store, codec=SnapshotCodec())

    assert out["ok"] is True
    assert out["same_instance"] is True
    assert out["live_value"] == 222
    assert out["restored_value"] == 222
    assert out["naive_value"] == 111
    assert out["naive_is_live"] is False
    assert out["constructions"] == 1
    assert out["printers"] == 2
    assert out["auxiliary_shared"] is True
    assert store.load() is not None


def test_run_once_twice_does_not_reconstruct():
    from demo import handler

    reg = guarded_registry(f"test-{uuid4().hex}")
    store = _MemoryStore()

    handler.run_once(registry=reg, store=store, codec=SnapshotCodec())
    out = handler.run_once(registry=reg, store=store, codec=SnapshotCodec())

    assert out["constructions"] == 1
    assert store.saves == 2


def test_run_once_with_encryption():
    from demo import handler

    reg = guarded_registry(f"test-{uuid4().hex}")
    store = _MemoryStore()
    codec = SnapshotCodec(fernet_key=Fernet.generate_key())

    out = handler.run_once(registry=reg, store=store, codec=codec)

    assert out["restored_value"] == 222
    assert b"guarded_instance" not in store.data


def test_main_prints_summary(monkeypatch, tmp_path, capsys):
    from demo import handler

    monkeypatch.setenv("SINGLETON_SNAPSHOT_PATH", str(tmp_path / "main.bin"))
    monkeypatch.delenv("SINGLETON_SNAPSHOT_BUCKET", raising=False)
    monkeypatch.delenv("SINGLETON_FERNET_KEY", raising=False)
    monkeypatch.delenv("SINGLETON_LOG_DIR", raising=False)

    handler.main()

    out = json.loads(capsys.readouterr().out)
    assert out["same_instance"] is True
    assert out["restored_value"] == 222
    assert (tmp_path / "main.bin").exists()
