from __future__ import annotations

import threading
from enum import Enum

import pytest

from registry.multiton import Multiton
from registry.singleton import InitializationError


class Subsystem(Enum):
    PRIMARY = 1
    AUXILIARY = 2
    FALLBACK = 3


class _Printer:
    created = 0

    def __init__(self, subsystem: Subsystem) -> None:
        type(self).created += 1
        self.subsystem = subsystem


def test_one_instance_per_key():
    m: Multiton[Subsystem, object] = Multiton(lambda key: object(), keys=Subsystem)

    main = m.get(Subsystem.PRIMARY)
    aux = m.get(Subsystem.AUXILIARY)
    aux2 = m.get(Subsystem.AUXILIARY)

    assert aux is aux2
    assert main is not aux
    assert m.instance_count == 2
    assert Subsystem.FALLBACK not in m
    assert set(m.created_keys()) == {Subsystem.PRIMARY, Subsystem.AUXILIARY}


def test_unknown_key_rejected():
    m = Multiton(lambda key: object(), keys=Subsystem)
    with pytest.raises(KeyError):
        m.get("PRIMARY")
    assert m.instance_count == 0


def test_unrestricted_keys():
    m = Multiton(lambda key: [key])
    assert m.get("x") == ["x"]
    assert m.get("x") is m.get("x")


def test_concurrent_access_creates_one_per_key():
    _Printer.created = 0
    m = Multiton(_Printer, keys=Subsystem)
    n = 12
    barrier = threading.Barrier(n)
    seen = []
    seen_lock = threading.Lock()

    def worker(i: int) -> None:
        key = Subsystem.PRIMARY if i % 2 else Subsystem.AUXILIARY
        barrier.wait()
        p = m.get(key)
        with seen_lock:
            seen.append(p)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(n)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert _Printer.created == 2
    assert len({id(p) for p in seen}) == 2


def test_failed_creation_is_not_cached():
    calls = {"n": 0}

    def factory(key):
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("unavailable")
        return object()

    m = Multiton(factory)
    with pytest.raises(InitializationError):
        m.get("k")
    assert "k" not in m

    assert m.get("k") is m.get("k")
    assert calls["n"] == 2


def test_initialization_error_from_factory_passes_through():
    original = InitializationError("printer offline", registry_name="spooler")

    def factory(key):
        raise original

    m = Multiton(factory, name="printers")
    with pytest.raises(InitializationError) as exc_info:
        m.get("k")
    assert exc_info.value is original
    assert exc_info.value.__cause__ is None


def test_wrapped_failure_names_the_multiton():
    def factory(key):
        raise OSError("no device")

    m = Multiton(factory, name="printers")
    with pytest.raises(InitializationError) as exc_info:
        m.get("k")
    assert exc_info.value.registry_name == "printers"
    assert isinstance(exc_info.value.__cause__, OSError)
