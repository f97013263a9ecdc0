from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from common.config import Settings
from common.logger_config import setup_logger
from registry.multiton import Multiton
from registry.singleton import GuardedInstance, SingletonRegistry, default_registry
from registry.snapshot import naive_restore, restore, snapshot
from state.codec import SnapshotCodec
from state.file_store import FileSnapshotStore


logger = logging.getLogger(__name__)


class Subsystem(str, Enum):
    PRIMARY = "primary"
    AUXILIARY = "auxiliary"
    FALLBACK = "fallback"


@dataclass
class Printer:
    subsystem: Subsystem


def _build_store(settings: Settings) -> Any:
    if settings.uses_s3:
        from state.s3_store import S3SnapshotStore

        return S3SnapshotStore(bucket=settings.require_bucket(), key=settings.snapshot_key)
    return FileSnapshotStore(settings.snapshot_path)


def run_once(
    *,
    registry: Optional[SingletonRegistry[GuardedInstance]] = None,
    store: Optional[Any] = None,
    codec: Optional[SnapshotCodec] = None,
) -> Dict[str, Any]:
    registry = registry or default_registry()
    store = store or FileSnapshotStore()
    codec = codec or SnapshotCodec.from_env()

    live = registry.get_instance()
    live.set(111)
    store.save(snapshot(live, codec=codec))
    live.set(222)

    data = store.load()
    if data is None:
        raise RuntimeError("Snapshot was not persisted")

    restored = restore(data, registry=registry, codec=codec)
    naive = naive_restore(data, codec=codec)
    logger.info(
        "Restored value %s (live), naive copy holds %s", restored.get(), naive.get()
    )

    printers: Multiton[Subsystem, Printer] = Multiton(Printer, name="printers", keys=Subsystem)
    printers.get(Subsystem.PRIMARY)
    aux = printers.get(Subsystem.AUXILIARY)
    aux2 = printers.get(Subsystem.AUXILIARY)

    return {
        "ok": True,
        "same_instance": restored is registry.get_instance(),
        "live_value": live.get(),
        "restored_value": restored.get(),
        "naive_value": naive.get(),
        "naive_is_live": naive is live,
        "constructions": registry.construction_count,
        "printers": printers.instance_count,
        "auxiliary_shared": aux is aux2,
    }


def main() -> None:
    settings = Settings.from_env()
    setup_logger(settings)
    result = run_once(
        store=_build_store(settings),
        codec=SnapshotCodec(fernet_key=settings.fernet_key),
    )
    print(json.dumps(result, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
