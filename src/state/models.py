from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt


SNAPSHOT_VERSION = 1


class InstanceSnapshot(BaseModel):
    """
    Serialized payload of a guarded singleton instance.

    Fields
    - version: schema version; snapshots from other versions are rejected on decode.
    - kind: payload discriminator, always "guarded_instance" for now.
    - owner: name of the registry that owned the instance when the snapshot was taken.
    - value: the integer payload at snapshot time.

    Notes
    - The stored form is the deterministic JSON encoding of this model,
      optionally encrypted with Fernet (see `state.codec`).
    - A snapshot carries only data. Restoring it never creates a new
      instance; it resolves back to the owning registry's live one.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    version: StrictInt = Field(default=SNAPSHOT_VERSION, description="Snapshot schema version")
    kind: Literal["guarded_instance"] = "guarded_instance"
    owner: str = Field(min_length=1, description="Owning registry name")
    value: StrictInt = Field(description="Payload value at snapshot time")
