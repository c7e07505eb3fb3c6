"""Stream record data models."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol


class StreamOperation(str, Enum):
    """Operation carried by a stream record.

    Consumers treat INSERT and UPDATE identically (replace the keyed entity);
    DELETE removes it.
    """

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class StreamEntity(Protocol):
    """Anything the stream server can publish."""

    @property
    def entity_type(self) -> str: ...

    @property
    def primary_key(self) -> str: ...

    def to_payload(self) -> dict[str, Any]: ...


@dataclass(frozen=True)
class StreamRecord:
    """One appended entry of the event log.

    The sequence is assigned by the log and is the only ordering authority.
    """

    entity_type: str
    primary_key: str
    operation: StreamOperation
    payload: dict[str, Any] | None
    sequence: int

    def to_wire(self) -> dict[str, Any]:
        return {
            "entityType": self.entity_type,
            "primaryKey": self.primary_key,
            "operation": self.operation.value,
            "payload": self.payload,
            "sequence": self.sequence,
        }

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> "StreamRecord":
        return cls(
            entity_type=data["entityType"],
            primary_key=data["primaryKey"],
            operation=StreamOperation(data["operation"]),
            payload=data.get("payload"),
            sequence=int(data["sequence"]),
        )


@dataclass(frozen=True)
class StreamSnapshot:
    """Live entities at a cutoff sequence.

    Every record has sequence <= cutoff and operation INSERT.
    """

    cutoff: int
    records: tuple[StreamRecord, ...]
