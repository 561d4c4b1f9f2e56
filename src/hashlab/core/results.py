"""Structured results returned by table operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Status(str, Enum):
    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    FOUND = "found"
    MISSING = "missing"
    REMOVED = "removed"
    FULL = "full"


class HighlightKind(str, Enum):
    PROBE = "probe"
    FOUND = "found"
    PLACED = "placed"


class ResizeReason(str, Enum):
    GROWTH = "growth"
    SHRINK = "shrink"
    COMPACTION = "compaction"
    SATURATION = "saturation"


class SlotState(str, Enum):
    EMPTY = "empty"
    TOMBSTONE = "tombstone"
    VALUE = "value"
    CHAIN = "chain"
    EMPTY_CHAIN = "empty_chain"


@dataclass(frozen=True)
class Highlight:
    index: int
    kind: HighlightKind

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "kind": self.kind.value}


@dataclass(frozen=True)
class ResizeEvent:
    reason: ResizeReason
    old_size: int
    new_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {"reason": self.reason.value, "old_size": self.old_size, "new_size": self.new_size}


@dataclass
class OperationResult:
    """Outcome of one insert/search/remove call.

    ``trace`` and ``highlights`` are recorded in the order the strategy made its
    decisions; renderers replay them as an execution log.
    """

    operation: str
    key: str
    status: Status
    trace: List[str] = field(default_factory=list)
    highlights: List[Highlight] = field(default_factory=list)
    resizes: List[ResizeEvent] = field(default_factory=list)
    size: int = 0
    position: Optional[int] = None

    @property
    def resized(self) -> bool:
        return bool(self.resizes)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "operation": self.operation,
            "key": self.key,
            "status": self.status.value,
            "trace": list(self.trace),
            "highlights": [h.to_dict() for h in self.highlights],
            "resizes": [r.to_dict() for r in self.resizes],
            "size": self.size,
        }
        if self.position is not None:
            payload["position"] = self.position
        return payload


@dataclass(frozen=True)
class SlotView:
    index: int
    state: SlotState
    keys: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.index, "state": self.state.value, "keys": list(self.keys)}


@dataclass(frozen=True)
class TableStats:
    kind: str
    size: int
    keys: int
    load_factor: float
    max_chain: Optional[int] = None
    average_chain: Optional[float] = None
    tombstones: Optional[int] = None
    occupancy: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "kind": self.kind,
            "size": self.size,
            "keys": self.keys,
            "load_factor": self.load_factor,
        }
        for name in ("max_chain", "average_chain", "tombstones", "occupancy"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


__all__ = [
    "Status",
    "HighlightKind",
    "ResizeReason",
    "SlotState",
    "Highlight",
    "ResizeEvent",
    "OperationResult",
    "SlotView",
    "TableStats",
]
