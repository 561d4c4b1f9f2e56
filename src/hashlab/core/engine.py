"""Facade that owns one live strategy and rebuilds it on reconfiguration."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Iterator, List, Optional

from hashlab.contracts.error import BadInputError, PolicyError

from .primes import clamp_table_size, next_prime
from .results import OperationResult, SlotView, TableStats
from .strategies import (
    OpenAddressingStrategy,
    ProbeKind,
    ResizePolicy,
    SeparateChainingStrategy,
    TableStrategy,
)

if TYPE_CHECKING:  # pragma: no cover
    from hashlab.config import AppConfig


logger = logging.getLogger("hashlab")

DEFAULT_TABLE_SIZE = 11


class StrategyName(str, Enum):
    SEPARATE_CHAINING = "separate_chaining"
    LINEAR_PROBING = "linear_probing"
    QUADRATIC_PROBING = "quadratic_probing"
    DOUBLE_HASHING = "double_hashing"

    @property
    def label(self) -> str:
        return STRATEGY_LABELS[self]

    @property
    def requires_prime(self) -> bool:
        return self is not StrategyName.SEPARATE_CHAINING

    @classmethod
    def parse(cls, value: "str | StrategyName") -> "StrategyName":
        """Accept canonical names, camelCase names and the short aliases."""

        if isinstance(value, StrategyName):
            return value
        compact = "".join(ch for ch in str(value).strip().lower() if ch not in "-_ ")
        try:
            return _ALIASES[compact]
        except KeyError:
            choices = ", ".join(name.value for name in cls)
            raise BadInputError(f"Unknown strategy {value!r}", hint=f"choose one of: {choices}") from None


STRATEGY_LABELS = {
    StrategyName.SEPARATE_CHAINING: "Separate Chaining",
    StrategyName.LINEAR_PROBING: "Linear Probing",
    StrategyName.QUADRATIC_PROBING: "Quadratic Probing",
    StrategyName.DOUBLE_HASHING: "Double Hashing",
}

_ALIASES = {
    "separatechaining": StrategyName.SEPARATE_CHAINING,
    "chaining": StrategyName.SEPARATE_CHAINING,
    "linearprobing": StrategyName.LINEAR_PROBING,
    "linear": StrategyName.LINEAR_PROBING,
    "quadraticprobing": StrategyName.QUADRATIC_PROBING,
    "quadratic": StrategyName.QUADRATIC_PROBING,
    "doublehashing": StrategyName.DOUBLE_HASHING,
    "double": StrategyName.DOUBLE_HASHING,
}

_PROBE_KINDS = {
    StrategyName.LINEAR_PROBING: ProbeKind.LINEAR,
    StrategyName.QUADRATIC_PROBING: ProbeKind.QUADRATIC,
    StrategyName.DOUBLE_HASHING: ProbeKind.DOUBLE,
}


def normalise_size_for_strategy(size: object, name: StrategyName) -> int:
    clamped = clamp_table_size(size)
    if name.requires_prime:
        return next_prime(clamped)
    return clamped


def build_strategy(name: StrategyName, size: int, policy: Optional[ResizePolicy] = None) -> TableStrategy:
    if name is StrategyName.SEPARATE_CHAINING:
        return SeparateChainingStrategy(size, policy)
    return OpenAddressingStrategy(size, _PROBE_KINDS[name], policy)


class TableEngine:
    """Single entry point for table operations and reconfiguration.

    Switching strategy or size builds a fresh, empty strategy; stored keys are
    discarded rather than migrated.
    """

    def __init__(
        self,
        strategy: "str | StrategyName" = StrategyName.SEPARATE_CHAINING,
        initial_size: object = DEFAULT_TABLE_SIZE,
        policy: Optional[ResizePolicy] = None,
    ) -> None:
        self.policy = policy or ResizePolicy()
        self._name = StrategyName.parse(strategy)
        self._strategy = build_strategy(
            self._name, normalise_size_for_strategy(initial_size, self._name), self.policy
        )
        logger.info("Table engine ready: %s with %d slots", self.label, self.size)

    @classmethod
    def from_config(cls, cfg: "AppConfig") -> "TableEngine":
        return cls(cfg.table.strategy, cfg.table.initial_size, cfg.to_policy())

    @property
    def strategy_name(self) -> StrategyName:
        return self._name

    @property
    def label(self) -> str:
        return self._name.label

    @property
    def strategy(self) -> TableStrategy:
        return self._strategy

    @property
    def size(self) -> int:
        return self._strategy.size

    def __len__(self) -> int:
        return len(self._strategy)

    def _rebuild(self, size: int) -> None:
        self._strategy = build_strategy(self._name, size, self.policy)

    def switch_strategy(self, name: "str | StrategyName") -> str:
        self._name = StrategyName.parse(name)
        self._rebuild(normalise_size_for_strategy(self.size, self._name))
        message = f"Switched to {self.label}. Table refreshed at size {self.size}."
        logger.info("%s", message)
        return message

    def set_size(self, value: object) -> str:
        self._rebuild(normalise_size_for_strategy(value, self._name))
        message = f"Changed table size to {self.size}. Starting fresh with {self.label}."
        logger.info("%s", message)
        return message

    def reset(self) -> str:
        self._rebuild(self.size)
        message = f"Table reset. Ready with {self.label} ({self.size} slots)."
        logger.info("%s", message)
        return message

    def insert(self, raw_key: object) -> OperationResult:
        return self._strategy.insert(raw_key)

    def search(self, raw_key: object) -> OperationResult:
        return self._strategy.search(raw_key)

    def remove(self, raw_key: object) -> OperationResult:
        return self._strategy.remove(raw_key)

    def apply(self, operation: str, raw_key: object) -> OperationResult:
        op = operation.strip().lower()
        if op == "insert":
            return self.insert(raw_key)
        if op == "search":
            return self.search(raw_key)
        if op in {"remove", "delete", "del"}:
            return self.remove(raw_key)
        raise PolicyError(f"Unsupported operation {operation!r}", hint="use insert, search or remove")

    def snapshot(self) -> List[SlotView]:
        return self._strategy.snapshot()

    def stats(self) -> TableStats:
        return self._strategy.stats()

    def probe_sequence(self, raw_key: object) -> List[int]:
        return self._strategy.probe_sequence(raw_key)

    def keys(self) -> Iterator[str]:
        return self._strategy.keys()


__all__ = [
    "DEFAULT_TABLE_SIZE",
    "STRATEGY_LABELS",
    "StrategyName",
    "TableEngine",
    "build_strategy",
    "normalise_size_for_strategy",
]
