from .engine import (
    DEFAULT_TABLE_SIZE,
    STRATEGY_LABELS,
    StrategyName,
    TableEngine,
    build_strategy,
    normalise_size_for_strategy,
)
from .keys import fnv1a_32, normalize_key, primary_index, secondary_step
from .primes import MAX_TABLE_SIZE, MIN_TABLE_SIZE, clamp_table_size, is_prime, next_prime, previous_prime
from .results import (
    Highlight,
    HighlightKind,
    OperationResult,
    ResizeEvent,
    ResizeReason,
    SlotState,
    SlotView,
    Status,
    TableStats,
)
from .strategies import (
    OpenAddressingStrategy,
    ProbeKind,
    ResizePolicy,
    SeparateChainingStrategy,
    Slot,
    SlotTag,
    TableStrategy,
)

__all__ = [
    "DEFAULT_TABLE_SIZE",
    "MAX_TABLE_SIZE",
    "MIN_TABLE_SIZE",
    "STRATEGY_LABELS",
    "Highlight",
    "HighlightKind",
    "OpenAddressingStrategy",
    "OperationResult",
    "ProbeKind",
    "ResizeEvent",
    "ResizePolicy",
    "ResizeReason",
    "SeparateChainingStrategy",
    "Slot",
    "SlotState",
    "SlotTag",
    "SlotView",
    "Status",
    "StrategyName",
    "TableEngine",
    "TableStats",
    "TableStrategy",
    "build_strategy",
    "clamp_table_size",
    "fnv1a_32",
    "is_prime",
    "next_prime",
    "normalise_size_for_strategy",
    "normalize_key",
    "previous_prime",
    "primary_index",
    "secondary_step",
]
