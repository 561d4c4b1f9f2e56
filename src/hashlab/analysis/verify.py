"""Invariant checks for a live table."""

from __future__ import annotations

from collections import Counter
from typing import List, Tuple

from hashlab.core.keys import primary_index
from hashlab.core.primes import MAX_TABLE_SIZE, MIN_TABLE_SIZE, is_prime
from hashlab.core.results import SlotState, Status
from hashlab.core.strategies import OpenAddressingStrategy, TableStrategy


def verify_table(strategy: TableStrategy, verbose: bool = False) -> Tuple[bool, List[str]]:
    """Check counts, uniqueness, sizing rules and findability of every key.

    Only non-mutating operations are used, so the table is left untouched.
    """

    msgs: List[str] = []
    snapshot = strategy.snapshot()
    stored = [key for view in snapshot for key in view.keys]

    if len(snapshot) != strategy.size:
        msgs.append(f"Slot count {len(snapshot)} != size={strategy.size}")
    if not MIN_TABLE_SIZE <= strategy.size <= MAX_TABLE_SIZE:
        msgs.append(f"Size {strategy.size} outside [{MIN_TABLE_SIZE}, {MAX_TABLE_SIZE}]")
    if len(stored) != strategy.count:
        msgs.append(f"Stored keys={len(stored)} != count={strategy.count}")
    duplicates = sorted(key for key, seen in Counter(stored).items() if seen > 1)
    if duplicates:
        msgs.append(f"Duplicated keys: {', '.join(duplicates)}")

    if isinstance(strategy, OpenAddressingStrategy):
        if not is_prime(strategy.size):
            msgs.append(f"Open-addressing size {strategy.size} is not prime")
        tombstones = sum(1 for view in snapshot if view.state is SlotState.TOMBSTONE)
        if tombstones != strategy.tombstones:
            msgs.append(f"Tombstone slots={tombstones} != tombstones={strategy.tombstones}")
        if strategy.count + strategy.tombstones > strategy.size:
            msgs.append(
                f"Bound violated: count+tombstones={strategy.count + strategy.tombstones} > size={strategy.size}"
            )
    else:
        for view in snapshot:
            for key in view.keys:
                if primary_index(key, strategy.size) != view.index:
                    msgs.append(f"Key {key!r} stored in bucket {view.index}, hashes elsewhere")

    lost = [key for key in stored if strategy.search(key).status is not Status.FOUND]
    if lost:
        msgs.append(f"Unreachable keys: {', '.join(lost)}")

    ok = not msgs
    if verbose:
        stats = strategy.stats()
        msgs.append(
            f"Kind={stats.kind}, Size={stats.size}, Keys={stats.keys}, LF={stats.load_factor:.3f}"
            + (f", Tombstones={stats.tombstones}" if stats.tombstones is not None else "")
        )
    return ok, msgs


__all__ = ["verify_table"]
