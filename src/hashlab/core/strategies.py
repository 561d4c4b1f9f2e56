from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, cast

from hashlab.contracts.error import TableSaturatedError

from .keys import normalize_key, primary_index, secondary_step
from .primes import MIN_TABLE_SIZE, clamp_table_size, next_prime, previous_prime
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

logger = logging.getLogger("hashlab")


@dataclass
class ResizePolicy:
    auto_resize: bool = True
    chain_max_load: float = 1.15
    chain_max_length: int = 4
    chain_growth: float = 1.6
    chain_min_load: float = 0.45
    chain_shrink: float = 1.5
    open_pre_max_load: float = 0.68
    open_pre_growth: float = 1.6
    open_pre_compact_occupancy: float = 0.85
    open_pre_compact_tombstones: float = 0.15
    open_max_load: float = 0.72
    open_growth: float = 1.35
    open_compact_occupancy: float = 0.88
    open_compact_tombstones: float = 0.18
    open_min_load: float = 0.3
    open_shrink: float = 1.6
    open_purge_tombstones: float = 0.25


@dataclass
class _Recorder:
    trace: List[str] = field(default_factory=list)
    highlights: List[Highlight] = field(default_factory=list)
    resizes: List[ResizeEvent] = field(default_factory=list)

    def note(self, line: str) -> None:
        self.trace.append(line)

    def mark(self, index: int, kind: HighlightKind) -> None:
        self.highlights.append(Highlight(index, kind))

    def resized(self, event: ResizeEvent, message: str) -> None:
        self.resizes.append(event)
        self.trace.append(message)


class _BaseStrategy:
    """Shared bookkeeping for every collision-resolution strategy."""

    kind = "base"
    requires_prime = False

    def __init__(self, size: int, policy: Optional[ResizePolicy] = None) -> None:
        self.size = size
        self.count = 0
        self.policy = policy or ResizePolicy()

    def __len__(self) -> int:
        return self.count

    def load_factor(self) -> float:
        return self.count / self.size if self.size else 0.0

    def keys(self) -> Iterator[str]:
        raise NotImplementedError

    def _rehash(self, new_size: int, reason: ResizeReason, message: str, rec: _Recorder) -> None:
        raise NotImplementedError

    def resize(self, new_size: object) -> List[str]:
        """Rebuild the table at ``new_size`` and return the trace lines.

        The size is clamped, and rounded up to a prime when the strategy needs one.
        """

        target = next_prime(new_size) if self.requires_prime else clamp_table_size(new_size)
        if target > self.size:
            reason = ResizeReason.GROWTH
        elif target < self.size:
            reason = ResizeReason.SHRINK
        else:
            reason = ResizeReason.COMPACTION
        rec = _Recorder()
        self._rehash(target, reason, f"Rehashed table to size {target}.", rec)
        return rec.trace

    def _finish(
        self,
        operation: str,
        key: str,
        status: Status,
        rec: _Recorder,
        position: Optional[int] = None,
    ) -> OperationResult:
        return OperationResult(
            operation=operation,
            key=key,
            status=status,
            trace=rec.trace,
            highlights=rec.highlights,
            resizes=rec.resizes,
            size=self.size,
            position=position,
        )


class SeparateChainingStrategy(_BaseStrategy):
    """Each slot holds an insertion-ordered chain of keys."""

    kind = "chaining"

    def __init__(self, size: int, policy: Optional[ResizePolicy] = None) -> None:
        super().__init__(size, policy)
        self.clear()

    def clear(self) -> None:
        self._chains: List[List[str]] = [[] for _ in range(self.size)]
        self.count = 0

    def keys(self) -> Iterator[str]:
        for chain in self._chains:
            yield from chain

    def max_chain_len(self) -> int:
        return max((len(chain) for chain in self._chains), default=0)

    def probe_sequence(self, raw_key: object) -> List[int]:
        return [primary_index(normalize_key(raw_key), self.size)]

    def _rehash(self, new_size: int, reason: ResizeReason, message: str, rec: _Recorder) -> None:
        entries = list(self.keys())
        chains: List[List[str]] = [[] for _ in range(new_size)]
        for key in entries:
            chains[primary_index(key, new_size)].append(key)
        old_size = self.size
        self.size = new_size
        self._chains = chains
        self.count = len(entries)
        rec.resized(ResizeEvent(reason, old_size, new_size), message)
        logger.info("Chaining table %s: %d -> %d slots (%d keys)", reason.value, old_size, new_size, self.count)

    def _maintain_after_insert(self, rec: _Recorder) -> None:
        policy = self.policy
        if not policy.auto_resize:
            return
        load = self.load_factor()
        longest = self.max_chain_len()
        if load > policy.chain_max_load or longest > policy.chain_max_length:
            target = next_prime(math.ceil(self.size * policy.chain_growth))
            if target != self.size:
                self._rehash(
                    target,
                    ResizeReason.GROWTH,
                    f"Load factor {load:.2f} or chain length {longest} triggered growth to {target}.",
                    rec,
                )

    def _maintain_after_removal(self, rec: _Recorder) -> None:
        policy = self.policy
        if not policy.auto_resize:
            return
        load = self.load_factor()
        if self.size > MIN_TABLE_SIZE and load < policy.chain_min_load:
            target = previous_prime(max(MIN_TABLE_SIZE, math.floor(self.size / policy.chain_shrink)))
            if target < self.size:
                self._rehash(
                    target,
                    ResizeReason.SHRINK,
                    f"Load factor dropped to {load:.2f}. Shrunk table to {target}.",
                    rec,
                )

    def insert(self, raw_key: object) -> OperationResult:
        key = normalize_key(raw_key)
        rec = _Recorder()
        index = primary_index(key, self.size)
        chain = self._chains[index]
        rec.note(f'hash("{key}") = {index}')
        rec.mark(index, HighlightKind.PROBE)
        if key in chain:
            rec.note(f'Key "{key}" already exists in bucket {index}.')
            rec.mark(index, HighlightKind.FOUND)
            return self._finish("insert", key, Status.DUPLICATE, rec, position=chain.index(key))
        chain.append(key)
        self.count += 1
        rec.note(f'Inserted "{key}" into bucket {index}. Bucket length is now {len(chain)}.')
        rec.mark(index, HighlightKind.PLACED)
        self._maintain_after_insert(rec)
        return self._finish("insert", key, Status.INSERTED, rec)

    def search(self, raw_key: object) -> OperationResult:
        key = normalize_key(raw_key)
        rec = _Recorder()
        index = primary_index(key, self.size)
        chain = self._chains[index]
        rec.note(f'hash("{key}") = {index}')
        rec.mark(index, HighlightKind.PROBE)
        if key not in chain:
            rec.note(f'Bucket {index} scanned. "{key}" is not present.')
            return self._finish("search", key, Status.MISSING, rec)
        position = chain.index(key)
        rec.note(f'Found "{key}" at bucket {index}, chain position {position}.')
        rec.mark(index, HighlightKind.FOUND)
        return self._finish("search", key, Status.FOUND, rec, position=position)

    def remove(self, raw_key: object) -> OperationResult:
        key = normalize_key(raw_key)
        rec = _Recorder()
        index = primary_index(key, self.size)
        chain = self._chains[index]
        rec.note(f'hash("{key}") = {index}')
        rec.mark(index, HighlightKind.PROBE)
        if key not in chain:
            rec.note(f'Nothing to delete. "{key}" does not live in bucket {index}.')
            return self._finish("remove", key, Status.MISSING, rec)
        chain.remove(key)
        self.count -= 1
        rec.note(f'Deleted "{key}" from bucket {index}.')
        rec.mark(index, HighlightKind.PLACED)
        self._maintain_after_removal(rec)
        return self._finish("remove", key, Status.REMOVED, rec)

    def snapshot(self) -> List[SlotView]:
        return [
            SlotView(index, SlotState.CHAIN if chain else SlotState.EMPTY_CHAIN, tuple(chain))
            for index, chain in enumerate(self._chains)
        ]

    def stats(self) -> TableStats:
        non_empty = [len(chain) for chain in self._chains if chain]
        average = sum(non_empty) / len(non_empty) if non_empty else 0.0
        return TableStats(
            kind=self.kind,
            size=self.size,
            keys=self.count,
            load_factor=self.load_factor(),
            max_chain=self.max_chain_len(),
            average_chain=average,
        )


class SlotTag(Enum):
    EMPTY = "empty"
    TOMBSTONE = "tombstone"
    OCCUPIED = "occupied"


@dataclass(frozen=True)
class Slot:
    """One open-addressing cell; ``key`` is set only when ``tag`` is OCCUPIED."""

    tag: SlotTag
    key: Optional[str] = None

    @classmethod
    def occupied(cls, key: str) -> "Slot":
        return cls(SlotTag.OCCUPIED, key)

    def holds(self, key: str) -> bool:
        return self.tag is SlotTag.OCCUPIED and self.key == key


EMPTY_SLOT = Slot(SlotTag.EMPTY)
TOMBSTONE_SLOT = Slot(SlotTag.TOMBSTONE)


class ProbeKind(str, Enum):
    LINEAR = "linear"
    QUADRATIC = "quadratic"
    DOUBLE = "double"


@dataclass(frozen=True)
class _ProbeContext:
    base: int
    step: int = 1


class OpenAddressingStrategy(_BaseStrategy):
    """Open addressing with tombstones; the probe order is chosen by ``probe``."""

    kind = "open"
    requires_prime = True

    def __init__(
        self,
        size: int,
        probe: ProbeKind = ProbeKind.LINEAR,
        policy: Optional[ResizePolicy] = None,
    ) -> None:
        super().__init__(size, policy)
        self.probe = ProbeKind(probe)
        self.clear()

    def clear(self) -> None:
        self._slots: List[Slot] = [EMPTY_SLOT] * self.size
        self.count = 0
        self.tombstones = 0

    def occupancy(self) -> float:
        return (self.count + self.tombstones) / self.size if self.size else 0.0

    def keys(self) -> Iterator[str]:
        for slot in self._slots:
            if slot.tag is SlotTag.OCCUPIED and slot.key is not None:
                yield slot.key

    def _context(self, key: str, size: int) -> _ProbeContext:
        base = primary_index(key, size)
        if self.probe is ProbeKind.DOUBLE:
            return _ProbeContext(base, secondary_step(key, size))
        return _ProbeContext(base)

    def _probe_index(self, ctx: _ProbeContext, attempt: int, size: int) -> int:
        if self.probe is ProbeKind.QUADRATIC:
            return (ctx.base + attempt * attempt) % size
        if self.probe is ProbeKind.DOUBLE:
            return (ctx.base + attempt * ctx.step) % size
        return (ctx.base + attempt) % size

    def _probe_note(self, ctx: _ProbeContext, attempt: int, index: int) -> str:
        if self.probe is ProbeKind.QUADRATIC and attempt > 0:
            return f"Probe {attempt + 1}: +{attempt * attempt} => slot {index}"
        if self.probe is ProbeKind.DOUBLE:
            return f"Probe {attempt + 1}: {ctx.base} + {attempt}*{ctx.step} => slot {index}"
        return f"Probe {attempt + 1}: slot {index}"

    def _start(self, key: str, rec: _Recorder) -> _ProbeContext:
        ctx = self._context(key, self.size)
        rec.note(f'hash("{key}") = {ctx.base}')
        if self.probe is ProbeKind.DOUBLE:
            rec.note(f'step("{key}") = {ctx.step}')
        return ctx

    def probe_sequence(self, raw_key: object) -> List[int]:
        ctx = self._context(normalize_key(raw_key), self.size)
        return [self._probe_index(ctx, attempt, self.size) for attempt in range(self.size)]

    def _place_all(self, entries: List[str], size: int) -> Optional[List[Slot]]:
        """Lay ``entries`` out in a fresh table, or return None if one cannot be placed."""

        slots: List[Slot] = [EMPTY_SLOT] * size
        for key in entries:
            ctx = self._context(key, size)
            for attempt in range(size):
                index = self._probe_index(ctx, attempt, size)
                if slots[index].tag is SlotTag.EMPTY:
                    slots[index] = Slot.occupied(key)
                    break
            else:
                return None
        return slots

    def _rehash(self, new_size: int, reason: ResizeReason, message: str, rec: _Recorder) -> None:
        entries = list(self.keys())
        if len(entries) > new_size:
            raise TableSaturatedError(
                f"Cannot rehash {len(entries)} keys into {new_size} slots",
                hint="the target size must hold every live key",
            )
        size = new_size
        slots = self._place_all(entries, size)
        # Quadratic probing reaches only (size + 1) / 2 distinct slots per key.
        while slots is None:
            larger = next_prime(size + 1)
            if larger == size:
                raise TableSaturatedError(
                    f"Rehash to size {new_size} could not place {len(entries)} keys",
                    hint=f"{self.probe.value} probing at the maximum table size",
                )
            logger.warning(
                "%s probing could not place %d keys in %d slots; trying %d",
                self.probe.value,
                len(entries),
                size,
                larger,
            )
            size = larger
            slots = self._place_all(entries, size)
        old_size = self.size
        self.size = size
        self._slots = slots
        self.count = len(entries)
        self.tombstones = 0
        rec.resized(ResizeEvent(reason, old_size, size), message)
        if size != new_size:
            rec.note(f"{len(entries)} keys did not fit {new_size} slots in probe order; used {size} slots.")
        logger.info(
            "Open-addressing table (%s) %s: %d -> %d slots (%d keys)",
            self.probe.value,
            reason.value,
            old_size,
            size,
            self.count,
        )

    def _ensure_capacity_before_insert(self, rec: _Recorder) -> None:
        policy = self.policy
        if not policy.auto_resize:
            return
        load = self.load_factor()
        if load > policy.open_pre_max_load:
            target = next_prime(math.ceil(self.size * policy.open_pre_growth))
            if target != self.size:
                self._rehash(
                    target,
                    ResizeReason.GROWTH,
                    f"Pre-emptive growth: load factor {load:.2f} exceeded "
                    f"{policy.open_pre_max_load:.2f}. Resized to {target}.",
                    rec,
                )
        elif (
            self.occupancy() > policy.open_pre_compact_occupancy
            and self.tombstones > self.size * policy.open_pre_compact_tombstones
        ):
            self._rehash(
                self.size,
                ResizeReason.COMPACTION,
                "Tombstones building up. Rehashed to tighten probe chains.",
                rec,
            )

    def _maintain_after_insert(self, rec: _Recorder) -> None:
        policy = self.policy
        if not policy.auto_resize:
            return
        load = self.load_factor()
        if load > policy.open_max_load:
            target = next_prime(math.ceil(self.size * policy.open_growth))
            if target != self.size:
                self._rehash(
                    target,
                    ResizeReason.GROWTH,
                    f"Post-insert load factor {load:.2f} triggered growth to {target}.",
                    rec,
                )
                return
        if (
            self.occupancy() > policy.open_compact_occupancy
            and self.tombstones > self.size * policy.open_compact_tombstones
        ):
            self._rehash(
                self.size,
                ResizeReason.COMPACTION,
                "High tombstone ratio detected. Compacted the table to shorten probes.",
                rec,
            )

    def _maintain_after_removal(self, rec: _Recorder) -> None:
        policy = self.policy
        if not policy.auto_resize or self.size <= MIN_TABLE_SIZE:
            return
        load = self.load_factor()
        if self.count > 0 and load < policy.open_min_load:
            target = previous_prime(max(MIN_TABLE_SIZE, math.floor(self.size / policy.open_shrink)))
            if target < self.size:
                self._rehash(
                    target,
                    ResizeReason.SHRINK,
                    f"Load factor dropped to {load:.2f}. Shrunk table to {target}.",
                    rec,
                )
                return
        if self.tombstones > self.size * policy.open_purge_tombstones and self.tombstones > self.count:
            self._rehash(
                self.size,
                ResizeReason.COMPACTION,
                "Many tombstones present. Rehashed to clean them up.",
                rec,
            )

    def _place(self, key: str, index: int) -> None:
        if self._slots[index].tag is SlotTag.TOMBSTONE:
            self.tombstones -= 1
        self._slots[index] = Slot.occupied(key)
        self.count += 1

    def insert(self, raw_key: object) -> OperationResult:
        key = normalize_key(raw_key)
        rec = _Recorder()
        self._ensure_capacity_before_insert(rec)
        return self._insert_probing(key, rec, allow_growth=True)

    def _insert_probing(self, key: str, rec: _Recorder, allow_growth: bool) -> OperationResult:
        ctx = self._start(key, rec)
        first_tombstone: Optional[int] = None
        for attempt in range(self.size):
            index = self._probe_index(ctx, attempt, self.size)
            rec.note(self._probe_note(ctx, attempt, index))
            rec.mark(index, HighlightKind.PROBE)
            slot = self._slots[index]
            if slot.holds(key):
                rec.note(f'Key "{key}" already stored at slot {index}.')
                rec.mark(index, HighlightKind.FOUND)
                return self._finish("insert", key, Status.DUPLICATE, rec, position=index)
            if slot.tag is SlotTag.EMPTY:
                target = first_tombstone if first_tombstone is not None else index
                reused = self._slots[target].tag is SlotTag.TOMBSTONE
                self._place(key, target)
                if reused:
                    rec.note(f'Reused tombstone at slot {target} for "{key}".')
                else:
                    rec.note(f'Placed "{key}" at slot {target}.')
                rec.mark(target, HighlightKind.PLACED)
                self._maintain_after_insert(rec)
                return self._finish("insert", key, Status.INSERTED, rec)
            if slot.tag is SlotTag.TOMBSTONE and first_tombstone is None:
                first_tombstone = index

        if first_tombstone is not None:
            self._place(key, first_tombstone)
            rec.note(f'Probe cycle wrapped; inserted "{key}" into tombstone {first_tombstone}.')
            rec.mark(first_tombstone, HighlightKind.PLACED)
            self._maintain_after_insert(rec)
            return self._finish("insert", key, Status.INSERTED, rec)

        if not self.policy.auto_resize:
            rec.note("Table is full. Could not insert the key.")
            logger.warning("Fixed-size %s table of %d slots rejected %r", self.probe.value, self.size, key)
            return self._finish("insert", key, Status.FULL, rec)
        if not allow_growth:
            raise TableSaturatedError(
                f"No slot for {key!r} after growing to {self.size} slots",
                hint="resize thresholds should keep the table below saturation",
            )
        target = next_prime(math.ceil(self.size * self.policy.open_pre_growth))
        if target == self.size:
            rec.note(f"Table is full at the maximum size {self.size}. Could not insert the key.")
            logger.warning("Table at maximum size %d rejected %r", self.size, key)
            return self._finish("insert", key, Status.FULL, rec)
        logger.warning("Probe sequence for %r saturated %d slots; growing to %d", key, self.size, target)
        self._rehash(
            target,
            ResizeReason.SATURATION,
            "Table was saturated. Rehashed to a larger prime size to continue probing.",
            rec,
        )
        return self._insert_probing(key, rec, allow_growth=False)

    def _locate(self, key: str, rec: _Recorder) -> Optional[int]:
        """Walk the probe sequence; stop at a match or the first empty slot."""

        ctx = self._start(key, rec)
        for attempt in range(self.size):
            index = self._probe_index(ctx, attempt, self.size)
            rec.note(self._probe_note(ctx, attempt, index))
            rec.mark(index, HighlightKind.PROBE)
            slot = self._slots[index]
            if slot.holds(key):
                return index
            if slot.tag is SlotTag.EMPTY:
                return -1
        return None

    def search(self, raw_key: object) -> OperationResult:
        key = normalize_key(raw_key)
        rec = _Recorder()
        index = self._locate(key, rec)
        if index is None:
            rec.note("Probe cycle completed with no match.")
            return self._finish("search", key, Status.MISSING, rec)
        if index < 0:
            rec.note("Encountered an empty slot. Key not present.")
            return self._finish("search", key, Status.MISSING, rec)
        rec.note(f'Success! "{key}" found at slot {index}.')
        rec.mark(index, HighlightKind.FOUND)
        return self._finish("search", key, Status.FOUND, rec, position=index)

    def remove(self, raw_key: object) -> OperationResult:
        key = normalize_key(raw_key)
        rec = _Recorder()
        index = self._locate(key, rec)
        if index is None:
            rec.note("Probe cycle completed with no deletion.")
            return self._finish("remove", key, Status.MISSING, rec)
        if index < 0:
            rec.note("Encountered an empty slot before finding the key. Nothing removed.")
            return self._finish("remove", key, Status.MISSING, rec)
        self._slots[index] = TOMBSTONE_SLOT
        self.count -= 1
        self.tombstones += 1
        rec.note(f"Marked slot {index} as tombstone.")
        rec.mark(index, HighlightKind.PLACED)
        self._maintain_after_removal(rec)
        return self._finish("remove", key, Status.REMOVED, rec)

    def snapshot(self) -> List[SlotView]:
        views: List[SlotView] = []
        for index, slot in enumerate(self._slots):
            if slot.tag is SlotTag.EMPTY:
                views.append(SlotView(index, SlotState.EMPTY))
            elif slot.tag is SlotTag.TOMBSTONE:
                views.append(SlotView(index, SlotState.TOMBSTONE))
            else:
                views.append(SlotView(index, SlotState.VALUE, (cast(str, slot.key),)))
        return views

    def stats(self) -> TableStats:
        return TableStats(
            kind=self.kind,
            size=self.size,
            keys=self.count,
            load_factor=self.load_factor(),
            tombstones=self.tombstones,
            occupancy=self.occupancy(),
        )


TableStrategy = SeparateChainingStrategy | OpenAddressingStrategy


__all__ = [
    "ResizePolicy",
    "SeparateChainingStrategy",
    "OpenAddressingStrategy",
    "ProbeKind",
    "Slot",
    "SlotTag",
    "EMPTY_SLOT",
    "TOMBSTONE_SLOT",
    "TableStrategy",
]
