from __future__ import annotations

from typing import Tuple

import pytest
from hypothesis import given, settings, strategies as st

from hashlab.analysis import verify_table
from hashlab.core import (
    MAX_TABLE_SIZE,
    MIN_TABLE_SIZE,
    StrategyName,
    Status,
    TableEngine,
    is_prime,
    normalize_key,
)


def _key_strategy() -> st.SearchStrategy[str]:
    numeric = st.integers(-30, 30).map(str)
    padded = st.integers(0, 30).map(lambda n: f"00{n}")
    words = st.sampled_from(["apple", "pear", " kiwi ", "fig", "lime", "plum", "date"])
    return st.one_of(numeric, padded, words)


def _operation_strategy() -> st.SearchStrategy[Tuple[str, str]]:
    return st.tuples(st.sampled_from(["insert", "insert", "search", "remove"]), _key_strategy())


@pytest.mark.parametrize("name", list(StrategyName))
@settings(max_examples=60, deadline=None)
@given(
    initial=st.integers(MIN_TABLE_SIZE, 40),
    operations=st.lists(_operation_strategy(), min_size=1, max_size=80),
)
def test_engine_matches_python_set(name: StrategyName, initial: int, operations: list[Tuple[str, str]]) -> None:
    engine = TableEngine(name, initial)
    model: set[str] = set()

    for op, raw in operations:
        key = normalize_key(raw)
        result = engine.apply(op, raw)
        assert result.key == key
        assert result.trace, "every operation records a trace"
        if op == "insert":
            expected = Status.DUPLICATE if key in model else Status.INSERTED
            assert result.status is expected
            model.add(key)
        elif op == "remove":
            expected = Status.REMOVED if key in model else Status.MISSING
            assert result.status is expected
            model.discard(key)
        else:
            assert result.status is (Status.FOUND if key in model else Status.MISSING)
            assert result.resizes == []

        assert result.size == engine.size
        assert MIN_TABLE_SIZE <= engine.size <= MAX_TABLE_SIZE
        if name.requires_prime:
            assert is_prime(engine.size)
        for event in result.resizes:
            assert MIN_TABLE_SIZE <= event.new_size <= MAX_TABLE_SIZE
        assert len(engine) == len(model)

    assert set(engine.keys()) == model
    ok, msgs = verify_table(engine.strategy)
    assert ok, msgs


@settings(max_examples=40, deadline=None)
@given(st.lists(_key_strategy(), min_size=1, max_size=60, unique_by=normalize_key))
def test_open_addressing_bound_holds_after_churn(keys: list[str]) -> None:
    engine = TableEngine(StrategyName.LINEAR_PROBING, 5)
    for key in keys:
        engine.insert(key)
    for key in keys[::2]:
        assert engine.remove(key).status is Status.REMOVED
    strategy = engine.strategy
    assert strategy.count + strategy.tombstones <= strategy.size
    assert sorted(engine.keys()) == sorted(normalize_key(k) for k in keys[1::2])
