from __future__ import annotations

import math
from fractions import Fraction

import pytest
from hypothesis import given, strategies as st

from hashlab.core import StrategyName, TableEngine
from hashlab.core.primes import (
    MAX_TABLE_SIZE,
    MIN_TABLE_SIZE,
    clamp_table_size,
    is_prime,
    next_prime,
    previous_prime,
)


def test_is_prime_small_numbers() -> None:
    assert [n for n in range(-2, 30) if is_prime(n)] == [2, 3, 5, 7, 11, 13, 17, 19, 23, 29]
    assert is_prime(199)
    assert not is_prime(198)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(2.9, 3), (12.7, 12), (500, 199), (-40, 3), (None, 3), ("17", 17), ("big", 3), (math.nan, 3), (math.inf, 3)],
)
def test_clamp_table_size(raw: object, expected: int) -> None:
    assert clamp_table_size(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(8, 11), (11, 11), (0, 3), (4, 5), (198, 199), (1000, 199), ("abc", 3), (math.nan, 3)],
)
def test_next_prime(raw: object, expected: int) -> None:
    assert next_prime(raw) == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(10, 7), (3, 3), (2, 3), (4, 3), (198, 197), (200, 199), ("nope", 3)],
)
def test_previous_prime(raw: object, expected: int) -> None:
    assert previous_prime(raw) == expected


@given(st.integers(min_value=-50, max_value=400))
def test_prime_helpers_stay_in_bounds(value: int) -> None:
    upper = next_prime(value)
    lower = previous_prime(value)
    assert MIN_TABLE_SIZE <= lower <= upper <= MAX_TABLE_SIZE
    assert is_prime(upper) and is_prime(lower)
    clamped = clamp_table_size(value)
    assert lower <= clamped <= upper


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(10**400, 199), (-(10**400), 3), (Fraction(10**400, 3), 199), (Fraction(-(10**400), 3), 3)],
)
def test_clamp_table_size_handles_huge_numbers(raw: object, expected: int) -> None:
    assert clamp_table_size(raw) == expected


def test_huge_sizes_clamp_through_prime_search_and_engine() -> None:
    assert next_prime(10**400) == 199
    assert previous_prime(-(10**400)) == 3
    assert TableEngine(StrategyName.SEPARATE_CHAINING, 10**400).size == 199
    engine = TableEngine(StrategyName.DOUBLE_HASHING, 7)
    assert engine.set_size(10**400) == "Changed table size to 199. Starting fresh with Double Hashing."
