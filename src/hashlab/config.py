"""Typed configuration loader for hashlab."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from .contracts.error import BadInputError
from .core.engine import DEFAULT_TABLE_SIZE, StrategyName
from .core.primes import MAX_TABLE_SIZE, MIN_TABLE_SIZE
from .core.strategies import ResizePolicy

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _coerce_bool(name: str, raw: Any) -> bool:
    if isinstance(raw, str):
        normalized = raw.strip().lower()
        if normalized in _TRUE:
            return True
        if normalized in _FALSE:
            return False
        raise BadInputError(f"{name} must be boolean")
    return bool(raw)


@dataclass
class TableSettings:
    strategy: str = StrategyName.SEPARATE_CHAINING.value
    initial_size: int = DEFAULT_TABLE_SIZE
    auto_resize: bool = True

    def validate(self) -> None:
        self.strategy = StrategyName.parse(self.strategy).value
        if isinstance(self.initial_size, bool) or not isinstance(self.initial_size, int):
            raise BadInputError("table.initial_size must be an integer")
        if not MIN_TABLE_SIZE <= self.initial_size <= MAX_TABLE_SIZE:
            raise BadInputError(
                f"table.initial_size must be within [{MIN_TABLE_SIZE}, {MAX_TABLE_SIZE}]",
                hint="the engine clamps sizes at runtime, config files must be explicit",
            )


@dataclass
class ResizeSettings:
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

    def validate(self) -> None:
        if self.chain_max_load <= 0:
            raise BadInputError("resize.chain_max_load must be > 0")
        if self.chain_max_length < 1:
            raise BadInputError("resize.chain_max_length must be >= 1")
        for name in ("chain_growth", "chain_shrink", "open_pre_growth", "open_growth", "open_shrink"):
            if getattr(self, name) <= 1.0:
                raise BadInputError(f"resize.{name} must be > 1")
        for name in (
            "open_pre_max_load",
            "open_max_load",
            "open_pre_compact_occupancy",
            "open_compact_occupancy",
        ):
            if not 0.0 < getattr(self, name) < 1.0:
                raise BadInputError(f"resize.{name} must be in (0, 1)")
        for name in (
            "chain_min_load",
            "open_min_load",
            "open_pre_compact_tombstones",
            "open_compact_tombstones",
            "open_purge_tombstones",
        ):
            if not 0.0 <= getattr(self, name) <= 1.0:
                raise BadInputError(f"resize.{name} must be in [0, 1]")
        if self.chain_min_load >= self.chain_max_load:
            raise BadInputError("resize.chain_min_load must be below resize.chain_max_load")
        if self.open_min_load >= self.open_pre_max_load:
            raise BadInputError("resize.open_min_load must be below resize.open_pre_max_load")


@dataclass
class AppConfig:
    table: TableSettings = field(default_factory=TableSettings)
    resize: ResizeSettings = field(default_factory=ResizeSettings)

    @classmethod
    def load(cls, path: Path | None) -> AppConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise BadInputError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise BadInputError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        table_data = data.get("table", {})
        if not isinstance(table_data, dict):
            raise BadInputError("[table] section must be a table")
        resize_data = data.get("resize", {})
        if not isinstance(resize_data, dict):
            raise BadInputError("[resize] section must be a table")

        table_kwargs = dict(table_data)
        if "auto_resize" in table_kwargs:
            table_kwargs["auto_resize"] = _coerce_bool("table.auto_resize", table_kwargs["auto_resize"])
        try:
            table = TableSettings(**table_kwargs)
            resize = ResizeSettings(**resize_data)
        except TypeError as exc:
            raise BadInputError(f"Unknown config key: {exc}") from exc
        return cls(table=table, resize=resize)

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        table_mapping: dict[str, tuple[str, Callable[[str], Any]]] = {
            "HASHLAB_STRATEGY": ("strategy", str),
            "HASHLAB_INITIAL_SIZE": ("initial_size", int),
            "HASHLAB_AUTO_RESIZE": ("auto_resize", lambda raw: _coerce_bool("HASHLAB_AUTO_RESIZE", raw)),
        }
        for key, (attr, caster) in table_mapping.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value)
            except ValueError as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(self.table, attr, value)

        for spec in fields(ResizeSettings):
            key = f"RESIZE_{spec.name.upper()}"
            raw_value = env.get(key)
            if raw_value is None:
                continue
            cast_fn: Callable[[str], Any] = int if spec.type in (int, "int") else float
            try:
                value = cast_fn(raw_value)
            except ValueError as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(self.resize, spec.name, value)

    def validate(self) -> None:
        self.table.validate()
        self.resize.validate()

    def to_policy(self) -> ResizePolicy:
        return ResizePolicy(auto_resize=self.table.auto_resize, **asdict(self.resize))


DEFAULT_CONFIG = AppConfig()


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)
