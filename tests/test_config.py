from __future__ import annotations

from pathlib import Path

import pytest

from hashlab.config import AppConfig, load_app_config
from hashlab.contracts.error import BadInputError
from hashlab.core import Status, StrategyName, TableEngine


def test_default_config_validates() -> None:
    cfg = load_app_config(None)
    assert cfg.table.strategy == "separate_chaining"
    assert cfg.table.initial_size == 11
    assert cfg.table.auto_resize is True
    assert cfg.resize.chain_max_load == pytest.approx(1.15)
    assert cfg.resize.open_pre_max_load == pytest.approx(0.68)
    policy = cfg.to_policy()
    assert policy.auto_resize is True
    assert policy.open_max_load == pytest.approx(0.72)


def test_load_from_toml(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "config.toml"
    cfg_path.write_text(
        """
[table]
strategy = "double"
initial_size = 17
auto_resize = "off"

[resize]
open_max_load = 0.8
open_growth = 1.5
chain_max_length = 6
""",
        encoding="utf-8",
    )
    cfg = load_app_config(str(cfg_path))
    assert cfg.table.strategy == StrategyName.DOUBLE_HASHING.value
    assert cfg.table.initial_size == 17
    assert cfg.table.auto_resize is False
    assert cfg.resize.open_max_load == pytest.approx(0.8)
    assert cfg.resize.chain_max_length == 6

    # env override takes precedence
    monkeypatch.setenv("HASHLAB_STRATEGY", "quadratic")
    monkeypatch.setenv("HASHLAB_AUTO_RESIZE", "yes")
    monkeypatch.setenv("RESIZE_CHAIN_MAX_LENGTH", "9")
    monkeypatch.setenv("RESIZE_OPEN_MIN_LOAD", "0.25")
    cfg_env = AppConfig.load(cfg_path)
    assert cfg_env.table.strategy == "quadratic_probing"
    assert cfg_env.table.auto_resize is True
    assert cfg_env.resize.chain_max_length == 9
    assert cfg_env.resize.open_min_load == pytest.approx(0.25)


def test_engine_from_config(tmp_path: Path) -> None:
    cfg_path = tmp_path / "fixed.toml"
    cfg_path.write_text('[table]\nstrategy = "linear"\ninitial_size = 3\nauto_resize = false\n', encoding="utf-8")
    engine = TableEngine.from_config(load_app_config(str(cfg_path)))
    assert engine.strategy_name is StrategyName.LINEAR_PROBING
    for key in "abc":
        engine.insert(key)
    assert engine.insert("d").status is Status.FULL
    assert engine.size == 3


@pytest.mark.parametrize(
    "body",
    [
        '[table]\nstrategy = "cuckoo"\n',
        "[table]\ninitial_size = 2\n",
        "[table]\ninitial_size = 500\n",
        '[table]\ninitial_size = "11"\n',
        '[table]\nauto_resize = "maybe"\n',
        "[table]\nbuckets = 4\n",
        "[resize]\nopen_max_load = 1.2\n",
        "[resize]\nchain_growth = 1.0\n",
        "[resize]\nopen_min_load = 0.9\n",
        "[resize]\nchain_min_load = 2.0\n",
        "table = 3\n",
        "not = [valid\n",
    ],
)
def test_invalid_config_is_bad_input(tmp_path: Path, body: str) -> None:
    cfg_path = tmp_path / "bad.toml"
    cfg_path.write_text(body, encoding="utf-8")
    with pytest.raises(BadInputError):
        load_app_config(str(cfg_path))


def test_missing_config_file_is_bad_input(tmp_path: Path) -> None:
    with pytest.raises(BadInputError) as excinfo:
        load_app_config(str(tmp_path / "absent.toml"))
    assert "not found" in str(excinfo.value)


def test_invalid_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HASHLAB_INITIAL_SIZE", "eleven")
    with pytest.raises(BadInputError):
        load_app_config(None)
    monkeypatch.setenv("HASHLAB_INITIAL_SIZE", "13")
    monkeypatch.setenv("RESIZE_OPEN_GROWTH", "fast")
    with pytest.raises(BadInputError):
        load_app_config(None)
