from __future__ import annotations

import contextlib
import io
import json
import shlex
from pathlib import Path

import pytest

from hashlab.cli import app
from hashlab.cli.commands import parse_op
from hashlab.contracts.error import BadInputError
from hashlab.contracts.schema import validate_result_payload
from hashlab.core import primary_index


def run_cli(cmd: str) -> tuple[int, str, str]:
    argv = shlex.split(cmd)
    stdout = io.StringIO()
    stderr = io.StringIO()
    try:
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            try:
                code = app.main(argv)
            except SystemExit as exc:  # CLI may call sys.exit
                code = exc.code if isinstance(exc.code, int) else 1
    finally:
        app.OUTPUT_JSON = False
    return code, stdout.getvalue().strip(), stderr.getvalue().strip()


def parse_error(stderr: str) -> dict:
    if not stderr.strip():
        return {}
    return json.loads(stderr.splitlines()[-1])


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("HASHLAB_CONFIG", "HASHLAB_STRATEGY", "HASHLAB_INITIAL_SIZE", "HASHLAB_AUTO_RESIZE"):
        monkeypatch.delenv(name, raising=False)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("insert:42", ("insert", "42")),
        ("SEARCH apple", ("search", "apple")),
        ("remove: 7 ", ("remove", " 7")),
        ("reset", ("reset", None)),
    ],
)
def test_parse_op(text: str, expected: tuple[str, str | None]) -> None:
    assert parse_op(text) == expected


@pytest.mark.parametrize("text", ["insert:", "insert:   ", "search", "upsert:1"])
def test_parse_op_rejects_bad_input(text: str) -> None:
    with pytest.raises(BadInputError):
        parse_op(text)


def test_run_text_output() -> None:
    code, out, err = run_cli("run --strategy linear --size 7 insert:apple search:apple --snapshot --highlights")
    assert code == 0, err
    home = primary_index("apple", 7)
    lines = out.splitlines()
    assert lines[0] == "Linear Probing (size 7)"
    assert "[Linear Probing] INSERT key='apple'" in lines
    assert f'  Success! "apple" found at slot {home}.' in lines
    assert "Table:" in lines
    assert f"[  {home}] apple" in lines


def test_run_json_output_matches_schema() -> None:
    code, out, err = run_cli(
        "--json run --strategy chaining --size 3 insert:a insert:b insert:c insert:d remove:a reset --verify"
    )
    assert code == 0, err
    payload = json.loads(out)
    assert payload["ok"] is True
    assert payload["command"] == "run"
    assert payload["strategy"] == "separate_chaining"
    assert [r["status"] for r in payload["results"]] == ["inserted"] * 4 + ["removed"]
    assert payload["results"][3]["resizes"] == [{"reason": "growth", "old_size": 3, "new_size": 5}]
    for result in payload["results"]:
        validate_result_payload(result)
    assert payload["messages"] == ["Table reset. Ready with Separate Chaining (5 slots)."]
    assert payload["stats"]["keys"] == 0
    assert payload["verify"]["ok"] is True


def test_run_script_file(tmp_path: Path) -> None:
    script = tmp_path / "ops.txt"
    script.write_text("# warm up\ninsert:1\n\ninsert 001\nsearch:1\n", encoding="utf-8")
    code, out, err = run_cli(f"--json run --strategy double --script {script}")
    assert code == 0, err
    statuses = [r["status"] for r in json.loads(out)["results"]]
    assert statuses == ["inserted", "duplicate", "found"]


def test_run_missing_script_returns_io(tmp_path: Path) -> None:
    code, _, err = run_cli(f"run --script {tmp_path / 'missing.txt'}")
    env = parse_error(err)
    assert code == 5
    assert env.get("error") == "FileNotFound"


def test_run_empty_key_is_bad_input() -> None:
    code, out, err = run_cli("run insert:")
    env = parse_error(err)
    assert code == 2
    assert out == ""
    assert env.get("error") == "BadInput"
    assert env.get("detail") == "Enter a key (text or number) to run the operation."


def test_run_without_operations_is_bad_input() -> None:
    code, _, err = run_cli("run")
    assert code == 2
    assert "hint" in parse_error(err)


def test_unknown_strategy_is_bad_input() -> None:
    code, _, err = run_cli("run --strategy cuckoo insert:1")
    env = parse_error(err)
    assert code == 2
    assert "cuckoo" in env.get("detail", "")


def test_probe_command_json() -> None:
    code, out, err = run_cli("--json probe --strategy quadratic --size 11 --seed a --seed b --key a")
    assert code == 0, err
    payload = json.loads(out)
    assert payload["command"] == "probe"
    assert payload["seeds"] == ["a", "b"]
    assert payload["result"]["status"] == "found"
    home = primary_index("a", 11)
    assert payload["probe_sequence"] == [(home + n * n) % 11 for n in range(11)]


def test_probe_command_text() -> None:
    code, out, err = run_cli("probe --strategy chaining --seed x --operation remove --key x")
    assert code == 0, err
    lines = out.splitlines()
    assert lines[0] == "[Separate Chaining] REMOVE key='x'"
    assert lines[1] == "Status: removed | Size: 7"
    assert lines[2] == "Seed keys: x"
    assert lines[-1].startswith("  Highlights: ")


def test_probe_blank_key_is_bad_input() -> None:
    code, _, err = run_cli("probe --key '  '")
    assert code == 2
    assert parse_error(err).get("error") == "BadInput"


def test_primes_command() -> None:
    code, out, _ = run_cli("primes 24")
    assert code == 0
    assert out == "clamped=24 prime=false next=29 previous=23"
    code, out, _ = run_cli("--json primes 1000")
    payload = json.loads(out)
    assert payload["clamped"] == 199
    assert payload["next_prime"] == 199
    assert payload["is_prime"] is True


def test_config_file_drives_engine(tmp_path: Path) -> None:
    cfg_path = tmp_path / "cfg.toml"
    cfg_path.write_text('[table]\nstrategy = "linear"\ninitial_size = 3\nauto_resize = false\n', encoding="utf-8")
    code, out, err = run_cli(f"--json --config {cfg_path} run insert:a insert:b insert:c insert:d")
    assert code == 0, err
    payload = json.loads(out)
    assert payload["strategy"] == "linear_probing"
    assert payload["results"][-1]["status"] == "full"
    code, out, err = run_cli(f"--json --config {cfg_path} run --strategy chaining --size 5 insert:a")
    assert json.loads(out)["size"] == 5


def test_bad_config_returns_bad_input(tmp_path: Path) -> None:
    cfg_path = tmp_path / "cfg.toml"
    cfg_path.write_text("[table]\ninitial_size = 1000\n", encoding="utf-8")
    code, _, err = run_cli(f"--config {cfg_path} primes 7")
    assert code == 2
    assert "initial_size" in parse_error(err).get("detail", "")


def test_config_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    cfg_path = tmp_path / "cfg.toml"
    cfg_path.write_text('[table]\nstrategy = "double"\n', encoding="utf-8")
    monkeypatch.setenv("HASHLAB_CONFIG", str(cfg_path))
    code, out, err = run_cli("--json run insert:k")
    assert code == 0, err
    assert json.loads(out)["strategy"] == "double_hashing"


def test_run_clamps_huge_size_flag() -> None:
    code, out, err = run_cli(f"--json run --strategy chaining --size {'9' * 400} insert:a")
    assert code == 0, err
    assert json.loads(out)["size"] == 199
