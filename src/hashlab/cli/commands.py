"""CLI command registration and handlers for hashlab."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from hashlab.analysis import format_result_lines, format_snapshot_lines, verify_table
from hashlab.contracts.error import BadInputError, InvariantError, IOErrorEnvelope
from hashlab.contracts.schema import validate_result_payload
from hashlab.core.engine import StrategyName, TableEngine
from hashlab.core.primes import clamp_table_size, is_prime, next_prime, previous_prime
from hashlab.core.results import OperationResult

_OPERATIONS = ("insert", "search", "remove")
_STRATEGY_CHOICES = [name.value for name in StrategyName]


@dataclass(frozen=True)
class CLIContext:
    """Runtime hooks supplied by the top-level CLI entrypoint."""

    emit_success: Callable[..., None]
    build_engine: Callable[[Optional[str], Optional[int]], TableEngine]
    logger: logging.Logger
    json_enabled: Callable[[], bool]
    guard: Callable[[Callable[[argparse.Namespace], int]], Callable[[argparse.Namespace], int]]


def parse_op(text: str) -> Tuple[str, Optional[str]]:
    """Split ``insert:K`` / ``insert K`` into ``(operation, key)``.

    ``reset`` takes no key. Keys must be non-empty after trimming.
    """

    raw = text.strip()
    if raw.lower() == "reset":
        return "reset", None
    op, sep, key = raw.partition(":")
    if not sep:
        op, _, key = raw.partition(" ")
    op = op.strip().lower()
    if op not in _OPERATIONS:
        raise BadInputError(f"Unknown operation {op!r} in {text!r}", hint="use insert:K, search:K, remove:K or reset")
    return op, require_key(key)


def require_key(raw: Optional[str]) -> str:
    if raw is None or not raw.strip():
        raise BadInputError("Enter a key (text or number) to run the operation.")
    return raw


def _read_script(path: str) -> List[str]:
    script = Path(path)
    try:
        text = script.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except OSError as exc:
        raise IOErrorEnvelope(f"Failed to read script {script}: {exc}") from exc
    return [line for line in text.splitlines() if line.strip() and not line.lstrip().startswith("#")]


def register_subcommands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ctx: CLIContext,
) -> Dict[str, Callable[[argparse.Namespace], int]]:
    """Define CLI subcommands and return their handlers."""

    handlers: Dict[str, Callable[[argparse.Namespace], int]] = {}

    def _register(
        name: str,
        help_text: Optional[str],
        configure: Callable[[argparse.ArgumentParser], Callable[[argparse.Namespace], int]],
    ) -> None:
        parser = subparsers.add_parser(name, help=help_text)
        handler = configure(parser)
        handlers[name] = ctx.guard(handler)

    _register(
        "run",
        "Apply a sequence of insert/search/remove operations and print their traces.",
        lambda parser: _configure_run(parser, ctx),
    )
    _register(
        "probe",
        "Seed a table, then trace a single operation step by step.",
        lambda parser: _configure_probe(parser, ctx),
    )
    _register(
        "primes",
        "Show the clamped size and neighbouring primes for a value.",
        lambda parser: _configure_primes(parser, ctx),
    )
    return handlers


def _add_table_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--strategy",
        default=None,
        help=f"Collision strategy ({', '.join(_STRATEGY_CHOICES)}; aliases accepted)",
    )
    parser.add_argument("--size", type=int, default=None, help="Initial table size (clamped to [3, 199])")


def _verify_or_raise(engine: TableEngine, results: List[OperationResult]) -> List[str]:
    for result in results:
        validate_result_payload(result.to_dict())
    ok, messages = verify_table(engine.strategy, verbose=True)
    if not ok:
        raise InvariantError("Table invariants violated: " + "; ".join(messages))
    return messages


def _configure_run(parser: argparse.ArgumentParser, ctx: CLIContext) -> Callable[[argparse.Namespace], int]:
    _add_table_args(parser)
    parser.add_argument("ops", nargs="*", help="Operations such as insert:42 search:42 remove:42 reset")
    parser.add_argument("--script", default=None, help="File with one operation per line")
    parser.add_argument("--snapshot", action="store_true", help="Print the final table layout")
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Check table invariants and validate results against the bundled schema",
    )
    parser.add_argument("--highlights", action="store_true", help="Include slot highlights in text output")

    def handler(args: argparse.Namespace) -> int:
        lines = list(args.ops)
        if args.script:
            lines.extend(_read_script(args.script))
        if not lines:
            raise BadInputError("No operations given", hint="pass OP arguments or --script FILE")
        ops = [parse_op(line) for line in lines]

        engine = ctx.build_engine(args.strategy, args.size)
        results: List[OperationResult] = []
        messages: List[str] = []
        for op, key in ops:
            if op == "reset":
                messages.append(engine.reset())
                continue
            result = engine.apply(op, key)
            ctx.logger.debug("%s %r -> %s", op, result.key, result.status.value)
            results.append(result)

        verify_messages = _verify_or_raise(engine, results) if args.verify else []

        if ctx.json_enabled():
            data: Dict[str, Any] = {
                "strategy": engine.strategy_name.value,
                "size": engine.size,
                "results": [result.to_dict() for result in results],
                "stats": engine.stats().to_dict(),
            }
            if messages:
                data["messages"] = messages
            if args.snapshot:
                data["snapshot"] = [view.to_dict() for view in engine.snapshot()]
            if args.verify:
                data["verify"] = {"ok": True, "messages": verify_messages}
            ctx.emit_success("run", data=data)
            return 0

        out: List[str] = [f"{engine.label} (size {engine.size})"]
        for result in results:
            out.extend(format_result_lines(result, label=engine.label, show_highlights=args.highlights))
        out.extend(messages)
        if args.snapshot:
            out.append("Table:")
            out.extend(format_snapshot_lines(engine.snapshot()))
        if args.verify:
            out.append("OK: table verified")
            out.extend(verify_messages)
        ctx.emit_success("run", text="\n".join(out))
        return 0

    return handler


def _configure_probe(parser: argparse.ArgumentParser, ctx: CLIContext) -> Callable[[argparse.Namespace], int]:
    _add_table_args(parser)
    parser.add_argument("--seed", action="append", default=[], help="Key inserted before tracing (repeatable)")
    parser.add_argument("--operation", choices=list(_OPERATIONS), default="search")
    parser.add_argument("--key", required=True, help="Key to trace")

    def handler(args: argparse.Namespace) -> int:
        key = require_key(args.key)
        seeds = [require_key(seed) for seed in args.seed]
        engine = ctx.build_engine(args.strategy, args.size)
        for seed in seeds:
            engine.insert(seed)
        result = engine.apply(args.operation, key)
        if ctx.json_enabled():
            ctx.emit_success(
                "probe",
                data={
                    "strategy": engine.strategy_name.value,
                    "seeds": seeds,
                    "probe_sequence": engine.probe_sequence(key),
                    "result": result.to_dict(),
                },
            )
            return 0
        lines = format_result_lines(result, label=engine.label, seeds=seeds, show_highlights=True)
        ctx.emit_success("probe", text="\n".join(lines))
        return 0

    return handler


def _configure_primes(parser: argparse.ArgumentParser, ctx: CLIContext) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("value", help="Requested table size")

    def handler(args: argparse.Namespace) -> int:
        data = {
            "value": args.value,
            "clamped": clamp_table_size(args.value),
            "is_prime": is_prime(clamp_table_size(args.value)),
            "next_prime": next_prime(args.value),
            "previous_prime": previous_prime(args.value),
        }
        text = (
            f"clamped={data['clamped']} prime={str(data['is_prime']).lower()} "
            f"next={data['next_prime']} previous={data['previous_prime']}"
        )
        ctx.emit_success("primes", text=text, data=data)
        return 0

    return handler


__all__ = ["CLIContext", "parse_op", "register_subcommands", "require_key"]
