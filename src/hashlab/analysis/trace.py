"""Text rendering of operation results and table snapshots."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Union

from hashlab.core.results import OperationResult, SlotState, SlotView

_PLACEHOLDERS = {
    SlotState.EMPTY: "empty",
    SlotState.TOMBSTONE: "tombstone",
    SlotState.EMPTY_CHAIN: "empty chain",
}


def _as_dict(result: Union[OperationResult, Dict[str, Any]]) -> Dict[str, Any]:
    if isinstance(result, OperationResult):
        return result.to_dict()
    return result


def format_result_lines(
    result: Union[OperationResult, Dict[str, Any]],
    *,
    label: Optional[str] = None,
    seeds: Optional[Sequence[str]] = None,
    show_highlights: bool = False,
) -> List[str]:
    """Return a human-friendly rendering of one operation result."""

    data = _as_dict(result)
    lines: List[str] = []
    header = f"{str(data.get('operation', '?')).upper()} key={data.get('key', '?')!r}"
    if label:
        header = f"[{label}] {header}"
    lines.append(header)
    lines.append(f"Status: {data.get('status')} | Size: {data.get('size')}")
    if seeds:
        lines.append("Seed keys: " + ", ".join(seeds))
    trace = data.get("trace")
    if not isinstance(trace, list) or not trace:
        lines.append("  (no trace recorded)")
    else:
        lines.extend(f"  {line}" for line in trace)
    resizes = data.get("resizes") or []
    for event in resizes:
        lines.append(
            f"  Resize ({event.get('reason')}): {event.get('old_size')} -> {event.get('new_size')}"
        )
    if show_highlights:
        marks = [f"{h.get('index')}:{h.get('kind')}" for h in data.get("highlights") or []]
        lines.append("  Highlights: " + (" ".join(marks) if marks else "(none)"))
    return lines


def format_snapshot_lines(snapshot: Sequence[SlotView]) -> List[str]:
    lines: List[str] = []
    for view in snapshot:
        if view.keys:
            body = " -> ".join(view.keys)
        else:
            body = f"<{_PLACEHOLDERS.get(view.state, view.state.value)}>"
        lines.append(f"[{view.index:>3}] {body}")
    return lines


__all__ = ["format_result_lines", "format_snapshot_lines"]
