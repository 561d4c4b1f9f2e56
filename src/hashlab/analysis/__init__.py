"""Rendering and verification helpers for hashlab tables."""

from .trace import format_result_lines, format_snapshot_lines
from .verify import verify_table

__all__ = ["format_result_lines", "format_snapshot_lines", "verify_table"]
